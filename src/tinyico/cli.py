"""CLI entry point for tinyico."""

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tinyico import __version__
from tinyico.config import ConfigError, TinyIcoConfig, get_default_config, load_config
from tinyico.converter import ImageExporter
from tinyico.icon import Icon, IconPredicate, IconSet, IconSort
from tinyico.logger import DecodeLogger, LogConfig, VerboseLevel
from tinyico.parser import IconError
from tinyico.source import IconSourceError
from tinyico.types import ExitCode

app = typer.Typer(help="Windowsアイコン(.ico)をデコード・変換するCLIツール")
console = Console()


def _fail(message: str, code: ExitCode) -> typer.Exit:
    """エラーメッセージを表示して終了用の例外を返す"""
    console.print(f"[red]Error: {escape(message)}[/red]")
    return typer.Exit(int(code))


def _load_config(config_path: Path | None) -> TinyIcoConfig:
    """設定ファイルを読み込む（未指定の場合はデフォルト設定）"""
    if config_path is None:
        return get_default_config()
    try:
        return load_config(config_path)
    except ConfigError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT) from e


def _open_icons(source: str, config: TinyIcoConfig) -> IconSet:
    """アイコンを取得してデコードする"""
    try:
        return IconSet.open(source, config)
    except IconSourceError as e:
        raise _fail(str(e), ExitCode.SOURCE_ERROR) from e
    except IconError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT) from e


def _resolve_sort(
    primary: str | None, secondary: str | None, config: TinyIcoConfig
) -> tuple[IconSort, IconSort]:
    """CLIオプションと設定から並べ替え順を決定する"""
    try:
        return (
            IconSort.from_name(primary or config.sort.primary),
            IconSort.from_name(secondary or config.sort.secondary),
        )
    except ValueError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT) from e


def _build_predicate(
    min_size: int | None,
    max_size: int | None,
    bpp: int | None,
    png_only: bool,
    bitmap_only: bool,
) -> IconPredicate:
    """絞り込みオプションから条件関数を組み立てる"""

    def predicate(icon: Icon) -> bool:
        if min_size is not None and min(icon.width, icon.height) < min_size:
            return False
        if max_size is not None and max(icon.width, icon.height) > max_size:
            return False
        if bpp is not None and icon.bit_count != bpp:
            return False
        if png_only and not icon.is_png:
            return False
        return not (bitmap_only and icon.is_png)

    return predicate


@app.command()
def info(
    source: Annotated[str, typer.Argument(help="ICOファイル・EXE・WebサイトのURL")],
    sort: Annotated[str | None, typer.Option("--sort", help="並べ替え順（第1キー）")] = None,
    then: Annotated[str | None, typer.Option("--then", help="並べ替え順（第2キー）")] = None,
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
) -> None:
    """アイコンに含まれる画像の一覧を表示する"""
    config = _load_config(config_path)
    primary, secondary = _resolve_sort(sort, then, config)
    icons = _open_icons(source, config).sorted(primary, secondary)

    table = Table(title=f"Icon Info: {escape(icons.name)}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("BPP", justify="right")
    table.add_column("Format", justify="center", style="green")

    for index, icon in enumerate(icons):
        table.add_row(
            str(index),
            str(icon.width),
            str(icon.height),
            str(icon.bit_count),
            "PNG" if icon.is_png else "BMP",
        )

    console.print(table)
    raise typer.Exit(int(ExitCode.SUCCESS))


@app.command()
def extract(
    source: Annotated[str, typer.Argument(help="ICOファイル・EXE・WebサイトのURL")],
    output: Annotated[Path | None, typer.Option("-o", "--output", help="出力ディレクトリ")] = None,
    image_format: Annotated[
        str | None, typer.Option("--format", help="出力形式（png/webp）")
    ] = None,
    quality: Annotated[
        str | None, typer.Option(help="WebP品質（high/medium/low または 0-100）")
    ] = None,
    min_size: Annotated[int | None, typer.Option(help="最小サイズ（ピクセル）")] = None,
    max_size: Annotated[int | None, typer.Option(help="最大サイズ（ピクセル）")] = None,
    bpp: Annotated[int | None, typer.Option(help="ビット深度で絞り込み")] = None,
    png_only: Annotated[bool, typer.Option(help="PNG形式の画像のみ")] = False,
    bitmap_only: Annotated[bool, typer.Option(help="BMP形式の画像のみ")] = False,
    sort: Annotated[str | None, typer.Option("--sort", help="並べ替え順（第1キー）")] = None,
    then: Annotated[str | None, typer.Option("--then", help="並べ替え順（第2キー）")] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
) -> None:
    """アイコンに含まれる画像をPNG/WebPとして書き出す"""
    if png_only and bitmap_only:
        raise _fail("--png-only と --bitmap-only は同時に指定できません", ExitCode.INVALID_INPUT)

    config = _load_config(config_path)
    export_config = config.export
    if image_format is not None:
        export_config = replace(export_config, format=image_format)
    if quality is not None:
        export_config = replace(
            export_config, quality=int(quality) if quality.isdigit() else quality
        )

    try:
        exporter = ImageExporter.from_config(export_config)
    except ValueError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT) from e

    primary, secondary = _resolve_sort(sort, then, config)
    icons = _open_icons(source, config).sorted(primary, secondary)
    predicate = _build_predicate(min_size, max_size, bpp, png_only, bitmap_only)

    output_dir = output if output is not None else Path.cwd()
    stem = Path(icons.name).stem or "icon"
    log_config = LogConfig(
        verbose_level=VerboseLevel(min(verbose, VerboseLevel.DEBUG)),
        log_file=log_file,
        use_color=console.is_terminal,
    )

    try:
        decode_logger = DecodeLogger(log_config)
    except OSError as e:
        raise _fail(f"ログファイルを開けません: {log_file}: {e}", ExitCode.INVALID_INPUT) from e

    with decode_logger as logger:
        logger.info(f"{icons.name}: {icons.count}個の画像をデコードしました")
        selected = []
        for index, icon in enumerate(icons):
            logger.log_entry(index, icon)
            if predicate(icon):
                selected.append((index, icon))

        if not selected:
            logger.warning("条件に一致する画像がありません")

        results = exporter.export_all(selected, output_dir, stem)
        for result in results:
            logger.log_export(result)

        exported = sum(1 for result in results if result.is_success)
        logger.log_summary(
            {"exported": exported, "total": icons.count, "output_dir": str(output_dir)}
        )

    if exported < len(results):
        raise typer.Exit(int(ExitCode.ERROR))
    raise typer.Exit(int(ExitCode.SUCCESS))


@app.command()
def dump(
    source: Annotated[str, typer.Argument(help="ICOファイル・EXE・WebサイトのURL")],
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
) -> None:
    """ICOファイルの内部構造を表示する"""
    config = _load_config(config_path)
    icons = _open_icons(source, config)
    typer.echo(icons.describe())
    raise typer.Exit(int(ExitCode.SUCCESS))


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"tinyico {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """tinyico CLI - Windowsアイコンをデコード"""
    pass
