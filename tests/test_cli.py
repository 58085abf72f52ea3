"""CLIエントリポイントのテスト"""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tinyico.cli import app
from tinyico.source import IconSourceError

runner = CliRunner()


@pytest.fixture
def ico_path(tmp_path: Path, mono_icon_bytes: bytes) -> Path:
    """2x2の1bppアイコンファイル"""
    path = tmp_path / "mono.ico"
    path.write_bytes(mono_icon_bytes)
    return path


@pytest.fixture
def mixed_ico_path(
    tmp_path: Path,
    make_dib: Callable[..., bytes],
    make_png: Callable[..., bytes],
    make_ico: Callable[..., bytes],
) -> Path:
    """DIBとPNGを含むアイコンファイル"""
    path = tmp_path / "mixed.ico"
    path.write_bytes(
        make_ico(
            [
                (make_dib(16, 16, 8), 16, 16, 8),
                (make_png(32, 32, (255, 255, 255, 255)), 32, 32, 32),
            ]
        )
    )
    return path


class TestMainCommand:
    """メインコマンドのテスト"""

    @pytest.mark.parametrize(
        "args,expected_in_output",
        [
            pytest.param(["--help"], "Windowsアイコン", id="正常系: ヘルプ表示"),
            pytest.param(["--version"], "tinyico 0.1.0", id="正常系: バージョン表示"),
        ],
    )
    def test_main_options(self, args: list[str], expected_in_output: str) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected_in_output in result.stdout


class TestInfoCommand:
    """infoコマンドのテスト"""

    def test_info(self, ico_path: Path) -> None:
        """画像の一覧を表示する"""
        result = runner.invoke(app, ["info", str(ico_path)])

        assert result.exit_code == 0
        assert "Icon Info: mono.ico" in result.stdout
        assert "BMP" in result.stdout

    def test_info_sorted(self, mixed_ico_path: Path) -> None:
        """並べ替え順を指定すると大きい画像から表示する"""
        result = runner.invoke(app, ["info", str(mixed_ico_path), "--sort", "resolution-desc"])

        assert result.exit_code == 0
        assert result.stdout.index("PNG") < result.stdout.index("BMP")

    def test_info_missing_file(self, tmp_path: Path) -> None:
        """存在しないファイルは取得エラーで終了する"""
        result = runner.invoke(app, ["info", str(tmp_path / "missing.ico")])

        assert result.exit_code == 3
        assert "Error" in result.stdout

    def test_info_invalid_icon(self, tmp_path: Path) -> None:
        """ICOとして不正なファイルは入力エラーで終了する"""
        path = tmp_path / "broken.ico"
        path.write_bytes(b"\x00" * 100)

        result = runner.invoke(app, ["info", str(path)])

        assert result.exit_code == 2
        assert "Error" in result.stdout

    def test_info_unknown_sort(self, ico_path: Path) -> None:
        result = runner.invoke(app, ["info", str(ico_path), "--sort", "size"])

        assert result.exit_code == 2

    def test_info_url_source_error(self) -> None:
        """faviconの取得に失敗した場合は取得エラーで終了する"""
        with patch("tinyico.icon.acquire", side_effect=IconSourceError("HTTPエラー 404")):
            result = runner.invoke(app, ["info", "https://example.com"])

        assert result.exit_code == 3
        assert "404" in result.stdout


class TestExtractCommand:
    """extractコマンドのテスト"""

    def test_extract_png(self, tmp_path: Path, ico_path: Path) -> None:
        """PNGとして書き出す"""
        output = tmp_path / "out"

        result = runner.invoke(app, ["extract", str(ico_path), "-o", str(output)])

        assert result.exit_code == 0
        assert (output / "mono_0_2x2_1bpp.png").exists()
        assert "Images: 1/1" in result.stdout

    def test_extract_webp_with_filter(self, tmp_path: Path, mixed_ico_path: Path) -> None:
        """絞り込み条件に一致する画像のみWebPで書き出す"""
        output = tmp_path / "out"

        result = runner.invoke(
            app,
            [
                "extract",
                str(mixed_ico_path),
                "-o",
                str(output),
                "--format",
                "webp",
                "--quality",
                "80",
                "--min-size",
                "32",
            ],
        )

        assert result.exit_code == 0
        assert [p.name for p in output.iterdir()] == ["mixed_1_32x32_32bpp.webp"]

    @pytest.mark.parametrize(
        "option, expected",
        [
            pytest.param("--png-only", "mixed_1_32x32_32bpp.png", id="正常系: PNGのみ"),
            pytest.param("--bitmap-only", "mixed_0_16x16_8bpp.png", id="正常系: BMPのみ"),
        ],
    )
    def test_extract_format_filter(
        self, tmp_path: Path, mixed_ico_path: Path, option: str, expected: str
    ) -> None:
        output = tmp_path / "out"

        result = runner.invoke(app, ["extract", str(mixed_ico_path), "-o", str(output), option])

        assert result.exit_code == 0
        assert [p.name for p in output.iterdir()] == [expected]

    def test_extract_no_match(self, tmp_path: Path, ico_path: Path) -> None:
        """一致する画像がない場合は警告を表示する"""
        output = tmp_path / "out"

        result = runner.invoke(app, ["extract", str(ico_path), "-o", str(output), "--bpp", "32"])

        assert result.exit_code == 0
        assert "条件に一致する画像がありません" in result.stdout
        assert not output.exists()

    def test_extract_verbose(self, tmp_path: Path, ico_path: Path) -> None:
        """-vvでエントリごとのログを表示する"""
        result = runner.invoke(
            app, ["extract", str(ico_path), "-o", str(tmp_path / "out"), "-vv"]
        )

        assert result.exit_code == 0
        assert "エントリ 0: 2x2 1bpp [BMP]" in result.stdout
        assert "出力: mono_0_2x2_1bpp.png" in result.stdout

    def test_extract_conflicting_options(self, ico_path: Path) -> None:
        result = runner.invoke(app, ["extract", str(ico_path), "--png-only", "--bitmap-only"])

        assert result.exit_code == 2

    @pytest.mark.parametrize(
        "args",
        [
            pytest.param(["--format", "gif"], id="異常系: 不明な出力形式"),
            pytest.param(["--quality", "best"], id="異常系: 不明な品質"),
        ],
    )
    def test_extract_invalid_export_options(self, ico_path: Path, args: list[str]) -> None:
        result = runner.invoke(app, ["extract", str(ico_path), *args])

        assert result.exit_code == 2

    def test_extract_with_config(self, tmp_path: Path, ico_path: Path) -> None:
        """設定ファイルの出力形式を使用する"""
        config_path = tmp_path / "tinyico.yaml"
        config_path.write_text("export:\n  format: webp\n", encoding="utf-8")
        output = tmp_path / "out"

        result = runner.invoke(
            app, ["extract", str(ico_path), "-o", str(output), "--config", str(config_path)]
        )

        assert result.exit_code == 0
        assert (output / "mono_0_2x2_1bpp.webp").exists()

    def test_extract_log_file(self, tmp_path: Path, ico_path: Path) -> None:
        """ログファイルにデコード結果を記録する"""
        log_file = tmp_path / "extract.log"

        result = runner.invoke(
            app,
            ["extract", str(ico_path), "-o", str(tmp_path / "out"), "--log-file", str(log_file)],
        )

        assert result.exit_code == 0
        assert "1個の画像をデコードしました" in log_file.read_text(encoding="utf-8")

    def test_extract_unwritable_log_file(self, tmp_path: Path, ico_path: Path) -> None:
        """ログファイルを開けない場合は入力エラーで終了する"""
        output = tmp_path / "out"

        result = runner.invoke(
            app,
            ["extract", str(ico_path), "-o", str(output), "--log-file", str(tmp_path)],
        )

        assert result.exit_code == 2
        assert "Error" in result.stdout
        assert not output.exists()

    def test_extract_missing_config(self, tmp_path: Path, ico_path: Path) -> None:
        result = runner.invoke(
            app, ["extract", str(ico_path), "--config", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 2


class TestDumpCommand:
    """dumpコマンドのテスト"""

    def test_dump(self, ico_path: Path) -> None:
        """ディレクトリ構造を表示する"""
        result = runner.invoke(app, ["dump", str(ico_path)])

        assert result.exit_code == 0
        assert result.stdout.startswith("mono.ico\n\nIconDir:")
        assert "bitCount      = 1" in result.stdout
