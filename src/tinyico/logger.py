"""ログ出力のインターフェース定義

このモジュールは、tinyicoのCLIでのログ出力を定義する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
デコード結果や画像出力の状況をユーザーにわかりやすく表示するために使用される。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from tinyico.converter.base import ExportResult
    from tinyico.icon import Icon


class VerboseLevel(IntEnum):
    """詳細ログレベル

    ログ出力の詳細度を制御するための列挙型。
    QUIET: エラーのみ出力
    NORMAL: サマリ出力
    VERBOSE: 出力ファイル一覧も出力（-vオプション）
    DEBUG: エントリごとのデコード結果も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass
class LogConfig:
    """ログ設定

    ログ出力の動作を制御するための設定データクラス。
    詳細レベル、ファイル出力、色やemojiの使用有無を設定できる。

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
        use_emoji: emoji表示を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True
    use_emoji: bool = True


class DecodeLogger:
    """デコードログ出力クラス

    アイコンのデコードと画像出力のログ出力を管理するクラス。
    VerboseLevelに応じてメッセージのフィルタリングを行う。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.VERBOSE)
        >>> logger = DecodeLogger(config)
        >>> logger.info("app.ico をデコードします")
        >>> logger.verbose("app_0_16x16_32bpp.png を出力しました")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
    _ANSI_COLORS = {"red": "\x1b[31m", "yellow": "\x1b[33m"}

    def __init__(self, config: LogConfig) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定
        """
        self._config = config
        self._log_file: TextIO | None = None
        if config.log_file:
            # クラス自体がコンテキストマネージャとして動作し、__exit__でファイルを閉じる
            self._log_file = open(config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> DecodeLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        """ログ設定を取得する

        Returns:
            現在のログ設定
        """
        return self._config

    def _print(self, message: str, file: TextIO | None = None) -> None:
        """メッセージを出力する

        Args:
            message: 出力するメッセージ
            file: 出力先（Noneの場合は標準出力）
        """
        if file is None:
            file = sys.stdout
        if not self._config.use_color:
            message = self._strip_ansi(message)
        print(message, file=file)

    def _colorize(self, text: str, color: str) -> str:
        """カラー出力が有効な場合にANSIカラーで装飾する"""
        if not self._config.use_color:
            return text
        return f"{self._ANSI_COLORS[color]}{text}\x1b[0m"

    def _log_to_file(self, level: str, message: str) -> None:
        """ファイルにログ出力する

        Args:
            level: ログレベル文字列
            message: 出力するメッセージ
        """
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        """ANSIエスケープシーケンスを除去する"""
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        if self._config.verbose_level >= VerboseLevel.NORMAL:
            self._print(message)
        self._log_to_file("INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        if self._config.verbose_level >= VerboseLevel.VERBOSE:
            self._print(message)
        self._log_to_file("VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        if self._config.verbose_level >= VerboseLevel.DEBUG:
            self._print(message)
        self._log_to_file("DEBUG", message)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        self._print(f"{self._colorize('エラー:', 'red')} {message}", file=sys.stderr)
        self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以上）"""
        if self._config.verbose_level > VerboseLevel.QUIET:
            self._print(f"{self._colorize('警告:', 'yellow')} {message}")
        self._log_to_file("WARNING", message)

    def log_entry(self, index: int, icon: Icon) -> None:
        """デコードしたエントリをログする（DEBUG以上）

        Args:
            index: エントリの位置
            icon: デコード済みアイコン
        """
        kind = "PNG" if icon.is_png else "BMP"
        self.debug(f"エントリ {index}: {icon.width}x{icon.height} {icon.bit_count}bpp [{kind}]")

    def log_export(self, result: ExportResult) -> None:
        """画像出力をログする（VERBOSE以上、失敗時は警告）

        Args:
            result: 出力結果
        """
        if result.is_success:
            self.verbose(f"出力: {result.dest_path.name} [{result.status.value}]")
        else:
            self.warning(f"出力失敗: {result.dest_path.name}: {result.message}")

    def log_summary(self, statistics: dict[str, Any]) -> None:
        """出力サマリを出力する（NORMAL以上）

        Args:
            statistics: 出力統計情報
        """
        emoji = "✅" if self._config.use_emoji else "[OK]"
        self.info(f"{emoji} Extract complete!")
        if "exported" in statistics:
            self.info(f"   Images: {statistics['exported']}/{statistics.get('total', 0)}")
        if "output_dir" in statistics:
            self.info(f"   Output: {statistics['output_dir']}")
