"""画像出力の共通データ型

アイコン画像の書き出し結果を表すデータ型を定義する。
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ExportStatus(Enum):
    """出力ステータス

    アイコン画像の書き出し結果を表す列挙型。
    """

    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportResult:
    """出力結果を表すデータクラス

    単一アイコンの書き出し結果を保持する不変データクラス。

    Attributes:
        icon_index: IconSet内のアイコンの位置
        dest_path: 出力先ファイルのパス
        status: 出力ステータス
        message: 追加メッセージ（エラー詳細等）
        bytes_after: 出力ファイルのサイズ（バイト）
    """

    icon_index: int
    dest_path: Path
    status: ExportStatus
    message: str = ""
    bytes_after: int = 0

    @property
    def is_success(self) -> bool:
        """出力が成功したかどうかを返す"""
        return self.status == ExportStatus.SUCCESS
