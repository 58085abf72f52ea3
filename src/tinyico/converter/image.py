"""画像出力モジュール

デコード済みのアイコンをPNG/WebP形式のファイルとして書き出す。
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

from tinyico.converter.base import ExportResult, ExportStatus

if TYPE_CHECKING:
    from tinyico.config import ExportConfig
    from tinyico.icon import Icon


class QualityPreset(Enum):
    """WebP出力時の品質プリセット

    画像出力時のWebP品質値を定義する列挙型。
    HIGH/MEDIUM/LOWの3段階の品質レベルを提供する。
    """

    HIGH = 95
    MEDIUM = 85
    LOW = 70

    @classmethod
    def resolve(cls, quality: int | str) -> int:
        """プリセット名または整数から品質値を求める

        Args:
            quality: "high" などのプリセット名、または0-100の整数

        Returns:
            品質値

        Raises:
            ValueError: 不明なプリセット名、または範囲外の値の場合
        """
        if isinstance(quality, str):
            try:
                return cls[quality.upper()].value
            except KeyError:
                raise ValueError(f"不明な品質プリセットです: {quality}") from None
        if not 0 <= quality <= 100:
            raise ValueError(f"品質は0-100の範囲で指定してください: {quality}")
        return quality


class OutputFormat(Enum):
    """画像出力形式"""

    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        """出力ファイルの拡張子"""
        return f".{self.value}"


class ImageExporter:
    """アイコン画像出力クラス

    デコード済みのアイコンをPNG/WebP形式で保存する。

    Attributes:
        output_format: 出力形式（PNGまたはWebP）
        quality: WebP出力時の品質値（0-100）
        lossless_alpha: アルファチャンネルをロスレスで保存するか
    """

    def __init__(
        self,
        output_format: OutputFormat = OutputFormat.PNG,
        quality: QualityPreset | int = QualityPreset.HIGH,
        lossless_alpha: bool = True,
    ) -> None:
        """ImageExporterを初期化する

        Args:
            output_format: 出力形式（デフォルトはPNG）
            quality: WebP品質（プリセットまたは0-100の整数）
            lossless_alpha: アルファチャンネルをロスレスで保存するか（WebP時のみ使用）
        """
        self._output_format = output_format
        if isinstance(quality, QualityPreset):
            self._quality = quality.value
        else:
            self._quality = quality
        self._lossless_alpha = lossless_alpha

    @classmethod
    def from_config(cls, config: ExportConfig) -> ImageExporter:
        """出力設定からImageExporterを作成する

        Raises:
            ValueError: 出力形式または品質の指定が不正な場合
        """
        return cls(
            output_format=OutputFormat(config.format.lower()),
            quality=QualityPreset.resolve(config.quality),
            lossless_alpha=config.lossless_alpha,
        )

    @property
    def output_format(self) -> OutputFormat:
        """出力形式を返す"""
        return self._output_format

    @property
    def quality(self) -> int:
        """WebP品質値を返す"""
        return self._quality

    @property
    def lossless_alpha(self) -> bool:
        """ロスレスアルファ設定を返す"""
        return self._lossless_alpha

    def file_name(self, stem: str, index: int, icon: Icon) -> str:
        """出力ファイル名を組み立てる"""
        return (
            f"{stem}_{index}_{icon.width}x{icon.height}_{icon.bit_count}bpp"
            f"{self._output_format.extension}"
        )

    def export(self, icon: Icon, dest: Path, index: int = 0) -> ExportResult:
        """アイコンを指定された形式で保存する

        Pillowの保存エラーは例外として送出せず、FAILEDの結果として返す。

        Args:
            icon: 出力するアイコン
            dest: 出力先ファイルのパス
            index: IconSet内のアイコンの位置（結果記録用）

        Returns:
            出力結果
        """
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with icon.to_image() as img:
                if self._output_format == OutputFormat.PNG:
                    self._save_as_png(img, dest)
                else:
                    self._save_as_webp(img, dest)
        except (OSError, ValueError) as e:
            return ExportResult(
                icon_index=index,
                dest_path=dest,
                status=ExportStatus.FAILED,
                message=str(e),
            )

        return ExportResult(
            icon_index=index,
            dest_path=dest,
            status=ExportStatus.SUCCESS,
            bytes_after=dest.stat().st_size,
        )

    def export_all(
        self,
        icons: Iterable[tuple[int, Icon]],
        output_dir: Path,
        stem: str,
    ) -> list[ExportResult]:
        """複数のアイコンをディレクトリに保存する

        Args:
            icons: (位置, アイコン) の組
            output_dir: 出力先ディレクトリ
            stem: ファイル名の接頭辞

        Returns:
            各アイコンの出力結果
        """
        return [
            self.export(icon, output_dir / self.file_name(stem, index, icon), index)
            for index, icon in icons
        ]

    def _save_as_webp(self, image: Image.Image, dest: Path) -> None:
        """画像をWebP形式で保存する内部メソッド"""
        if self._lossless_alpha:
            image.save(dest, "WEBP", quality=self._quality, lossless=True)
        else:
            image.save(dest, "WEBP", quality=self._quality)

    def _save_as_png(self, image: Image.Image, dest: Path) -> None:
        """画像をPNG形式で保存する内部メソッド

        PNG形式はロスレス圧縮のため、品質設定は使用されない。
        """
        image.save(dest, "PNG")
