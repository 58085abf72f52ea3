"""Converter module for tinyico.

デコード済みアイコンを画像ファイルとして書き出す機能を提供するモジュール。
"""

from tinyico.converter.base import ExportResult, ExportStatus
from tinyico.converter.image import ImageExporter, OutputFormat, QualityPreset

__all__ = [
    "ExportResult",
    "ExportStatus",
    "ImageExporter",
    "OutputFormat",
    "QualityPreset",
]
