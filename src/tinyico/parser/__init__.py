"""Parser module for tinyico.

ICOコンテナのバイナリ構造を解析するためのモジュール。
ディレクトリ、ディレクトリエントリ、DIBヘッダーの解析と
構造上の不変条件の検証を行う。
"""

from tinyico.parser.bitmap import BitmapInfoHeader, IconImage
from tinyico.parser.directory import IconDir, IconDirEntry
from tinyico.parser.errors import (
    IconBoundsError,
    IconError,
    InvalidIconDataError,
    InvalidIconError,
)
from tinyico.parser.reader import ByteReader

__all__ = [
    "BitmapInfoHeader",
    "ByteReader",
    "IconBoundsError",
    "IconDir",
    "IconDirEntry",
    "IconError",
    "IconImage",
    "InvalidIconDataError",
    "InvalidIconError",
]
