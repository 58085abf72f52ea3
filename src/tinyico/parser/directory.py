"""ICOディレクトリ解析モジュール

ICOファイル先頭の6バイトヘッダー（ICONDIR）と、それに続く
16バイトのディレクトリエントリ（ICONDIRENTRY）の配列を解析する。

ICOファイルの構造:
- ヘッダー: reserved(2) + type(2) + count(2)
- エントリ: width(1) + height(1) + colorCount(1) + reserved(1)
            + planes(2) + bitCount(2) + bytesInRes(4) + imageOffset(4)
- 画像データ: BITMAPINFOHEADERで始まるDIB、またはPNG
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tinyico.parser.bitmap import BITMAPINFOHEADER_SIZE, IconImage
from tinyico.parser.errors import InvalidIconDataError, InvalidIconError
from tinyico.parser.reader import ByteReader

logger = logging.getLogger(__name__)

ICONDIR_SIZE = 6
"""ICONDIRヘッダーのサイズ（バイト）"""

ICONDIRENTRY_SIZE = 16
"""ICONDIRENTRYのサイズ（バイト）"""

ICON_RESOURCE_TYPE = 1
"""アイコンを表すtype値（2はカーソル）"""

# 最小構成: ICONDIR(6) + ICONDIRENTRY(16) + BITMAPINFOHEADER(40)
#           + 白黒パレット(8) + XORマスク(4) + ANDマスク(4)
MIN_ICON_FILE_SIZE = 78
"""ICOファイルとして成立する最小サイズ（バイト）"""

PNG_SIGNATURE_HEAD = 0x474E5089
"""PNGシグネチャ前半4バイト（\\x89PNG）のリトルエンディアン値"""

PNG_SIGNATURE_TAIL = 0x0A1A0A0D
"""PNGシグネチャ後半4バイト（\\r\\n\\x1a\\n）のリトルエンディアン値"""


@dataclass(frozen=True)
class IconDirEntry:
    """ディレクトリエントリ

    Attributes:
        width: 幅（0は256を意味する）
        height: 高さ（0は256を意味する）
        color_count: パレット色数（0はパレットなし）
        reserved: 予約領域
        planes: カラープレーン数
        bit_count: ピクセルあたりのビット数
        bytes_in_res: 画像データのバイト数
        image_offset: 画像データの開始オフセット
        image: DIB画像情報。PNGの場合はNone
    """

    width: int
    height: int
    color_count: int
    reserved: int
    planes: int
    bit_count: int
    bytes_in_res: int
    image_offset: int
    image: IconImage | None

    @classmethod
    def parse(cls, reader: ByteReader, offset: int) -> IconDirEntry:
        """指定オフセットのディレクトリエントリを解析する

        参照先の画像データ先頭4バイトから、DIBかPNGかを判別する。

        Args:
            reader: ICOバッファ
            offset: エントリの開始オフセット

        Returns:
            解析されたディレクトリエントリ

        Raises:
            InvalidIconDataError: 画像ヘッダーが認識できない場合、
                                  またはPNGシグネチャが壊れている場合
        """
        image_offset = reader.read_u32(offset + 12, "imageOffset")
        bytes_in_res = reader.read_u32(offset + 8, "bytesInRes")

        is_png = _image_is_png(reader, image_offset)
        if is_png:
            reader.require(image_offset, bytes_in_res, "PNG data")
            image = None
        else:
            image = IconImage.parse(reader, image_offset)

        return cls(
            width=reader.read_u8(offset, "width"),
            height=reader.read_u8(offset + 1, "height"),
            color_count=reader.read_u8(offset + 2, "colorCount"),
            reserved=reader.read_u8(offset + 3, "reserved"),
            planes=reader.read_u16(offset + 4, "planes"),
            bit_count=reader.read_u16(offset + 6, "bitCount"),
            bytes_in_res=bytes_in_res,
            image_offset=image_offset,
            image=image,
        )

    @property
    def is_png(self) -> bool:
        """画像データがPNGかどうか"""
        return self.image is None

    def describe(self) -> str:
        """エントリ内容を複数行の文字列で返す"""
        rows = [
            ("width", self.width),
            ("height", self.height),
            ("colorCount", self.color_count),
            ("reserved", self.reserved),
            ("planes", self.planes),
            ("bitCount", self.bit_count),
            ("bytesInRes", self.bytes_in_res),
            ("imageOffset", self.image_offset),
        ]
        lines = [f"{key:<11} = {value}" for key, value in rows]
        lines.append("")
        lines.append("- Image header -")
        if self.image is None:
            lines.append("(Image is a PNG)")
        else:
            lines.append(self.image.describe())
        return "\n".join(lines)


def _image_is_png(reader: ByteReader, image_offset: int) -> bool:
    """画像データがPNGかDIBかを判別する"""
    header = reader.read_u32(image_offset, "image header")

    if header == BITMAPINFOHEADER_SIZE:
        return False

    if header == PNG_SIGNATURE_HEAD:
        tail = reader.read_u32(image_offset + 4, "PNG signature")
        if tail != PNG_SIGNATURE_TAIL:
            raise InvalidIconDataError(
                f"{reader.name}: PNGシグネチャが不正です (signature = 0x{tail:08X})"
            )
        return True

    raise InvalidIconDataError(
        f"{reader.name}: 画像ヘッダーはPNGまたはBITMAPINFOHEADERである必要があります "
        f"(header = 0x{header:08X}, offset = {image_offset})"
    )


@dataclass(frozen=True)
class IconDir:
    """ICOファイルのディレクトリ

    Attributes:
        reserved: 予約領域（0）
        type: リソース種別（1=アイコン）
        count: エントリ数
        entries: ディレクトリエントリのタプル（ファイル内の順序）
    """

    reserved: int
    type: int
    count: int
    entries: tuple[IconDirEntry, ...]

    @classmethod
    def parse(cls, reader: ByteReader) -> IconDir:
        """ICOファイル全体のディレクトリを解析する

        Args:
            reader: ICOバッファ

        Returns:
            解析されたディレクトリ

        Raises:
            InvalidIconError: ICOファイルとして不正な場合
            InvalidIconDataError: いずれかのエントリの画像データが不正な場合
        """
        name = reader.name
        if len(reader) < MIN_ICON_FILE_SIZE:
            raise InvalidIconError(
                f"{name}: 不正なアイコンファイルです "
                f"(size = {len(reader)}, minimum = {MIN_ICON_FILE_SIZE})"
            )

        reserved = reader.read_u16(0, "reserved")
        resource_type = reader.read_u16(2, "type")
        count = reader.read_u16(4, "count")

        if reserved != 0 or resource_type != ICON_RESOURCE_TYPE or count == 0:
            raise InvalidIconError(
                f"{name}: 不正なアイコンファイルです "
                f"(reserved = {reserved}, type = {resource_type}, count = {count})"
            )

        table_end = ICONDIR_SIZE + count * ICONDIRENTRY_SIZE
        if table_end > len(reader):
            raise InvalidIconError(
                f"{name}: ディレクトリがファイルサイズを超えています "
                f"(count = {count}, size = {len(reader)})"
            )

        logger.debug("%s: %d個のエントリを解析します", name, count)

        entries = tuple(
            IconDirEntry.parse(reader, ICONDIR_SIZE + index * ICONDIRENTRY_SIZE)
            for index in range(count)
        )

        return cls(reserved=reserved, type=resource_type, count=count, entries=entries)

    def describe(self) -> str:
        """ディレクトリ全体の内容を複数行の文字列で返す"""
        lines = [
            f"reserved = {self.reserved}",
            f"type     = {self.type}",
            f"count    = {self.count}",
            "",
            "IconDirEntries:",
            "--------------",
        ]
        for index, entry in enumerate(self.entries):
            if index > 0:
                lines.append("")
            lines.append(f"Icon {index}:")
            lines.append(entry.describe())
        return "\n".join(lines)
