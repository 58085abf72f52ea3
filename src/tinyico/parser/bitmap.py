"""DIBヘッダー解析モジュール

ICOエントリに格納された非圧縮ビットマップ（DIB）のヘッダーを解析し、
パレット・XORマスク・ANDマスクの各オフセットを算出する。

DIBの構造:
- BITMAPINFOHEADER (40バイト)
- パレット (4バイト x colorCount、1/4/8bppのみ)
- XORマスク (stride x height、下の行から上の行の順)
- ANDマスク (1bpp、32bpp以外のみ)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tinyico.parser.errors import InvalidIconDataError
from tinyico.parser.reader import ByteReader

logger = logging.getLogger(__name__)

BITMAPINFOHEADER_SIZE = 40
"""BITMAPINFOHEADER構造体のサイズ（バイト）"""

BI_RGB = 0
"""非圧縮DIBを表すcompression値"""

SUPPORTED_BIT_COUNTS = (1, 4, 8, 24, 32)
"""対応するピクセルあたりのビット数"""


def dword_pad(bits: int) -> int:
    """ビット数をDWORD境界に切り上げたバイト数を返す

    Args:
        bits: 1行あたりのビット数

    Returns:
        4バイト境界に揃えた1行あたりのバイト数
    """
    return ((bits + 31) & ~0x1F) >> 3


def byte_pad(bits: int) -> int:
    """ビット数をバイト境界に切り上げたバイト数を返す"""
    return (bits + 7) >> 3


@dataclass(frozen=True)
class BitmapInfoHeader:
    """BITMAPINFOHEADER構造体

    Attributes:
        size: ヘッダーサイズ（40）
        width: 画像の幅（ピクセル）
        height: 論理的な画像の高さ。格納値はXOR+ANDの合計のため半分にしている
        planes: カラープレーン数（未使用）
        bit_count: ピクセルあたりのビット数（1, 4, 8, 24, 32）
        compression: 圧縮形式（BI_RGBのみ対応）
        image_size: 画像データサイズ（バイト）
        x_pels_per_meter: 水平解像度（未使用）
        y_pels_per_meter: 垂直解像度（未使用）
        clr_used: 使用色数（未使用）
        clr_important: 重要色数（未使用）
        color_count: 色数。24/32bppは2^24として扱う
        stride: パディングを含む1行のバイト数。32bppでは0
    """

    size: int
    width: int
    height: int
    planes: int
    bit_count: int
    compression: int
    image_size: int
    x_pels_per_meter: int
    y_pels_per_meter: int
    clr_used: int
    clr_important: int
    color_count: int
    stride: int

    @classmethod
    def parse(cls, reader: ByteReader, offset: int) -> BitmapInfoHeader:
        """指定オフセットのBITMAPINFOHEADERを解析する

        Args:
            reader: ICOバッファ
            offset: ヘッダーの開始オフセット

        Returns:
            解析されたヘッダー

        Raises:
            InvalidIconDataError: bitCountが不正、圧縮形式が未対応、
                                  または画像サイズが不正な場合
            IconBoundsError: ヘッダーがバッファ外にはみ出す場合
        """
        name = reader.name
        reader.require(offset, BITMAPINFOHEADER_SIZE, "BITMAPINFOHEADER")

        width = reader.read_i32(offset + 4, "width")
        stored_height = reader.read_i32(offset + 8, "height")
        bit_count = reader.read_u16(offset + 14, "bitCount")
        compression = reader.read_u32(offset + 16, "compression")

        # 格納値はXORマスクとANDマスクの高さの合計
        height = stored_height >> 1

        if width <= 0 or height <= 0:
            raise InvalidIconDataError(
                f"{name}: 画像サイズが不正です (width = {width}, height = {stored_height})"
            )
        if compression != BI_RGB:
            raise InvalidIconDataError(
                f"{name}: 未対応の圧縮形式です (compression = {compression})"
            )

        return cls(
            size=reader.read_u32(offset, "size"),
            width=width,
            height=height,
            planes=reader.read_u16(offset + 12, "planes"),
            bit_count=bit_count,
            compression=compression,
            image_size=reader.read_u32(offset + 20, "imageSize"),
            x_pels_per_meter=reader.read_i32(offset + 24, "xPelsPerMeter"),
            y_pels_per_meter=reader.read_i32(offset + 28, "yPelsPerMeter"),
            clr_used=reader.read_u32(offset + 32, "clrUsed"),
            clr_important=reader.read_u32(offset + 36, "clrImportant"),
            color_count=_color_count(name, bit_count),
            stride=_stride(name, bit_count, width),
        )

    @property
    def is_true_color(self) -> bool:
        """パレットを持たないトゥルーカラー形式かどうか"""
        return self.bit_count in (24, 32)

    def describe(self) -> str:
        """ヘッダー内容を複数行の文字列で返す"""
        rows = [
            ("size", self.size),
            ("width", self.width),
            ("height", self.height),
            ("planes", self.planes),
            ("bitCount", self.bit_count),
            ("colorCount", self.color_count),
            ("compression", self.compression),
            ("imageSize", self.image_size),
            ("xPelsPerMeter", self.x_pels_per_meter),
            ("yPelsPerMeter", self.y_pels_per_meter),
            ("clrUsed", self.clr_used),
            ("clrImportant", self.clr_important),
        ]
        return "\n".join(f"{key:<13} = {value}" for key, value in rows)


def _color_count(name: str, bit_count: int) -> int:
    """bitCountから色数を求める（32bppはトゥルーカラー扱い）"""
    bits = 24 if bit_count == 32 else bit_count
    if bits == 0:
        raise InvalidIconDataError(
            f"{name}: 画像ヘッダーのデータが不正です (bitCount = {bit_count})"
        )
    if bit_count not in SUPPORTED_BIT_COUNTS:
        raise InvalidIconDataError(f"{name}: 未対応のbitCountです (bitCount = {bit_count})")
    return 1 << bits


def _stride(name: str, bit_count: int, width: int) -> int:
    """パディング込みの1行のバイト数を求める"""
    match bit_count:
        case 1 | 4 | 8 | 24:
            return dword_pad(width * bit_count)
        case 32:
            # 各ピクセルが4バイトのため常に整列済み
            return 0
        case _:
            raise InvalidIconDataError(
                f"{name}: 未対応のbitCountです (bitCount = {bit_count})"
            )


@dataclass(frozen=True)
class IconImage:
    """DIB形式のアイコン画像

    BITMAPINFOHEADERと、そこから算出した各データ領域のオフセット、
    およびパレット（1/4/8bppのみ）を保持する。

    Attributes:
        header: BITMAPINFOHEADER
        palette_offset: パレット（カラーマップ）の開始オフセット
        xor_offset: XORマスク（カラーデータ）の開始オフセット
        and_offset: ANDマスクの開始オフセット。32bppでは0（未使用）
        palette: 0x00RRGGBB形式の色のタプル。トゥルーカラーではNone
    """

    header: BitmapInfoHeader
    palette_offset: int
    xor_offset: int
    and_offset: int
    palette: tuple[int, ...] | None

    @classmethod
    def parse(cls, reader: ByteReader, offset: int) -> IconImage:
        """指定オフセットのDIB画像を解析する

        Args:
            reader: ICOバッファ
            offset: BITMAPINFOHEADERの開始オフセット

        Returns:
            解析されたDIB画像情報

        Raises:
            InvalidIconDataError: ヘッダーの値が不正な場合
            IconBoundsError: パレットがバッファ外にはみ出す場合
        """
        header = BitmapInfoHeader.parse(reader, offset)
        palette_offset = offset + BITMAPINFOHEADER_SIZE

        if header.is_true_color:
            xor_offset = palette_offset
            palette = None
        else:
            xor_offset = palette_offset + (header.color_count << 2)
            palette = _read_palette(reader, palette_offset, header.color_count)

        match header.bit_count:
            case 1 | 4 | 8:
                and_offset = xor_offset + header.stride * header.height
            case 24:
                and_offset = palette_offset + header.stride * header.height
            case _:
                # 32bppはアルファ値をピクセルデータに持つためANDマスク不要
                and_offset = 0

        logger.debug(
            "%s: DIB %dx%d %dbpp (xor=%d, and=%d)",
            reader.name,
            header.width,
            header.height,
            header.bit_count,
            xor_offset,
            and_offset,
        )

        return cls(
            header=header,
            palette_offset=palette_offset,
            xor_offset=xor_offset,
            and_offset=and_offset,
            palette=palette,
        )

    @property
    def mask_stride(self) -> int:
        """ANDマスク1行のバイト数（DWORD境界）"""
        return dword_pad(self.header.width)

    def describe(self) -> str:
        """画像情報を複数行の文字列で返す"""
        lines = [
            self.header.describe(),
            "",
            f"colorMapOffset = {self.palette_offset}",
            f"xorMaskOffset  = {self.xor_offset}",
            f"andMaskOffset  = {self.and_offset}",
        ]
        return "\n".join(lines)


def _read_palette(reader: ByteReader, offset: int, color_count: int) -> tuple[int, ...]:
    """B,G,R,予約 の4バイト単位でパレットを読み取る"""
    raw = reader.slice(offset, color_count << 2, "palette")
    return tuple(
        (raw[i + 2] << 16) | (raw[i + 1] << 8) | raw[i] for i in range(0, len(raw), 4)
    )
