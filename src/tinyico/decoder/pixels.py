"""DIBピクセルデコーダーモジュール

DIB形式のXORマスク（カラーデータ）をビット深度ごとに展開し、
32ビットARGBのピクセル配列に変換する。32bpp以外ではANDマスクを
適用して透過情報を付与する。

ピクセル配列の形式:
- 要素は0xAARRGGBB形式の整数
- 行優先・上から下、左から右の順（ファイル上は下から上の順で格納）
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tinyico.parser.bitmap import IconImage, byte_pad
from tinyico.parser.errors import InvalidIconDataError
from tinyico.parser.reader import ByteReader

logger = logging.getLogger(__name__)

OPAQUE = 0xFF000000
"""完全不透明のアルファ値"""


@dataclass(frozen=True)
class _Layout:
    """ピクセルデータ配置の共通部分

    Attributes:
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル、論理値）
        stride: XORマスク1行のバイト数
        pixel_offset: XORマスクの開始オフセット
    """

    width: int
    height: int
    stride: int
    pixel_offset: int


@dataclass(frozen=True)
class _MaskedLayout(_Layout):
    """ANDマスクを伴う配置

    Attributes:
        mask_offset: ANDマスクの開始オフセット
        mask_stride: ANDマスク1行のバイト数
    """

    mask_offset: int
    mask_stride: int


@dataclass(frozen=True)
class _IndexedLayout(_MaskedLayout):
    """パレット参照形式の配置

    Attributes:
        palette: 0x00RRGGBB形式の色のタプル
    """

    palette: tuple[int, ...]


@dataclass(frozen=True)
class Indexed1(_IndexedLayout):
    """1bpp（2色）"""


@dataclass(frozen=True)
class Indexed4(_IndexedLayout):
    """4bpp（16色）"""


@dataclass(frozen=True)
class Indexed8(_IndexedLayout):
    """8bpp（256色）"""


@dataclass(frozen=True)
class TrueColor24(_MaskedLayout):
    """24bpp（B,G,R）"""


@dataclass(frozen=True)
class TrueColorAlpha32(_Layout):
    """32bpp（B,G,R,A）。ANDマスクなし"""

    @property
    def row_bytes(self) -> int:
        """1行のバイト数"""
        return self.width << 2


PixelLayout = Indexed1 | Indexed4 | Indexed8 | TrueColor24 | TrueColorAlpha32


def layout_for(image: IconImage, name: str = "<memory>") -> PixelLayout:
    """DIB画像情報からピクセル配置を求める

    Args:
        image: 解析済みのDIB画像情報
        name: エラーメッセージに使用する表示名

    Returns:
        ビット深度に応じたピクセル配置

    Raises:
        InvalidIconDataError: 未対応のbitCountの場合
    """
    header = image.header
    common = {
        "width": header.width,
        "height": header.height,
        "stride": header.stride,
        "pixel_offset": image.xor_offset,
    }
    masked = {**common, "mask_offset": image.and_offset, "mask_stride": image.mask_stride}
    palette = image.palette or ()

    match header.bit_count:
        case 1:
            return Indexed1(**masked, palette=palette)
        case 4:
            return Indexed4(**masked, palette=palette)
        case 8:
            return Indexed8(**masked, palette=palette)
        case 24:
            return TrueColor24(**masked)
        case 32:
            return TrueColorAlpha32(**common)
        case _:
            raise InvalidIconDataError(
                f"{name}: 未対応のカラーフォーマットです "
                f"(bitCount = {header.bit_count}, colorCount = {header.color_count})"
            )


class PixelDecoder:
    """DIBピクセルデコーダー

    ピクセル配置に従ってXORマスクを展開し、必要に応じてANDマスクを適用する。
    出力バッファを確保する前に、読み取り範囲がバッファ内に収まることを検証する。

    使用例:
        >>> decoder = PixelDecoder()
        >>> pixels = decoder.decode(reader, layout_for(entry.image))
    """

    def decode(self, reader: ByteReader, layout: PixelLayout) -> list[int]:
        """ピクセル配列を生成する

        Args:
            reader: ICOバッファ
            layout: ピクセル配置

        Returns:
            width * height 要素のARGB配列（上の行から順）

        Raises:
            IconBoundsError: XORマスクまたはANDマスクがバッファ外にはみ出す場合
        """
        self._check_bounds(reader, layout)

        pixels = [0] * (layout.width * layout.height)
        data = reader.data

        match layout:
            case Indexed1():
                self._decode_1bit(data, layout, pixels)
            case Indexed4():
                self._decode_4bit(data, layout, pixels)
            case Indexed8():
                self._decode_8bit(data, layout, pixels)
            case TrueColor24():
                self._decode_24bit(data, layout, pixels)
            case TrueColorAlpha32():
                self._decode_32bit(data, layout, pixels)

        if isinstance(layout, _MaskedLayout):
            self._apply_and_mask(data, layout, pixels)

        return pixels

    def _check_bounds(self, reader: ByteReader, layout: PixelLayout) -> None:
        """XOR/ANDマスクの読み取り範囲を検証する"""
        width = layout.width
        last_row = layout.height - 1

        match layout:
            case Indexed1():
                row_bytes = byte_pad(width)
            case Indexed4():
                row_bytes = (width + 1) >> 1
            case Indexed8():
                row_bytes = width
            case TrueColor24():
                row_bytes = width * 3
            case TrueColorAlpha32():
                row_bytes = layout.row_bytes

        row_step = layout.row_bytes if isinstance(layout, TrueColorAlpha32) else layout.stride
        reader.require(layout.pixel_offset, row_step * last_row + row_bytes, "XOR mask")

        if isinstance(layout, _MaskedLayout):
            reader.require(
                layout.mask_offset,
                layout.mask_stride * last_row + byte_pad(width),
                "AND mask",
            )

    def _decode_1bit(self, data: bytes, layout: Indexed1, pixels: list[int]) -> None:
        """1bpp: 各ビット（MSBから）がパレット番号0/1を表す"""
        width, height, palette = layout.width, layout.height, layout.palette
        for y in range(height):
            src = layout.pixel_offset + layout.stride * y
            dst = width * (height - 1 - y)
            for x in range(width):
                bit = (data[src + (x >> 3)] >> (7 - (x & 7))) & 1
                pixels[dst + x] = palette[bit]

    def _decode_4bit(self, data: bytes, layout: Indexed4, pixels: list[int]) -> None:
        """4bpp: 上位ニブルが偶数列、下位ニブルが奇数列"""
        width, height, palette = layout.width, layout.height, layout.palette
        for y in range(height):
            src = layout.pixel_offset + layout.stride * y
            dst = width * (height - 1 - y)
            for x in range(width):
                value = data[src + (x >> 1)]
                index = value & 0x0F if x & 1 else value >> 4
                pixels[dst + x] = palette[index]

    def _decode_8bit(self, data: bytes, layout: Indexed8, pixels: list[int]) -> None:
        """8bpp: 1バイトが1ピクセルのパレット番号"""
        width, height, palette = layout.width, layout.height, layout.palette
        for y in range(height):
            src = layout.pixel_offset + layout.stride * y
            dst = width * (height - 1 - y)
            for x in range(width):
                pixels[dst + x] = palette[data[src + x]]

    def _decode_24bit(self, data: bytes, layout: TrueColor24, pixels: list[int]) -> None:
        """24bpp: B,G,R順の3バイト。アルファはANDマスクで決まる"""
        width, height = layout.width, layout.height
        for y in range(height):
            src = layout.pixel_offset + layout.stride * y
            dst = width * (height - 1 - y)
            for x in range(width):
                offset = src + x * 3
                blue, green, red = data[offset], data[offset + 1], data[offset + 2]
                pixels[dst + x] = (red << 16) | (green << 8) | blue

    def _decode_32bit(self, data: bytes, layout: TrueColorAlpha32, pixels: list[int]) -> None:
        """32bpp: B,G,R,A順の4バイト。アルファ値はそのまま使用する"""
        width, height = layout.width, layout.height
        row_bytes = layout.row_bytes
        for y in range(height):
            src = layout.pixel_offset + row_bytes * y
            dst = width * (height - 1 - y)
            for x in range(width):
                offset = src + (x << 2)
                blue, green, red, alpha = data[offset : offset + 4]
                pixels[dst + x] = (alpha << 24) | (red << 16) | (green << 8) | blue

    def _apply_and_mask(self, data: bytes, layout: _MaskedLayout, pixels: list[int]) -> None:
        """ANDマスクを適用する

        ビット0のピクセルを不透明にし、ビット1のピクセルは
        XOR展開時のアルファ値0（透明）のまま残す。
        行のパディング部分に当たる列は書き込まない。
        """
        width, height = layout.width, layout.height
        for y in range(height):
            src = layout.mask_offset + layout.mask_stride * y
            dst = width * (height - 1 - y)
            for x in range(width):
                if not (data[src + (x >> 3)] >> (7 - (x & 7))) & 1:
                    pixels[dst + x] |= OPAQUE
