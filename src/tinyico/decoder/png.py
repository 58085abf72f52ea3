"""PNGエントリデコーダーモジュール

ICOエントリに埋め込まれたPNGデータをPillowでデコードし、
DIBと同じ32ビットARGBのピクセル配列に変換する。
PNGの内容検証はPillowに委ねる。
"""

from __future__ import annotations

import io
import warnings
from dataclasses import dataclass
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from tinyico.parser.errors import InvalidIconDataError
from tinyico.parser.reader import ByteReader


@dataclass(frozen=True)
class DecodedPixels:
    """外部コーデックがデコードした画像

    Attributes:
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        pixels: width * height 要素のARGB配列
    """

    width: int
    height: int
    pixels: list[int]


class ImageCodecProtocol(Protocol):
    """圧縮画像コーデックのインターフェース

    埋め込み画像のバイト列をデコードし、サイズとピクセル配列を返す。
    """

    def decode(self, reader: ByteReader, offset: int, size: int) -> DecodedPixels:
        """圧縮画像をデコードする

        Args:
            reader: ICOバッファ
            offset: 画像データの開始オフセット
            size: 画像データのバイト数

        Returns:
            デコードされた画像

        Raises:
            InvalidIconDataError: デコードに失敗した場合
        """
        ...


class PngDecoder:
    """Pillowを使用したPNGデコーダー"""

    def decode(self, reader: ByteReader, offset: int, size: int) -> DecodedPixels:
        """埋め込みPNGをデコードする

        Args:
            reader: ICOバッファ
            offset: PNGデータの開始オフセット
            size: PNGデータのバイト数

        Returns:
            デコードされた画像

        Raises:
            InvalidIconDataError: Pillowがデコードできない場合、
                                  または宣言された画像サイズが上限を超える場合
            IconBoundsError: PNGデータがバッファ外にはみ出す場合
        """
        payload = reader.slice(offset, size, "PNG data")

        try:
            with warnings.catch_warnings():
                # 宣言サイズが上限を超えるPNGは展開前に拒否する
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(payload)) as img:
                    rgba = img.convert("RGBA")
                    width, height = rgba.size
                    raw = rgba.tobytes()
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            raise InvalidIconDataError(
                f"{reader.name}: PNGの画像サイズが大きすぎます (offset = {offset}): {e}"
            ) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise InvalidIconDataError(
                f"{reader.name}: PNGデータのデコードに失敗しました (offset = {offset}): {e}"
            ) from e

        pixels = [
            (raw[i + 3] << 24) | (raw[i] << 16) | (raw[i + 1] << 8) | raw[i + 2]
            for i in range(0, len(raw), 4)
        ]
        return DecodedPixels(width=width, height=height, pixels=pixels)
