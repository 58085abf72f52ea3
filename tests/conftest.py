"""テスト用フィクスチャ

ICOファイルのバイト列をメモリ上で組み立てるヘルパーを提供する。
"""

from __future__ import annotations

import io
import struct
from collections.abc import Callable, Sequence

import pytest
from PIL import Image


def _dword_pad(bits: int) -> int:
    return ((bits + 31) & ~0x1F) >> 3


def build_dib(
    width: int,
    height: int,
    bit_count: int,
    *,
    palette: Sequence[tuple[int, int, int]] | None = None,
    xor_rows: Sequence[bytes] | None = None,
    and_rows: Sequence[bytes] | None = None,
    compression: int = 0,
    stored_height: int | None = None,
) -> bytes:
    """DIB形式の画像データを生成する

    Args:
        width: 画像の幅
        height: 論理的な画像の高さ
        bit_count: ピクセルあたりのビット数
        palette: (R, G, B) のリスト。1/4/8bppで不足分は黒で埋める
        xor_rows: 格納順（下の行から）のXORマスク行。strideまで0で埋める
        and_rows: 格納順（下の行から）のANDマスク行。未指定の場合はすべて0
        compression: compressionフィールドの値
        stored_height: heightフィールドに格納する値（未指定の場合は height * 2）

    Returns:
        BITMAPINFOHEADERから始まるDIBデータ
    """
    header = struct.pack(
        "<IiiHHIIiiII",
        40,
        width,
        height * 2 if stored_height is None else stored_height,
        1,
        bit_count,
        compression,
        0,
        0,
        0,
        0,
        0,
    )

    body = b""
    if bit_count in (1, 4, 8):
        colors = list(palette or [])
        colors += [(0, 0, 0)] * ((1 << bit_count) - len(colors))
        body += b"".join(bytes((b, g, r, 0)) for r, g, b in colors)

    stride = width * 4 if bit_count == 32 else _dword_pad(width * bit_count)
    rows = list(xor_rows or [])
    rows += [b""] * (height - len(rows))
    body += b"".join(row.ljust(stride, b"\x00") for row in rows)

    if bit_count != 32:
        mask_stride = _dword_pad(width)
        masks = list(and_rows or [])
        masks += [b""] * (height - len(masks))
        body += b"".join(row.ljust(mask_stride, b"\x00") for row in masks)

    return header + body


def build_png(width: int, height: int, color: tuple[int, int, int, int]) -> bytes:
    """単色のPNGデータを生成する"""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, "PNG")
    return buffer.getvalue()


def build_ico(
    images: Sequence[tuple[bytes, int, int, int]],
    *,
    reserved: int = 0,
    resource_type: int = 1,
    count: int | None = None,
) -> bytes:
    """ICOファイルを生成する

    Args:
        images: (画像データ, 幅, 高さ, bitCount) のリスト
        reserved: ヘッダーのreservedフィールド
        resource_type: ヘッダーのtypeフィールド
        count: ヘッダーのcountフィールド（未指定の場合は画像数）

    Returns:
        ICOファイル全体のバイト列
    """
    header = struct.pack(
        "<HHH", reserved, resource_type, len(images) if count is None else count
    )
    offset = 6 + 16 * len(images)
    entries = b""
    data = b""
    for image, width, height, bit_count in images:
        entries += struct.pack(
            "<BBBBHHII",
            width & 0xFF,
            height & 0xFF,
            0,
            0,
            1,
            bit_count,
            len(image),
            offset + len(data),
        )
        data += image
    return header + entries + data


@pytest.fixture
def make_dib() -> Callable[..., bytes]:
    """DIB画像データ生成関数"""
    return build_dib


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """PNG画像データ生成関数"""
    return build_png


@pytest.fixture
def make_ico() -> Callable[..., bytes]:
    """ICOファイル生成関数"""
    return build_ico


@pytest.fixture
def mono_icon_bytes() -> bytes:
    """2x2の1bppアイコン

    パレットは [黒, 白]。表示上の上の行が 白,黒、下の行が 黒,白。
    ANDマスクはすべて0（不透明）。
    """
    dib = build_dib(
        2,
        2,
        1,
        palette=[(0, 0, 0), (255, 255, 255)],
        # 格納順は下の行から
        xor_rows=[b"\x40", b"\x80"],
    )
    return build_ico([(dib, 2, 2, 1)])
