"""DIBピクセルデコーダーのテスト"""

import dataclasses
from collections.abc import Callable

import pytest

from tinyico.decoder.pixels import (
    Indexed1,
    Indexed4,
    Indexed8,
    PixelDecoder,
    TrueColor24,
    TrueColorAlpha32,
    layout_for,
)
from tinyico.parser.bitmap import IconImage
from tinyico.parser.errors import IconBoundsError, InvalidIconDataError
from tinyico.parser.reader import ByteReader


def _decode(data: bytes) -> list[int]:
    reader = ByteReader(data)
    image = IconImage.parse(reader, 0)
    return PixelDecoder().decode(reader, layout_for(image))


class TestLayoutFor:
    """layout_for()のテスト"""

    @pytest.mark.parametrize(
        "bit_count, expected_type",
        [
            pytest.param(1, Indexed1, id="正常系: 1bpp"),
            pytest.param(4, Indexed4, id="正常系: 4bpp"),
            pytest.param(8, Indexed8, id="正常系: 8bpp"),
            pytest.param(24, TrueColor24, id="正常系: 24bpp"),
            pytest.param(32, TrueColorAlpha32, id="正常系: 32bpp"),
        ],
    )
    def test_layout_type(
        self, make_dib: Callable[..., bytes], bit_count: int, expected_type: type
    ) -> None:
        """ビット深度に応じた配置が選択される"""
        image = IconImage.parse(ByteReader(make_dib(4, 4, bit_count)), 0)

        layout = layout_for(image)

        assert type(layout) is expected_type
        assert layout.width == 4
        assert layout.height == 4
        assert layout.pixel_offset == image.xor_offset

    def test_masked_layout_offsets(self, make_dib: Callable[..., bytes]) -> None:
        """ANDマスクのオフセットとstrideが引き継がれる"""
        image = IconImage.parse(ByteReader(make_dib(9, 2, 24)), 0)

        layout = layout_for(image)

        assert isinstance(layout, TrueColor24)
        assert layout.mask_offset == image.and_offset
        assert layout.mask_stride == 4

    def test_unsupported_bit_count(self, make_dib: Callable[..., bytes]) -> None:
        """未対応のbitCountはInvalidIconDataErrorになる"""
        image = IconImage.parse(ByteReader(make_dib(4, 4, 32)), 0)
        header = dataclasses.replace(image.header, bit_count=16)
        broken = dataclasses.replace(image, header=header)

        with pytest.raises(InvalidIconDataError, match="bitCount = 16"):
            layout_for(broken, "odd.ico")


class TestPixelDecoder:
    """PixelDecoder.decode()のテスト"""

    def test_1bit_rows_are_flipped(self, make_dib: Callable[..., bytes]) -> None:
        """格納順（下から上）を反転して上の行から出力する"""
        data = make_dib(
            2,
            2,
            1,
            palette=[(0, 0, 0), (255, 255, 255)],
            xor_rows=[b"\x40", b"\x80"],
        )

        pixels = _decode(data)

        assert pixels == [0xFFFFFFFF, 0xFF000000, 0xFF000000, 0xFFFFFFFF]

    def test_1bit_wide_row(self, make_dib: Callable[..., bytes]) -> None:
        """8ピクセルを超える行では次のバイトを参照する"""
        data = make_dib(
            10,
            1,
            1,
            palette=[(0, 0, 0), (0, 0, 255)],
            xor_rows=[b"\x00\x40"],
        )

        pixels = _decode(data)

        assert pixels[9] == 0xFF0000FF
        assert all(pixel == 0xFF000000 for pixel in pixels[:9])

    def test_4bit_nibbles(self, make_dib: Callable[..., bytes]) -> None:
        """上位ニブルが偶数列、下位ニブルが奇数列になる"""
        data = make_dib(
            3,
            1,
            4,
            palette=[(0, 0, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255)],
            xor_rows=[b"\x12\x30"],
        )

        pixels = _decode(data)

        assert pixels == [0xFFFF0000, 0xFF00FF00, 0xFF0000FF]

    def test_8bit_palette_lookup(self, make_dib: Callable[..., bytes]) -> None:
        """1バイトのパレット番号で色を参照する"""
        palette = [(0, 0, 0)] * 5 + [(1, 2, 3)]
        data = make_dib(2, 2, 8, palette=palette, xor_rows=[b"\x05\x00", b"\x00\x05"])

        pixels = _decode(data)

        assert pixels == [0xFF000000, 0xFF010203, 0xFF010203, 0xFF000000]

    def test_24bit_with_and_mask(self, make_dib: Callable[..., bytes]) -> None:
        """24bppはB,G,R順に読み、ANDマスクのビット1は透明になる"""
        data = make_dib(
            2,
            1,
            24,
            xor_rows=[b"\x01\x02\x03\x04\x05\x06"],
            and_rows=[b"\x40"],
        )

        pixels = _decode(data)

        assert pixels == [0xFF030201, 0x00060504]

    def test_32bit_alpha_passthrough(self, make_dib: Callable[..., bytes]) -> None:
        """32bppのアルファ値はそのまま使用される"""
        data = make_dib(2, 1, 32, xor_rows=[b"\x01\x02\x03\x80\x04\x05\x06\x00"])

        pixels = _decode(data)

        assert pixels == [0x80030201, 0x00060504]

    def test_and_mask_all_transparent(self, make_dib: Callable[..., bytes]) -> None:
        """ANDマスクがすべて1の場合はすべて透明になる"""
        data = make_dib(
            9,
            1,
            1,
            palette=[(0, 0, 0), (255, 255, 255)],
            xor_rows=[b"\xff\x80"],
            and_rows=[b"\xff\x80"],
        )

        pixels = _decode(data)

        assert pixels == [0x00FFFFFF] * 9

    def test_and_mask_uses_dword_stride(self, make_dib: Callable[..., bytes]) -> None:
        """ANDマスクの行はDWORD境界で並ぶ"""
        data = make_dib(
            2,
            2,
            24,
            # 下の行: 左が透明、上の行: 右が透明
            and_rows=[b"\x80\x00\x00\x00", b"\x40"],
        )

        pixels = _decode(data)

        assert [pixel >> 24 for pixel in pixels] == [0xFF, 0x00, 0x00, 0xFF]

    @pytest.mark.parametrize(
        "cut",
        [
            pytest.param(60, id="異常系: ANDマスクが途中で切れる"),
            pytest.param(50, id="異常系: XORマスクが途中で切れる"),
        ],
    )
    def test_truncated_masks(self, make_dib: Callable[..., bytes], cut: int) -> None:
        """マスクがバッファ外にはみ出す場合はIconBoundsErrorになる"""
        data = make_dib(2, 2, 1)[:cut]

        with pytest.raises(IconBoundsError):
            _decode(data)

    def test_truncated_32bit(self, make_dib: Callable[..., bytes]) -> None:
        """32bppのピクセルデータが足りない場合はIconBoundsErrorになる"""
        data = make_dib(2, 2, 32)[:-1]

        with pytest.raises(IconBoundsError, match="XOR mask"):
            _decode(data)

    def test_pixel_count(self, make_dib: Callable[..., bytes]) -> None:
        """出力はwidth * height要素になる"""
        assert len(_decode(make_dib(7, 5, 4))) == 35
