"""アイコンセットモジュール

ICOファイル全体をデコードし、含まれる各画像をIconとして提供する。
ディレクトリの解析からピクセル展開までを順に実行し、
デコード後のアイコンに対する検索・絞り込み・並べ替え機能も提供する。
"""

from __future__ import annotations

import io
import logging
import struct
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from PIL import Image

from tinyico.decoder import ImageCodecProtocol, PixelDecoder, PngDecoder, layout_for
from tinyico.parser import ByteReader, IconDir
from tinyico.source import acquire

if TYPE_CHECKING:
    from tinyico.config import TinyIcoConfig

logger = logging.getLogger(__name__)

IconPredicate = Callable[["Icon"], bool]
"""アイコンの絞り込み条件"""


@dataclass(frozen=True)
class Icon:
    """デコード済みのアイコン画像

    Attributes:
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        bit_count: ピクセルあたりのビット数（1, 4, 8, 24, 32）
        is_png: PNGとして格納されていた場合True
        pixels: 0xAARRGGBB形式のピクセル配列（上の行から順）
    """

    width: int
    height: int
    bit_count: int
    is_png: bool
    pixels: tuple[int, ...] = field(repr=False)

    @property
    def area(self) -> int:
        """画像の面積（width * height）"""
        return self.width * self.height

    @property
    def is_compressed(self) -> bool:
        """圧縮形式（PNG）で格納されていたかどうか"""
        return self.is_png

    def pixel(self, x: int, y: int) -> int:
        """指定座標のARGB値を返す"""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"座標が画像の範囲外です: ({x}, {y})")
        return self.pixels[y * self.width + x]

    def to_image(self) -> Image.Image:
        """RGBAモードのPIL.Imageを作成する

        Returns:
            ピクセル配列から作成したPIL.Imageオブジェクト
        """
        raw = struct.pack(f"<{len(self.pixels)}I", *self.pixels)
        # リトルエンディアンのARGBはメモリ上B,G,R,Aの順
        return Image.frombytes("RGBA", (self.width, self.height), raw, "raw", "BGRA")

    def to_png_bytes(self) -> bytes:
        """PNG形式のバイト列に変換する"""
        buffer = io.BytesIO()
        with self.to_image() as img:
            img.save(buffer, "PNG")
        return buffer.getvalue()


class IconSort(Enum):
    """アイコンの並べ替え順

    値はCLIや設定ファイルで使用する表記。
    """

    NONE = "none"
    BY_RESOLUTION_ASCENDING = "resolution"
    BY_RESOLUTION_DESCENDING = "resolution-desc"
    BY_BPP_ASCENDING = "bpp"
    BY_BPP_DESCENDING = "bpp-desc"
    BY_COMPRESSION_ASCENDING = "compression"
    BY_COMPRESSION_DESCENDING = "compression-desc"

    @classmethod
    def from_name(cls, name: str) -> IconSort:
        """表記または列挙子名からIconSortを求める

        Args:
            name: "resolution-desc" や "BY_BPP_ASCENDING" などの表記

        Returns:
            対応するIconSort

        Raises:
            ValueError: 該当する並べ替え順がない場合
        """
        normalized = name.strip().lower().replace("_", "-")
        for member in cls:
            if normalized in (member.value, member.name.lower().replace("_", "-")):
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"不明な並べ替え順です: {name} (選択肢: {choices})")

    @property
    def descending(self) -> bool:
        """降順かどうか"""
        return self.value.endswith("-desc")

    def key(self) -> Callable[[Icon], int] | None:
        """並べ替えキー関数を返す（NONEの場合はNone）"""
        match self:
            case IconSort.BY_RESOLUTION_ASCENDING | IconSort.BY_RESOLUTION_DESCENDING:
                return lambda icon: icon.area
            case IconSort.BY_BPP_ASCENDING | IconSort.BY_BPP_DESCENDING:
                return lambda icon: icon.bit_count
            case IconSort.BY_COMPRESSION_ASCENDING | IconSort.BY_COMPRESSION_DESCENDING:
                return lambda icon: int(icon.is_png)
            case _:
                return None


class IconSet:
    """デコード済みアイコンの集合

    ICOファイル内の全画像をファイル内の順序で保持する。
    生成後は変更されず、並べ替えは新しいIconSetを返す。

    使用例:
        >>> icons = IconSet.decode(Path("app.ico").read_bytes(), "app.ico")
        >>> icon = icons.find(lambda i: i.width == 48 and i.height == 48)
        >>> largest = icons.sorted(IconSort.BY_RESOLUTION_DESCENDING)[0]
    """

    def __init__(self, name: str, directory: IconDir, icons: tuple[Icon, ...]) -> None:
        """IconSetを初期化する

        通常はdecode()またはopen()を使用する。

        Args:
            name: アイコンファイルの表示名
            directory: 解析済みのディレクトリ
            icons: デコード済みアイコン
        """
        self._name = name
        self._directory = directory
        self._icons = icons

    @classmethod
    def decode(
        cls,
        data: bytes,
        name: str = "<memory>",
        png_decoder: ImageCodecProtocol | None = None,
    ) -> IconSet:
        """ICOファイルのバイト列をデコードする

        いずれかのエントリでエラーが発生した時点で処理を中断し、
        部分的な結果は返さない。

        Args:
            data: ICOファイル全体のバイト列
            name: エラーメッセージに使用する表示名
            png_decoder: PNGエントリのデコーダー（テスト用の依存性注入）

        Returns:
            デコードされたアイコンの集合

        Raises:
            InvalidIconError: ICOファイルとして不正な場合
            InvalidIconDataError: 画像データが不正な場合
        """
        reader = ByteReader(data, name)
        directory = IconDir.parse(reader)
        pixel_decoder = PixelDecoder()
        codec = png_decoder or PngDecoder()

        icons: list[Icon] = []
        for index, entry in enumerate(directory.entries):
            if entry.image is not None:
                header = entry.image.header
                pixels = pixel_decoder.decode(reader, layout_for(entry.image, name))
                icon = Icon(
                    width=header.width,
                    height=header.height,
                    bit_count=header.bit_count,
                    is_png=False,
                    pixels=tuple(pixels),
                )
            else:
                decoded = codec.decode(reader, entry.image_offset, entry.bytes_in_res)
                icon = Icon(
                    width=decoded.width,
                    height=decoded.height,
                    bit_count=entry.bit_count,
                    is_png=True,
                    pixels=tuple(decoded.pixels),
                )
            logger.debug(
                "%s: icon %d -> %dx%d %dbpp%s",
                name,
                index,
                icon.width,
                icon.height,
                icon.bit_count,
                " (PNG)" if icon.is_png else "",
            )
            icons.append(icon)

        return cls(name, directory, tuple(icons))

    @classmethod
    def open(cls, source: str, config: TinyIcoConfig | None = None) -> IconSet:
        """ファイルパス・URL・実行ファイルからアイコンを読み込んでデコードする

        Args:
            source: ICOファイルのパス、Webサイトのアドレス、またはEXE/DLLのパス
            config: 取得設定（Noneの場合はデフォルト設定）

        Returns:
            デコードされたアイコンの集合

        Raises:
            IconSourceError: バイト列の取得に失敗した場合
            InvalidIconError: ICOファイルとして不正な場合
            InvalidIconDataError: 画像データが不正な場合
        """
        icon_data = acquire(source, config)
        return cls.decode(icon_data.data, icon_data.name)

    @property
    def name(self) -> str:
        """アイコンファイルの表示名"""
        return self._name

    @property
    def directory(self) -> IconDir:
        """解析済みのディレクトリ"""
        return self._directory

    @property
    def count(self) -> int:
        """含まれる画像の数"""
        return len(self._icons)

    @property
    def icons(self) -> tuple[Icon, ...]:
        """全アイコン（現在の並び順）"""
        return self._icons

    def __len__(self) -> int:
        return len(self._icons)

    def __iter__(self) -> Iterator[Icon]:
        return iter(self._icons)

    def __getitem__(self, index: int) -> Icon:
        return self._icons[index]

    def get_icon(self, index: int) -> Icon:
        """指定位置のアイコンを返す

        Raises:
            IndexError: 範囲外の位置を指定した場合
        """
        if index < 0 or index >= len(self._icons):
            raise IndexError(str(index))
        return self._icons[index]

    @property
    def last(self) -> Icon:
        """最後のアイコン"""
        return self._icons[-1]

    def find(self, predicate: IconPredicate) -> Icon | None:
        """条件に一致する最初のアイコンを返す（なければNone）"""
        return next((icon for icon in self._icons if predicate(icon)), None)

    def filter(self, predicate: IconPredicate) -> list[Icon]:
        """条件に一致するアイコンをすべて返す"""
        return [icon for icon in self._icons if predicate(icon)]

    def sorted(self, primary: IconSort, secondary: IconSort = IconSort.NONE) -> IconSet:
        """並べ替えたIconSetを返す

        第1キーで並べ、同順位のものを第2キーで並べる。
        安定ソートのため、両キーで同順位のものはもとの順序を保つ。

        Args:
            primary: 第1キー
            secondary: 第2キー

        Returns:
            並べ替えた新しいIconSet
        """
        icons = list(self._icons)
        # 安定ソートを第2キー、第1キーの順に適用する
        for sort_type in (secondary, primary):
            key = sort_type.key()
            if key is not None:
                icons.sort(key=key, reverse=sort_type.descending)
        return IconSet(self._name, self._directory, tuple(icons))

    def images(self, predicate: IconPredicate | None = None) -> list[Image.Image]:
        """条件に一致するアイコンをPIL.Imageとして返す"""
        icons = self._icons if predicate is None else self.filter(predicate)
        return [icon.to_image() for icon in icons]

    def png_bytes(self, index: int) -> bytes:
        """指定位置のアイコンをPNGバイト列として返す"""
        return self.get_icon(index).to_png_bytes()

    def extract_png(self, predicate: IconPredicate | None = None) -> list[bytes]:
        """条件に一致するアイコンをPNGバイト列として返す"""
        icons = self._icons if predicate is None else self.filter(predicate)
        return [icon.to_png_bytes() for icon in icons]

    def describe(self) -> str:
        """ディレクトリ構造を複数行の文字列で返す"""
        return f"{self._name}\n\nIconDir:\n-------\n{self._directory.describe()}"
