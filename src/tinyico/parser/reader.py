"""バイト列読み取りモジュール

ICOファイル全体を保持するバイト列に対して、任意オフセットから
リトルエンディアンの整数を読み取る機能を提供する。
解析済みの各構造体はこのバッファへのオフセットのみを保持する。
"""

from __future__ import annotations

from tinyico.parser.errors import IconBoundsError


class ByteReader:
    """ICOバッファ読み取りクラス

    不変のバイト列と表示名（エラーメッセージ用）を保持し、
    境界チェック付きで整数を読み取る。範囲外アクセスは
    IconBoundsErrorとして報告され、切り詰めや折り返しは行わない。

    使用例:
        >>> reader = ByteReader(b"\\x00\\x00\\x01\\x00", "sample.ico")
        >>> reader.read_u16(2)
        1
    """

    def __init__(self, data: bytes, name: str = "<memory>") -> None:
        """ByteReaderを初期化する

        Args:
            data: ICOファイル全体のバイト列
            name: 診断メッセージに使用する表示名
        """
        self._data = bytes(data)
        self._name = name

    @property
    def data(self) -> bytes:
        """保持しているバイト列を返す"""
        return self._data

    @property
    def name(self) -> str:
        """表示名を返す"""
        return self._name

    def __len__(self) -> int:
        return len(self._data)

    def require(self, offset: int, size: int, what: str = "data") -> None:
        """指定範囲がバッファ内に収まることを検証する

        Args:
            offset: 開始オフセット
            size: 必要なバイト数
            what: エラーメッセージに含めるフィールド名

        Raises:
            IconBoundsError: 範囲がバッファ外にはみ出す場合
        """
        if offset < 0 or size < 0 or offset + size > len(self._data):
            raise IconBoundsError(
                f"{self._name}: バッファ範囲外の読み取りです "
                f"({what}: offset = {offset}, size = {size}, buffer = {len(self._data)})"
            )

    def read_u8(self, offset: int, what: str = "u8") -> int:
        """符号なし8ビット整数を読み取る"""
        self.require(offset, 1, what)
        return self._data[offset]

    def read_u16(self, offset: int, what: str = "u16") -> int:
        """リトルエンディアンの符号なし16ビット整数を読み取る"""
        self.require(offset, 2, what)
        return int.from_bytes(self._data[offset : offset + 2], "little")

    def read_u32(self, offset: int, what: str = "u32") -> int:
        """リトルエンディアンの符号なし32ビット整数を読み取る"""
        self.require(offset, 4, what)
        return int.from_bytes(self._data[offset : offset + 4], "little")

    def read_i32(self, offset: int, what: str = "i32") -> int:
        """リトルエンディアンの符号付き32ビット整数を読み取る"""
        self.require(offset, 4, what)
        return int.from_bytes(self._data[offset : offset + 4], "little", signed=True)

    def slice(self, offset: int, size: int, what: str = "data") -> bytes:
        """指定範囲のバイト列を切り出す

        Args:
            offset: 開始オフセット
            size: バイト数
            what: エラーメッセージに含めるフィールド名

        Returns:
            切り出したバイト列

        Raises:
            IconBoundsError: 範囲がバッファ外にはみ出す場合
        """
        self.require(offset, size, what)
        return self._data[offset : offset + size]
