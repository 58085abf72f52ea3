"""アイコン取得モジュール

デコード対象となるICOファイルのバイト列を取得する機能を提供する。
ローカルファイル、Webサイトのfavicon、Windows実行ファイルに
埋め込まれたアイコンの3種類の取得元に対応する。
"""

from __future__ import annotations

import asyncio
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
from icoextract import IconExtractor as IcoExtractor
from icoextract import IconExtractorError

from tinyico.config import TinyIcoConfig, get_default_config

URL_SCHEMES = ("https://", "http://", "ftp://")
"""URLとして扱うスキーム"""

EXECUTABLE_EXTENSIONS = (".exe", ".dll")
"""アイコンを抽出する実行ファイルの拡張子"""

FAVICON_NAME = "favicon.ico"
"""Webサイトから取得するアイコンのファイル名"""


class IconSourceError(Exception):
    """アイコンの取得に関する例外"""

    pass


@dataclass(frozen=True)
class IconData:
    """取得したICOファイル

    Attributes:
        data: ICOファイル全体のバイト列
        name: 診断メッセージに使用する表示名
    """

    data: bytes
    name: str


class IconLoaderProtocol(Protocol):
    """ローカルからのアイコン読み込みインターフェース"""

    def load(self, path: Path) -> IconData:
        """アイコンを読み込む

        Args:
            path: 読み込み元のパス

        Returns:
            取得したICOファイル
        """
        ...


def is_url(arg: str) -> bool:
    """引数がURLかどうかを判定する

    スキームのみを確認し、URLとしての妥当性は検証しない。

    Args:
        arg: 判定対象の文字列

    Returns:
        https/http/ftpで始まる場合True
    """
    return arg.lower().startswith(URL_SCHEMES)


class LocalIconLoader:
    """ローカルのICOファイルを読み込むクラス"""

    def load(self, path: Path) -> IconData:
        """ICOファイルを読み込む

        Args:
            path: ICOファイルのパス

        Returns:
            取得したICOファイル（表示名はファイル名）

        Raises:
            IconSourceError: ファイルが存在しない、または読み込めない場合
        """
        if not path.exists():
            raise IconSourceError(f"ファイルが見つかりません: {path}")
        if path.is_dir():
            raise IconSourceError(f"ファイルを指定してください: {path}")

        try:
            return IconData(data=path.read_bytes(), name=path.name)
        except OSError as e:
            raise IconSourceError(f"ファイルの読み込みに失敗しました: {path}: {e}") from e


class ExeIconExtractor:
    """実行ファイルからアイコンを抽出するクラス

    icoextractライブラリを使用してEXE/DLLのアイコングループを
    ICO形式で取り出す。
    """

    def load(self, path: Path) -> IconData:
        """実行ファイルの最初のアイコンをICOとして取り出す

        Args:
            path: EXE/DLLファイルのパス

        Returns:
            取得したICOファイル（表示名は "<ファイル名>.ico"）

        Raises:
            IconSourceError: ファイルが存在しない、アイコンがない、
                             またはPEファイルとして読めない場合
        """
        if not path.exists():
            raise IconSourceError(f"ファイルが見つかりません: {path}")

        try:
            extractor = IcoExtractor(str(path))

            # icoextract は BytesIO をサポートしていないため一時ファイルを使用
            with tempfile.NamedTemporaryFile(suffix=".ico", delete=False) as tmp:
                tmp_ico_path = Path(tmp.name)

            try:
                extractor.export_icon(str(tmp_ico_path))
                data = tmp_ico_path.read_bytes()
            finally:
                if tmp_ico_path.exists():
                    tmp_ico_path.unlink()

        except IconExtractorError as e:
            # NoIconsAvailableError, InvalidIconDefinitionError を含む
            raise IconSourceError(f"アイコンを抽出できません: {path}: {e}") from e
        except Exception as e:
            # pefile の解析エラー（破損したEXE等）
            raise IconSourceError(f"実行ファイルを解析できません: {path}: {e}") from e

        return IconData(data=data, name=f"{path.stem}.ico")


class FaviconFetcher:
    """Webサイトのfaviconを取得するクラス

    指定アドレスに "/favicon.ico" を付加してダウンロードする。

    Example:
        >>> fetcher = FaviconFetcher()
        >>> icon_data = await fetcher.fetch("https://www.github.com")
        >>> print(icon_data.name)
        favicon.ico
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """FaviconFetcherを初期化する

        Args:
            timeout: HTTPリクエストのタイムアウト秒数
            user_agent: User-Agentヘッダー。Noneの場合はデフォルト値
            http_client: HTTPクライアント（テスト用の依存性注入）。
                         Noneの場合は内部でクライアントを作成。
        """
        self._timeout = timeout
        self._user_agent = user_agent or get_default_config().fetch.user_agent
        self._http_client = http_client

    @staticmethod
    def favicon_url(url: str) -> str:
        """アドレスからfaviconのURLを組み立てる"""
        return f"{url.rstrip('/')}/{FAVICON_NAME}"

    async def fetch(self, url: str) -> IconData:
        """faviconをダウンロードする

        Args:
            url: WebサイトのアドレスURL

        Returns:
            取得したICOファイル（表示名は "favicon.ico"）

        Raises:
            IconSourceError: ダウンロードに失敗した場合
        """
        if url.lower().startswith("ftp://"):
            raise IconSourceError(f"FTPからの取得には対応していません: {url}")

        client = self._http_client
        close_client = False

        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        # User-Agentがないと403を返すサイトがある
        headers = {"User-Agent": self._user_agent}

        try:
            response = await client.get(
                self.favicon_url(url), headers=headers, follow_redirects=True
            )
            response.raise_for_status()
            return IconData(data=response.content, name=FAVICON_NAME)
        except httpx.TimeoutException as e:
            raise IconSourceError(f"タイムアウトしました: {url}") from e
        except httpx.HTTPStatusError as e:
            raise IconSourceError(f"HTTPエラー {e.response.status_code}: {url}") from e
        except httpx.RequestError as e:
            raise IconSourceError(f"ネットワークエラー: {e}") from e
        finally:
            if close_client and client is not None:
                await client.aclose()


def acquire(source: str, config: TinyIcoConfig | None = None) -> IconData:
    """取得元に応じてICOファイルのバイト列を取得する

    Args:
        source: ICOファイルのパス、Webサイトのアドレス、またはEXE/DLLのパス
        config: 取得設定（Noneの場合はデフォルト設定）

    Returns:
        取得したICOファイル

    Raises:
        IconSourceError: 取得に失敗した場合
    """
    if config is None:
        config = get_default_config()

    if is_url(source):
        fetcher = FaviconFetcher(
            timeout=config.fetch.timeout,
            user_agent=config.fetch.user_agent,
        )
        return asyncio.run(fetcher.fetch(source))

    path = Path(source)
    loader: IconLoaderProtocol
    if path.suffix.lower() in EXECUTABLE_EXTENSIONS:
        loader = ExeIconExtractor()
    else:
        loader = LocalIconLoader()

    return loader.load(path)
