"""Configuration module for tinyico."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_USER_AGENT = "Mozilla/4.0 (compatible; MSIE 8.0; Windows NT 6.1)"


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class ExportConfig:
    """画像出力設定"""

    format: str = "png"
    quality: int | str = "high"
    lossless_alpha: bool = True


@dataclass(frozen=True)
class FetchConfig:
    """favicon取得設定"""

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class SortConfig:
    """並べ替え設定"""

    primary: str = "none"
    secondary: str = "none"


@dataclass(frozen=True)
class TinyIcoConfig:
    """ルート設定"""

    export: ExportConfig = field(default_factory=ExportConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    sort: SortConfig = field(default_factory=SortConfig)


def load_config(path: Path) -> TinyIcoConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        TinyIcoConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return TinyIcoConfig(
        export=_merge_export_config(data.get("export", {}), default.export),
        fetch=_merge_fetch_config(data.get("fetch", {}), default.fetch),
        sort=_merge_sort_config(data.get("sort", {}), default.sort),
    )


def get_default_config() -> TinyIcoConfig:
    """デフォルト設定を取得する"""
    return TinyIcoConfig()


def _merge_export_config(data: dict[str, Any], default: ExportConfig) -> ExportConfig:
    """画像出力設定をマージする"""
    if not isinstance(data, dict):
        return default
    return ExportConfig(
        format=data.get("format", default.format),
        quality=data.get("quality", default.quality),
        lossless_alpha=data.get("lossless_alpha", default.lossless_alpha),
    )


def _merge_fetch_config(data: dict[str, Any], default: FetchConfig) -> FetchConfig:
    """取得設定をマージする"""
    if not isinstance(data, dict):
        return default
    return FetchConfig(
        timeout=data.get("timeout", default.timeout),
        user_agent=data.get("user_agent", default.user_agent),
    )


def _merge_sort_config(data: dict[str, Any], default: SortConfig) -> SortConfig:
    """並べ替え設定をマージする"""
    if not isinstance(data, dict):
        return default
    return SortConfig(
        primary=data.get("primary", default.primary),
        secondary=data.get("secondary", default.secondary),
    )
