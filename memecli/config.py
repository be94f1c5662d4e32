from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from memecli.constants import (
    APP_NAME,
    DEFAULT_MAX_FONT_SIZE,
    DEFAULT_SOURCE_ALIAS,
    DEFAULT_SOURCE_URL,
    DEFAULT_WATERMARK,
    DEFAULT_WATERMARK_SIZE_FRACTION,
)
from memecli.errors import ConfigError
from memecli.sources import MemeSource, parse_sources

DEFAULT_CONFIG: dict[str, Any] = {
    "sources": [{"git": DEFAULT_SOURCE_URL, "alias": DEFAULT_SOURCE_ALIAS}],
    "watermark": DEFAULT_WATERMARK,
    "watermark_size_fraction": DEFAULT_WATERMARK_SIZE_FRACTION,
    "max_font_size": DEFAULT_MAX_FONT_SIZE,
    "font": None,
    "name_template": "{template}.{ext}",
    "output_format": "png",
}


def get_user_data_dir() -> Path:
    """Per-user configuration directory."""
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / APP_NAME
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_cache_dir() -> Path:
    """Where git template sources are checked out."""
    system_name = platform.system().lower()
    if system_name == "windows":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / APP_NAME / "cache"
    if system_name == "darwin":
        return Path.home() / "Library" / "Caches" / APP_NAME

    xdg_cache_home = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache_home:
        return Path(xdg_cache_home) / APP_NAME
    return Path.home() / ".cache" / APP_NAME


def get_config_path() -> Path:
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"The configuration file is broken: {cfg_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {cfg_path}: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"The configuration file is broken: {cfg_path}: expected a mapping")
    cfg = _deep_merge(DEFAULT_CONFIG, loaded)
    try:
        cfg["watermark_size_fraction"] = float(cfg["watermark_size_fraction"])
        cfg["max_font_size"] = float(cfg["max_font_size"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"The configuration file is broken: {cfg_path}: {exc}") from exc
    return cfg


def config_sources(cfg: dict[str, Any]) -> list[MemeSource]:
    return parse_sources(cfg.get("sources"))


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg_path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
