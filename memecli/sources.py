from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from memecli import git_ops
from memecli.errors import ConfigError

_log = logging.getLogger(__name__)

SOURCE_GIT = "git"
SOURCE_LOCAL = "local"


@dataclass(frozen=True, slots=True)
class MemeSource:
    kind: str
    location: str
    alias: str | None = None

    @property
    def is_local(self) -> bool:
        return self.kind == SOURCE_LOCAL

    def describe(self) -> str:
        if self.kind == SOURCE_GIT:
            return f"Git source {self.alias} (URL: {self.location})"
        return f"Local source @ {self.location}"

    def to_path(self, cache_dir: Path) -> Path:
        if self.kind == SOURCE_GIT:
            return cache_dir / str(self.alias)
        return Path(self.location).expanduser()

    def to_dict(self) -> dict[str, str]:
        if self.kind == SOURCE_GIT:
            return {"git": self.location, "alias": str(self.alias)}
        return {"local": self.location}


def _alias_from_url(url: str) -> str:
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail or "source"


def parse_source(raw: Any) -> MemeSource:
    if isinstance(raw, str):
        return MemeSource(kind=SOURCE_LOCAL, location=raw)
    if not isinstance(raw, dict):
        raise ConfigError(f"template source must be a mapping or a path, got: {raw!r}")
    # {"GitUrl": {...}} / {"LocalPath": "..."} as written by older configs
    if "GitUrl" in raw and isinstance(raw["GitUrl"], dict):
        raw = {"git": raw["GitUrl"].get("url"), "alias": raw["GitUrl"].get("alias")}
    elif "LocalPath" in raw:
        raw = {"local": raw["LocalPath"]}

    if raw.get("git"):
        url = str(raw["git"]).strip()
        alias = str(raw.get("alias") or _alias_from_url(url)).strip()
        return MemeSource(kind=SOURCE_GIT, location=url, alias=alias)
    if raw.get("local"):
        return MemeSource(kind=SOURCE_LOCAL, location=str(raw["local"]).strip())
    raise ConfigError(f"template source needs a 'git' or 'local' entry: {raw!r}")


def parse_sources(raw: Any) -> list[MemeSource]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"'sources' must be a list, got: {type(raw).__name__}")
    return [parse_source(item) for item in raw]


def source_dirs(sources: list[MemeSource], cache_dir: Path) -> list[Path]:
    return [source.to_path(cache_dir) for source in sources]


def update_source(source: MemeSource, cache_dir: Path) -> Path:
    """Clone or fast-forward a git source into the cache; local sources are returned as-is."""
    path = source.to_path(cache_dir)
    if source.kind != SOURCE_GIT:
        return path
    if path.is_dir() and any(path.iterdir()):
        _log.info("Updating meme repository %s (%s)", source.alias, source.location)
        git_ops.update_repo(path)
    else:
        _log.info("Cloning meme repository %s (%s)", source.alias, source.location)
        path.parent.mkdir(parents=True, exist_ok=True)
        git_ops.clone_repo(path, source.location)
    return path
