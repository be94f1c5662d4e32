from __future__ import annotations

from pathlib import Path

from memecli.constants import TEMPLATE_CONFIG_FILE


def is_template_dir(path: Path) -> bool:
    return path.is_dir() and (path / TEMPLATE_CONFIG_FILE).is_file()


def discover_templates(source_dir: Path) -> list[str]:
    if not source_dir.is_dir():
        return []
    return sorted(p.name for p in source_dir.iterdir() if is_template_dir(p))
