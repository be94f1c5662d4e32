from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from PIL import Image

from memecli.constants import ANIMATED_IMAGE_FILE, STATIC_IMAGE_FILE, TEMPLATE_CONFIG_FILE
from memecli.decoders.image_decoder import decode_animation, decode_image
from memecli.discover import discover_templates, is_template_dir
from memecli.errors import AssetNotFound, ConfigError, MemeError, TemplateNotFound
from memecli.models import MemeConfig, MemeTemplate, Slot
from memecli.naming import validate_template_name

_log = logging.getLogger(__name__)


def _parse_point(value: Any, label: str) -> tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigError(f"{label} must be a pair of pixel coordinates, got: {value!r}")
    point: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise ConfigError(f"{label} must hold non-negative integers, got: {value!r}")
        point.append(item)
    return point[0], point[1]


def _parse_color(value: Any) -> tuple[float, float, float, float] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise ConfigError(f"color must be four floats in [0, 1], got: {value!r}")
    try:
        channels = [float(item) for item in value]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"color must be four floats in [0, 1], got: {value!r}") from exc
    if any(channel < 0.0 or channel > 1.0 for channel in channels):
        raise ConfigError(f"color channels must lie in [0, 1], got: {value!r}")
    return channels[0], channels[1], channels[2], channels[3]


def parse_meme_config(data: Any) -> MemeConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"template config is not an object: {type(data).__name__}")
    fields = data.get("text")
    if not isinstance(fields, list):
        raise ConfigError("template config needs a 'text' list of slots")

    slots: list[Slot] = []
    for index, raw_slot in enumerate(fields):
        if not isinstance(raw_slot, dict):
            raise ConfigError(f"text[{index}] is not an object")
        low = _parse_point(raw_slot.get("min"), f"text[{index}].min")
        high = _parse_point(raw_slot.get("max"), f"text[{index}].max")
        if low[0] > high[0] or low[1] > high[1]:
            raise ConfigError(f"text[{index}] has min {low} beyond max {high}")
        slots.append(Slot(min=low, max=high))
    return MemeConfig(color=_parse_color(data.get("color")), text=slots)


def load_meme_config(path: Path) -> MemeConfig:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"template config {path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read template config {path}: {exc}") from exc
    try:
        return parse_meme_config(data)
    except ConfigError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def load_template_dir(path: Path, name: str | None = None) -> MemeTemplate:
    name = name or path.name
    config = load_meme_config(path / TEMPLATE_CONFIG_FILE)

    static_path = path / STATIC_IMAGE_FILE
    animated_path = path / ANIMATED_IMAGE_FILE
    try:
        if static_path.is_file():
            return MemeTemplate(name=name, config=config, frames=[decode_image(static_path)])
        if animated_path.is_file():
            frames, durations, loop = decode_animation(animated_path)
            return MemeTemplate(name=name, config=config, frames=frames, durations=durations, loop=loop)
    except (OSError, RuntimeError) as exc:
        raise AssetNotFound(name, str(exc)) from exc
    raise AssetNotFound(name)


def find_template(source_dirs: Iterable[Path], name: str) -> MemeTemplate:
    for source_dir in source_dirs:
        candidate = source_dir / name
        if is_template_dir(candidate):
            _log.debug("template %s found in %s", name, source_dir)
            return load_template_dir(candidate, name)
    raise TemplateNotFound(name)


def list_templates(source_dirs: Iterable[Path]) -> list[str]:
    names: set[str] = set()
    for source_dir in source_dirs:
        names.update(discover_templates(source_dir))
    return sorted(names)


def write_template(source_dir: Path, name: str, image: Image.Image, config: MemeConfig) -> Path:
    """Store a new template directory under ``source_dir``."""
    try:
        name = validate_template_name(name)
    except ValueError as exc:
        raise MemeError(str(exc)) from exc
    template_dir = source_dir / name
    if template_dir.exists():
        raise MemeError(f"template already exists: {template_dir}")
    template_dir.mkdir(parents=True)
    image.convert("RGBA").save(template_dir / STATIC_IMAGE_FILE, format="PNG")
    (template_dir / TEMPLATE_CONFIG_FILE).write_text(
        json.dumps(config.to_dict(), indent=2),
        encoding="utf-8",
    )
    _log.info("template %s written to %s", name, template_dir)
    return template_dir
