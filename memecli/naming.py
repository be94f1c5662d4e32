from __future__ import annotations

import re
from pathlib import Path

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def sanitize_token(value: str | None, fallback: str = "NA") -> str:
    text = (value or "").strip()
    if not text:
        text = fallback
    text = INVALID_FILENAME_CHARS.sub("_", text)
    text = re.sub(r"\s+", "_", text)
    text = text.strip(" ._")
    return text or fallback


def sanitize_filename(value: str, fallback: str = "output") -> str:
    text = INVALID_FILENAME_CHARS.sub("_", value).strip()
    text = text.replace("/", "_").replace("\\", "_")
    text = text.strip(" .")
    return text or fallback


def validate_template_name(name: str) -> str:
    """Return ``name`` if it is usable as a template directory name."""
    clean = name.strip()
    if not clean or clean != sanitize_filename(clean, fallback=""):
        raise ValueError(f"invalid template name: {name!r}")
    return clean


def build_output_name(name_template: str, template_name: str, extension: str) -> str:
    ext = extension.lower().lstrip(".")
    values = {
        "template": sanitize_token(template_name, fallback="meme"),
        "ext": ext,
    }
    try:
        rendered = name_template.format(**values)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    rendered = sanitize_filename(rendered, fallback=f"{values['template']}.{ext}")
    if not Path(rendered).suffix:
        rendered = f"{rendered}.{ext}"
    return rendered
