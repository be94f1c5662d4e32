from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from PIL import Image

from memecli.constants import ANIMATED_OUTPUT_FORMATS, STATIC_OUTPUT_FORMATS
from memecli.errors import UnsupportedOperation
from memecli.models import RenderedMeme

_OPAQUE_FORMATS = {"JPEG", "BMP"}


def resolve_output_format(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in STATIC_OUTPUT_FORMATS:
        supported = ", ".join(sorted(STATIC_OUTPUT_FORMATS))
        raise UnsupportedOperation(f"cannot export to {suffix or 'a file without extension'}; use one of {supported}")
    return STATIC_OUTPUT_FORMATS[suffix]


def default_extension(rendered: RenderedMeme, still_extension: str = "png") -> str:
    return "gif" if rendered.is_animated else still_extension.lower().lstrip(".")


def _flatten(image: Image.Image) -> Image.Image:
    background = Image.new("RGB", image.size, (255, 255, 255))
    background.paste(image, mask=image.getchannel("A"))
    return background


def _save(rendered: RenderedMeme, target: Path | BinaryIO, pil_format: str) -> None:
    if rendered.is_animated:
        if pil_format not in ANIMATED_OUTPUT_FORMATS:
            raise UnsupportedOperation(
                f"animated memes cannot be exported as {pil_format}; use .gif, .png or .webp"
            )
        first, *rest = rendered.frames
        options = {"save_all": True, "append_images": rest, "loop": rendered.loop}
        if rendered.durations:
            options["duration"] = rendered.durations
        if pil_format == "GIF":
            options["disposal"] = 2
        first.save(target, format=pil_format, **options)
        return
    image = rendered.image
    if pil_format in _OPAQUE_FORMATS:
        image = _flatten(image)
    image.save(target, format=pil_format)


def save_meme(rendered: RenderedMeme, path: Path) -> Path:
    pil_format = resolve_output_format(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _save(rendered, path, pil_format)
    return path


def write_meme(rendered: RenderedMeme, stream: BinaryIO) -> None:
    """Encode to a byte stream: PNG for still memes, GIF for animated ones."""
    _save(rendered, stream, "GIF" if rendered.is_animated else "PNG")
