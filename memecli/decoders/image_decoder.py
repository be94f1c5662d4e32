from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps, ImageSequence, UnidentifiedImageError

_DEFAULT_FRAME_DURATION_MS = 100


def decode_image(path: Path) -> Image.Image:
    try:
        with Image.open(path) as image:
            return ImageOps.exif_transpose(image).convert("RGBA")
    except UnidentifiedImageError as exc:
        raise RuntimeError(f"unsupported or corrupt image: {path}") from exc


def decode_animation(path: Path) -> tuple[list[Image.Image], list[int], int]:
    """Decode every frame of an animated image as RGBA.

    Returns ``(frames, durations_ms, loop)``.
    """
    try:
        with Image.open(path) as image:
            loop = int(image.info.get("loop", 0))
            frames: list[Image.Image] = []
            durations: list[int] = []
            for frame in ImageSequence.Iterator(image):
                frames.append(frame.convert("RGBA"))
                durations.append(int(frame.info.get("duration", _DEFAULT_FRAME_DURATION_MS)))
    except UnidentifiedImageError as exc:
        raise RuntimeError(f"unsupported or corrupt animation: {path}") from exc
    if not frames:
        raise RuntimeError(f"animation has no frames: {path}")
    return frames, durations, loop
