from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image

from memecli.models import Slot
from memecli.render.glyphs import GlyphMetrics
from memecli.render.image_modes import resize_to, scale_to_fit

Box = tuple[int, int, int, int]


def _visible_box(
    base_size: tuple[int, int],
    origin: tuple[int, int],
    mask_size: tuple[int, int],
    clip: Box | None,
) -> Box | None:
    left, top, right, bottom = 0, 0, base_size[0], base_size[1]
    if clip is not None:
        left, top = max(left, clip[0]), max(top, clip[1])
        right, bottom = min(right, clip[2]), min(bottom, clip[3])
    x0 = max(left, origin[0])
    y0 = max(top, origin[1])
    x1 = min(right, origin[0] + mask_size[0])
    y1 = min(bottom, origin[1] + mask_size[1])
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def _blend(base: Image.Image, coverage: np.ndarray, color: Sequence[float], box: Box) -> None:
    region = np.asarray(base.crop(box), dtype=np.float64)
    alpha = coverage.astype(np.float64)[..., None] / 255.0
    target = np.asarray(color, dtype=np.float64) * 255.0
    blended = (1.0 - alpha) * region + alpha * target
    # astype truncates toward zero, matching 8-bit quantization by truncation
    base.paste(Image.fromarray(np.clip(blended, 0.0, 255.0).astype(np.uint8)), box[:2])


def overlay(
    base: Image.Image,
    mask: Image.Image,
    color: Sequence[float],
    origin: tuple[int, int],
    clip: Box | None = None,
) -> None:
    """Blend ``color`` onto ``base`` in place, weighted by the ``L`` coverage ``mask``.

    Pixels outside ``base`` (or outside ``clip``) are skipped.
    """
    if base.mode != "RGBA":
        raise ValueError(f"overlay needs an RGBA base image, got {base.mode}")
    box = _visible_box(base.size, origin, mask.size, clip)
    if box is None:
        return
    x0, y0, x1, y1 = box
    mask_box = (x0 - origin[0], y0 - origin[1], x1 - origin[0], y1 - origin[1])
    coverage = np.asarray(mask.convert("L").crop(mask_box), dtype=np.uint8)
    _blend(base, coverage, color, box)


def overlay_coverage(
    base: Image.Image,
    metrics: GlyphMetrics,
    coverage: bytes,
    color: Sequence[float],
    origin: tuple[int, int],
    clip: Box | None = None,
) -> None:
    if metrics.width == 0 or metrics.height == 0:
        return
    box = _visible_box(base.size, origin, (metrics.width, metrics.height), clip)
    if box is None:
        return
    x0, y0, x1, y1 = box
    grid = np.frombuffer(coverage, dtype=np.uint8).reshape(metrics.height, metrics.width)
    cropped = grid[y0 - origin[1] : y1 - origin[1], x0 - origin[0] : x1 - origin[0]]
    _blend(base, cropped, color, box)


def fit_image_into_slot(image: Image.Image, slot: Slot) -> tuple[Image.Image, tuple[int, int]] | None:
    """Scale ``image`` to fit ``slot`` and return it with its paste position."""
    size, offset = scale_to_fit(image.size, (slot.width, slot.height))
    if size[0] == 0 or size[1] == 0:
        return None
    scaled = resize_to(image.convert("RGBA"), size)
    return scaled, (slot.min[0] + offset[0], slot.min[1] + offset[1])


def overlay_image(base: Image.Image, image: Image.Image, slot: Slot) -> None:
    fitted = fit_image_into_slot(image, slot)
    if fitted is None:
        return
    scaled, position = fitted
    base.paste(scaled, position)
