from __future__ import annotations

from PIL import Image


def scale_to_fit(
    src_size: tuple[int, int],
    slot_size: tuple[int, int],
) -> tuple[tuple[int, int], tuple[int, int]]:
    """Return the aspect-preserving size fitting inside the slot and its centering offset."""
    width, height = src_size
    slot_width, slot_height = slot_size
    if width <= 0 or height <= 0 or slot_width <= 0 or slot_height <= 0:
        return (0, 0), (0, 0)
    scale = min(slot_width / float(width), slot_height / float(height))
    new_width = min(slot_width, max(1, int(round(width * scale))))
    new_height = min(slot_height, max(1, int(round(height * scale))))
    offset = ((slot_width - new_width) // 2, (slot_height - new_height) // 2)
    return (new_width, new_height), offset


def resize_to(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    if image.size == size:
        return image.copy()
    return image.resize(size, Image.Resampling.LANCZOS)
