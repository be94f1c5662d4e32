import numpy as np
import pytest
from PIL import Image

from memecli.models import Slot
from memecli.render.compositor import overlay, overlay_coverage, overlay_image
from memecli.render.glyphs import GlyphMetrics


def _noise_image(size: tuple[int, int], seed: int = 7) -> Image.Image:
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(size[1], size[0], 4), dtype=np.uint8)
    return Image.fromarray(pixels)


def test_transparent_mask_leaves_base_identical() -> None:
    base = _noise_image((32, 24))
    before = np.asarray(base).copy()

    overlay(base, Image.new("L", (32, 24), 0), (0.3, 0.6, 0.9, 1.0), (0, 0))

    assert np.array_equal(np.asarray(base), before)


def test_full_mask_saturates_to_color() -> None:
    base = _noise_image((16, 16))

    overlay(base, Image.new("L", (16, 16), 255), (0.2, 0.4, 0.6, 1.0), (0, 0))

    pixels = np.asarray(base).astype(int)
    expected = np.array([51, 102, 153, 255])
    assert np.all(np.abs(pixels - expected) <= 1)


def test_blend_truncates_instead_of_rounding() -> None:
    base = Image.new("RGBA", (1, 1), (100, 100, 100, 100))

    overlay(base, Image.new("L", (1, 1), 255), (0.5, 0.5, 0.5, 0.5), (0, 0))

    assert base.getpixel((0, 0)) == (127, 127, 127, 127)


def test_partial_coverage_mixes_base_and_color() -> None:
    base = Image.new("RGBA", (1, 1), (255, 255, 255, 255))

    overlay(base, Image.new("L", (1, 1), 128), (0.0, 0.0, 0.0, 1.0), (0, 0))

    red, green, blue, alpha = base.getpixel((0, 0))
    assert 125 <= red <= 128
    assert red == green == blue
    assert alpha >= 254


@pytest.mark.parametrize("origin", [(-5, -5), (15, 18), (-20, 3), (100, 100), (-100, -100)])
def test_overlay_clips_to_base_bounds(origin: tuple[int, int]) -> None:
    base = Image.new("RGBA", (20, 20), (255, 255, 255, 255))

    overlay(base, Image.new("L", (10, 10), 255), (0.0, 0.0, 0.0, 1.0), origin)

    pixels = np.asarray(base)
    changed = np.any(pixels != 255, axis=2)
    expected = np.zeros((20, 20), dtype=bool)
    x0, y0 = max(0, origin[0]), max(0, origin[1])
    x1, y1 = min(20, origin[0] + 10), min(20, origin[1] + 10)
    if x0 < x1 and y0 < y1:
        expected[y0:y1, x0:x1] = True
    assert np.array_equal(changed, expected)


def test_overlay_respects_clip_box() -> None:
    base = Image.new("RGBA", (20, 20), (255, 255, 255, 255))

    overlay(base, Image.new("L", (20, 20), 255), (0.0, 0.0, 0.0, 1.0), (0, 0), clip=(5, 5, 10, 12))

    changed = np.any(np.asarray(base) != 255, axis=2)
    assert changed[5:12, 5:10].all()
    assert changed.sum() == 5 * 7


def test_overlay_coverage_matches_mask_overlay() -> None:
    rng = np.random.default_rng(3)
    grid = rng.integers(0, 256, size=(6, 9), dtype=np.uint8)
    metrics = GlyphMetrics(xmin=0, ymin=0, width=9, height=6, advance=9.0)
    from_bytes = _noise_image((12, 12))
    from_mask = from_bytes.copy()

    overlay_coverage(from_bytes, metrics, grid.tobytes(), (1.0, 0.0, 0.5, 1.0), (4, 8))
    overlay(from_mask, Image.fromarray(grid), (1.0, 0.0, 0.5, 1.0), (4, 8))

    assert np.array_equal(np.asarray(from_bytes), np.asarray(from_mask))


def test_overlay_requires_rgba_base() -> None:
    with pytest.raises(ValueError):
        overlay(Image.new("RGB", (4, 4)), Image.new("L", (4, 4), 255), (0.0, 0.0, 0.0, 1.0), (0, 0))


def test_overlay_image_scales_and_centers_into_slot() -> None:
    base = Image.new("RGBA", (60, 60), (255, 255, 255, 255))
    source = Image.new("RGBA", (20, 10), (255, 0, 0, 255))

    overlay_image(base, source, Slot(min=(10, 10), max=(50, 50)))

    assert base.getpixel((30, 30)) == (255, 0, 0, 255)
    assert base.getpixel((30, 15)) == (255, 255, 255, 255)
    assert base.getpixel((30, 45)) == (255, 255, 255, 255)
    assert base.getpixel((5, 30)) == (255, 255, 255, 255)


def test_overlay_image_into_empty_slot_is_a_no_op() -> None:
    base = Image.new("RGBA", (10, 10), (255, 255, 255, 255))

    overlay_image(base, Image.new("RGBA", (4, 4), (0, 0, 0, 255)), Slot(min=(3, 3), max=(3, 8)))

    assert np.all(np.asarray(base) == 255)
