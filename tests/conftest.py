from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from memecli.models import MemeConfig, MemeTemplate, Slot
from memecli.render.typography import FontFace


@pytest.fixture
def face() -> FontFace:
    return FontFace(None)


@pytest.fixture
def make_template():
    def _make(
        size: tuple[int, int] = (200, 100),
        fill: tuple[int, int, int, int] = (255, 255, 255, 255),
        slots: list[tuple[int, int, int, int]] | None = None,
        color: tuple[float, float, float, float] | None = (0.0, 0.0, 0.0, 1.0),
        name: str = "sample",
    ) -> MemeTemplate:
        config = MemeConfig(
            color=color,
            text=[Slot(min=(l, t), max=(r, b)) for l, t, r, b in (slots or [])],
        )
        return MemeTemplate(name=name, config=config, frames=[Image.new("RGBA", size, fill)])

    return _make


@pytest.fixture
def write_template_dir():
    def _write(
        root: Path,
        name: str,
        config: dict | str,
        image: Image.Image | None = None,
        frames: list[Image.Image] | None = None,
    ) -> Path:
        template_dir = root / name
        template_dir.mkdir(parents=True)
        text = config if isinstance(config, str) else json.dumps(config)
        (template_dir / "config.json").write_text(text, encoding="utf-8")
        if image is not None:
            image.save(template_dir / "image.png")
        if frames:
            frames[0].save(
                template_dir / "animated.gif",
                save_all=True,
                append_images=frames[1:],
                duration=[80] * len(frames),
                loop=0,
            )
        return template_dir

    return _write
