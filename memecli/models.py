from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from PIL import Image

from memecli.constants import DEFAULT_MAX_FONT_SIZE, DEFAULT_WATERMARK_SIZE_FRACTION

Color = tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class Slot:
    min: tuple[int, int]
    max: tuple[int, int]

    @property
    def width(self) -> int:
        return max(0, self.max[0] - self.min[0])

    @property
    def height(self) -> int:
        return max(0, self.max[1] - self.min[1])

    @property
    def box(self) -> tuple[int, int, int, int]:
        return self.min[0], self.min[1], self.max[0], self.max[1]

    def to_dict(self) -> dict[str, Any]:
        return {"min": list(self.min), "max": list(self.max)}


@dataclass(slots=True)
class MemeConfig:
    color: Color | None = None
    text: list[Slot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": list(self.color) if self.color is not None else None,
            "text": [slot.to_dict() for slot in self.text],
        }


@dataclass(slots=True)
class MemeTemplate:
    name: str
    config: MemeConfig
    frames: list[Image.Image]
    durations: list[int] = field(default_factory=list)
    loop: int = 0

    @property
    def is_animated(self) -> bool:
        return len(self.frames) > 1

    @property
    def base_image(self) -> Image.Image:
        return self.frames[0]

    @property
    def fields(self) -> list[Slot]:
        return self.config.text


@dataclass(frozen=True, slots=True)
class TextContent:
    text: str


@dataclass(slots=True)
class NestedTemplateContent:
    template: MemeTemplate
    contents: list[MemeContent] = field(default_factory=list)


@dataclass(slots=True)
class ImageContent:
    image: Image.Image


MemeContent = Union[TextContent, NestedTemplateContent, ImageContent]


@dataclass(slots=True)
class RenderConfig:
    text_color: Color | None = None
    max_font_size: float = DEFAULT_MAX_FONT_SIZE
    watermark: str | None = None
    watermark_size_fraction: float = DEFAULT_WATERMARK_SIZE_FRACTION


@dataclass(slots=True)
class RenderedMeme:
    frames: list[Image.Image]
    durations: list[int] = field(default_factory=list)
    loop: int = 0

    @property
    def is_animated(self) -> bool:
        return len(self.frames) > 1

    @property
    def image(self) -> Image.Image:
        return self.frames[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.frames[0].size
