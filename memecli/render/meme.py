from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Sequence, Union

from PIL import Image

from memecli.constants import DEFAULT_MAX_FONT_SIZE, DEFAULT_TEXT_COLOR, TOP_TEXT_HEIGHT_RATIO
from memecli.models import (
    Color,
    ImageContent,
    MemeContent,
    MemeTemplate,
    NestedTemplateContent,
    RenderConfig,
    RenderedMeme,
    Slot,
    TextContent,
)
from memecli.render.compositor import Box, fit_image_into_slot, overlay_coverage
from memecli.render.glyphs import GlyphRasterCache
from memecli.render.typography import (
    ALIGN_LEFT,
    ALIGN_MIDDLE,
    FontFace,
    TextLayout,
    fit_text,
    lay_out_text,
    load_font_face,
)

_log = logging.getLogger(__name__)

# Watermarks smaller than this are not drawn.
_MIN_WATERMARK_PX = 1.0


@dataclass(slots=True)
class _TextPlacement:
    layout: TextLayout
    origin: tuple[int, int]
    clip: Box | None = None


@dataclass(slots=True)
class _ImagePlacement:
    image: Image.Image
    position: tuple[int, int]


_Placement = Union[_TextPlacement, _ImagePlacement]


def _text_color(template: MemeTemplate, config: RenderConfig) -> Color:
    if config.text_color is not None:
        return config.text_color
    if template.config.color is not None:
        return template.config.color
    return DEFAULT_TEXT_COLOR


def _draw_layout(
    canvas: Image.Image,
    placement: _TextPlacement,
    color: Color,
    face: FontFace,
    cache: GlyphRasterCache,
) -> None:
    origin_x, origin_y = placement.origin
    for glyph in placement.layout.glyphs:
        if glyph.is_control:
            continue
        metrics, coverage = cache.rasterize(face, glyph.key.px, glyph.char)
        overlay_coverage(
            canvas,
            metrics,
            coverage,
            color,
            (origin_x + glyph.x, origin_y + glyph.y),
            clip=placement.clip,
        )


def _plan_contents(
    template: MemeTemplate,
    contents: Sequence[MemeContent],
    config: RenderConfig,
    face: FontFace,
    cache: GlyphRasterCache,
) -> list[_Placement]:
    placements: list[_Placement] = []
    for content, slot in zip(contents, template.fields):
        if isinstance(content, TextContent):
            layout = fit_text(face, content.text, slot.width, slot.height, max_size=config.max_font_size)
            placements.append(_TextPlacement(layout=layout, origin=slot.min, clip=slot.box))
            continue
        if isinstance(content, NestedTemplateContent):
            nested_config = RenderConfig(
                text_color=None,
                max_font_size=config.max_font_size,
                watermark=None,
                watermark_size_fraction=0.0,
            )
            source = _render(content.template, content.contents, nested_config, face, cache).image
        elif isinstance(content, ImageContent):
            source = content.image
        else:
            raise TypeError(f"unsupported meme content: {content!r}")
        fitted = fit_image_into_slot(source, slot)
        if fitted is not None:
            placements.append(_ImagePlacement(image=fitted[0], position=fitted[1]))
    return placements


def _plan_watermark(size: tuple[int, int], config: RenderConfig, face: FontFace) -> _TextPlacement | None:
    if not config.watermark or config.watermark_size_fraction <= 0:
        return None
    width, height = size
    font_size = min(width, height) / config.watermark_size_fraction
    if font_size < _MIN_WATERMARK_PX:
        return None
    layout = lay_out_text(
        face,
        config.watermark,
        font_size,
        max_height=font_size,
        align_h=ALIGN_LEFT,
        align_v=ALIGN_MIDDLE,
        wrap=False,
    )
    return _TextPlacement(layout=layout, origin=(0, height - math.ceil(font_size)))


def _render(
    template: MemeTemplate,
    contents: Sequence[MemeContent],
    config: RenderConfig,
    face: FontFace,
    cache: GlyphRasterCache,
) -> RenderedMeme:
    if len(contents) > len(template.fields):
        _log.debug(
            "template %s has %d slots, ignoring %d extra inputs",
            template.name,
            len(template.fields),
            len(contents) - len(template.fields),
        )
    placements = _plan_contents(template, contents, config, face, cache)
    watermark = _plan_watermark(template.base_image.size, config, face)
    color = _text_color(template, config)

    frames: list[Image.Image] = []
    for frame in template.frames:
        canvas = frame.convert("RGBA")
        for placement in placements:
            if isinstance(placement, _TextPlacement):
                _draw_layout(canvas, placement, color, face, cache)
            else:
                canvas.paste(placement.image, placement.position)
        if watermark is not None:
            _draw_layout(canvas, watermark, color, face, cache)
        frames.append(canvas)
    return RenderedMeme(frames=frames, durations=list(template.durations), loop=template.loop)


def render_meme(
    template: MemeTemplate,
    contents: Sequence[MemeContent],
    config: RenderConfig | None = None,
    face: FontFace | None = None,
) -> RenderedMeme:
    """Render ``contents`` into the slots of ``template``.

    Text is fitted once per slot and drawn identically on every frame of an
    animated template. Nested templates render recursively without a
    watermark and only their first frame is placed.
    """
    config = config or RenderConfig()
    face = face or load_font_face()
    cache = GlyphRasterCache()
    started = time.perf_counter()
    rendered = _render(template, list(contents), config, face, cache)
    _log.debug(
        "rendered %s: %d frame(s), %d glyphs cached, %.3fs",
        template.name,
        len(rendered.frames),
        len(cache),
        time.perf_counter() - started,
    )
    return rendered


def add_top_text(
    rendered: RenderedMeme,
    text: str,
    face: FontFace | None = None,
    color: Color = DEFAULT_TEXT_COLOR,
    max_font_size: float = DEFAULT_MAX_FONT_SIZE,
) -> RenderedMeme:
    """Prepend a white caption strip holding ``text`` above every frame."""
    face = face or load_font_face()
    width, height = rendered.size
    strip_height = max(1, int(round(height * TOP_TEXT_HEIGHT_RATIO)))
    slot = Slot(min=(0, 0), max=(width, strip_height))
    layout = fit_text(face, text, slot.width, slot.height, max_size=max_font_size, align_v=ALIGN_MIDDLE)
    placement = _TextPlacement(layout=layout, origin=slot.min, clip=slot.box)
    cache = GlyphRasterCache()

    frames: list[Image.Image] = []
    for frame in rendered.frames:
        canvas = Image.new("RGBA", (width, height + strip_height), (255, 255, 255, 255))
        canvas.paste(frame.convert("RGBA"), (0, strip_height))
        _draw_layout(canvas, placement, color, face, cache)
        frames.append(canvas)
    return RenderedMeme(frames=frames, durations=list(rendered.durations), loop=rendered.loop)
