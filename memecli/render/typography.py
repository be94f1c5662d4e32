from __future__ import annotations

import logging
import platform
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import NamedTuple

from PIL import ImageFont

from memecli.constants import FIT_CONVERGENCE_PX, MIN_FONT_SIZE

_log = logging.getLogger(__name__)

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"
ALIGN_TOP = "top"
ALIGN_MIDDLE = "middle"
ALIGN_BOTTOM = "bottom"

BUILTIN_FONT_ID = "<builtin>"

_SINGLE_WHITESPACE = re.compile(r"\s")
_WORDS_AND_SPACES = re.compile(r"\S+|\s+")


def _system_font_candidates() -> list[Path]:
    system = platform.system().lower()
    if "windows" in system:
        return [
            Path(r"C:\Windows\Fonts\impact.ttf"),
            Path(r"C:\Windows\Fonts\arialbd.ttf"),
        ]
    if "darwin" in system:
        return [
            Path("/System/Library/Fonts/Supplemental/Impact.ttf"),
            Path("/Library/Fonts/Impact.ttf"),
            Path("/System/Library/Fonts/Supplemental/Arial Bold.ttf"),
        ]
    return [
        Path("/usr/share/fonts/truetype/bebas-neue/BebasNeue-Regular.ttf"),
        Path("/usr/share/fonts/truetype/msttcorefonts/Impact.ttf"),
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    ]


@lru_cache(maxsize=256)
def _sized_font(path: str | None, px: float) -> ImageFont.FreeTypeFont:
    if path is None:
        return ImageFont.load_default(size=px)
    return ImageFont.truetype(path, size=px)


def _round_px(px: float) -> float:
    return round(float(px), 2)


@dataclass(frozen=True, slots=True)
class FontFace:
    """Read-only handle for one scalable font.

    ``path=None`` selects Pillow's bundled scalable font, which needs a
    FreeType-enabled Pillow build.
    """

    path: Path | None = None

    @property
    def identity(self) -> str:
        return str(self.path) if self.path is not None else BUILTIN_FONT_ID

    def at(self, px: float) -> ImageFont.FreeTypeFont:
        return _sized_font(str(self.path) if self.path is not None else None, _round_px(px))


def load_font_face(font_path: Path | None = None, use_system_fonts: bool = True) -> FontFace:
    candidates: list[Path] = []
    if font_path:
        candidates.append(font_path)
    if use_system_fonts:
        candidates.extend(_system_font_candidates())
    for candidate in candidates:
        if not candidate.exists():
            continue
        try:
            ImageFont.truetype(str(candidate), size=12)
        except OSError as exc:
            _log.warning("unusable font %s: %s", candidate, exc)
            continue
        return FontFace(candidate)
    return FontFace(None)


class GlyphKey(NamedTuple):
    font: str
    px: float
    char: str


@dataclass(frozen=True, slots=True)
class PositionedGlyph:
    key: GlyphKey
    x: int
    y: int
    width: int
    height: int
    is_control: bool = False

    @property
    def char(self) -> str:
        return self.key.char


@dataclass(slots=True)
class TextLayout:
    size: float
    glyphs: list[PositionedGlyph] = field(default_factory=list)
    line_count: int = 0
    height: float = 0.0
    width: float = 0.0


def token_count(text: str) -> int:
    """Upper bound on the lines word wrap may need: one piece per whitespace split."""
    return len(_SINGLE_WHITESPACE.split(text))


def _wrap_line(
    line: str,
    advance,
    max_width: float | None,
) -> list[str]:
    if max_width is None:
        return [line.rstrip()]

    def width_of(run: str) -> float:
        return sum(advance(ch) for ch in run)

    lines: list[str] = []
    current = ""
    current_width = 0.0
    pending_space = ""
    for token in _WORDS_AND_SPACES.findall(line):
        if token.isspace():
            if current:
                pending_space += token
            continue
        token_width = width_of(token)
        joined_width = current_width + width_of(pending_space) + token_width
        if current and joined_width <= max_width:
            current += pending_space + token
            current_width = joined_width
            pending_space = ""
            continue
        if current:
            lines.append(current)
            current, current_width = "", 0.0
        pending_space = ""
        if token_width <= max_width:
            current, current_width = token, token_width
            continue
        # Word wider than the line: break between characters.
        for ch in token:
            ch_width = advance(ch)
            if current and current_width + ch_width > max_width:
                lines.append(current)
                current, current_width = "", 0.0
            current += ch
            current_width += ch_width
    if current or not lines:
        lines.append(current)
    return lines


def lay_out_text(
    face: FontFace,
    text: str,
    px: float,
    *,
    max_width: float | None = None,
    max_height: float | None = None,
    align_h: str = ALIGN_LEFT,
    align_v: str = ALIGN_TOP,
    wrap: bool = True,
) -> TextLayout:
    px = _round_px(px)
    layout = TextLayout(size=px)
    if not text:
        return layout

    font = face.at(px)
    ascent, descent = font.getmetrics()
    line_height = ascent + descent
    advances: dict[str, float] = {}

    def advance(ch: str) -> float:
        value = advances.get(ch)
        if value is None:
            value = advances[ch] = float(font.getlength(ch))
        return value

    wrap_width = max_width if wrap else None
    lines: list[tuple[str, bool]] = []
    hard_lines = text.split("\n")
    for index, hard_line in enumerate(hard_lines):
        wrapped = _wrap_line(hard_line, advance, wrap_width)
        for sub_index, line in enumerate(wrapped):
            ends_hard = sub_index == len(wrapped) - 1 and index < len(hard_lines) - 1
            lines.append((line, ends_hard))

    widths = [sum(advance(ch) for ch in line.rstrip()) for line, _ in lines]
    layout.line_count = len(lines)
    layout.height = float(len(lines) * line_height)
    layout.width = max(widths) if widths else 0.0

    area_width = max_width if max_width is not None else layout.width
    if max_height is None or align_v == ALIGN_TOP:
        y0 = 0.0
    elif align_v == ALIGN_MIDDLE:
        y0 = (max_height - layout.height) / 2.0
    else:
        y0 = max_height - layout.height

    for line_index, ((line, ends_hard), line_width) in enumerate(zip(lines, widths)):
        if align_h == ALIGN_CENTER:
            pen_x = (area_width - line_width) / 2.0
        elif align_h == ALIGN_RIGHT:
            pen_x = area_width - line_width
        else:
            pen_x = 0.0
        line_top = y0 + line_index * line_height
        for ch in line:
            left, top, right, bottom = font.getbbox(ch)
            layout.glyphs.append(
                PositionedGlyph(
                    key=GlyphKey(face.identity, px, ch),
                    x=int(pen_x + left),
                    y=int(line_top + top),
                    width=max(0, int(right - left)),
                    height=max(0, int(bottom - top)),
                    is_control=not ch.isprintable() and not ch.isspace(),
                )
            )
            pen_x += advance(ch)
        if ends_hard:
            layout.glyphs.append(
                PositionedGlyph(
                    key=GlyphKey(face.identity, px, "\n"),
                    x=int(pen_x),
                    y=int(line_top),
                    width=0,
                    height=0,
                    is_control=True,
                )
            )
    return layout


def fit_text(
    face: FontFace,
    text: str,
    box_width: float,
    box_height: float,
    *,
    max_size: float,
    min_size: float = MIN_FONT_SIZE,
    align_v: str = ALIGN_TOP,
) -> TextLayout:
    """Binary-search the largest font size whose wrapped layout fits the box.

    The midpoint is ``min + max / 2``, biased toward ``max``. Once a size
    fits it is returned. When the candidate stalls without fitting, the
    layout at ``min_size`` is returned, fitting or not.
    """
    lower = float(min_size)
    upper = max(float(max_size), lower)
    abs_max_lines = token_count(text)
    iterations = 0

    def layout_at(px: float) -> TextLayout:
        return lay_out_text(
            face,
            text,
            px,
            max_width=box_width,
            max_height=box_height,
            align_h=ALIGN_CENTER,
            align_v=align_v,
            wrap=True,
        )

    def overflows(layout: TextLayout) -> bool:
        return layout.line_count > abs_max_lines or layout.height > box_height

    while True:
        iterations += 1
        candidate = min(lower + upper / 2.0, upper)
        layout = layout_at(candidate)
        if overflows(layout):
            if upper - candidate <= FIT_CONVERGENCE_PX:
                # the biased midpoint stalls near 2 * lower, so lower itself is still untried
                layout = layout_at(lower)
                if overflows(layout):
                    _log.debug("no size fits %dx%d, settled at %.2fpx after %d tries", box_width, box_height, lower, iterations + 1)
                else:
                    _log.debug("fitted %.2fpx in %dx%d after %d tries", lower, box_width, box_height, iterations + 1)
                return layout
            upper = candidate
        elif lower - upper <= FIT_CONVERGENCE_PX:
            _log.debug("fitted %.2fpx in %dx%d after %d tries", candidate, box_width, box_height, iterations)
            return layout
        else:
            lower = candidate
