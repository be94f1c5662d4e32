from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageDraw

from memecli.render.typography import FontFace, GlyphKey


@dataclass(frozen=True, slots=True)
class GlyphMetrics:
    xmin: int
    ymin: int
    width: int
    height: int
    advance: float


def _rasterize_glyph(face: FontFace, px: float, char: str) -> tuple[GlyphMetrics, bytes]:
    font = face.at(px)
    left, top, right, bottom = (int(v) for v in font.getbbox(char))
    metrics = GlyphMetrics(
        xmin=left,
        ymin=top,
        width=max(0, right - left),
        height=max(0, bottom - top),
        advance=float(font.getlength(char)),
    )
    if metrics.width == 0 or metrics.height == 0:
        return metrics, b""
    mask = Image.new("L", (metrics.width, metrics.height), 0)
    ImageDraw.Draw(mask).text((-left, -top), char, fill=255, font=font)
    return metrics, mask.tobytes()


class GlyphRasterCache:
    """Coverage bitmaps for the glyphs of one render call."""

    def __init__(self) -> None:
        self._entries: dict[GlyphKey, tuple[GlyphMetrics, bytes]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def rasterize(self, face: FontFace, px: float, char: str) -> tuple[GlyphMetrics, bytes]:
        key = GlyphKey(face.identity, round(float(px), 2), char)
        entry = self._entries.get(key)
        if entry is not None:
            self.hits += 1
            return entry
        self.misses += 1
        entry = self._entries[key] = _rasterize_glyph(face, key.px, char)
        return entry
