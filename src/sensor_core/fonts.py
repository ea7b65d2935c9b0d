"""
Font loading, text measurement and glyph rasterization.

Text runs are assembled from per-character glyph patches. Patches are cached
by (character, font, size, color, stroke) so that a layout whose labels only
change their digits re-renders from cache on every tick.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from .config import DEFAULT_FONT_NAMES
from .errors import FontLoadError
from .model import Color

logger = logging.getLogger(__name__)

PILFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# (left, top, right, bottom, advance) relative to the pen position
_Metrics = Tuple[int, int, int, int, float]
_GlyphKey = Tuple[str, Optional[str], int, Color, int, Optional[Color]]


def _tinted(mask: Image.Image, color: Color) -> Image.Image:
    layer = Image.new("RGBA", mask.size, (color.r, color.g, color.b, 0))
    if color.a != 255:
        mask = mask.point(lambda v: v * color.a // 255)
    layer.putalpha(mask)
    return layer


class FontService:
    """Per-session font and glyph cache.

    Not thread safe; every rendering session owns its own instance.
    """

    def __init__(
        self,
        *,
        antialias: bool = True,
        font_dir: Optional[Path] = None,
        default_fonts: Sequence[str] = DEFAULT_FONT_NAMES,
        cache_size: int = 4096,
    ):
        self._antialias = antialias
        self._font_dir = font_dir
        self._default_fonts = tuple(default_fonts)
        self._cache_size = cache_size
        self._fonts: Dict[Tuple[Optional[str], int], PILFont] = {}
        self._metrics: Dict[Tuple[str, Optional[str], int, int], _Metrics] = {}
        self._glyphs: "OrderedDict[_GlyphKey, Optional[Image.Image]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def antialias(self) -> bool:
        return self._antialias

    # ------------------------------ Fonts ------------------------------
    def _candidates(self, names: Sequence[str]) -> List[str]:
        out: List[str] = []
        for name in names:
            if self._font_dir is not None and not Path(name).is_absolute():
                out.append(str(self._font_dir / name))
            out.append(name)
        return out

    def get_font(self, font: Optional[str], size: int) -> PILFont:
        key = (font, size)
        cached = self._fonts.get(key)
        if cached is not None:
            return cached

        names = [font] if font is not None else list(self._default_fonts)
        loaded: Optional[PILFont] = None
        for candidate in self._candidates(names):
            try:
                loaded = ImageFont.truetype(candidate, size)
                break
            except (OSError, ValueError):
                continue

        if loaded is None:
            if font is not None:
                raise FontLoadError(f"Cannot load font '{font}' at size {size}")
            logger.debug("No default font found, using Pillow built-in font at size %d", size)
            loaded = ImageFont.load_default(size=size)

        self._fonts[key] = loaded
        return loaded

    # ------------------------------ Layout ------------------------------
    def _glyph_metrics(self, ch: str, font: Optional[str], size: int, stroke_width: int) -> _Metrics:
        key = (ch, font, size, stroke_width)
        metrics = self._metrics.get(key)
        if metrics is None:
            pil_font = self.get_font(font, size)
            left, top, right, bottom = pil_font.getbbox(ch, stroke_width=stroke_width)
            metrics = (int(left), int(top), int(right), int(bottom), float(pil_font.getlength(ch)))
            self._metrics[key] = metrics
        return metrics

    def _layout(self, text: str, font: Optional[str], size: int, stroke_width: int):
        """Place each glyph; returns the placements and the run's ink box."""
        placements = []
        pen = 0.0
        box = None
        for ch in text.replace("\n", " "):
            left, top, right, bottom, advance = self._glyph_metrics(ch, font, size, stroke_width)
            origin = int(round(pen))
            if right > left and bottom > top:
                placements.append((ch, origin + left, top))
                glyph_box = (origin + left, top, origin + right, bottom)
                if box is None:
                    box = glyph_box
                else:
                    box = (min(box[0], glyph_box[0]), min(box[1], glyph_box[1]),
                           max(box[2], glyph_box[2]), max(box[3], glyph_box[3]))
            pen += advance
        return placements, box

    def measure(self, text: str, font: Optional[str], size: int, stroke_width: int = 0) -> Tuple[int, int]:
        """Pixel size of the ink ``text`` occupies when rasterized."""
        _, box = self._layout(text, font, size, stroke_width)
        if box is None:
            return (0, 0)
        return (box[2] - box[0], box[3] - box[1])

    # ------------------------------ Raster ------------------------------
    def _glyph(
        self,
        ch: str,
        font: Optional[str],
        size: int,
        color: Color,
        stroke_width: int,
        stroke_color: Optional[Color],
    ) -> Optional[Image.Image]:
        key = (ch, font, size, color, stroke_width, stroke_color)
        if key in self._glyphs:
            self.hits += 1
            self._glyphs.move_to_end(key)
            return self._glyphs[key]

        self.misses += 1
        left, top, right, bottom, _ = self._glyph_metrics(ch, font, size, stroke_width)
        patch = None
        if right > left and bottom > top:
            pil_font = self.get_font(font, size)
            glyph_size = (right - left, bottom - top)
            fill_mask = Image.new("L", glyph_size, 0)
            d = ImageDraw.Draw(fill_mask)
            d.fontmode = "L" if self._antialias else "1"
            d.text((-left, -top), ch, font=pil_font, fill=255)
            patch = _tinted(fill_mask, color)
            if stroke_width > 0:
                stroke_mask = Image.new("L", glyph_size, 0)
                d = ImageDraw.Draw(stroke_mask)
                d.fontmode = "L" if self._antialias else "1"
                d.text((-left, -top), ch, font=pil_font, fill=255, stroke_width=stroke_width, stroke_fill=255)
                outline = _tinted(stroke_mask, stroke_color or color)
                outline.alpha_composite(patch)
                patch = outline

        if self._cache_size > 0:
            self._glyphs[key] = patch
            if len(self._glyphs) > self._cache_size:
                self._glyphs.popitem(last=False)
        return patch

    def rasterize(
        self,
        text: str,
        font: Optional[str],
        size: int,
        color: Color,
        stroke_width: int = 0,
        stroke_color: Optional[Color] = None,
    ) -> Image.Image:
        """Render ``text`` into a transparent RGBA patch of ``measure`` size."""
        placements, box = self._layout(text, font, size, stroke_width)
        if box is None:
            return Image.new("RGBA", (0, 0))
        run = Image.new("RGBA", (box[2] - box[0], box[3] - box[1]), (0, 0, 0, 0))
        for ch, x, y in placements:
            glyph = self._glyph(ch, font, size, color, stroke_width, stroke_color)
            if glyph is not None:
                run.alpha_composite(glyph, dest=(x - box[0], y - box[1]))
        return run

    def cache_info(self) -> Dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "glyphs": len(self._glyphs),
            "fonts": len(self._fonts),
        }

    def clear(self) -> None:
        self._fonts.clear()
        self._metrics.clear()
        self._glyphs.clear()
        self.hits = 0
        self.misses = 0


__all__ = ["FontService"]
