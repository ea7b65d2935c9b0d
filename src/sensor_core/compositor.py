"""
Compositor: turns a ``TransferData`` plus a sensor snapshot into a frame.

Elements are painted in list order onto an RGBA working canvas; each one is
rendered into a patch of its own rect and alpha-blended into place. Errors
confined to one element (missing sensor, unresolvable conditional image,
missing font or image) are collected on the result and never stop the
remaining elements from rendering.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type

from PIL import Image

from .conditional import resolve_image
from .config import FailurePolicy, RenderOptions
from .errors import ElementError
from .fonts import FontService
from .graph import render_graph
from .images import AssetLoader, ImageLoader
from .model import (
    Color,
    ConditionalImage,
    Graph,
    ImageFit,
    RenderElement,
    StaticImage,
    Text,
    TextAlign,
    TransferData,
)
from .sensors import SensorSnapshot, lookup
from .serializer import deserialize

logger = logging.getLogger(__name__)

# Index reported for a failed background image
BACKGROUND_INDEX = -1


@dataclass
class ElementFailure:
    index: int
    element: Optional[RenderElement]
    error: ElementError

    def __str__(self) -> str:
        if self.element is None:
            return f"background: {self.error}"
        return f"element {self.index} ({self.element.kind} {self.element.name!r}): {self.error}"


@dataclass
class RenderResult:
    image: Image.Image
    failures: List[ElementFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_bytes(self) -> bytes:
        """Row-major RGB pixel data."""
        return self.image.tobytes()

    def encode(self, format: str = "PNG", quality: int = 80) -> bytes:
        bio = io.BytesIO()
        if format.upper() in ("JPEG", "JPG"):
            self.image.save(bio, format="JPEG", quality=quality, optimize=False, progressive=False, subsampling="4:2:0")
        else:
            self.image.save(bio, format=format)
        return bio.getvalue()

    def raise_for_failures(self) -> None:
        if self.failures:
            raise self.failures[0].error


def _blend(canvas: Image.Image, patch: Image.Image, x: int, y: int) -> None:
    """Alpha-blend ``patch`` onto ``canvas`` at (x, y), clipped to the canvas."""
    pw, ph = patch.size
    left, top = max(0, x), max(0, y)
    right, bottom = min(canvas.width, x + pw), min(canvas.height, y + ph)
    if right <= left or bottom <= top:
        return
    if (left, top, right, bottom) != (x, y, x + pw, y + ph):
        patch = patch.crop((left - x, top - y, right - x, bottom - y))
    canvas.alpha_composite(patch, dest=(left, top))


class RenderSession:
    """Owns the font, glyph and image caches for a series of renders.

    Sessions are independent: two sessions never share cached state, so
    parallel previews each create their own.
    """

    def __init__(self, options: Optional[RenderOptions] = None, asset_loader: Optional[AssetLoader] = None):
        self.options = options or RenderOptions()
        self.fonts = FontService(
            antialias=self.options.antialias,
            font_dir=self.options.font_dir,
            default_fonts=self.options.default_fonts,
            cache_size=self.options.glyph_cache_size,
        )
        self.images = ImageLoader(asset_loader, self.options.asset_dir, self.options.image_cache_size)
        self.frames = 0
        self._renderers: Dict[Type, Callable[[RenderElement, SensorSnapshot], Image.Image]] = {
            StaticImage: self._render_static_image,
            Text: self._render_text,
            Graph: self._render_graph,
            ConditionalImage: self._render_conditional_image,
        }
        logger.info(
            "Render session started (antialias=%s, failure_policy=%s)",
            self.options.antialias,
            self.options.failure_policy.value,
        )

    def __enter__(self) -> "RenderSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        logger.info(
            "Render session closed after %d frames (glyph cache: %s, image cache: %s)",
            self.frames,
            self.fonts.cache_info(),
            self.images.cache_info(),
        )
        self.fonts.clear()
        self.images.clear()

    # ------------------------------ Element renderers ------------------------------
    def _render_static_image(self, element: StaticImage, sensors: SensorSnapshot) -> Image.Image:
        return self.images.fitted(element.image, element.rect.size, element.fit)

    def _render_text(self, element: Text, sensors: SensorSnapshot) -> Image.Image:
        sensor = lookup(sensors, element.sensor_id)
        text = element.format_value(sensor.value, sensor.unit, sensor.label)
        style = element.style
        patch = self.fonts.rasterize(
            text,
            style.font,
            style.font_size,
            style.color,
            stroke_width=style.stroke_width,
            stroke_color=style.stroke_color,
        )
        w, h = element.rect.size
        layer = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        pw, ph = patch.size
        if pw == 0 or ph == 0:
            return layer
        # Vertically centred, horizontally aligned
        y = (h - ph) // 2
        if element.align is TextAlign.CENTER:
            x = (w - pw) // 2
        elif element.align is TextAlign.RIGHT:
            x = w - pw
        else:
            x = 0
        _blend(layer, patch, x, y)
        return layer

    def _render_graph(self, element: Graph, sensors: SensorSnapshot) -> Image.Image:
        sensor = lookup(sensors, element.sensor_id)
        return render_graph(element, sensor.history)

    def _render_conditional_image(self, element: ConditionalImage, sensors: SensorSnapshot) -> Image.Image:
        sensor = lookup(sensors, element.sensor_id)
        source = resolve_image(sensor.value, element.ranges, element.default)
        return self.images.fitted(source, element.rect.size, element.fit)

    # ------------------------------ Frame ------------------------------
    def _paint_background(self, canvas: Image.Image, envelope: TransferData, failures: List[ElementFailure]) -> None:
        background = envelope.background
        if isinstance(background, Color):
            if background.a == 255:
                canvas.paste(background.as_tuple(), (0, 0, *canvas.size))
            else:
                canvas.alpha_composite(Image.new("RGBA", canvas.size, background.as_tuple()))
            return
        try:
            canvas.alpha_composite(self.images.fitted(background, canvas.size, ImageFit.COVER))
        except ElementError as exc:
            logger.warning("Background failed: %s", exc)
            failures.append(ElementFailure(BACKGROUND_INDEX, None, exc))

    def _handle_failure(self, canvas: Image.Image, failure: ElementFailure) -> None:
        if self.options.failure_policy is not FailurePolicy.PLACEHOLDER:
            logger.warning("Skipping %s", failure)
            return
        logger.warning("Painting placeholder for %s", failure)
        if failure.element is not None:
            rect = failure.element.rect
            _blend(canvas, Image.new("RGBA", rect.size, self.options.placeholder_color.as_tuple()), rect.x, rect.y)

    def render(self, envelope: TransferData, sensors: SensorSnapshot) -> RenderResult:
        """Render one frame.

        Raises ``ValidationError`` when an element does not fit the canvas;
        element level errors are returned in ``RenderResult.failures``.
        """
        envelope.check_bounds()
        canvas = Image.new("RGBA", envelope.size, (0, 0, 0, 255))
        failures: List[ElementFailure] = []
        self._paint_background(canvas, envelope, failures)

        for index, element in enumerate(envelope.elements):
            try:
                patch = self._renderers[type(element)](element, sensors)
            except ElementError as exc:
                failure = ElementFailure(index, element, exc)
                failures.append(failure)
                self._handle_failure(canvas, failure)
                continue
            _blend(canvas, patch, element.rect.x, element.rect.y)

        self.frames += 1
        return RenderResult(image=canvas.convert("RGB"), failures=failures)

    def render_bytes(self, data: bytes, sensors: SensorSnapshot) -> RenderResult:
        """Decode envelope bytes and render them."""
        return self.render(deserialize(data), sensors)


def render(
    envelope: TransferData,
    sensors: SensorSnapshot,
    options: Optional[RenderOptions] = None,
) -> RenderResult:
    """Render one frame with a throwaway session."""
    return RenderSession(options).render(envelope, sensors)


__all__ = ["BACKGROUND_INDEX", "ElementFailure", "RenderResult", "RenderSession", "render"]
