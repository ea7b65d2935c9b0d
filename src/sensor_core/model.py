"""
Element model and transfer envelope.

Everything here is plain, immutable data. Constructors validate what can be
checked without knowing the canvas; ``TransferData.check_bounds`` does the
canvas check and is called by the compositor before a frame is drawn.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Tuple, Union

from .conditional import check_ranges
from .errors import FormatError, ValidationError


def _require_int(name: str, value: object, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value}")


def _require_number(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ValidationError(f"{name} must be a number, got {value!r}")


# ------------------------------ Primitives ------------------------------
@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            _require_int(f"Color.{name}", value, 0)
            if value > 255:
                raise ValidationError(f"Color.{name} must be <= 255, got {value}")

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        """Parse ``#RRGGBB`` or ``#RRGGBBAA``."""
        raw = text.strip().lstrip("#")
        if len(raw) not in (6, 8):
            raise ValidationError(f"Invalid hex color {text!r}")
        try:
            channels = [int(raw[i:i + 2], 16) for i in range(0, len(raw), 2)]
        except ValueError as exc:
            raise ValidationError(f"Invalid hex color {text!r}") from exc
        return cls(*channels)

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}"

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @property
    def visible(self) -> bool:
        return self.a > 0


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)
TRANSPARENT = Color(0, 0, 0, 0)


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        _require_int("Rect.x", self.x, 0)
        _require_int("Rect.y", self.y, 0)
        _require_int("Rect.width", self.width, 1)
        _require_int("Rect.height", self.height, 1)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class ElementStyle:
    color: Color = WHITE
    font: Optional[str] = None
    font_size: int = 16
    stroke_width: int = 0
    stroke_color: Optional[Color] = None

    def __post_init__(self):
        _require_int("ElementStyle.font_size", self.font_size, 1)
        _require_int("ElementStyle.stroke_width", self.stroke_width, 0)
        if self.font is not None and not self.font:
            raise ValidationError("ElementStyle.font must be a non-empty name or None")


@dataclass(frozen=True)
class ImageSource:
    """An image either embedded as encoded bytes or referenced by path."""

    data: Optional[bytes] = None
    path: Optional[str] = None

    def __post_init__(self):
        if (self.data is None) == (self.path is None):
            raise ValidationError("ImageSource needs exactly one of data or path")
        if self.data is not None:
            if not self.data:
                raise ValidationError("ImageSource.data is empty")
            object.__setattr__(self, "data", bytes(self.data))
        if self.path is not None and not self.path:
            raise ValidationError("ImageSource.path is empty")

    @classmethod
    def embedded(cls, data: bytes) -> "ImageSource":
        return cls(data=data)

    @classmethod
    def from_path(cls, path: str) -> "ImageSource":
        return cls(path=str(path))

    def __repr__(self) -> str:
        if self.data is not None:
            return f"ImageSource(data=<{len(self.data)} bytes>)"
        return f"ImageSource(path={self.path!r})"


class TextAlign(enum.Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class GraphKind(enum.Enum):
    LINE = "line"
    FILL = "fill"


class ImageFit(enum.Enum):
    STRETCH = "stretch"
    COVER = "cover"


# ------------------------------ Elements ------------------------------
@dataclass(frozen=True)
class StaticImage:
    kind: ClassVar[str] = "static_image"

    image: ImageSource
    rect: Rect
    fit: ImageFit = ImageFit.STRETCH
    name: str = ""


# Raised by str.format for a field or spec that does not apply to its value
_FORMAT_ERRORS = (KeyError, IndexError, ValueError, TypeError, AttributeError)


@dataclass(frozen=True)
class Text:
    kind: ClassVar[str] = "text"

    sensor_id: str
    rect: Rect
    style: ElementStyle = field(default_factory=ElementStyle)
    format: str = "{value} {unit}"
    align: TextAlign = TextAlign.LEFT
    name: str = ""

    def __post_init__(self):
        if not self.sensor_id:
            raise ValidationError("Text.sensor_id is empty")
        try:
            self.format.format(value=0.0, unit="", label="")
        except _FORMAT_ERRORS as exc:
            raise ValidationError(f"Unusable text format {self.format!r}: {exc}") from exc

    def format_value(self, value: float, unit: str = "", label: str = "") -> str:
        try:
            return self.format.format(value=value, unit=unit, label=label).strip()
        except _FORMAT_ERRORS as exc:
            raise FormatError(f"Cannot format {value!r} with {self.format!r}: {exc}") from exc


@dataclass(frozen=True)
class Graph:
    kind: ClassVar[str] = "graph"

    sensor_id: str
    rect: Rect
    graph_kind: GraphKind = GraphKind.LINE
    line_color: Color = WHITE
    fill_color: Optional[Color] = None
    line_width: int = 1
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    background: Color = TRANSPARENT
    border: Color = TRANSPARENT
    name: str = ""

    def __post_init__(self):
        if not self.sensor_id:
            raise ValidationError("Graph.sensor_id is empty")
        _require_int("Graph.line_width", self.line_width, 1)
        for attr in ("min_value", "max_value"):
            value = getattr(self, attr)
            if value is not None:
                _require_number(f"Graph.{attr}", value)
                object.__setattr__(self, attr, float(value))
        if self.min_value is not None and self.max_value is not None and not self.min_value < self.max_value:
            raise ValidationError(
                f"Graph min_value ({self.min_value}) must be below max_value ({self.max_value})"
            )


@dataclass(frozen=True)
class ImageRange:
    """Inclusive ``[lower, upper]`` range mapped to an image."""

    lower: float
    upper: float
    image: ImageSource

    def __post_init__(self):
        _require_number("ImageRange.lower", self.lower)
        _require_number("ImageRange.upper", self.upper)
        object.__setattr__(self, "lower", float(self.lower))
        object.__setattr__(self, "upper", float(self.upper))

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


@dataclass(frozen=True)
class ConditionalImage:
    kind: ClassVar[str] = "conditional_image"

    sensor_id: str
    rect: Rect
    ranges: Tuple[ImageRange, ...] = ()
    default: Optional[ImageSource] = None
    fit: ImageFit = ImageFit.STRETCH
    name: str = ""

    def __post_init__(self):
        if not self.sensor_id:
            raise ValidationError("ConditionalImage.sensor_id is empty")
        object.__setattr__(self, "ranges", tuple(self.ranges))
        if not self.ranges and self.default is None:
            raise ValidationError("ConditionalImage needs at least one range or a default image")
        check_ranges(self.ranges)


RenderElement = Union[StaticImage, Text, Graph, ConditionalImage]
Background = Union[Color, ImageSource]

ELEMENT_TYPES = (StaticImage, Text, Graph, ConditionalImage)


# ------------------------------ Envelope ------------------------------
@dataclass(frozen=True)
class TransferData:
    width: int
    height: int
    background: Background = BLACK
    elements: Tuple[RenderElement, ...] = ()

    def __post_init__(self):
        _require_int("TransferData.width", self.width, 1)
        _require_int("TransferData.height", self.height, 1)
        if not isinstance(self.background, (Color, ImageSource)):
            raise ValidationError(f"Unsupported background {self.background!r}")
        object.__setattr__(self, "elements", tuple(self.elements))
        for element in self.elements:
            if not isinstance(element, ELEMENT_TYPES):
                raise ValidationError(f"Unsupported element {element!r}")

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def check_bounds(self) -> None:
        """Raise ``ValidationError`` if an element leaves the canvas."""
        for index, element in enumerate(self.elements):
            rect = element.rect
            if rect.right > self.width or rect.bottom > self.height:
                raise ValidationError(
                    f"Element {index} ({element.kind} {element.name!r}) at "
                    f"{rect.x},{rect.y} {rect.width}x{rect.height} exceeds the "
                    f"{self.width}x{self.height} canvas"
                )


# ------------------------------ Sensor input ------------------------------
@dataclass(frozen=True)
class SensorValue:
    value: float
    history: Tuple[float, ...] = ()
    unit: str = ""
    label: str = ""

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "history", tuple(float(v) for v in self.history))


__all__ = [
    "Color",
    "WHITE",
    "BLACK",
    "TRANSPARENT",
    "Rect",
    "ElementStyle",
    "ImageSource",
    "TextAlign",
    "GraphKind",
    "ImageFit",
    "StaticImage",
    "Text",
    "Graph",
    "ImageRange",
    "ConditionalImage",
    "RenderElement",
    "Background",
    "ELEMENT_TYPES",
    "TransferData",
    "SensorValue",
]
