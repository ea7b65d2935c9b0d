"""
sensor-core: element model, wire format and renderer shared by the sensor
host and the display.

    envelope = TransferData(width=480, height=480, elements=(...))
    data = serialize(envelope)            # host side, sent to the display
    with RenderSession() as session:      # display side, or host preview
        frame = session.render(deserialize(data), {"cpu_temp": 54.0})
"""

from .compositor import ElementFailure, RenderResult, RenderSession, render
from .conditional import check_ranges, resolve_image
from .config import FailurePolicy, RenderOptions
from .errors import (
    DecodeError,
    ElementError,
    FontLoadError,
    FormatError,
    ImageLoadError,
    MissingSensorError,
    ResolutionError,
    SensorCoreError,
    SensorValueError,
    ValidationError,
)
from .fonts import FontService
from .graph import effective_bounds, plot_points, render_graph
from .images import ImageLoader
from .model import (
    BLACK,
    TRANSPARENT,
    WHITE,
    Color,
    ConditionalImage,
    ElementStyle,
    Graph,
    GraphKind,
    ImageFit,
    ImageRange,
    ImageSource,
    Rect,
    RenderElement,
    SensorValue,
    StaticImage,
    Text,
    TextAlign,
    TransferData,
)
from .serializer import deserialize, serialize

__version__ = "0.1.0"

__all__ = [
    "BLACK",
    "TRANSPARENT",
    "WHITE",
    "Color",
    "ConditionalImage",
    "DecodeError",
    "ElementError",
    "ElementFailure",
    "ElementStyle",
    "FailurePolicy",
    "FontLoadError",
    "FontService",
    "FormatError",
    "Graph",
    "GraphKind",
    "ImageFit",
    "ImageLoadError",
    "ImageLoader",
    "ImageRange",
    "ImageSource",
    "MissingSensorError",
    "Rect",
    "RenderElement",
    "RenderOptions",
    "RenderResult",
    "RenderSession",
    "ResolutionError",
    "SensorCoreError",
    "SensorValueError",
    "SensorValue",
    "StaticImage",
    "Text",
    "TextAlign",
    "TransferData",
    "ValidationError",
    "check_ranges",
    "deserialize",
    "effective_bounds",
    "plot_points",
    "render",
    "render_graph",
    "resolve_image",
    "serialize",
]
