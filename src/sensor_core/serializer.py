"""
Binary wire format for ``TransferData``.

Layout (all integers little endian):

    offset  size  field
    0       4     magic b"SCTD"
    4       1     format version
    5       1     flags (reserved, 0)
    6       4     body length (u32)
    10      n     body
    10+n    4     CRC32 of body (u32)

Body: canvas width/height (u16 each), background, element count (u16),
elements. Each element starts with a one byte kind tag. Strings are a u16
length plus UTF-8, blobs a u32 length plus raw bytes, floats are f64 so
values survive a round trip unchanged. Colors are 4 bytes RGBA.
"""

from __future__ import annotations

import logging
import struct
import zlib
from typing import Callable, Dict, Optional, Sequence, Type

from .errors import DecodeError, ValidationError
from .model import (
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
    StaticImage,
    Text,
    TextAlign,
    TransferData,
)

logger = logging.getLogger(__name__)

MAGIC = b"SCTD"
VERSION = 1

_HEADER = struct.Struct("<4sBBI")
_CRC = struct.Struct("<I")
_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_F64 = struct.Struct("<d")
_RGBA = struct.Struct("<4B")
_RECT = struct.Struct("<4H")

TAG_STATIC_IMAGE = 1
TAG_TEXT = 2
TAG_GRAPH = 3
TAG_CONDITIONAL_IMAGE = 4

_BACKGROUND_COLOR = 0
_BACKGROUND_IMAGE = 1
_IMAGE_DATA = 0
_IMAGE_PATH = 1

_STYLE_HAS_FONT = 0x01
_STYLE_HAS_STROKE_COLOR = 0x02

# Wire order of enum members; append only
_ALIGNS = (TextAlign.LEFT, TextAlign.CENTER, TextAlign.RIGHT)
_GRAPH_KINDS = (GraphKind.LINE, GraphKind.FILL)
_FITS = (ImageFit.STRETCH, ImageFit.COVER)


# ------------------------------ Writer ------------------------------
class _Writer:
    def __init__(self):
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def pack(self, fmt: struct.Struct, *values) -> None:
        self._buf += fmt.pack(*values)

    def u8(self, value: int) -> None:
        self.pack(_U8, value)

    def u16(self, value: int) -> None:
        self.pack(_U16, value)

    def f64(self, value: float) -> None:
        self.pack(_F64, value)

    def string(self, value: str) -> None:
        raw = value.encode("utf-8")
        self.u16(len(raw))
        self._buf += raw

    def blob(self, value: bytes) -> None:
        self.pack(_U32, len(value))
        self._buf += value

    def color(self, value: Color) -> None:
        self.pack(_RGBA, *value.as_tuple())

    def optional_color(self, value: Optional[Color]) -> None:
        self.u8(value is not None)
        if value is not None:
            self.color(value)

    def optional_f64(self, value: Optional[float]) -> None:
        self.u8(value is not None)
        if value is not None:
            self.f64(value)

    def enum(self, value, members: Sequence) -> None:
        self.u8(members.index(value))

    def rect(self, value: Rect) -> None:
        self.pack(_RECT, value.x, value.y, value.width, value.height)

    def image(self, value: ImageSource) -> None:
        if value.data is not None:
            self.u8(_IMAGE_DATA)
            self.blob(value.data)
        else:
            self.u8(_IMAGE_PATH)
            self.string(value.path)

    def style(self, value: ElementStyle) -> None:
        flags = 0
        if value.font is not None:
            flags |= _STYLE_HAS_FONT
        if value.stroke_color is not None:
            flags |= _STYLE_HAS_STROKE_COLOR
        self.color(value.color)
        self.u8(flags)
        if value.font is not None:
            self.string(value.font)
        self.u16(value.font_size)
        self.u8(value.stroke_width)
        if value.stroke_color is not None:
            self.color(value.stroke_color)


def _write_static_image(w: _Writer, element: StaticImage) -> None:
    w.image(element.image)
    w.enum(element.fit, _FITS)


def _write_text(w: _Writer, element: Text) -> None:
    w.string(element.sensor_id)
    w.string(element.format)
    w.enum(element.align, _ALIGNS)
    w.style(element.style)


def _write_graph(w: _Writer, element: Graph) -> None:
    w.string(element.sensor_id)
    w.enum(element.graph_kind, _GRAPH_KINDS)
    w.color(element.line_color)
    w.optional_color(element.fill_color)
    w.u8(element.line_width)
    w.optional_f64(element.min_value)
    w.optional_f64(element.max_value)
    w.color(element.background)
    w.color(element.border)


def _write_conditional_image(w: _Writer, element: ConditionalImage) -> None:
    w.string(element.sensor_id)
    w.enum(element.fit, _FITS)
    w.u16(len(element.ranges))
    for rng in element.ranges:
        w.f64(rng.lower)
        w.f64(rng.upper)
        w.image(rng.image)
    w.u8(element.default is not None)
    if element.default is not None:
        w.image(element.default)


_WRITERS: Dict[Type, tuple] = {
    StaticImage: (TAG_STATIC_IMAGE, _write_static_image),
    Text: (TAG_TEXT, _write_text),
    Graph: (TAG_GRAPH, _write_graph),
    ConditionalImage: (TAG_CONDITIONAL_IMAGE, _write_conditional_image),
}


def serialize(envelope: TransferData) -> bytes:
    """Encode ``envelope`` into the wire format.

    Raises ``ValidationError`` if a value does not fit its wire field
    (e.g. a canvas wider than 65535 pixels).
    """
    w = _Writer()
    try:
        w.u16(envelope.width)
        w.u16(envelope.height)
        if isinstance(envelope.background, Color):
            w.u8(_BACKGROUND_COLOR)
            w.color(envelope.background)
        else:
            w.u8(_BACKGROUND_IMAGE)
            w.image(envelope.background)
        w.u16(len(envelope.elements))
        for element in envelope.elements:
            tag, write = _WRITERS[type(element)]
            w.u8(tag)
            w.string(element.name)
            w.rect(element.rect)
            write(w, element)
    except struct.error as exc:
        raise ValidationError(f"Envelope value out of range for wire format: {exc}") from exc

    body = w.getvalue()
    if len(body) > 0xFFFFFFFF:
        raise ValidationError("Envelope too large to serialize")
    data = _HEADER.pack(MAGIC, VERSION, 0, len(body)) + body + _CRC.pack(zlib.crc32(body) & 0xFFFFFFFF)
    logger.debug("Serialized envelope: %d elements, %d bytes", len(envelope.elements), len(data))
    return data


# ------------------------------ Reader ------------------------------
class _Reader:
    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def unpack(self, fmt: struct.Struct) -> tuple:
        try:
            values = fmt.unpack_from(self._data, self._offset)
        except struct.error as exc:
            raise DecodeError(f"Truncated envelope at offset {self._offset}") from exc
        self._offset += fmt.size
        return values

    def u8(self) -> int:
        return self.unpack(_U8)[0]

    def u16(self) -> int:
        return self.unpack(_U16)[0]

    def u32(self) -> int:
        return self.unpack(_U32)[0]

    def f64(self) -> float:
        return self.unpack(_F64)[0]

    def flag(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DecodeError(f"Invalid presence flag {value} at offset {self._offset - 1}")
        return bool(value)

    def raw(self, length: int) -> bytes:
        if length > self.remaining:
            raise DecodeError(f"Truncated envelope: need {length} bytes at offset {self._offset}, have {self.remaining}")
        value = self._data[self._offset:self._offset + length]
        self._offset += length
        return bytes(value)

    def string(self) -> str:
        raw = self.raw(self.u16())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Invalid UTF-8 string before offset {self._offset}") from exc

    def blob(self) -> bytes:
        return self.raw(self.u32())

    def color(self) -> Color:
        return Color(*self.unpack(_RGBA))

    def optional_color(self) -> Optional[Color]:
        return self.color() if self.flag() else None

    def optional_f64(self) -> Optional[float]:
        return self.f64() if self.flag() else None

    def enum(self, members: Sequence, what: str):
        index = self.u8()
        if index >= len(members):
            raise DecodeError(f"Unknown {what} tag {index} at offset {self._offset - 1}")
        return members[index]

    def rect(self) -> Rect:
        return Rect(*self.unpack(_RECT))

    def image(self) -> ImageSource:
        tag = self.u8()
        if tag == _IMAGE_DATA:
            return ImageSource(data=self.blob())
        if tag == _IMAGE_PATH:
            return ImageSource(path=self.string())
        raise DecodeError(f"Unknown image source tag {tag} at offset {self._offset - 1}")

    def style(self) -> ElementStyle:
        color = self.color()
        flags = self.u8()
        if flags & ~(_STYLE_HAS_FONT | _STYLE_HAS_STROKE_COLOR):
            raise DecodeError(f"Unknown style flags 0x{flags:02x}")
        font = self.string() if flags & _STYLE_HAS_FONT else None
        font_size = self.u16()
        stroke_width = self.u8()
        stroke_color = self.color() if flags & _STYLE_HAS_STROKE_COLOR else None
        return ElementStyle(
            color=color,
            font=font,
            font_size=font_size,
            stroke_width=stroke_width,
            stroke_color=stroke_color,
        )


def _read_static_image(r: _Reader, name: str, rect: Rect) -> StaticImage:
    image = r.image()
    return StaticImage(image=image, rect=rect, fit=r.enum(_FITS, "image fit"), name=name)


def _read_text(r: _Reader, name: str, rect: Rect) -> Text:
    sensor_id = r.string()
    fmt = r.string()
    align = r.enum(_ALIGNS, "text alignment")
    style = r.style()
    return Text(sensor_id=sensor_id, rect=rect, style=style, format=fmt, align=align, name=name)


def _read_graph(r: _Reader, name: str, rect: Rect) -> Graph:
    sensor_id = r.string()
    graph_kind = r.enum(_GRAPH_KINDS, "graph kind")
    line_color = r.color()
    fill_color = r.optional_color()
    line_width = r.u8()
    min_value = r.optional_f64()
    max_value = r.optional_f64()
    background = r.color()
    border = r.color()
    return Graph(
        sensor_id=sensor_id,
        rect=rect,
        graph_kind=graph_kind,
        line_color=line_color,
        fill_color=fill_color,
        line_width=line_width,
        min_value=min_value,
        max_value=max_value,
        background=background,
        border=border,
        name=name,
    )


def _read_conditional_image(r: _Reader, name: str, rect: Rect) -> ConditionalImage:
    sensor_id = r.string()
    fit = r.enum(_FITS, "image fit")
    ranges = []
    for _ in range(r.u16()):
        lower = r.f64()
        upper = r.f64()
        ranges.append(ImageRange(lower, upper, r.image()))
    default = r.image() if r.flag() else None
    return ConditionalImage(
        sensor_id=sensor_id,
        rect=rect,
        ranges=tuple(ranges),
        default=default,
        fit=fit,
        name=name,
    )


_READERS: Dict[int, Callable[[_Reader, str, Rect], RenderElement]] = {
    TAG_STATIC_IMAGE: _read_static_image,
    TAG_TEXT: _read_text,
    TAG_GRAPH: _read_graph,
    TAG_CONDITIONAL_IMAGE: _read_conditional_image,
}


def _read_header(data: bytes) -> bytes:
    if len(data) < _HEADER.size + _CRC.size:
        raise DecodeError(f"Envelope too short: {len(data)} bytes")
    magic, version, flags, body_len = _HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        raise DecodeError(f"Bad magic {magic!r}, expected {MAGIC!r}")
    if version != VERSION:
        raise DecodeError(f"Unsupported envelope version {version}, expected {VERSION}")
    if flags != 0:
        raise DecodeError(f"Unsupported envelope flags 0x{flags:02x}")
    expected = _HEADER.size + body_len + _CRC.size
    if len(data) != expected:
        raise DecodeError(f"Envelope length mismatch: header declares {expected} bytes, got {len(data)}")
    body = data[_HEADER.size:_HEADER.size + body_len]
    (crc,) = _CRC.unpack_from(data, _HEADER.size + body_len)
    if zlib.crc32(body) & 0xFFFFFFFF != crc:
        raise DecodeError("Envelope checksum mismatch")
    return body


def deserialize(data: bytes) -> TransferData:
    """Decode envelope bytes.

    Raises ``DecodeError`` for anything that is not a complete, valid
    envelope; a partially decoded envelope is never returned.
    """
    body = _read_header(bytes(data))
    r = _Reader(body)
    try:
        width = r.u16()
        height = r.u16()
        bg_tag = r.u8()
        if bg_tag == _BACKGROUND_COLOR:
            background = r.color()
        elif bg_tag == _BACKGROUND_IMAGE:
            background = r.image()
        else:
            raise DecodeError(f"Unknown background tag {bg_tag}")

        elements = []
        for index in range(r.u16()):
            tag = r.u8()
            read = _READERS.get(tag)
            if read is None:
                raise DecodeError(f"Unknown element kind tag {tag} for element {index}")
            name = r.string()
            rect = r.rect()
            elements.append(read(r, name, rect))

        if r.remaining:
            raise DecodeError(f"{r.remaining} trailing bytes after last element")
        envelope = TransferData(width=width, height=height, background=background, elements=tuple(elements))
    except ValidationError as exc:
        raise DecodeError(f"Envelope failed validation: {exc}") from exc

    logger.debug("Deserialized envelope: %dx%d, %d elements", width, height, len(elements))
    return envelope


__all__ = ["MAGIC", "VERSION", "serialize", "deserialize"]
