import math

import pytest

from sensor_core import (
    Color,
    ConditionalImage,
    ElementStyle,
    FormatError,
    Graph,
    ImageRange,
    ImageSource,
    Rect,
    SensorValue,
    StaticImage,
    Text,
    TransferData,
    ValidationError,
)


def test_rect_rejects_negative_position():
    with pytest.raises(ValidationError):
        Rect(-1, 0, 10, 10)


@pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 10)])
def test_rect_requires_positive_size(width, height):
    with pytest.raises(ValidationError):
        Rect(0, 0, width, height)


def test_rect_rejects_non_integers():
    with pytest.raises(ValidationError):
        Rect(0, 0, 10.5, 10)


def test_color_from_hex():
    assert Color.from_hex("#ff000080") == Color(255, 0, 0, 128)
    assert Color.from_hex("00ff00") == Color(0, 255, 0, 255)
    assert Color(1, 2, 3, 4).to_hex() == "#01020304"


@pytest.mark.parametrize("text", ["#fff", "#gg0000", ""])
def test_color_from_hex_rejects_garbage(text):
    with pytest.raises(ValidationError):
        Color.from_hex(text)


def test_color_channel_range():
    with pytest.raises(ValidationError):
        Color(256, 0, 0)


def test_style_font_size_must_be_positive():
    with pytest.raises(ValidationError):
        ElementStyle(font_size=0)


def test_image_source_needs_exactly_one_origin(red_png):
    with pytest.raises(ValidationError):
        ImageSource()
    with pytest.raises(ValidationError):
        ImageSource(data=red_png, path="a.png")
    assert ImageSource.embedded(red_png).data == red_png


def test_graph_explicit_bounds_must_be_ordered():
    with pytest.raises(ValidationError):
        Graph(sensor_id="cpu", rect=Rect(0, 0, 10, 10), min_value=5, max_value=5)
    with pytest.raises(ValidationError):
        Graph(sensor_id="cpu", rect=Rect(0, 0, 10, 10), min_value=10, max_value=5)
    graph = Graph(sensor_id="cpu", rect=Rect(0, 0, 10, 10), min_value=0)
    assert graph.min_value == 0.0 and graph.max_value is None


def test_graph_rejects_nan_bounds():
    with pytest.raises(ValidationError):
        Graph(sensor_id="cpu", rect=Rect(0, 0, 10, 10), max_value=math.nan)


def test_conditional_image_rejects_overlapping_ranges(red_png):
    img = ImageSource.embedded(red_png)
    with pytest.raises(ValidationError, match="overlap"):
        ConditionalImage(
            sensor_id="t",
            rect=Rect(0, 0, 10, 10),
            ranges=(ImageRange(0, 50, img), ImageRange(50, 100, img)),
        )


def test_conditional_image_needs_ranges_or_default(red_png):
    with pytest.raises(ValidationError):
        ConditionalImage(sensor_id="t", rect=Rect(0, 0, 10, 10))
    element = ConditionalImage(sensor_id="t", rect=Rect(0, 0, 10, 10), default=ImageSource.embedded(red_png))
    assert element.ranges == ()


def test_conditional_image_ranges_become_tuple(red_png):
    img = ImageSource.embedded(red_png)
    element = ConditionalImage(sensor_id="t", rect=Rect(0, 0, 10, 10), ranges=[ImageRange(0, 1, img)])
    assert isinstance(element.ranges, tuple)


@pytest.mark.parametrize("fmt", ["{temperature}", "{0}", "{value[0]}", "{value.nope}", "{value:q}"])
def test_text_rejects_unusable_format(fmt):
    with pytest.raises(ValidationError):
        Text(sensor_id="cpu", rect=Rect(0, 0, 10, 10), format=fmt)


def test_text_format_failing_on_live_unit_is_an_element_error():
    text = Text(sensor_id="cpu", rect=Rect(0, 0, 10, 10), format="{value:{unit}}")
    assert text.format_value(1.5) == "1.5"
    with pytest.raises(FormatError):
        text.format_value(1.5, "°C")


def test_text_formats_value_unit_and_label():
    text = Text(sensor_id="cpu", rect=Rect(0, 0, 10, 10), format="{label}: {value:.1f}{unit}")
    assert text.format_value(21.456, "°C", "CPU") == "CPU: 21.5°C"
    assert Text(sensor_id="cpu", rect=Rect(0, 0, 10, 10)).format_value(3.0) == "3.0"


def test_envelope_requires_positive_canvas():
    with pytest.raises(ValidationError):
        TransferData(width=0, height=10)
    with pytest.raises(ValidationError):
        TransferData(width=10, height=-1)


def test_envelope_check_bounds(red_png):
    inside = StaticImage(image=ImageSource.embedded(red_png), rect=Rect(90, 90, 10, 10))
    outside = StaticImage(image=ImageSource.embedded(red_png), rect=Rect(95, 0, 10, 10))
    TransferData(width=100, height=100, elements=[inside]).check_bounds()
    with pytest.raises(ValidationError, match="exceeds"):
        TransferData(width=100, height=100, elements=[inside, outside]).check_bounds()


def test_envelope_rejects_foreign_elements():
    with pytest.raises(ValidationError):
        TransferData(width=10, height=10, elements=["not an element"])


def test_envelopes_compare_field_by_field(full_envelope):
    copy = TransferData(
        width=full_envelope.width,
        height=full_envelope.height,
        background=full_envelope.background,
        elements=list(full_envelope.elements),
    )
    assert copy == full_envelope
    assert copy != TransferData(width=320, height=240, elements=full_envelope.elements[1:])


def test_sensor_value_coerces_history():
    value = SensorValue(value=3, history=[1, 2, 3])
    assert value.value == 3.0
    assert value.history == (1.0, 2.0, 3.0)
