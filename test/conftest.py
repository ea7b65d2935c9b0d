"""Shared fixtures for the sensor-core tests."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add the src directory to the path so tests run from a plain checkout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sensor_core import (  # noqa: E402
    Color,
    ConditionalImage,
    ElementStyle,
    Graph,
    GraphKind,
    ImageFit,
    ImageRange,
    ImageSource,
    Rect,
    RenderSession,
    StaticImage,
    Text,
    TextAlign,
    TransferData,
)


def png_bytes(color=(255, 0, 0), size=(8, 8)) -> bytes:
    bio = io.BytesIO()
    Image.new("RGBA", size, (*color, 255)).save(bio, format="PNG")
    return bio.getvalue()


@pytest.fixture
def red_png():
    return png_bytes((255, 0, 0))


@pytest.fixture
def blue_png():
    return png_bytes((0, 0, 255))


@pytest.fixture
def session():
    with RenderSession() as s:
        yield s


@pytest.fixture
def full_envelope(red_png, blue_png):
    """One element of every kind, with every optional field exercised."""
    return TransferData(
        width=320,
        height=240,
        background=Color(10, 20, 30),
        elements=(
            StaticImage(image=ImageSource.embedded(red_png), rect=Rect(0, 0, 32, 32), fit=ImageFit.COVER, name="logo"),
            StaticImage(image=ImageSource.from_path("icons/fan.png"), rect=Rect(40, 0, 16, 16)),
            Text(
                sensor_id="cpu_temp",
                rect=Rect(0, 40, 200, 30),
                style=ElementStyle(
                    color=Color.from_hex("#f0f0f0cc"),
                    font="DejaVuSans.ttf",
                    font_size=18,
                    stroke_width=2,
                    stroke_color=Color(0, 0, 0),
                ),
                format="CPU {value:.1f}{unit} ({label})",
                align=TextAlign.CENTER,
                name="cpu temperature",
            ),
            Text(sensor_id="gpu_temp", rect=Rect(0, 80, 100, 20)),
            Graph(
                sensor_id="cpu_usage",
                rect=Rect(0, 110, 320, 100),
                graph_kind=GraphKind.FILL,
                line_color=Color(0, 188, 212),
                fill_color=Color(0, 188, 212, 90),
                line_width=3,
                min_value=0,
                max_value=100.5,
                background=Color(0, 0, 0, 40),
                border=Color(200, 200, 200, 110),
            ),
            Graph(sensor_id="fan_rpm", rect=Rect(0, 210, 100, 30), max_value=3000.0),
            ConditionalImage(
                sensor_id="cpu_temp",
                rect=Rect(280, 0, 40, 40),
                ranges=(
                    ImageRange(0, 50, ImageSource.embedded(blue_png)),
                    ImageRange(50.25, float("inf"), ImageSource.embedded(red_png)),
                ),
                default=ImageSource.from_path("unknown.png"),
                fit=ImageFit.STRETCH,
                name="indicator",
            ),
        ),
    )
