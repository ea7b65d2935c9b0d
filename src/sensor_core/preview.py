"""
Render a layout locally, without a display attached.

Usage:
    sensor-core-preview [options]

Options:
    --envelope PATH       Render a serialized envelope instead of the demo layout
    --source NAME         corners | edges | realistic | drifting | host (default: drifting)
    --frames N            Number of frames to render (default: 1)
    --fps FPS             Target frame rate when rendering several frames (default: 15)
    --output PATH         Save the last frame (.png, or .jpg/.jpeg as sent to a device)
    --quality 1-100       JPEG quality (default: 80)
    --show                Open the last frame in the system image viewer
    --save-envelope PATH  Write the demo layout as envelope bytes and exit
"""

from __future__ import annotations

import argparse
import io
import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from .compositor import RenderResult, RenderSession
from .config import FailurePolicy, RenderOptions
from .errors import SensorCoreError
from .model import (
    Color,
    ConditionalImage,
    ElementStyle,
    Graph,
    GraphKind,
    ImageRange,
    ImageSource,
    Rect,
    StaticImage,
    Text,
    TextAlign,
    TransferData,
)
from .serializer import deserialize, serialize
from .simulator import SCENARIOS, SimulatedFeed
from .sensors import SensorFeed

logger = logging.getLogger(__name__)

TARGET_W, TARGET_H = 480, 480

# Colors
BACKGROUND = Color(16, 16, 18)
TEXT = Color(230, 230, 235)
USAGE = Color(0, 188, 212)
TEMP = Color(255, 0, 64)
GRID = Color(200, 200, 200, 110)


def _swatch(color: Tuple[int, int, int], size: int = 64) -> bytes:
    """A round indicator icon, PNG encoded."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((2, 2, size - 3, size - 3), fill=(*color, 255), outline=(255, 255, 255, 255), width=2)
    bio = io.BytesIO()
    img.save(bio, format="PNG")
    return bio.getvalue()


def demo_layout(width: int = TARGET_W, height: int = TARGET_H) -> TransferData:
    """A small dashboard exercising every element kind."""
    title = ElementStyle(color=TEXT, font_size=22, stroke_width=1, stroke_color=Color(0, 0, 0))
    value = ElementStyle(color=TEXT, font_size=18)
    return TransferData(
        width=width,
        height=height,
        background=BACKGROUND,
        elements=(
            StaticImage(image=ImageSource.embedded(_swatch((45, 45, 55), 32)), rect=Rect(20, 14, 32, 32), name="logo"),
            Text(sensor_id="cpu_usage", rect=Rect(60, 10, width - 160, 40), style=title,
                 format="CPU {value:.0f}{unit}", name="cpu title"),
            ConditionalImage(
                sensor_id="cpu_temp",
                rect=Rect(width - 84, 10, 64, 64),
                ranges=(
                    ImageRange(0, 59.99, ImageSource.embedded(_swatch((0, 188, 212)))),
                    ImageRange(60, 79.99, ImageSource.embedded(_swatch((212, 212, 0)))),
                    ImageRange(80, 150, ImageSource.embedded(_swatch((255, 0, 64)))),
                ),
                default=ImageSource.embedded(_swatch((128, 128, 128))),
                name="temperature indicator",
            ),
            Graph(sensor_id="cpu_usage", rect=Rect(20, 90, width - 40, 150), graph_kind=GraphKind.FILL,
                  line_color=USAGE, fill_color=Color(0, 188, 212, 90), line_width=2,
                  min_value=0, max_value=100, border=GRID, name="cpu usage graph"),
            Graph(sensor_id="cpu_temp", rect=Rect(20, 260, width - 40, 120), line_color=TEMP,
                  line_width=2, border=GRID, name="cpu temperature graph"),
            Text(sensor_id="cpu_temp", rect=Rect(20, 390, (width - 40) // 2, 36), style=value,
                 format="{value:.1f}{unit}", name="cpu temperature"),
            Text(sensor_id="gpu_temp", rect=Rect(width // 2, 390, (width - 40) // 2, 36), style=value,
                 format="GPU {value:.0f}{unit}", align=TextAlign.RIGHT, name="gpu temperature"),
            Text(sensor_id="memory_usage", rect=Rect(20, 430, width - 40, 36), style=value,
                 format="RAM {value:.0f}{unit}", align=TextAlign.CENTER, name="memory usage"),
        ),
    )


def _make_feed(source: str) -> SensorFeed:
    if source == "host":
        from .hostsensors import HostFeed
        return HostFeed()
    return SimulatedFeed(source)


def run(
    envelope: TransferData,
    feed: SensorFeed,
    *,
    frames: int = 1,
    refresh_rate: float = 15.0,
    options: Optional[RenderOptions] = None,
) -> RenderResult:
    """Render ``frames`` frames at ``refresh_rate`` and return the last one."""
    period = 1.0 / max(1e-6, refresh_rate)
    result = None
    frame_count = 0
    fps_start_time = time.time()
    with RenderSession(options) as session:
        for _ in range(max(1, frames)):
            frame_start = time.time()
            result = session.render(envelope, feed.step())
            for failure in result.failures:
                logger.warning("Frame %d: %s", frame_count, failure)

            # Frame pacing and FPS tracking
            frame_count += 1
            if frame_count % 30 == 0:
                elapsed = time.time() - fps_start_time
                logger.info("FPS: target=%.1f, actual=%.1f", refresh_rate, frame_count / elapsed)
            if frame_count < frames:
                sleep_time = period - (time.time() - frame_start)
                if sleep_time > 0:
                    time.sleep(sleep_time)
    return result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a sensor display layout locally")
    parser.add_argument("--envelope", type=Path, help="Serialized envelope to render (default: demo layout)")
    parser.add_argument("--source", choices=SCENARIOS + ("host",), default="drifting",
                        help="Sensor values: a simulated scenario or the local host (default: drifting)")
    parser.add_argument("--frames", type=int, default=1, help="Number of frames to render (default: 1)")
    parser.add_argument("--fps", type=float, default=15.0, help="Target frame rate (default: 15)")
    parser.add_argument("--output", type=Path, help="Save the last frame (.png, .jpg)")
    parser.add_argument("--quality", type=int, default=80, help="JPEG quality 1-100 (default: 80)")
    parser.add_argument("--show", action="store_true", help="Show the last frame in an image viewer")
    parser.add_argument("--save-envelope", type=Path, help="Write the demo layout as envelope bytes and exit")
    parser.add_argument("--no-antialias", action="store_true", help="Render text without anti-aliasing")
    parser.add_argument("--placeholder", action="store_true",
                        help="Paint failed elements with a placeholder instead of skipping them")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")

    if args.save_envelope:
        data = serialize(demo_layout())
        args.save_envelope.write_bytes(data)
        print(f"Wrote demo envelope: {args.save_envelope} ({len(data)} bytes)")
        return 0

    options = RenderOptions.from_env()
    if args.no_antialias:
        options.antialias = False
    if args.placeholder:
        options.failure_policy = FailurePolicy.PLACEHOLDER

    try:
        envelope = deserialize(args.envelope.read_bytes()) if args.envelope else demo_layout()
        result = run(envelope, _make_feed(args.source), frames=args.frames, refresh_rate=args.fps, options=options)
    except (OSError, SensorCoreError) as e:
        logger.error("Preview failed: %s", e)
        return 1

    if args.output:
        fmt = "JPEG" if args.output.suffix.lower() in (".jpg", ".jpeg") else "PNG"
        args.output.write_bytes(result.encode(fmt, quality=args.quality))
        print(f"Saved frame: {args.output}")
    if args.show:
        result.image.show()
    return 0 if result.ok else 2


__all__ = ["TARGET_W", "TARGET_H", "demo_layout", "run", "main"]
