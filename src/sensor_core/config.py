"""Render configuration.

Defaults live on ``RenderOptions``; ``RenderOptions.from_env`` lets the host
application override them without code changes.

Environment variables:
    SENSOR_CORE_ANTIALIAS          1/0, true/false (default: 1)
    SENSOR_CORE_FAILURE_POLICY     skip | placeholder (default: skip)
    SENSOR_CORE_PLACEHOLDER_COLOR  #RRGGBB[AA] (default: #ff00ff80)
    SENSOR_CORE_FONT_DIR           directory searched before system fonts
    SENSOR_CORE_ASSET_DIR          base directory for path-referenced images
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .errors import ValidationError
from .model import Color

logger = logging.getLogger(__name__)

ENV_PREFIX = "SENSOR_CORE_"

# Tried in order when an element does not name a font
DEFAULT_FONT_NAMES: Tuple[str, ...] = (
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
    "DejaVuSansMono.ttf",
    "LiberationMono-Regular.ttf",
    "Roboto-Regular.ttf",
    "Arial.ttf",
)


class FailurePolicy(enum.Enum):
    SKIP = "skip"
    PLACEHOLDER = "placeholder"


@dataclass
class RenderOptions:
    antialias: bool = True
    failure_policy: FailurePolicy = FailurePolicy.SKIP
    placeholder_color: Color = Color(255, 0, 255, 128)
    font_dir: Optional[Path] = None
    default_fonts: Tuple[str, ...] = DEFAULT_FONT_NAMES
    asset_dir: Optional[Path] = None
    # Upper bound on cached glyph patches per session
    glyph_cache_size: int = 4096
    # Upper bound on decoded and on fitted images, each
    image_cache_size: int = 64

    def __post_init__(self):
        if self.glyph_cache_size < 0:
            raise ValidationError("glyph_cache_size must be >= 0")
        if self.image_cache_size < 0:
            raise ValidationError("image_cache_size must be >= 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RenderOptions":
        env = os.environ if environ is None else environ
        options = cls()

        raw = env.get(f"{ENV_PREFIX}ANTIALIAS")
        if raw is not None:
            options.antialias = _parse_bool(raw)

        raw = env.get(f"{ENV_PREFIX}FAILURE_POLICY")
        if raw:
            try:
                options.failure_policy = FailurePolicy(raw.strip().lower())
            except ValueError as exc:
                raise ValidationError(f"Unknown failure policy {raw!r}") from exc

        raw = env.get(f"{ENV_PREFIX}PLACEHOLDER_COLOR")
        if raw:
            options.placeholder_color = Color.from_hex(raw)

        raw = env.get(f"{ENV_PREFIX}FONT_DIR")
        if raw:
            options.font_dir = Path(raw).expanduser()

        raw = env.get(f"{ENV_PREFIX}ASSET_DIR")
        if raw:
            options.asset_dir = Path(raw).expanduser()

        logger.debug("Render options from environment: %s", options)
        return options


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValidationError(f"Expected a boolean, got {raw!r}")


__all__ = ["DEFAULT_FONT_NAMES", "FailurePolicy", "RenderOptions"]
