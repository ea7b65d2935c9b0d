"""Exception hierarchy for sensor-core.

Structural errors (``ValidationError``, ``DecodeError``) abort the whole
operation. Element errors are raised while rendering a single element and
are isolated by the compositor.
"""

from __future__ import annotations


class SensorCoreError(Exception):
    """Base class of every error raised by sensor-core."""


class ValidationError(SensorCoreError):
    """Malformed geometry, ranges or envelope structure."""


class DecodeError(SensorCoreError):
    """Corrupt, truncated or version-incompatible envelope bytes."""


class ElementError(SensorCoreError):
    """An error confined to one element of a frame."""


class FontLoadError(ElementError):
    """A referenced font could not be loaded."""


class ImageLoadError(ElementError):
    """An image asset could not be obtained or decoded."""


class MissingSensorError(ElementError):
    def __init__(self, sensor_id: str):
        super().__init__(f"No value for sensor '{sensor_id}'")
        self.sensor_id = sensor_id


class ResolutionError(ElementError):
    def __init__(self, value: float):
        super().__init__(f"Value {value!r} matches no configured range and no default image is set")
        self.value = value


class SensorValueError(ElementError):
    def __init__(self, sensor_id: str, raw: object):
        super().__init__(f"Sensor '{sensor_id}' has a non-numeric value {raw!r}")
        self.sensor_id = sensor_id
        self.raw = raw


class FormatError(ElementError):
    """A text format could not be applied to the current sensor value."""


__all__ = [
    "SensorCoreError",
    "ValidationError",
    "DecodeError",
    "ElementError",
    "FontLoadError",
    "ImageLoadError",
    "MissingSensorError",
    "ResolutionError",
    "SensorValueError",
    "FormatError",
]
