"""Helpers for the sensor snapshot handed to the renderer each tick."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Union

from .errors import MissingSensorError, SensorValueError
from .model import SensorValue

SensorInput = Union[SensorValue, float, int]
SensorSnapshot = Mapping[str, SensorInput]


def update_history(history: List[float], value: float, max_len: int) -> List[float]:
    """Append ``value`` and drop the oldest samples beyond ``max_len``."""
    history.append(float(value))
    if len(history) > max_len:
        del history[: len(history) - max_len]
    return history


def lookup(sensors: SensorSnapshot, sensor_id: str) -> SensorValue:
    try:
        raw = sensors[sensor_id]
    except KeyError:
        raise MissingSensorError(sensor_id) from None
    if isinstance(raw, SensorValue):
        return raw
    try:
        return SensorValue(value=float(raw))
    except (TypeError, ValueError):
        raise SensorValueError(sensor_id, raw) from None


def snapshot(
    values: Mapping[str, float],
    histories: Mapping[str, List[float]],
    units: Optional[Mapping[str, str]] = None,
) -> Dict[str, SensorValue]:
    """Bundle current values and their histories into one immutable snapshot."""
    units = units or {}
    return {
        sensor_id: SensorValue(
            value=value,
            history=tuple(histories.get(sensor_id, ())),
            unit=units.get(sensor_id, ""),
        )
        for sensor_id, value in values.items()
    }


class SensorFeed:
    """Keeps bounded histories for a stream of readings.

    Subclasses implement ``read`` returning the current values; ``step``
    records them and returns a snapshot ready for rendering.
    """

    units: Mapping[str, str] = {}

    def __init__(self, history_len: int = 120):
        self.history_len = history_len
        self.histories: Dict[str, List[float]] = {}

    def read(self) -> Dict[str, float]:
        raise NotImplementedError

    def step(self) -> Dict[str, SensorValue]:
        values = self.read()
        for sensor_id, value in values.items():
            update_history(self.histories.setdefault(sensor_id, []), value, self.history_len)
        return snapshot(values, self.histories, self.units)


__all__ = ["SensorInput", "SensorSnapshot", "SensorFeed", "update_history", "lookup", "snapshot"]
