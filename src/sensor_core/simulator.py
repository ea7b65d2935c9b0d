"""
Simulated sensor readings for previews and tests.

Scenarios:
    corners    values jump between the extremes (0/100 %, 30/105 °C)
    edges      values step through 0, 25, 50, 75, 100 % of each range
    realistic  a steady, plausible load
    drifting   values drift along sine waves to exercise graphs and colors
"""

from __future__ import annotations

import math
import time
from typing import Callable, Dict, Optional

from .sensors import SensorFeed

SCENARIOS = ("corners", "edges", "realistic", "drifting")

# (min, max) of each simulated sensor
RANGES: Dict[str, tuple] = {
    "cpu_usage": (0.0, 100.0),
    "cpu_temp": (30.0, 105.0),
    "gpu_usage": (0.0, 100.0),
    "gpu_temp": (30.0, 85.0),
    "memory_usage": (0.0, 100.0),
}

UNITS: Dict[str, str] = {
    "cpu_usage": "%",
    "cpu_temp": "°C",
    "gpu_usage": "%",
    "gpu_temp": "°C",
    "memory_usage": "%",
}

_EDGE_STEPS = (0.0, 0.25, 0.5, 0.75, 1.0)

_REALISTIC = {
    "cpu_usage": 25.5,
    "cpu_temp": 46.0,
    "gpu_usage": 78.0,
    "gpu_temp": 72.0,
    "memory_usage": 61.0,
}


def _clamp(sensor_id: str, value: float) -> float:
    lo, hi = RANGES[sensor_id]
    return max(lo, min(hi, value))


class SimulatedFeed(SensorFeed):
    units = UNITS

    def __init__(self, scenario: str = "drifting", history_len: int = 120, clock: Optional[Callable[[], float]] = None):
        if scenario not in SCENARIOS:
            raise ValueError(f"Unknown scenario {scenario!r}, expected one of {', '.join(SCENARIOS)}")
        super().__init__(history_len)
        self.scenario = scenario
        self.tick = 0
        self._clock = clock or time.time

    def read(self) -> Dict[str, float]:
        tick = self.tick
        self.tick += 1

        if self.scenario == "corners":
            high = tick % 2 == 1
            return {k: (hi if high else lo) for k, (lo, hi) in RANGES.items()}

        if self.scenario == "edges":
            frac = _EDGE_STEPS[tick % len(_EDGE_STEPS)]
            return {k: lo + (hi - lo) * frac for k, (lo, hi) in RANGES.items()}

        if self.scenario == "realistic":
            return dict(_REALISTIC)

        # drifting
        t = self._clock()
        values = {
            "cpu_usage": 50 + 40 * math.sin(t * 0.5) + 10 * math.sin(t * 1.2),
            "cpu_temp": 60 + 35 * math.sin(t * 0.4),
            "gpu_usage": 50 + 30 * math.sin(t * 0.3),
            "gpu_temp": 60 + 15 * math.sin(t * 0.4 + 1.5),
            "memory_usage": 55 + 25 * math.sin(t * 0.2 + 2.0),
        }
        return {k: _clamp(k, v) for k, v in values.items()}


__all__ = ["SCENARIOS", "RANGES", "UNITS", "SimulatedFeed"]
