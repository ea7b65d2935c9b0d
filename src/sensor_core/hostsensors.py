"""Live readings from the local machine via psutil, for previews."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import psutil

from .sensors import SensorFeed

logger = logging.getLogger(__name__)


def _cpu_temperature() -> Optional[float]:
    # Not available on every platform
    read = getattr(psutil, "sensors_temperatures", None)
    if read is None:
        return None
    try:
        sensors = read()
    except Exception as exc:
        logger.debug("Temperature sensors unavailable: %s", exc)
        return None
    for chip in ("coretemp", "k10temp", "cpu_thermal", "acpitz"):
        entries = sensors.get(chip)
        if entries:
            temps: List[float] = [e.current for e in entries if e.current is not None]
            if temps:
                return max(temps)
    return None


class HostFeed(SensorFeed):
    """CPU usage (overall and per core), memory usage and CPU temperature."""

    units = {"cpu_usage": "%", "memory_usage": "%", "cpu_temp": "°C"}

    def __init__(self, history_len: int = 120, per_core: bool = False):
        super().__init__(history_len)
        self.per_core = per_core
        # Prime the counters; the first non-blocking call always reports 0.0
        psutil.cpu_percent(interval=None, percpu=per_core)

    def read(self) -> Dict[str, float]:
        values: Dict[str, float] = {}
        if self.per_core:
            cores = psutil.cpu_percent(interval=None, percpu=True)
            for i, usage in enumerate(cores):
                values[f"cpu{i}_usage"] = float(usage)
            values["cpu_usage"] = float(sum(cores) / max(1, len(cores)))
        else:
            values["cpu_usage"] = float(psutil.cpu_percent(interval=None))
        values["memory_usage"] = float(psutil.virtual_memory().percent)
        temp = _cpu_temperature()
        if temp is not None:
            values["cpu_temp"] = temp
        return values


__all__ = ["HostFeed"]
