from collections import namedtuple
from unittest import mock

import pytest

from sensor_core import MissingSensorError, SensorValue, SensorValueError
from sensor_core.hostsensors import HostFeed
from sensor_core.sensors import lookup, snapshot, update_history
from sensor_core.simulator import RANGES, SCENARIOS, SimulatedFeed

Temp = namedtuple("Temp", "label current")
Memory = namedtuple("Memory", "percent")


def test_update_history_keeps_newest():
    history = []
    for v in range(10):
        update_history(history, v, 4)
    assert history == [6.0, 7.0, 8.0, 9.0]


def test_lookup_wraps_plain_numbers():
    assert lookup({"a": 3}, "a") == SensorValue(value=3.0)
    value = SensorValue(value=1.0, unit="%")
    assert lookup({"a": value}, "a") is value


def test_lookup_missing():
    with pytest.raises(MissingSensorError) as info:
        lookup({}, "gpu_temp")
    assert info.value.sensor_id == "gpu_temp"


def test_snapshot_bundles_history_and_unit():
    snap = snapshot({"cpu": 5.0}, {"cpu": [1.0, 5.0]}, {"cpu": "%"})
    assert snap["cpu"] == SensorValue(value=5.0, history=(1.0, 5.0), unit="%")


def test_corners_alternate_between_extremes():
    feed = SimulatedFeed("corners")
    low, high = feed.step(), feed.step()
    for sensor_id, (lo, hi) in RANGES.items():
        assert low[sensor_id].value == lo
        assert high[sensor_id].value == hi
        assert high[sensor_id].history == (lo, hi)


def test_edges_cycle():
    feed = SimulatedFeed("edges")
    values = [feed.step()["cpu_usage"].value for _ in range(6)]
    assert values == [0.0, 25.0, 50.0, 75.0, 100.0, 0.0]


def test_history_is_bounded():
    feed = SimulatedFeed("realistic", history_len=5)
    for _ in range(12):
        snap = feed.step()
    assert len(snap["cpu_temp"].history) == 5
    assert snap["cpu_temp"].unit == "°C"


@pytest.mark.parametrize("t", [0.0, 1.0, 7.5, 1000.0])
def test_drifting_stays_in_range(t):
    snap = SimulatedFeed("drifting", clock=lambda: t).step()
    for sensor_id, (lo, hi) in RANGES.items():
        assert lo <= snap[sensor_id].value <= hi


def test_every_scenario_produces_all_sensors():
    for scenario in SCENARIOS:
        assert set(SimulatedFeed(scenario).step()) == set(RANGES)


def test_unknown_scenario():
    with pytest.raises(ValueError):
        SimulatedFeed("chaos")


@mock.patch("sensor_core.hostsensors.psutil")
def test_host_feed(psutil_mock):
    psutil_mock.cpu_percent.return_value = [10.0, 30.0]
    psutil_mock.virtual_memory.return_value = Memory(percent=42.0)
    psutil_mock.sensors_temperatures.return_value = {"coretemp": [Temp("Core 0", 51.0), Temp("Core 1", 55.0)]}

    snap = HostFeed(per_core=True).step()

    assert snap["cpu_usage"].value == 20.0
    assert snap["cpu0_usage"].value == 10.0
    assert snap["cpu1_usage"].value == 30.0
    assert snap["memory_usage"] == SensorValue(value=42.0, history=(42.0,), unit="%")
    assert snap["cpu_temp"].value == 55.0


@mock.patch("sensor_core.hostsensors.psutil")
def test_host_feed_without_temperature(psutil_mock):
    psutil_mock.cpu_percent.return_value = 12.5
    psutil_mock.virtual_memory.return_value = Memory(percent=40.0)
    psutil_mock.sensors_temperatures.side_effect = OSError("no sensors")

    snap = HostFeed().step()

    assert snap["cpu_usage"].value == 12.5
    assert "cpu_temp" not in snap


@pytest.mark.parametrize("raw", ["n/a", None, [1.0]])
def test_lookup_rejects_non_numeric_values(raw):
    with pytest.raises(SensorValueError) as info:
        lookup({"fan": raw}, "fan")
    assert info.value.sensor_id == "fan"
    assert info.value.raw == raw
