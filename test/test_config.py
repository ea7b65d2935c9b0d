from pathlib import Path

import pytest

from sensor_core import Color, FailurePolicy, RenderOptions, ValidationError


def test_defaults():
    options = RenderOptions.from_env({})
    assert options == RenderOptions()
    assert options.antialias is True
    assert options.failure_policy is FailurePolicy.SKIP


def test_environment_overrides(tmp_path):
    options = RenderOptions.from_env(
        {
            "SENSOR_CORE_ANTIALIAS": "off",
            "SENSOR_CORE_FAILURE_POLICY": "Placeholder",
            "SENSOR_CORE_PLACEHOLDER_COLOR": "#00ff00",
            "SENSOR_CORE_FONT_DIR": str(tmp_path),
            "SENSOR_CORE_ASSET_DIR": str(tmp_path / "assets"),
        }
    )
    assert options.antialias is False
    assert options.failure_policy is FailurePolicy.PLACEHOLDER
    assert options.placeholder_color == Color(0, 255, 0)
    assert options.font_dir == tmp_path
    assert options.asset_dir == Path(tmp_path / "assets")


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("SENSOR_CORE_ANTIALIAS", "0")
    assert RenderOptions.from_env().antialias is False


@pytest.mark.parametrize(
    "name, value",
    [
        ("SENSOR_CORE_ANTIALIAS", "maybe"),
        ("SENSOR_CORE_FAILURE_POLICY", "explode"),
        ("SENSOR_CORE_PLACEHOLDER_COLOR", "magenta"),
    ],
)
def test_bad_environment_values(name, value):
    with pytest.raises(ValidationError):
        RenderOptions.from_env({name: value})


def test_negative_cache_size_rejected():
    with pytest.raises(ValidationError):
        RenderOptions(glyph_cache_size=-1)


def test_negative_image_cache_size_rejected():
    with pytest.raises(ValidationError):
        RenderOptions(image_cache_size=-1)
