import pytest

from sensor_core import Color, Graph, GraphKind, Rect, effective_bounds, plot_points, render_graph
from sensor_core.graph import trim_history

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)


def test_bounds_from_history():
    assert effective_bounds([10, 20, 30]) == (10.0, 30.0)


def test_explicit_bounds_win():
    assert effective_bounds([10, 20, 30], 0, 100) == (0.0, 100.0)
    assert effective_bounds([10, 20, 30], min_value=0) == (0.0, 30.0)
    assert effective_bounds([10, 20, 30], max_value=50) == (10.0, 50.0)


def test_bounds_of_empty_history():
    assert effective_bounds([]) == (0.0, 0.0)


def test_points_span_the_rect():
    points = plot_points([10, 20, 30], 101, 51, (10.0, 30.0))
    assert points == [(0.0, 50.0), (50.0, 25.0), (100.0, 0.0)]
    # Lowest value on the bottom row, highest on the top row
    assert points[0][1] == 50.0
    assert points[-1][1] == 0.0


def test_flat_history_sits_on_the_midpoint():
    points = plot_points([5, 5, 5], 101, 51, effective_bounds([5, 5, 5]))
    assert [y for _, y in points] == [25.0, 25.0, 25.0]


def test_single_sample_is_centred():
    assert plot_points([7], 40, 20, (0.0, 10.0))[0][0] == 20


def test_empty_history_has_no_points():
    assert plot_points([], 40, 20, (0.0, 1.0)) == []


def test_out_of_range_values_are_clamped():
    points = plot_points([150, -50], 10, 20, (0.0, 100.0))
    assert points[0][1] == 0.0
    assert points[1][1] == 19.0


def test_history_is_trimmed_to_width():
    assert list(trim_history(list(range(1, 11)), 4)) == [7, 8, 9, 10]
    assert list(trim_history([1, 2], 4)) == [1, 2]


def _graph(**kwargs):
    defaults = dict(sensor_id="cpu", rect=Rect(0, 0, 100, 50), line_color=RED)
    defaults.update(kwargs)
    return Graph(**defaults)


def test_line_graph_pixels():
    img = render_graph(_graph(min_value=0, max_value=100), [0, 100])
    assert img.size == (100, 50)
    assert img.getpixel((0, 49))[3] > 0
    assert img.getpixel((99, 0))[3] > 0
    assert img.getpixel((0, 0))[3] == 0


def test_filled_graph_fills_below_the_line():
    img = render_graph(
        _graph(graph_kind=GraphKind.FILL, fill_color=BLUE, min_value=0, max_value=100),
        [50, 50],
    )
    assert img.getpixel((50, 45)) == (0, 0, 255, 255)
    assert img.getpixel((50, 5))[3] == 0


def test_fill_defaults_to_line_color():
    img = render_graph(_graph(graph_kind=GraphKind.FILL, min_value=0, max_value=100), [50, 50])
    assert img.getpixel((50, 45)) == (255, 0, 0, 255)


def test_empty_history_draws_baseline():
    img = render_graph(_graph(), [])
    assert img.getpixel((50, 49)) == (255, 0, 0, 255)
    assert img.getpixel((50, 0))[3] == 0


def test_flat_history_renders_without_error():
    img = render_graph(_graph(), [5, 5, 5])
    column = [img.getpixel((50, y))[3] for y in (24, 25)]
    assert max(column) > 0


def test_border_and_background():
    img = render_graph(_graph(border=Color(255, 255, 255), background=Color(0, 0, 0, 255)), [])
    assert img.getpixel((0, 0)) == (255, 255, 255, 255)
    assert img.getpixel((50, 10)) == (0, 0, 0, 255)


@pytest.mark.parametrize("kind", [GraphKind.LINE, GraphKind.FILL])
def test_spikes_stay_inside_the_patch(kind):
    img = render_graph(_graph(graph_kind=kind, min_value=0, max_value=10, line_width=3), [0, 1000, -1000, 5])
    assert img.size == (100, 50)
