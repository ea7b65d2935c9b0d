"""
Time-series graph plotting.

Samples are mapped into a rect-local pixel grid: the oldest sample sits on
the left edge, the newest on the right edge, the lower bound on the bottom
row and the upper bound on the top row. Out-of-range samples are clamped to
the edges so spikes never leave the element.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from .model import Graph, GraphKind

Point = Tuple[float, float]


def _map(value: float, a: float, b: float, c: float, d: float) -> float:
    if b == a:
        return (c + d) / 2
    return c + (value - a) * (d - c) / (b - a)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def effective_bounds(
    history: Sequence[float],
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> Tuple[float, float]:
    """Explicit bounds win; missing ones come from the history.

    An empty history with no explicit bounds yields ``(0.0, 0.0)``.
    """
    lo = min_value if min_value is not None else (min(history) if history else 0.0)
    hi = max_value if max_value is not None else (max(history) if history else 0.0)
    if lo > hi:
        # Only one bound was explicit and the data lies beyond it
        lo, hi = hi, lo
    return float(lo), float(hi)


def plot_points(history: Sequence[float], width: int, height: int, bounds: Tuple[float, float]) -> List[Point]:
    n = len(history)
    if n == 0:
        return []
    lo, hi = bounds
    bottom = float(height - 1)
    right = float(width - 1)
    points: List[Point] = []
    for i, v in enumerate(history):
        x = right * i / (n - 1) if n > 1 else width / 2
        y = _map(v, lo, hi, bottom, 0.0)
        points.append((_clamp(x, 0.0, right), _clamp(y, 0.0, bottom)))
    return points


def trim_history(history: Sequence[float], width: int) -> Sequence[float]:
    """Keep only the newest ``width`` samples, one per pixel column."""
    if len(history) > width:
        return history[len(history) - width:]
    return history


def render_graph(graph: Graph, history: Sequence[float]) -> Image.Image:
    """Draw ``graph`` for ``history`` into an RGBA patch of the element size."""
    w, h = graph.rect.size
    img = Image.new("RGBA", (w, h), graph.background.as_tuple())
    draw = ImageDraw.Draw(img)
    line = graph.line_color.as_tuple()

    samples = trim_history(list(history), w)
    bounds = effective_bounds(samples, graph.min_value, graph.max_value)
    points = plot_points(samples, w, h, bounds)

    if not points:
        # Nothing recorded yet: flat baseline
        draw.line([(0, h - 1), (w - 1, h - 1)], fill=line, width=graph.line_width)
    elif len(points) == 1:
        x, y = points[0]
        r = graph.line_width / 2
        if graph.graph_kind is GraphKind.FILL:
            fill = (graph.fill_color or graph.line_color).as_tuple()
            draw.rectangle([x - r, y, x + r, h - 1], fill=fill)
        draw.ellipse([x - r, y - r, x + r, y + r], fill=line)
    else:
        if graph.graph_kind is GraphKind.FILL:
            fill = (graph.fill_color or graph.line_color).as_tuple()
            polygon = [(points[0][0], h - 1)] + points + [(points[-1][0], h - 1)]
            draw.polygon(polygon, fill=fill)
        draw.line(points, fill=line, width=graph.line_width, joint="curve")

    if graph.border.visible:
        draw.rectangle([0, 0, w - 1, h - 1], outline=graph.border.as_tuple(), width=1)
    return img


__all__ = ["effective_bounds", "plot_points", "trim_history", "render_graph"]
