"""Select an image from a value range table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from .errors import ResolutionError, ValidationError

if TYPE_CHECKING:
    from .model import ImageRange, ImageSource


def check_ranges(ranges: Sequence["ImageRange"]) -> None:
    """Reject inverted ranges and any pair of ranges that overlap.

    Bounds are inclusive, so ``(0, 50)`` and ``(50, 100)`` overlap at 50.
    """
    for index, rng in enumerate(ranges):
        if rng.lower > rng.upper:
            raise ValidationError(f"Range {index} is inverted: lower {rng.lower} > upper {rng.upper}")
    ordered = sorted(enumerate(ranges), key=lambda item: (item[1].lower, item[1].upper))
    for (i, a), (j, b) in zip(ordered, ordered[1:]):
        if b.lower <= a.upper:
            first, second = sorted((i, j))
            raise ValidationError(
                f"Ranges {first} and {second} overlap: "
                f"[{a.lower}, {a.upper}] and [{b.lower}, {b.upper}]"
            )


def resolve_image(
    value: float,
    ranges: Sequence["ImageRange"],
    default: Optional["ImageSource"] = None,
) -> "ImageSource":
    """Return the image of the first range containing ``value``.

    Falls back to ``default``; raises ``ResolutionError`` when there is none.
    """
    for rng in ranges:
        if rng.lower <= value <= rng.upper:
            return rng.image
    if default is not None:
        return default
    raise ResolutionError(value)


__all__ = ["check_ranges", "resolve_image"]
