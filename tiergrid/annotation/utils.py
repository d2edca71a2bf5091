"""Numeric and comparison helpers shared by tiers and the TextGrid codec."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence


def is_close(a: float, b: float, rel_tol: float = 1e-14, abs_tol: float = 0.0) -> bool:
    """Test two floats for near equality.

    Timestamps pick up floating point error after repeated shifts and
    crops, so they are never compared with ``==``. See
    http://realtimecollisiondetection.net/blog/?p=89
    """
    return abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)


def intervals_overlap(interval1: Sequence[float], interval2: Sequence[float]) -> bool:
    """Check if two (start, end) spans overlap.

    Spans that only share a border do not overlap.
    """
    start1, end1 = interval1[0], interval1[1]
    start2, end2 = interval2[0], interval2[1]

    overlap = max(0, min(end1, end2) - max(start1, start2))
    return overlap > 0


def entry_time(entry: Sequence) -> float:
    """Sort key for entry lists: the start time (intervals) or time (points)."""
    return entry[0]


def format_time(value: float) -> str:
    """Render a timestamp the way it is written in a TextGrid file.

    Whole numbers lose their trailing ``.0`` (``0``, not ``0.0``) and
    other values use the shortest digits that read back to the same
    float. Positional notation is used down to 1e-6, exponent notation
    below that.
    """
    value = float(value)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(value)
    if 'e' not in text:
        return text

    mantissa, exponent = text.split('e')
    exponent = int(exponent)
    if exponent > -7:
        return format(Decimal(text), 'f')
    return f"{mantissa}e-{abs(exponent)}"
