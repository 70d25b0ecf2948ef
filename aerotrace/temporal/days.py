"""
Whole-day arithmetic.

Two rounding conventions coexist and must not be mixed up:
- detection compares events with ROUNDED day counts (half-up)
- trace coverage places events on CEILING day offsets
"""

from __future__ import annotations
from datetime import datetime
import math

MS_PER_DAY = 1000 * 60 * 60 * 24


def _elapsed_ms(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000


def days_between(start: datetime, end: datetime) -> int:
    """Signed whole days from start to end, rounded half-up."""
    return math.floor(_elapsed_ms(start, end) / MS_PER_DAY + 0.5)


def day_offset(origin: datetime, moment: datetime) -> int:
    """Signed whole days from origin to moment, rounded up."""
    return math.ceil(_elapsed_ms(origin, moment) / MS_PER_DAY)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward +infinity, matching the reporting layer."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale
