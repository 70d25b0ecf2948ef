"""
Temporal Layer
==============

Time sources and day arithmetic shared by detection and trace.

INVARIANTS:
- No layer reads the system clock directly; all reads go through LogicalClock
- Day counts are whole numbers with explicit rounding rules

Modules:
- clock: Injectable live/fixed clock
- days: Rounded and ceiling day differences
"""

from .clock import LogicalClock
from .days import days_between, day_offset, round_half_up

__all__ = [
    'LogicalClock',
    'days_between',
    'day_offset',
    'round_half_up',
]
