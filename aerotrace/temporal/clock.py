"""
Logical Clock for Deterministic Scans
=====================================

Injectable clock used by every time-dependent rule (staleness windows,
"now" as the end of a component's life, detection timestamps).

GUARANTEES:
- Same snapshot + same clock = identical findings
- Never reads system time implicitly in fixed mode
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..contracts.base import ensure_utc


@dataclass
class LogicalClock:
    """
    Injectable clock for deterministic execution.

    MODES:
    ======
    1. LIVE mode: Uses real system time
    2. FIXED mode: Returns a pinned instant until explicitly advanced

    Production code receives a LIVE clock by default; tests pin one.
    """
    _is_live: bool = True
    _fixed_at: Optional[datetime] = None

    def now(self) -> datetime:
        """
        Get current logical time.

        In LIVE mode: reads system time
        In FIXED mode: returns the pinned instant
        """
        if self._is_live:
            return datetime.now(timezone.utc)
        return self._fixed_at

    def advance(self, delta: timedelta) -> datetime:
        """Move a FIXED clock forward. Live clocks cannot be steered."""
        if self._is_live:
            raise ValueError("Cannot advance a live clock")
        self._fixed_at = self._fixed_at + delta
        return self._fixed_at

    def is_live(self) -> bool:
        """Whether clock is in live mode."""
        return self._is_live

    @classmethod
    def live(cls) -> 'LogicalClock':
        """Create clock in LIVE mode (uses system time)."""
        return cls(_is_live=True)

    @classmethod
    def fixed(cls, at: datetime) -> 'LogicalClock':
        """Create clock in FIXED mode pinned at the given instant."""
        return cls(_is_live=False, _fixed_at=ensure_utc(at))

    def __repr__(self) -> str:
        mode = "LIVE" if self._is_live else f"FIXED@{self._fixed_at.isoformat()}"
        return f"LogicalClock({mode})"
