"""
Trace Completeness
==================

How much of a component's life is accounted for by documentation.

Every day from manufacture to retirement (or now) is either COVERED by
some nearby event or not:
- an install covers every day until the next removal
- any other event covers a window of days around itself (shop
  processing, transit, warehousing)

Unexplained stretches between consecutive off-aircraft events are
reported as gaps.

Pure: no I/O; "now" comes from the injected clock.
"""

from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Sequence, Set

from ..config import TraceConfig
from ..contracts.base import EventType, GapSeverity, TraceRating
from ..contracts.records import ComponentSnapshot, Document, LifecycleEvent
from ..contracts.results import TraceCompletenessResult, TraceGap
from ..temporal.clock import LogicalClock
from ..temporal.days import day_offset, round_half_up

DAYS_PER_MONTH = 30
MONTHS_PER_YEAR = 12


def _empty_result(documents: Sequence[Document]) -> TraceCompletenessResult:
    return TraceCompletenessResult(
        score=0,
        documented_days=0,
        total_days=0,
        gap_count=0,
        total_gap_days=0,
        rating=TraceRating.POOR.value,
        gaps=(),
        total_events=0,
        total_documents=len(documents),
    )


def rate_score(score: float) -> TraceRating:
    if score > 95:
        return TraceRating.COMPLETE
    if score >= 80:
        return TraceRating.GOOD
    if score >= 60:
        return TraceRating.FAIR
    return TraceRating.POOR


def _gap_severity(days: int, config: TraceConfig) -> GapSeverity:
    if days > config.critical_gap_days:
        return GapSeverity.CRITICAL
    if days > config.warning_gap_days:
        return GapSeverity.WARNING
    return GapSeverity.MINOR


def covered_days(
    birth: datetime,
    ordered: Sequence[LifecycleEvent],
    total_days: int,
    config: TraceConfig
) -> Set[int]:
    """Day offsets from birth that some event accounts for."""
    covered: Set[int] = set()

    for i, event in enumerate(ordered):
        offset = day_offset(birth, event.date)

        if event.event_type == EventType.INSTALL:
            end = total_days
            for later in ordered[i + 1:]:
                if later.event_type == EventType.REMOVE:
                    end = day_offset(birth, later.date)
                    break
            covered.update(range(offset, min(end, total_days) + 1))
            continue

        window = config.coverage_days.get(event.event_type) or config.default_coverage_days
        covered.update(range(max(0, offset - window), min(total_days, offset + window) + 1))

    return covered


def find_gaps(ordered: Sequence[LifecycleEvent], config: TraceConfig) -> List[TraceGap]:
    """Long stretches between consecutive events not covered by an install."""
    gaps: List[TraceGap] = []

    for current, following in zip(ordered, ordered[1:]):
        if current.event_type == EventType.INSTALL:
            continue
        days = day_offset(current.date, following.date)
        if days <= config.gap_threshold_days:
            continue
        gaps.append(TraceGap(
            start_date=current.date,
            end_date=following.date,
            days=days,
            severity=_gap_severity(days, config).value,
            last_event=current.event_type,
            next_event=following.event_type,
            last_facility=current.facility.name,
            next_facility=following.facility.name,
        ))

    return gaps


def calculate_trace_completeness(
    manufacture_date: datetime,
    events: Sequence[LifecycleEvent],
    documents: Sequence[Document],
    retired_date: Optional[datetime] = None,
    clock: Optional[LogicalClock] = None,
    config: Optional[TraceConfig] = None
) -> TraceCompletenessResult:
    """
    Score how completely a component's life is documented.

    Args:
        manufacture_date: Start of the component's life
        events: Lifecycle events in any order
        documents: Library documents (only counted)
        retired_date: End of life for retired/scrapped components
        clock: Source of "now" when retired_date is None (live by default)
        config: Coverage windows and gap thresholds

    Returns:
        TraceCompletenessResult. With no events the result is zeroed and
        rated poor; nothing is computed from dates.
    """
    if not events:
        return _empty_result(documents)

    config = config or TraceConfig()
    end = retired_date
    if end is None:
        end = (clock or LogicalClock.live()).now()

    total_days = max(1, day_offset(manufacture_date, end))
    ordered = sorted(events, key=lambda e: e.date)

    documented_days = len(covered_days(manufacture_date, ordered, total_days, config))
    gaps = find_gaps(ordered, config)

    raw_score = int(round_half_up(100 * documented_days / total_days))

    return TraceCompletenessResult(
        score=min(100, raw_score),
        documented_days=documented_days,
        total_days=total_days,
        gap_count=len(gaps),
        total_gap_days=sum(g.days for g in gaps),
        rating=rate_score(raw_score).value,
        gaps=tuple(gaps),
        total_events=len(events),
        total_documents=len(documents),
    )


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def format_duration(days: int) -> str:
    """
    Render a day count with 30-day months and 12-month years.

    >>> format_duration(1)
    '1 day'
    >>> format_duration(30)
    '1 month'
    >>> format_duration(45)
    '1 month, 15 days'
    >>> format_duration(395)
    '1 year, 1 month'
    """
    if days < DAYS_PER_MONTH:
        return _plural(days, "day")

    months, remaining_days = divmod(days, DAYS_PER_MONTH)
    if months < MONTHS_PER_YEAR:
        if remaining_days == 0:
            return _plural(months, "month")
        return f"{_plural(months, 'month')}, {_plural(remaining_days, 'day')}"

    years, remaining_months = divmod(months, MONTHS_PER_YEAR)
    if remaining_months == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')}, {_plural(remaining_months, 'month')}"


def retired_date_for(snapshot: ComponentSnapshot) -> Optional[datetime]:
    """Date of the last event for retired or scrapped components, else None."""
    if not snapshot.component.is_retired or not snapshot.events:
        return None
    return snapshot.events[-1].date
