"""
Trace Report

Back-to-birth summary of one component, stamped with a SHA-256 hash of
its identifying figures so a printed copy can be checked for tampering.
"""

from __future__ import annotations
from typing import Optional
import hashlib
import json

from ..config import TraceConfig
from ..contracts.base import to_iso
from ..contracts.records import ComponentSnapshot
from ..contracts.results import TraceCompletenessResult, TraceReport
from ..temporal.clock import LogicalClock
from .completeness import calculate_trace_completeness, format_duration, retired_date_for


def compute_report_hash(
    snapshot: ComponentSnapshot,
    completeness: TraceCompletenessResult,
    generated_at_iso: str
) -> str:
    component = snapshot.component
    payload = json.dumps({
        'component_id': component.component_id,
        'part_number': component.part_number,
        'serial_number': component.serial_number,
        'score': completeness.score,
        'total_days': completeness.total_days,
        'event_count': len(snapshot.events),
        'generated_at': generated_at_iso,
    }, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def build_trace_report(
    snapshot: ComponentSnapshot,
    clock: Optional[LogicalClock] = None,
    config: Optional[TraceConfig] = None
) -> TraceReport:
    """Assemble the trace report for a loaded component."""
    clock = clock or LogicalClock.live()
    component = snapshot.component
    retired = retired_date_for(snapshot)

    completeness = calculate_trace_completeness(
        component.manufacture_date,
        snapshot.events,
        snapshot.documents,
        retired_date=retired,
        clock=clock,
        config=config,
    )
    generated_at = clock.now()

    return TraceReport(
        component_id=component.component_id,
        part_number=component.part_number,
        serial_number=component.serial_number,
        generated_at=generated_at,
        retired_date=retired,
        completeness=completeness,
        life_span=format_duration(completeness.total_days),
        unaccounted=format_duration(completeness.total_gap_days),
        open_exceptions=sum(1 for e in snapshot.exceptions if e.is_active),
        total_exceptions=len(snapshot.exceptions),
        alert_count=len(snapshot.alerts),
        report_hash=compute_report_hash(snapshot, completeness, to_iso(generated_at)),
    )
