"""
Result Contracts

Immutable outputs of the detection and trace layers. These are the only
types presentation code (HTTP handlers, CLI, reports) consumes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from .base import Error, ErrorCode, ExceptionType, Severity, to_iso
from .evidence import Evidence, evidence_hash
from .records import ExceptionRecord


# =============================================================================
# DETECTION RESULTS
# =============================================================================

@dataclass(frozen=True)
class DetectedIssue:
    """A finding produced by a check, before persistence."""
    exception_type: ExceptionType
    severity: Severity
    title: str
    description: str
    evidence: Evidence

    @property
    def evidence_hash(self) -> str:
        return evidence_hash(self.evidence)

    @property
    def dedup_key(self) -> Tuple[str, str]:
        """(exception type, canonical evidence hash)."""
        return (self.exception_type.value, self.evidence_hash)


@dataclass(frozen=True)
class ScanSummary:
    """Counts over the component's full current exception set."""
    total: int
    critical: int
    warning: int
    info: int
    newly_detected: int

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'critical': self.critical,
            'warning': self.warning,
            'info': self.info,
            'newly_detected': self.newly_detected,
        }


@dataclass(frozen=True)
class ScanResult:
    """
    Output of scan_component.

    exceptions holds pre-existing plus newly persisted records, newest first.
    failed_writes holds findings whose persistence failed in this run;
    they are NOT counted in summary.newly_detected.
    """
    component_id: str
    exceptions: Tuple[ExceptionRecord, ...]
    summary: ScanSummary
    failed_writes: Tuple[Error, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'component_id': self.component_id,
            'exceptions': [e.to_dict() for e in self.exceptions],
            'summary': self.summary.to_dict(),
            'failed_writes': [e.to_dict() for e in self.failed_writes],
        }


@dataclass(frozen=True)
class ComponentScanFailure:
    """One component whose scan failed during a fleet scan."""
    component_id: str
    error: Error

    @property
    def error_code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    def to_dict(self) -> dict:
        return {'component_id': self.component_id, 'error': self.error.to_dict()}


@dataclass(frozen=True)
class FleetScanResult:
    """Fleet-wide aggregate of per-component scans."""
    total_components: int
    components_with_exceptions: int
    total_exceptions: int
    by_severity: Dict[str, int]
    newly_detected: int = 0
    failures: Tuple[ComponentScanFailure, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'total_components': self.total_components,
            'components_with_exceptions': self.components_with_exceptions,
            'total_exceptions': self.total_exceptions,
            'by_severity': dict(self.by_severity),
            'newly_detected': self.newly_detected,
            'failures': [f.to_dict() for f in self.failures],
        }


# =============================================================================
# TRACE RESULTS
# =============================================================================

@dataclass(frozen=True)
class TraceGap:
    """An unexplained period between two consecutive events."""
    start_date: datetime
    end_date: datetime
    days: int
    severity: str
    last_event: str
    next_event: str
    last_facility: str
    next_facility: str

    def to_dict(self) -> dict:
        return {
            'start_date': to_iso(self.start_date),
            'end_date': to_iso(self.end_date),
            'days': self.days,
            'severity': self.severity,
            'last_event': self.last_event,
            'next_event': self.next_event,
            'last_facility': self.last_facility,
            'next_facility': self.next_facility,
        }


@dataclass(frozen=True)
class TraceCompletenessResult:
    """How completely a component's life is accounted for."""
    score: int
    documented_days: int
    total_days: int
    gap_count: int
    total_gap_days: int
    rating: str
    gaps: Tuple[TraceGap, ...]
    total_events: int
    total_documents: int

    def to_dict(self) -> dict:
        return {
            'score': self.score,
            'documented_days': self.documented_days,
            'total_days': self.total_days,
            'gap_count': self.gap_count,
            'total_gap_days': self.total_gap_days,
            'rating': self.rating,
            'gaps': [g.to_dict() for g in self.gaps],
            'total_events': self.total_events,
            'total_documents': self.total_documents,
        }


@dataclass(frozen=True)
class TraceReport:
    """Back-to-birth trace summary with a tamper-evident hash."""
    component_id: str
    part_number: str
    serial_number: str
    generated_at: datetime
    retired_date: Optional[datetime]
    completeness: TraceCompletenessResult
    life_span: str
    unaccounted: str
    open_exceptions: int
    total_exceptions: int
    alert_count: int
    report_hash: str

    def to_dict(self) -> dict:
        return {
            'component_id': self.component_id,
            'part_number': self.part_number,
            'serial_number': self.serial_number,
            'generated_at': to_iso(self.generated_at),
            'retired_date': to_iso(self.retired_date),
            'completeness': self.completeness.to_dict(),
            'life_span': self.life_span,
            'unaccounted': self.unaccounted,
            'open_exceptions': self.open_exceptions,
            'total_exceptions': self.total_exceptions,
            'alert_count': self.alert_count,
            'report_hash': self.report_hash,
        }
