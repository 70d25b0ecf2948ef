"""
Integrity Checks
================

Eight independent, pure check functions. Each one reads only the fields
of the snapshot it needs and returns zero or more DetectedIssue values.

Every check has the same signature:

    check(snapshot, config, now) -> List[DetectedIssue]

CONSTRAINTS:
- No I/O, no system clock (``now`` is injected)
- Missing optional data (counters, certificates) is skipped, never an error
- Bad history is REPORTED, never corrected
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Callable, List, NamedTuple, Optional, Tuple

from ..config import DetectionConfig
from ..contracts.base import DocumentType, EventType, ExceptionType, FacilityType, Severity
from ..contracts.evidence import (
    ComponentIdentity, CounterRate, CounterReading, CounterRegression,
    DocumentationGap, DoubleInstall, EventRef, MissingBirthCertificate,
    MissingFacilityCertificate, MissingReleaseCertificate, OutOfOrderEvents,
    StaleDraftDocument,
)
from ..contracts.records import ComponentSnapshot, LifecycleEvent
from ..contracts.results import DetectedIssue
from ..temporal.days import days_between, round_half_up

Check = Callable[[ComponentSnapshot, DetectionConfig, datetime], List[DetectedIssue]]

RELEASE_CERTIFICATE_TYPES = (DocumentType.FORM_8130.value, DocumentType.FORM_8130_3.value)


# =============================================================================
# FORMATTING HELPERS (presentation text only, never part of evidence)
# =============================================================================

def format_date(value: datetime) -> str:
    """Format a date as "Mon D, YYYY"."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_count(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def _ref(event: LifecycleEvent, with_facility: bool = True) -> EventRef:
    return EventRef(
        event_id=event.event_id,
        event_type=event.event_type,
        date=event.date,
        facility=event.facility.name if with_facility else None,
    )


def _reading(event: LifecycleEvent, value: float) -> CounterReading:
    return CounterReading(event_id=event.event_id, date=event.date, value=value)


def _pairs(events: Tuple[LifecycleEvent, ...]):
    return zip(events, events[1:])


# =============================================================================
# USAGE COUNTERS
# =============================================================================

class _Counter(NamedTuple):
    name: str
    attribute: str
    exception_type: ExceptionType
    regression_title: str
    regression_tail: str
    rate_title: str
    rate_label: str
    rate_tail: str


_CYCLES = _Counter(
    name="cycles",
    attribute="cycles_at_event",
    exception_type=ExceptionType.CYCLE_COUNT_DISCREPANCY,
    regression_title="Cycle Count Decreased Between Events",
    regression_tail="Cycles should only increase over a component's life.",
    rate_title="Impossibly High Cycle Rate",
    rate_label="cycle rate of {rate} cycles/day",
    rate_tail=(
        "Most components see 6-8 cycles/day in commercial service. "
        "This may indicate a data entry error."
    ),
)

_HOURS = _Counter(
    name="hours",
    attribute="hours_at_event",
    exception_type=ExceptionType.HOUR_COUNT_DISCREPANCY,
    regression_title="Flight Hours Decreased Between Events",
    regression_tail="Hours should only increase.",
    rate_title="Impossibly High Flight Hour Rate",
    rate_label="flight rate of {rate} hours/day",
    rate_tail="Commercial aircraft typically fly 10-14 hours/day.",
)


def _counter_issues(
    snapshot: ComponentSnapshot,
    counter: _Counter,
    max_per_day: float
) -> List[DetectedIssue]:
    """Monotonicity and rate plausibility over events carrying the counter."""
    issues: List[DetectedIssue] = []
    readings = [
        (e, getattr(e, counter.attribute))
        for e in snapshot.events
        if getattr(e, counter.attribute) is not None
    ]

    for (current, current_value), (following, next_value) in zip(readings, readings[1:]):
        earlier = _reading(current, current_value)
        later = _reading(following, next_value)

        if next_value < current_value:
            issues.append(DetectedIssue(
                exception_type=counter.exception_type,
                severity=Severity.CRITICAL,
                title=counter.regression_title,
                description=(
                    f"{counter.name.capitalize()} decreased from {format_count(current_value)} "
                    f"at event on {format_date(current.date)} to {format_count(next_value)} "
                    f"at event on {format_date(following.date)}. {counter.regression_tail}"
                ),
                evidence=CounterRegression(
                    counter=counter.name,
                    earlier=earlier,
                    later=later,
                    delta=next_value - current_value,
                ),
            ))

        if next_value > current_value:
            elapsed = days_between(current.date, following.date)
            if elapsed <= 0:
                continue
            per_day = (next_value - current_value) / elapsed
            if per_day > max_per_day:
                rate = round_half_up(per_day, 1)
                issues.append(DetectedIssue(
                    exception_type=counter.exception_type,
                    severity=Severity.WARNING,
                    title=counter.rate_title,
                    description=(
                        f"Implied {counter.rate_label.format(rate=f'{per_day:.1f}')} between "
                        f"{format_date(current.date)} and {format_date(following.date)}. "
                        f"{counter.rate_tail}"
                    ),
                    evidence=CounterRate(
                        counter=counter.name,
                        earlier=earlier,
                        later=later,
                        rate_per_day=rate,
                        days_between=elapsed,
                    ),
                ))

    return issues


def check_cycle_counts(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """Cycle counts only go up, and never faster than config.max_cycles_per_day."""
    return _counter_issues(snapshot, _CYCLES, config.max_cycles_per_day)


def check_hour_counts(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """Flight hours only go up, and never faster than config.max_hours_per_day."""
    return _counter_issues(snapshot, _HOURS, config.max_hours_per_day)


# =============================================================================
# CHAIN OF CUSTODY
# =============================================================================

def check_documentation_gaps(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """
    Long silences while the part is off an aircraft.

    A part that is installed (or was just inspected/tested in service)
    may legitimately fly for years between records, so gaps after
    in-service events are never flagged. After an off-aircraft event the
    part should have a clear chain of custody: supply-chain hand-offs
    (manufacture, release, transfer) allow for warehousing and transit,
    everything else must be followed up quickly.
    """
    issues: List[DetectedIssue] = []

    for current, following in _pairs(snapshot.events):
        if current.event_type in config.in_service_events:
            continue
        if current.event_type not in config.off_aircraft_events:
            continue

        gap_days = days_between(current.date, following.date)
        if current.event_type in config.supply_chain_events:
            threshold = config.supply_chain_gap_days
        else:
            threshold = config.custody_gap_days

        if gap_days <= threshold:
            continue

        severity = Severity.CRITICAL if gap_days > config.critical_gap_days else Severity.WARNING
        months = int(round_half_up(gap_days / 30))

        issues.append(DetectedIssue(
            exception_type=ExceptionType.DOCUMENTATION_GAP,
            severity=severity,
            title=f"Documentation Gap - {months} Month{'s' if months != 1 else ''}",
            description=(
                f"No records between {current.event_type} at {current.facility.name} on "
                f"{format_date(current.date)} and {following.event_type} at "
                f"{following.facility.name} on {format_date(following.date)}. "
                f"{gap_days} days unaccounted for."
            ),
            evidence=DocumentationGap(
                before=_ref(current),
                after=_ref(following),
                gap_days=gap_days,
                gap_months=months,
            ),
        ))

    return issues


# =============================================================================
# REQUIRED PAPERWORK
# =============================================================================

def check_missing_release_certificate(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """
    Release-to-service without an 8130-3.

    Only release_to_service events are checked. Repair, reassembly and
    final inspection events are not, even though a release certificate
    is expected after them as well.
    """
    issues: List[DetectedIssue] = []
    has_library_certificate = any(
        d.doc_type in RELEASE_CERTIFICATE_TYPES for d in snapshot.documents
    )

    for event in snapshot.events:
        if event.event_type != EventType.RELEASE_TO_SERVICE:
            continue
        has_generated = any(
            d.doc_type == DocumentType.FORM_8130_3 for d in event.generated_docs
        )
        if has_generated or has_library_certificate:
            continue

        issues.append(DetectedIssue(
            exception_type=ExceptionType.MISSING_RELEASE_CERTIFICATE,
            severity=Severity.WARNING,
            title="Missing Release Certificate (8130-3)",
            description=(
                f"Release-to-service event on {format_date(event.date)} at "
                f"{event.facility.name} has no associated FAA Form 8130-3 certificate. "
                f"A release certificate is required for any part returning to service "
                f"after repair or overhaul."
            ),
            evidence=MissingReleaseCertificate(event=_ref(event)),
        ))

    return issues


def check_missing_birth_certificate(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """No manufacture event, and (separately) no birth-certificate document."""
    issues: List[DetectedIssue] = []
    component = snapshot.component
    label = f"{component.part_number} ({component.serial_number})"

    if not snapshot.events_of_type(EventType.MANUFACTURE):
        issues.append(DetectedIssue(
            exception_type=ExceptionType.MISSING_BIRTH_CERTIFICATE,
            severity=Severity.WARNING,
            title="No Manufacture Event on Record",
            description=(
                f"Component {label} has no manufacture event in its lifecycle history. "
                f"Every traceable part should have a documented origin."
            ),
            evidence=ComponentIdentity(
                component_id=component.component_id,
                part_number=component.part_number,
                serial_number=component.serial_number,
            ),
        ))

    if not any(d.doc_type == DocumentType.BIRTH_CERTIFICATE for d in snapshot.documents):
        issues.append(DetectedIssue(
            exception_type=ExceptionType.MISSING_BIRTH_CERTIFICATE,
            severity=Severity.WARNING,
            title="No Birth Certificate Document",
            description=(
                f"Component {label} has no birth certificate (manufacturer's 8130-3) in "
                f"its document library. Without an original equipment release "
                f"certificate, the part's origin cannot be verified."
            ),
            evidence=MissingBirthCertificate(
                component_id=component.component_id,
                part_number=component.part_number,
                serial_number=component.serial_number,
                document_types=tuple(d.doc_type for d in snapshot.documents),
            ),
        ))

    return issues


# =============================================================================
# SEQUENCE CONSISTENCY
# =============================================================================

def check_date_inconsistency(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """Events out of chronological order, and installs without a removal."""
    issues: List[DetectedIssue] = []
    events = snapshot.events

    for current, following in _pairs(events):
        if following.date < current.date:
            issues.append(DetectedIssue(
                exception_type=ExceptionType.DATE_INCONSISTENCY,
                severity=Severity.CRITICAL,
                title="Events Out of Chronological Order",
                description=(
                    f'Event "{following.event_type}" on {format_date(following.date)} '
                    f'occurs before the previous event "{current.event_type}" on '
                    f'{format_date(current.date)}. Events should always be in '
                    f'chronological order.'
                ),
                evidence=OutOfOrderEvents(
                    earlier=_ref(current, with_facility=False),
                    later=_ref(following, with_facility=False),
                ),
            ))

    last_install: Optional[LifecycleEvent] = None
    for event in events:
        if event.event_type == EventType.REMOVE:
            last_install = None
            continue
        if event.event_type != EventType.INSTALL:
            continue

        if last_install is not None:
            removed_between = any(
                e.event_type == EventType.REMOVE and last_install.date < e.date < event.date
                for e in events
            )
            if not removed_between:
                issues.append(DetectedIssue(
                    exception_type=ExceptionType.DATE_INCONSISTENCY,
                    severity=Severity.CRITICAL,
                    title="Consecutive Installations Without Removal",
                    description=(
                        f"Two install events found without an intervening removal. "
                        f"Installed at {last_install.facility.name} on "
                        f"{format_date(last_install.date)}, then again at "
                        f"{event.facility.name} on {format_date(event.date)}. "
                        f"A component cannot be installed on two aircraft simultaneously."
                    ),
                    evidence=DoubleInstall(
                        first_install=_ref(last_install),
                        second_install=_ref(event),
                    ),
                ))
        last_install = event

    return issues


# =============================================================================
# DOCUMENT HYGIENE
# =============================================================================

def check_unsigned_documents(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """Generated documents left in draft past the approval window."""
    issues: List[DetectedIssue] = []
    cutoff = now - timedelta(days=config.draft_staleness_days)

    for event in snapshot.events:
        for doc in event.generated_docs:
            if doc.status != "draft" or not doc.created_at < cutoff:
                continue
            issues.append(DetectedIssue(
                exception_type=ExceptionType.UNSIGNED_DOCUMENT,
                severity=Severity.INFO,
                title="Unsigned Document - Awaiting Approval",
                description=(
                    f'A generated {doc.doc_type} document for the {event.event_type} '
                    f'event on {format_date(event.date)} has been in "draft" status for '
                    f'more than {config.draft_staleness_days} days. Documents should be '
                    f'reviewed and approved promptly.'
                ),
                evidence=StaleDraftDocument(
                    document_id=doc.document_id,
                    doc_type=doc.doc_type,
                    event_id=event.event_id,
                    event_type=event.event_type,
                    created_at=doc.created_at,
                ),
            ))

    return issues


def check_facility_certificates(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime
) -> List[DetectedIssue]:
    """Maintenance at an MRO must record the facility's certificate number."""
    issues: List[DetectedIssue] = []

    for event in snapshot.events:
        if event.event_type not in config.maintenance_events:
            continue
        if event.facility.facility_type != FacilityType.MRO:
            continue
        if event.facility.certificate_number:
            continue

        issues.append(DetectedIssue(
            exception_type=ExceptionType.MISSING_FACILITY_CERTIFICATE,
            severity=Severity.WARNING,
            title="Facility Certificate Missing",
            description=(
                f"The {event.event_type} event on {format_date(event.date)} at "
                f"{event.facility.name} has no FAA Part 145 certificate number recorded. "
                f"Repair facilities must hold valid certification to perform "
                f"maintenance on aircraft components."
            ),
            evidence=MissingFacilityCertificate(
                event=_ref(event),
                facility_type=event.facility.facility_type,
            ),
        ))

    return issues


# Run order is fixed so findings are produced deterministically.
ALL_CHECKS: Tuple[Check, ...] = (
    check_cycle_counts,
    check_hour_counts,
    check_documentation_gaps,
    check_missing_release_certificate,
    check_missing_birth_certificate,
    check_date_inconsistency,
    check_unsigned_documents,
    check_facility_certificates,
)


def run_checks(
    snapshot: ComponentSnapshot,
    config: DetectionConfig,
    now: datetime,
    checks: Tuple[Check, ...] = ALL_CHECKS
) -> List[DetectedIssue]:
    """Run every check against one snapshot and concatenate the findings."""
    issues: List[DetectedIssue] = []
    for check in checks:
        issues.extend(check(snapshot, config, now))
    return issues
