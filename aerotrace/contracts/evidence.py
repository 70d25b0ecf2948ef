"""
Exception Evidence Contract
===========================

Typed evidence payloads attached to integrity exceptions.

Each finding kind has its own frozen shape with well-defined fields.
The shapes form a tagged union: every variant serializes with a ``kind``
tag and can be rebuilt from its dictionary form.

DEDUPLICATION:
==============
Evidence identity is STRUCTURAL, never textual:
- Keys are sorted, whitespace is fixed
- Timestamps are rendered as ISO-8601 UTC
- Integral floats are rendered as integers (100.0 == 100)
- Collections whose order carries no meaning are sorted on construction

Same findings -> same canonical bytes -> same evidence hash, regardless
of field order in the stored representation.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple, Union
import hashlib
import json

from .base import parse_datetime, to_iso


# =============================================================================
# EVENT REFERENCES (shared building blocks)
# =============================================================================

@dataclass(frozen=True)
class CounterReading:
    """A counter value (cycles or hours) observed at an event."""
    event_id: str
    date: datetime
    value: float

    def to_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'date': to_iso(self.date),
            'value': _number(self.value),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CounterReading':
        return cls(
            event_id=data['event_id'],
            date=parse_datetime(data['date']),
            value=data['value'],
        )


@dataclass(frozen=True)
class EventRef:
    """Reference to a lifecycle event with its type and facility."""
    event_id: str
    event_type: str
    date: datetime
    facility: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type,
            'date': to_iso(self.date),
            'facility': self.facility,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EventRef':
        return cls(
            event_id=data['event_id'],
            event_type=data['event_type'],
            date=parse_datetime(data['date']),
            facility=data.get('facility'),
        )


# =============================================================================
# EVIDENCE VARIANTS
# =============================================================================

@dataclass(frozen=True)
class CounterRegression:
    """A usage counter decreased between two consecutive readings."""
    counter: str                  # "cycles" or "hours"
    earlier: CounterReading
    later: CounterReading
    delta: float

    kind = "counter_regression"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'counter': self.counter,
            'earlier': self.earlier.to_dict(),
            'later': self.later.to_dict(),
            'delta': _number(self.delta),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CounterRegression':
        return cls(
            counter=data['counter'],
            earlier=CounterReading.from_dict(data['earlier']),
            later=CounterReading.from_dict(data['later']),
            delta=data['delta'],
        )


@dataclass(frozen=True)
class CounterRate:
    """A usage counter grew faster than is physically plausible."""
    counter: str
    earlier: CounterReading
    later: CounterReading
    rate_per_day: float           # rounded to one decimal
    days_between: int

    kind = "counter_rate"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'counter': self.counter,
            'earlier': self.earlier.to_dict(),
            'later': self.later.to_dict(),
            'rate_per_day': _number(self.rate_per_day),
            'days_between': self.days_between,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CounterRate':
        return cls(
            counter=data['counter'],
            earlier=CounterReading.from_dict(data['earlier']),
            later=CounterReading.from_dict(data['later']),
            rate_per_day=data['rate_per_day'],
            days_between=data['days_between'],
        )


@dataclass(frozen=True)
class DocumentationGap:
    """Unexplained time between an off-aircraft event and the next record."""
    before: EventRef
    after: EventRef
    gap_days: int
    gap_months: int

    kind = "documentation_gap"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'before': self.before.to_dict(),
            'after': self.after.to_dict(),
            'gap_days': self.gap_days,
            'gap_months': self.gap_months,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DocumentationGap':
        return cls(
            before=EventRef.from_dict(data['before']),
            after=EventRef.from_dict(data['after']),
            gap_days=data['gap_days'],
            gap_months=data['gap_months'],
        )


@dataclass(frozen=True)
class MissingReleaseCertificate:
    """A release-to-service event with no 8130-style certificate."""
    event: EventRef

    kind = "missing_release_certificate"

    def to_dict(self) -> dict:
        return {'kind': self.kind, 'event': self.event.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> 'MissingReleaseCertificate':
        return cls(event=EventRef.from_dict(data['event']))


@dataclass(frozen=True)
class ComponentIdentity:
    """Identity of a component lacking a documented origin."""
    component_id: str
    part_number: str
    serial_number: str

    kind = "component_identity"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'component_id': self.component_id,
            'part_number': self.part_number,
            'serial_number': self.serial_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ComponentIdentity':
        return cls(
            component_id=data['component_id'],
            part_number=data['part_number'],
            serial_number=data['serial_number'],
        )


@dataclass(frozen=True)
class MissingBirthCertificate:
    """No birth-certificate document in the component's library."""
    component_id: str
    part_number: str
    serial_number: str
    document_types: Tuple[str, ...] = ()

    kind = "missing_birth_certificate"

    def __post_init__(self):
        # Library order carries no meaning
        object.__setattr__(self, 'document_types', tuple(sorted(self.document_types)))

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'component_id': self.component_id,
            'part_number': self.part_number,
            'serial_number': self.serial_number,
            'document_types': list(self.document_types),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MissingBirthCertificate':
        return cls(
            component_id=data['component_id'],
            part_number=data['part_number'],
            serial_number=data['serial_number'],
            document_types=tuple(data.get('document_types', ())),
        )


@dataclass(frozen=True)
class OutOfOrderEvents:
    """An event dated before the event preceding it."""
    earlier: EventRef
    later: EventRef

    kind = "out_of_order_events"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'earlier': self.earlier.to_dict(),
            'later': self.later.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'OutOfOrderEvents':
        return cls(
            earlier=EventRef.from_dict(data['earlier']),
            later=EventRef.from_dict(data['later']),
        )


@dataclass(frozen=True)
class DoubleInstall:
    """Two installs with no removal in between."""
    first_install: EventRef
    second_install: EventRef

    kind = "double_install"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'first_install': self.first_install.to_dict(),
            'second_install': self.second_install.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DoubleInstall':
        return cls(
            first_install=EventRef.from_dict(data['first_install']),
            second_install=EventRef.from_dict(data['second_install']),
        )


@dataclass(frozen=True)
class StaleDraftDocument:
    """A generated document left in draft past the approval window."""
    document_id: str
    doc_type: str
    event_id: str
    event_type: str
    created_at: datetime

    kind = "stale_draft_document"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'document_id': self.document_id,
            'doc_type': self.doc_type,
            'event_id': self.event_id,
            'event_type': self.event_type,
            'created_at': to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'StaleDraftDocument':
        return cls(
            document_id=data['document_id'],
            doc_type=data['doc_type'],
            event_id=data['event_id'],
            event_type=data['event_type'],
            created_at=parse_datetime(data['created_at']),
        )


@dataclass(frozen=True)
class MissingFacilityCertificate:
    """Maintenance at an MRO facility with no certificate on record."""
    event: EventRef
    facility_type: str

    kind = "missing_facility_certificate"

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'event': self.event.to_dict(),
            'facility_type': self.facility_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MissingFacilityCertificate':
        return cls(
            event=EventRef.from_dict(data['event']),
            facility_type=data['facility_type'],
        )


@dataclass(frozen=True)
class InvestigationNotes:
    """
    Free-form evidence recorded by an investigator.

    Used for exception types the engine never emits (serial/part number
    mismatches). Details are (key, JSON-encoded value) pairs kept sorted.
    """
    details: Tuple[Tuple[str, str], ...] = ()

    kind = "investigation_notes"

    def __post_init__(self):
        object.__setattr__(self, 'details', tuple(sorted(self.details)))

    @classmethod
    def from_mapping(cls, mapping: dict) -> 'InvestigationNotes':
        return cls(details=tuple(
            (key, json.dumps(value, sort_keys=True, separators=(',', ':')))
            for key, value in mapping.items()
        ))

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'details': {key: json.loads(value) for key, value in self.details},
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'InvestigationNotes':
        return cls.from_mapping(data.get('details', {}))


Evidence = Union[
    CounterRegression,
    CounterRate,
    DocumentationGap,
    MissingReleaseCertificate,
    ComponentIdentity,
    MissingBirthCertificate,
    OutOfOrderEvents,
    DoubleInstall,
    StaleDraftDocument,
    MissingFacilityCertificate,
    InvestigationNotes,
]

_VARIANTS: Dict[str, Callable[[dict], Evidence]] = {
    variant.kind: variant.from_dict
    for variant in (
        CounterRegression,
        CounterRate,
        DocumentationGap,
        MissingReleaseCertificate,
        ComponentIdentity,
        MissingBirthCertificate,
        OutOfOrderEvents,
        DoubleInstall,
        StaleDraftDocument,
        MissingFacilityCertificate,
        InvestigationNotes,
    )
}


# =============================================================================
# CANONICAL FORM
# =============================================================================

def evidence_from_dict(data: dict) -> Evidence:
    """Rebuild a typed evidence value from its tagged dictionary form."""
    kind = data.get('kind')
    if kind not in _VARIANTS:
        raise ValueError(f"Unknown evidence kind: {kind!r}")
    return _VARIANTS[kind](data)


def canonical_json(evidence: Evidence) -> str:
    """
    Canonical serialization of an evidence value.

    Byte-identical for structurally identical evidence.
    """
    return json.dumps(
        _canonicalize(evidence.to_dict()),
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=True,
    )


def evidence_hash(evidence: Evidence) -> str:
    """SHA-256 of the canonical serialization (the dedup key component)."""
    return hashlib.sha256(canonical_json(evidence).encode('utf-8')).hexdigest()


def is_evidence(value: object) -> bool:
    """Whether value is one of the evidence variants."""
    return getattr(type(value), 'kind', None) in _VARIANTS and bool(fields(value))


def _canonicalize(value: object) -> object:
    if isinstance(value, dict):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    if isinstance(value, datetime):
        return to_iso(value)
    return _number(value)


def _number(value: object) -> object:
    """Render integral floats as ints so 100.0 and 100 hash alike."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
