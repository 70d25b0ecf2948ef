"""
Lifecycle Record Contracts

Immutable records for components and everything a component owns:
lifecycle events (with attached evidence items, generated documents and
consumed parts), library documents, integrity exceptions and alerts.

WHAT THESE TYPES MUST NOT DO:
=============================
- Validate chronology or counter monotonicity (that is DETECTION, not
  construction: bad history is reported, never rejected)
- Reach into storage
- Hold mutable state; status changes produce new records via replace()
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple

from .base import (
    ComponentStatus, EventType, ExceptionStatus, Severity,
    ensure_utc, parse_datetime, to_iso,
)
from .evidence import Evidence, evidence_from_dict, evidence_hash


# =============================================================================
# EVENT PARTS
# =============================================================================

@dataclass(frozen=True)
class Facility:
    """Where an event happened."""
    name: str
    facility_type: str
    certificate_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'facility_type': self.facility_type,
            'certificate_number': self.certificate_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Facility':
        return cls(
            name=data.get('name', ''),
            facility_type=data.get('facility_type', ''),
            certificate_number=data.get('certificate_number') or None,
        )


@dataclass(frozen=True)
class Performer:
    """Who performed the work."""
    name: str
    certification: Optional[str] = None

    def to_dict(self) -> dict:
        return {'name': self.name, 'certification': self.certification}

    @classmethod
    def from_dict(cls, data: dict) -> 'Performer':
        return cls(name=data.get('name', ''), certification=data.get('certification'))


@dataclass(frozen=True)
class EvidenceItem:
    """Captured evidence (photo, video, voice note) attached to an event."""
    item_id: str
    item_type: str
    file_name: str
    transcription: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'item_type': self.item_type,
            'file_name': self.file_name,
            'transcription': self.transcription,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EvidenceItem':
        return cls(
            item_id=data['item_id'],
            item_type=data.get('item_type', ''),
            file_name=data.get('file_name', ''),
            transcription=data.get('transcription'),
        )


@dataclass(frozen=True)
class GeneratedDocument:
    """A document generated for a specific event (e.g. an 8130-3 draft)."""
    document_id: str
    doc_type: str
    created_at: datetime
    status: str = "draft"
    title: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'created_at', ensure_utc(self.created_at))

    def to_dict(self) -> dict:
        return {
            'document_id': self.document_id,
            'doc_type': self.doc_type,
            'created_at': to_iso(self.created_at),
            'status': self.status,
            'title': self.title,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GeneratedDocument':
        return cls(
            document_id=data['document_id'],
            doc_type=data['doc_type'],
            created_at=parse_datetime(data['created_at']),
            status=data.get('status', 'draft'),
            title=data.get('title', ''),
        )


@dataclass(frozen=True)
class PartConsumed:
    """A sub-part consumed during maintenance."""
    part_id: str
    part_number: str
    description: str = ""

    def to_dict(self) -> dict:
        return {
            'part_id': self.part_id,
            'part_number': self.part_number,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PartConsumed':
        return cls(
            part_id=data['part_id'],
            part_number=data['part_number'],
            description=data.get('description', ''),
        )


# =============================================================================
# LIFECYCLE EVENT
# =============================================================================

@dataclass(frozen=True)
class LifecycleEvent:
    """
    One fact about a component's history.

    Counters (hours/cycles) are optional. None means "no data", which
    every check treats as something to skip, never as zero.
    """
    event_id: str
    event_type: str
    date: datetime
    facility: Facility
    performer: Performer
    description: str = ""
    hours_at_event: Optional[float] = None
    cycles_at_event: Optional[float] = None
    aircraft: Optional[str] = None
    operator: Optional[str] = None
    work_order_ref: Optional[str] = None
    cmm_reference: Optional[str] = None
    notes: Optional[str] = None
    record_hash: Optional[str] = None
    evidence_items: Tuple[EvidenceItem, ...] = field(default_factory=tuple)
    generated_docs: Tuple[GeneratedDocument, ...] = field(default_factory=tuple)
    parts_consumed: Tuple[PartConsumed, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'date', ensure_utc(self.date))

    def to_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type,
            'date': to_iso(self.date),
            'facility': self.facility.to_dict(),
            'performer': self.performer.to_dict(),
            'description': self.description,
            'hours_at_event': self.hours_at_event,
            'cycles_at_event': self.cycles_at_event,
            'aircraft': self.aircraft,
            'operator': self.operator,
            'work_order_ref': self.work_order_ref,
            'cmm_reference': self.cmm_reference,
            'notes': self.notes,
            'record_hash': self.record_hash,
            'evidence_items': [e.to_dict() for e in self.evidence_items],
            'generated_docs': [d.to_dict() for d in self.generated_docs],
            'parts_consumed': [p.to_dict() for p in self.parts_consumed],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LifecycleEvent':
        return cls(
            event_id=data['event_id'],
            event_type=data['event_type'],
            date=parse_datetime(data['date']),
            facility=Facility.from_dict(data.get('facility', {})),
            performer=Performer.from_dict(data.get('performer', {})),
            description=data.get('description', ''),
            hours_at_event=data.get('hours_at_event'),
            cycles_at_event=data.get('cycles_at_event'),
            aircraft=data.get('aircraft'),
            operator=data.get('operator'),
            work_order_ref=data.get('work_order_ref'),
            cmm_reference=data.get('cmm_reference'),
            notes=data.get('notes'),
            record_hash=data.get('record_hash'),
            evidence_items=tuple(
                EvidenceItem.from_dict(e) for e in data.get('evidence_items', ())
            ),
            generated_docs=tuple(
                GeneratedDocument.from_dict(d) for d in data.get('generated_docs', ())
            ),
            parts_consumed=tuple(
                PartConsumed.from_dict(p) for p in data.get('parts_consumed', ())
            ),
        )


# =============================================================================
# COMPONENT-LEVEL RECORDS
# =============================================================================

@dataclass(frozen=True)
class Document:
    """A compliance artifact in the component's library."""
    document_id: str
    doc_type: str
    title: str = ""
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'document_id': self.document_id,
            'doc_type': self.doc_type,
            'title': self.title,
            'created_at': to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Document':
        return cls(
            document_id=data['document_id'],
            doc_type=data['doc_type'],
            title=data.get('title', ''),
            created_at=parse_datetime(data.get('created_at')),
        )


@dataclass(frozen=True)
class ExceptionRecord:
    """
    A persisted integrity exception.

    Created by a scan with status OPEN; afterwards mutated only by human
    review, which produces a new revision through with_status().
    """
    exception_id: str
    component_id: str
    exception_type: str
    severity: str
    title: str
    description: str
    evidence: Evidence
    detected_at: datetime
    status: str = ExceptionStatus.OPEN.value
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None

    @property
    def evidence_hash(self) -> str:
        return evidence_hash(self.evidence)

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.exception_type, self.evidence_hash)

    @property
    def is_active(self) -> bool:
        """Open or under investigation (blocks re-reporting)."""
        return not ExceptionStatus(self.status).is_closed

    def with_status(
        self,
        status: ExceptionStatus,
        at: datetime,
        resolved_by: Optional[str] = None,
        resolution_notes: Optional[str] = None
    ) -> 'ExceptionRecord':
        """Return the reviewed revision of this record (immutable)."""
        return replace(
            self,
            status=status.value,
            resolved_by=resolved_by,
            resolution_notes=resolution_notes,
            resolved_at=at if status.is_closed else None,
        )

    def to_dict(self) -> dict:
        return {
            'exception_id': self.exception_id,
            'component_id': self.component_id,
            'exception_type': self.exception_type,
            'severity': self.severity,
            'title': self.title,
            'description': self.description,
            'evidence': self.evidence.to_dict(),
            'evidence_hash': self.evidence_hash,
            'status': self.status,
            'detected_at': to_iso(self.detected_at),
            'resolved_at': to_iso(self.resolved_at),
            'resolved_by': self.resolved_by,
            'resolution_notes': self.resolution_notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ExceptionRecord':
        return cls(
            exception_id=data['exception_id'],
            component_id=data['component_id'],
            exception_type=data['exception_type'],
            severity=Severity(data['severity']).value,
            title=data.get('title', ''),
            description=data.get('description', ''),
            evidence=evidence_from_dict(data['evidence']),
            detected_at=parse_datetime(data['detected_at']),
            status=ExceptionStatus(data.get('status', 'open')).value,
            resolved_at=parse_datetime(data.get('resolved_at')),
            resolved_by=data.get('resolved_by'),
            resolution_notes=data.get('resolution_notes'),
        )


@dataclass(frozen=True)
class Alert:
    """Manually curated flag. Carried alongside engine output, never produced by it."""
    alert_id: str
    component_id: str
    alert_type: str
    severity: str
    title: str
    description: str = ""
    status: str = "open"
    resolved_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'alert_id': self.alert_id,
            'component_id': self.component_id,
            'alert_type': self.alert_type,
            'severity': self.severity,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'resolved_at': to_iso(self.resolved_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Alert':
        return cls(
            alert_id=data['alert_id'],
            component_id=data['component_id'],
            alert_type=data['alert_type'],
            severity=data['severity'],
            title=data.get('title', ''),
            description=data.get('description', ''),
            status=data.get('status', 'open'),
            resolved_at=parse_datetime(data.get('resolved_at')),
        )


@dataclass(frozen=True)
class Component:
    """Identity and current status of a serialized part."""
    component_id: str
    part_number: str
    serial_number: str
    description: str
    manufacture_date: datetime
    status: str = ComponentStatus.SERVICEABLE.value

    def __post_init__(self):
        object.__setattr__(self, 'manufacture_date', ensure_utc(self.manufacture_date))

    @property
    def is_retired(self) -> bool:
        return self.status in (ComponentStatus.RETIRED, ComponentStatus.SCRAPPED)

    def to_dict(self) -> dict:
        return {
            'component_id': self.component_id,
            'part_number': self.part_number,
            'serial_number': self.serial_number,
            'description': self.description,
            'manufacture_date': to_iso(self.manufacture_date),
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Component':
        return cls(
            component_id=data['component_id'],
            part_number=data['part_number'],
            serial_number=data['serial_number'],
            description=data.get('description', ''),
            manufacture_date=parse_datetime(data['manufacture_date']),
            status=data.get('status', ComponentStatus.SERVICEABLE.value),
        )


# =============================================================================
# SNAPSHOT (what the engines read)
# =============================================================================

@dataclass(frozen=True)
class ComponentSnapshot:
    """
    Fully-loaded view of one component.

    Events are ordered ascending by date (stable for equal dates). The
    repository guarantees the ordering; detection reads it as given.
    """
    component: Component
    events: Tuple[LifecycleEvent, ...] = field(default_factory=tuple)
    documents: Tuple[Document, ...] = field(default_factory=tuple)
    exceptions: Tuple[ExceptionRecord, ...] = field(default_factory=tuple)
    alerts: Tuple[Alert, ...] = field(default_factory=tuple)

    @property
    def component_id(self) -> str:
        return self.component.component_id

    def events_of_type(self, event_type: EventType) -> List[LifecycleEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def to_dict(self) -> dict:
        """Serialize the owned records (exceptions live in their own log)."""
        return {
            'component': self.component.to_dict(),
            'events': [e.to_dict() for e in self.events],
            'documents': [d.to_dict() for d in self.documents],
            'alerts': [a.to_dict() for a in self.alerts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ComponentSnapshot':
        return cls(
            component=Component.from_dict(data['component']),
            events=tuple(LifecycleEvent.from_dict(e) for e in data.get('events', ())),
            documents=tuple(Document.from_dict(d) for d in data.get('documents', ())),
            alerts=tuple(Alert.from_dict(a) for a in data.get('alerts', ())),
        )
