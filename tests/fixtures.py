"""
Test Fixtures

Deterministic component histories for detection and trace tests.
All fixtures are explicit - no random generation, no wall-clock time.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from aerotrace.contracts.records import (
    Component, ComponentSnapshot, Document, ExceptionRecord, Facility,
    GeneratedDocument, LifecycleEvent, Performer,
)
from aerotrace.temporal import LogicalClock


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

BIRTH = datetime(2020, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
NOW = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def day(n: float) -> datetime:
    """BIRTH plus n days."""
    return BIRTH + timedelta(days=n)


def fixed_clock(at: datetime = NOW) -> LogicalClock:
    return LogicalClock.fixed(at)


# =============================================================================
# RECORD BUILDERS
# =============================================================================

OEM = Facility(name="Parker Aerospace", facility_type="oem", certificate_number="PC-1120")
MRO = Facility(name="AeroRepair MRO", facility_type="mro", certificate_number="ARS-145-0042")
MRO_UNCERTIFIED = Facility(name="Backyard Avionics", facility_type="mro")
AIRLINE = Facility(name="Delta TechOps", facility_type="airline", certificate_number="DL-145")

TECH = Performer(name="J. Rivera", certification="A&P 3344")


def make_event(
    event_id: str,
    event_type: str,
    at: datetime,
    facility: Facility = MRO,
    hours: Optional[float] = None,
    cycles: Optional[float] = None,
    generated_docs: Sequence[GeneratedDocument] = ()
) -> LifecycleEvent:
    return LifecycleEvent(
        event_id=event_id,
        event_type=event_type,
        date=at,
        facility=facility,
        performer=TECH,
        hours_at_event=hours,
        cycles_at_event=cycles,
        generated_docs=tuple(generated_docs),
    )


def make_component(
    component_id: str = "comp-001",
    status: str = "serviceable",
    manufacture_date: datetime = BIRTH
) -> Component:
    return Component(
        component_id=component_id,
        part_number="881700-1089",
        serial_number=f"SN-{component_id}",
        description="Hydraulic pump",
        manufacture_date=manufacture_date,
        status=status,
    )


BIRTH_CERTIFICATE = Document(document_id="doc-birth", doc_type="birth_certificate", title="Birth record")
RELEASE_CERTIFICATE = Document(document_id="doc-8130", doc_type="8130-3", title="Authorized release")

STANDARD_DOCUMENTS = (BIRTH_CERTIFICATE, RELEASE_CERTIFICATE)


def make_snapshot(
    events: Iterable[LifecycleEvent] = (),
    documents: Iterable[Document] = STANDARD_DOCUMENTS,
    component: Optional[Component] = None,
    exceptions: Iterable[ExceptionRecord] = ()
) -> ComponentSnapshot:
    return ComponentSnapshot(
        component=component or make_component(),
        events=tuple(events),
        documents=tuple(documents),
        exceptions=tuple(exceptions),
    )


# =============================================================================
# HISTORIES
# =============================================================================

def clean_events() -> tuple:
    """A plausible history that trips none of the integrity checks."""
    return (
        make_event("e01", "manufacture", day(0), OEM, hours=0, cycles=0),
        make_event("e02", "install", day(10), AIRLINE, hours=0, cycles=0),
        make_event("e03", "remove", day(400), AIRLINE, hours=3000, cycles=2000),
        make_event("e04", "receiving_inspection", day(405), MRO),
        make_event("e05", "repair", day(410), MRO),
        make_event("e06", "release_to_service", day(420), MRO, hours=3000, cycles=2000),
        make_event("e07", "install", day(430), AIRLINE, hours=3000, cycles=2000),
    )


def clean_snapshot(component_id: str = "comp-001") -> ComponentSnapshot:
    return make_snapshot(clean_events(), component=make_component(component_id))


def troubled_snapshot(component_id: str = "comp-bad") -> ComponentSnapshot:
    """
    A history with several independent findings:
    - cycles drop from 2000 to 1500 (critical)
    - 400-day silence after a removal (critical gap)
    - repair at an uncertified MRO (warning)
    - no birth certificate document (warning)
    """
    events = (
        make_event("b01", "manufacture", day(0), OEM, cycles=0),
        make_event("b02", "install", day(10), AIRLINE, cycles=0),
        make_event("b03", "remove", day(400), AIRLINE, cycles=2000),
        make_event("b04", "repair", day(800), MRO_UNCERTIFIED, cycles=1500),
    )
    return make_snapshot(
        events,
        documents=(RELEASE_CERTIFICATE,),
        component=make_component(component_id),
    )
