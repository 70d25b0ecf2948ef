"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Enumeration values are wire values consumed by reporting/UI layers;
  they MUST NOT be renamed
- All value types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# LIFECYCLE ENUMERATIONS
# =============================================================================

class EventType(str, Enum):
    """Kinds of lifecycle facts recorded against a component."""
    MANUFACTURE = "manufacture"
    INSTALL = "install"
    REMOVE = "remove"
    RECEIVING_INSPECTION = "receiving_inspection"
    TEARDOWN = "teardown"
    DETAILED_INSPECTION = "detailed_inspection"
    REPAIR = "repair"
    REASSEMBLY = "reassembly"
    FUNCTIONAL_TEST = "functional_test"
    FINAL_INSPECTION = "final_inspection"
    RELEASE_TO_SERVICE = "release_to_service"
    TRANSFER = "transfer"
    RETIRE = "retire"
    SCRAP = "scrap"


class FacilityType(str, Enum):
    """Facility classification. Unknown values are kept as plain strings."""
    OEM = "oem"
    MRO = "mro"
    AIRLINE = "airline"
    DISTRIBUTOR = "distributor"
    BROKER = "broker"


class ComponentStatus(str, Enum):
    """Current lifecycle status of a component."""
    SERVICEABLE = "serviceable"
    INSTALLED = "installed"
    IN_REPAIR = "in_repair"
    QUARANTINED = "quarantined"
    RETIRED = "retired"
    SCRAPPED = "scrapped"


class DocumentType(str, Enum):
    """Document types the integrity checks look for."""
    BIRTH_CERTIFICATE = "birth_certificate"
    FORM_8130 = "8130"
    FORM_8130_3 = "8130-3"


# =============================================================================
# INTEGRITY ENUMERATIONS
# =============================================================================

class ExceptionType(str, Enum):
    """
    Integrity exception types.

    The first two are recorded by investigators only; the detection
    engine never emits them but they round-trip through storage.
    """
    SERIAL_NUMBER_MISMATCH = "serial_number_mismatch"
    PART_NUMBER_MISMATCH = "part_number_mismatch"
    CYCLE_COUNT_DISCREPANCY = "cycle_count_discrepancy"
    HOUR_COUNT_DISCREPANCY = "hour_count_discrepancy"
    DOCUMENTATION_GAP = "documentation_gap"
    MISSING_RELEASE_CERTIFICATE = "missing_release_certificate"
    MISSING_BIRTH_CERTIFICATE = "missing_birth_certificate"
    DATE_INCONSISTENCY = "date_inconsistency"
    UNSIGNED_DOCUMENT = "unsigned_document"
    MISSING_FACILITY_CERTIFICATE = "missing_facility_certificate"


class Severity(str, Enum):
    """Exception severity."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort rank: critical first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class ExceptionStatus(str, Enum):
    """Human review status of an exception."""
    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"

    @property
    def is_closed(self) -> bool:
        return self in (ExceptionStatus.RESOLVED, ExceptionStatus.FALSE_POSITIVE)


class GapSeverity(str, Enum):
    """Severity of an unexplained time gap in a trace."""
    CRITICAL = "critical"
    WARNING = "warning"
    MINOR = "minor"


class TraceRating(str, Enum):
    """Overall trace completeness rating."""
    COMPLETE = "complete"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for failures reported as data.
    Every error state that can be stored or returned is enumerated.
    """
    # Storage errors
    COMPONENT_NOT_FOUND = auto()
    EXCEPTION_NOT_FOUND = auto()
    WRITE_FAILED = auto()

    # Scan errors
    SCAN_FAILED = auto()

    # Review errors
    INVALID_STATUS = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    def to_dict(self) -> dict:
        return {
            'code': self.code.name,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'context': dict(self.context),
        }


# =============================================================================
# RAISED ERRORS
# =============================================================================

class ComponentNotFound(LookupError):
    """Raised when a component id does not exist in the store."""

    error_code = ErrorCode.COMPONENT_NOT_FOUND

    def __init__(self, component_id: str):
        super().__init__(f"Component {component_id} not found")
        self.component_id = component_id


class ExceptionNotFound(LookupError):
    """Raised when an exception id does not exist in the store."""

    error_code = ErrorCode.EXCEPTION_NOT_FOUND

    def __init__(self, exception_id: str):
        super().__init__(f"Exception {exception_id} not found")
        self.exception_id = exception_id


class InvalidStatusTransition(ValueError):
    """Raised when a review sets an unknown exception status."""

    error_code = ErrorCode.INVALID_STATUS


# =============================================================================
# TIME HELPERS
# =============================================================================

def ensure_utc(value: datetime) -> datetime:
    """Coerce naive datetimes to UTC. All timestamps are UTC, never local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Optional[object]) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).replace('Z', '+00:00')
    return ensure_utc(datetime.fromisoformat(text))


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ISO-8601 UTC, or None."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()
