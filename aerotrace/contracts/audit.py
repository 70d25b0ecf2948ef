"""
Observability Contracts

Immutable audit entries and metric points recorded by the observability
layer. Collectors receive these; they never receive live engine objects.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .base import to_iso


class AuditEventType(Enum):
    """Explicit audit event types."""
    SCAN = "scan"
    FLEET_SCAN = "fleet_scan"
    EXCEPTION_CREATED = "exception_created"
    REVIEW = "review"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'entry_id': self.entry_id,
            'event_type': self.event_type.value,
            'timestamp': to_iso(self.timestamp),
            'layer': self.layer,
            'action': self.action,
            'entity_id': self.entity_id,
            'entity_type': self.entity_type,
            'metadata': dict(self.metadata),
        }


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: datetime
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
