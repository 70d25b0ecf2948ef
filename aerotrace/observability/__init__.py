"""
Observability & Audit Layer

RESPONSIBILITY: Structured logging, audit trail, metrics
ALLOWED INPUTS: Audit entries and metric points from other layers
OUTPUTS: Log lines, AuditLogEntry history, metric aggregates

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret findings (only record them)
- Block or fail a scan because recording failed

Usage:
    from aerotrace.observability import configure_logging, get_component_logger

    # At application startup (once)
    configure_logging(level="INFO", json_output=True)

    # Component-bound logger, or an injected one in tests
    logger = get_component_logger("ExceptionDetectionEngine", logger)
"""

from __future__ import annotations
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional, TextIO
import hashlib
import logging
import sys

import structlog

from ..contracts.audit import AuditEventType, AuditLogEntry, MetricPoint

# Module state
_CONFIGURED = False


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    stream: Optional[TextIO] = None
) -> None:
    """
    Configure structlog for the process.

    Should be called ONCE at application startup; later calls are no-ops.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, output JSON; if False, console format
        stream: Where log lines go (stdout by default)
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = stream or sys.stdout

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=stream,
    )

    # Silence noisy libraries
    for noisy in ["httpx", "httpcore", "uvicorn.access"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def get_component_logger(component: str, logger: Optional[Any] = None) -> Any:
    """
    Get a logger bound to a component name.

    An injected logger (e.g. a test double) is bound and returned as-is,
    otherwise a structlog logger is created.
    """
    base = logger if logger is not None else structlog.get_logger()
    return base.bind(component=component)


# =============================================================================
# AUDIT LOG (append-only)
# =============================================================================

class AuditLog:
    """
    Append-only audit trail of scans and reviews.

    Entries are immutable; the log only grows. Thread-safe so fleet
    workers can record concurrently.
    """

    def __init__(self, layer_name: str = "aerotrace"):
        self._layer_name = layer_name
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0
        self._lock = Lock()

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        timestamp: datetime,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        metadata: Optional[Dict[str, object]] = None
    ) -> AuditLogEntry:
        """Append an entry and return it."""
        with self._lock:
            self._sequence += 1
            entry_id = hashlib.sha256(
                f"{self._layer_name}|{self._sequence}|{action}|{entity_id}".encode()
            ).hexdigest()[:16]
            entry = AuditLogEntry(
                entry_id=f"audit_{entry_id}",
                event_type=event_type,
                timestamp=timestamp,
                layer=self._layer_name,
                action=action,
                entity_id=entity_id,
                entity_type=entity_type,
                metadata=tuple(sorted((k, str(v)) for k, v in (metadata or {}).items())),
            )
            self._entries.append(entry)
        return entry

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        entity_id: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if entity_id:
            entries = [e for e in entries if e.entity_id == entity_id]
        return entries


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricsCollector:
    """
    Collect metric data points.

    Counters are recorded as increments; aggregates are computed on read.
    """

    SCANS_TOTAL = "scans_total"
    EXCEPTIONS_DETECTED_TOTAL = "exceptions_detected_total"
    FLEET_COMPONENT_FAILURES = "fleet_component_failures"
    SCAN_DURATION_MS = "scan_duration_ms"

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._lock = Lock()

    def record(
        self,
        metric_name: str,
        value: float,
        timestamp: datetime,
        labels: Optional[Dict[str, str]] = None
    ) -> None:
        """Record a metric data point."""
        label_tuple = tuple(sorted(labels.items())) if labels else ()
        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=timestamp,
            labels=label_tuple
        )
        with self._lock:
            self._metrics.setdefault(metric_name, []).append(point)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        with self._lock:
            return list(self._metrics.get(metric_name, []))

    def total(self, metric_name: str) -> float:
        """Sum of all recorded values (counter reading)."""
        return sum(p.value for p in self.get_metric(metric_name))

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        values = [p.value for p in self.get_metric(metric_name)]

        if not values:
            return {}

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


__all__ = [
    'configure_logging',
    'get_component_logger',
    'AuditLog',
    'MetricsCollector',
]
