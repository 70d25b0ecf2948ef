"""
Engine Orchestration Module

This module provides the unified interface for coordinating all
layers while maintaining strict boundary separation.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. The backend wires layers together without creating coupling
3. All operations are traceable through observability
4. One clock and one repository are shared by every layer
"""

from __future__ import annotations
from threading import Lock
from typing import Any, List, Optional

from .config import AeroTraceConfig
from .contracts.records import ComponentSnapshot, ExceptionRecord
from .contracts.results import FleetScanResult, ScanResult, TraceReport
from .detection import ExceptionDetectionEngine, ExceptionReviewService, FleetScanner
from .observability import AuditLog, MetricsCollector, configure_logging
from .storage import ComponentRepository, create_repository
from .temporal.clock import LogicalClock
from .trace import build_trace_report


class AeroTraceBackend:
    """
    Unified backend for component integrity analysis.

    LAYER FLOW:
    ===========
    1. Storage: ComponentRepository -> ComponentSnapshot
    2. Detection: snapshot -> DetectedIssue -> persisted ExceptionRecord
    3. Fleet: every component id -> FleetScanResult
    4. Review: human status changes -> new ExceptionRecord revision
    5. Trace: snapshot -> TraceCompletenessResult -> TraceReport
    6. Observability: records activity of every layer

    NO LAYER BYPASSES THIS FLOW.
    """

    def __init__(
        self,
        config: Optional[AeroTraceConfig] = None,
        repository: Optional[ComponentRepository] = None,
        clock: Optional[LogicalClock] = None,
        logger: Optional[Any] = None
    ):
        self._config = config or AeroTraceConfig()
        self._repository = repository or create_repository(self._config.storage)
        self._clock = clock or LogicalClock.live()

        self._audit = AuditLog("aerotrace")
        self._metrics = MetricsCollector()

        self._detection = ExceptionDetectionEngine(
            self._repository,
            clock=self._clock,
            config=self._config.detection,
            logger=logger,
            audit=self._audit,
            metrics=self._metrics,
        )
        self._fleet = FleetScanner(
            self._detection,
            self._repository,
            config=self._config.fleet,
            logger=logger,
        )
        self._review = ExceptionReviewService(
            self._repository,
            clock=self._clock,
            logger=logger,
            audit=self._audit,
        )

    @classmethod
    def from_env(cls) -> 'AeroTraceBackend':
        """Build a backend from AEROTRACE_* environment variables."""
        config = AeroTraceConfig.from_env()
        configure_logging(config.logging.level, json_output=config.logging.json_output)
        return cls(config)

    # =========================================================================
    # DETECTION INTERFACE
    # =========================================================================

    def scan_component(self, component_id: str) -> ScanResult:
        """Scan one component. Raises ComponentNotFound."""
        return self._detection.scan_component(component_id)

    def scan_all_components(self) -> FleetScanResult:
        """Scan every component; per-component failures are isolated."""
        return self._fleet.scan_all_components()

    # =========================================================================
    # REVIEW INTERFACE
    # =========================================================================

    def update_exception_status(
        self,
        exception_id: str,
        status: str,
        resolved_by: Optional[str] = None,
        resolution_notes: Optional[str] = None
    ) -> ExceptionRecord:
        return self._review.update_exception_status(
            exception_id, status, resolved_by, resolution_notes
        )

    def list_exceptions(
        self,
        component_id: Optional[str] = None,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100
    ) -> List[ExceptionRecord]:
        return self._review.list_exceptions(component_id, severity, status, limit)

    # =========================================================================
    # TRACE INTERFACE
    # =========================================================================

    def trace_report(self, component_id: str) -> TraceReport:
        """Trace report for one component. Raises ComponentNotFound."""
        snapshot = self._repository.load_component_snapshot(component_id)
        return build_trace_report(snapshot, self._clock, self._config.trace)

    # =========================================================================
    # STORE ACCESS
    # =========================================================================

    def register_component(self, snapshot: ComponentSnapshot) -> None:
        """Seed or replace a component in the store."""
        self._repository.save_component(snapshot)

    def get_component(self, component_id: str) -> ComponentSnapshot:
        return self._repository.load_component_snapshot(component_id)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def config(self) -> AeroTraceConfig:
        return self._config

    @property
    def repository(self) -> ComponentRepository:
        return self._repository

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    @property
    def audit_log(self) -> AuditLog:
        return self._audit

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics


# =============================================================================
# PROCESS-WIDE DEFAULT BACKEND
# =============================================================================

_default_backend: Optional[AeroTraceBackend] = None
_default_lock = Lock()


def get_default_backend() -> AeroTraceBackend:
    """Backend used by the module-level functions, built from the environment."""
    global _default_backend
    with _default_lock:
        if _default_backend is None:
            _default_backend = AeroTraceBackend.from_env()
        return _default_backend


def set_default_backend(backend: Optional[AeroTraceBackend]) -> None:
    """Replace (or reset with None) the process-wide backend."""
    global _default_backend
    with _default_lock:
        _default_backend = backend


def scan_component(component_id: str) -> ScanResult:
    return get_default_backend().scan_component(component_id)


def scan_all_components() -> FleetScanResult:
    return get_default_backend().scan_all_components()
