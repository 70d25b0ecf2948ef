"""
Exception Detection Engine

Orchestrates one component scan:

    load snapshot -> run checks -> dedup -> persist (one at a time) -> summarize

BOUNDARY ENFORCEMENT:
- Reads and writes ONLY through the ComponentRepository interface
- Reads time ONLY from the injected clock
- Never edits or deletes an existing exception (review does that)
"""

from __future__ import annotations
from collections import Counter
from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
import hashlib
import time

from ..config import DetectionConfig
from ..contracts.audit import AuditEventType
from ..contracts.base import Error, ErrorCode, ExceptionStatus, Severity, to_iso
from ..contracts.records import ComponentSnapshot, ExceptionRecord
from ..contracts.results import DetectedIssue, ScanResult, ScanSummary
from ..observability import AuditLog, MetricsCollector, get_component_logger
from ..storage import ComponentRepository
from ..temporal.clock import LogicalClock
from .checks import ALL_CHECKS, Check, run_checks


def summarize(exceptions: Tuple[ExceptionRecord, ...], newly_detected: int) -> ScanSummary:
    """Counts by severity over a component's exception set."""
    by_severity = Counter(e.severity for e in exceptions)
    return ScanSummary(
        total=len(exceptions),
        critical=by_severity[Severity.CRITICAL.value],
        warning=by_severity[Severity.WARNING.value],
        info=by_severity[Severity.INFO.value],
        newly_detected=newly_detected,
    )


class _ComponentLock:
    """Per-component lock; dropped once no scan holds or awaits it."""

    def __init__(self):
        self.lock = Lock()
        self.holders = 0


class ExceptionDetectionEngine:
    """
    Runs the integrity checks against a component and records new findings.

    Scans of the same component id are serialized with a per-id lock, so
    two concurrent scans cannot both decide a finding is new. Scans of
    different components run in parallel.
    """

    def __init__(
        self,
        repository: ComponentRepository,
        clock: Optional[LogicalClock] = None,
        config: Optional[DetectionConfig] = None,
        logger: Optional[Any] = None,
        audit: Optional[AuditLog] = None,
        metrics: Optional[MetricsCollector] = None,
        checks: Tuple[Check, ...] = ALL_CHECKS
    ):
        self._repository = repository
        self._clock = clock or LogicalClock.live()
        self._config = config or DetectionConfig()
        self._logger = get_component_logger("ExceptionDetectionEngine", logger)
        self._audit = audit or AuditLog("detection")
        self._metrics = metrics or MetricsCollector()
        self._checks = checks

        self._locks: Dict[str, _ComponentLock] = {}
        self._locks_guard = Lock()

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    @property
    def audit_log(self) -> AuditLog:
        return self._audit

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @contextmanager
    def _component_lock(self, component_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(component_id, _ComponentLock())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[component_id]

    # =========================================================================
    # DETECTION
    # =========================================================================

    def detect(self, snapshot: ComponentSnapshot) -> List[DetectedIssue]:
        """Run every check against an already-loaded snapshot (no persistence)."""
        return run_checks(snapshot, self._config, self._clock.now(), self._checks)

    def scan_component(self, component_id: str) -> ScanResult:
        """
        Scan one component and persist findings not already on record.

        A finding is already on record when an open or investigating
        exception has the same (type, evidence hash) key. Resolved and
        false-positive exceptions do not suppress a finding.

        Raises:
            ComponentNotFound: the id is not in the repository
        """
        with self._component_lock(component_id):
            return self._scan_locked(component_id)

    def _scan_locked(self, component_id: str) -> ScanResult:
        started = time.perf_counter()
        log = self._logger.bind(component_id=component_id)

        snapshot = self._repository.load_component_snapshot(component_id)
        now = self._clock.now()
        log.debug("scan_started", events=len(snapshot.events), existing=len(snapshot.exceptions))

        issues = run_checks(snapshot, self._config, now, self._checks)

        active_keys: Set[Tuple[str, str]] = {
            e.dedup_key for e in snapshot.exceptions if e.is_active
        }
        seen: Counter = Counter(e.dedup_key for e in snapshot.exceptions)

        created: List[ExceptionRecord] = []
        failed: List[Error] = []

        for issue in issues:
            key = issue.dedup_key
            if key in active_keys:
                continue

            record = self._new_record(component_id, issue, now, seen[key])
            try:
                self._repository.create_exception(record)
            except Exception as exc:
                log.warning(
                    "exception_write_failed",
                    exception_type=issue.exception_type.value,
                    evidence_hash=key[1],
                    error=str(exc),
                )
                failed.append(Error(
                    code=ErrorCode.WRITE_FAILED,
                    message=f"Failed to persist {issue.exception_type.value}: {exc}",
                    timestamp=now,
                    context=(
                        ('component_id', component_id),
                        ('exception_type', issue.exception_type.value),
                        ('evidence_hash', key[1]),
                    ),
                ))
                continue

            active_keys.add(key)
            seen[key] += 1
            created.append(record)
            log.info(
                "exception_detected",
                exception_id=record.exception_id,
                exception_type=record.exception_type,
                severity=record.severity,
                evidence_hash=key[1],
            )
            self._audit.record(
                AuditEventType.EXCEPTION_CREATED,
                action="exception_created",
                timestamp=now,
                entity_id=record.exception_id,
                entity_type="exception",
                metadata={'component_id': component_id, 'type': record.exception_type},
            )

        exceptions = tuple(sorted(
            tuple(snapshot.exceptions) + tuple(created),
            key=lambda e: e.detected_at,
            reverse=True,
        ))
        summary = summarize(exceptions, newly_detected=len(created))

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._metrics.record(MetricsCollector.SCANS_TOTAL, 1, now)
        self._metrics.record(MetricsCollector.EXCEPTIONS_DETECTED_TOTAL, len(created), now)
        self._metrics.record(
            MetricsCollector.SCAN_DURATION_MS, elapsed_ms, now,
            labels={'component_id': component_id},
        )
        self._audit.record(
            AuditEventType.SCAN,
            action="component_scanned",
            timestamp=now,
            entity_id=component_id,
            entity_type="component",
            metadata={
                'findings': len(issues),
                'newly_detected': len(created),
                'failed_writes': len(failed),
            },
        )
        log.info(
            "scan_completed",
            findings=len(issues),
            total=summary.total,
            newly_detected=summary.newly_detected,
            failed_writes=len(failed),
        )

        return ScanResult(
            component_id=component_id,
            exceptions=exceptions,
            summary=summary,
            failed_writes=tuple(failed),
        )

    @staticmethod
    def _new_record(
        component_id: str,
        issue: DetectedIssue,
        now: datetime,
        occurrence: int
    ) -> ExceptionRecord:
        # occurrence separates a re-report from the closed record it repeats
        digest = hashlib.sha256(
            f"{component_id}|{issue.exception_type.value}|{issue.evidence_hash}|"
            f"{to_iso(now)}|{occurrence}".encode()
        ).hexdigest()[:16]
        return ExceptionRecord(
            exception_id=f"exc_{digest}",
            component_id=component_id,
            exception_type=issue.exception_type.value,
            severity=issue.severity.value,
            title=issue.title,
            description=issue.description,
            evidence=issue.evidence,
            detected_at=now,
            status=ExceptionStatus.OPEN.value,
        )
