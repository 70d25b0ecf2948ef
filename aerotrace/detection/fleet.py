"""
Fleet Scanner

Fan-out / fan-in over every component in the repository. Each task scans
one component and returns its own outcome; the aggregate is computed
from those outcomes after all tasks finish, so workers share no counters.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..config import FleetConfig
from ..contracts.audit import AuditEventType
from ..contracts.base import Error, ErrorCode, Severity
from ..contracts.results import ComponentScanFailure, FleetScanResult, ScanResult
from ..observability import get_component_logger
from ..storage import ComponentRepository
from .engine import ExceptionDetectionEngine


@dataclass(frozen=True)
class _Outcome:
    component_id: str
    result: Union[ScanResult, ComponentScanFailure]


class FleetScanner:
    """
    Scan every component and aggregate fleet-wide counts.

    One component failing (including a ComponentNotFound from a concurrent
    delete) is recorded in FleetScanResult.failures and never aborts the
    rest of the fleet.
    """

    def __init__(
        self,
        engine: ExceptionDetectionEngine,
        repository: ComponentRepository,
        config: Optional[FleetConfig] = None,
        logger: Optional[Any] = None
    ):
        self._engine = engine
        self._repository = repository
        self._config = config or FleetConfig()
        self._logger = get_component_logger("FleetScanner", logger)
        self._clock = engine.clock

    def _scan_one(self, component_id: str) -> _Outcome:
        try:
            return _Outcome(component_id, self._engine.scan_component(component_id))
        except Exception as exc:
            code = getattr(exc, 'error_code', ErrorCode.SCAN_FAILED)
            self._logger.error(
                "component_scan_failed",
                component_id=component_id,
                error_code=code.name,
                error=str(exc),
            )
            error = Error(
                code=code,
                message=str(exc),
                timestamp=self._clock.now(),
            ).with_context('component_id', component_id)
            return _Outcome(component_id, ComponentScanFailure(component_id, error))

    def _run(self, component_ids: List[str]) -> List[_Outcome]:
        if self._config.max_workers <= 1:
            return [self._scan_one(cid) for cid in component_ids]

        outcomes: List[_Outcome] = []
        with ThreadPoolExecutor(max_workers=self._config.max_workers) as executor:
            futures = [executor.submit(self._scan_one, cid) for cid in component_ids]
            for future in as_completed(futures):
                outcomes.append(future.result())
        return outcomes

    def scan_all_components(self) -> FleetScanResult:
        """Scan every component id in the repository."""
        component_ids = self._repository.list_component_ids()
        self._logger.info(
            "fleet_scan_started",
            components=len(component_ids),
            max_workers=self._config.max_workers,
        )

        order = {cid: i for i, cid in enumerate(component_ids)}
        outcomes = sorted(self._run(component_ids), key=lambda o: order[o.component_id])

        by_severity: Dict[str, int] = {s.value: 0 for s in Severity}
        components_with_exceptions = 0
        total_exceptions = 0
        newly_detected = 0
        failures: List[ComponentScanFailure] = []

        for outcome in outcomes:
            if isinstance(outcome.result, ComponentScanFailure):
                failures.append(outcome.result)
                continue
            summary = outcome.result.summary
            if summary.total > 0:
                components_with_exceptions += 1
            total_exceptions += summary.total
            newly_detected += summary.newly_detected
            by_severity[Severity.CRITICAL.value] += summary.critical
            by_severity[Severity.WARNING.value] += summary.warning
            by_severity[Severity.INFO.value] += summary.info

        result = FleetScanResult(
            total_components=len(component_ids),
            components_with_exceptions=components_with_exceptions,
            total_exceptions=total_exceptions,
            by_severity=by_severity,
            newly_detected=newly_detected,
            failures=tuple(failures),
        )

        now = self._clock.now()
        if failures:
            self._engine.metrics.record(
                self._engine.metrics.FLEET_COMPONENT_FAILURES, len(failures), now
            )
        self._engine.audit_log.record(
            AuditEventType.FLEET_SCAN,
            action="fleet_scanned",
            timestamp=now,
            metadata={
                'components': len(component_ids),
                'total_exceptions': total_exceptions,
                'failures': len(failures),
            },
        )
        self._logger.info(
            "fleet_scan_completed",
            components=len(component_ids),
            components_with_exceptions=components_with_exceptions,
            total_exceptions=total_exceptions,
            newly_detected=newly_detected,
            failures=len(failures),
        )
        return result
