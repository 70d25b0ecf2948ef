"""
Fleet Scanner Tests
===================

One component failing must never abort the fleet scan.
"""

import pytest

from aerotrace.config import FleetConfig
from aerotrace.contracts.audit import AuditEventType
from aerotrace.contracts.base import ErrorCode
from aerotrace.detection import ExceptionDetectionEngine, FleetScanner
from aerotrace.storage import InMemoryComponentRepository

from tests.fixtures import clean_snapshot, fixed_clock, troubled_snapshot


class BrokenRepository(InMemoryComponentRepository):
    """Loads fail for one id; lists one id that no longer exists."""

    def list_component_ids(self):
        return super().list_component_ids() + ["ghost"]

    def load_component_snapshot(self, component_id):
        if component_id == "comp-corrupt":
            raise RuntimeError("corrupt record")
        return super().load_component_snapshot(component_id)


def make_scanner(repository, max_workers=4):
    engine = ExceptionDetectionEngine(repository, clock=fixed_clock())
    return FleetScanner(engine, repository, FleetConfig(max_workers=max_workers)), engine


@pytest.mark.parametrize("max_workers", [1, 4])
class TestFleetScan:

    def test_aggregates_counts(self, max_workers):
        repository = InMemoryComponentRepository([
            clean_snapshot("comp-a"),
            troubled_snapshot("comp-b"),
            troubled_snapshot("comp-c"),
        ])
        scanner, _ = make_scanner(repository, max_workers)

        result = scanner.scan_all_components()

        assert result.total_components == 3
        assert result.components_with_exceptions == 2
        assert result.total_exceptions == 8
        assert result.by_severity == {"critical": 4, "warning": 4, "info": 0}
        assert result.newly_detected == 8
        assert result.failures == ()

    def test_second_fleet_scan_detects_nothing_new(self, max_workers):
        repository = InMemoryComponentRepository([troubled_snapshot("comp-b")])
        scanner, _ = make_scanner(repository, max_workers)

        scanner.scan_all_components()
        result = scanner.scan_all_components()

        assert result.newly_detected == 0
        assert result.total_exceptions == 4

    def test_failures_are_isolated(self, max_workers):
        repository = BrokenRepository([
            troubled_snapshot("comp-b"),
            clean_snapshot("comp-corrupt"),
        ])
        scanner, engine = make_scanner(repository, max_workers)

        result = scanner.scan_all_components()

        assert result.total_components == 3
        assert result.total_exceptions == 4
        assert result.components_with_exceptions == 1

        failures = {f.component_id: f.error.code for f in result.failures}
        assert failures == {
            "comp-corrupt": ErrorCode.SCAN_FAILED,
            "ghost": ErrorCode.COMPONENT_NOT_FOUND,
        }
        assert [f.component_id for f in result.failures] == ["comp-corrupt", "ghost"]

        fleet_entries = engine.audit_log.get_entries(AuditEventType.FLEET_SCAN)
        assert len(fleet_entries) == 1
        assert dict(fleet_entries[0].metadata)['failures'] == "2"


def test_empty_fleet():
    scanner, _ = make_scanner(InMemoryComponentRepository())

    result = scanner.scan_all_components()

    assert result.total_components == 0
    assert result.total_exceptions == 0
    assert result.to_dict()['by_severity'] == {"critical": 0, "warning": 0, "info": 0}
