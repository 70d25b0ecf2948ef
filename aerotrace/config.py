"""
Configuration

Plain dataclass configuration for every layer, with defaults that match
the documented integrity rules. AeroTraceConfig.from_env() applies the
AEROTRACE_* environment overrides used by the API server and CLI.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional
import os

from .contracts.base import EventType


@dataclass(frozen=True)
class DetectionConfig:
    """Thresholds for the integrity checks."""
    max_cycles_per_day: float = 20.0
    max_hours_per_day: float = 18.0

    # Documentation gaps
    supply_chain_gap_days: int = 450
    custody_gap_days: int = 30
    critical_gap_days: int = 365
    warning_gap_days: int = 180

    # Draft documents older than this are flagged
    draft_staleness_days: int = 30

    in_service_events: FrozenSet[str] = frozenset({
        EventType.INSTALL.value,
        EventType.DETAILED_INSPECTION.value,
        EventType.FUNCTIONAL_TEST.value,
    })
    off_aircraft_events: FrozenSet[str] = frozenset({
        EventType.REMOVE.value,
        EventType.TRANSFER.value,
        EventType.RELEASE_TO_SERVICE.value,
        EventType.RECEIVING_INSPECTION.value,
        EventType.MANUFACTURE.value,
    })
    supply_chain_events: FrozenSet[str] = frozenset({
        EventType.MANUFACTURE.value,
        EventType.RELEASE_TO_SERVICE.value,
        EventType.TRANSFER.value,
    })
    maintenance_events: FrozenSet[str] = frozenset({
        EventType.REPAIR.value,
        EventType.REASSEMBLY.value,
        EventType.RELEASE_TO_SERVICE.value,
        EventType.FUNCTIONAL_TEST.value,
        EventType.DETAILED_INSPECTION.value,
        EventType.TEARDOWN.value,
        EventType.RECEIVING_INSPECTION.value,
    })


@dataclass(frozen=True)
class TraceConfig:
    """Coverage windows and gap thresholds for trace completeness."""
    coverage_days: Mapping[str, int] = field(default_factory=lambda: {
        EventType.MANUFACTURE.value: 7,
        EventType.REMOVE.value: 7,
        EventType.RECEIVING_INSPECTION.value: 14,
        EventType.TEARDOWN.value: 7,
        EventType.DETAILED_INSPECTION.value: 7,
        EventType.REPAIR.value: 14,
        EventType.REASSEMBLY.value: 7,
        EventType.FUNCTIONAL_TEST.value: 7,
        EventType.FINAL_INSPECTION.value: 7,
        EventType.RELEASE_TO_SERVICE.value: 14,
        EventType.TRANSFER.value: 14,
        EventType.RETIRE.value: 7,
        EventType.SCRAP.value: 7,
    })
    default_coverage_days: int = 7
    gap_threshold_days: int = 30
    critical_gap_days: int = 180
    warning_gap_days: int = 90


@dataclass(frozen=True)
class FleetConfig:
    """Fleet scan fan-out."""
    max_workers: int = 4


@dataclass(frozen=True)
class StorageConfig:
    """Which repository implementation to build."""
    backend_type: str = "memory"        # "memory" or "file"
    storage_dir: Optional[str] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json_output: bool = True


@dataclass
class AeroTraceConfig:
    """Unified configuration for the entire backend."""
    detection: DetectionConfig = None
    trace: TraceConfig = None
    fleet: FleetConfig = None
    storage: StorageConfig = None
    logging: LoggingConfig = None

    def __post_init__(self):
        self.detection = self.detection or DetectionConfig()
        self.trace = self.trace or TraceConfig()
        self.fleet = self.fleet or FleetConfig()
        self.storage = self.storage or StorageConfig()
        self.logging = self.logging or LoggingConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'AeroTraceConfig':
        """Build configuration from AEROTRACE_* environment variables."""
        env = os.environ if environ is None else environ

        storage_dir = env.get("AEROTRACE_STORAGE_DIR")
        backend_type = env.get(
            "AEROTRACE_STORAGE_BACKEND",
            "file" if storage_dir else "memory"
        )

        return cls(
            fleet=FleetConfig(
                max_workers=int(env.get("AEROTRACE_MAX_WORKERS", "4"))
            ),
            storage=StorageConfig(
                backend_type=backend_type,
                storage_dir=storage_dir,
            ),
            logging=LoggingConfig(
                level=env.get("AEROTRACE_LOG_LEVEL", "INFO"),
                json_output=env.get("AEROTRACE_LOG_JSON", "1").lower() not in ("0", "false", "no"),
            ),
        )
