"""
Component Storage Layer

RESPONSIBILITY: Load component snapshots, persist and query exceptions
ALLOWED INPUTS: ComponentSnapshot, ExceptionRecord
OUTPUTS: ComponentSnapshot (events ordered by date), ExceptionRecord

WHAT THIS LAYER MUST NOT DO:
============================
- Interpret lifecycle history (no checks, no scoring)
- Correct or reorder recorded facts beyond the date ordering it guarantees
- Swallow write failures (they propagate to the caller, which decides)

BOUNDARY ENFORCEMENT:
=====================
- Snapshots handed out are immutable
- Exceptions are written one at a time, so a failed write never takes
  earlier writes with it
- The file backend is append-only; the latest line for an id wins
"""

from __future__ import annotations
from threading import RLock
from typing import Dict, List, Optional
import json
import os

# ONLY import from contracts - never from other layers' implementations
from ..config import StorageConfig
from ..contracts.base import ComponentNotFound, ExceptionNotFound
from ..contracts.records import ComponentSnapshot, ExceptionRecord


# =============================================================================
# REPOSITORY INTERFACE (Dependency Inversion)
# =============================================================================

class ComponentRepository:
    """
    Abstract repository interface.

    Implementations can use different storage systems (memory, file,
    database) while keeping the same snapshot and exception semantics.
    """

    def load_component_snapshot(self, component_id: str) -> ComponentSnapshot:
        """
        Load a component with its events, documents, exceptions and alerts.

        Events come back sorted ascending by date (stable for ties).
        Raises ComponentNotFound for an unknown id.
        """
        raise NotImplementedError

    def list_component_ids(self) -> List[str]:
        """All component ids in the store."""
        raise NotImplementedError

    def create_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        """Persist one new exception."""
        raise NotImplementedError

    def list_exceptions(self, component_id: Optional[str] = None) -> List[ExceptionRecord]:
        """Current revision of every exception, optionally for one component."""
        raise NotImplementedError

    def get_exception(self, exception_id: str) -> ExceptionRecord:
        """Raises ExceptionNotFound for an unknown id."""
        raise NotImplementedError

    def update_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        """Store a new revision of an existing exception."""
        raise NotImplementedError

    def save_component(self, snapshot: ComponentSnapshot) -> None:
        """Insert or replace a component and the records it owns."""
        raise NotImplementedError


def _ordered(snapshot: ComponentSnapshot, exceptions: List[ExceptionRecord]) -> ComponentSnapshot:
    return ComponentSnapshot(
        component=snapshot.component,
        events=tuple(sorted(snapshot.events, key=lambda e: e.date)),
        documents=snapshot.documents,
        exceptions=tuple(exceptions),
        alerts=snapshot.alerts,
    )


# =============================================================================
# IN-MEMORY REPOSITORY (Reference Implementation)
# =============================================================================

class InMemoryComponentRepository(ComponentRepository):
    """
    In-memory implementation of the repository.

    Suitable for testing, demos and short-lived processes. Thread-safe.
    """

    def __init__(self, snapshots: Optional[List[ComponentSnapshot]] = None):
        self._components: Dict[str, ComponentSnapshot] = {}
        # exception_id -> record, insertion ordered
        self._exceptions: Dict[str, ExceptionRecord] = {}
        self._lock = RLock()

        for snapshot in snapshots or ():
            self.save_component(snapshot)

    def load_component_snapshot(self, component_id: str) -> ComponentSnapshot:
        with self._lock:
            snapshot = self._components.get(component_id)
            if snapshot is None:
                raise ComponentNotFound(component_id)
            return _ordered(snapshot, self.list_exceptions(component_id))

    def list_component_ids(self) -> List[str]:
        with self._lock:
            return list(self._components)

    def create_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        with self._lock:
            self._exceptions[record.exception_id] = record
        return record

    def list_exceptions(self, component_id: Optional[str] = None) -> List[ExceptionRecord]:
        with self._lock:
            records = list(self._exceptions.values())
        if component_id is not None:
            records = [r for r in records if r.component_id == component_id]
        return records

    def get_exception(self, exception_id: str) -> ExceptionRecord:
        with self._lock:
            record = self._exceptions.get(exception_id)
        if record is None:
            raise ExceptionNotFound(exception_id)
        return record

    def update_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        with self._lock:
            if record.exception_id not in self._exceptions:
                raise ExceptionNotFound(record.exception_id)
            self._exceptions[record.exception_id] = record
        return record

    def save_component(self, snapshot: ComponentSnapshot) -> None:
        with self._lock:
            self._components[snapshot.component_id] = snapshot
            for record in snapshot.exceptions:
                self._exceptions.setdefault(record.exception_id, record)


# =============================================================================
# FILE REPOSITORY (JSON lines)
# =============================================================================

class FileComponentRepository(ComponentRepository):
    """
    File-based implementation of the repository.

    Uses append-only JSON-lines files:
        components.jsonl  - one ComponentSnapshot per line, last line per id wins
        exceptions.jsonl  - one ExceptionRecord revision per line, last wins

    In-memory indices are rebuilt from the files on construction.
    """

    COMPONENTS_FILE = "components.jsonl"
    EXCEPTIONS_FILE = "exceptions.jsonl"

    def __init__(self, storage_dir: str):
        self._storage_dir = storage_dir
        self._components_file = os.path.join(storage_dir, self.COMPONENTS_FILE)
        self._exceptions_file = os.path.join(storage_dir, self.EXCEPTIONS_FILE)

        # Ensure storage directory exists
        os.makedirs(storage_dir, exist_ok=True)

        self._components: Dict[str, ComponentSnapshot] = {}
        self._exceptions: Dict[str, ExceptionRecord] = {}
        self._lock = RLock()

        self._rebuild_indices()

    def _rebuild_indices(self) -> None:
        """Rebuild in-memory indices from storage files."""
        for data in self._read_lines(self._components_file):
            snapshot = ComponentSnapshot.from_dict(data)
            self._components[snapshot.component_id] = snapshot

        for data in self._read_lines(self._exceptions_file):
            record = ExceptionRecord.from_dict(data)
            self._exceptions[record.exception_id] = record

    @staticmethod
    def _read_lines(path: str):
        if not os.path.exists(path):
            return
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line:
                    yield json.loads(line)

    @staticmethod
    def _append(path: str, data: dict) -> None:
        with open(path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(data, sort_keys=True) + '\n')

    def load_component_snapshot(self, component_id: str) -> ComponentSnapshot:
        with self._lock:
            snapshot = self._components.get(component_id)
            if snapshot is None:
                raise ComponentNotFound(component_id)
            return _ordered(snapshot, self.list_exceptions(component_id))

    def list_component_ids(self) -> List[str]:
        with self._lock:
            return list(self._components)

    def create_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        with self._lock:
            # Index only after the line is on disk
            self._append(self._exceptions_file, record.to_dict())
            self._exceptions[record.exception_id] = record
        return record

    def list_exceptions(self, component_id: Optional[str] = None) -> List[ExceptionRecord]:
        with self._lock:
            records = list(self._exceptions.values())
        if component_id is not None:
            records = [r for r in records if r.component_id == component_id]
        return records

    def get_exception(self, exception_id: str) -> ExceptionRecord:
        with self._lock:
            record = self._exceptions.get(exception_id)
        if record is None:
            raise ExceptionNotFound(exception_id)
        return record

    def update_exception(self, record: ExceptionRecord) -> ExceptionRecord:
        with self._lock:
            if record.exception_id not in self._exceptions:
                raise ExceptionNotFound(record.exception_id)
            self._append(self._exceptions_file, record.to_dict())
            self._exceptions[record.exception_id] = record
        return record

    def save_component(self, snapshot: ComponentSnapshot) -> None:
        with self._lock:
            self._append(self._components_file, snapshot.to_dict())
            self._components[snapshot.component_id] = snapshot
            for record in snapshot.exceptions:
                if record.exception_id not in self._exceptions:
                    self.create_exception(record)


# =============================================================================
# FACTORY
# =============================================================================

def create_repository(config: Optional[StorageConfig] = None) -> ComponentRepository:
    """Create a repository based on configuration."""
    config = config or StorageConfig()
    if config.backend_type == "file":
        if not config.storage_dir:
            raise ValueError("File storage requires a storage_dir")
        return FileComponentRepository(config.storage_dir)
    return InMemoryComponentRepository()


__all__ = [
    'ComponentRepository',
    'InMemoryComponentRepository',
    'FileComponentRepository',
    'create_repository',
]
