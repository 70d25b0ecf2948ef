"""
Exception Review Workflow

Human review is the only thing that changes an exception after it is
recorded. A review writes a new revision of the record; scans never do.
"""

from __future__ import annotations
from typing import Any, List, Optional, Union

from ..contracts.audit import AuditEventType
from ..contracts.base import (
    ExceptionStatus, InvalidStatusTransition, Severity,
)
from ..contracts.records import ExceptionRecord
from ..observability import AuditLog, get_component_logger
from ..storage import ComponentRepository
from ..temporal.clock import LogicalClock

# Filter value that disables a filter
ALL = "all"

DEFAULT_LIST_LIMIT = 100


def parse_status(status: Union[str, ExceptionStatus]) -> ExceptionStatus:
    """Coerce a status value, raising InvalidStatusTransition for unknown ones."""
    try:
        return ExceptionStatus(status)
    except ValueError:
        valid = ", ".join(s.value for s in ExceptionStatus)
        raise InvalidStatusTransition(
            f"Invalid status {status!r}. Must be one of: {valid}"
        ) from None


def _active_filter(value: Optional[str]) -> Optional[str]:
    if value is None or value == ALL:
        return None
    return str(getattr(value, 'value', value))


def sort_for_review(records: List[ExceptionRecord]) -> List[ExceptionRecord]:
    """Critical first, then newest first within a severity."""
    by_newest = sorted(records, key=lambda r: r.detected_at, reverse=True)
    return sorted(by_newest, key=lambda r: Severity(r.severity).rank)


class ExceptionReviewService:
    """Status transitions and filtered listing for human reviewers."""

    def __init__(
        self,
        repository: ComponentRepository,
        clock: Optional[LogicalClock] = None,
        logger: Optional[Any] = None,
        audit: Optional[AuditLog] = None
    ):
        self._repository = repository
        self._clock = clock or LogicalClock.live()
        self._logger = get_component_logger("ExceptionReviewService", logger)
        self._audit = audit or AuditLog("review")

    def update_exception_status(
        self,
        exception_id: str,
        status: Union[str, ExceptionStatus],
        resolved_by: Optional[str] = None,
        resolution_notes: Optional[str] = None
    ) -> ExceptionRecord:
        """
        Move an exception to a new review status.

        resolved / false_positive stamp resolved_at with the clock's now;
        open / investigating clear it.

        Raises:
            InvalidStatusTransition: status is not one of the four statuses
            ExceptionNotFound: no exception with this id
        """
        new_status = parse_status(status)
        current = self._repository.get_exception(exception_id)
        now = self._clock.now()

        updated = self._repository.update_exception(
            current.with_status(new_status, now, resolved_by, resolution_notes)
        )

        self._audit.record(
            AuditEventType.REVIEW,
            action="status_changed",
            timestamp=now,
            entity_id=exception_id,
            entity_type="exception",
            metadata={
                'from': current.status,
                'to': updated.status,
                'resolved_by': resolved_by or '',
            },
        )
        self._logger.info(
            "exception_reviewed",
            exception_id=exception_id,
            component_id=updated.component_id,
            previous_status=current.status,
            status=updated.status,
            resolved_by=resolved_by,
        )
        return updated

    def list_exceptions(
        self,
        component_id: Optional[str] = None,
        severity: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT
    ) -> List[ExceptionRecord]:
        """Filter, keep the newest `limit` records, then order them for review."""
        severity = _active_filter(severity)
        status = _active_filter(status)

        records = self._repository.list_exceptions(component_id)
        if severity is not None:
            records = [r for r in records if r.severity == severity]
        if status is not None:
            records = [r for r in records if r.status == status]

        newest = sorted(records, key=lambda r: r.detected_at, reverse=True)
        return sort_for_review(newest[:max(0, limit)])
