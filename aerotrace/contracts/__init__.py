"""
Contracts Module

This module defines the explicit data types shared between layers.
Storage, detection, trace and presentation code communicate ONLY through
these contracts. No layer may import implementation details from another.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Enumerations carry the exact wire values used by reporting layers
3. Missing optional data is explicit (None), never a sentinel number
4. All timestamps are UTC and are never mutated
5. Hash-based identity for deduplication and integrity verification
"""

from .base import (
    EventType,
    FacilityType,
    ComponentStatus,
    ExceptionType,
    Severity,
    ExceptionStatus,
    GapSeverity,
    TraceRating,
    DocumentType,
    ErrorCode,
    Error,
    ComponentNotFound,
    ExceptionNotFound,
    InvalidStatusTransition,
)

__all__ = [
    'EventType',
    'FacilityType',
    'ComponentStatus',
    'ExceptionType',
    'Severity',
    'ExceptionStatus',
    'GapSeverity',
    'TraceRating',
    'DocumentType',
    'ErrorCode',
    'Error',
    'ComponentNotFound',
    'ExceptionNotFound',
    'InvalidStatusTransition',
]
