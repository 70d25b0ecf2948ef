"""
AeroTrace
=========

Integrity analysis for serialized aerospace components: exception
detection over lifecycle histories and back-to-birth trace completeness.

    from aerotrace import AeroTraceBackend

    backend = AeroTraceBackend()
    backend.register_component(snapshot)
    result = backend.scan_component(snapshot.component_id)

The module-level scan_component / scan_all_components use a process-wide
backend configured from AEROTRACE_* environment variables.
"""

from .engine import (
    AeroTraceBackend,
    get_default_backend,
    set_default_backend,
    scan_component,
    scan_all_components,
)
from .trace import calculate_trace_completeness, format_duration

__version__ = "0.1.0"

__all__ = [
    'AeroTraceBackend',
    'get_default_backend',
    'set_default_backend',
    'scan_component',
    'scan_all_components',
    'calculate_trace_completeness',
    'format_duration',
]
