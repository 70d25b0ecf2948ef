"""
Trace Layer
===========

Back-to-birth traceability: how much of a component's life is documented,
where the unexplained gaps are, and the hashed trace report built on top.

Modules:
- completeness: Coverage scoring, gap detection, duration formatting
- report: Trace report with tamper-evident hash
"""

from .completeness import (
    calculate_trace_completeness,
    format_duration,
    retired_date_for,
)
from .report import build_trace_report, compute_report_hash

__all__ = [
    'calculate_trace_completeness',
    'format_duration',
    'retired_date_for',
    'build_trace_report',
    'compute_report_hash',
]
