"""
Detection Layer

RESPONSIBILITY: Find integrity issues in component histories and record them
ALLOWED INPUTS: ComponentSnapshot (via ComponentRepository), injected clock
OUTPUTS: DetectedIssue, ScanResult, FleetScanResult, reviewed ExceptionRecord

WHAT THIS LAYER MUST NOT DO:
============================
- Reject or repair bad history (findings are reported, data is untouched)
- Read the system clock directly
- Delete exceptions

Modules:
- checks: Eight pure integrity checks
- engine: Single-component scan with dedup and persistence
- fleet: Worker-pool scan over every component
- review: Human review status transitions and listing
"""

from .checks import ALL_CHECKS, run_checks
from .engine import ExceptionDetectionEngine, summarize
from .fleet import FleetScanner
from .review import ExceptionReviewService, parse_status

__all__ = [
    'ALL_CHECKS',
    'run_checks',
    'ExceptionDetectionEngine',
    'summarize',
    'FleetScanner',
    'ExceptionReviewService',
    'parse_status',
]
