"""
Forensic Reporter CLI
=====================

Run integrity scans and trace reports directly against a JSONL store,
without the API server.

COMMANDS:
- scan:        Scan one component for integrity exceptions
- scan-all:    Scan every component in the store
- exceptions:  List recorded exceptions (critical first, newest first)
- trace:       Print the trace completeness report for a component

USAGE:
    python -m aerotrace.forensic --store ./data/store [COMMAND] [ARGS]
"""
import argparse
import json
import sys
from typing import List, Optional

from .config import AeroTraceConfig, StorageConfig
from .contracts.base import ComponentNotFound
from .engine import AeroTraceBackend
from .observability import configure_logging


def build_backend(args) -> AeroTraceBackend:
    config = AeroTraceConfig(
        storage=StorageConfig(backend_type="file", storage_dir=args.store),
    )
    configure_logging(args.log_level, json_output=False, stream=sys.stderr)
    return AeroTraceBackend(config)


def emit(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def cmd_scan(backend: AeroTraceBackend, args) -> None:
    """Scan one component."""
    emit(backend.scan_component(args.component_id).to_dict())


def cmd_scan_all(backend: AeroTraceBackend, args) -> None:
    """Scan the whole fleet."""
    emit(backend.scan_all_components().to_dict())


def cmd_exceptions(backend: AeroTraceBackend, args) -> None:
    """List exceptions with optional filters."""
    records = backend.list_exceptions(
        component_id=args.component,
        severity=args.severity,
        status=args.status,
        limit=args.limit,
    )
    emit([r.to_dict() for r in records])


def cmd_trace(backend: AeroTraceBackend, args) -> None:
    """Trace report for one component."""
    emit(backend.trace_report(args.component_id).to_dict())


COMMANDS = {
    "scan": cmd_scan,
    "scan-all": cmd_scan_all,
    "exceptions": cmd_exceptions,
    "trace": cmd_trace,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AeroTrace Forensic Reporter")
    parser.add_argument("--store", default="./data/store", help="Path to JSONL store directory")
    parser.add_argument("--log-level", default="WARNING", help="Log level")

    subparsers = parser.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Scan one component")
    scan_parser.add_argument("component_id")

    subparsers.add_parser("scan-all", help="Scan every component")

    list_parser = subparsers.add_parser("exceptions", help="List exceptions")
    list_parser.add_argument("--component", default=None, help="Component id")
    list_parser.add_argument("--severity", default=None, help="critical, warning, info or all")
    list_parser.add_argument("--status", default=None, help="open, investigating, resolved, false_positive or all")
    list_parser.add_argument("--limit", type=int, default=100)

    trace_parser = subparsers.add_parser("trace", help="Trace completeness report")
    trace_parser.add_argument("component_id")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    backend = build_backend(args)
    try:
        command(backend, args)
    except ComponentNotFound as e:
        print(f"[FAIL] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
