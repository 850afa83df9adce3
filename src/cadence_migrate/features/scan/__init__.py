"""Legacy pattern scanning."""
from cadence_migrate.features.scan.scanner import (
    Scanner,
    SuppressionPolicy,
    build_scan_result,
    create_general_scanner,
    create_production_scanner,
    sort_findings,
)

__all__ = [
    "Scanner",
    "SuppressionPolicy",
    "build_scan_result",
    "create_general_scanner",
    "create_production_scanner",
    "sort_findings",
]
