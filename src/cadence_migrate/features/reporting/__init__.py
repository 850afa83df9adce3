"""Scan report rendering."""
from cadence_migrate.features.reporting.reporter import (
    generate_csv_report,
    generate_json_report,
    generate_markdown_report,
    generate_report,
    save_report,
)

__all__ = [
    "generate_csv_report",
    "generate_json_report",
    "generate_markdown_report",
    "generate_report",
    "save_report",
]
