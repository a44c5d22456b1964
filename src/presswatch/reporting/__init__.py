"""Report export."""

from presswatch.reporting.report import (
    TelemetryReport,
    build_recommendations,
    export_report_json,
    generate_report,
    report_filename,
)

__all__ = [
    "TelemetryReport",
    "build_recommendations",
    "export_report_json",
    "generate_report",
    "report_filename",
]
