from sentishard.report.text import (
    REPORT_FILES,
    SEPARATOR,
    bucket_lines,
    entity_lines,
    format_hour_range,
    format_score,
    summary_lines,
    worker_banner,
    write_reports,
)

__all__ = [
    "REPORT_FILES",
    "SEPARATOR",
    "bucket_lines",
    "entity_lines",
    "format_hour_range",
    "format_score",
    "summary_lines",
    "worker_banner",
    "write_reports",
]
