"""Plain-text top-K reports, echoed to the console and written to files."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Sequence

from sentishard.records import HOUR_BUCKET_FORMAT

SEPARATOR = "=" * 50

REPORT_FILES = {
    "happiest_hours": "happiest_hours.txt",
    "saddest_hours": "saddest_hours.txt",
    "happiest_users": "happiest_users.txt",
    "saddest_users": "saddest_users.txt",
}


def format_hour_range(hour_key: str) -> str:
    try:
        start = datetime.strptime(hour_key, HOUR_BUCKET_FORMAT)
    except ValueError:
        return hour_key
    end = start + timedelta(hours=1)
    return f"{start:%Y-%m-%d %H:00} to {end:%Y-%m-%d %H:00}"


def format_score(value: float, *, signed: bool) -> str:
    # A sum can come out as -0.0; print it as zero.
    value = value + 0.0
    if signed and value >= 0:
        return f"+{value}"
    return f"{value}"


def bucket_lines(rows: Sequence[tuple[str, float]], *, signed: bool) -> list[str]:
    return [
        f"{index}. {format_hour_range(key)} with sentiment {format_score(value, signed=signed)}"
        for index, (key, value) in enumerate(rows, start=1)
    ]


def entity_lines(rows: Sequence[tuple[str, str, float]], *, signed: bool) -> list[str]:
    return [
        f"{index}. {label} (ID: {key}) with total sentiment {format_score(value, signed=signed)}"
        for index, (key, label, value) in enumerate(rows, start=1)
    ]


def build_sections(result) -> list[tuple[str, str, list[str]]]:
    return [
        ("happiest_hours", "Top Happiest Hours", bucket_lines(result.happiest_buckets, signed=True)),
        ("saddest_hours", "Top Saddest Hours", bucket_lines(result.saddest_buckets, signed=False)),
        ("happiest_users", "Top Happiest Users", entity_lines(result.happiest_entities, signed=True)),
        ("saddest_users", "Top Saddest Users", entity_lines(result.saddest_entities, signed=False)),
    ]


def write_reports(result, output_dir, *, echo: Callable[[str], None] | None = print) -> list[Path]:
    """Write the four report files and echo each section.

    Returns the written paths in section order.
    """
    target = Path(output_dir).expanduser()
    target.mkdir(parents=True, exist_ok=True)
    written = []
    for name, title, lines in build_sections(result):
        if echo is not None:
            for line in (SEPARATOR, title, SEPARATOR, *lines, ""):
                echo(line)
        path = target / REPORT_FILES[name]
        path.write_text("\n".join([title, SEPARATOR, *lines]) + "\n", encoding="utf-8")
        written.append(path)
    return written


def worker_banner(workers: int) -> list[str]:
    rule = SEPARATOR * 2
    return [rule, f"Running with {workers} processors", rule, ""]


def summary_lines(result) -> list[str]:
    total = float(result.timings.get("total", 0.0))
    lines = [
        f"Total processing time: {total:.2f} seconds",
        f"Total lines processed: {result.records}",
    ]
    if result.skipped:
        lines.append(f"Lines skipped: {result.skipped}")
    return lines
