from sentishard.parallel.coordinator import RunResult
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


def _result(**overrides):
    values = dict(
        buckets={"2023-01-01 10": 0.3},
        entities={"1": ("alice", 0.5), "2": ("bob", -0.2)},
        happiest_buckets=[("2023-01-01 10", 0.3)],
        saddest_buckets=[("2023-01-01 10", 0.3)],
        happiest_entities=[("1", "alice", 0.5), ("2", "bob", -0.2)],
        saddest_entities=[("2", "bob", -0.2), ("1", "alice", 0.5)],
        records=2,
        skipped=0,
        workers=1,
        timings={"total": 1.234},
    )
    values.update(overrides)
    return RunResult(**values)


def test_hour_range_rolls_over_day_and_year():
    assert format_hour_range("2023-01-01 10") == "2023-01-01 10:00 to 2023-01-01 11:00"
    assert format_hour_range("2023-12-31 23") == "2023-12-31 23:00 to 2024-01-01 00:00"
    assert format_hour_range("not-an-hour") == "not-an-hour"


def test_sign_prefix_only_on_signed_non_negative():
    assert format_score(0.5, signed=True) == "+0.5"
    assert format_score(0.0, signed=True) == "+0.0"
    assert format_score(-0.2, signed=True) == "-0.2"
    assert format_score(0.5, signed=False) == "0.5"
    assert format_score(-0.0, signed=True) == "+0.0"
    assert format_score(-0.0, signed=False) == "0.0"


def test_line_builders_number_from_one():
    assert bucket_lines([("2023-01-01 10", 0.3)], signed=True) == [
        "1. 2023-01-01 10:00 to 2023-01-01 11:00 with sentiment +0.3"
    ]
    assert entity_lines([("2", "bob", -0.2), ("1", "alice", 0.5)], signed=False) == [
        "1. bob (ID: 2) with total sentiment -0.2",
        "2. alice (ID: 1) with total sentiment 0.5",
    ]
    assert bucket_lines([], signed=True) == []


def test_write_reports_creates_four_files(tmp_path):
    echoed = []
    paths = write_reports(_result(), tmp_path / "out", echo=echoed.append)

    assert [p.name for p in paths] == list(REPORT_FILES.values())
    happiest = (tmp_path / "out" / "happiest_users.txt").read_text(encoding="utf-8").splitlines()
    assert happiest == [
        "Top Happiest Users",
        SEPARATOR,
        "1. alice (ID: 1) with total sentiment +0.5",
        "2. bob (ID: 2) with total sentiment -0.2",
    ]
    assert "Top Saddest Hours" in echoed
    assert echoed.count(SEPARATOR) == 8


def test_empty_result_writes_header_only(tmp_path):
    empty = _result(
        buckets={},
        entities={},
        happiest_buckets=[],
        saddest_buckets=[],
        happiest_entities=[],
        saddest_entities=[],
        records=0,
    )
    write_reports(empty, tmp_path, echo=None)
    assert (tmp_path / "saddest_hours.txt").read_text(encoding="utf-8") == f"Top Saddest Hours\n{SEPARATOR}\n"


def test_banner_and_summary():
    assert worker_banner(3)[1] == "Running with 3 processors"
    assert summary_lines(_result()) == ["Total processing time: 1.23 seconds", "Total lines processed: 2"]
    assert summary_lines(_result(skipped=4))[-1] == "Lines skipped: 4"
