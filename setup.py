from __future__ import annotations

import logging
import sys
from pathlib import Path

from setuptools import Command, find_packages, setup

ROOT = Path(__file__).resolve().parent
MIN_PYTHON = (3, 11)


def _warn_if_below_min_python() -> None:
    if sys.version_info < MIN_PYTHON:
        logging.warning(
            "sentishard targets Python %d.%d+ (running %d.%d); "
            "config loading needs tomllib.",
            MIN_PYTHON[0],
            MIN_PYTHON[1],
            sys.version_info.major,
            sys.version_info.minor,
        )


_warn_if_below_min_python()


class TestCommand(Command):
    description = "Run the pytest suite"
    user_options = [
        ("verbose", "v", "produce verbose output"),
        ("testmodule=", "t", "test module or node id"),
        ("no-process", None, "skip tests that start worker processes"),
    ]
    boolean_options = ["verbose", "no-process"]

    def initialize_options(self):
        self.verbose = 0
        self.testmodule = None
        self.no_process = 0

    def finalize_options(self):
        pass

    def run(self):
        import pytest

        args = [self.testmodule or str(ROOT / "tests")]
        if self.no_process:
            # Process-transport tests carry "process" in their names.
            args += ["-k", "not process"]
        if self.verbose:
            args.append("-v")
        raise SystemExit(pytest.main(args))


class AnalyticsCheckCommand(Command):
    description = "Run Polars/Parquet/DuckDB export smoke check"
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        try:
            import duckdb  # noqa: F401
            import polars  # noqa: F401
        except Exception as exc:
            raise SystemExit(
                "analyticscheck requires optional dependencies. "
                "Install with: pip install 'sentishard[dataframe]'"
            ) from exc

        from tempfile import TemporaryDirectory

        from sentishard.export.duckdb import connect_tables
        from sentishard.export.parquet import write_tables_parquet

        buckets = {"2023-01-01 10": 0.3}
        entities = {"1": ("alice", 0.5)}
        with TemporaryDirectory() as tmp:
            paths = write_tables_parquet(buckets, entities, tmp)
            if not all(path.exists() for path in paths.values()):
                raise SystemExit("Parquet export did not produce both tables")
        con = connect_tables(buckets, entities)
        try:
            got = con.execute("select sum(total) from entities").fetchone()[0]
        finally:
            con.close()
        if got != 0.5:
            raise SystemExit(f"Unexpected DuckDB result: {got}")
        print("analyticscheck: ok")


setup(
    package_dir={"": "src"},
    packages=find_packages("src"),
    cmdclass={
        "test": TestCommand,
        "analyticscheck": AnalyticsCheckCommand,
    },
)
