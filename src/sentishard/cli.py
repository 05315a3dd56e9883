#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sentishard.config import RunConfig, get_runtime_defaults
from sentishard.errors import SentishardError
from sentishard.parallel.coordinator import run_file
from sentishard.parallel.policy import VALID_TRANSPORTS
from sentishard.records import DECODER_PRESETS, decoder_for_preset
from sentishard.report.text import summary_lines, worker_banner, write_reports
from sentishard.util.logging import configure_cli_logging

LOG = logging.getLogger("sentishard.cli")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sentishard",
        description="Aggregate per-hour and per-user sentiment over a large NDJSON file with parallel workers.",
    )
    parser.add_argument("-d", "--data", required=True, help="Path to the NDJSON input file.")
    parser.add_argument("-o", "--output", default=None, help="Output directory for report files.")
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=None,
        help="Segment size in MiB each worker reads at a time (default from config: 100).",
    )
    parser.add_argument("-w", "--workers", type=int, default=None, help="Number of parallel workers.")
    parser.add_argument("-k", "--top-k", type=int, default=None, help="Entries per top/bottom report.")
    parser.add_argument("--transport", choices=sorted(VALID_TRANSPORTS), default=None)
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort when the worker group waits longer than this many seconds (default: wait forever).",
    )
    parser.add_argument("--decoder", choices=sorted(DECODER_PRESETS), default=None, help="Record field layout.")
    parser.add_argument("--profile", default=None, help="Config profile, e.g. development or testing.")
    parser.add_argument("--parquet-dir", default=None, help="Also write merged tables as Parquet here.")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-dir", default=None, help="Directory for sentishard.log (default from config).")
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    defaults = get_runtime_defaults(args.profile)
    log_dir = None if args.no_log_file else (args.log_dir or defaults.output.log_dir)
    try:
        configure_cli_logging(args.log_level, log_dir)
    except OSError as exc:
        print(f"sentishard: cannot create log directory {log_dir}: {exc}", file=sys.stderr)
        return 1

    try:
        config = RunConfig.from_defaults(
            defaults,
            workers=args.workers,
            segment_mib=args.buffer_size,
            top_k=args.top_k,
            transport=args.transport,
            timeout_seconds=args.timeout,
        )
        decoder = decoder_for_preset(args.decoder or defaults.decoder.preset)
        output_dir = Path(args.output or defaults.output.output_dir)

        for line in worker_banner(config.workers):
            print(line)
        result = run_file(args.data, config, decoder)
        write_reports(result, output_dir)
        if args.parquet_dir:
            from sentishard.export.parquet import write_tables_parquet

            write_tables_parquet(result.buckets, result.entities, args.parquet_dir)
    except SentishardError as exc:
        LOG.error("run failed: %s", exc)
        print(f"sentishard: {exc}", file=sys.stderr)
        return 1
    except (OSError, ImportError) as exc:
        LOG.error("output failed: %s", exc)
        print(f"sentishard: {exc}", file=sys.stderr)
        return 1

    for line in summary_lines(result):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
