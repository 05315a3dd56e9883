from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from sentishard.aggregate.reduce import reduce_partials
from sentishard.aggregate.tables import BucketTable, EntityTable, PartialAggregate
from sentishard.aggregate.topk import Direction, top_buckets, top_entities
from sentishard.config.run import RunConfig
from sentishard.errors import ConfigError, TransportError
from sentishard.parallel.partition import Shard, partition_file
from sentishard.parallel.transport import GroupContext, WorkerGroup, make_group
from sentishard.records import JsonRecordDecoder, RecordDecoder
from sentishard.scan.mapped import file_size
from sentishard.scan.scanner import scan_shard
from sentishard.util.logging import log_structured_event, new_job_id
from sentishard.util.timing import PhaseClock

_RUN_LOG = logging.getLogger("sentishard.parallel.coordinator")


class Phase(str, Enum):
    INIT = "init"
    PARTITIONED = "partitioned"
    SCANNING = "scanning"
    BARRIER = "barrier"
    MERGING = "merging"
    TOPK = "topk"
    DONE = "done"


@dataclass(frozen=True)
class WorkerPlan:
    job_id: str
    path: str
    shards: tuple[Shard, ...]
    decoder: RecordDecoder
    segment_bytes: int
    top_k: int


@dataclass
class RunResult:
    buckets: BucketTable
    entities: EntityTable
    happiest_buckets: list[tuple[str, float]]
    saddest_buckets: list[tuple[str, float]]
    happiest_entities: list[tuple[str, str, float]]
    saddest_entities: list[tuple[str, str, float]]
    records: int
    skipped: int
    workers: int
    job_id: str = ""
    timings: dict[str, float] = field(default_factory=dict)


def _log_run_event(level, event, **fields):
    if not _RUN_LOG.isEnabledFor(level):
        return
    log_structured_event(_RUN_LOG, level, event, **fields)


def run_worker(ctx: GroupContext, plan: WorkerPlan) -> RunResult | None:
    """Body executed by every rank; only the merge point returns a result."""
    if len(plan.shards) != ctx.size:
        raise TransportError(f"plan has {len(plan.shards)} shards for a group of {ctx.size}")
    shard = plan.shards[ctx.rank]

    ctx.report_phase(Phase.SCANNING)
    clock = PhaseClock()
    with clock.measure("scan"):
        aggregator, stats = scan_shard(
            plan.path,
            shard,
            decoder=plan.decoder,
            segment_bytes=plan.segment_bytes,
        )
    _log_run_event(
        logging.INFO,
        "rank_scan_complete",
        job_id=plan.job_id,
        rank=ctx.rank,
        phase=Phase.SCANNING.value,
        byte_start=shard.byte_start,
        byte_end=shard.byte_end,
        records=stats.records,
        skipped=stats.skipped,
        segments=stats.segments,
        bytes_scanned=stats.bytes_scanned,
        seconds=round(clock["scan"], 4),
    )

    ctx.report_phase(Phase.BARRIER)
    ctx.barrier()
    partial = PartialAggregate.from_aggregator(
        ctx.rank,
        aggregator,
        records=stats.records,
        skipped=stats.skipped,
        scan_seconds=clock["scan"],
    )
    with clock.measure("gather"):
        partials = ctx.gather(partial)
    if partials is None:
        return None

    ctx.report_phase(Phase.MERGING)
    with clock.measure("merge"):
        buckets, entities, records, skipped = reduce_partials(partials)

    ctx.report_phase(Phase.TOPK)
    k = plan.top_k
    result = RunResult(
        buckets=buckets,
        entities=entities,
        happiest_buckets=top_buckets(buckets, k, Direction.LARGEST),
        saddest_buckets=top_buckets(buckets, k, Direction.SMALLEST),
        happiest_entities=top_entities(entities, k, Direction.LARGEST),
        saddest_entities=top_entities(entities, k, Direction.SMALLEST),
        records=records,
        skipped=skipped,
        workers=ctx.size,
        job_id=plan.job_id,
        timings={
            "scan": max(p.scan_seconds for p in partials),
            "gather": clock["gather"],
            "merge": clock["merge"],
        },
    )
    _log_run_event(
        logging.INFO,
        "merge_complete",
        job_id=plan.job_id,
        rank=ctx.rank,
        phase=Phase.MERGING.value,
        ranks=len(partials),
        records=records,
        skipped=skipped,
        buckets=len(buckets),
        entities=len(entities),
        merge_seconds=round(clock["merge"], 4),
    )
    return result


class Coordinator:
    """Drives one run: partition once, scan on every rank, merge and rank on rank 0.

    Any fatal error from a collaborator aborts the run; nothing is retried.
    """

    def __init__(self, config: RunConfig, decoder: RecordDecoder | None = None, *, group: WorkerGroup | None = None):
        self.config = config
        self.decoder = JsonRecordDecoder() if decoder is None else decoder
        if group is None:
            group = make_group(config.transport, config.workers, timeout_seconds=config.timeout_seconds)
        if group.size != config.workers:
            raise ConfigError(f"group size {group.size} does not match workers={config.workers}")
        self.group = group
        self.phase = Phase.INIT
        self.shards: tuple[Shard, ...] = ()

    def _enter(self, phase: Phase) -> None:
        self.phase = phase

    def partition(self, path) -> tuple[Shard, ...]:
        self.shards = partition_file(file_size(path), self.config.workers)
        self._enter(Phase.PARTITIONED)
        return self.shards

    def run(self, path) -> RunResult:
        job_id = new_job_id("run")
        source = str(Path(path))
        _log_run_event(
            logging.INFO,
            "run_start",
            job_id=job_id,
            path=source,
            workers=self.config.workers,
            transport=self.group.kind,
            segment_bytes=self.config.segment_bytes,
            top_k=self.config.top_k,
        )
        clock = PhaseClock()
        with clock.measure("total"):
            shards = self.partition(source)
            plan = WorkerPlan(
                job_id=job_id,
                path=source,
                shards=shards,
                decoder=self.decoder,
                segment_bytes=self.config.segment_bytes,
                top_k=self.config.top_k,
            )
            result = self.group.run(run_worker, plan, on_phase=self._enter)
        if result is None:  # pragma: no cover - rank 0 always returns
            raise TransportError("merge point produced no result")
        self._enter(Phase.DONE)
        result.timings["total"] = clock["total"]
        _log_run_event(
            logging.INFO,
            "run_complete",
            job_id=job_id,
            records=result.records,
            skipped=result.skipped,
            seconds=round(clock["total"], 4),
        )
        return result


def run_file(path, config: RunConfig, decoder: RecordDecoder | None = None, *, group: WorkerGroup | None = None) -> RunResult:
    return Coordinator(config, decoder, group=group).run(path)


__all__ = ["Coordinator", "Phase", "RunResult", "WorkerPlan", "run_file", "run_worker"]
