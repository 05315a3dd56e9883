import threading
import time

import pytest

from sentishard.errors import TransportError, WorkerFailedError
from sentishard.parallel.transport import MERGE_RANK, ProcessGroup, ThreadGroup, make_group


def _raise_on_rank_one(ctx):
    if ctx.rank == 1:
        raise RuntimeError("disk on fire")
    ctx.barrier()
    return ctx.gather(ctx.rank)


def _gather_ranks(ctx, scale):
    ctx.barrier()
    return ctx.gather(ctx.rank * scale)


def test_thread_group_gathers_in_rank_order_at_root():
    group = ThreadGroup(4)
    assert group.run(_gather_ranks, 10) == [0, 10, 20, 30]


def test_single_rank_group_runs_inline():
    seen = []

    def target(ctx):
        seen.append(threading.current_thread())
        ctx.barrier()
        return ctx.gather("only")

    assert ThreadGroup(1).run(target) == ["only"]
    assert seen == [threading.current_thread()]


def test_barrier_holds_every_rank_until_all_arrive():
    arrived = []
    lock = threading.Lock()

    def target(ctx):
        if ctx.rank == 2:
            time.sleep(0.05)
        with lock:
            arrived.append(ctx.rank)
        ctx.barrier()
        with lock:
            snapshot = len(arrived)
        return ctx.gather(snapshot)

    assert ThreadGroup(3).run(target) == [3, 3, 3]


def test_phase_listener_only_sees_root_phases():
    phases = []

    def target(ctx):
        ctx.report_phase(f"rank{ctx.rank}")
        ctx.barrier()
        return ctx.gather(None)

    ThreadGroup(3).run(target, on_phase=phases.append)
    assert phases == [f"rank{MERGE_RANK}"]


def test_failing_worker_aborts_the_group():
    def target(ctx):
        if ctx.rank == 1:
            raise RuntimeError("disk on fire")
        ctx.barrier()
        return ctx.gather(ctx.rank)

    with pytest.raises(WorkerFailedError) as info:
        ThreadGroup(3).run(target)
    assert info.value.rank == 1
    assert "disk on fire" in str(info.value)


def test_root_failure_propagates_and_releases_workers():
    def target(ctx):
        if ctx.rank == MERGE_RANK:
            raise ValueError("root broke")
        ctx.barrier()
        return ctx.gather(ctx.rank)

    group = ThreadGroup(3, timeout_seconds=5)
    with pytest.raises(ValueError):
        group.run(target)


def test_timeout_turns_a_stall_into_transport_error():
    release = threading.Event()

    def target(ctx):
        if ctx.rank == 1:
            release.wait(2)
        ctx.barrier()
        return ctx.gather(ctx.rank)

    with pytest.raises(TransportError):
        ThreadGroup(2, timeout_seconds=0.1).run(target)
    release.set()


def test_barrier_timeout_blames_the_rank_that_never_arrived():
    release = threading.Event()

    def target(ctx):
        if ctx.rank == 2:
            release.wait(3)
        ctx.barrier()
        return ctx.gather(ctx.rank)

    try:
        with pytest.raises(TransportError) as info:
            ThreadGroup(3, timeout_seconds=0.3).run(target)
    finally:
        release.set()
    assert not isinstance(info.value, WorkerFailedError)
    assert "ranks [2] never arrived" in str(info.value)


def test_process_rank_failure_reaches_the_root():
    group = ProcessGroup(3, timeout_seconds=30, start_method="spawn")
    with pytest.raises(WorkerFailedError) as info:
        group.run(_raise_on_rank_one)
    assert info.value.rank == 1
    assert "disk on fire" in str(info.value)


def test_make_group_selects_transport():
    assert isinstance(make_group("thread", 2), ThreadGroup)
    group = make_group("PROCESS", 3, timeout_seconds=1.5)
    assert isinstance(group, ProcessGroup)
    assert group.size == 3
    assert group.timeout == 1.5
    with pytest.raises(ValueError):
        make_group("mpi", 2)
    with pytest.raises(ValueError):
        ThreadGroup(0)
