"""Worker groups: rank identity, a group barrier and gather-to-root.

Rank 0 is the merge point and always runs in the calling thread, so its return
value is the group's result. The other ranks run in child processes
(:class:`ProcessGroup`) or threads (:class:`ThreadGroup`).
"""

from __future__ import annotations

import logging
import multiprocessing
import queue
import threading
import time
from typing import Any, Callable

from sentishard.errors import TransportError, WorkerFailedError
from sentishard.parallel.policy import normalize_transport, require_positive_int, resolve_timeout
from sentishard.util.logging import log_structured_event

MERGE_RANK = 0
_ERROR_DRAIN_SECONDS = 1.0
_JOIN_GRACE_SECONDS = 5.0
_ERROR = "error"
_BROKEN = "broken"
_TRANSPORT_LOG = logging.getLogger("sentishard.parallel.transport")


class GroupContext:
    """Collective primitives as seen by one rank."""

    def __init__(self, rank, size, barrier, channel, *, timeout=None, on_phase=None):
        self.rank = int(rank)
        self.size = int(size)
        self._barrier = barrier
        self._channel = channel
        self._timeout = timeout
        self._on_phase = on_phase
        self._reported = False

    @property
    def is_root(self) -> bool:
        return self.rank == MERGE_RANK

    def report_phase(self, phase) -> None:
        if self._on_phase is not None:
            self._on_phase(phase)

    def barrier(self) -> None:
        try:
            self._barrier.wait(self._timeout)
        except threading.BrokenBarrierError:
            if self.is_root:
                self._raise_barrier_failure(drain_seconds=_ERROR_DRAIN_SECONDS)
            message = f"group barrier broken (rank {self.rank})"
            # This rank arrived; whoever broke the barrier is to blame.
            self._post(_BROKEN, message)
            raise TransportError(message) from None

    def gather(self, payload) -> list | None:
        """Send ``payload`` to the merge point.

        The root blocks until every rank contributed and gets the payloads in
        rank order; other ranks get ``None``.
        """
        if not self.is_root:
            self._channel.put(("ok", self.rank, payload))
            return None
        received = {self.rank: payload}
        while len(received) < self.size:
            try:
                kind, rank, body = self._channel.get(timeout=self._timeout)
            except queue.Empty:
                missing = sorted(set(range(self.size)) - set(received))
                raise TransportError(f"timed out waiting for ranks {missing}") from None
            if kind == _ERROR:
                raise WorkerFailedError(body, rank)
            if kind == _BROKEN:
                raise TransportError(body)
            received[int(rank)] = body
        return [received[rank] for rank in range(self.size)]

    def fail(self, exc: BaseException) -> None:
        """Tell the group this rank is giving up."""
        if not self.is_root and not self._reported:
            self._post(_ERROR, f"worker {self.rank} failed: {exc}")
        self._barrier.abort()

    def _post(self, kind: str, body: str) -> None:
        if self.is_root:
            return
        self._reported = True
        try:
            self._channel.put((kind, self.rank, body))
        except Exception:  # pragma: no cover - channel already torn down
            pass

    def _raise_barrier_failure(self, *, drain_seconds: float) -> None:
        """Blame a rank that reported an error, else the ranks that never arrived."""
        arrived = {self.rank}
        deadline = time.monotonic() + drain_seconds
        while len(arrived) < self.size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                kind, rank, body = self._channel.get(timeout=remaining)
            except queue.Empty:
                break
            if kind == _ERROR:
                raise WorkerFailedError(body, rank)
            arrived.add(int(rank))
        missing = sorted(set(range(self.size)) - arrived)
        if missing:
            raise TransportError(f"group barrier broken: ranks {missing} never arrived") from None
        raise TransportError("group barrier broken") from None


def run_rank(ctx: GroupContext, target: Callable[..., Any], args: tuple):
    try:
        return target(ctx, *args)
    except BaseException as exc:
        ctx.fail(exc)
        raise


def _process_entry(rank, size, barrier, channel, timeout, target, args):
    ctx = GroupContext(rank, size, barrier, channel, timeout=timeout)
    try:
        run_rank(ctx, target, args)
    except BaseException:
        # Nobody may read the error report; do not block exit on the queue feeder.
        channel.cancel_join_thread()
        raise SystemExit(1)


class WorkerGroup:
    kind = "abstract"

    def __init__(self, size: int, *, timeout_seconds: float | None = None):
        self.size = require_positive_int("size", size)
        self.timeout = resolve_timeout(timeout_seconds)

    def __repr__(self):
        return f"{type(self).__name__}(size={self.size}, timeout={self.timeout})"

    def run(self, target: Callable[..., Any], *args, on_phase=None):
        raise NotImplementedError

    def _log(self, level, event, **fields):
        log_structured_event(_TRANSPORT_LOG, level, event, transport=self.kind, size=self.size, **fields)


class ThreadGroup(WorkerGroup):
    kind = "thread"

    def run(self, target, *args, on_phase=None):
        barrier = threading.Barrier(self.size)
        channel: queue.Queue = queue.Queue()
        threads = []
        for rank in range(1, self.size):
            ctx = GroupContext(rank, self.size, barrier, channel, timeout=self.timeout)
            thread = threading.Thread(
                target=self._thread_entry,
                args=(ctx, target, args),
                name=f"sentishard-rank-{rank}",
                daemon=True,
            )
            threads.append(thread)
        self._log(logging.DEBUG, "group_start")
        for thread in threads:
            thread.start()
        root = GroupContext(MERGE_RANK, self.size, barrier, channel, timeout=self.timeout, on_phase=on_phase)
        try:
            return run_rank(root, target, args)
        finally:
            for thread in threads:
                thread.join(self.timeout)

    @staticmethod
    def _thread_entry(ctx, target, args):
        try:
            run_rank(ctx, target, args)
        except Exception as exc:
            _TRANSPORT_LOG.debug("rank %d stopped: %s", ctx.rank, exc)


class ProcessGroup(WorkerGroup):
    """Memory-isolated ranks backed by :mod:`multiprocessing`.

    ``target`` and its arguments must be picklable under the chosen start method.
    """

    kind = "process"

    def __init__(self, size: int, *, timeout_seconds: float | None = None, start_method: str | None = None):
        super().__init__(size, timeout_seconds=timeout_seconds)
        self.start_method = start_method

    def run(self, target, *args, on_phase=None):
        mp = multiprocessing.get_context(self.start_method)
        barrier = mp.Barrier(self.size)
        channel = mp.Queue()
        processes = [
            mp.Process(
                target=_process_entry,
                args=(rank, self.size, barrier, channel, self.timeout, target, args),
                name=f"sentishard-rank-{rank}",
            )
            for rank in range(1, self.size)
        ]
        self._log(logging.DEBUG, "group_start", start_method=mp.get_start_method())
        try:
            for process in processes:
                process.start()
        except OSError as exc:
            barrier.abort()
            self._reap(processes)
            raise TransportError("cannot start worker processes", exc) from exc

        root = GroupContext(MERGE_RANK, self.size, barrier, channel, timeout=self.timeout, on_phase=on_phase)
        try:
            result = run_rank(root, target, args)
        except BaseException:
            self._reap(processes)
            raise
        self._reap(processes)
        failed = [p.name for p in processes if p.exitcode not in (0, None)]
        if failed:
            self._log(logging.WARNING, "group_exit_nonzero", ranks=failed)
        return result

    def _reap(self, processes) -> None:
        for process in processes:
            if process.pid is None:
                continue
            process.join(_JOIN_GRACE_SECONDS if self.timeout is None else self.timeout)
            if process.is_alive():
                process.terminate()
                process.join()


def make_group(transport: str, size: int, *, timeout_seconds: float | None = None) -> WorkerGroup:
    name = normalize_transport(transport)
    if name == "thread":
        return ThreadGroup(size, timeout_seconds=timeout_seconds)
    return ProcessGroup(size, timeout_seconds=timeout_seconds)


__all__ = [
    "GroupContext",
    "MERGE_RANK",
    "ProcessGroup",
    "ThreadGroup",
    "WorkerGroup",
    "make_group",
    "run_rank",
]
