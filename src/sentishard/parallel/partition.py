from __future__ import annotations

from dataclasses import dataclass

from sentishard.parallel.policy import require_non_negative_int, require_positive_int


@dataclass(frozen=True)
class Shard:
    """Half-open byte range ``[byte_start, byte_end)`` owned by one worker."""

    worker_index: int
    byte_start: int
    byte_end: int

    @property
    def length(self) -> int:
        return self.byte_end - self.byte_start

    @property
    def is_empty(self) -> bool:
        return self.byte_end <= self.byte_start


def shard_for(*, file_size: int, workers: int, worker_index: int) -> Shard:
    size = require_non_negative_int("file_size", file_size)
    count = require_positive_int("workers", workers)
    index = require_non_negative_int("worker_index", worker_index)
    if index >= count:
        raise ValueError("worker_index must be < workers")
    chunk = size // count
    start = index * chunk
    end = size if index == count - 1 else (index + 1) * chunk
    return Shard(worker_index=index, byte_start=start, byte_end=end)


def partition_file(file_size: int, workers: int) -> tuple[Shard, ...]:
    """Split ``[0, file_size)`` into ``workers`` contiguous shards.

    The last shard absorbs the ``file_size % workers`` remainder.
    """
    count = require_positive_int("workers", workers)
    return tuple(shard_for(file_size=file_size, workers=count, worker_index=i) for i in range(count))


__all__ = ["Shard", "partition_file", "shard_for"]
