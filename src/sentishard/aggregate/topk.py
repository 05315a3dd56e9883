"""Bounded top-K selection over aggregate tables.

One heap implementation serves both directions: values are scored so that the
heap root is always the worst entry kept, and a candidate displaces it only
when strictly better.
"""

from __future__ import annotations

import heapq
from enum import Enum
from typing import Any, Hashable, Iterable

from sentishard.aggregate.tables import BucketTable, EntityTable
from sentishard.parallel.policy import require_non_negative_int


class Direction(str, Enum):
    LARGEST = "largest"
    SMALLEST = "smallest"

    @classmethod
    def coerce(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.LARGEST if value else cls.SMALLEST
        text = str(value).strip().lower()
        try:
            return cls(text)
        except ValueError:
            raise ValueError("direction must be largest|smallest") from None

    @property
    def sign(self) -> int:
        return 1 if self is Direction.LARGEST else -1


class BoundedTopK:
    __slots__ = ("capacity", "direction", "_heap", "_seq")

    def __init__(self, capacity: int, direction=Direction.LARGEST):
        self.capacity = require_non_negative_int("capacity", capacity)
        self.direction = Direction.coerce(direction)
        self._heap: list[tuple[float, int, Any]] = []
        # Tie breaker so payloads are never compared.
        self._seq = 0

    def __len__(self):
        return len(self._heap)

    def offer(self, value: float, item: Any) -> bool:
        if self.capacity == 0:
            return False
        score = self.direction.sign * value
        heap = self._heap
        if len(heap) < self.capacity:
            heapq.heappush(heap, (score, self._seq, item))
            self._seq += 1
            return True
        if score > heap[0][0]:
            heapq.heapreplace(heap, (score, self._seq, item))
            self._seq += 1
            return True
        return False

    def extend(self, pairs: Iterable[tuple[float, Any]]) -> "BoundedTopK":
        for value, item in pairs:
            self.offer(value, item)
        return self

    def results(self) -> list[Any]:
        ranked = sorted(self._heap, key=lambda entry: entry[0], reverse=True)
        return [item for _score, _seq, item in ranked]


def top_buckets(table: BucketTable, k: int, direction=Direction.LARGEST) -> list[tuple[str, float]]:
    selector = BoundedTopK(k, direction)
    return selector.extend((value, (key, value)) for key, value in table.items()).results()


def top_entities(table: EntityTable, k: int, direction=Direction.LARGEST) -> list[tuple[str, str, float]]:
    selector = BoundedTopK(k, direction)
    return selector.extend((value, (key, label, value)) for key, (label, value) in table.items()).results()


def top_k(pairs: Iterable[tuple[Hashable, float]], k: int, direction=Direction.LARGEST) -> list[tuple[Hashable, float]]:
    selector = BoundedTopK(k, direction)
    return selector.extend((value, (key, value)) for key, value in pairs).results()


__all__ = ["BoundedTopK", "Direction", "top_buckets", "top_entities", "top_k"]
