from __future__ import annotations

from dataclasses import dataclass, field

from sentishard.records import Record

BucketTable = dict[str, float]
EntityTable = dict[str, tuple[str, float]]


class Aggregator:
    """Running sums for one worker. Not safe for concurrent callers."""

    __slots__ = ("buckets", "entities")

    def __init__(self):
        self.buckets: BucketTable = {}
        self.entities: EntityTable = {}

    def add_to_bucket(self, key: str, value: float) -> None:
        buckets = self.buckets
        buckets[key] = buckets.get(key, 0.0) + value

    def add_to_entity(self, key: str, label: str, value: float) -> None:
        current = self.entities.get(key)
        total = value if current is None else current[1] + value
        self.entities[key] = (label, total)

    def add(self, record: Record) -> None:
        if record.metric is None:
            return
        if record.time_bucket_key is not None:
            self.add_to_bucket(record.time_bucket_key, record.metric)
        if record.entity_key is not None and record.entity_label is not None:
            self.add_to_entity(record.entity_key, record.entity_label, record.metric)

    def __len__(self):
        return len(self.buckets) + len(self.entities)


@dataclass
class PartialAggregate:
    """What one worker sends to the merge point."""

    rank: int
    buckets: BucketTable = field(default_factory=dict)
    entities: EntityTable = field(default_factory=dict)
    records: int = 0
    skipped: int = 0
    scan_seconds: float = 0.0

    @classmethod
    def from_aggregator(cls, rank: int, aggregator: Aggregator, *, records: int, skipped: int = 0, scan_seconds: float = 0.0):
        return cls(
            rank=int(rank),
            buckets=aggregator.buckets,
            entities=aggregator.entities,
            records=int(records),
            skipped=int(skipped),
            scan_seconds=float(scan_seconds),
        )
