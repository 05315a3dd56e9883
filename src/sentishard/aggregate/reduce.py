from __future__ import annotations

from typing import Iterable

from sentishard.aggregate.tables import BucketTable, EntityTable, PartialAggregate


def merge_bucket_tables(tables: Iterable[BucketTable]) -> BucketTable:
    merged: BucketTable = {}
    for table in tables:
        for key, value in table.items():
            merged[key] = merged.get(key, 0.0) + value
    return merged


def merge_entity_tables(tables: Iterable[EntityTable]) -> EntityTable:
    merged: EntityTable = {}
    for table in tables:
        for key, (label, value) in table.items():
            current = merged.get(key)
            if current is None:
                merged[key] = (label, value)
            else:
                # First label seen wins; only the sum matters.
                merged[key] = (current[0], current[1] + value)
    return merged


def reduce_partials(partials: Iterable[PartialAggregate]) -> tuple[BucketTable, EntityTable, int, int]:
    """Merge per-worker partials into global tables.

    Returns ``(buckets, entities, records, skipped)``. The result does not depend
    on the order of ``partials`` beyond floating-point summation order.
    """
    items = list(partials)
    buckets = merge_bucket_tables(p.buckets for p in items)
    entities = merge_entity_tables(p.entities for p in items)
    records = sum(int(p.records) for p in items)
    skipped = sum(int(p.skipped) for p in items)
    return buckets, entities, records, skipped
