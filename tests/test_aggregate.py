import itertools
import math

from sentishard.aggregate import (
    Aggregator,
    PartialAggregate,
    merge_bucket_tables,
    merge_entity_tables,
    reduce_partials,
)
from sentishard.records import Record


def test_aggregator_sums_buckets_and_entities():
    agg = Aggregator()
    agg.add_to_bucket("h1", 0.5)
    agg.add_to_bucket("h1", 0.25)
    agg.add_to_bucket("h2", -1.0)
    agg.add_to_entity("u1", "alice", 1.0)
    agg.add_to_entity("u1", "alice_renamed", 2.0)

    assert agg.buckets == {"h1": 0.75, "h2": -1.0}
    # Latest label is kept; the sum is unaffected.
    assert agg.entities == {"u1": ("alice_renamed", 3.0)}


def test_aggregator_routes_partial_records_to_the_tables_they_fit():
    agg = Aggregator()
    agg.add(Record("h", "u", "name", 1.0))
    agg.add(Record("h", None, None, 2.0))
    agg.add(Record(None, "u", "name", 4.0))
    agg.add(Record("h", "u", None, 8.0))
    agg.add(Record("h", "u", "name", None))

    assert agg.buckets == {"h": 11.0}
    assert agg.entities == {"u": ("name", 5.0)}


def _tables():
    a = ({"x": 1.0, "y": 2.0}, {"1": ("a", 1.0)})
    b = ({"y": 3.0}, {"1": ("a2", 2.0), "2": ("b", -1.0)})
    c = ({"z": -4.0, "x": 0.5}, {})
    return [a, b, c]


def test_merge_sums_keywise_and_treats_missing_as_zero():
    tables = _tables()
    buckets = merge_bucket_tables(t[0] for t in tables)
    entities = merge_entity_tables(t[1] for t in tables)

    assert buckets == {"x": 1.5, "y": 5.0, "z": -4.0}
    assert entities["1"][1] == 3.0
    assert entities["1"][0] in {"a", "a2"}
    assert entities["2"] == ("b", -1.0)


def test_merge_is_commutative():
    tables = _tables()
    expected_buckets = merge_bucket_tables(t[0] for t in tables)
    expected_sums = {k: v for k, (_, v) in merge_entity_tables(t[1] for t in tables).items()}
    for order in itertools.permutations(tables):
        buckets = merge_bucket_tables(t[0] for t in order)
        sums = {k: v for k, (_, v) in merge_entity_tables(t[1] for t in order).items()}
        assert buckets.keys() == expected_buckets.keys()
        assert all(math.isclose(buckets[k], expected_buckets[k]) for k in buckets)
        assert sums == expected_sums


def test_merge_of_nothing_is_empty():
    assert merge_bucket_tables([]) == {}
    assert merge_entity_tables([]) == {}


def test_reduce_partials_totals_counts():
    partials = [
        PartialAggregate(rank=0, buckets={"h": 1.0}, entities={"u": ("n", 1.0)}, records=3, skipped=1),
        PartialAggregate(rank=1, buckets={"h": 2.0}, entities={}, records=4, skipped=0),
    ]
    buckets, entities, records, skipped = reduce_partials(reversed(partials))
    assert buckets == {"h": 3.0}
    assert entities == {"u": ("n", 1.0)}
    assert records == 7
    assert skipped == 1


def test_partial_from_aggregator_shares_tables():
    agg = Aggregator()
    agg.add(Record("h", "u", "n", 1.5))
    partial = PartialAggregate.from_aggregator(2, agg, records=1, skipped=4, scan_seconds=0.1)
    assert partial.rank == 2
    assert partial.buckets == {"h": 1.5}
    assert partial.entities == {"u": ("n", 1.5)}
    assert partial.skipped == 4
