from sentishard.aggregate.reduce import merge_bucket_tables, merge_entity_tables, reduce_partials
from sentishard.aggregate.tables import Aggregator, BucketTable, EntityTable, PartialAggregate
from sentishard.aggregate.topk import BoundedTopK, Direction, top_buckets, top_entities, top_k

__all__ = [
    "Aggregator",
    "BoundedTopK",
    "BucketTable",
    "Direction",
    "EntityTable",
    "PartialAggregate",
    "merge_bucket_tables",
    "merge_entity_tables",
    "reduce_partials",
    "top_buckets",
    "top_entities",
    "top_k",
]
