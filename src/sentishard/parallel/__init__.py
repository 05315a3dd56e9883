from sentishard.parallel.partition import Shard, partition_file, shard_for
from sentishard.parallel.policy import (
    BYTES_PER_MIB,
    VALID_TRANSPORTS,
    normalize_transport,
    require_int,
    require_non_negative_int,
    require_positive_int,
    resolve_segment_bytes,
    resolve_timeout,
)

__all__ = [
    "BYTES_PER_MIB",
    "Shard",
    "VALID_TRANSPORTS",
    "normalize_transport",
    "partition_file",
    "require_int",
    "require_non_negative_int",
    "require_positive_int",
    "resolve_segment_bytes",
    "resolve_timeout",
    "shard_for",
]
