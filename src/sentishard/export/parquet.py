from __future__ import annotations

from pathlib import Path

from sentishard.aggregate.tables import BucketTable, EntityTable
from sentishard.util.deps import require_polars

BUCKETS_FILE = "buckets.parquet"
ENTITIES_FILE = "entities.parquet"


def bucket_frame(buckets: BucketTable, *, polars_module=None):
    pl = polars_module or require_polars("bucket_frame")
    return pl.DataFrame(
        {"bucket": list(buckets.keys()), "total": list(buckets.values())},
        schema={"bucket": pl.Utf8, "total": pl.Float64},
    )


def entity_frame(entities: EntityTable, *, polars_module=None):
    pl = polars_module or require_polars("entity_frame")
    keys = list(entities.keys())
    return pl.DataFrame(
        {
            "entity": keys,
            "label": [entities[key][0] for key in keys],
            "total": [entities[key][1] for key in keys],
        },
        schema={"entity": pl.Utf8, "label": pl.Utf8, "total": pl.Float64},
    )


def write_tables_parquet(buckets: BucketTable, entities: EntityTable, out_dir, *, compression: str = "zstd") -> dict[str, Path]:
    pl = require_polars("write_tables_parquet")
    target = Path(out_dir).expanduser()
    target.mkdir(parents=True, exist_ok=True)
    paths = {"buckets": target / BUCKETS_FILE, "entities": target / ENTITIES_FILE}
    bucket_frame(buckets, polars_module=pl).write_parquet(str(paths["buckets"]), compression=compression)
    entity_frame(entities, polars_module=pl).write_parquet(str(paths["entities"]), compression=compression)
    return paths
