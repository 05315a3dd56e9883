from __future__ import annotations

from sentishard.aggregate.tables import BucketTable, EntityTable
from sentishard.util.deps import require_duckdb


def connect_tables(buckets: BucketTable, entities: EntityTable, *, database: str = ":memory:"):
    """Return a DuckDB connection holding ``buckets`` and ``entities`` tables."""
    duckdb_module = require_duckdb("connect_tables")
    con = duckdb_module.connect(database=database)
    try:
        con.execute("CREATE OR REPLACE TABLE buckets (bucket VARCHAR, total DOUBLE)")
        con.execute("CREATE OR REPLACE TABLE entities (entity VARCHAR, label VARCHAR, total DOUBLE)")
        if buckets:
            con.executemany("INSERT INTO buckets VALUES (?, ?)", list(buckets.items()))
        if entities:
            con.executemany(
                "INSERT INTO entities VALUES (?, ?, ?)",
                [(key, label, total) for key, (label, total) in entities.items()],
            )
    except Exception:
        con.close()
        raise
    return con
