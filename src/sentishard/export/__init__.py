from sentishard.export.parquet import BUCKETS_FILE, ENTITIES_FILE, bucket_frame, entity_frame, write_tables_parquet

__all__ = ["BUCKETS_FILE", "ENTITIES_FILE", "bucket_frame", "entity_frame", "write_tables_parquet"]
