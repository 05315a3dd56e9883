from sentishard.util.deps import optional_module, require_duckdb, require_module, require_polars
from sentishard.util.json import json_backend, json_dumps, json_loads
from sentishard.util.logging import configure_cli_logging, log_structured_event, new_job_id
from sentishard.util.timing import PhaseClock

__all__ = [
    "PhaseClock",
    "configure_cli_logging",
    "json_backend",
    "json_dumps",
    "json_loads",
    "log_structured_event",
    "new_job_id",
    "optional_module",
    "require_duckdb",
    "require_module",
    "require_polars",
]
