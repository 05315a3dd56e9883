from sentishard.config.loader import (
    DEFAULTS_PATH_ENV_VAR,
    PROFILE_ENV_VAR,
    DefaultsFile,
    load_defaults_override,
    load_packaged_defaults,
    resolve_profile_name,
)
from sentishard.config.run import RunConfig
from sentishard.config.runtime_defaults import (
    RUNTIME_DEFAULTS_SCHEMA_VERSION,
    DecoderDefaults,
    OutputDefaults,
    RuntimeDefaults,
    ScanDefaults,
    clear_runtime_defaults_cache,
    get_runtime_defaults,
    parse_runtime_defaults,
    reset_runtime_defaults_load_telemetry,
    runtime_defaults_load_telemetry,
)

__all__ = [
    "DEFAULTS_PATH_ENV_VAR",
    "PROFILE_ENV_VAR",
    "RUNTIME_DEFAULTS_SCHEMA_VERSION",
    "DecoderDefaults",
    "DefaultsFile",
    "OutputDefaults",
    "RunConfig",
    "RuntimeDefaults",
    "ScanDefaults",
    "clear_runtime_defaults_cache",
    "get_runtime_defaults",
    "load_defaults_override",
    "load_packaged_defaults",
    "parse_runtime_defaults",
    "reset_runtime_defaults_load_telemetry",
    "resolve_profile_name",
    "runtime_defaults_load_telemetry",
]
