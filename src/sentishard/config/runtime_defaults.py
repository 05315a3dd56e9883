from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import Any, Mapping

from sentishard.config.loader import (
    clear_defaults_file_cache,
    load_defaults_override,
    load_packaged_defaults,
    resolve_profile_name,
)
from sentishard.parallel.policy import VALID_TRANSPORTS as _VALID_TRANSPORTS
from sentishard.records import DECODER_PRESETS as _DECODER_PRESETS
from sentishard.util.logging import log_structured_event

_MAX_CONFIG_STRING_LENGTH = 256
_MAX_CONFIG_INT = 10_000_000
RUNTIME_DEFAULTS_SCHEMA_VERSION = 1
_RUNTIME_DEFAULTS_LOG = logging.getLogger("sentishard.config.runtime_defaults")
_RUNTIME_DEFAULTS_LOAD_TELEMETRY = {
    "source": "unknown",
    "fallback_activations": 0,
    "error_kind": None,
    "schema_status": "unknown",
    "profile": None,
}


@dataclass(frozen=True)
class ScanDefaults:
    workers: int = 4
    segment_mib: int = 100
    top_k: int = 5
    transport: str = "process"


@dataclass(frozen=True)
class OutputDefaults:
    output_dir: str = "output"
    log_dir: str = "logs"


@dataclass(frozen=True)
class DecoderDefaults:
    preset: str = "mastodon"


@dataclass(frozen=True)
class RuntimeDefaults:
    scan: ScanDefaults
    output: OutputDefaults
    decoder: DecoderDefaults


_BUILTIN_RUNTIME_DEFAULTS = RuntimeDefaults(
    scan=ScanDefaults(),
    output=OutputDefaults(),
    decoder=DecoderDefaults(),
)


def runtime_defaults_load_telemetry() -> dict[str, object]:
    return dict(_RUNTIME_DEFAULTS_LOAD_TELEMETRY)


def reset_runtime_defaults_load_telemetry() -> None:
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY.update(
        source="unknown",
        fallback_activations=0,
        error_kind=None,
        schema_status="unknown",
        profile=None,
    )


def _record_source(source: str, *, error_kind: str | None, schema_status: str, used_fallback: bool, profile: str | None) -> None:
    if used_fallback:
        _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"] = (
            int(_RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"]) + 1
        )
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["source"] = source
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["error_kind"] = error_kind
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["schema_status"] = schema_status
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["profile"] = profile
    log_structured_event(
        _RUNTIME_DEFAULTS_LOG,
        logging.WARNING if used_fallback else logging.DEBUG,
        "runtime_defaults_source",
        source=source,
        schema_status=schema_status,
        error_kind=error_kind,
        profile=profile,
        used_fallback=bool(used_fallback),
    )


def _to_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


def _schema_status(payload: Mapping[str, Any], *, require_schema: bool) -> tuple[bool, str]:
    raw = _to_mapping(payload.get("meta")).get("schema_version")
    if raw is None:
        return (False, "missing") if require_schema else (True, "absent")
    try:
        version = int(raw)
    except Exception:
        return False, "mismatch"
    if version != RUNTIME_DEFAULTS_SCHEMA_VERSION:
        return False, "mismatch"
    return True, "ok"


def _parse_int(raw: Any, default: int, *, minimum: int = 1) -> int:
    if isinstance(raw, bool):
        return int(default)
    try:
        parsed = int(raw)
    except Exception:
        return int(default)
    if parsed < minimum:
        return int(default)
    return min(parsed, _MAX_CONFIG_INT)


def _parse_choice(raw: Any, default: str, valid_values) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip().lower()
    if len(value) > _MAX_CONFIG_STRING_LENGTH:
        return str(default)
    return value if value in valid_values else str(default)


def _parse_small_string(raw: Any, default: str) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip()
    if not value or len(value) > _MAX_CONFIG_STRING_LENGTH:
        return str(default)
    return value


def _section(root: Mapping[str, Any], name: str, profile_raw: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(_to_mapping(root.get(name)))
    merged.update(profile_raw)
    return merged


def parse_runtime_defaults(
    payload: Mapping[str, Any] | None,
    *,
    base: RuntimeDefaults | None = None,
    profile: str | None = None,
) -> RuntimeDefaults:
    """Overlay ``payload`` on ``base``; unusable values keep the base value.

    A ``[profiles.<profile>]`` table overrides keys of every section.
    """
    root = _to_mapping(payload)
    runtime_base = _BUILTIN_RUNTIME_DEFAULTS if base is None else base
    profile_raw = _to_mapping(_to_mapping(root.get("profiles")).get(profile)) if profile else {}

    scan_raw = _section(root, "scan", profile_raw)
    scan_base = runtime_base.scan
    scan = ScanDefaults(
        workers=_parse_int(scan_raw.get("workers"), scan_base.workers),
        segment_mib=_parse_int(scan_raw.get("segment_mib"), scan_base.segment_mib),
        top_k=_parse_int(scan_raw.get("top_k"), scan_base.top_k, minimum=0),
        transport=_parse_choice(scan_raw.get("transport"), scan_base.transport, _VALID_TRANSPORTS),
    )

    output_raw = _section(root, "output", profile_raw)
    output_base = runtime_base.output
    output = OutputDefaults(
        output_dir=_parse_small_string(output_raw.get("output_dir"), output_base.output_dir),
        log_dir=_parse_small_string(output_raw.get("log_dir"), output_base.log_dir),
    )

    decoder_raw = _section(root, "decoder", profile_raw)
    decoder = DecoderDefaults(
        preset=_parse_choice(decoder_raw.get("preset"), runtime_base.decoder.preset, _DECODER_PRESETS),
    )
    return RuntimeDefaults(scan=scan, output=output, decoder=decoder)


def _builtin_fallback(error_kind: str, schema_status: str, profile: str | None) -> RuntimeDefaults:
    _record_source(
        "builtin_fallback",
        error_kind=error_kind,
        schema_status=schema_status,
        used_fallback=True,
        profile=profile,
    )
    return _BUILTIN_RUNTIME_DEFAULTS


@lru_cache(maxsize=8)
def _runtime_defaults_for(profile: str | None) -> RuntimeDefaults:
    packaged = load_packaged_defaults()
    if not packaged.ok:
        return _builtin_fallback(f"packaged_{packaged.error_kind}", "missing", profile)

    schema_ok, schema_state = _schema_status(packaged.payload, require_schema=True)
    if not schema_ok:
        reason = "missing_packaged_schema" if schema_state == "missing" else "packaged_schema_mismatch"
        return _builtin_fallback(reason, schema_state, profile)

    parsed = parse_runtime_defaults(packaged.payload, profile=profile)
    source = packaged.source
    error_kind = None

    override = load_defaults_override()
    if override is not None and not override.ok:
        error_kind = f"override_{override.error_kind}"
    elif override is not None:
        override_ok, override_state = _schema_status(override.payload, require_schema=False)
        if override_ok:
            parsed = parse_runtime_defaults(override.payload, base=parsed, profile=profile)
            source = override.source
            schema_state = override_state
        else:
            error_kind = "override_schema_mismatch"

    _record_source(source, error_kind=error_kind, schema_status=schema_state, used_fallback=False, profile=profile)
    return parsed


def get_runtime_defaults(profile: str | None = None) -> RuntimeDefaults:
    return _runtime_defaults_for(resolve_profile_name(profile))


def clear_runtime_defaults_cache() -> None:
    _runtime_defaults_for.cache_clear()
    clear_defaults_file_cache()
