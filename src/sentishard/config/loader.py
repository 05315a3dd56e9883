"""Locate and read the TOML files behind the runtime defaults.

Reads never raise: every outcome is a :class:`DefaultsFile` whose
``error_kind`` says what went wrong (``missing``, ``unreadable``,
``oversized``, ``invalid_toml``, ``invalid_shape``).
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

_RESOURCE_PACKAGE = "sentishard.config"
_DEFAULTS_FILE = "defaults.toml"
DEFAULTS_PATH_ENV_VAR = "SENTISHARD_DEFAULTS_PATH"
PROFILE_ENV_VAR = "SENTISHARD_PROFILE"
MAX_DEFAULTS_FILE_BYTES = 1_048_576

PACKAGED_SOURCE = "packaged_toml"
OVERRIDE_SOURCE = "override_toml"


@dataclass(frozen=True)
class DefaultsFile:
    source: str
    path: str
    payload: dict[str, Any] = field(default_factory=dict)
    error_kind: str | None = None
    size_bytes: int | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


def resolve_profile_name(profile: str | None = None) -> str | None:
    text = str(profile if profile is not None else os.getenv(PROFILE_ENV_VAR, "")).strip().lower()
    return text or None


@lru_cache(maxsize=16)
def _parse_cached(path_str: str, mtime_ns: int, size_bytes: int) -> dict[str, Any]:
    # mtime and size only key the cache so an edited file is re-read.
    with open(path_str, "rb") as handle:
        return tomllib.load(handle)


def read_defaults_file(path, *, source: str) -> DefaultsFile:
    target = Path(path).expanduser()
    try:
        resolved = target.resolve()
        stat = resolved.stat()
    except FileNotFoundError:
        return DefaultsFile(source, str(target), error_kind="missing")
    except OSError:
        return DefaultsFile(source, str(target), error_kind="unreadable")
    path_str = str(resolved)
    if stat.st_size > MAX_DEFAULTS_FILE_BYTES:
        return DefaultsFile(source, path_str, error_kind="oversized", size_bytes=int(stat.st_size))
    try:
        loaded = _parse_cached(path_str, int(stat.st_mtime_ns), int(stat.st_size))
    except tomllib.TOMLDecodeError:
        return DefaultsFile(source, path_str, error_kind="invalid_toml")
    except (OSError, UnicodeDecodeError):
        return DefaultsFile(source, path_str, error_kind="unreadable")
    if not isinstance(loaded, dict):
        return DefaultsFile(source, path_str, error_kind="invalid_shape")
    return DefaultsFile(source, path_str, payload=loaded, size_bytes=int(stat.st_size))


def load_packaged_defaults() -> DefaultsFile:
    resource = importlib_resources.files(_RESOURCE_PACKAGE).joinpath(_DEFAULTS_FILE)
    with importlib_resources.as_file(resource) as path:
        return read_defaults_file(path, source=PACKAGED_SOURCE)


def load_defaults_override() -> DefaultsFile | None:
    """Read the file named by ``SENTISHARD_DEFAULTS_PATH``; ``None`` when unset."""
    override = os.getenv(DEFAULTS_PATH_ENV_VAR, "").strip()
    if not override:
        return None
    return read_defaults_file(override, source=OVERRIDE_SOURCE)


def clear_defaults_file_cache() -> None:
    _parse_cached.cache_clear()
