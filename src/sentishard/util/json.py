"""JSON for record lines and log payloads.

orjson is used when importable; the stdlib module is the fallback.
"""

from __future__ import annotations

import json as _stdlib_json

try:
    import orjson as _orjson
except Exception:  # pragma: no cover - orjson is a declared dependency
    _orjson = None

JSON_BACKEND = "orjson" if _orjson is not None else "json"


def json_backend() -> str:
    return JSON_BACKEND


def json_loads(line):
    """Parse one record line given as ``bytes``, ``memoryview`` or ``str``.

    Raises ``ValueError`` (both backends' decode errors subclass it).
    """
    if _orjson is not None:
        return _orjson.loads(line)
    if isinstance(line, memoryview):
        line = line.tobytes()
    return _stdlib_json.loads(line)


def json_dumps(payload, *, default=None) -> str:
    """Compact single-line text; ``default`` converts unknown objects."""
    if _orjson is not None:
        return _orjson.dumps(payload, default=default).decode("utf-8")
    return _stdlib_json.dumps(payload, default=default, ensure_ascii=False, separators=(",", ":"))
