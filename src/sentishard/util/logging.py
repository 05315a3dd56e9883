from __future__ import annotations

import json as _stdlib_json
import logging
from uuid import uuid4

from sentishard.util.json import json_dumps

_SENSITIVE_FIELD_TOKENS = (
    "authorization",
    "token",
    "secret",
    "password",
    "api_key",
    "apikey",
)
_TRUNCATED_SUFFIX = "...<truncated>"
_MAX_LOG_STRING_CHARS = 2048
JOB_ID_LEN = 12
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE_NAME = "sentishard.log"


def _is_sensitive_key(key: str) -> bool:
    lowered = str(key).strip().lower()
    return any(token in lowered for token in _SENSITIVE_FIELD_TOKENS)


def _sanitize_log_value(key: str, value):
    if _is_sensitive_key(key):
        return "<redacted>"
    if isinstance(value, str) and len(value) > _MAX_LOG_STRING_CHARS:
        return value[:_MAX_LOG_STRING_CHARS] + _TRUNCATED_SUFFIX
    return value


def _serialize_structured_payload(payload: dict[str, object]) -> str:
    try:
        return json_dumps(payload, default=str)
    except (TypeError, ValueError):
        # orjson rejects some payloads the stdlib accepts, e.g. non-str keys.
        return _stdlib_json.dumps(payload, default=str, ensure_ascii=False, separators=(",", ":"))


def new_job_id(prefix: str | None = None) -> str:
    token = uuid4().hex[:JOB_ID_LEN]
    cleaned = str(prefix or "").strip()
    if cleaned:
        return f"{cleaned}_{token}"
    return token


def log_structured_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields,
) -> dict[str, object]:
    payload: dict[str, object] = {"event": str(event)}
    payload.update({k: _sanitize_log_value(k, v) for k, v in fields.items() if v is not None})
    logger.log(level, _serialize_structured_payload(payload))
    return payload


def configure_cli_logging(level: int | str = logging.INFO, log_dir=None) -> logging.Logger:
    """Install console (and optional file) handlers on the ``sentishard`` logger.

    Only entry points call this; library modules never touch handlers.
    """
    from pathlib import Path

    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root = logging.getLogger("sentishard")
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)
    if log_dir is not None:
        path = Path(log_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / LOG_FILE_NAME, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    root.propagate = False
    return root
