from __future__ import annotations

VALID_TRANSPORTS = frozenset({"process", "thread"})
BYTES_PER_MIB = 1024 * 1024


def require_int(name, value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an integer")
    return value


def require_positive_int(name, value):
    ivalue = require_int(name, value)
    if ivalue <= 0:
        raise ValueError(f"{name} must be a positive integer")
    return ivalue


def require_non_negative_int(name, value):
    ivalue = require_int(name, value)
    if ivalue < 0:
        raise ValueError(f"{name} must be a non-negative integer")
    return ivalue


def normalize_transport(transport, *, valid_transports=VALID_TRANSPORTS):
    name = str(transport).strip().lower()
    if name not in valid_transports:
        choices = ", ".join(sorted(valid_transports))
        raise ValueError("transport must be one of: %s" % (choices,))
    return name


def resolve_segment_bytes(segment_bytes=None, *, segment_mib=None):
    if segment_bytes is None:
        if segment_mib is None:
            raise ValueError("segment_bytes or segment_mib is required")
        segment_bytes = require_positive_int("segment_mib", segment_mib) * BYTES_PER_MIB
    return require_positive_int("segment_bytes", segment_bytes)


def resolve_timeout(timeout_seconds):
    if timeout_seconds is None:
        return None
    if isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, (int, float)):
        raise TypeError("timeout_seconds must be a number or None")
    if timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be > 0")
    return float(timeout_seconds)


__all__ = [
    "BYTES_PER_MIB",
    "VALID_TRANSPORTS",
    "normalize_transport",
    "require_int",
    "require_non_negative_int",
    "require_positive_int",
    "resolve_segment_bytes",
    "resolve_timeout",
]
