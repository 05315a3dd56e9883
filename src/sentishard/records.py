"""Record decoding for newline-delimited JSON input.

A decoder turns one raw line into a :class:`Record`. Each field of a record is
optional; the aggregator only uses the fields a given table needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from sentishard.errors import DecodeError
from sentishard.util.json import json_loads

HOUR_BUCKET_FORMAT = "%Y-%m-%d %H"
_DATE_LENGTH = len("YYYY-MM-DD")
_TIME_SEPARATORS = "Tt "


@dataclass(frozen=True)
class Record:
    time_bucket_key: str | None = None
    entity_key: str | None = None
    entity_label: str | None = None
    metric: float | None = None

    @property
    def has_bucket(self) -> bool:
        return self.time_bucket_key is not None and self.metric is not None

    @property
    def has_entity(self) -> bool:
        return self.entity_key is not None and self.entity_label is not None and self.metric is not None


class RecordDecoder:
    """Pure mapping from raw line bytes to a :class:`Record`.

    Implementations raise :class:`DecodeError` for lines they cannot use.
    """

    def decode(self, raw: bytes) -> Record:
        raise NotImplementedError


def _lookup(payload: Any, dotted: str):
    node = payload
    for part in dotted.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
        if node is None:
            return None
    return node


def _as_text(value) -> str | None:
    if isinstance(value, str):
        return value
    # Numeric ids are common in NDJSON dumps.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _as_metric(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def time_bucket(value: str, bucket_format: str = HOUR_BUCKET_FORMAT) -> str | None:
    """Bucket an RFC 3339 timestamp by its own local hour.

    Values without a time of day or without an offset (``Z`` counts) have no
    bucket.
    """
    text = value.strip()
    if len(text) <= _DATE_LENGTH or text[_DATE_LENGTH] not in _TIME_SEPARATORS:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.strftime(bucket_format)


class JsonRecordDecoder(RecordDecoder):
    def __init__(
        self,
        *,
        time_field: str = "time",
        key_field: str = "id",
        label_field: str = "name",
        metric_field: str = "metric",
        bucket_format: str = HOUR_BUCKET_FORMAT,
    ):
        self.time_field = time_field
        self.key_field = key_field
        self.label_field = label_field
        self.metric_field = metric_field
        self.bucket_format = bucket_format

    def __repr__(self):
        return (
            f"{type(self).__name__}(time_field={self.time_field!r}, key_field={self.key_field!r}, "
            f"label_field={self.label_field!r}, metric_field={self.metric_field!r})"
        )

    def decode(self, raw: bytes) -> Record:
        try:
            payload = json_loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecodeError(f"undecodable record: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise DecodeError("record is not a JSON object")

        bucket = None
        created = _lookup(payload, self.time_field)
        if isinstance(created, str):
            bucket = time_bucket(created, self.bucket_format)

        return Record(
            time_bucket_key=bucket,
            entity_key=_as_text(_lookup(payload, self.key_field)),
            entity_label=_as_text(_lookup(payload, self.label_field)),
            metric=_as_metric(_lookup(payload, self.metric_field)),
        )


DECODER_PRESETS: dict[str, dict[str, str]] = {
    "flat": {
        "time_field": "time",
        "key_field": "id",
        "label_field": "name",
        "metric_field": "metric",
    },
    "mastodon": {
        "time_field": "created_at",
        "key_field": "account.id",
        "label_field": "account.username",
        "metric_field": "sentiment",
    },
}


def decoder_for_preset(name: str) -> JsonRecordDecoder:
    key = str(name or "").strip().lower()
    if key not in DECODER_PRESETS:
        choices = ", ".join(sorted(DECODER_PRESETS))
        raise ValueError(f"Unknown decoder preset: {name!r}. Expected one of: {choices}")
    return JsonRecordDecoder(**DECODER_PRESETS[key])


__all__ = [
    "DECODER_PRESETS",
    "HOUR_BUCKET_FORMAT",
    "JsonRecordDecoder",
    "Record",
    "RecordDecoder",
    "decoder_for_preset",
    "time_bucket",
]
