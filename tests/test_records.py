import pytest

from sentishard.errors import DecodeError
from sentishard.records import JsonRecordDecoder, Record, decoder_for_preset, time_bucket


def test_flat_decoder_extracts_all_fields():
    record = JsonRecordDecoder().decode(b'{"time":"2023-01-01T10:15:00Z","id":"1","name":"alice","metric":0.5}')
    assert record == Record("2023-01-01 10", "1", "alice", 0.5)
    assert record.has_bucket and record.has_entity


def test_mastodon_preset_reads_nested_account():
    raw = (
        b'{"created_at":"2024-05-06T23:59:59.123Z","sentiment":-1,'
        b'"account":{"id":"109","username":"zed"}}'
    )
    record = decoder_for_preset("mastodon").decode(raw)
    assert record.time_bucket_key == "2024-05-06 23"
    assert record.entity_key == "109"
    assert record.entity_label == "zed"
    assert record.metric == -1.0


def test_missing_fields_stay_none():
    record = JsonRecordDecoder().decode(b'{"id":"7","metric":2.0}')
    assert record.time_bucket_key is None
    assert record.entity_label is None
    assert not record.has_bucket
    assert not record.has_entity


def test_unusable_values_are_dropped_per_field():
    decoder = JsonRecordDecoder()
    record = decoder.decode(b'{"time":"yesterday","id":42,"name":"n","metric":true}')
    assert record.time_bucket_key is None
    assert record.entity_key == "42"
    assert record.metric is None

    record = decoder.decode(b'{"time":"2023-01-01T10:00:00Z","id":"1","name":"n","metric":"0.4"}')
    assert record.metric is None


def test_time_bucket_keeps_the_timestamp_own_hour():
    assert time_bucket("2023-01-01T10:15:00+05:00") == "2023-01-01 10"
    assert time_bucket("2023-01-01T00:30:00-01:00") == "2023-01-01 00"
    assert time_bucket("2023-01-01 10:15:00Z") == "2023-01-01 10"


@pytest.mark.parametrize("value", ["2023-01-01", "2023-01-01T10:15:00", "2023-01-01Z", "not a time", ""])
def test_time_bucket_needs_time_of_day_and_offset(value):
    assert time_bucket(value) is None


def test_date_only_record_stays_out_of_bucket_table():
    record = JsonRecordDecoder().decode(b'{"time":"2023-01-01","id":"1","name":"alice","metric":0.5}')
    assert record.time_bucket_key is None
    assert record.has_entity


@pytest.mark.parametrize("raw", [b"{not json", b"[1, 2]", b'"text"', b"\xff\xfe{}"])
def test_decoder_rejects_non_objects(raw):
    with pytest.raises(DecodeError):
        JsonRecordDecoder().decode(raw)


def test_unknown_preset():
    with pytest.raises(ValueError):
        decoder_for_preset("xml")
