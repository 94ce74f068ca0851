from datetime import datetime, timezone
import time

import pytest

from shared.datetime_utils import (
    STRICT_Z_ISO_PATTERN,
    as_utc,
    parse_entry_date,
    parse_to_utc,
    to_day,
    to_iso_utc,
)

def test_iso_z_passthrough():
    dt = parse_to_utc("2025-10-05T06:20:00Z")
    assert to_iso_utc(dt) == "2025-10-05T06:20:00Z"
    assert STRICT_Z_ISO_PATTERN.match(to_iso_utc(dt))

def test_iso_with_offset():
    dt = parse_to_utc("2025-10-05T02:20:00-04:00")
    assert to_iso_utc(dt) == "2025-10-05T06:20:00Z"

def test_naive_iso_is_treated_as_utc():
    dt = parse_to_utc("2025-10-05 06:20:00")
    assert to_iso_utc(dt) == "2025-10-05T06:20:00Z"

def test_rfc2822_rss():
    dt = parse_to_utc("Sun, 05 Oct 2025 06:20:00 GMT")
    assert to_iso_utc(dt) == "2025-10-05T06:20:00Z"

def test_slash_date_and_utc_offset():
    dt = parse_to_utc("2025/10/05 06:20:00 +0000")
    assert to_iso_utc(dt) == "2025-10-05T06:20:00Z"

def test_struct_time_from_feedparser():
    st = time.struct_time((2025, 10, 5, 6, 20, 0, 6, 278, 0))
    assert to_iso_utc(parse_to_utc(st)) == "2025-10-05T06:20:00Z"

def test_missing_raises():
    with pytest.raises(ValueError):
        parse_to_utc("")
    with pytest.raises(ValueError):
        parse_to_utc(None)

def test_garbage_raises():
    with pytest.raises(ValueError):
        parse_to_utc("not a date")

def test_out_of_range():
    with pytest.raises(ValueError):
        parse_to_utc("1900-01-01T00:00:00Z")

def test_entry_date_prefers_parsed_then_strings_then_default():
    default = datetime(2024, 1, 1, tzinfo=timezone.utc)
    entry = {"published": "garbage", "updated": "2025-10-05T06:20:00Z"}
    assert to_iso_utc(parse_entry_date(entry, default=default)) == "2025-10-05T06:20:00Z"
    assert parse_entry_date({}, default=default) == default
    assert to_iso_utc(parse_entry_date({"publishedAt": "2025-10-04T01:00:00Z"})) == "2025-10-04T01:00:00Z"

def test_to_day_and_as_utc():
    assert to_day("2025-10-05T23:30:00-02:00") == "2025-10-06"
    naive = datetime(2025, 10, 5, 1, 0)
    assert as_utc(naive).tzinfo is timezone.utc
    assert to_day(as_utc(naive)) == "2025-10-05"
