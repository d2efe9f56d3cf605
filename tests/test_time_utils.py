"""Tests for the timestamp codec."""

from datetime import datetime, timezone

import pytest

from dependency_ingest.reader import load_package_summaries
from dependency_ingest.time_utils import PublishTime, format_timestamp, parse_timestamp


def test_parse_keeps_nanoseconds():
    ts = parse_timestamp("2015-03-17T00:00:00.123456789Z")

    assert ts.seconds == datetime(2015, 3, 17, tzinfo=timezone.utc)
    assert ts.nanosecond == 123456789


def test_format_pads_to_nine_digits():
    ts = parse_timestamp("2015-03-17T00:00:00.000Z")

    assert format_timestamp(ts) == "2015-03-17T00:00:00.000000000Z"


def test_parse_without_fraction():
    ts = parse_timestamp("2011-10-26T02:35:57Z")

    assert format_timestamp(ts) == "2011-10-26T02:35:57.000000000Z"


def test_offsets_are_normalized_to_utc():
    ts = parse_timestamp("2020-01-01T02:30:00.5+02:00")

    assert ts == PublishTime(datetime(2020, 1, 1, 0, 30, tzinfo=timezone.utc), 500_000_000)
    assert format_timestamp(ts) == "2020-01-01T00:30:00.500000000Z"


@pytest.mark.parametrize(
    "value",
    [
        "2015-03-17T00:00:00.000Z",
        "2019-06-30T23:59:59.999999999Z",
        "2021-02-03T04:05:06.7-05:30",
        "2012-12-12t12:12:12.000000001z",
        "0001-01-01T00:00:00.000Z",
        "2300-01-01T00:00:00.5Z",
        "9999-12-31T23:59:59.999999999Z",
    ],
)
def test_round_trip_is_exact(value):
    ts = parse_timestamp(value)

    assert parse_timestamp(format_timestamp(ts)) == ts


def test_zero_time_formats_with_four_digit_year():
    ts = parse_timestamp("0001-01-01T00:00:00Z")

    assert format_timestamp(ts) == "0001-01-01T00:00:00.000000000Z"


def test_bulk_document_accepts_zero_time():
    packages = load_package_summaries(
        '[{"name":"a","versions":[{"number":"1","published_at":"0001-01-01T00:00:00Z"}]}]'
    )

    assert format_timestamp(packages[0].versions[0].published_at) == (
        "0001-01-01T00:00:00.000000000Z"
    )


def test_timestamps_order_by_instant():
    earlier = parse_timestamp("2020-01-01T00:00:00.000000001Z")
    later = parse_timestamp("2020-01-01T01:00:00.000000000+01:00")

    assert later < earlier


def test_missing_values_are_absent():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert format_timestamp(None) == ""


@pytest.mark.parametrize(
    "value",
    [
        "2015-03-17",
        "2015-03-17 00:00:00Z",
        "2015-03-17T00:00:00",
        "2015-03-17T00:00:00.1234567890Z",
        "2015-13-17T00:00:00Z",
        "0001-01-01T00:00:00+01:00",
        "yesterday",
    ],
)
def test_invalid_layouts_raise(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_non_string_raises():
    with pytest.raises(ValueError):
        parse_timestamp(1426550400)
