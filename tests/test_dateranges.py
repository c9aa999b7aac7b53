from datetime import datetime

import pytest

from dateranges import add_months, build_date_filter, format_day, parse_date

NOW = datetime(2025, 3, 15, 10, 30)


def test_today_starts_at_midnight():
    assert build_date_filter("createdAt", "today", now=NOW) == {
        "createdAt": {"$gte": datetime(2025, 3, 15)}
    }


def test_yesterday_is_half_open():
    assert build_date_filter("createdAt", "yesterday", now=NOW) == {
        "createdAt": {"$gte": datetime(2025, 3, 14), "$lt": datetime(2025, 3, 15)}
    }


def test_last_month_crosses_year_boundary():
    f = build_date_filter("created_at", "lastmonth", now=datetime(2025, 1, 20))
    assert f == {"created_at": {"$gte": datetime(2024, 12, 1), "$lt": datetime(2025, 1, 1)}}


def test_relative_ranges():
    assert build_date_filter("d", "last7days", now=NOW)["d"]["$gte"] == datetime(2025, 3, 8, 10, 30)
    assert build_date_filter("d", "last30days", now=NOW)["d"]["$gte"] == datetime(2025, 2, 13, 10, 30)
    assert build_date_filter("d", "thismonth", now=NOW)["d"]["$gte"] == datetime(2025, 3, 1)


def test_custom_requires_both_dates():
    with pytest.raises(ValueError):
        build_date_filter("d", "custom", start_date="2025-01-01", now=NOW)

    f = build_date_filter("d", "custom", "2025-01-01T00:00:00Z", "2025-01-31", now=NOW)
    assert f == {"d": {"$gte": datetime(2025, 1, 1), "$lte": datetime(2025, 1, 31)}}


def test_unknown_range_means_no_filter():
    assert build_date_filter("d", None) == {}
    assert build_date_filter("d", "forever") == {}


def test_parse_date_normalizes_offsets_to_utc():
    assert parse_date("2025-01-01T05:00:00+05:00") == datetime(2025, 1, 1, 0, 0)


def test_format_day():
    assert format_day(datetime(2025, 3, 5)) == "5 Mar 2025"
    assert format_day("2024-12-31T23:00:00") == "31 Dec 2024"
    assert format_day(None) == "N/A"


def test_add_months_clamps_day():
    assert add_months(datetime(2025, 1, 31), 1) == datetime(2025, 2, 28)
    assert add_months(datetime(2024, 12, 10), 12) == datetime(2025, 12, 10)


def test_add_months_handles_leap_years_and_negative_shifts():
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2024, 2, 29), 12) == datetime(2025, 2, 28)
    assert add_months(datetime(2025, 3, 31), -1) == datetime(2025, 2, 28)


def test_lastmonth_after_a_short_month():
    f = build_date_filter("created_at", "lastmonth", now=datetime(2025, 3, 31, 23, 59))
    assert f == {"created_at": {"$gte": datetime(2025, 2, 1), "$lt": datetime(2025, 3, 1)}}
