from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.core.errors import BadRequestError
from src.shared.time import (
    TimeWindow,
    parse_window_spec,
    period_window,
    quarter_label,
    rolling_windows,
    sub_months,
)


def test_week_window_is_iso_week_containing_now(now):
    window = period_window(now, "week")
    assert window.start == datetime(2025, 7, 28, tzinfo=timezone.utc)
    assert window.end == datetime(2025, 8, 3, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_window_boundaries_are_inclusive(now):
    window = period_window(now, "week")
    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.start - timedelta(microseconds=1))
    assert not window.contains(window.end + timedelta(microseconds=1))


def test_missing_timestamp_is_outside_every_window(now):
    assert not period_window(now, "month").contains(None)


def test_naive_datetimes_are_read_as_utc(now):
    window = period_window(now, "week")
    assert window.contains(datetime(2025, 7, 28, 0, 0))
    assert not window.contains(datetime(2025, 7, 27, 23, 59))


def test_sub_months_clamps_to_month_length():
    assert sub_months(datetime(2025, 3, 31), 1) == datetime(2025, 2, 28)
    assert sub_months(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)
    assert sub_months(datetime(2025, 1, 15), 2) == datetime(2024, 11, 15)


def test_rolling_quarters_are_oldest_first(now):
    windows = rolling_windows(now, "quarter", 2)
    assert [quarter_label(window.start) for window in windows] == ["Q2 2025", "Q3 2025"]
    assert windows[0].end < windows[1].start


def test_fourth_quarter_ends_on_new_years_eve():
    window = period_window(datetime(2025, 11, 5, tzinfo=timezone.utc), "quarter")
    assert window.start == datetime(2025, 10, 1, tzinfo=timezone.utc)
    assert window.end.date().isoformat() == "2025-12-31"


@pytest.mark.parametrize(
    ("spec", "start", "end_day"),
    [
        ("today", datetime(2025, 7, 29), "2025-07-29"),
        ("this_week", datetime(2025, 7, 28), "2025-08-03"),
        ("last_week", datetime(2025, 7, 21), "2025-07-27"),
        ("last_month", datetime(2025, 6, 1), "2025-06-30"),
        ("this_quarter", datetime(2025, 7, 1), "2025-09-30"),
        ("LAST_QUARTER", datetime(2025, 4, 1), "2025-06-30"),
    ],
)
def test_parse_window_spec(now, spec, start, end_day):
    window = parse_window_spec(spec, now)
    assert window.start == start.replace(tzinfo=timezone.utc)
    assert window.end.date().isoformat() == end_day


@pytest.mark.parametrize("spec", ["bogus", "next_week", "this_year", ""])
def test_parse_window_spec_rejects_unknown_values(now, spec):
    with pytest.raises(BadRequestError) as exc_info:
        parse_window_spec(spec, now)
    assert "this_week" in exc_info.value.details["supported"]


def test_time_window_is_immutable(now):
    window = TimeWindow(start=now, end=now)
    with pytest.raises(AttributeError):
        window.start = now - timedelta(days=1)  # type: ignore[misc]
