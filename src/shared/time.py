from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Literal, Optional

from src.core.errors import BadRequestError

Period = Literal["day", "week", "month", "quarter"]

WINDOW_SPECS = (
    "today",
    "this_week",
    "last_week",
    "this_month",
    "last_month",
    "this_quarter",
    "last_quarter",
)

_ONE_MICROSECOND = timedelta(microseconds=1)


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval ``[start, end]``; both boundaries are inside the window."""

    start: datetime
    end: datetime

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            return False
        instant = ensure_aware(value)
        return ensure_aware(self.start) <= instant <= ensure_aware(self.end)


def ensure_aware(value: datetime) -> datetime:
    # Naive datetimes coming from the data layer are stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return start_of_day(value) + timedelta(days=1) - _ONE_MICROSECOND


def start_of_week(value: datetime) -> datetime:
    return start_of_day(value) - timedelta(days=value.weekday())


def end_of_week(value: datetime) -> datetime:
    return start_of_week(value) + timedelta(days=7) - _ONE_MICROSECOND


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value).replace(day=1)


def end_of_month(value: datetime) -> datetime:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return start_of_day(value).replace(day=last_day) + timedelta(days=1) - _ONE_MICROSECOND


def start_of_quarter(value: datetime) -> datetime:
    first_month = 3 * ((value.month - 1) // 3) + 1
    return start_of_month(value).replace(month=first_month)


def end_of_quarter(value: datetime) -> datetime:
    quarter_start = start_of_quarter(value)
    return end_of_month(quarter_start.replace(month=quarter_start.month + 2))


def quarter_label(value: datetime) -> str:
    return f"Q{(value.month - 1) // 3 + 1} {value.year}"


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)


def sub_days(value: datetime, days: int) -> datetime:
    return value - timedelta(days=days)


def sub_weeks(value: datetime, weeks: int) -> datetime:
    return value - timedelta(weeks=weeks)


def sub_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 - months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the target month's length (31 March minus one month is 28/29 February).
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def sub_quarters(value: datetime, quarters: int) -> datetime:
    return sub_months(value, quarters * 3)


def period_window(now: datetime, period: Period, periods_back: int = 0) -> TimeWindow:
    if period == "day":
        anchor = sub_days(now, periods_back)
        return TimeWindow(start=start_of_day(anchor), end=end_of_day(anchor))
    if period == "week":
        anchor = sub_weeks(now, periods_back)
        return TimeWindow(start=start_of_week(anchor), end=end_of_week(anchor))
    if period == "month":
        anchor = sub_months(now, periods_back)
        return TimeWindow(start=start_of_month(anchor), end=end_of_month(anchor))
    if period == "quarter":
        anchor = sub_quarters(now, periods_back)
        return TimeWindow(start=start_of_quarter(anchor), end=end_of_quarter(anchor))
    raise ValueError(f"Unsupported period: {period}")


def rolling_windows(now: datetime, period: Period, count: int) -> List[TimeWindow]:
    """Return ``count`` consecutive windows, oldest first, ending with the one containing ``now``."""
    return [period_window(now, period, periods_back) for periods_back in range(count - 1, -1, -1)]


def window_ending_at(now: datetime, days: int) -> TimeWindow:
    return TimeWindow(start=sub_days(now, days), end=now)


def parse_window_spec(spec: str, now: datetime) -> TimeWindow:
    normalized = spec.strip().lower()
    if normalized == "today":
        return period_window(now, "day")
    try:
        relative, period_name = normalized.split("_", 1)
    except ValueError as exc:
        raise BadRequestError(
            "Unsupported time window format", details={"supported": list(WINDOW_SPECS)}
        ) from exc
    if relative not in ("this", "last") or period_name not in ("week", "month", "quarter"):
        raise BadRequestError(
            "Unsupported time window format", details={"supported": list(WINDOW_SPECS)}
        )
    periods_back = 0 if relative == "this" else 1
    return period_window(now, period_name, periods_back)  # type: ignore[arg-type]