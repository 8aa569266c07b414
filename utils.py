"""Calendar grid and formatting helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator


WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def prev_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def grid_start(year: int, month: int) -> date:
    """Get the Monday that starts the display grid of a month.

    The 1st itself when it is a Monday, the following Monday when the month
    starts on a weekend, the preceding Monday otherwise.
    """
    first_day = date(year, month, 1)
    weekday = first_day.weekday()
    if weekday >= 5:
        return first_day + timedelta(days=7 - weekday)
    return first_day - timedelta(days=weekday)


def grid_end(year: int, month: int) -> date:
    """Get the Sunday just before the next month's grid starts."""
    return grid_start(*next_month(year, month)) - timedelta(days=1)


def grid_month_for(d: date) -> tuple[int, int]:
    """Get the (year, month) whose display grid holds d.

    Grids of consecutive months tile the calendar, so padding days belong to
    exactly one neighbouring month.
    """
    if d < grid_start(d.year, d.month):
        return prev_month(d.year, d.month)
    if d > grid_end(d.year, d.month):
        return next_month(d.year, d.month)
    return d.year, d.month


class DateRange:
    """Consecutive dates from start to end inclusive, iterable more than once."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return max((self.end - self.start).days + 1, 0)


def date_range(start: date, end: date) -> DateRange:
    return DateRange(start, end)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def format_minutes(minutes: int) -> str:
    """Format a signed number of minutes as HH:MM (hours may exceed 24)."""
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02}:{mins:02}"
