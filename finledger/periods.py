"""
Calendar Helpers

Month bounds, day iteration and day clamping shared by the report,
budget and dashboard queries. Every range here is inclusive on both ends.

Month arithmetic goes through dateutil's relativedelta: an absolute
`day=` past the end of a month lands on the month's last day.
"""

from datetime import date, timedelta
from typing import Iterator

from dateutil.relativedelta import relativedelta


class InvalidRangeError(ValueError):
    """A date range, month number or limit that cannot be computed over."""
    pass


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidRangeError(f"Month must be between 1 and 12, got {month}")


def clamp_day(year: int, month: int, day: int) -> date:
    """
    The given day of a month, pulled back to the month's last day.

    Example: day 31 in April 2024 -> 2024-04-30.
    """
    _check_month(month)
    return date(year, month, 1) + relativedelta(day=day)


def last_day_of_month(year: int, month: int) -> int:
    return clamp_day(year, month, 31).day


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """
    First and last calendar day of a month.

    Raises:
        InvalidRangeError: If month is outside 1..12
    """
    _check_month(month)
    return date(year, month, 1), clamp_day(year, month, 31)


def current_month_bounds(today: date) -> tuple[date, date]:
    return month_bounds(today.month, today.year)


def previous_month(today: date) -> tuple[int, int]:
    """(month, year) of the full calendar month before `today`."""
    last_month = today + relativedelta(months=-1)
    return last_month.month, last_month.year


def iter_days(start: date, end: date) -> Iterator[date]:
    """
    Every calendar day from start to end, ascending.

    Raises:
        InvalidRangeError: If end is before start
    """
    if end < start:
        raise InvalidRangeError(f"End date {end} is before start date {start}")

    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
