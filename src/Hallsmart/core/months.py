import calendar
from datetime import date
from typing import Tuple


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of the month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_bounds_str(year: int, month: int) -> Tuple[str, str]:
    first, last = month_bounds(year, month)
    return first.isoformat(), last.isoformat()


def next_month(today: date) -> Tuple[int, int]:
    """(year, month) following today's month, rolling over at December."""
    if today.month == 12:
        return today.year + 1, 1
    return today.year, today.month + 1


def to_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def window_overlaps(start, end, range_start: date, range_end: date) -> bool:
    """[start, end] intersects [range_start, range_end]; end None means open-ended."""
    start = to_date(start)
    if start > range_end:
        return False
    return end is None or to_date(end) >= range_start
