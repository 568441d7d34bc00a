"""
Calendar helpers (date only, no timezone).
"""
from datetime import date, timedelta

from keepalive.domain.errors import ValidationError

SATURDAY = 5
PERIODS = ("week", "month", "year", "all")
MAX_CALENDAR_DAYS = 366


def is_weekend(d: date) -> bool:
    return d.weekday() >= SATURDAY


def skip_weekend(d: date) -> date:
    """Saturday/Sunday -> next Monday, other days unchanged."""
    if is_weekend(d):
        return d + timedelta(days=7 - d.weekday())
    return d


def days_inclusive(start: date, end: date) -> int:
    return (end - start).days + 1


def iter_days(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def period_bounds(period: str, today: date) -> tuple[date | None, date | None]:
    """
    Calendar period containing today.

    week  - Monday..Sunday
    month - 1st..last day of the month
    year  - Jan 1..Dec 31
    all   - (None, None), no bounds
    """
    if period == "week":
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if period == "month":
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    if period == "year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if period == "all":
        return None, None
    raise ValidationError(f"Неизвестный период: {period}")


def validate_range(start: date, end: date, max_days: int = MAX_CALENDAR_DAYS) -> None:
    if start > end:
        raise ValidationError("Дата начала не может быть позже даты конца")
    if days_inclusive(start, end) > max_days:
        raise ValidationError(f"Диапазон не может быть длиннее {max_days} дней")
