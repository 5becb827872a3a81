"""Reporting period arithmetic for Cost Explorer queries."""

from __future__ import annotations

from datetime import date, timedelta

from awscosts.models import DateRange


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _prev_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_range(year: int, month: int) -> DateRange:
    """Return the full-month range (CE API uses exclusive end)."""
    ny, nm = _next_month(year, month)
    return DateRange(date(year, month, 1), date(ny, nm, 1))


def current_month_range(today: date) -> DateRange:
    """Month-to-date range ending at the "today" boundary.

    The end is tomorrow (exclusive) so today's partial spend is included,
    capped at the first of next month. On the 1st this still yields a
    one-day window rather than an empty one.
    """
    full = month_range(today.year, today.month)
    return DateRange(full.start, min(today + timedelta(days=1), full.end))


def previous_month_range(today: date) -> DateRange:
    return month_range(*_prev_month(today.year, today.month))


def trend_ranges(today: date, months: int = 6) -> list[DateRange]:
    """Return ``months`` monthly ranges, oldest first, ending with month-to-date."""
    if months < 1:
        return []
    ranges = [current_month_range(today)]
    year, month = today.year, today.month
    for _ in range(months - 1):
        year, month = _prev_month(year, month)
        ranges.append(month_range(year, month))
    ranges.reverse()
    return ranges
