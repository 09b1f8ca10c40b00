"""Calendar-month helpers shared by the valuation, budget and projection services."""

from calendar import monthrange
from datetime import date
from typing import Iterator


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(d.day, monthrange(year, month)[1]))


def same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from start's month through end's month."""
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = add_months(current, 1)


def years_ago(d: date, years: int) -> date:
    return add_months(d, -12 * years)
