"""Time-window filters applied before pagination and display."""

from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum

from finance_tracker.models.transaction import Transaction
from finance_tracker.utils.date_utils import format_short_date, is_datetime_in_range


class Period(Enum):
    """Browsing window for the transaction list."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


def period_start(period: Period, now: datetime) -> datetime | None:
    """Return the inclusive lower bound of a period, or None for ALL.

    WEEK is a trailing seven days; MONTH and YEAR start at the beginning of
    the current calendar month and year.
    """
    if period is Period.WEEK:
        return now - timedelta(days=7)
    if period is Period.MONTH:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period is Period.YEAR:
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return None


def filter_by_period(
    transactions: Iterable[Transaction],
    period: Period,
    now: datetime | None = None,
) -> list[Transaction]:
    """Keep transactions at or after the start of the period.

    Args:
        transactions: Transactions to filter.
        period: Window to apply.
        now: Reference time (defaults to the current local time).

    Returns:
        Matching transactions in their original order.
    """
    if period is Period.ALL:
        return list(transactions)

    start = period_start(period, now or datetime.now())
    return [t for t in transactions if is_datetime_in_range(t.timestamp, start=start)]


def period_range_label(
    period: Period,
    now: datetime | None = None,
    transactions: Iterable[Transaction] = (),
) -> str:
    """Describe the calendar range a period covers.

    WEEK shows Monday to Sunday of the current week, MONTH the month name
    and year, YEAR the year, ALL the span of the given transactions.
    """
    now = now or datetime.now()

    if period is Period.WEEK:
        monday = (now - timedelta(days=now.weekday())).date()
        sunday = monday + timedelta(days=6)
        return f"{format_short_date(monday)} - {format_short_date(sunday)}"
    if period is Period.MONTH:
        return now.strftime("%B %Y")
    if period is Period.YEAR:
        return str(now.year)

    timestamps = [t.timestamp for t in transactions]
    if not timestamps:
        return "No transactions"
    return f"{format_short_date(min(timestamps).date())} - {format_short_date(max(timestamps).date())}"
