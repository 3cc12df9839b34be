"""Calendar arithmetic used by the recurrence expander.

Month and year steps are always measured from the anchor instant, never
chained from a previously clamped value. ``relativedelta`` clamps a missing
day-of-month to the last valid day, so a Jan 31 anchor yields Feb 28/29,
Mar 31, Apr 30, and a Feb 29 anchor yields Feb 28 in common years.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from .models import RecurrenceType

_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)

RecurrenceLike = Union[RecurrenceType, str]


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def add_weeks(dt: datetime, weeks: int) -> datetime:
    return dt + timedelta(weeks=weeks)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of a shorter month."""
    return dt + relativedelta(months=months)


def add_years(dt: datetime, years: int) -> datetime:
    """Add calendar years; Feb 29 falls back to Feb 28 in common years."""
    return dt + relativedelta(years=years)


def step(anchor: datetime, recurrence: RecurrenceLike, n: int) -> datetime:
    """Return the n-th occurrence start counted from ``anchor``.

    Args:
        anchor: Start of the first occurrence
        recurrence: Repeat frequency
        n: Zero-based occurrence index

    Raises:
        ValueError: If the recurrence does not repeat
    """
    freq = RecurrenceType(recurrence)
    if freq == RecurrenceType.DAILY:
        return add_days(anchor, n)
    if freq == RecurrenceType.WEEKLY:
        return add_weeks(anchor, n)
    if freq == RecurrenceType.MONTHLY:
        return add_months(anchor, n)
    if freq == RecurrenceType.YEARLY:
        return add_years(anchor, n)
    raise ValueError(f"recurrence {freq.value!r} has no period")


def whole_periods_between(anchor: datetime, target: datetime, recurrence: RecurrenceLike) -> int:
    """Largest n such that ``step(anchor, recurrence, n) <= target``.

    Computed from the calendar delta rather than by stepping, so the cost does
    not grow with the distance between anchor and target. Returns 0 when the
    target is not after the anchor.
    """
    if target <= anchor:
        return 0

    freq = RecurrenceType(recurrence)
    if freq == RecurrenceType.DAILY:
        n = (target - anchor) // timedelta(days=1)
    elif freq == RecurrenceType.WEEKLY:
        n = (target - anchor) // timedelta(weeks=1)
    elif freq == RecurrenceType.MONTHLY:
        delta = relativedelta(target, anchor)
        n = delta.years * 12 + delta.months
    elif freq == RecurrenceType.YEARLY:
        n = relativedelta(target, anchor).years
    else:
        raise ValueError(f"recurrence {freq.value!r} has no period")

    # Clamped month ends can land past the target; settle on the last one that doesn't.
    while n > 0 and step(anchor, freq, n) > target:
        n -= 1
    return n


def day_floor(dt: datetime) -> datetime:
    """Truncate to midnight of the same calendar day."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def day_ceiling(dt: datetime) -> datetime:
    """Last representable instant of the same calendar day."""
    return day_floor(dt) + timedelta(days=1) - timedelta(microseconds=1)


def same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def intervals_overlap(
    start: datetime, end: datetime, range_start: datetime, range_end: datetime
) -> bool:
    """Inclusive overlap test between an event and a query window."""
    return end >= range_start and start <= range_end


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since 1970-01-01T00:00, reading a naive instant as UTC wall time."""
    return (dt - _EPOCH) // _ONE_MS


def from_epoch_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


def clamping_notice(start: datetime, recurrence: RecurrenceLike) -> Optional[str]:
    """Explain the day fallback for anchors that don't exist in every period.

    Shown when an event is created so the user knows in advance that a
    monthly event on the 29th-31st, or a yearly event on Feb 29, will move
    to the last valid day where that day is missing.

    Returns:
        User-facing message, or None when every occurrence keeps the anchor day
    """
    freq = RecurrenceType(recurrence)
    if freq == RecurrenceType.MONTHLY and start.day > 28:
        return (
            f"This event starts on day {start.day}. In months with fewer days it "
            "will move to the last day of the month."
        )
    if freq == RecurrenceType.YEARLY and start.month == 2 and start.day == 29:
        return (
            "This event is on February 29. In non-leap years it will move to "
            "February 28."
        )
    return None
