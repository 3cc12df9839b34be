"""Search filtering applied to expanded events."""

from __future__ import annotations

from collections.abc import Iterable

from .models import EventTemplate, SearchCriteria

_TEXT_FIELDS = ("title", "description")


def matches_text(event: EventTemplate, query: str) -> bool:
    """Case-insensitive substring match over title and description."""
    needle = query.strip().casefold()
    if not needle:
        return True
    for field in _TEXT_FIELDS:
        value = getattr(event, field, None)
        if value and needle in value.casefold():
            return True
    return False


def matches_criteria(event: EventTemplate, criteria: SearchCriteria) -> bool:
    """Check an expanded event against every filter in the criteria.

    Date filters compare the calendar day of the occurrence start and are
    inclusive on both ends.
    """
    if not matches_text(event, criteria.query):
        return False

    start_day = event.start.date()
    if criteria.start_date is not None and start_day < criteria.start_date:
        return False
    if criteria.end_date is not None and start_day > criteria.end_date:
        return False

    if criteria.calendar_id and event.calendar_id != criteria.calendar_id:
        return False
    return True


def filter_instances(
    events: Iterable[EventTemplate], criteria: SearchCriteria
) -> list[EventTemplate]:
    return [e for e in events if matches_criteria(e, criteria)]


def sort_chronologically(events: Iterable[EventTemplate]) -> list[EventTemplate]:
    """Order by start, then end, then id so equal starts sort stably."""
    return sorted(events, key=lambda e: (e.start, e.end, e.id))
