"""Window selection and visibility filtering for calendar queries.

Browsing keeps the expansion window small and anchored to the displayed date
so render cost stays bounded no matter how old a recurring event is. Search
widens the window to a fixed span around now so results are complete.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable
from datetime import datetime, timedelta
from typing import Any, NamedTuple, Optional, Union

from .calendar_math import add_months, day_ceiling, day_floor
from .config_manager import get_config_value
from .expander import ExpanderConfig, coerce_template, expand
from .expansion_cache import ExpansionCache
from .models import CalendarConfig, EventTemplate, SearchCriteria, ViewType, coerce_instant
from .search import filter_instances, sort_chronologically

logger = logging.getLogger(__name__)

DEFAULT_BROWSE_PADDING_DAYS = 14
DEFAULT_SEARCH_WINDOW_DAYS = 365


class Window(NamedTuple):
    start: datetime
    end: datetime


def browsing_window(
    view: Union[ViewType, str],
    current_date: Any,
    padding_days: int = DEFAULT_BROWSE_PADDING_DAYS,
) -> Window:
    """Expansion window for the regular calendar views.

    Month view covers the month before the displayed one through the end of
    the second month after it. Week, day and agenda views cover
    ``padding_days`` either side of the displayed day.
    """
    current = coerce_instant(current_date)
    mode = ViewType(view)

    if mode == ViewType.MONTH:
        month_start = day_floor(current.replace(day=1))
        start = add_months(month_start, -1)
        end = add_months(month_start, 3) - timedelta(microseconds=1)
        return Window(start, end)

    start = day_floor(current) - timedelta(days=padding_days)
    end = day_ceiling(current + timedelta(days=padding_days))
    return Window(start, end)


def search_window(now: Any, days: int = DEFAULT_SEARCH_WINDOW_DAYS) -> Window:
    """Fixed window of ``days`` either side of now, ignoring the displayed date."""
    moment = coerce_instant(now)
    span = timedelta(days=days)
    return Window(moment - span, moment + span)


def is_search_mode(view: Union[ViewType, str], criteria: Optional[SearchCriteria]) -> bool:
    return ViewType(view) == ViewType.SEARCH or (criteria is not None and criteria.is_active)


def select_window(
    view: Union[ViewType, str],
    current_date: Any,
    now: Any,
    criteria: Optional[SearchCriteria] = None,
    settings: Any = None,
) -> Window:
    """Pick the browsing or search window for the current UI state."""
    if is_search_mode(view, criteria):
        days = get_config_value(settings, "search_window_days", DEFAULT_SEARCH_WINDOW_DAYS)
        return search_window(now, days)

    padding = get_config_value(settings, "browse_padding_days", DEFAULT_BROWSE_PADDING_DAYS)
    return browsing_window(view, current_date, padding)


def active_templates(templates: Iterable[Any]) -> list[EventTemplate]:
    """Drop soft-deleted and malformed records; deleted events are never expanded."""
    result = []
    for record in templates:
        template = coerce_template(record)
        if template is not None and not template.is_deleted:
            result.append(template)
    return result


def visible_templates(
    templates: Iterable[EventTemplate], calendars: Iterable[CalendarConfig]
) -> list[EventTemplate]:
    """Keep templates whose calendar is currently visible."""
    visible_ids = {c.id for c in calendars if c.visible}
    return [t for t in templates if t.calendar_id in visible_ids]


def displayed_events(
    templates: Iterable[Any],
    calendars: Iterable[CalendarConfig],
    view: Union[ViewType, str],
    current_date: Any,
    now: Any,
    criteria: Optional[SearchCriteria] = None,
    settings: Any = None,
    cache: Optional[ExpansionCache] = None,
    version: Optional[Hashable] = None,
) -> list[EventTemplate]:
    """Events to show for the current view, sorted by start.

    Pipeline: drop deleted, keep visible calendars, expand over the selected
    window, then in search mode apply the text/date/calendar filters.

    Args:
        templates: Stored event records
        calendars: Calendar configurations with visibility flags
        view: Current display mode
        current_date: Date shown in the view
        now: Current time, passed explicitly
        criteria: Search request; an active query switches to search mode
        settings: Optional dict or object with window and expansion settings
        cache: Optional expansion cache, used together with ``version``
        version: Templates-version key for the cache
    """
    calendars = list(calendars)
    usable = visible_templates(active_templates(templates), calendars)
    window = select_window(view, current_date, now, criteria, settings)

    if cache is not None and version is not None:
        visible_key = tuple(sorted(c.id for c in calendars if c.visible))
        events = cache.get_or_expand((version, visible_key), usable, window.start, window.end)
    else:
        events = expand(usable, window.start, window.end, ExpanderConfig.from_settings(settings))

    if is_search_mode(view, criteria) and criteria is not None:
        events = filter_instances(events, criteria)

    logger.debug(
        "Displaying %d event(s) for view=%s window=%s - %s",
        len(events),
        ViewType(view).value,
        window.start.isoformat(),
        window.end.isoformat(),
    )
    return sort_chronologically(events)
