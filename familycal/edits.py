"""Edits to recurring events addressed through occurrence ids.

The calendar shows expanded occurrences, so edit and delete requests arrive
with an occurrence id. These helpers reverse the id to the backing template
and express the change on the template itself: an exdate for a single
occurrence, a recurrence end for "this and following", a soft delete for the
whole series.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from .calendar_math import day_floor, same_day
from .exceptions import InstanceIdError
from .instance_ids import parse_instance_id
from .models import EventTemplate, coerce_instant

logger = logging.getLogger(__name__)


class DeleteMode(str, Enum):
    """Scope of a delete request on a recurring event."""

    THIS = "this"
    FOLLOWING = "following"
    ALL = "all"


def find_template(templates: Iterable[EventTemplate], event_id: str) -> Optional[EventTemplate]:
    """Locate the template backing an event or occurrence id."""
    template_id = parse_instance_id(event_id).template_id
    for template in templates:
        if template.id == template_id:
            return template
    return None


def _occurrence_start(template: EventTemplate, event_id: str) -> datetime:
    ref = parse_instance_id(event_id)
    if ref.template_id != template.id:
        raise InstanceIdError(f"Event id {event_id!r} does not belong to template {template.id!r}")
    # A bare template id addresses the first occurrence.
    return ref.occurrence_start or template.start


def soft_delete(template: EventTemplate, now: Any) -> EventTemplate:
    """Move a template to the trash."""
    return template.model_copy(update={"deleted_at": coerce_instant(now)})


def restore(template: EventTemplate) -> EventTemplate:
    """Bring a template back from the trash."""
    return template.model_copy(update={"deleted_at": None})


def exclude_occurrence(template: EventTemplate, occurrence_start: datetime) -> EventTemplate:
    """Add the occurrence's day to the template's exdates."""
    if any(same_day(existing, occurrence_start) for existing in template.exdates):
        return template
    exdates = [*template.exdates, day_floor(occurrence_start)]
    return template.model_copy(update={"exdates": exdates})


def end_series_before(template: EventTemplate, occurrence_start: datetime) -> EventTemplate:
    """Stop the series just before the given occurrence.

    The new end is one millisecond before the occurrence start, so that
    occurrence and every later one disappear while earlier ones stay. An
    existing earlier end is kept.
    """
    new_end = occurrence_start - timedelta(milliseconds=1)
    if template.recurrence_ends is not None and template.recurrence_ends <= new_end:
        return template
    return template.model_copy(update={"recurrence_ends": new_end})


def apply_delete(
    template: EventTemplate,
    event_id: str,
    mode: DeleteMode | str,
    now: Any,
) -> EventTemplate:
    """Apply a delete request to the template backing ``event_id``.

    Args:
        template: Template the id resolves to
        event_id: Occurrence id (or the template id itself)
        mode: Which occurrences to remove
        now: Deletion time recorded for soft deletes

    Returns:
        Updated template; the caller persists it

    Raises:
        InstanceIdError: If the id does not belong to the template
    """
    scope = DeleteMode(mode)
    occurrence_start = _occurrence_start(template, event_id)

    if not template.is_recurring or scope == DeleteMode.ALL:
        logger.info("Soft-deleting event %s", template.id)
        return soft_delete(template, now)

    if scope == DeleteMode.THIS:
        logger.info(
            "Excluding occurrence %s of event %s", occurrence_start.date().isoformat(), template.id
        )
        return exclude_occurrence(template, occurrence_start)

    if occurrence_start <= template.start:
        # Deleting from the first occurrence onward removes the whole series.
        logger.info("Soft-deleting event %s from its first occurrence", template.id)
        return soft_delete(template, now)

    logger.info(
        "Ending event %s before occurrence %s", template.id, occurrence_start.isoformat()
    )
    return end_series_before(template, occurrence_start)
