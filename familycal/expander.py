"""Recurring event expansion for familycal.

Turns stored event templates into the concrete occurrences that overlap a
query window. Expansion is pure: no I/O, no shared state, and the same
arguments always produce the same occurrences with the same ids.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import ValidationError

from .calendar_math import intervals_overlap, step, whole_periods_between
from .config_manager import get_config_value
from .exceptions import InvalidWindowError, TemplateValidationError
from .instance_ids import make_instance_id
from .models import EventTemplate, coerce_instant

logger = logging.getLogger(__name__)

TemplateLike = Union[EventTemplate, Mapping[str, Any]]

DEFAULT_MAX_ITERATIONS = 500


@dataclass(frozen=True)
class ExpanderConfig:
    """Configuration for recurrence expansion.

    ``max_iterations_per_template`` bounds the stepping loop for a single
    template. Hitting it truncates that template's occurrences for the
    window instead of failing; with the window policies in use it is only
    reached by daily events over search-sized windows.
    """

    max_iterations_per_template: int = DEFAULT_MAX_ITERATIONS

    @classmethod
    def from_settings(cls, settings: Any) -> ExpanderConfig:
        """Extract expansion configuration from a dict or settings object."""
        value = get_config_value(settings, "max_iterations", DEFAULT_MAX_ITERATIONS)
        try:
            max_iterations = int(value)
        except (TypeError, ValueError):
            logger.warning("Invalid max_iterations=%r; using %d", value, DEFAULT_MAX_ITERATIONS)
            max_iterations = DEFAULT_MAX_ITERATIONS
        if max_iterations < 1:
            logger.warning("max_iterations must be positive, got %d; using 1", max_iterations)
            max_iterations = 1
        return cls(max_iterations_per_template=max_iterations)


def normalize_window(range_start: Any, range_end: Any) -> tuple[datetime, datetime]:
    """Validate and normalize query window bounds.

    Raises:
        InvalidWindowError: If a bound is not an instant or start is after end
    """
    try:
        start = coerce_instant(range_start)
        end = coerce_instant(range_end)
    except ValueError as e:
        raise InvalidWindowError(f"Invalid window bound: {e}") from e

    if start > end:
        raise InvalidWindowError(f"Window start {start.isoformat()} is after end {end.isoformat()}")
    return start, end


def parse_template(record: TemplateLike) -> EventTemplate:
    """Coerce a stored record into a template the engine can expand.

    Raises:
        TemplateValidationError: If fields are missing or invalid, or the
            event ends before it starts
    """
    if isinstance(record, EventTemplate):
        template = record
    elif isinstance(record, Mapping):
        try:
            template = EventTemplate.model_validate(record)
        except ValidationError as e:
            raise TemplateValidationError(
                f"event {record.get('id', '<no-id>')!r}: {e.error_count()} validation error(s)"
            ) from e
    else:
        raise TemplateValidationError(f"unsupported event record type {type(record).__name__}")

    if template.end < template.start:
        raise TemplateValidationError(
            f"event {template.id!r} ends at {template.end.isoformat()} "
            f"before it starts at {template.start.isoformat()}"
        )
    return template


def coerce_template(record: TemplateLike) -> Optional[EventTemplate]:
    """Return a usable template, or None when the record is malformed.

    A single bad record must not blank the calendar, so validation failures
    are logged and the record is dropped.
    """
    try:
        return parse_template(record)
    except TemplateValidationError as e:
        logger.warning("Skipping malformed event: %s", e)
        return None


def expand_template(
    template: EventTemplate,
    range_start: datetime,
    range_end: datetime,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Iterator[EventTemplate]:
    """Yield the occurrences of one template that overlap the window.

    Non-repeating templates are yielded unchanged. Repeating templates yield
    copies with an occurrence id and shifted start/end; every copy keeps the
    template's duration.
    """
    # Occurrences only move forward from the anchor.
    if template.start > range_end:
        return

    if not template.is_recurring:
        if intervals_overlap(template.start, template.end, range_start, range_end):
            yield template
        return

    anchor = template.start
    recurrence = template.recurrence
    duration = template.duration
    recurrence_ends = template.recurrence_ends
    excluded_days = {exdate.date() for exdate in template.exdates}

    # Jump close to the window using the calendar delta, then back off one
    # period so the loop re-validates the boundary occurrence. Measured from
    # range_start - duration so long events that started earlier still overlap.
    index = 0
    earliest_overlapping_start = range_start - duration
    if anchor < earliest_overlapping_start:
        index = max(whole_periods_between(anchor, earliest_overlapping_start, recurrence) - 1, 0)
    cursor = step(anchor, recurrence, index)

    iterations = 0
    while cursor < range_end:
        if iterations >= max_iterations:
            logger.debug(
                "Expansion of %s stopped at %d iterations (cursor %s)",
                template.id,
                max_iterations,
                cursor.isoformat(),
            )
            break
        iterations += 1

        if recurrence_ends is not None and cursor > recurrence_ends:
            break

        instance_end = cursor + duration
        if (
            intervals_overlap(cursor, instance_end, range_start, range_end)
            and cursor >= anchor
            and cursor.date() not in excluded_days
        ):
            yield template.model_copy(
                update={
                    "id": make_instance_id(template.id, cursor),
                    "start": cursor,
                    "end": instance_end,
                },
                deep=True,
            )

        index += 1
        try:
            cursor = step(anchor, recurrence, index)
        except OverflowError:
            break


def iter_instances(
    templates: Iterable[TemplateLike],
    range_start: Any,
    range_end: Any,
    config: Optional[ExpanderConfig] = None,
) -> Iterator[EventTemplate]:
    """Lazily expand all templates over ``[range_start, range_end]``.

    Raises:
        InvalidWindowError: If the window is malformed
    """
    start, end = normalize_window(range_start, range_end)
    max_iterations = (config or ExpanderConfig()).max_iterations_per_template
    return _iter_templates(templates, start, end, max_iterations)


def _iter_templates(
    templates: Iterable[TemplateLike],
    range_start: datetime,
    range_end: datetime,
    max_iterations: int,
) -> Iterator[EventTemplate]:
    for record in templates:
        template = coerce_template(record)
        if template is None:
            continue
        yield from expand_template(template, range_start, range_end, max_iterations)


def expand(
    templates: Iterable[TemplateLike],
    range_start: Any,
    range_end: Any,
    config: Optional[ExpanderConfig] = None,
) -> list[EventTemplate]:
    """Expand templates into the occurrences overlapping a window.

    Args:
        templates: Non-deleted event templates (models or raw mappings)
        range_start: Window start
        range_end: Window end, not before range_start
        config: Optional expansion limits

    Returns:
        Flat list of occurrences in no particular order

    Raises:
        InvalidWindowError: If the window is malformed
    """
    instances = list(iter_instances(templates, range_start, range_end, config))
    logger.debug(
        "Expanded window %s - %s into %d event(s)",
        range_start,
        range_end,
        len(instances),
    )
    return instances
