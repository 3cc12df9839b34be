"""Reminder scanning over a short forward window.

Each poll expands ``[now, now + lookahead]``, widened to the longest reminder
offset in use, finds occurrences whose reminder time has arrived, and
reports each (occurrence, offset) pair once. Because occurrence ids are stable
across expansions, the announced set can be keyed by id and survives
restarts when the store is file-backed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from .config_manager import get_config_value
from .expander import ExpanderConfig, expand
from .models import EventTemplate, coerce_instant
from .notified_store import NotifiedStore
from .window_policy import active_templates

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_HOURS = 24
DEFAULT_LOOKAHEAD = timedelta(hours=DEFAULT_LOOKAHEAD_HOURS)

# Events without configured reminders are announced when they start.
DEFAULT_REMINDER_MINUTES = (0,)


@dataclass(frozen=True)
class Reminder:
    """A reminder that has come due for one occurrence."""

    event: EventTemplate
    minutes_before: int

    @property
    def key(self) -> str:
        return reminder_key(self.event.id, self.minutes_before)

    @property
    def trigger_at(self) -> datetime:
        return self.event.start - timedelta(minutes=self.minutes_before)


def reminder_key(event_id: str, minutes_before: int) -> str:
    return f"{event_id}:{minutes_before}"


def due_reminders(
    events: Iterable[EventTemplate], now: datetime
) -> list[Reminder]:
    """Reminders whose trigger time has passed but whose event has not started."""
    due = []
    for event in events:
        offsets = event.reminder_minutes or DEFAULT_REMINDER_MINUTES
        for minutes in sorted(set(offsets)):
            if minutes < 0:
                continue
            reminder = Reminder(event, minutes)
            if reminder.trigger_at <= now <= event.start:
                due.append(reminder)
    return due


class NotificationScanner:
    """Finds reminders that are due and have not been announced yet."""

    def __init__(
        self,
        store: Optional[NotifiedStore] = None,
        lookahead: timedelta = DEFAULT_LOOKAHEAD,
        config: Optional[ExpanderConfig] = None,
    ):
        self.store = store if store is not None else NotifiedStore()
        self.lookahead = lookahead
        self.config = config

    @classmethod
    def from_settings(cls, settings: Any) -> NotificationScanner:
        """Build a scanner from a dict or settings object."""
        value = get_config_value(settings, "notify_lookahead_hours", DEFAULT_LOOKAHEAD_HOURS)
        try:
            hours = int(value)
        except (TypeError, ValueError):
            logger.warning(
                "Invalid notify_lookahead_hours=%r; using %d", value, DEFAULT_LOOKAHEAD_HOURS
            )
            hours = DEFAULT_LOOKAHEAD_HOURS
        if hours < 1:
            logger.warning("notify_lookahead_hours must be positive, got %d; using 1", hours)
            hours = 1
        path = get_config_value(settings, "notified_store_path")
        return cls(
            store=NotifiedStore(path),
            lookahead=timedelta(hours=hours),
            config=ExpanderConfig.from_settings(settings),
        )

    def horizon(self, templates: Iterable[EventTemplate]) -> timedelta:
        """Forward span to expand: the lookahead, widened to the longest reminder offset."""
        longest = max(
            (m for t in templates for m in (t.reminder_minutes or DEFAULT_REMINDER_MINUTES)),
            default=0,
        )
        return max(self.lookahead, timedelta(minutes=longest))

    def pending(self, templates: Iterable[Any], now: Any) -> list[Reminder]:
        """Due reminders not yet announced, without recording them."""
        moment = coerce_instant(now)
        usable = active_templates(templates)
        events = expand(usable, moment, moment + self.horizon(usable), self.config)
        announced = self.store.active_keys(moment)
        return [r for r in due_reminders(events, moment) if r.key not in announced]

    def scan(self, templates: Iterable[Any], now: Any) -> list[Reminder]:
        """Return newly due reminders and record them as announced.

        Args:
            templates: Stored event records
            now: Current time, passed explicitly

        Returns:
            Reminders ordered by trigger time
        """
        moment = coerce_instant(now)
        reminders = sorted(self.pending(templates, moment), key=lambda r: (r.trigger_at, r.key))
        if reminders:
            # Keep keys until their event starts so long offsets are not re-announced.
            until = max(r.event.start for r in reminders)
            self.store.add_many([r.key for r in reminders], moment, until=until)
            logger.info("Announcing %d reminder(s) at %s", len(reminders), moment.isoformat())
        return reminders
