"""Synthesized ids for expanded occurrences.

An occurrence id is ``{template_id}_{epoch_millis}``, where the millis are
those of the occurrence start. The id re-derives identically on every
expansion, and edit/delete paths reverse it to find the backing template and
the occurrence being acted on.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import NamedTuple, Optional

from .calendar_math import epoch_millis, from_epoch_millis
from .exceptions import InstanceIdError

_SEPARATOR = "_"
_MILLIS_RE = re.compile(r"-?\d+")


class InstanceRef(NamedTuple):
    """Parsed form of an event id."""

    template_id: str
    occurrence_start: Optional[datetime]

    @property
    def is_instance(self) -> bool:
        return self.occurrence_start is not None


def make_instance_id(template_id: str, start: datetime) -> str:
    return f"{template_id}{_SEPARATOR}{epoch_millis(start)}"


def parse_instance_id(event_id: str) -> InstanceRef:
    """Split an event id into template id and occurrence start.

    The split happens at the last underscore and only when what follows is an
    integer; any other id is returned as a plain template id with no
    occurrence.

    Raises:
        InstanceIdError: If event_id is empty or not a string
    """
    if not event_id or not isinstance(event_id, str):
        raise InstanceIdError("event id must be a non-empty string")

    head, sep, tail = event_id.rpartition(_SEPARATOR)
    if not sep or not head or not _MILLIS_RE.fullmatch(tail):
        return InstanceRef(event_id, None)

    try:
        occurrence_start = from_epoch_millis(int(tail))
    except OverflowError:
        return InstanceRef(event_id, None)
    return InstanceRef(head, occurrence_start)


def template_id_of(event_id: str) -> str:
    return parse_instance_id(event_id).template_id


def is_instance_id(event_id: str) -> bool:
    return parse_instance_id(event_id).is_instance
