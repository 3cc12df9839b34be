"""familycal - recurring event expansion for a family calendar.

Expands stored event templates (optionally repeating daily, weekly, monthly
or yearly, with exdates and an end date) into the dated occurrences that
fall inside a query window, and provides the window, search, edit and
reminder helpers built on top of it.
"""

__version__ = "1.0.0"

from .calendar_math import clamping_notice
from .edits import DeleteMode, apply_delete, find_template
from .exceptions import FamilyCalError, InstanceIdError, InvalidWindowError, TemplateValidationError
from .expander import ExpanderConfig, expand, expand_template, iter_instances
from .expansion_cache import ExpansionCache
from .instance_ids import InstanceRef, make_instance_id, parse_instance_id, template_id_of
from .models import CalendarConfig, EventTemplate, RecurrenceType, SearchCriteria, ViewType
from .notifications import NotificationScanner, Reminder
from .notified_store import NotifiedStore
from .window_policy import displayed_events, select_window

__all__ = [
    "CalendarConfig",
    "DeleteMode",
    "EventTemplate",
    "ExpanderConfig",
    "ExpansionCache",
    "FamilyCalError",
    "InstanceIdError",
    "InstanceRef",
    "InvalidWindowError",
    "NotificationScanner",
    "NotifiedStore",
    "RecurrenceType",
    "Reminder",
    "SearchCriteria",
    "TemplateValidationError",
    "ViewType",
    "apply_delete",
    "clamping_notice",
    "displayed_events",
    "expand",
    "expand_template",
    "find_template",
    "iter_instances",
    "make_instance_id",
    "parse_instance_id",
    "select_window",
    "template_id_of",
]
