"""Data models for family calendar events and calendars."""

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from dateutil import parser as date_parser
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_TITLE = "(Sin título)"
DEFAULT_CALENDAR_ID = "default"


def coerce_instant(value: Any) -> datetime:
    """Convert a stored instant into a timezone-naive datetime.

    Accepts datetimes, dates (taken as midnight) and ISO-8601 strings.
    Aware datetimes are converted to UTC before the offset is dropped so the
    engine only ever compares naive local instants.

    Raises:
        ValueError: If the value cannot be interpreted as an instant
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    elif isinstance(value, str):
        if not value.strip():
            raise ValueError("empty datetime string")
        dt = date_parser.isoparse(value.strip())
    else:
        raise ValueError(f"cannot interpret {type(value).__name__} as an instant")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


class RecurrenceType(str, Enum):
    """Supported repeat frequencies."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ViewType(str, Enum):
    """Calendar display modes that select an expansion window."""

    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    AGENDA = "agenda"
    SEARCH = "search"


class _CalendarModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CalendarConfig(_CalendarModel):
    """A calendar that events are assigned to."""

    id: str = Field(..., description="Calendar ID")
    label: str = Field(default="", description="Display name")
    color: str = Field(default="#000000", description="Default event color")
    visible: bool = Field(default=True, description="Shown in the current view")
    is_remote: bool = Field(default=False, description="Synced from a remote provider")


class SearchCriteria(_CalendarModel):
    """Full-text search request with optional date and calendar filters."""

    query: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    calendar_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Search mode is on whenever the query has non-blank text."""
        return bool(self.query.strip())


class EventTemplate(_CalendarModel):
    """Stored event, possibly repeating.

    Expanded occurrences use the same model: an instance is a copy of its
    template with a synthesized id and shifted start/end. Fields not declared
    here are kept and carried into every instance unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    # Core properties
    id: str = Field(..., min_length=1, description="Event ID")
    title: str = Field(default=DEFAULT_TITLE, description="Event title")
    description: Optional[str] = None
    location: Optional[str] = None
    color: str = Field(default="#000000", description="Display color")
    calendar_id: str = Field(default=DEFAULT_CALENDAR_ID, description="Owning calendar")

    # Time information
    start: datetime = Field(..., description="Start of the first occurrence")
    end: datetime = Field(..., description="End of the first occurrence")

    # Recurrence
    recurrence: RecurrenceType = Field(default=RecurrenceType.NONE)
    recurrence_ends: Optional[datetime] = Field(
        default=None, description="No occurrence may start after this instant"
    )
    exdates: list[datetime] = Field(
        default_factory=list, description="Days on which an occurrence is suppressed"
    )

    # Payload
    reminder_minutes: list[int] = Field(default_factory=list)
    is_birthday: bool = False
    is_task: bool = False
    is_completed: bool = False
    is_important: bool = False
    category: Optional[str] = None
    created_by_bot: bool = False
    is_remote: bool = False
    remote_id: Optional[str] = None
    account_id: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_instant(cls, value: Any) -> datetime:
        return coerce_instant(value)

    @field_validator("recurrence_ends", "deleted_at", mode="before")
    @classmethod
    def _parse_optional_instant(cls, value: Any) -> Optional[datetime]:
        if value is None or value == "":
            return None
        return coerce_instant(value)

    @field_validator("exdates", mode="before")
    @classmethod
    def _parse_exdates(cls, value: Any) -> list[datetime]:
        if value is None:
            return []
        return [coerce_instant(v) for v in value]

    @field_validator("recurrence", mode="before")
    @classmethod
    def _default_recurrence(cls, value: Any) -> Any:
        if value is None or value == "":
            return RecurrenceType.NONE
        return value

    @field_validator(
        "title",
        "color",
        "calendar_id",
        "is_birthday",
        "is_task",
        "is_completed",
        "is_important",
        "created_by_bot",
        "is_remote",
        mode="before",
    )
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Stored rows carry nulls for payload columns that were never set.
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("reminder_minutes", mode="before")
    @classmethod
    def _default_reminders(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, (int, str)):
            return [value]
        return value

    @property
    def is_recurring(self) -> bool:
        return self.recurrence != RecurrenceType.NONE

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()

    @field_serializer("recurrence_ends", "deleted_at", when_used="unless-none")
    def serialize_optional_datetime(self, dt: datetime) -> str:
        return dt.isoformat()

    @field_serializer("exdates")
    def serialize_exdates(self, values: list[datetime]) -> list[str]:
        return [dt.isoformat() for dt in values]
