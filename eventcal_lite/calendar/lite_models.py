"""Data models for stored event templates and their computed occurrences."""

from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from eventcal_lite.core.datetime_utils import as_naive_utc


class RecurrenceFrequency(str, Enum):
    """Supported recurrence frequencies for event templates."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class WeekDay(IntEnum):
    """Weekday numbering used by recurrence fields (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


def weekday_of(dt: datetime) -> WeekDay:
    """Return the Sunday-based weekday number (0=Sunday .. 6=Saturday) of ``dt``."""
    return WeekDay(dt.isoweekday() % 7)


class EventTemplate(BaseModel):
    """Persisted calendar event, optionally carrying recurrence parameters."""

    # Core properties
    id: str = Field(..., description="Event ID")
    user_id: str = Field(..., description="Owning user ID")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    color: Optional[str] = Field(default=None, description="Display color")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    # Time information
    start_date: datetime = Field(..., description="Event start")
    end_date: datetime = Field(..., description="Event end")

    # Recurrence
    recurrence_frequency: RecurrenceFrequency = Field(
        default=RecurrenceFrequency.NONE, description="Recurrence frequency"
    )
    recurrence_interval: Optional[int] = Field(
        default=None, description="Step in units of the frequency (defaults to 1)"
    )
    recurrence_days: Optional[list[int]] = Field(
        default=None, description="Weekdays for WEEKLY rules (0=Sunday)"
    )
    recurrence_day_of_month: Optional[int] = Field(
        default=None, description="Day of month for MONTHLY rules"
    )
    recurrence_week_of_month: Optional[int] = Field(
        default=None, description="Week ordinal for MONTHLY Nth-weekday rules"
    )
    recurrence_day_of_week: Optional[int] = Field(
        default=None, description="Weekday for MONTHLY Nth-weekday rules (0=Sunday)"
    )
    recurrence_end_date: Optional[datetime] = Field(
        default=None, description="No occurrence starts after this instant"
    )
    recurrence_count: Optional[int] = Field(
        default=None, description="Maximum occurrences counted from start_date"
    )

    # Metadata
    created_at: Optional[datetime] = Field(default=None, description="Creation time")
    updated_at: Optional[datetime] = Field(default=None, description="Last modification time")
    deleted_at: Optional[datetime] = Field(default=None, description="Soft-delete time")

    model_config = ConfigDict(use_enum_values=True)

    @field_validator(
        "start_date",
        "end_date",
        "recurrence_end_date",
        "created_at",
        "updated_at",
        "deleted_at",
    )
    @classmethod
    def _to_implicit_zone(cls, value: Optional[datetime]) -> Optional[datetime]:
        # all stored instants are naive; offsets are folded into UTC
        return as_naive_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_date_order(self) -> "EventTemplate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def is_recurring(self) -> bool:
        """Check if the template carries a recurrence rule."""
        return self.recurrence_frequency != RecurrenceFrequency.NONE

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def duration(self) -> timedelta:
        """Length of every occurrence produced from this template."""
        return self.end_date - self.start_date

    @field_serializer(
        "start_date",
        "end_date",
        "recurrence_end_date",
        "created_at",
        "updated_at",
        "deleted_at",
        when_used="json-unless-none",
    )
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class Occurrence(EventTemplate):
    """One concrete instance of a template inside a query window. Never persisted."""

    template_id: str = Field(..., description="ID of the template this occurrence came from")
    is_expanded_instance: bool = Field(
        default=False, description="True if generated by recurrence expansion"
    )

    @classmethod
    def from_template(
        cls,
        template: EventTemplate,
        start: Optional[datetime] = None,
        *,
        expanded: bool = False,
    ) -> "Occurrence":
        """Copy ``template`` into an occurrence starting at ``start``.

        The template's duration is preserved. When ``start`` is omitted the
        template's own dates are used unchanged.
        """
        data = template.model_dump()
        if start is not None:
            data["start_date"] = start
            data["end_date"] = start + template.duration
        data["template_id"] = template.id
        data["is_expanded_instance"] = expanded
        return cls.model_validate(data)
