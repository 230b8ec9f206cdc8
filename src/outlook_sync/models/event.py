"""Calendar event value objects."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from outlook_sync.models.enums import EventColor, EventStatus, RsvpResponse


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CalendarEvent(BaseModel):
    """One event occurrence on either side of a binding.

    A copy carries ``original_event_id`` (external id of the source event) and
    ``source_calendar_binding_id`` (the binding that produced it). Both are
    ``None`` for events that were not created by a sync.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    external_id: str = ""
    calendar_id: Optional[str] = None

    subject: str = ""
    body: Optional[str] = None
    start: datetime
    end: datetime
    location: Optional[str] = None
    organizer: Optional[str] = None
    attendees: Tuple[str, ...] = ()
    conference_link: Optional[str] = None
    categories: Optional[str] = None

    is_all_day: bool = False
    is_recurring: bool = False
    color: EventColor = EventColor.NONE
    status: EventStatus = EventStatus.BUSY
    rsvp_status: RsvpResponse = RsvpResponse.NONE
    is_private: bool = False
    has_attachments: bool = False
    reminder_minutes: Optional[int] = Field(default=None, ge=0)

    original_event_id: Optional[str] = None
    source_calendar_binding_id: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return _to_utc(value)

    @property
    def is_copy(self) -> bool:
        """Whether this event was created by a binding on behalf of another event."""
        return bool(self.original_event_id and self.original_event_id.strip())


class EventAttachment(BaseModel):
    """File attached to an event."""

    model_config = ConfigDict(frozen=True)

    name: str
    content_type: str = "application/octet-stream"
    content_bytes: bytes = b""


class SyncWindow(BaseModel):
    """Time range of events considered by one sync run."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "SyncWindow":
        if self.end <= self.start:
            raise ValueError("Sync window end must be after its start")
        return self

    @field_validator("start", "end")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return _to_utc(value)

    @classmethod
    def forward(
        cls,
        days_forward: int,
        lookback_days: int = 0,
        now: Optional[datetime] = None,
    ) -> "SyncWindow":
        """Window from midnight UTC today (minus lookback) to ``days_forward`` days later."""
        now = _to_utc(now or datetime.now(timezone.utc))
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start = midnight - timedelta(days=lookback_days)
        return cls(start=start, end=midnight + timedelta(days=days_forward))

    def overlaps(self, event: CalendarEvent) -> bool:
        """Whether the event overlaps this window."""
        return event.start < self.end and event.end > self.start
