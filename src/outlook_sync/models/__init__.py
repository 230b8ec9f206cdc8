"""Domain models."""

from outlook_sync.models.binding import CalendarBinding, UnloadableBinding
from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.models.enums import (
    EventColor,
    EventStatus,
    ReminderHandling,
    RsvpResponse,
    TitleHandling,
)
from outlook_sync.models.event import CalendarEvent, EventAttachment, SyncWindow
from outlook_sync.models.exclusion import (
    ColorExclusionRule,
    RsvpExclusionRule,
    StatusExclusionRule,
)
from outlook_sync.models.sync_result import (
    BindingSyncOutcome,
    CalendarsSyncResult,
    ReconcileState,
)

__all__ = [
    "CalendarBinding",
    "UnloadableBinding",
    "CalendarBindingConfiguration",
    "EventColor",
    "EventStatus",
    "ReminderHandling",
    "RsvpResponse",
    "TitleHandling",
    "CalendarEvent",
    "EventAttachment",
    "SyncWindow",
    "ColorExclusionRule",
    "RsvpExclusionRule",
    "StatusExclusionRule",
    "BindingSyncOutcome",
    "CalendarsSyncResult",
    "ReconcileState",
]
