"""Per-binding sync configuration."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from outlook_sync.models.enums import EventStatus, ReminderHandling, TitleHandling
from outlook_sync.models.exclusion import (
    ColorExclusionRule,
    RsvpExclusionRule,
    StatusExclusionRule,
)


class CalendarBindingConfiguration(BaseModel):
    """Content-transformation and exclusion settings owned by a binding.

    Immutable: use ``model_copy(update=...)`` to derive a changed configuration
    and hand it to ``CalendarBinding.update_configuration``.
    """

    model_config = ConfigDict(frozen=True)

    title_handling: TitleHandling = TitleHandling.CLONE
    custom_title: Optional[str] = None
    copy_description: bool = True
    copy_participants: bool = True
    copy_location: bool = True
    copy_conference_link: bool = True
    target_category: Optional[str] = None
    target_status: Optional[EventStatus] = None
    copy_attachments: bool = False
    reminder_handling: ReminderHandling = ReminderHandling.COPY
    custom_reminder_minutes: int = Field(default=15, ge=0)
    mark_as_private: bool = False
    custom_tag: Optional[str] = None
    custom_tag_in_title: bool = True

    color_exclusion: ColorExclusionRule = Field(default_factory=ColorExclusionRule.none)
    rsvp_exclusion: RsvpExclusionRule = Field(default_factory=RsvpExclusionRule.none)
    status_exclusion: StatusExclusionRule = Field(default_factory=StatusExclusionRule.none)

    sync_days_forward: int = Field(default=30, ge=1)

    @classmethod
    def default(cls) -> "CalendarBindingConfiguration":
        return cls()

    @classmethod
    def privacy_focused(cls) -> "CalendarBindingConfiguration":
        """Mirror time blocks only: hidden title, nothing else copied."""
        return cls(
            title_handling=TitleHandling.HIDE,
            custom_title="Busy",
            copy_description=False,
            copy_participants=False,
            copy_location=False,
            copy_conference_link=False,
            copy_attachments=False,
            mark_as_private=True,
            target_status=EventStatus.BUSY,
        )
