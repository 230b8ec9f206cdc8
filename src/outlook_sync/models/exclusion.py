"""Exclusion rules that keep otherwise eligible source events out of a sync.

Each rule holds a set of enum values and matches an event whose attribute is
in that set. An empty rule never excludes anything. Rules are stored as
comma-joined value names; parsing trims tokens and ignores case, and an
unknown token raises ConfigurationError so a bad row fails when the binding
is loaded rather than halfway through a sync.
"""

from typing import Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from outlook_sync.models.enums import EventColor, EventStatus, RsvpResponse
from outlook_sync.models.event import CalendarEvent
from outlook_sync.utils.errors import ConfigurationError

E = TypeVar("E", EventColor, RsvpResponse, EventStatus)


def _normalize_token(token: str) -> str:
    return token.strip().replace("_", "").lower()


def parse_enum_list(enum_type: Type[E], serialized: Optional[str]) -> Tuple[E, ...]:
    """Parse a comma-joined list of enum names, dropping duplicates."""
    if serialized is None or not serialized.strip():
        return ()

    lookup = {_normalize_token(member.value): member for member in enum_type}
    values = []
    for token in serialized.split(","):
        if not token.strip():
            continue
        member = lookup.get(_normalize_token(token))
        if member is None:
            raise ConfigurationError(
                f"Invalid {enum_type.__name__} value '{token.strip()}' in exclusion rule"
            )
        if member not in values:
            values.append(member)
    return tuple(values)


def _dedupe(values) -> tuple:
    unique = []
    for value in values:
        if value not in unique:
            unique.append(value)
    return tuple(unique)


class ColorExclusionRule(BaseModel):
    """Excludes events by category colour."""

    model_config = ConfigDict(frozen=True)

    excluded_colors: Tuple[EventColor, ...] = ()

    @field_validator("excluded_colors")
    @classmethod
    def drop_duplicate_colors(cls, value):
        return _dedupe(value)

    @classmethod
    def none(cls) -> "ColorExclusionRule":
        return cls()

    @classmethod
    def exclude(cls, *colors: EventColor) -> "ColorExclusionRule":
        return cls(excluded_colors=colors)

    def is_excluded(self, event: CalendarEvent) -> bool:
        return event.color in self.excluded_colors

    def to_serialized_string(self) -> str:
        return ",".join(color.value for color in self.excluded_colors)

    @classmethod
    def from_serialized_string(cls, serialized: Optional[str]) -> "ColorExclusionRule":
        return cls(excluded_colors=parse_enum_list(EventColor, serialized))


class RsvpExclusionRule(BaseModel):
    """Excludes events by the owner's RSVP response."""

    model_config = ConfigDict(frozen=True)

    excluded_responses: Tuple[RsvpResponse, ...] = ()

    @field_validator("excluded_responses")
    @classmethod
    def drop_duplicate_responses(cls, value):
        return _dedupe(value)

    @classmethod
    def none(cls) -> "RsvpExclusionRule":
        return cls()

    @classmethod
    def exclude(cls, *responses: RsvpResponse) -> "RsvpExclusionRule":
        return cls(excluded_responses=responses)

    def is_excluded(self, event: CalendarEvent) -> bool:
        return event.rsvp_status in self.excluded_responses

    def to_serialized_string(self) -> str:
        return ",".join(response.value for response in self.excluded_responses)

    @classmethod
    def from_serialized_string(cls, serialized: Optional[str]) -> "RsvpExclusionRule":
        return cls(excluded_responses=parse_enum_list(RsvpResponse, serialized))


class StatusExclusionRule(BaseModel):
    """Excludes events by free/busy status."""

    model_config = ConfigDict(frozen=True)

    excluded_statuses: Tuple[EventStatus, ...] = ()

    @field_validator("excluded_statuses")
    @classmethod
    def drop_duplicate_statuses(cls, value):
        return _dedupe(value)

    @classmethod
    def none(cls) -> "StatusExclusionRule":
        return cls()

    @classmethod
    def exclude(cls, *statuses: EventStatus) -> "StatusExclusionRule":
        return cls(excluded_statuses=statuses)

    def is_excluded(self, event: CalendarEvent) -> bool:
        return event.status in self.excluded_statuses

    def to_serialized_string(self) -> str:
        return ",".join(status.value for status in self.excluded_statuses)

    @classmethod
    def from_serialized_string(cls, serialized: Optional[str]) -> "StatusExclusionRule":
        return cls(excluded_statuses=parse_enum_list(EventStatus, serialized))
