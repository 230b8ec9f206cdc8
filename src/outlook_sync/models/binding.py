"""CalendarBinding aggregate."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.utils.errors import ConfigurationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalendarBinding(BaseModel):
    """Unidirectional sync relationship between a source and a target calendar.

    Snapshots are immutable. State transitions (enable, rename, recording a
    sync outcome, ...) return a new snapshot which the caller persists through
    the binding repository.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(..., min_length=1)
    source_credential_id: str
    source_calendar_external_id: str = Field(..., min_length=1)
    target_credential_id: str
    target_calendar_external_id: str = Field(..., min_length=1)
    is_enabled: bool = True
    configuration: CalendarBindingConfiguration = Field(
        default_factory=CalendarBindingConfiguration.default
    )

    last_sync_at: Optional[datetime] = None
    last_sync_event_count: int = Field(default=0, ge=0)
    last_sync_error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_source_differs_from_target(self) -> "CalendarBinding":
        if (
            self.source_credential_id == self.target_credential_id
            and self.source_calendar_external_id == self.target_calendar_external_id
        ):
            raise ConfigurationError("Source and target calendar of a binding must differ")
        return self

    def _touch(self, **changes) -> "CalendarBinding":
        changes.setdefault("updated_at", _utcnow())
        return self.model_copy(update=changes)

    def enable(self) -> "CalendarBinding":
        return self._touch(is_enabled=True)

    def disable(self) -> "CalendarBinding":
        return self._touch(is_enabled=False)

    def rename(self, new_name: str) -> "CalendarBinding":
        if not new_name or not new_name.strip():
            raise ConfigurationError("Binding name must not be blank")
        return self._touch(name=new_name.strip())

    def update_configuration(
        self, configuration: CalendarBindingConfiguration
    ) -> "CalendarBinding":
        if configuration is None:
            raise ConfigurationError("Binding configuration is required")
        return self._touch(configuration=configuration)

    def record_successful_sync(
        self, event_count: int, at: Optional[datetime] = None
    ) -> "CalendarBinding":
        if event_count < 0:
            raise ValueError("event_count must not be negative")
        at = at or _utcnow()
        return self._touch(
            last_sync_at=at,
            last_sync_event_count=event_count,
            last_sync_error=None,
            updated_at=at,
        )

    def record_failed_sync(
        self, error_message: str, at: Optional[datetime] = None
    ) -> "CalendarBinding":
        if not error_message or not error_message.strip():
            raise ValueError("error_message must not be blank")
        at = at or _utcnow()
        return self._touch(last_sync_at=at, last_sync_error=error_message, updated_at=at)

    def same_pair(
        self,
        source_credential_id: str,
        source_calendar_external_id: str,
        target_credential_id: str,
        target_calendar_external_id: str,
    ) -> bool:
        """Whether this binding connects exactly the given source and target."""
        return (
            self.source_credential_id == source_credential_id
            and self.source_calendar_external_id == source_calendar_external_id
            and self.target_credential_id == target_credential_id
            and self.target_calendar_external_id == target_calendar_external_id
        )

    def is_valid_binding(
        self,
        source_credential_id: str,
        source_calendar_external_id: str,
        target_credential_id: str,
        target_calendar_external_id: str,
    ) -> bool:
        """Whether a new binding with these endpoints may coexist with this one."""
        if (
            source_credential_id == target_credential_id
            and source_calendar_external_id == target_calendar_external_id
        ):
            return False
        return not self.same_pair(
            source_credential_id,
            source_calendar_external_id,
            target_credential_id,
            target_calendar_external_id,
        )

    def is_reverse_of(self, other: "CalendarBinding") -> bool:
        return (
            self.source_credential_id == other.target_credential_id
            and self.source_calendar_external_id == other.target_calendar_external_id
            and self.target_credential_id == other.source_credential_id
            and self.target_calendar_external_id == other.source_calendar_external_id
        )


class UnloadableBinding(BaseModel):
    """Enabled binding whose stored configuration could not be parsed."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    error_message: str
