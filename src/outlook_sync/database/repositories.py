"""Database repositories for the Outlook sync worker.

Repositories translate between ORM rows and the immutable domain snapshots.
They never commit; that is the unit of work's job.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from outlook_sync.database.models import CalendarBindingModel, CredentialModel
from outlook_sync.models.binding import CalendarBinding, UnloadableBinding
from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.models.enums import EventStatus, ReminderHandling, TitleHandling
from outlook_sync.models.exclusion import (
    ColorExclusionRule,
    RsvpExclusionRule,
    StatusExclusionRule,
)
from outlook_sync.utils.errors import BindingNotFoundError, ConfigurationError

logger = logging.getLogger(__name__)


def _parse_enum(enum_type, value: Optional[str], column: str):
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        raise ConfigurationError(f"Invalid {column} value '{value}'")


def binding_to_domain(row: CalendarBindingModel) -> CalendarBinding:
    """Build a CalendarBinding snapshot from its row.

    Raises:
        ConfigurationError: If an enum column or exclusion rule cannot be parsed
    """
    configuration = CalendarBindingConfiguration(
        title_handling=_parse_enum(TitleHandling, row.title_handling, "title_handling"),
        custom_title=row.custom_title,
        copy_description=row.copy_description,
        copy_participants=row.copy_participants,
        copy_location=row.copy_location,
        copy_conference_link=row.copy_conference_link,
        target_category=row.target_category,
        target_status=_parse_enum(EventStatus, row.target_status, "target_status"),
        copy_attachments=row.copy_attachments,
        reminder_handling=_parse_enum(ReminderHandling, row.reminder_handling, "reminder_handling"),
        custom_reminder_minutes=row.custom_reminder_minutes,
        mark_as_private=row.mark_as_private,
        custom_tag=row.custom_tag,
        custom_tag_in_title=row.custom_tag_in_title,
        color_exclusion=ColorExclusionRule.from_serialized_string(row.excluded_colors),
        rsvp_exclusion=RsvpExclusionRule.from_serialized_string(row.excluded_rsvp_responses),
        status_exclusion=StatusExclusionRule.from_serialized_string(row.excluded_statuses),
        sync_days_forward=row.sync_days_forward,
    )
    return CalendarBinding(
        id=row.id,
        name=row.name,
        source_credential_id=row.source_credential_id,
        source_calendar_external_id=row.source_calendar_external_id,
        target_credential_id=row.target_credential_id,
        target_calendar_external_id=row.target_calendar_external_id,
        is_enabled=row.is_enabled,
        configuration=configuration,
        last_sync_at=row.last_sync_at,
        last_sync_event_count=row.last_sync_event_count,
        last_sync_error=row.last_sync_error,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def apply_binding_to_row(binding: CalendarBinding, row: CalendarBindingModel) -> CalendarBindingModel:
    """Copy every field of the snapshot onto the row."""
    configuration = binding.configuration
    row.id = binding.id
    row.name = binding.name
    row.source_credential_id = binding.source_credential_id
    row.source_calendar_external_id = binding.source_calendar_external_id
    row.target_credential_id = binding.target_credential_id
    row.target_calendar_external_id = binding.target_calendar_external_id
    row.is_enabled = binding.is_enabled

    row.title_handling = configuration.title_handling.value
    row.custom_title = configuration.custom_title
    row.copy_description = configuration.copy_description
    row.copy_participants = configuration.copy_participants
    row.copy_location = configuration.copy_location
    row.copy_conference_link = configuration.copy_conference_link
    row.target_category = configuration.target_category
    row.target_status = configuration.target_status.value if configuration.target_status else None
    row.copy_attachments = configuration.copy_attachments
    row.reminder_handling = configuration.reminder_handling.value
    row.custom_reminder_minutes = configuration.custom_reminder_minutes
    row.mark_as_private = configuration.mark_as_private
    row.custom_tag = configuration.custom_tag
    row.custom_tag_in_title = configuration.custom_tag_in_title
    row.sync_days_forward = configuration.sync_days_forward
    row.excluded_colors = configuration.color_exclusion.to_serialized_string() or None
    row.excluded_rsvp_responses = configuration.rsvp_exclusion.to_serialized_string() or None
    row.excluded_statuses = configuration.status_exclusion.to_serialized_string() or None

    row.last_sync_at = binding.last_sync_at
    row.last_sync_event_count = binding.last_sync_event_count
    row.last_sync_error = binding.last_sync_error
    row.created_at = binding.created_at
    row.updated_at = binding.updated_at
    return row


class CalendarBindingRepository:
    """Repository for calendar binding operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self, binding_id: str) -> Optional[CalendarBindingModel]:
        result = await self.session.execute(
            select(CalendarBindingModel).where(CalendarBindingModel.id == binding_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, binding_id: str) -> Optional[CalendarBinding]:
        """Get binding by ID."""
        row = await self._get_row(binding_id)
        return binding_to_domain(row) if row is not None else None

    async def get_all(self) -> List[CalendarBinding]:
        """Get all bindings ordered by creation time."""
        result = await self.session.execute(
            select(CalendarBindingModel).order_by(CalendarBindingModel.created_at)
        )
        return [binding_to_domain(row) for row in result.scalars().all()]

    async def get_enabled(self) -> List[Union[CalendarBinding, UnloadableBinding]]:
        """
        Get all enabled bindings (for scheduled sync).

        Rows whose configuration cannot be parsed come back as
        ``UnloadableBinding`` so the run reports them as failed without
        blocking the others.
        """
        result = await self.session.execute(
            select(CalendarBindingModel)
            .where(CalendarBindingModel.is_enabled == True)
            .order_by(CalendarBindingModel.created_at)
        )
        bindings = []
        for row in result.scalars().all():
            try:
                bindings.append(binding_to_domain(row))
            except ConfigurationError as e:
                logger.error(f"Cannot load calendar binding {row.id} ({row.name}): {e}")
                bindings.append(UnloadableBinding(id=row.id, name=row.name, error_message=str(e)))
        return bindings

    async def find_by_pair(
        self,
        source_credential_id: str,
        source_calendar_external_id: str,
        target_credential_id: str,
        target_calendar_external_id: str,
    ) -> Optional[CalendarBinding]:
        """Get the binding connecting exactly this source and target."""
        result = await self.session.execute(
            select(CalendarBindingModel)
            .where(CalendarBindingModel.source_credential_id == source_credential_id)
            .where(CalendarBindingModel.source_calendar_external_id == source_calendar_external_id)
            .where(CalendarBindingModel.target_credential_id == target_credential_id)
            .where(CalendarBindingModel.target_calendar_external_id == target_calendar_external_id)
        )
        row = result.scalar_one_or_none()
        return binding_to_domain(row) if row is not None else None

    async def exists_pair(
        self,
        source_credential_id: str,
        source_calendar_external_id: str,
        target_credential_id: str,
        target_calendar_external_id: str,
    ) -> bool:
        binding = await self.find_by_pair(
            source_credential_id,
            source_calendar_external_id,
            target_credential_id,
            target_calendar_external_id,
        )
        return binding is not None

    async def add(self, binding: CalendarBinding) -> CalendarBinding:
        """Stage a new binding."""
        row = apply_binding_to_row(binding, CalendarBindingModel())
        self.session.add(row)
        await self.session.flush()
        return binding

    async def update(self, binding: CalendarBinding) -> CalendarBinding:
        """Stage the snapshot over the stored row."""
        row = await self._get_row(binding.id)
        if row is None:
            raise BindingNotFoundError(binding.id)
        apply_binding_to_row(binding, row)
        await self.session.flush()
        return binding

    async def delete(self, binding_id: str) -> bool:
        """Delete a binding. Returns False if it did not exist."""
        row = await self._get_row(binding_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True


class CredentialRepository:
    """Repository for credential operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, credential_id: str) -> Optional[CredentialModel]:
        """Get credential by ID."""
        result = await self.session.execute(
            select(CredentialModel).where(CredentialModel.id == credential_id)
        )
        return result.scalar_one_or_none()

    async def update_tokens(
        self,
        credential_id: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: datetime,
    ) -> Optional[CredentialModel]:
        """
        Store refreshed OAuth tokens.

        Args:
            credential_id: Credential ID
            access_token: New access token
            refresh_token: New refresh token (keeps the old one when None)
            expires_at: Access token expiry

        Returns:
            Updated credential, or None if it does not exist
        """
        credential = await self.get_by_id(credential_id)
        if credential is None:
            return None
        credential.access_token = access_token
        if refresh_token:
            credential.refresh_token = refresh_token
        credential.token_expires_at = expires_at
        credential.is_invalid = False
        await self.session.flush()
        return credential

    async def mark_invalid(self, credential_id: str) -> None:
        """Flag a credential whose tokens were rejected."""
        credential = await self.get_by_id(credential_id)
        if credential is not None:
            credential.is_invalid = True
            await self.session.flush()
