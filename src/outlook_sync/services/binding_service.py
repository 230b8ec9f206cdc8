"""Administrative operations on calendar bindings."""

import logging
from typing import List, Optional

from outlook_sync.config import Settings, get_settings
from outlook_sync.models.binding import CalendarBinding
from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.utils.errors import BindingNotFoundError, DuplicateBindingError

logger = logging.getLogger(__name__)


class CalendarBindingService:
    """Service for creating and changing calendar bindings.

    Every mutating call goes through one aggregate transition and is committed
    with a single ``save_changes`` on the unit of work.
    """

    def __init__(self, repository, unit_of_work, settings: Optional[Settings] = None):
        self.repository = repository
        self.unit_of_work = unit_of_work
        self.settings = settings or get_settings()

    async def create_binding(
        self,
        name: str,
        source_credential_id: str,
        source_calendar_external_id: str,
        target_credential_id: str,
        target_calendar_external_id: str,
        configuration: Optional[CalendarBindingConfiguration] = None,
        is_enabled: bool = True,
    ) -> CalendarBinding:
        """
        Create a new binding.

        Args:
            name: Display name
            source_credential_id: Credential of the source calendar
            source_calendar_external_id: Provider id of the source calendar
            target_credential_id: Credential of the target calendar
            target_calendar_external_id: Provider id of the target calendar
            configuration: Sync configuration (defaults use ``default_sync_days_forward``)
            is_enabled: Whether the binding takes part in scheduled syncs

        Returns:
            The stored binding

        Raises:
            ConfigurationError: If source and target are the same calendar
            DuplicateBindingError: If the binding already exists, or is the
                reverse of an existing one while reverse bindings are disabled
        """
        if configuration is None:
            configuration = CalendarBindingConfiguration(
                sync_days_forward=self.settings.default_sync_days_forward
            )

        candidate = CalendarBinding(
            name=name.strip() if name else name,
            source_credential_id=source_credential_id,
            source_calendar_external_id=source_calendar_external_id,
            target_credential_id=target_credential_id,
            target_calendar_external_id=target_calendar_external_id,
            is_enabled=is_enabled,
            configuration=configuration,
        )

        for existing in await self.repository.get_all():
            if not existing.is_valid_binding(
                source_credential_id,
                source_calendar_external_id,
                target_credential_id,
                target_calendar_external_id,
            ):
                raise DuplicateBindingError(
                    f"A binding between these calendars already exists ({existing.name})"
                )
            if not self.settings.allow_reverse_bindings and candidate.is_reverse_of(existing):
                raise DuplicateBindingError(
                    f"Binding would mirror {existing.name} back to its source"
                )

        await self.repository.add(candidate)
        await self.unit_of_work.save_changes()
        logger.info(f"Created calendar binding {candidate.name} ({candidate.id})")
        return candidate

    async def get_binding(self, binding_id: str) -> CalendarBinding:
        binding = await self.repository.get_by_id(binding_id)
        if binding is None:
            raise BindingNotFoundError(binding_id)
        return binding

    async def list_bindings(self) -> List[CalendarBinding]:
        return await self.repository.get_all()

    async def _save(self, binding: CalendarBinding) -> CalendarBinding:
        await self.repository.update(binding)
        await self.unit_of_work.save_changes()
        return binding

    async def rename(self, binding_id: str, new_name: str) -> CalendarBinding:
        binding = await self.get_binding(binding_id)
        return await self._save(binding.rename(new_name))

    async def enable(self, binding_id: str) -> CalendarBinding:
        binding = await self.get_binding(binding_id)
        logger.info(f"Enabling calendar binding {binding.name}")
        return await self._save(binding.enable())

    async def disable(self, binding_id: str) -> CalendarBinding:
        binding = await self.get_binding(binding_id)
        logger.info(f"Disabling calendar binding {binding.name}")
        return await self._save(binding.disable())

    async def update_configuration(
        self, binding_id: str, configuration: CalendarBindingConfiguration
    ) -> CalendarBinding:
        binding = await self.get_binding(binding_id)
        return await self._save(binding.update_configuration(configuration))

    async def delete_binding(self, binding_id: str) -> None:
        """Delete a binding. Copies already written to the target are left in place."""
        if not await self.repository.delete(binding_id):
            raise BindingNotFoundError(binding_id)
        await self.unit_of_work.save_changes()
        logger.info(f"Deleted calendar binding {binding_id}")
