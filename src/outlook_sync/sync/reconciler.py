"""Reconciliation of one calendar binding."""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple

from outlook_sync.config import Settings, get_settings
from outlook_sync.models.binding import CalendarBinding
from outlook_sync.models.event import CalendarEvent, SyncWindow
from outlook_sync.models.sync_result import BindingSyncOutcome, ReconcileState
from outlook_sync.stores.base import CalendarEventStore, CalendarEventStoreFactory
from outlook_sync.sync.filtering import partition_events
from outlook_sync.sync.identity import IdentityMapper
from outlook_sync.sync.transformer import needs_update, transform_event
from outlook_sync.utils.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

BINDING_NOT_FOUND_MESSAGE = "Calendar binding not found"


class _SyncPlan:
    """Writes needed to bring the target calendar in line with the source."""

    def __init__(self):
        self.creates: List[Tuple[CalendarEvent, CalendarEvent]] = []
        self.updates: List[Tuple[CalendarEvent, CalendarEvent, CalendarEvent]] = []
        self.deletes: List[CalendarEvent] = []
        self.unchanged = 0


class BindingReconciler:
    """Runs one binding through load, filter, diff and apply.

    Per-event write failures are logged and counted without stopping the
    run. An ``AuthenticationError`` aborts the run since the credential is
    unusable for every remaining event. Whatever happens after the binding is
    loaded, its last-sync fields are updated and committed once through the
    unit of work; a failing commit raises ``PersistenceError`` to the caller.
    """

    def __init__(
        self,
        binding_repository,
        unit_of_work,
        store_factory: CalendarEventStoreFactory,
        settings: Optional[Settings] = None,
    ):
        self.binding_repository = binding_repository
        self.unit_of_work = unit_of_work
        self.store_factory = store_factory
        self.settings = settings or get_settings()

    async def reconcile(
        self, binding_id: str, now: Optional[datetime] = None
    ) -> BindingSyncOutcome:
        """
        Synchronize a single binding.

        Args:
            binding_id: Calendar binding ID
            now: Reference time for the sync window (defaults to current UTC time)

        Returns:
            BindingSyncOutcome describing the run

        Raises:
            PersistenceError: If the outcome could not be committed
        """
        now = now or datetime.now(timezone.utc)
        outcome = BindingSyncOutcome(
            success=False,
            binding_id=binding_id,
            state=ReconcileState.LOADING,
            started_at=now,
        )

        try:
            binding = await self.binding_repository.get_by_id(binding_id)
        except ConfigurationError as e:
            logger.error(f"Calendar binding {binding_id} cannot be loaded: {e}")
            return self._finish(outcome, ReconcileState.FAILED, str(e))
        if binding is None:
            logger.warning(f"Calendar binding {binding_id} not found")
            return self._finish(outcome, ReconcileState.FAILED, BINDING_NOT_FOUND_MESSAGE)

        outcome.binding_name = binding.name
        if not binding.is_enabled:
            logger.info(f"Binding {binding.name} is disabled, skipping")
            outcome.skipped = True
            outcome.success = True
            return self._finish(outcome, ReconcileState.COMPLETED)

        logger.info(f"Synchronizing binding {binding.name} ({binding.id})")
        try:
            await self._synchronize(binding, outcome, now)
        except Exception as e:
            logger.error(f"Binding {binding.name} failed during {outcome.state.value}: {e}", exc_info=True)
            message = str(e) or type(e).__name__
            self._finish(outcome, ReconcileState.FAILED, message)
            recorded = binding.record_failed_sync(message)
        else:
            outcome.success = True
            self._finish(outcome, ReconcileState.COMPLETED)
            recorded = binding.record_successful_sync(outcome.events_synced)
            logger.info(
                f"Binding {binding.name} synchronized: {outcome.events_created} created, "
                f"{outcome.events_updated} updated, {outcome.events_deleted} deleted, "
                f"{outcome.events_unchanged} unchanged, {outcome.events_failed} failed"
            )

        await self.binding_repository.update(recorded)
        await self.unit_of_work.save_changes()
        return outcome

    @staticmethod
    def _finish(
        outcome: BindingSyncOutcome,
        state: ReconcileState,
        error_message: Optional[str] = None,
    ) -> BindingSyncOutcome:
        outcome.state = state
        outcome.error_message = error_message
        outcome.completed_at = datetime.now(timezone.utc)
        return outcome

    async def _synchronize(
        self, binding: CalendarBinding, outcome: BindingSyncOutcome, now: datetime
    ) -> None:
        configuration = binding.configuration
        window = SyncWindow.forward(
            configuration.sync_days_forward,
            lookback_days=self.settings.sync_lookback_days,
            now=now,
        )

        source_store = await self.store_factory.get_store(
            binding.source_credential_id, binding.source_calendar_external_id
        )
        target_store = await self.store_factory.get_store(
            binding.target_credential_id, binding.target_calendar_external_id
        )
        source_events = await source_store.get_all(window)
        existing_copies = await target_store.get_copied_events(binding.id, window)

        outcome.state = ReconcileState.FILTERING
        eligible, ineligible = partition_events(source_events, configuration)
        outcome.events_eligible = len(eligible)
        outcome.events_excluded = len(ineligible)

        outcome.state = ReconcileState.DIFFING
        plan = self._diff(binding, eligible, existing_copies)
        outcome.events_unchanged = plan.unchanged

        outcome.state = ReconcileState.APPLYING
        await self._apply(binding, plan, source_store, target_store, outcome)

    def _diff(
        self,
        binding: CalendarBinding,
        eligible: List[CalendarEvent],
        existing_copies: List[CalendarEvent],
    ) -> _SyncPlan:
        placeholder = self.settings.hidden_title_placeholder
        mapper = IdentityMapper.build(binding.id, existing_copies)
        plan = _SyncPlan()

        eligible_ids = set()
        for source in eligible:
            eligible_ids.add(source.external_id)
            copy = mapper.find_copy(source.external_id)
            if copy is None:
                plan.creates.append((source, transform_event(source, binding, "", placeholder)))
                continue
            desired = transform_event(source, binding, copy.external_id, placeholder)
            if needs_update(copy, desired):
                plan.updates.append((source, copy, desired))
            else:
                plan.unchanged += 1

        plan.deletes = mapper.orphans(eligible_ids) + mapper.duplicates
        logger.debug(
            f"Binding {binding.name}: {len(plan.creates)} to create, {len(plan.updates)} to update, "
            f"{len(plan.deletes)} to delete, {plan.unchanged} unchanged"
        )
        return plan

    async def _apply(
        self,
        binding: CalendarBinding,
        plan: _SyncPlan,
        source_store: CalendarEventStore,
        target_store: CalendarEventStore,
        outcome: BindingSyncOutcome,
    ) -> None:
        copy_attachments = binding.configuration.copy_attachments

        for source, draft in plan.creates:
            async def create(source=source, draft=draft):
                created = await target_store.add(draft)
                outcome.events_created += 1
                if copy_attachments and source.has_attachments:
                    await self._copy_attachments(source_store, target_store, source, created)

            await self._isolated(f"create copy of {source.external_id}", create, outcome)

        for source, existing, desired in plan.updates:
            async def update(source=source, existing=existing, desired=desired):
                updated = await target_store.update(desired)
                outcome.events_updated += 1
                if copy_attachments and source.has_attachments and not existing.has_attachments:
                    await self._copy_attachments(source_store, target_store, source, updated)

            await self._isolated(f"update copy {existing.external_id}", update, outcome)

        for copy in plan.deletes:
            async def delete(copy=copy):
                if await target_store.delete(copy.external_id):
                    outcome.events_deleted += 1
                else:
                    logger.debug(f"Copy {copy.external_id} was already gone")

            await self._isolated(f"delete copy {copy.external_id}", delete, outcome)

    @staticmethod
    async def _isolated(
        description: str,
        operation: Callable[[], Awaitable[None]],
        outcome: BindingSyncOutcome,
    ) -> None:
        try:
            await operation()
        except AuthenticationError:
            raise
        except Exception as e:
            outcome.events_failed += 1
            logger.error(f"Failed to {description}: {e}", exc_info=True)

    @staticmethod
    async def _copy_attachments(
        source_store: CalendarEventStore,
        target_store: CalendarEventStore,
        source: CalendarEvent,
        target: CalendarEvent,
    ) -> None:
        try:
            attachments = await source_store.get_attachments(source.external_id)
        except Exception as e:
            logger.error(
                f"Failed to read attachments of {source.external_id}: {e}", exc_info=True
            )
            return

        for attachment in attachments:
            try:
                await target_store.add_attachment(target.external_id, attachment)
            except Exception as e:
                logger.error(
                    f"Failed to copy attachment '{attachment.name}' to {target.external_id}: {e}",
                    exc_info=True,
                )
