"""Synchronization of every enabled calendar binding."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, List, Optional, Union

from outlook_sync.models.binding import CalendarBinding, UnloadableBinding
from outlook_sync.models.sync_result import (
    BindingSyncOutcome,
    CalendarsSyncResult,
    ReconcileState,
)
from outlook_sync.sync.reconciler import BindingReconciler

logger = logging.getLogger(__name__)

ReconcilerScope = Callable[[], AsyncContextManager[BindingReconciler]]


class SyncOrchestrator:
    """Runs the reconciler for each enabled binding and aggregates the results.

    ``reconciler_scope`` yields a reconciler with its own repository and unit
    of work, so bindings processed concurrently never share a database
    session. With ``max_concurrency=1`` bindings are processed one after the
    other in repository order.
    """

    def __init__(
        self,
        binding_repository,
        reconciler_scope: ReconcilerScope,
        max_concurrency: int = 1,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.binding_repository = binding_repository
        self.reconciler_scope = reconciler_scope
        self.max_concurrency = max_concurrency

    async def sync_all_calendars(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> CalendarsSyncResult:
        """
        Synchronize all enabled bindings.

        Args:
            cancel_event: Once set, no further bindings are started. Bindings
                already running finish; bindings never started are left out
                of the result.

        Returns:
            CalendarsSyncResult aggregated in binding order
        """
        logger.info("Starting synchronization using calendar bindings")
        result = CalendarsSyncResult()

        bindings = await self.binding_repository.get_enabled()
        if not bindings:
            logger.info("No enabled calendar bindings found for synchronization")
            return result

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(
            binding: Union[CalendarBinding, UnloadableBinding]
        ) -> Optional[BindingSyncOutcome]:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return None
                if isinstance(binding, UnloadableBinding):
                    logger.error(f"Binding {binding.name} cannot be loaded: {binding.error_message}")
                    return self._failed(binding.id, binding.name, binding.error_message)
                return await self._sync_binding(binding)

        if self.max_concurrency == 1:
            outcomes: List[Optional[BindingSyncOutcome]] = []
            for binding in bindings:
                outcomes.append(await run(binding))
        else:
            outcomes = await asyncio.gather(*(run(binding) for binding in bindings))

        for outcome in outcomes:
            if outcome is None:
                result.cancelled = True
                continue
            result.add_outcome(outcome)

        if result.cancelled:
            logger.warning(
                f"Synchronization cancelled after {result.total_calendars_processed} "
                f"of {len(bindings)} bindings"
            )
        logger.info(
            f"Synchronization completed. Total: {result.total_calendars_processed}, "
            f"Successful: {result.successful_syncs}, Failed: {result.failed_syncs}, "
            f"Events copied: {result.total_events_copied}"
        )
        return result

    async def _sync_binding(self, binding: CalendarBinding) -> BindingSyncOutcome:
        started_at = datetime.now(timezone.utc)
        try:
            async with self.reconciler_scope() as reconciler:
                return await reconciler.reconcile(binding.id)
        except Exception as e:
            logger.error(f"Error synchronizing binding {binding.name}: {e}", exc_info=True)
            return self._failed(binding.id, binding.name, str(e) or type(e).__name__, started_at)

    @staticmethod
    def _failed(
        binding_id: str,
        binding_name: str,
        error_message: str,
        started_at: Optional[datetime] = None,
    ) -> BindingSyncOutcome:
        completed_at = datetime.now(timezone.utc)
        return BindingSyncOutcome(
            success=False,
            binding_id=binding_id,
            binding_name=binding_name,
            state=ReconcileState.FAILED,
            error_message=error_message,
            started_at=started_at or completed_at,
            completed_at=completed_at,
        )
