"""Entry point for running calendar syncs inside the worker."""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from outlook_sync.config import Settings, get_settings
from outlook_sync.database.repositories import CalendarBindingRepository, CredentialRepository
from outlook_sync.database.session import get_session
from outlook_sync.database.unit_of_work import SqlAlchemyUnitOfWork
from outlook_sync.models.sync_result import BindingSyncOutcome, CalendarsSyncResult
from outlook_sync.stores.base import CalendarEventStoreFactory
from outlook_sync.stores.graph import GraphCalendarEventStoreFactory
from outlook_sync.stores.memory import get_memory_store_factory
from outlook_sync.sync.orchestrator import ReconcilerScope, SyncOrchestrator
from outlook_sync.sync.reconciler import BindingReconciler

logger = logging.getLogger(__name__)


def build_store_factory(session: AsyncSession, settings: Settings) -> CalendarEventStoreFactory:
    """Store factory for the configured calendar backend."""
    if settings.calendar_backend == "memory":
        return get_memory_store_factory()
    return GraphCalendarEventStoreFactory(CredentialRepository(session), settings)


@asynccontextmanager
async def session_reconciler_scope(
    settings: Optional[Settings] = None,
) -> AsyncIterator[BindingReconciler]:
    """Reconciler with its own session, repository and unit of work."""
    settings = settings or get_settings()
    async with get_session() as session:
        store_factory = build_store_factory(session, settings)
        try:
            yield BindingReconciler(
                CalendarBindingRepository(session),
                SqlAlchemyUnitOfWork(session),
                store_factory,
                settings,
            )
        finally:
            await store_factory.aclose()


class CalendarSyncService:
    """Runs syncs with at most one sync in flight per process.

    A trigger arriving while a sync is running returns ``None`` immediately
    instead of queueing behind it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        reconciler_scope: Optional[ReconcilerScope] = None,
        session_scope=get_session,
        repository_class=CalendarBindingRepository,
    ):
        self.settings = settings or get_settings()
        self.reconciler_scope = reconciler_scope or partial(session_reconciler_scope, self.settings)
        self.session_scope = session_scope
        self.repository_class = repository_class
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def sync_all(self, cancel_event: Optional[asyncio.Event] = None) -> CalendarsSyncResult:
        """Synchronize every enabled binding."""
        async with self.session_scope() as session:
            orchestrator = SyncOrchestrator(
                self.repository_class(session),
                self.reconciler_scope,
                max_concurrency=self.settings.sync_max_concurrency,
            )
            return await orchestrator.sync_all_calendars(cancel_event)

    async def sync_binding(self, binding_id: str) -> BindingSyncOutcome:
        """Synchronize a single binding, enabled or not (disabled ones are skipped)."""
        async with self.reconciler_scope() as reconciler:
            return await reconciler.reconcile(binding_id)

    async def trigger_sync_all(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> Optional[CalendarsSyncResult]:
        if self._running:
            logger.warning("Calendar sync already in progress, skipping trigger")
            return None
        self._running = True
        try:
            return await self.sync_all(cancel_event)
        finally:
            self._running = False

    async def trigger_sync_binding(self, binding_id: str) -> Optional[BindingSyncOutcome]:
        if self._running:
            logger.warning(
                f"Calendar sync already in progress, skipping trigger for binding {binding_id}"
            )
            return None
        self._running = True
        try:
            return await self.sync_binding(binding_id)
        finally:
            self._running = False


_sync_service: Optional[CalendarSyncService] = None


def get_sync_service() -> CalendarSyncService:
    """Get the process-wide sync service."""
    global _sync_service
    if _sync_service is None:
        _sync_service = CalendarSyncService()
    return _sync_service
