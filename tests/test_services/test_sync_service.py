"""Tests for the worker-facing sync service."""

import asyncio
import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

from conftest import (
    SOURCE_CALENDAR,
    SOURCE_CREDENTIAL,
    InMemoryBindingRepository,
    make_binding,
    make_upcoming_event,
)
from outlook_sync.services.sync_service import CalendarSyncService, build_store_factory
from outlook_sync.stores.graph import GraphCalendarEventStoreFactory
from outlook_sync.stores.memory import get_memory_store_factory
from outlook_sync.sync.reconciler import BindingReconciler


def fake_session_scope():
    @asynccontextmanager
    async def scope():
        yield MagicMock()

    return scope


def scope_of(reconciler):
    @asynccontextmanager
    async def scope():
        yield reconciler

    return scope


class TestBuildStoreFactory:
    """Test suite for backend selection."""

    def test_memory_backend(self, mock_settings):
        """Test the memory backend uses the shared in-memory factory."""
        assert build_store_factory(MagicMock(), mock_settings) is get_memory_store_factory()

    def test_graph_backend(self, mock_settings):
        """Test the graph backend builds a Graph factory."""
        settings = mock_settings.model_copy(update={"calendar_backend": "graph"})

        factory = build_store_factory(MagicMock(), settings)

        assert isinstance(factory, GraphCalendarEventStoreFactory)


class TestCalendarSyncService:
    """Test suite for CalendarSyncService."""

    @pytest.fixture
    def bindings(self):
        return InMemoryBindingRepository(
            make_binding("A", target_calendar_external_id="cal-a"),
            make_binding("B", target_calendar_external_id="cal-b"),
        )

    @pytest.fixture
    def service(self, bindings, mock_unit_of_work, store_factory, mock_settings):
        reconciler = BindingReconciler(bindings, mock_unit_of_work, store_factory, mock_settings)
        return CalendarSyncService(
            settings=mock_settings,
            reconciler_scope=scope_of(reconciler),
            session_scope=fake_session_scope(),
            repository_class=lambda session: bindings,
        )

    @pytest.mark.asyncio
    async def test_sync_all(self, service, store_factory):
        """Test every enabled binding is reconciled."""
        store_factory.store_for(SOURCE_CREDENTIAL, SOURCE_CALENDAR).seed(make_upcoming_event("Standup"))

        result = await service.sync_all()

        assert result.total_calendars_processed == 2
        assert result.successful_syncs == 2
        assert result.total_events_copied == 2
        assert service.is_running is False

    @pytest.mark.asyncio
    async def test_sync_binding(self, service, bindings):
        """Test a single binding can be synchronized."""
        binding = next(iter(bindings.bindings.values()))

        outcome = await service.sync_binding(binding.id)

        assert outcome.success is True
        assert outcome.binding_id == binding.id

    @pytest.mark.asyncio
    async def test_trigger_while_running_is_skipped(self, mock_settings):
        """Test a second trigger returns None while a sync is in flight."""
        release = asyncio.Event()
        service = CalendarSyncService(settings=mock_settings, reconciler_scope=scope_of(None))

        async def slow_sync_all(cancel_event=None):
            await release.wait()
            return "done"

        service.sync_all = slow_sync_all
        first = asyncio.create_task(service.trigger_sync_all())
        await asyncio.sleep(0)

        assert service.is_running is True
        assert await service.trigger_sync_all() is None
        assert await service.trigger_sync_binding("b1") is None

        release.set()
        assert await first == "done"
        assert service.is_running is False

    @pytest.mark.asyncio
    async def test_flag_cleared_after_failure(self, mock_settings):
        """Test a failing run does not leave the service marked running."""
        service = CalendarSyncService(settings=mock_settings, reconciler_scope=scope_of(None))
        service.sync_binding = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await service.trigger_sync_binding("b1")

        assert service.is_running is False
