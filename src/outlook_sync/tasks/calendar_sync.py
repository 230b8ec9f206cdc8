"""Calendar sync Celery tasks."""

import logging

from celery import shared_task

from outlook_sync.database.session import dispose_engine
from outlook_sync.services.sync_service import get_sync_service
from outlook_sync.utils.async_helpers import run_async
from outlook_sync.utils.errors import PersistenceError, SyncError

logger = logging.getLogger(__name__)


async def _with_engine_disposal(coro):
    # Each task runs on its own event loop; pooled connections cannot outlive it
    try:
        return await coro
    finally:
        await dispose_engine()


@shared_task(
    name="outlook_sync.tasks.calendar_sync.sync_all_calendars",
)
def sync_all_calendars() -> dict:
    """
    Sync all enabled calendar bindings (scheduled task).

    Triggered by Celery Beat every ``sync_interval_minutes``.
    """
    result = run_async(_with_engine_disposal(get_sync_service().trigger_sync_all()))

    if result is None:
        return {"skipped": True, "reason": "sync already in progress"}

    logger.info(
        f"Synced {result.total_calendars_processed} bindings "
        f"({result.failed_syncs} failed, {result.total_events_copied} events copied)"
    )

    return {
        "skipped": False,
        "success": result.is_success,
        "total_calendars_processed": result.total_calendars_processed,
        "successful_syncs": result.successful_syncs,
        "failed_syncs": result.failed_syncs,
        "total_events_copied": result.total_events_copied,
        "errors": result.errors,
        "cancelled": result.cancelled,
    }


@shared_task(
    bind=True,
    name="outlook_sync.tasks.calendar_sync.sync_calendar_binding",
    max_retries=3,
    default_retry_delay=60,
)
def sync_calendar_binding(self, binding_id: str) -> dict:
    """
    Sync a single calendar binding on demand.

    Args:
        binding_id: Calendar binding ID

    Returns:
        Sync outcome dict with counts and status
    """
    try:
        outcome = run_async(
            _with_engine_disposal(get_sync_service().trigger_sync_binding(binding_id))
        )
    except (SyncError, PersistenceError) as exc:
        logger.error(f"Sync error for calendar binding {binding_id}: {exc}", exc_info=True)
        # Retry with exponential backoff
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    if outcome is None:
        return {"binding_id": binding_id, "skipped": True, "reason": "sync already in progress"}

    logger.info(
        f"Synced {outcome.events_synced} events for binding {binding_id} "
        f"({outcome.events_deleted} deleted, {outcome.events_failed} failed)"
    )

    return {
        "binding_id": binding_id,
        "skipped": outcome.skipped,
        "success": outcome.success,
        "state": outcome.state.value,
        "events_created": outcome.events_created,
        "events_updated": outcome.events_updated,
        "events_deleted": outcome.events_deleted,
        "events_failed": outcome.events_failed,
        "total_changes": outcome.total_changes,
        "error_message": outcome.error_message,
    }
