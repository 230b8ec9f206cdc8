"""Async helpers for Celery tasks.

Celery task bodies are synchronous, while the sync engine is async. Each task
runs its coroutine on a fresh event loop.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


def _running_loop_in_thread() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """
    Run an async coroutine to completion from synchronous code.

    When the calling thread already runs an event loop (eager task execution
    inside an async caller), the coroutine is run on a new loop in a helper
    thread instead.

    Args:
        coro: The coroutine to run

    Returns:
        The result of the coroutine
    """
    if not _running_loop_in_thread():
        return asyncio.run(coro)

    logger.warning("Event loop is already running, running coroutine in a helper thread")
    result = None
    exception = None

    def run_in_thread():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except BaseException as e:
            exception = e

    thread = threading.Thread(target=run_in_thread)
    thread.start()
    thread.join()

    if exception is not None:
        raise exception
    return result
