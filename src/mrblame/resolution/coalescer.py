"""Deduplication of concurrent identical provider requests."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Tuple

logger = logging.getLogger(__name__)

RequestFactory = Callable[[], Awaitable[Any]]


class RequestCoalescer:
    """Maps a request key to the single task serving it.

    The first caller for a key starts the task; callers arriving while it runs
    share it. The key is forgotten as soon as the task settles, whatever the
    outcome, so a failed lookup never blocks later retries.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, "asyncio.Future[Any]"] = {}

    def acquire(
        self, key: str, factory: RequestFactory
    ) -> Tuple["asyncio.Future[Any]", bool]:
        """Join the in-flight request for ``key`` or start a new one.

        Must be called from a running event loop. The task is registered
        before it gets a chance to run, so no second caller can slip in between.

        Returns:
            Tuple of (shared future, True if this call started it)
        """
        existing = self._pending.get(key)
        if existing is not None and not existing.done():
            logger.debug(f"Joining in-flight request {key}")
            return existing, False

        task = asyncio.ensure_future(factory())
        self._pending[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return task, True

    def _forget(self, key: str, task: "asyncio.Future[Any]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Request {key} failed: {task.exception()!r}")

    def is_pending(self, key: str) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._pending.values() if not task.done())

    def clear(self) -> None:
        """Forget every key; running tasks still complete for their callers."""
        self._pending.clear()
