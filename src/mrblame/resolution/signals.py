"""Repository mutation signal (checkout, fetch, pull, commit)."""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

RepositoryListener = Callable[[], None]


class RepositoryEvents:
    """Payload-less "history may have changed" event stream."""

    def __init__(self) -> None:
        self._listeners: List[RepositoryListener] = []

    def subscribe(self, listener: RepositoryListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self) -> None:
        logger.debug(f"Repository changed, notifying {len(self._listeners)} listener(s)")
        for listener in list(self._listeners):
            listener()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
