"""Cooperative cancellation for resolution requests."""

import asyncio
from typing import Optional


class CancellationToken:
    """Advisory cancellation flag a caller hands to the resolution engine.

    Cancelling never aborts a running HTTP call; the engine stops waiting for
    it and ignores its result. The event is created lazily so a token can be
    built outside of a running event loop.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Return once the token is cancelled."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()

    @classmethod
    def none(cls) -> "CancellationToken":
        """A token nobody will ever cancel."""
        return cls()
