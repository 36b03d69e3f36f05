"""TTL cache of commit -> change request lookups.

Entries are keyed by ``provider_id:commit_id`` because the same commit can
exist in projects on two hosts (mirrors). A cached ``None`` means the provider
confirmed there is no change request and is distinct from a missing entry,
which :meth:`ResolutionCache.get` reports as :data:`MISSING`.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, Optional, Union

from ..config import DEFAULT_CACHE_TTL_SECONDS
from ..models import CacheEntry, ChangeRequest, ChangeRequestStats
from .signals import RepositoryEvents

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

CacheLookup = Union[Optional[ChangeRequest], _Missing]


def cache_key(provider_id: str, commit_id: str) -> str:
    return f"{provider_id}:{commit_id}"


class ResolutionCache:
    """In-memory cache with lazy expiry and wholesale invalidation."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            ttl_seconds: Entry lifetime; 0 or negative disables caching
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @ttl_seconds.setter
    def ttl_seconds(self, value: float) -> None:
        # Existing entries keep the expiry computed when they were stored
        self._ttl_seconds = value

    @property
    def enabled(self) -> bool:
        return self._ttl_seconds > 0

    @property
    def size(self) -> int:
        return len(self._entries)

    def get(self, provider_id: str, commit_id: str) -> CacheLookup:
        key = cache_key(provider_id, commit_id)
        entry = self._entries.get(key)
        if entry is None:
            return MISSING
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return MISSING
        return entry.value

    def has(self, provider_id: str, commit_id: str) -> bool:
        return self.get(provider_id, commit_id) is not MISSING

    def set(
        self, provider_id: str, commit_id: str, value: Optional[ChangeRequest]
    ) -> None:
        if not self.enabled:
            return
        now = self._clock()
        self._entries[cache_key(provider_id, commit_id)] = CacheEntry(
            value=value, expires_at=now + self._ttl_seconds
        )

    def update_stats(
        self, provider_id: str, commit_id: str, stats: ChangeRequestStats
    ) -> bool:
        """Attach stats to a cached change request without touching its expiry.

        Returns:
            True if a live cached change request was updated
        """
        value = self.get(provider_id, commit_id)
        if value is MISSING or value is None:
            return False
        entry = self._entries[cache_key(provider_id, commit_id)]
        self._entries[cache_key(provider_id, commit_id)] = replace(
            entry, value=value.with_stats(stats)
        )
        return True

    def clear(self) -> None:
        if self._entries:
            logger.debug(f"Clearing {len(self._entries)} cached resolution(s)")
        self._entries.clear()

    def attach(self, events: RepositoryEvents) -> Callable[[], None]:
        """Clear the cache whenever the repository changes.

        Returns:
            Callable that detaches the cache from the signal
        """
        return events.subscribe(self.clear)
