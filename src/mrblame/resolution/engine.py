"""Line -> change request resolution with caching, coalescing and cancellation."""

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

from ..models import ChangeRequest, LineAttribution, ResolutionOutcome
from ..providers.base_client import ProviderClient
from ..providers.errors import ProviderError, ProviderResult
from ..providers.registry import ProviderRegistry
from .cache import MISSING, ResolutionCache, cache_key
from .cancellation import CancellationToken
from .coalescer import RequestCoalescer
from .notifications import LoggingNotificationSink, NotificationSink

logger = logging.getLogger(__name__)

RemoteLookup = Callable[[str], Optional[str]]

_CANCELLED = object()


class ResolutionEngine:
    """Resolves blamed lines to the merge/pull request that introduced them.

    Outcomes only reach the cache when a provider actually answered: missing
    configuration (no remote, no provider, no token) leaves nothing behind and
    is retried on the next query. A request whose starting caller is cancelled
    mid-flight keeps running and is cached when it completes; a caller whose
    cancellation lands after completion writes nothing. Provider failures are
    cached as ``None`` so an erroring host is not queried again for the same
    commit until the entry expires or the repository changes.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: ResolutionCache,
        remote_lookup: RemoteLookup,
        coalescer: Optional[RequestCoalescer] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        """Initialize engine.

        Args:
            registry: Providers to detect from the remote URL
            cache: Shared resolution cache
            remote_lookup: Returns the remote URL of the repository holding a file
            coalescer: Shared in-flight request map
            notifier: Receives provider failures from the request owner
        """
        self.registry = registry
        self.cache = cache
        self.remote_lookup = remote_lookup
        self.coalescer = coalescer or RequestCoalescer()
        self.notifier: NotificationSink = notifier or LoggingNotificationSink()

    def _detect(self, file_path: str) -> Tuple[Optional[str], Optional[ProviderClient]]:
        remote_url = self.remote_lookup(file_path)
        if not remote_url:
            logger.debug(f"No remote for {file_path}")
            return None, None
        provider = self.registry.detect_provider(remote_url)
        return remote_url, provider

    async def resolve(
        self,
        file_path: str,
        attribution: LineAttribution,
        token: Optional[CancellationToken] = None,
        join_pending: bool = False,
    ) -> ResolutionOutcome:
        """Resolve one blamed line.

        Args:
            file_path: File the line belongs to (locates the repository remote)
            attribution: Blame information for the line
            token: Cancellation token; a cancelled request resolves to unresolved
            join_pending: Wait for an in-flight lookup of the same commit instead
                of reporting it as loading

        Returns:
            ResolutionOutcome (resolved, in progress or unresolved)
        """
        token = token or CancellationToken.none()
        if token.is_cancelled:
            return ResolutionOutcome.unresolved()

        remote_url, provider = self._detect(file_path)
        if remote_url is None or provider is None:
            return ResolutionOutcome.unresolved()

        provider_id = provider.provider_id
        commit_id = attribution.commit_id
        cached = self.cache.get(provider_id, commit_id)
        if cached is not MISSING:
            return ResolutionOutcome.resolved(cached)

        key = cache_key(provider_id, commit_id)
        if not join_pending and self.coalescer.is_pending(key):
            return ResolutionOutcome.in_progress()

        if not provider.has_credential():
            logger.debug(f"[{provider.display_name}] No credential, skipping {attribution.short_id}")
            return ResolutionOutcome.unresolved()
        identity = provider.parse_remote_url(remote_url)
        if identity is None:
            logger.debug(f"[{provider.display_name}] Cannot parse remote {remote_url}")
            return ResolutionOutcome.unresolved()

        host = provider.host_for(identity)
        future, started = self.coalescer.acquire(
            key,
            lambda: provider.resolve_change_request(
                identity.project_path, commit_id, host
            ),
        )
        result = await self._wait(future, token)
        if result is _CANCELLED:
            logger.debug(f"Resolution of {attribution.short_id} cancelled")
            if started and not future.done():
                future.add_done_callback(
                    lambda done: self._cache_settled(provider_id, commit_id, done)
                )
            return ResolutionOutcome.unresolved()

        if result.success:
            self.cache.set(provider_id, commit_id, result.value)
            return ResolutionOutcome.resolved(result.value)

        self.cache.set(provider_id, commit_id, None)
        if started:
            self._notify(result.error, provider)
        return ResolutionOutcome.unresolved()

    async def resolve_stats(
        self,
        file_path: str,
        attribution: LineAttribution,
        change_request: ChangeRequest,
        token: Optional[CancellationToken] = None,
    ) -> ChangeRequest:
        """Load change statistics for an already resolved change request.

        Returns the change request with stats attached, or unchanged when
        stats are already present or cannot be loaded.
        """
        if change_request.stats is not None:
            return change_request
        token = token or CancellationToken.none()
        if token.is_cancelled:
            return change_request

        remote_url, provider = self._detect(file_path)
        if remote_url is None or provider is None or not provider.has_credential():
            return change_request
        identity = provider.parse_remote_url(remote_url)
        if identity is None:
            return change_request

        host = provider.host_for(identity)
        future, started = self.coalescer.acquire(
            f"stats:{cache_key(provider.provider_id, attribution.commit_id)}",
            lambda: provider.fetch_change_request_stats(
                identity.project_path, change_request.number, host
            ),
        )
        result = await self._wait(future, token)
        if result is _CANCELLED:
            return change_request
        if not result.success:
            if started:
                self._notify(result.error, provider)
            return change_request
        if result.value is None:
            return change_request

        self.cache.update_stats(provider.provider_id, attribution.commit_id, result.value)
        return change_request.with_stats(result.value)

    async def _wait(
        self, future: "asyncio.Future[ProviderResult[Any]]", token: CancellationToken
    ) -> Any:
        """Wait for a shared request unless the token is cancelled first.

        The token is checked again once the request settles, so a cancellation
        that lands in between still wins.
        """
        shielded = asyncio.shield(future)
        cancelled = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait(
                {shielded, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancelled.cancel()
        if token.is_cancelled:
            if not shielded.done():
                shielded.cancel()
            return _CANCELLED
        return shielded.result()

    def _cache_settled(
        self, provider_id: str, commit_id: str, done: "asyncio.Future[Any]"
    ) -> None:
        """Cache a request whose starting caller stopped waiting for it."""
        if done.cancelled() or done.exception() is not None:
            return
        result = done.result()
        self.cache.set(provider_id, commit_id, result.value if result.success else None)

    def _notify(self, error: Optional[ProviderError], provider: ProviderClient) -> None:
        if error is not None:
            self.notifier.notify(error, provider)
