"""Registry of provider clients with remote-URL based detection."""

import logging
from typing import Dict, List, Optional

from .base_client import ProviderClient

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Holds provider clients in registration order.

    Detection asks each client in turn whether it owns a remote URL and returns
    the first that does, so register the most specific providers first when
    self-hosted hostnames could match more than one.
    """

    def __init__(self) -> None:
        self._providers: Dict[str, ProviderClient] = {}

    def register(self, provider: ProviderClient) -> None:
        """Register a provider, replacing any provider with the same id."""
        if provider.provider_id in self._providers:
            logger.debug(f"Replacing provider '{provider.provider_id}'")
        self._providers[provider.provider_id] = provider

    def get(self, provider_id: str) -> Optional[ProviderClient]:
        return self._providers.get(provider_id)

    def detect_provider(self, remote_url: Optional[str]) -> Optional[ProviderClient]:
        """Return the first registered provider that recognizes the remote URL."""
        if not remote_url:
            return None
        for provider in self._providers.values():
            if provider.is_provider_url(remote_url):
                return provider
        logger.debug(f"No provider recognizes remote {remote_url}")
        return None

    @property
    def providers(self) -> List[ProviderClient]:
        return list(self._providers.values())

    def reset_notification_state(self) -> None:
        for provider in self._providers.values():
            provider.reset_notification_state()

    def clear(self) -> None:
        self._providers.clear()

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers
