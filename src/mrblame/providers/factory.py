"""Builds the provider registry from configuration."""

import logging
from typing import Optional

import httpx

from ..config import Config
from ..credentials import CredentialStore
from .github_client import GitHubClient
from .gitlab_client import GitLabClient
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


def create_default_registry(
    config: Config,
    credentials: CredentialStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderRegistry:
    """Register the enabled providers, GitLab first then GitHub."""
    registry = ProviderRegistry()
    if config.gitlab.enabled:
        registry.register(
            GitLabClient(
                credentials,
                base_url=config.gitlab.base_url,
                http_config=config.http,
                transport=transport,
            )
        )
    if config.github.enabled:
        registry.register(
            GitHubClient(
                credentials,
                base_url=config.github.base_url,
                http_config=config.http,
                transport=transport,
            )
        )
    logger.debug(
        f"Registered providers: {[p.provider_id for p in registry.providers]}"
    )
    return registry


async def close_registry(registry: ProviderRegistry) -> None:
    """Close the HTTP sessions of every registered provider."""
    for provider in registry.providers:
        close = getattr(provider, "close", None)
        if close is not None:
            await close()
