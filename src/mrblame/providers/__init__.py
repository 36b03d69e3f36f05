"""Hosting provider clients."""

from .base_client import BaseProviderClient, ProviderClient
from .errors import (
    ProviderAPIError,
    ProviderClientError,
    ProviderError,
    ProviderErrorKind,
    ProviderNetworkError,
    ProviderPayloadError,
    ProviderResult,
)
from .factory import close_registry, create_default_registry
from .github_client import GitHubClient
from .gitlab_client import GitLabClient
from .registry import ProviderRegistry
from .selection import select_change_request

__all__ = [
    "BaseProviderClient",
    "GitHubClient",
    "GitLabClient",
    "ProviderAPIError",
    "ProviderClient",
    "ProviderClientError",
    "ProviderError",
    "ProviderErrorKind",
    "ProviderNetworkError",
    "ProviderPayloadError",
    "ProviderRegistry",
    "ProviderResult",
    "close_registry",
    "create_default_registry",
    "select_change_request",
]
