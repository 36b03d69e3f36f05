"""Delivery of provider failures to the user."""

import logging
from typing import Optional, Protocol

from ..providers.base_client import ProviderClient
from ..providers.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Receives every provider failure together with the provider that produced it."""

    def notify(self, error: ProviderError, provider: ProviderClient) -> None: ...


def guidance_for(error: ProviderError, provider: ProviderClient) -> Optional[str]:
    """What the user can do about a failure, if anything."""
    if error.kind == ProviderErrorKind.NO_CREDENTIAL:
        return (
            f"Configure a {provider.display_name} personal access token "
            "to see merge/pull requests for blamed lines."
        )
    if error.kind == ProviderErrorKind.INVALID_CREDENTIAL:
        return (
            f"The {provider.display_name} token was rejected. "
            "Replace it with a valid token with API read access."
        )
    return None


def format_error(error: ProviderError, provider: ProviderClient, context: str) -> str:
    message = f"[{provider.display_name}] {context}: {error.message}"
    if error.status_code is not None:
        message += f" (HTTP {error.status_code})"
    return message


class LoggingNotificationSink:
    """Logs failures; actionable ones at warning level with guidance."""

    def __init__(self, context: str = "Change request lookup failed"):
        self.context = context

    def notify(self, error: ProviderError, provider: ProviderClient) -> None:
        message = format_error(error, provider, self.context)
        if error.should_notify_user:
            guidance = guidance_for(error, provider)
            logger.warning(f"{message}. {guidance}" if guidance else message)
        else:
            logger.debug(message)
