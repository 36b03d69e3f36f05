"""In-memory access token store for hosting providers.

Secret persistence is handled elsewhere (keyring, editor secret storage,
environment); this store only holds the tokens for the session and tells
interested parties when a provider's token changes.
"""

import logging
import os
from typing import Callable, Dict, List, Mapping, Optional

from .config import GITHUB_PROVIDER_ID, GITLAB_PROVIDER_ID, Config

logger = logging.getLogger(__name__)

CredentialListener = Callable[[str], None]


class CredentialStore:
    """Per-provider token storage with change notification."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self._tokens: Dict[str, str] = dict(tokens or {})
        self._listeners: List[CredentialListener] = []

    def get_token(self, provider_id: str) -> Optional[str]:
        return self._tokens.get(provider_id)

    def has_token(self, provider_id: str) -> bool:
        return bool(self._tokens.get(provider_id))

    def set_token(self, provider_id: str, token: Optional[str]) -> None:
        """Store (or, with an empty value, remove) a provider token."""
        if token:
            self._tokens[provider_id] = token
        else:
            self._tokens.pop(provider_id, None)
        logger.debug(f"Credential changed for provider '{provider_id}'")
        self._notify(provider_id)

    def delete_token(self, provider_id: str) -> None:
        self.set_token(provider_id, None)

    def subscribe(self, listener: CredentialListener) -> Callable[[], None]:
        """Register a callback invoked with the provider id on every change.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load_from_environment(
        self, config: Config, environ: Optional[Mapping[str, str]] = None
    ) -> None:
        """Load tokens for every configured provider from environment variables."""
        env = os.environ if environ is None else environ
        for provider_id, provider_config in (
            (GITLAB_PROVIDER_ID, config.gitlab),
            (GITHUB_PROVIDER_ID, config.github),
        ):
            token = env.get(provider_config.token_env_var)
            if token:
                self.set_token(provider_id, token.strip())
            else:
                logger.debug(
                    f"No token for {provider_id} in ${provider_config.token_env_var}"
                )

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, provider_id: str) -> None:
        for listener in list(self._listeners):
            listener(provider_id)
