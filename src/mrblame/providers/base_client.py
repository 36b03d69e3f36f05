"""Provider client contract and shared HTTP plumbing.

Every hosting provider (GitLab, GitHub, ...) implements :class:`ProviderClient`.
The registry and the resolution engine only depend on that protocol;
:class:`BaseProviderClient` holds the HTTP session, credential lookup,
status-code mapping and notification bookkeeping shared by the concrete
clients, while host-specific lookup logic stays in each subclass.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, Set, TypeVar, runtime_checkable

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import HttpConfig
from ..credentials import CredentialStore
from ..models import ChangeRequest, ChangeRequestStats, RemoteIdentity
from ..remote.url_parser import (
    configured_git_host,
    host_matches_provider,
    parse_remote_url,
)
from .errors import (
    NOTIFIABLE_KINDS,
    ProviderAPIError,
    ProviderClientError,
    ProviderError,
    ProviderErrorKind,
    ProviderNetworkError,
    ProviderPayloadError,
    ProviderResult,
)

logger = logging.getLogger(__name__)

M = TypeVar("M")


@runtime_checkable
class ProviderClient(Protocol):
    """Capabilities the resolution engine needs from a hosting provider."""

    provider_id: str
    display_name: str

    def has_credential(self) -> bool: ...

    def is_provider_url(self, remote_url: str) -> bool: ...

    def parse_remote_url(self, remote_url: str) -> Optional[RemoteIdentity]: ...

    def host_for(self, identity: RemoteIdentity) -> str: ...

    async def resolve_change_request(
        self, project_path: str, commit_id: str, host_override: Optional[str] = None
    ) -> ProviderResult[ChangeRequest]: ...

    async def fetch_change_request_stats(
        self, project_path: str, number: int, host_override: Optional[str] = None
    ) -> ProviderResult[ChangeRequestStats]: ...

    def reset_notification_state(self) -> None: ...


class BaseProviderClient(ABC):
    """Shared implementation for REST-based provider clients."""

    provider_id: str = ""
    display_name: str = ""
    brand_token: str = ""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        http_config: Optional[HttpConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize provider client.

        Args:
            base_url: Web URL of the provider instance (self-hosted or SaaS)
            credentials: Token store; token changes reset notification state
            http_config: Timeouts and TLS settings
            transport: Optional httpx transport (used for testing)
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self._http_config = http_config or HttpConfig()
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self._notified_kinds: Set[ProviderErrorKind] = set()
        self._unsubscribe = credentials.subscribe(self._on_credential_changed)

    # ------------------------------------------------------------------
    # Identity and remote matching
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self.credentials.get_token(self.provider_id)

    def has_credential(self) -> bool:
        return self.credentials.has_token(self.provider_id)

    def is_provider_url(self, remote_url: str) -> bool:
        return host_matches_provider(remote_url, self.brand_token, self.base_url)

    def parse_remote_url(self, remote_url: str) -> Optional[RemoteIdentity]:
        if not self.is_provider_url(remote_url):
            return None
        return parse_remote_url(remote_url)

    def host_for(self, identity: RemoteIdentity) -> str:
        """Web host to query for a remote.

        The configured base URL wins when it names the remote's host, since it
        carries the right scheme and port; otherwise the remote's own host is used.
        """
        if identity.hostname and identity.hostname == configured_git_host(self.base_url):
            return self.base_url
        return identity.host_url

    # ------------------------------------------------------------------
    # Notification state
    # ------------------------------------------------------------------

    def reset_notification_state(self) -> None:
        """Allow the next notifiable failure of each kind to reach the user again."""
        self._notified_kinds.clear()

    def _on_credential_changed(self, provider_id: str) -> None:
        if provider_id == self.provider_id:
            logger.debug(f"[{self.display_name}] Credential changed, resetting notifications")
            self.reset_notification_state()

    def _make_error(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ) -> ProviderError:
        should_notify = kind in NOTIFIABLE_KINDS and kind not in self._notified_kinds
        if should_notify:
            self._notified_kinds.add(kind)
        return ProviderError(
            kind=kind,
            message=message,
            status_code=status_code,
            should_notify_user=should_notify,
        )

    def _error_for_status(self, status_code: int) -> ProviderError:
        """Map a non-2xx HTTP status to a typed provider error."""
        if status_code in (401, 403):
            return self._make_error(
                ProviderErrorKind.INVALID_CREDENTIAL,
                "Invalid or expired token",
                status_code,
            )
        if status_code == 404:
            return self._make_error(
                ProviderErrorKind.NOT_FOUND, "Project or commit not found", status_code
            )
        if status_code == 429:
            return self._make_error(
                ProviderErrorKind.RATE_LIMITED, "API rate limited", status_code
            )
        return self._make_error(
            ProviderErrorKind.UNKNOWN, f"API error {status_code}", status_code
        )

    def _error_from_exception(self, error: ProviderClientError) -> ProviderError:
        if isinstance(error, ProviderAPIError) and error.status_code is not None:
            return self._error_for_status(error.status_code)
        if isinstance(error, ProviderNetworkError):
            return self._make_error(ProviderErrorKind.NETWORK_ERROR, str(error))
        return self._make_error(
            ProviderErrorKind.UNKNOWN, str(error), error.status_code
        )

    def _no_credential_error(self) -> ProviderError:
        return self._make_error(
            ProviderErrorKind.NO_CREDENTIAL, "No Personal Access Token configured"
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the HTTP session."""
        if self._session is None or self._session.is_closed:
            timeouts = httpx.Timeout(
                connect=self._http_config.connect_timeout,
                read=self._http_config.read_timeout,
                write=10.0,
                pool=5.0,
            )
            limits = httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            )
            self._session = httpx.AsyncClient(
                timeout=timeouts,
                limits=limits,
                follow_redirects=True,
                verify=self._http_config.verify_ssl,
                transport=self._transport,
            )
        return self._session

    @abstractmethod
    def _auth_headers(self, token: str) -> Dict[str, str]:
        """Authentication and content negotiation headers for API calls."""

    async def _get_json(self, url: str, token: str) -> Any:
        """GET a JSON document.

        Raises:
            ProviderNetworkError: If no response was received, or the request
                could not be built or sent
            ProviderAPIError: If the response status is not 2xx
            ProviderPayloadError: If the body is not JSON
        """
        logger.debug(f"[{self.display_name}] GET {url}")
        try:
            response = await self.session.get(url, headers=self._auth_headers(token))
        except httpx.HTTPError as e:
            logger.error(f"[{self.display_name}] API request failed: {e}")
            raise ProviderNetworkError(str(e) or type(e).__name__)
        except Exception as e:
            # e.g. a token that cannot be encoded into a header
            logger.error(f"[{self.display_name}] Unexpected error sending request: {e}")
            raise ProviderNetworkError(f"Unexpected error: {e}")

        if not response.is_success:
            logger.debug(
                f"[{self.display_name}] {url} answered HTTP {response.status_code}"
            )
            raise ProviderAPIError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderPayloadError(
                f"Invalid JSON from {self.display_name}: {e}"
            )

    def _validate(self, adapter: "TypeAdapter[M]", data: Any) -> M:
        """Validate a decoded payload, raising ProviderPayloadError on mismatch."""
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise ProviderPayloadError(
                f"Unexpected response shape from {self.display_name}: "
                f"{e.error_count()} validation error(s)"
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def resolve_change_request(
        self, project_path: str, commit_id: str, host_override: Optional[str] = None
    ) -> ProviderResult[ChangeRequest]:
        """Find the change request that landed a commit.

        Args:
            project_path: Project path such as ``group/subgroup/project``
            commit_id: Commit SHA
            host_override: Web host to query instead of the configured base URL

        Returns:
            Success with the change request (or None when there is none), or a
            typed failure; expected failures are never raised
        """
        token = self.token
        if not token:
            return ProviderResult.fail(self._no_credential_error())

        host = (host_override or self.base_url).rstrip("/")
        try:
            change_request = await self._fetch_change_request(
                host, project_path, commit_id, token
            )
        except ProviderClientError as e:
            return ProviderResult.fail(self._error_from_exception(e))
        return ProviderResult.ok(change_request)

    async def fetch_change_request_stats(
        self, project_path: str, number: int, host_override: Optional[str] = None
    ) -> ProviderResult[ChangeRequestStats]:
        """Load change statistics for a change request by number."""
        token = self.token
        if not token:
            return ProviderResult.fail(self._no_credential_error())

        host = (host_override or self.base_url).rstrip("/")
        try:
            stats = await self._fetch_stats(host, project_path, number, token)
        except ProviderClientError as e:
            return ProviderResult.fail(self._error_from_exception(e))
        return ProviderResult.ok(stats)

    @abstractmethod
    async def _fetch_change_request(
        self, host: str, project_path: str, commit_id: str, token: str
    ) -> Optional[ChangeRequest]:
        """Provider-specific lookup; raises ProviderClientError subclasses."""

    @abstractmethod
    async def _fetch_stats(
        self, host: str, project_path: str, number: int, token: str
    ) -> Optional[ChangeRequestStats]:
        """Provider-specific stats lookup; raises ProviderClientError subclasses."""

    async def close(self) -> None:
        """Close the HTTP session and stop listening for credential changes."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()
        self._unsubscribe()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
