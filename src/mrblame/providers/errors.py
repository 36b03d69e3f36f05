"""Typed provider failures and the tagged result returned by provider clients."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ProviderErrorKind(str, Enum):
    """Failure classes a provider lookup can end in."""

    NO_CREDENTIAL = "no_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


# Kinds the user can act on (configure or replace a token)
NOTIFIABLE_KINDS = frozenset(
    {ProviderErrorKind.NO_CREDENTIAL, ProviderErrorKind.INVALID_CREDENTIAL}
)


@dataclass(frozen=True)
class ProviderError:
    """Failure description handed to callers and the notification sink."""

    kind: ProviderErrorKind
    message: str
    status_code: Optional[int] = None
    should_notify_user: bool = False


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Tagged success/failure result of a provider operation.

    A successful result may carry ``None`` as its value, which means the
    provider answered and there is nothing to report (for example no change
    request for the commit).
    """

    success: bool
    value: Optional[T] = None
    error: Optional[ProviderError] = None

    @classmethod
    def ok(cls, value: Optional[T]) -> "ProviderResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: ProviderError) -> "ProviderResult[T]":
        return cls(success=False, error=error)


class ProviderClientError(Exception):
    """Base exception for errors inside provider HTTP calls."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderAPIError(ProviderClientError):
    """Raised when a provider answers with a non-2xx status."""

    pass


class ProviderNetworkError(ProviderClientError):
    """Raised when the request never got a response (DNS, TLS, timeouts...)."""

    pass


class ProviderPayloadError(ProviderClientError):
    """Raised when a 2xx response body is not the expected JSON shape."""

    pass
