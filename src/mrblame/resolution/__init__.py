"""Resolution of blamed lines to change requests."""

from .cache import MISSING, ResolutionCache, cache_key
from .cancellation import CancellationToken
from .coalescer import RequestCoalescer
from .engine import ResolutionEngine
from .notifications import LoggingNotificationSink, NotificationSink
from .signals import RepositoryEvents

__all__ = [
    "MISSING",
    "CancellationToken",
    "LoggingNotificationSink",
    "NotificationSink",
    "RepositoryEvents",
    "RequestCoalescer",
    "ResolutionCache",
    "ResolutionEngine",
    "cache_key",
]
