"""Core value types shared by the blame parser, providers and resolution engine."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class ChangeRequestState(str, Enum):
    """Normalized lifecycle state of a merge/pull request."""

    MERGED = "merged"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class LineAttribution:
    """Blame information for a single line of the current file revision.

    Attributes:
        commit_id: Full or abbreviated commit SHA (boundary marker stripped)
        author: Author name, "Unknown" when the blame output had none
        timestamp: Author timestamp
        line_number: Destination line number (1-based) in the current file
        author_email: Author e-mail without angle brackets, may be empty
        summary: First line of the commit message, may be empty
    """

    commit_id: str
    author: str
    timestamp: datetime
    line_number: int
    author_email: str = ""
    summary: str = ""

    @property
    def short_id(self) -> str:
        return self.commit_id[:8]


@dataclass(frozen=True)
class RemoteIdentity:
    """Host and project path extracted from a git remote URL."""

    host_url: str
    project_path: str

    @property
    def hostname(self) -> str:
        return (urlparse(self.host_url).hostname or "").lower()


@dataclass(frozen=True)
class ChangeRequestStats:
    """Change statistics for a merge/pull request.

    GitHub reports additions, deletions and changed files; GitLab only reports
    an aggregate changes count, which can be a capped string such as "1000+".
    """

    additions: Optional[int] = None
    deletions: Optional[int] = None
    changed_files: Optional[int] = None
    changes_count: Optional[str] = None


@dataclass(frozen=True)
class ChangeRequest:
    """Provider-agnostic merge request (GitLab) or pull request (GitHub)."""

    number: int
    title: str
    url: str
    state: ChangeRequestState
    merged_at: Optional[datetime] = None
    stats: Optional[ChangeRequestStats] = None

    @property
    def is_merged(self) -> bool:
        return self.state == ChangeRequestState.MERGED and self.merged_at is not None

    def with_stats(self, stats: ChangeRequestStats) -> "ChangeRequest":
        return replace(self, stats=stats)


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one line to its change request.

    The three observable states are:

    - resolved: ``checked`` is True; ``change_request`` may still be None when
      the provider confirmed there is no change request for the commit
    - in progress: ``loading`` is True, another lookup for the commit is running
    - unresolved: neither flag set; nothing is known yet (missing configuration,
      a provider failure or an abandoned lookup)
    """

    change_request: Optional[ChangeRequest] = None
    checked: bool = False
    loading: bool = False

    @classmethod
    def resolved(cls, change_request: Optional[ChangeRequest]) -> "ResolutionOutcome":
        return cls(change_request=change_request, checked=True)

    @classmethod
    def in_progress(cls) -> "ResolutionOutcome":
        return cls(loading=True)

    @classmethod
    def unresolved(cls) -> "ResolutionOutcome":
        return cls()


@dataclass
class CacheEntry:
    """Cached change request (or confirmed absence) with its expiry time."""

    value: Optional[ChangeRequest]
    expires_at: float
