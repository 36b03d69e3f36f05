"""Response models for the GitLab and GitHub REST endpoints we call.

Only the fields mrblame reads are declared; everything else in the payloads is
ignored.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from ..models import ChangeRequest, ChangeRequestState, ChangeRequestStats

GITLAB_STATE_MAP = {
    "merged": ChangeRequestState.MERGED,
    "opened": ChangeRequestState.OPEN,
    "open": ChangeRequestState.OPEN,
    "closed": ChangeRequestState.CLOSED,
    "locked": ChangeRequestState.CLOSED,
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GitLabMergeRequest(BaseModel):
    """Item of ``/projects/:id/repository/commits/:sha/merge_requests``."""

    iid: int = Field(..., description="Project-scoped merge request number")
    title: str = Field(default="", description="Merge request title")
    web_url: str = Field(default="", description="Browser URL of the merge request")
    state: str = Field(default="opened", description="opened, closed, locked or merged")
    merged_at: Optional[datetime] = Field(None, description="Merge timestamp")
    changes_count: Optional[str] = Field(
        None, description="Changed lines count, only on the single MR endpoint"
    )

    @field_validator("merged_at")
    @classmethod
    def merged_at_is_aware(cls, v):
        return _as_utc(v)

    @field_validator("changes_count", mode="before")
    @classmethod
    def changes_count_as_text(cls, v):
        return None if v is None else str(v)

    def to_change_request(self) -> ChangeRequest:
        stats = None
        if self.changes_count is not None:
            stats = ChangeRequestStats(changes_count=self.changes_count)
        return ChangeRequest(
            number=self.iid,
            title=self.title,
            url=self.web_url,
            state=GITLAB_STATE_MAP.get(self.state.lower(), ChangeRequestState.CLOSED),
            merged_at=self.merged_at,
            stats=stats,
        )


class GitHubPullRequest(BaseModel):
    """Item of ``/repos/:owner/:repo/commits/:sha/pulls`` or ``/pulls/:number``."""

    number: int = Field(..., description="Pull request number")
    title: str = Field(default="", description="Pull request title")
    html_url: str = Field(default="", description="Browser URL of the pull request")
    state: str = Field(default="open", description="open or closed")
    merged_at: Optional[datetime] = Field(None, description="Merge timestamp")
    additions: Optional[int] = Field(None, description="Lines added")
    deletions: Optional[int] = Field(None, description="Lines deleted")
    changed_files: Optional[int] = Field(None, description="Files changed")

    @field_validator("merged_at")
    @classmethod
    def merged_at_is_aware(cls, v):
        return _as_utc(v)

    def to_change_request(self) -> ChangeRequest:
        # GitHub has no "merged" state; a closed pull with a merge time was merged
        if self.merged_at is not None:
            state = ChangeRequestState.MERGED
        elif self.state.lower() == "open":
            state = ChangeRequestState.OPEN
        else:
            state = ChangeRequestState.CLOSED

        stats = None
        if any(
            value is not None
            for value in (self.additions, self.deletions, self.changed_files)
        ):
            stats = ChangeRequestStats(
                additions=self.additions,
                deletions=self.deletions,
                changed_files=self.changed_files,
            )
        return ChangeRequest(
            number=self.number,
            title=self.title,
            url=self.html_url,
            state=state,
            merged_at=self.merged_at,
            stats=stats,
        )


class GitHubCommitDetails(BaseModel):
    message: str = ""


class GitHubCommit(BaseModel):
    """Subset of ``/repos/:owner/:repo/commits/:sha``."""

    sha: str = ""
    commit: GitHubCommitDetails = Field(default_factory=GitHubCommitDetails)


GITLAB_MERGE_REQUEST_LIST = TypeAdapter(List[GitLabMergeRequest])
GITHUB_PULL_REQUEST_LIST = TypeAdapter(List[GitHubPullRequest])
GITLAB_MERGE_REQUEST = TypeAdapter(GitLabMergeRequest)
GITHUB_PULL_REQUEST = TypeAdapter(GitHubPullRequest)
GITHUB_COMMIT = TypeAdapter(GitHubCommit)
