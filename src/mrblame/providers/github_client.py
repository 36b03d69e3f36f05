"""GitHub provider client (github.com and GitHub Enterprise)."""

import logging
import re
from typing import Dict, Optional
from urllib.parse import quote, urlparse

import httpx

from ..config import DEFAULT_GITHUB_URL, GITHUB_PROVIDER_ID, HttpConfig
from ..credentials import CredentialStore
from ..models import ChangeRequest, ChangeRequestStats
from .api_models import GITHUB_COMMIT, GITHUB_PULL_REQUEST, GITHUB_PULL_REQUEST_LIST
from .base_client import BaseProviderClient
from .errors import ProviderClientError
from .selection import select_change_request

logger = logging.getLogger(__name__)

# Squash merges append "(#123)"; merge commits read "Merge pull request #123 from ..."
PULL_NUMBER_PATTERNS = (
    re.compile(r"\(#(\d+)\)"),
    re.compile(r"pull request #(\d+)", re.IGNORECASE),
)


def api_url_for(host: str) -> str:
    """Convert a GitHub web host to its REST API root.

    ``https://github.com`` -> ``https://api.github.com``;
    ``https://github.example.com`` -> ``https://api.github.example.com``.
    Hosts that already start with ``api.`` are returned unchanged.
    """
    parsed = urlparse(host)
    hostname = (parsed.hostname or "").lower()
    if not hostname:
        return host.rstrip("/")
    if hostname == "github.com":
        return "https://api.github.com"
    if hostname.startswith("api."):
        return f"{parsed.scheme or 'https'}://{parsed.netloc}".rstrip("/")
    return f"https://api.{hostname}"


def encode_repo_path(project_path: str) -> str:
    """Percent-encode ``owner/repo`` segment by segment for ``/repos/{owner}/{repo}``."""
    return "/".join(quote(segment, safe="") for segment in project_path.split("/"))


def extract_pull_number(message: str) -> Optional[int]:
    """Find the pull request number GitHub writes into merge commit messages."""
    for pattern in PULL_NUMBER_PATTERNS:
        match = pattern.search(message or "")
        if match:
            return int(match.group(1))
    return None


class GitHubClient(BaseProviderClient):
    """Resolves commits to pull requests through the GitHub REST API.

    ``/commits/{sha}/pulls`` only knows about pull requests whose head or merge
    commit is the given SHA, so squash-merged work is often missing from it.
    When it comes back empty the client reads the commit message and follows a
    ``(#123)`` or ``Merge pull request #123`` reference instead.
    """

    provider_id = GITHUB_PROVIDER_ID
    display_name = "GitHub"
    brand_token = "github"

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str = DEFAULT_GITHUB_URL,
        http_config: Optional[HttpConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, credentials, http_config, transport)

    def _auth_headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
        }

    def _repo_url(self, host: str, project_path: str) -> str:
        return f"{api_url_for(host)}/repos/{encode_repo_path(project_path)}"

    async def _fetch_change_request(
        self, host: str, project_path: str, commit_id: str, token: str
    ) -> Optional[ChangeRequest]:
        repo_url = self._repo_url(host, project_path)
        data = await self._get_json(f"{repo_url}/commits/{commit_id}/pulls", token)
        pulls = self._validate(GITHUB_PULL_REQUEST_LIST, data)
        if pulls:
            return select_change_request([pr.to_change_request() for pr in pulls])

        number = await self._pull_number_from_commit(repo_url, commit_id, token)
        if number is None:
            logger.debug(f"[GitHub] No pull request reference in {commit_id[:8]}")
            return None
        return await self._fetch_pull_request(repo_url, number, token)

    async def _pull_number_from_commit(
        self, repo_url: str, commit_id: str, token: str
    ) -> Optional[int]:
        try:
            data = await self._get_json(f"{repo_url}/commits/{commit_id}", token)
            commit = self._validate(GITHUB_COMMIT, data)
        except ProviderClientError as e:
            logger.warning(f"[GitHub] Failed to read commit message of {commit_id[:8]}: {e}")
            return None
        return extract_pull_number(commit.commit.message)

    async def _fetch_pull_request(
        self, repo_url: str, number: int, token: str
    ) -> Optional[ChangeRequest]:
        try:
            data = await self._get_json(f"{repo_url}/pulls/{number}", token)
            pull = self._validate(GITHUB_PULL_REQUEST, data)
        except ProviderClientError as e:
            logger.warning(f"[GitHub] Failed to fetch PR #{number}: {e}")
            return None
        return pull.to_change_request()

    async def _fetch_stats(
        self, host: str, project_path: str, number: int, token: str
    ) -> Optional[ChangeRequestStats]:
        data = await self._get_json(
            f"{self._repo_url(host, project_path)}/pulls/{number}", token
        )
        return self._validate(GITHUB_PULL_REQUEST, data).to_change_request().stats
