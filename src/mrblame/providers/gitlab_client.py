"""GitLab provider client (gitlab.com and self-managed instances)."""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from ..config import DEFAULT_GITLAB_URL, GITLAB_PROVIDER_ID, HttpConfig
from ..credentials import CredentialStore
from ..models import ChangeRequest, ChangeRequestStats
from .api_models import GITLAB_MERGE_REQUEST, GITLAB_MERGE_REQUEST_LIST
from .base_client import BaseProviderClient
from .selection import select_change_request

logger = logging.getLogger(__name__)


def encode_project_path(project_path: str) -> str:
    """URL-encode a project path for the ``/projects/:id`` segment.

    GitLab accepts the namespaced path in place of the numeric id when every
    slash is encoded: ``group/sub/project`` -> ``group%2Fsub%2Fproject``.
    """
    return quote(project_path, safe="")


class GitLabClient(BaseProviderClient):
    """Resolves commits to merge requests through the GitLab REST API v4."""

    provider_id = GITLAB_PROVIDER_ID
    display_name = "GitLab"
    brand_token = "gitlab"

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str = DEFAULT_GITLAB_URL,
        http_config: Optional[HttpConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, credentials, http_config, transport)

    def _auth_headers(self, token: str) -> Dict[str, str]:
        return {"PRIVATE-TOKEN": token, "Accept": "application/json"}

    def _project_url(self, host: str, project_path: str) -> str:
        return f"{host}/api/v4/projects/{encode_project_path(project_path)}"

    async def _fetch_change_request(
        self, host: str, project_path: str, commit_id: str, token: str
    ) -> Optional[ChangeRequest]:
        url = (
            f"{self._project_url(host, project_path)}"
            f"/repository/commits/{commit_id}/merge_requests"
        )
        data = await self._get_json(url, token)
        merge_requests = self._validate(GITLAB_MERGE_REQUEST_LIST, data)
        logger.debug(
            f"[GitLab] {len(merge_requests)} merge request(s) for {commit_id[:8]}"
        )
        return select_change_request([mr.to_change_request() for mr in merge_requests])

    async def _fetch_stats(
        self, host: str, project_path: str, number: int, token: str
    ) -> Optional[ChangeRequestStats]:
        url = f"{self._project_url(host, project_path)}/merge_requests/{number}"
        data = await self._get_json(url, token)
        merge_request = self._validate(GITLAB_MERGE_REQUEST, data)
        if merge_request.changes_count is None:
            return None
        return ChangeRequestStats(changes_count=merge_request.changes_count)
