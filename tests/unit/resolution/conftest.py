"""Fixtures for resolution engine tests."""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest

from mrblame.models import ChangeRequest, ChangeRequestState, LineAttribution
from mrblame.providers.errors import ProviderResult
from mrblame.remote.url_parser import parse_remote_url

COMMIT_ID = "d01a7c0493f2b3e4d5c6b7a8f9e0d1c2b3a4f5e6"


class FakeProvider:
    """In-memory provider that records every lookup it serves."""

    def __init__(
        self,
        provider_id: str = "gitlab",
        display_name: str = "GitLab",
        result: Optional[ProviderResult] = None,
        has_token: bool = True,
    ):
        self.provider_id = provider_id
        self.display_name = display_name
        self.result = result if result is not None else ProviderResult.ok(None)
        self.stats_result: ProviderResult = ProviderResult.ok(None)
        self.has_token = has_token
        self.gate: Optional[asyncio.Event] = None
        self.on_settle = None
        self.requests: List[Tuple[str, str, Optional[str]]] = []
        self.stats_requests: List[Tuple[str, int, Optional[str]]] = []
        self.resets = 0

    @property
    def calls(self) -> int:
        return len(self.requests)

    def has_credential(self) -> bool:
        return self.has_token

    def is_provider_url(self, remote_url: str) -> bool:
        return self.provider_id in remote_url

    def parse_remote_url(self, remote_url: str):
        return parse_remote_url(remote_url)

    def host_for(self, identity) -> str:
        return identity.host_url

    async def resolve_change_request(self, project_path, commit_id, host_override=None):
        self.requests.append((project_path, commit_id, host_override))
        if self.gate is not None:
            await self.gate.wait()
        if self.on_settle is not None:
            self.on_settle()
        return self.result

    async def fetch_change_request_stats(self, project_path, number, host_override=None):
        self.stats_requests.append((project_path, number, host_override))
        return self.stats_result

    def reset_notification_state(self) -> None:
        self.resets += 1


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def attribution() -> LineAttribution:
    return LineAttribution(
        commit_id=COMMIT_ID,
        author="Jane Doe",
        timestamp=datetime(2025, 7, 9, 15, 57, 39, tzinfo=timezone.utc),
        line_number=12,
        summary="Add login form",
    )


@pytest.fixture
def merged_request() -> ChangeRequest:
    return ChangeRequest(
        number=42,
        title="Add login form",
        url="https://gitlab.com/group/project/-/merge_requests/42",
        state=ChangeRequestState.MERGED,
        merged_at=datetime(2025, 7, 10, 8, 0, tzinfo=timezone.utc),
    )
