"""Tests for choosing one change request among provider candidates."""

from datetime import datetime, timezone

from mrblame.models import ChangeRequest, ChangeRequestState
from mrblame.providers.selection import select_change_request

D1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
D2 = datetime(2024, 2, 1, tzinfo=timezone.utc)
D3 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _merged(number, merged_at):
    return ChangeRequest(
        number=number,
        title=f"MR {number}",
        url=f"https://example.com/{number}",
        state=ChangeRequestState.MERGED,
        merged_at=merged_at,
    )


def _open(number):
    return ChangeRequest(
        number=number,
        title=f"MR {number}",
        url=f"https://example.com/{number}",
        state=ChangeRequestState.OPEN,
    )


class TestSelectChangeRequest:
    def test_earliest_merged_wins(self):
        candidates = [_merged(2, D2), _merged(1, D1), _merged(3, D3)]

        assert select_change_request(candidates).number == 1

    def test_first_candidate_without_merged(self):
        assert select_change_request([_open(10), _open(11)]).number == 10

    def test_merged_preferred_over_open(self):
        assert select_change_request([_open(10), _merged(11, D3)]).number == 11

    def test_equal_merge_times_keep_provider_order(self):
        assert select_change_request([_merged(5, D1), _merged(6, D1)]).number == 5

    def test_merged_state_without_timestamp_is_not_merged(self):
        no_timestamp = ChangeRequest(
            number=7, title="", url="", state=ChangeRequestState.MERGED
        )

        assert select_change_request([no_timestamp, _merged(8, D2)]).number == 8
        assert select_change_request([no_timestamp]).number == 7

    def test_empty(self):
        assert select_change_request([]) is None
