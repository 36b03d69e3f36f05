"""Choosing one change request out of the candidates a provider returns."""

from typing import Optional, Sequence

from ..models import ChangeRequest


def select_change_request(
    candidates: Sequence[ChangeRequest],
) -> Optional[ChangeRequest]:
    """Pick the change request that landed a commit.

    The earliest merged candidate wins: a commit cherry-picked or re-merged
    through later requests was introduced by the first one. Without merged
    candidates the provider's first candidate is returned.

    Args:
        candidates: Change requests in provider-returned order

    Returns:
        The selected change request, or None for an empty list
    """
    if not candidates:
        return None

    merged = [candidate for candidate in candidates if candidate.is_merged]
    if merged:
        # sorted() is stable, so equal merge times keep provider order
        return sorted(merged, key=lambda candidate: candidate.merged_at)[0]

    return candidates[0]
