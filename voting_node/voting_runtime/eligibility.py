from __future__ import annotations

from .models import Proposal


def is_eligible(proposal: Proposal, voter: str) -> bool:
    """
    Open proposals (no allow-list) accept anyone. Restricted proposals accept
    exact members of ``allowed_voters`` only.
    """
    if not proposal.allowed_voters:
        return True
    return voter in proposal.allowed_voters
