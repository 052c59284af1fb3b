from voting_node.voting_runtime.eligibility import is_eligible
from voting_node.voting_runtime.models import Proposal


def _proposal(allowed):
    return Proposal(
        id="p1",
        creator="alice",
        title="t",
        description="",
        choices=["A", "B"],
        vote_counts=[0, 0],
        created_at=0.0,
        expires_at=10.0,
        allowed_voters=allowed,
    )


def test_open_proposal_accepts_anyone():
    assert is_eligible(_proposal([]), "anyone")


def test_restricted_proposal_accepts_members_only():
    p = _proposal(["V1", "V2"])
    assert is_eligible(p, "V1")
    assert is_eligible(p, "V2")
    assert not is_eligible(p, "V3")


def test_membership_is_exact_match():
    p = _proposal(["Wallet1"])
    assert not is_eligible(p, "wallet1")
