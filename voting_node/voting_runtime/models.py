from __future__ import annotations

"""
Proposal records and the read model derived from them.

The stored ``Proposal`` only holds authoritative fields. Anything that can
drift (status, total votes, percentages, winner details) is recomputed by
``build_view`` on every read.
"""

import copy
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ProposalStatus(str, Enum):
    OPEN = "open"
    EXPIRED = "expired"
    FINALIZED = "finalized"


@dataclass
class Proposal:
    id: str
    creator: str
    title: str
    description: str
    choices: List[str]
    vote_counts: List[int]
    created_at: float
    expires_at: float
    allowed_voters: List[str] = field(default_factory=list)
    voters: List[str] = field(default_factory=list)
    finalized: bool = False
    winner_index: Optional[int] = None
    finalized_at: Optional[float] = None
    version: int = 1

    # ------------------------
    # Derived helpers
    # ------------------------
    @property
    def restricted(self) -> bool:
        return bool(self.allowed_voters)

    @property
    def total_votes(self) -> int:
        return sum(self.vote_counts)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def status_at(self, now: float) -> ProposalStatus:
        if self.finalized:
            return ProposalStatus.FINALIZED
        if self.is_expired(now):
            return ProposalStatus.EXPIRED
        return ProposalStatus.OPEN

    # ------------------------
    # Serialization
    # ------------------------
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Proposal":
        winner = raw.get("winner_index")
        finalized_at = raw.get("finalized_at")
        return cls(
            id=str(raw["id"]),
            creator=str(raw.get("creator", "")),
            title=str(raw.get("title", "")),
            description=str(raw.get("description", "")),
            choices=[str(c) for c in raw.get("choices", [])],
            vote_counts=[int(c) for c in raw.get("vote_counts", [])],
            created_at=float(raw.get("created_at", 0.0)),
            expires_at=float(raw.get("expires_at", 0.0)),
            allowed_voters=[str(v) for v in raw.get("allowed_voters") or []],
            voters=[str(v) for v in raw.get("voters") or []],
            finalized=bool(raw.get("finalized", False)),
            winner_index=None if winner is None else int(winner),
            finalized_at=None if finalized_at is None else float(finalized_at),
            version=int(raw.get("version", 1)),
        )

    def clone(self) -> "Proposal":
        return copy.deepcopy(self)


def pick_winner(vote_counts: List[int]) -> int:
    """
    Index of the highest count. Ties go to the lowest index, so a proposal
    with no votes at all resolves to choice 0.
    """
    if not vote_counts:
        raise ValueError("vote_counts must not be empty")
    best = 0
    for idx, count in enumerate(vote_counts):
        if count > vote_counts[best]:
            best = idx
    return best


# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------


@dataclass
class ChoiceResult:
    index: int
    choice: str
    votes: int
    percentage: str
    is_winner: bool


@dataclass
class ProposalView:
    id: str
    creator: str
    title: str
    description: str
    choices: List[str]
    vote_counts: List[int]
    allowed_voters: List[str]
    voters: List[str]
    restricted: bool
    finalized: bool
    winner_index: Optional[int]
    status: ProposalStatus
    total_votes: int
    results: List[ChoiceResult]
    winner: Optional[Dict[str, Any]]
    created_at: float
    expires_at: float
    finalized_at: Optional[float]
    version: int
    voting_url: str

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["status"] = self.status.value
        return out


def _percentage(votes: int, total: int) -> str:
    if total <= 0:
        return "0.00"
    return f"{votes * 100.0 / total:.2f}"


def build_view(proposal: Proposal, now: float, frontend_base_url: str = "") -> ProposalView:
    total = proposal.total_votes
    winner_index = proposal.winner_index
    results = [
        ChoiceResult(
            index=idx,
            choice=choice,
            votes=proposal.vote_counts[idx],
            percentage=_percentage(proposal.vote_counts[idx], total),
            is_winner=(winner_index == idx),
        )
        for idx, choice in enumerate(proposal.choices)
    ]

    winner = None
    if winner_index is not None:
        winner = {
            "index": winner_index,
            "choice": proposal.choices[winner_index],
            "votes": proposal.vote_counts[winner_index],
        }

    base = (frontend_base_url or "").rstrip("/")
    return ProposalView(
        id=proposal.id,
        creator=proposal.creator,
        title=proposal.title,
        description=proposal.description,
        choices=list(proposal.choices),
        vote_counts=list(proposal.vote_counts),
        allowed_voters=list(proposal.allowed_voters),
        voters=list(proposal.voters),
        restricted=proposal.restricted,
        finalized=proposal.finalized,
        winner_index=winner_index,
        status=proposal.status_at(now),
        total_votes=total,
        results=results,
        winner=winner,
        created_at=proposal.created_at,
        expires_at=proposal.expires_at,
        finalized_at=proposal.finalized_at,
        version=proposal.version,
        voting_url=f"{base}/vote/{proposal.id}",
    )
