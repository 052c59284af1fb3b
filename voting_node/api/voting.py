from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, StrictInt

from voting_node.voting_runtime.errors import VotingError
from voting_node.voting_runtime.models import ProposalView
from voting_node.voting_runtime.service import ProposalService

__all__ = [
    "router",
    "ProposalOut",
    "ProposalCreate",
    "VoteRequest",
    "FinalizeRequest",
]

router = APIRouter(prefix="/api/voting", tags=["voting"])


class ChoiceResultOut(BaseModel):
    index: int
    choice: str
    votes: int
    percentage: str
    is_winner: bool


class ProposalOut(BaseModel):
    id: str
    creator: str
    title: str
    description: str = ""
    choices: List[str]
    vote_counts: List[int]
    allowed_voters: List[str] = Field(default_factory=list)
    voters: List[str] = Field(default_factory=list)
    restricted: bool = False
    finalized: bool = False
    winner_index: Optional[int] = None
    status: str
    total_votes: int = 0
    results: List[ChoiceResultOut] = Field(default_factory=list)
    winner: Optional[Dict[str, Any]] = None
    created_at: float
    expires_at: float
    finalized_at: Optional[float] = None
    version: int
    voting_url: str = ""


class ProposalCreate(BaseModel):
    creator: str
    title: str
    description: str = ""
    choices: List[str]
    allowed_voters: Optional[List[str]] = None
    # unix seconds; omitted means the configured default duration
    expires_at: Optional[float] = None


class VoteRequest(BaseModel):
    voter: str
    choice_index: StrictInt
    signature: Optional[str] = None


class FinalizeRequest(BaseModel):
    caller: Optional[str] = None


def get_service(request: Request) -> ProposalService:
    return request.app.state.service


def _http_error(err: VotingError) -> HTTPException:
    return HTTPException(status_code=err.http_status, detail=err.to_dict())


def _out(view: ProposalView) -> ProposalOut:
    return ProposalOut(**view.to_dict())


@router.post("")
def create_proposal(payload: ProposalCreate, svc: ProposalService = Depends(get_service)):
    try:
        view = svc.create_proposal(
            creator=payload.creator,
            title=payload.title,
            description=payload.description,
            choices=payload.choices,
            allowed_voters=payload.allowed_voters,
            expires_at=payload.expires_at,
        )
    except VotingError as e:
        raise _http_error(e) from e
    return {"ok": True, "proposal": _out(view)}


@router.get("")
def list_proposals(svc: ProposalService = Depends(get_service)):
    return {"ok": True, "proposals": [_out(v) for v in svc.list_proposals()]}


@router.get("/{proposal_id}")
def get_proposal(proposal_id: str, svc: ProposalService = Depends(get_service)):
    try:
        view = svc.get_proposal(proposal_id)
    except VotingError as e:
        raise _http_error(e) from e
    return {"ok": True, "proposal": _out(view)}


@router.post("/{proposal_id}/vote")
def cast_vote(proposal_id: str, payload: VoteRequest, svc: ProposalService = Depends(get_service)):
    try:
        view = svc.cast_vote(proposal_id, payload.voter, payload.choice_index, signature=payload.signature)
    except VotingError as e:
        raise _http_error(e) from e
    return {"ok": True, "proposal": _out(view)}


@router.post("/{proposal_id}/finalize")
def finalize_proposal(
    proposal_id: str,
    payload: Optional[FinalizeRequest] = None,
    svc: ProposalService = Depends(get_service),
):
    caller = payload.caller if payload else None
    try:
        view = svc.finalize_proposal(proposal_id, caller=caller)
    except VotingError as e:
        raise _http_error(e) from e
    return {"ok": True, "proposal": _out(view)}
