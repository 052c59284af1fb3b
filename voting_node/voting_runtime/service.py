from __future__ import annotations

"""
ProposalService — the operations exposed to callers.

Validates creation requests, wires the vote ledger and finalization engine
to one store, and answers every read with a freshly derived view (status,
totals, per-choice results). Domain errors propagate unchanged.
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from voting_node.config import default_config, get_frontend_base_url
from voting_node.storage.base import ProposalStore

from .errors import AlreadyFinalized, InvalidInput, InvalidSignature
from .finalization import FinalizationEngine
from .models import Proposal, ProposalView, build_view
from .signatures import verify_ballot
from .vote_ledger import VoteLedger

log = logging.getLogger(__name__)


def _new_proposal_id() -> str:
    return uuid.uuid4().hex


class ProposalService:
    def __init__(
        self,
        store: ProposalStore,
        cfg: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_proposal_id,
    ) -> None:
        self.store = store
        self.cfg = cfg or default_config()
        self.clock = clock
        self.id_factory = id_factory

        voting = self.cfg.get("voting", {})
        fin = self.cfg.get("finalization", {})
        self.max_choices = int(voting.get("max_choices", 10))
        self.max_choice_length = int(voting.get("max_choice_length", 64))
        self.default_duration_sec = float(voting.get("default_duration_sec", 7 * 24 * 60 * 60))
        self.finalize_on_read = bool(fin.get("finalize_on_read", False))
        self.require_signed_votes = bool(self.cfg.get("security", {}).get("require_signed_votes", False))
        self.frontend_base_url = get_frontend_base_url(self.cfg)

        max_attempts = int(voting.get("max_attempts", 5))
        self.ledger = VoteLedger(store, clock=clock, max_attempts=max_attempts)
        self.finalizer = FinalizationEngine(
            store,
            clock=clock,
            max_attempts=max_attempts,
            allow_creator_early=bool(fin.get("allow_creator_early", True)),
            strict_refinalize=bool(fin.get("strict_refinalize", False)),
        )

    def _view(self, proposal: Proposal) -> ProposalView:
        return build_view(proposal, self.clock(), self.frontend_base_url)

    # ------------------------
    # Create
    # ------------------------
    def _clean_choices(self, choices: Iterable[Any]) -> List[str]:
        if choices is None or isinstance(choices, (str, bytes)):
            raise InvalidInput("choices must be a list of labels")
        labels = [str(c).strip() for c in choices]
        if len(labels) < 2:
            raise InvalidInput("at least 2 choices are required")
        if len(labels) > self.max_choices:
            raise InvalidInput(f"at most {self.max_choices} choices are allowed")
        for label in labels:
            if not label:
                raise InvalidInput("choice labels must not be blank")
            if len(label) > self.max_choice_length:
                raise InvalidInput(f"choice labels must be {self.max_choice_length} characters or less")
        return labels

    @staticmethod
    def _clean_voters(allowed_voters: Optional[Iterable[Any]]) -> List[str]:
        if not allowed_voters:
            return []
        if isinstance(allowed_voters, (str, bytes)):
            raise InvalidInput("allowed_voters must be a list of identities")
        out: List[str] = []
        for v in allowed_voters:
            ident = str(v).strip()
            if ident and ident not in out:
                out.append(ident)
        return out

    def create_proposal(
        self,
        creator: str,
        title: str,
        description: str,
        choices: Iterable[Any],
        allowed_voters: Optional[Iterable[Any]] = None,
        expires_at: Optional[float] = None,
    ) -> ProposalView:
        creator = (creator or "").strip()
        title = (title or "").strip()
        if not creator:
            raise InvalidInput("creator identity is required")
        if not title:
            raise InvalidInput("title is required")

        labels = self._clean_choices(choices)
        voters = self._clean_voters(allowed_voters)

        now = self.clock()
        expiry = now + self.default_duration_sec if expires_at is None else float(expires_at)
        if expiry <= now:
            raise InvalidInput("expires_at must be after the creation time")

        proposal = Proposal(
            id=self.id_factory(),
            creator=creator,
            title=title,
            description=description or "",
            choices=labels,
            vote_counts=[0] * len(labels),
            created_at=now,
            expires_at=expiry,
            allowed_voters=voters,
        )
        self.store.create(proposal)
        log.info(
            "proposal %s created by %s with %d choices (%s)",
            proposal.id, creator, len(labels), "restricted" if voters else "public",
        )
        return self._view(proposal)

    # ------------------------
    # Read
    # ------------------------
    def _read_through(self, proposal: Proposal) -> Proposal:
        if not self.finalize_on_read or proposal.finalized or not proposal.is_expired(self.clock()):
            return proposal
        try:
            return self.finalizer.finalize(proposal.id)
        except AlreadyFinalized:
            # another writer finalized it first; its result is the answer
            return self.store.get(proposal.id)

    def get_proposal(self, proposal_id: str) -> ProposalView:
        return self._view(self._read_through(self.store.get(proposal_id)))

    def list_proposals(self) -> List[ProposalView]:
        return [self._view(self._read_through(p)) for p in self.store.list()]

    # ------------------------
    # Mutations
    # ------------------------
    def cast_vote(
        self,
        proposal_id: str,
        voter: str,
        choice_index: int,
        signature: Optional[str] = None,
    ) -> ProposalView:
        if self.require_signed_votes:
            # same failure ordering as unsigned votes; the signature is checked last
            self.ledger.precheck(proposal_id, voter, choice_index)
            if not signature:
                raise InvalidSignature("a signed ballot is required")
            if not verify_ballot(proposal_id, (voter or "").strip(), choice_index, signature):
                raise InvalidSignature("ballot signature does not match the voter identity")
        return self._view(self.ledger.cast_vote(proposal_id, voter, choice_index))

    def finalize_proposal(self, proposal_id: str, caller: Optional[str] = None) -> ProposalView:
        return self._view(self.finalizer.finalize(proposal_id, caller=caller))

    def sweep_expired(self) -> List[str]:
        return self.finalizer.sweep_expired()
