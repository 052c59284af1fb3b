from __future__ import annotations

import threading
from typing import Dict, List

from voting_node.voting_runtime.errors import DuplicateId, NotFound, VersionConflict
from voting_node.voting_runtime.models import Proposal

from .base import Mutator, ProposalStore


class MemoryProposalStore(ProposalStore):
    """
    In-process store. The lock only covers the compare-and-swap itself;
    callers still run their read/check/commit cycle optimistically.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, Proposal] = {}

    def create(self, proposal: Proposal) -> str:
        with self._lock:
            if proposal.id in self._records:
                raise DuplicateId(f"proposal {proposal.id} already exists")
            self._records[proposal.id] = proposal.clone()
            return proposal.id

    def get(self, proposal_id: str) -> Proposal:
        with self._lock:
            rec = self._records.get(proposal_id)
            if rec is None:
                raise NotFound(f"proposal {proposal_id} not found")
            return rec.clone()

    def update(self, proposal_id: str, expected_version: int, mutator: Mutator) -> Proposal:
        with self._lock:
            current = self._records.get(proposal_id)
            if current is None:
                raise NotFound(f"proposal {proposal_id} not found")
            if current.version != expected_version:
                raise VersionConflict(
                    f"proposal {proposal_id} is at version {current.version}, expected {expected_version}"
                )
            nxt = current.clone()
            mutator(nxt)
            nxt.id = current.id
            nxt.version = current.version + 1
            self._records[proposal_id] = nxt
            return nxt.clone()

    def list(self) -> List[Proposal]:
        with self._lock:
            recs = [r.clone() for r in self._records.values()]
        recs.sort(key=lambda p: (p.created_at, p.id))
        return recs
