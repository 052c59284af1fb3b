from __future__ import annotations

"""
Proposal store contract.

Stores are append-only: there is deliberately no delete. The only way to
change a stored record is ``update``, a compare-and-swap on ``version``.
"""

from typing import Callable, List

from voting_node.voting_runtime.models import Proposal

Mutator = Callable[[Proposal], None]


class ProposalStore:
    def create(self, proposal: Proposal) -> str:
        """Persist a new record. Raises DuplicateId when ``proposal.id`` exists."""
        raise NotImplementedError

    def get(self, proposal_id: str) -> Proposal:
        """Return a private copy of the record. Raises NotFound."""
        raise NotImplementedError

    def update(self, proposal_id: str, expected_version: int, mutator: Mutator) -> Proposal:
        """
        Apply ``mutator`` to a copy of the stored record and commit it with
        ``version + 1``, but only if the stored version still equals
        ``expected_version``. Raises VersionConflict or NotFound.
        """
        raise NotImplementedError

    def list(self) -> List[Proposal]:
        raise NotImplementedError

    def ids(self) -> List[str]:
        return [p.id for p in self.list()]

    def close(self) -> None:
        return None
