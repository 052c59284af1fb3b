from __future__ import annotations

"""
VoteLedger:
- Enforces one vote per voter per proposal
- Appends the voter and bumps the chosen counter in one conditional update
- Retries the whole check-and-commit cycle on version conflicts

No locks are taken here. Correctness rests entirely on the store's
compare-and-swap, which keeps the backend swappable.
"""

import logging
import time
from typing import Callable

from voting_node.storage.base import ProposalStore

from .eligibility import is_eligible
from .errors import (
    AlreadyVoted,
    Contention,
    InvalidChoice,
    InvalidInput,
    NotEligible,
    VersionConflict,
    VotingClosed,
)
from .models import Proposal

log = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class VoteLedger:
    def __init__(
        self,
        store: ProposalStore,
        clock: Callable[[], float] = time.time,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.max_attempts = max(1, int(max_attempts))

    def _check(self, proposal: Proposal, voter: str, choice_index: int) -> None:
        if proposal.finalized:
            raise VotingClosed(f"proposal {proposal.id} is finalized")
        if proposal.is_expired(self.clock()):
            raise VotingClosed(f"proposal {proposal.id} has expired")

        if isinstance(choice_index, bool) or not isinstance(choice_index, int):
            raise InvalidChoice(f"choice index must be an integer, got {choice_index!r}")
        if not 0 <= choice_index < len(proposal.choices):
            raise InvalidChoice(
                f"choice index {choice_index} out of range for {len(proposal.choices)} choices"
            )

        if not is_eligible(proposal, voter):
            raise NotEligible(f"{voter} is not on the allow-list of proposal {proposal.id}")
        if voter in proposal.voters:
            raise AlreadyVoted(f"{voter} has already voted on proposal {proposal.id}")

    def precheck(self, proposal_id: str, voter: str, choice_index: int) -> Proposal:
        """
        Run every precondition against the current record without writing.
        Returns the record the checks passed against.
        """
        voter = (voter or "").strip()
        if not voter:
            raise InvalidInput("voter identity is required")
        current = self.store.get(proposal_id)
        self._check(current, voter, choice_index)
        return current

    def cast_vote(self, proposal_id: str, voter: str, choice_index: int) -> Proposal:
        voter = (voter or "").strip()

        def _apply(p: Proposal) -> None:
            p.voters.append(voter)
            p.vote_counts[choice_index] += 1

        for attempt in range(1, self.max_attempts + 1):
            # NotFound propagates from here
            current = self.precheck(proposal_id, voter, choice_index)
            try:
                updated = self.store.update(proposal_id, current.version, _apply)
            except VersionConflict:
                log.warning(
                    "vote on %s by %s hit a version conflict (attempt %d/%d)",
                    proposal_id, voter, attempt, self.max_attempts,
                )
                continue

            log.info("vote cast on %s by %s for choice %d", proposal_id, voter, choice_index)
            return updated

        log.warning("vote on %s by %s gave up after %d attempts", proposal_id, voter, self.max_attempts)
        raise Contention(f"proposal {proposal_id} is under heavy contention; retry later")
