from __future__ import annotations

"""
FinalizationEngine:
- open --(now >= expires_at)--> expired --(finalize)--> finalized
- open --(creator finalizes early, if allowed)--> finalized
- finalized is terminal

Finalizing an already finalized proposal returns it unchanged unless
``strict_refinalize`` is set, in which case AlreadyFinalized is raised.
"""

import logging
import time
from typing import Callable, List, Optional

from voting_node.storage.base import ProposalStore

from .errors import AlreadyFinalized, Contention, NotYetExpired, VersionConflict, VotingError
from .models import Proposal, pick_winner

log = logging.getLogger(__name__)


class FinalizationEngine:
    def __init__(
        self,
        store: ProposalStore,
        clock: Callable[[], float] = time.time,
        max_attempts: int = 5,
        allow_creator_early: bool = True,
        strict_refinalize: bool = False,
    ) -> None:
        self.store = store
        self.clock = clock
        self.max_attempts = max(1, int(max_attempts))
        self.allow_creator_early = bool(allow_creator_early)
        self.strict_refinalize = bool(strict_refinalize)

    def _may_finalize_early(self, proposal: Proposal, caller: Optional[str]) -> bool:
        if not self.allow_creator_early or caller is None:
            return False
        return caller.strip() == proposal.creator

    def finalize(self, proposal_id: str, caller: Optional[str] = None) -> Proposal:
        for attempt in range(1, self.max_attempts + 1):
            current = self.store.get(proposal_id)

            if current.finalized:
                if self.strict_refinalize:
                    raise AlreadyFinalized(f"proposal {proposal_id} is already finalized")
                return current

            now = self.clock()
            if not current.is_expired(now) and not self._may_finalize_early(current, caller):
                raise NotYetExpired(f"proposal {proposal_id} is still open until {current.expires_at}")

            winner = pick_winner(current.vote_counts)

            def _apply(p: Proposal) -> None:
                p.finalized = True
                p.winner_index = winner
                p.finalized_at = now

            try:
                updated = self.store.update(proposal_id, current.version, _apply)
            except VersionConflict:
                log.warning(
                    "finalize of %s hit a version conflict (attempt %d/%d)",
                    proposal_id, attempt, self.max_attempts,
                )
                continue

            log.info(
                "proposal %s finalized: winner=%d (%s) with %d of %d votes",
                proposal_id,
                winner,
                updated.choices[winner],
                updated.vote_counts[winner],
                updated.total_votes,
            )
            return updated

        raise Contention(f"proposal {proposal_id} is under heavy contention; retry later")

    def sweep_expired(self) -> List[str]:
        """Finalize every expired, unfinalized proposal. Returns the ids finalized."""
        now = self.clock()
        done: List[str] = []
        for proposal in self.store.list():
            if proposal.finalized or not proposal.is_expired(now):
                continue
            try:
                self.finalize(proposal.id)
            except VotingError:
                log.exception("sweep could not finalize proposal %s", proposal.id)
                continue
            done.append(proposal.id)

        if done:
            log.info("sweep finalized %d proposal(s)", len(done))
        return done
