from __future__ import annotations

"""
Error taxonomy for the proposal lifecycle.

Every failure carries a stable snake_case ``code`` (what clients switch on)
and the HTTP status the REST layer should answer with. ``VersionConflict``
is internal: the vote ledger and finalization engine retry on it and only
ever surface ``Contention``.
"""

from typing import Any, Dict


class VotingError(Exception):
    code: str = "voting_error"
    http_status: int = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class InvalidInput(VotingError):
    code = "invalid_input"
    http_status = 400


class NotFound(VotingError):
    code = "not_found"
    http_status = 404


class InvalidChoice(VotingError):
    code = "invalid_choice"
    http_status = 400


class NotEligible(VotingError):
    code = "not_eligible"
    http_status = 403


class AlreadyVoted(VotingError):
    code = "already_voted"
    http_status = 409


class VotingClosed(VotingError):
    code = "voting_closed"
    http_status = 409


class AlreadyFinalized(VotingError):
    code = "already_finalized"
    http_status = 409


class NotYetExpired(VotingError):
    code = "not_yet_expired"
    http_status = 409


class Contention(VotingError):
    code = "contention"
    http_status = 503


class InvalidSignature(VotingError):
    code = "invalid_signature"
    http_status = 401


# ---------------------------------------------------------------------------
# Store-level errors
# ---------------------------------------------------------------------------


class DuplicateId(VotingError):
    code = "duplicate_id"
    http_status = 409


class VersionConflict(VotingError):
    code = "version_conflict"
    http_status = 409


__all__ = [
    "VotingError",
    "InvalidInput",
    "NotFound",
    "InvalidChoice",
    "NotEligible",
    "AlreadyVoted",
    "VotingClosed",
    "AlreadyFinalized",
    "NotYetExpired",
    "Contention",
    "InvalidSignature",
    "DuplicateId",
    "VersionConflict",
]
