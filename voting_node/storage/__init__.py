from __future__ import annotations

from typing import Any, Dict

from .base import ProposalStore
from .json_store import JsonProposalStore
from .memory_store import MemoryProposalStore
from .sqlite_store import SQLiteProposalStore


def open_store(cfg: Dict[str, Any]) -> ProposalStore:
    """Build the store selected by ``cfg["persistence"]["driver"]``."""
    persistence = cfg.get("persistence", {})
    driver = str(persistence.get("driver", "memory")).strip().lower()

    if driver == "memory":
        return MemoryProposalStore()
    if driver == "json":
        return JsonProposalStore(persistence.get("json_path", "voting_state.json"))
    if driver == "sqlite":
        return SQLiteProposalStore(str(persistence.get("sqlite_path", "voting.db")))
    raise ValueError(f"unknown persistence driver: {driver!r}")


__all__ = [
    "ProposalStore",
    "MemoryProposalStore",
    "JsonProposalStore",
    "SQLiteProposalStore",
    "open_store",
]
