#!/usr/bin/env python3
"""
SQLiteProposalStore — durable storage backend for voting proposals.
--------------------------------------------------------------------
- One row per proposal: id, version, JSON payload.
- Conditional updates are a single ``UPDATE ... WHERE id=? AND version=?``,
  so the compare-and-swap also holds across processes sharing the file.
- Used when config.persistence.driver == "sqlite".
"""

import json
import os
import sqlite3
import threading
from typing import List

from voting_node.voting_runtime.errors import DuplicateId, NotFound, VersionConflict
from voting_node.voting_runtime.models import Proposal

from .base import Mutator, ProposalStore


class SQLiteProposalStore(ProposalStore):
    def __init__(self, db_path: str):
        self.db_path = db_path
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False, timeout=10.0)
        self.conn.row_factory = sqlite3.Row
        # one connection shared across threads; sqlite3 needs calls serialized
        self._lock = threading.Lock()
        self._init_schema()

    # -----------------------------------------------------
    # Core schema
    # -----------------------------------------------------
    def _init_schema(self):
        with self._lock:
            self.conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS voting_proposals (
                    id TEXT PRIMARY KEY,
                    version INTEGER NOT NULL,
                    created_at REAL NOT NULL,
                    data TEXT NOT NULL
                );
                """
            )
            self.conn.commit()

    @staticmethod
    def _row_to_proposal(row: sqlite3.Row) -> Proposal:
        raw = json.loads(row["data"])
        raw["id"] = row["id"]
        raw["version"] = int(row["version"])
        return Proposal.from_dict(raw)

    # -----------------------------------------------------
    # Proposals
    # -----------------------------------------------------
    def create(self, proposal: Proposal) -> str:
        with self._lock:
            try:
                self.conn.execute(
                    "INSERT INTO voting_proposals (id, version, created_at, data) VALUES (?,?,?,?)",
                    (proposal.id, proposal.version, proposal.created_at, json.dumps(proposal.to_dict())),
                )
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise DuplicateId(f"proposal {proposal.id} already exists") from e
        return proposal.id

    def get(self, proposal_id: str) -> Proposal:
        with self._lock:
            cur = self.conn.execute("SELECT * FROM voting_proposals WHERE id=?", (proposal_id,))
            row = cur.fetchone()
        if row is None:
            raise NotFound(f"proposal {proposal_id} not found")
        return self._row_to_proposal(row)

    def update(self, proposal_id: str, expected_version: int, mutator: Mutator) -> Proposal:
        current = self.get(proposal_id)
        if current.version != expected_version:
            raise VersionConflict(
                f"proposal {proposal_id} is at version {current.version}, expected {expected_version}"
            )

        updated = current.clone()
        mutator(updated)
        updated.id = current.id
        updated.version = expected_version + 1

        with self._lock:
            cur = self.conn.execute(
                "UPDATE voting_proposals SET version=?, data=? WHERE id=? AND version=?",
                (updated.version, json.dumps(updated.to_dict()), proposal_id, expected_version),
            )
            self.conn.commit()
            changed = cur.rowcount

        if changed != 1:
            raise VersionConflict(f"proposal {proposal_id} changed concurrently")
        return updated

    def list(self) -> List[Proposal]:
        with self._lock:
            cur = self.conn.execute("SELECT * FROM voting_proposals ORDER BY created_at ASC, id ASC")
            rows = cur.fetchall()
        return [self._row_to_proposal(r) for r in rows]

    def ids(self) -> List[str]:
        with self._lock:
            cur = self.conn.execute("SELECT id FROM voting_proposals ORDER BY created_at ASC, id ASC")
            return [str(r["id"]) for r in cur.fetchall()]

    # -----------------------------------------------------
    # Maintenance
    # -----------------------------------------------------
    def close(self):
        with self._lock:
            self.conn.commit()
            self.conn.close()
