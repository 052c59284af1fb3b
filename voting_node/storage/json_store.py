from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from voting_node.voting_runtime.errors import DuplicateId, NotFound, VersionConflict
from voting_node.voting_runtime.models import Proposal

from .base import Mutator, ProposalStore

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


class JsonProposalStore(ProposalStore):
    """
    Single-node store backed by one JSON snapshot file.

    The full snapshot is rewritten on every commit (temp file + fsync +
    os.replace), and a commit only counts once the snapshot is on disk. The
    previous snapshot is copied to ``<path>.bak`` first; if the primary is
    missing or unreadable on startup the backup is loaded instead. A failed
    write leaves the in-memory state untouched.
    """

    def __init__(self, path: PathLike = "voting_state.json") -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._records: Dict[str, Proposal] = {}

        state = self._load() or {}
        for pid, raw in (state.get("proposals") or {}).items():
            if isinstance(raw, dict):
                raw = dict(raw)
                raw.setdefault("id", pid)
                self._records[str(pid)] = Proposal.from_dict(raw)

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".bak")

    # ------------------------
    # Snapshot I/O
    # ------------------------
    @staticmethod
    def _read(path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("unreadable snapshot %s: %s", path, e)
            return None
        return obj if isinstance(obj, dict) else None

    def _load(self) -> Optional[Dict[str, Any]]:
        state = self._read(self.path)
        if state is None:
            state = self._read(self.backup_path)
            if state is not None:
                log.warning("loaded proposals from backup snapshot %s", self.backup_path)
        return state

    def _flush(self, records: Dict[str, Proposal]) -> None:
        state = {"proposals": {pid: rec.to_dict() for pid, rec in records.items()}}
        data = json.dumps(state, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists():
            shutil.copyfile(self.path, self.backup_path)

        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    # ------------------------
    # Store contract
    # ------------------------
    def create(self, proposal: Proposal) -> str:
        with self._lock:
            if proposal.id in self._records:
                raise DuplicateId(f"proposal {proposal.id} already exists")
            nxt = dict(self._records)
            nxt[proposal.id] = proposal.clone()
            self._flush(nxt)
            self._records = nxt
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
            updated = current.clone()
            mutator(updated)
            updated.id = current.id
            updated.version = current.version + 1

            nxt = dict(self._records)
            nxt[proposal_id] = updated
            self._flush(nxt)
            self._records = nxt
            return updated.clone()

    def list(self) -> List[Proposal]:
        with self._lock:
            recs = [r.clone() for r in self._records.values()]
        recs.sort(key=lambda p: (p.created_at, p.id))
        return recs
