import logging

import pytest

from voting_node.config import LOG_FORMAT, get_bind_port, get_frontend_base_url, load_config
from voting_node.storage.memory_store import MemoryProposalStore
from voting_node.voting_runtime.errors import Contention, VersionConflict
from voting_node.voting_runtime.service import ProposalService


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "VOTING_CONFIG",
        "VOTING_PERSISTENCE_DRIVER",
        "VOTING_MAX_ATTEMPTS",
        "VOTING_PORT",
        "VOTING_REQUIRE_SIGNED_VOTES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["persistence"]["driver"] == "memory"
    assert cfg["voting"]["max_attempts"] == 5
    assert cfg["finalization"]["allow_creator_early"] is True
    assert get_bind_port(cfg) == 8000


def test_yaml_is_deep_merged(tmp_path):
    path = tmp_path / "voting_config.yaml"
    path.write_text(
        "persistence:\n  driver: sqlite\nvoting:\n  max_choices: 4\ncors:\n  origins: https://vote.example\n",
        encoding="utf-8",
    )
    cfg = load_config(str(path))

    assert cfg["persistence"]["driver"] == "sqlite"
    # untouched keys in the same section survive
    assert cfg["persistence"]["sqlite_path"] == "data/voting.db"
    assert cfg["voting"]["max_choices"] == 4
    assert cfg["voting"]["max_choice_length"] == 64
    assert cfg["cors"]["origins"] == ["https://vote.example"]


def test_env_overrides_win(tmp_path, monkeypatch):
    monkeypatch.setenv("VOTING_PERSISTENCE_DRIVER", "json")
    monkeypatch.setenv("VOTING_MAX_ATTEMPTS", "9")
    monkeypatch.setenv("VOTING_REQUIRE_SIGNED_VOTES", "true")
    monkeypatch.setenv("VOTING_PORT", "9100")

    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg["persistence"]["driver"] == "json"
    assert cfg["voting"]["max_attempts"] == 9
    assert cfg["security"]["require_signed_votes"] is True
    assert get_bind_port(cfg) == 9100


def test_bad_env_value_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setenv("VOTING_MAX_ATTEMPTS", "many")
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "absent.yaml"))


def test_non_mapping_yaml_is_an_error(tmp_path):
    path = tmp_path / "voting_config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_defaults_are_not_shared_between_loads(tmp_path):
    a = load_config(str(tmp_path / "absent.yaml"))
    a["voting"]["max_choices"] = 1
    b = load_config(str(tmp_path / "absent.yaml"))
    assert b["voting"]["max_choices"] == 10
    assert get_frontend_base_url(b) == "http://localhost:5173"


class _AlwaysConflictingStore(MemoryProposalStore):
    def __init__(self):
        super().__init__()
        self.update_calls = 0

    def update(self, proposal_id, expected_version, mutator):
        self.update_calls += 1
        raise VersionConflict("forced conflict")


def test_max_attempts_from_yaml_reaches_ledger_and_finalizer(tmp_path):
    path = tmp_path / "voting_config.yaml"
    path.write_text("voting:\n  max_attempts: 2\n", encoding="utf-8")
    cfg = load_config(str(path))

    store = _AlwaysConflictingStore()
    service = ProposalService(store, cfg)
    assert service.ledger.max_attempts == 2
    assert service.finalizer.max_attempts == 2

    pid = service.create_proposal("alice", "t", "", ["A", "B"]).id
    with pytest.raises(Contention):
        service.cast_vote(pid, "bob", 0)
    assert store.update_calls == 2


def test_max_attempts_env_override_reaches_ledger(tmp_path, monkeypatch):
    monkeypatch.setenv("VOTING_MAX_ATTEMPTS", "3")
    cfg = load_config(str(tmp_path / "absent.yaml"))
    service = ProposalService(MemoryProposalStore(), cfg)
    assert service.ledger.max_attempts == 3


def test_log_lines_name_the_emitting_logger():
    record = logging.LogRecord(
        "voting_node.voting_runtime.vote_ledger", logging.WARNING, __file__, 1, "conflict on %s", ("p1",), None
    )
    line = logging.Formatter(LOG_FORMAT).format(record)
    assert line.endswith("[WARNING] voting_node.voting_runtime.vote_ledger: conflict on p1")
