import pytest

from voting_node.config import default_config
from voting_node.storage.memory_store import MemoryProposalStore
from voting_node.voting_runtime.service import ProposalService

T0 = 1_700_000_000.0
HOUR = 3600.0


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cfg():
    return default_config()


@pytest.fixture
def store():
    return MemoryProposalStore()


@pytest.fixture
def service(store, cfg, clock):
    return ProposalService(store, cfg, clock=clock)


@pytest.fixture
def make_proposal(service, clock):
    """Create a proposal through the service with sensible defaults."""

    def _make(choices=("A", "B"), allowed_voters=None, expires_in=HOUR, creator="creator-wallet", title="Budget"):
        return service.create_proposal(
            creator=creator,
            title=title,
            description="Pick one",
            choices=list(choices),
            allowed_voters=allowed_voters,
            expires_at=clock() + expires_in,
        )

    return _make
