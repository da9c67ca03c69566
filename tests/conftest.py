"""
Pytest configuration and shared fixtures
"""

import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from dao_governance.engine import GovernanceEngine
from dao_governance.governance.handlers import GovernanceCommandHandlers
from dao_governance.governance.projections import ProposalStore, VoteRegistry
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.event_store import InMemoryEventStore, SQLiteEventStore
from dao_governance.kernel.height import ManualBlockClock
from dao_governance.kernel.ids import SequentialIdFactory
from dao_governance.token.handlers import TokenCommandHandlers
from dao_governance.token.projections import TokenLedger


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        path = Path(str(db_path) + suffix)
        if path.exists():
            path.unlink()


@pytest.fixture
def event_store(temp_db: Path) -> SQLiteEventStore:
    """Provide a fresh SQLite event store for each test"""
    return SQLiteEventStore(temp_db)


@pytest.fixture
def memory_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def config() -> GovernanceConfig:
    """
    Default deployment parameters with invariant checking switched on

    51% quorum, 144-block voting period.
    """
    return GovernanceConfig(verify_invariants=True)


@pytest.fixture
def clock() -> ManualBlockClock:
    """Controllable block clock starting at height 0"""
    return ManualBlockClock(0)


@pytest.fixture
def ids() -> SequentialIdFactory:
    return SequentialIdFactory("evt")


@pytest.fixture
def engine(config: GovernanceConfig, clock: ManualBlockClock) -> GovernanceEngine:
    """Engine over an in-memory log"""
    return GovernanceEngine(config=config, height_provider=clock)


@pytest.fixture
def funded_engine(engine: GovernanceEngine) -> GovernanceEngine:
    """
    Four holders: 1000/2000/3000/4000 (supply 10000, quorum threshold 5100)
    """
    engine.mint("account1", 1000)
    engine.mint("account2", 2000)
    engine.mint("account3", 3000)
    engine.mint("account4", 4000)
    return engine


# =============================================================================
# Handler-level fixtures
# =============================================================================


@pytest.fixture
def token_handlers(config: GovernanceConfig, ids: SequentialIdFactory) -> TokenCommandHandlers:
    return TokenCommandHandlers(config, ids)


@pytest.fixture
def governance_handlers(
    config: GovernanceConfig, ids: SequentialIdFactory
) -> GovernanceCommandHandlers:
    return GovernanceCommandHandlers(config, ids)


@pytest.fixture
def ledger() -> TokenLedger:
    """Ledger holding account1=1000, account2=2000, account3=3000, account4=4000"""
    ledger = TokenLedger()
    ledger.mint("account1", 1000)
    ledger.mint("account2", 2000)
    ledger.mint("account3", 3000)
    ledger.mint("account4", 4000)
    return ledger


@pytest.fixture
def proposals() -> ProposalStore:
    return ProposalStore()


@pytest.fixture
def votes() -> VoteRegistry:
    return VoteRegistry()
