"""
DAO Governance - token-weighted on-chain governance engine

A fungible-token ledger and a proposal lifecycle (creation, voting,
quorum-gated execution) over a block-height clock, kept as an event log.
"""

from dao_governance.engine import GovernanceEngine
from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    ProposalState,
    VoteChoice,
    VoteRecord,
)
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.state import GovernanceState

__version__ = "0.1.0"
__all__ = [
    "GovernanceEngine",
    "GovernanceConfig",
    "GovernanceState",
    "ExecutionOutcome",
    "Proposal",
    "ProposalState",
    "VoteChoice",
    "VoteRecord",
    "__version__",
]
