"""
Governance module - proposals, votes and quorum-gated execution
"""

from dao_governance.governance.commands import CastVote, CreateProposal, ExecuteProposal
from dao_governance.governance.events import ProposalCreated, ProposalExecuted, VoteCast
from dao_governance.governance.handlers import GovernanceCommandHandlers
from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    ProposalState,
    VoteChoice,
    VoteKey,
    VoteRecord,
)
from dao_governance.governance.projections import (
    ProposalStore,
    VoteRegistry,
    proposal_stream_id,
)

__all__ = [
    "CastVote",
    "CreateProposal",
    "ExecuteProposal",
    "ProposalCreated",
    "ProposalExecuted",
    "VoteCast",
    "GovernanceCommandHandlers",
    "ExecutionOutcome",
    "Proposal",
    "ProposalState",
    "VoteChoice",
    "VoteKey",
    "VoteRecord",
    "ProposalStore",
    "VoteRegistry",
    "proposal_stream_id",
]
