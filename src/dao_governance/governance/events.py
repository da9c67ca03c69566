"""
Governance Events - facts about proposals

Each proposal has its own stream ('proposal-<id>'): ProposalCreated is
version 1, then one VoteCast per voter, then at most one ProposalExecuted.
"""

from pydantic import BaseModel, Field

from dao_governance.governance.models import ExecutionOutcome, VoteChoice


class ProposalCreated(BaseModel):
    """A proposal opened for voting"""

    proposal_id: int = Field(..., ge=0)
    creator: str
    title: str
    description: str
    link: str
    start_height: int = Field(..., ge=0)
    end_height: int = Field(..., ge=1)


class VoteCast(BaseModel):
    """
    A voter's balance was counted for one side

    weight is the snapshot taken at vote time; later transfers don't
    touch it.
    """

    proposal_id: int = Field(..., ge=0)
    voter: str
    choice: VoteChoice
    weight: int = Field(..., gt=0)


class ProposalExecuted(BaseModel):
    """A closed proposal reached quorum and was resolved"""

    proposal_id: int = Field(..., ge=0)
    outcome: ExecutionOutcome
    yes_weight: int = Field(..., ge=0)
    no_weight: int = Field(..., ge=0)
    quorum_threshold: int = Field(..., ge=0)
    total_supply: int = Field(..., ge=0)
