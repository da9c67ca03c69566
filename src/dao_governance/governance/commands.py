"""
Governance Commands - intentions to create, vote on and execute proposals
"""

from pydantic import BaseModel, Field

from dao_governance.governance.models import VoteChoice


class CreateProposal(BaseModel):
    """
    Open a new proposal at the current block height

    The creator must hold at least one token unit.
    """

    creator: str = Field(..., min_length=1)
    title: str
    description: str
    link: str


class CastVote(BaseModel):
    """Vote yes or no with the voter's full current balance"""

    proposal_id: int
    voter: str = Field(..., min_length=1)
    choice: VoteChoice


class ExecuteProposal(BaseModel):
    """Resolve a closed proposal (once)"""

    proposal_id: int
