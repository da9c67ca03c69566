"""
Governance Domain Models - proposals and votes

A proposal's lifecycle state is never stored. It is computed from the
block height the caller supplies and the proposal's own window and
executed flag.
"""

from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, Field


class ProposalState(str, Enum):
    """
    Proposal lifecycle states

    PENDING → OPEN → CLOSED_UNRESOLVED → EXECUTED
    PENDING cannot occur for proposals created by the engine (they open at
    their creation height) but is reported for heights before the window.
    """

    PENDING = "PENDING"  # height < start_height
    OPEN = "OPEN"  # start_height <= height < end_height
    CLOSED_UNRESOLVED = "CLOSED_UNRESOLVED"  # height >= end_height, not executed
    EXECUTED = "EXECUTED"  # terminal


class VoteChoice(str, Enum):
    YES = "YES"
    NO = "NO"

    @classmethod
    def parse(cls, value: "VoteChoice | str | bool") -> "VoteChoice":
        """Accept the enum, its name in any case, or a boolean vote-for flag"""
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        if isinstance(value, cls):
            return value
        return cls(value.upper())


class ExecutionOutcome(str, Enum):
    """Result of executing a proposal that reached quorum"""

    PASSED = "PASSED"  # yes_weight > no_weight
    REJECTED = "REJECTED"  # yes_weight <= no_weight; ties reject


class VoteKey(NamedTuple):
    """Composite key of the vote registry"""

    proposal_id: int
    voter: str


class Proposal(BaseModel):
    """
    A governance proposal and its running tally

    Only vote accumulation and execution change a proposal after creation.
    """

    proposal_id: int = Field(..., ge=0)
    creator: str
    title: str
    description: str
    link: str
    start_height: int = Field(..., ge=0)
    end_height: int = Field(..., ge=1)
    yes_weight: int = Field(default=0, ge=0)
    no_weight: int = Field(default=0, ge=0)
    executed: bool = False
    executed_at_height: int | None = None
    outcome: ExecutionOutcome | None = None

    @property
    def total_votes(self) -> int:
        return self.yes_weight + self.no_weight

    def state_at(self, height: int) -> ProposalState:
        """Lifecycle state as seen at a block height"""
        if self.executed:
            return ProposalState.EXECUTED
        if height < self.start_height:
            return ProposalState.PENDING
        if height < self.end_height:
            return ProposalState.OPEN
        return ProposalState.CLOSED_UNRESOLVED

    def is_open_at(self, height: int) -> bool:
        return self.start_height <= height < self.end_height


class VoteRecord(BaseModel):
    """One voter's immutable vote on one proposal"""

    proposal_id: int = Field(..., ge=0)
    voter: str
    choice: VoteChoice
    weight: int = Field(..., gt=0, description="Voter balance when the vote was cast")
    cast_at_height: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def key(self) -> VoteKey:
        return VoteKey(self.proposal_id, self.voter)
