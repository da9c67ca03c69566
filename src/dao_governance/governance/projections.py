"""
Governance Projections - proposal store and vote registry

Both are folded from the proposal streams. ProposalStore is an append-only
list indexed by the dense proposal id; VoteRegistry is keyed by VoteKey.
"""

from typing import Any

from dao_governance.governance.invariants import validate_not_executed, validate_not_voted
from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    VoteChoice,
    VoteKey,
    VoteRecord,
)
from dao_governance.kernel.errors import InvariantViolation, ProposalNotFound
from dao_governance.kernel.events import Event


def proposal_stream_id(proposal_id: int) -> str:
    return f"proposal-{proposal_id}"


class ProposalStore:
    """
    Projection: every proposal ever created, by id

    Ids start at 0 and are never reused. Proposals are never removed.
    """

    def __init__(self) -> None:
        self.proposals: list[Proposal] = []
        self.versions: list[int] = []

    def next_id(self) -> int:
        return len(self.proposals)

    def count(self) -> int:
        return len(self.proposals)

    def create(
        self,
        creator: str,
        title: str,
        description: str,
        link: str,
        current_height: int,
        voting_period: int,
    ) -> int:
        """
        Record a new proposal open for [current_height, current_height + voting_period)

        The creator's balance is checked by the caller, not here.

        Returns:
            The new proposal id
        """
        if voting_period < 1:
            raise ValueError(f"Voting period must be at least one block: {voting_period}")

        proposal_id = self.next_id()
        self.proposals.append(
            Proposal(
                proposal_id=proposal_id,
                creator=creator,
                title=title,
                description=description,
                link=link,
                start_height=current_height,
                end_height=current_height + voting_period,
            )
        )
        self.versions.append(1)
        return proposal_id

    def get(self, proposal_id: int) -> Proposal | None:
        if 0 <= proposal_id < len(self.proposals):
            return self.proposals[proposal_id]
        return None

    def version_of(self, proposal_id: int) -> int:
        """Stream version of a proposal (0 if it doesn't exist)"""
        if 0 <= proposal_id < len(self.versions):
            return self.versions[proposal_id]
        return 0

    def record_vote(self, proposal_id: int, choice: VoteChoice, weight: int) -> None:
        """Add weight to one side of the tally"""
        proposal = self._require(proposal_id)
        if VoteChoice(choice) == VoteChoice.YES:
            proposal.yes_weight += weight
        else:
            proposal.no_weight += weight

    def mark_executed(
        self,
        proposal_id: int,
        outcome: ExecutionOutcome | None = None,
        height: int | None = None,
    ) -> None:
        """
        Set the executed flag (once)

        Raises:
            ProposalNotFound: If the proposal doesn't exist
            AlreadyExecuted: If it was already executed
        """
        proposal = self._require(proposal_id)
        validate_not_executed(proposal)
        proposal.executed = True
        proposal.outcome = ExecutionOutcome(outcome) if outcome is not None else None
        proposal.executed_at_height = height

    def list_all(self) -> list[Proposal]:
        return list(self.proposals)

    def _require(self, proposal_id: int) -> Proposal:
        proposal = self.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(proposal_id)
        return proposal

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "ProposalCreated":
            expected_id = event.payload["proposal_id"]
            if expected_id != self.next_id():
                raise InvariantViolation(
                    f"ProposalCreated for id {expected_id}, next id is {self.next_id()}"
                )
            self.create(
                creator=event.payload["creator"],
                title=event.payload["title"],
                description=event.payload["description"],
                link=event.payload["link"],
                current_height=event.payload["start_height"],
                voting_period=event.payload["end_height"] - event.payload["start_height"],
            )

        elif event.event_type == "VoteCast":
            proposal_id = event.payload["proposal_id"]
            self.record_vote(proposal_id, event.payload["choice"], event.payload["weight"])
            self.versions[proposal_id] = event.version

        elif event.event_type == "ProposalExecuted":
            proposal_id = event.payload["proposal_id"]
            self.mark_executed(proposal_id, event.payload["outcome"], event.block_height)
            self.versions[proposal_id] = event.version

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for storage"""
        return {
            "proposals": [p.model_dump(mode="json") for p in self.proposals],
            "versions": list(self.versions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProposalStore":
        """Deserialize from dict"""
        store = cls()
        store.proposals = [Proposal.model_validate(p) for p in data.get("proposals", [])]
        store.versions = list(data.get("versions", [1] * len(store.proposals)))
        for index, proposal in enumerate(store.proposals):
            if proposal.proposal_id != index:
                raise InvariantViolation(
                    f"Proposal at position {index} has id {proposal.proposal_id}"
                )
        return store


class VoteRegistry:
    """
    Projection: one immutable vote record per (proposal, voter)
    """

    def __init__(self) -> None:
        self.votes: dict[VoteKey, VoteRecord] = {}

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return VoteKey(proposal_id, voter) in self.votes

    def cast_vote(
        self,
        proposal_id: int,
        voter: str,
        choice: VoteChoice,
        weight: int,
        height: int = 0,
    ) -> VoteRecord:
        """
        Insert a vote record

        Raises:
            AlreadyVoted: If the voter already voted on this proposal
        """
        validate_not_voted(self.has_voted(proposal_id, voter), proposal_id, voter)
        record = VoteRecord(
            proposal_id=proposal_id,
            voter=voter,
            choice=choice,
            weight=weight,
            cast_at_height=height,
        )
        self.votes[record.key] = record
        return record

    def get(self, proposal_id: int, voter: str) -> VoteRecord | None:
        return self.votes.get(VoteKey(proposal_id, voter))

    def votes_for(self, proposal_id: int) -> list[VoteRecord]:
        """Vote records of one proposal in the order they were cast"""
        return [v for k, v in self.votes.items() if k.proposal_id == proposal_id]

    def count(self) -> int:
        return len(self.votes)

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "VoteCast":
            self.cast_vote(
                proposal_id=event.payload["proposal_id"],
                voter=event.payload["voter"],
                choice=event.payload["choice"],
                weight=event.payload["weight"],
                height=event.block_height,
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for storage"""
        return {"votes": [v.model_dump(mode="json") for v in self.votes.values()]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VoteRegistry":
        """Deserialize from dict"""
        registry = cls()
        for raw in data.get("votes", []):
            record = VoteRecord.model_validate(raw)
            if record.key in registry.votes:
                raise InvariantViolation(
                    f"Duplicate vote by {record.voter} on proposal {record.proposal_id}"
                )
            registry.votes[record.key] = record
        return registry
