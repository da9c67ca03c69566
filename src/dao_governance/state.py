"""
GovernanceState - the ledger, proposal store and vote registry as one aggregate

The engine owns exactly one of these and hands it to handlers by
reference. There is no module-level instance.
"""

from typing import Any

from dao_governance.governance.invariants import check_proposal_tally
from dao_governance.governance.projections import ProposalStore, VoteRegistry
from dao_governance.kernel.errors import InvariantViolation
from dao_governance.kernel.events import Event
from dao_governance.token.projections import TokenLedger


class GovernanceState:
    """
    The three stores, folded from one event log

    Stores are updated only through apply_event, one committed event at a
    time.
    """

    def __init__(
        self,
        ledger: TokenLedger | None = None,
        proposals: ProposalStore | None = None,
        votes: VoteRegistry | None = None,
    ) -> None:
        self.ledger = ledger or TokenLedger()
        self.proposals = proposals or ProposalStore()
        self.votes = votes or VoteRegistry()
        self.events_applied = 0

    def apply_event(self, event: Event) -> None:
        """Route an event to the stores it concerns"""
        if event.stream_type == "ledger":
            self.ledger.apply_event(event)
        elif event.stream_type == "proposal":
            # Registry first: a duplicate vote must fail before the tally moves
            self.votes.apply_event(event)
            self.proposals.apply_event(event)
        else:
            raise InvariantViolation(
                f"Event {event.event_id} has unknown stream type {event.stream_type!r}"
            )
        self.events_applied += 1

    @classmethod
    def replay(cls, events: list[Event]) -> "GovernanceState":
        """Fold events, in commit order, into a fresh state"""
        state = cls()
        for event in events:
            state.apply_event(event)
        return state

    def verify_invariants(self) -> None:
        """
        Check every cross-store invariant

        Raises:
            InvariantViolation: If supply is not conserved, a balance is not
                positive, a tally disagrees with its vote records, a vote
                references a missing proposal, or an executed proposal has
                no outcome
        """
        if any(balance <= 0 for balance in self.ledger.balances.values()):
            raise InvariantViolation("Ledger holds a non-positive balance")
        if not self.ledger.is_conserved():
            raise InvariantViolation(
                f"Balances sum to {sum(self.ledger.balances.values())}, "
                f"total supply is {self.ledger.total_supply()}"
            )

        by_proposal: dict[int, list] = {}
        for key, record in self.votes.votes.items():
            if self.proposals.get(key.proposal_id) is None:
                raise InvariantViolation(
                    f"Vote by {key.voter} references missing proposal {key.proposal_id}"
                )
            by_proposal.setdefault(key.proposal_id, []).append(record)

        for proposal in self.proposals.list_all():
            check_proposal_tally(proposal, by_proposal.get(proposal.proposal_id, []))
            if proposal.executed and proposal.outcome is None:
                raise InvariantViolation(
                    f"Proposal {proposal.proposal_id} is executed without an outcome"
                )

    def snapshot(self) -> dict[str, Any]:
        """Plain-dict export of all three stores (JSON-serializable)"""
        return {
            "ledger": self.ledger.to_dict(),
            "proposals": self.proposals.to_dict(),
            "votes": self.votes.to_dict(),
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> "GovernanceState":
        """
        Rebuild state from snapshot() output

        Raises:
            InvariantViolation: If the snapshot is internally inconsistent
        """
        state = cls(
            ledger=TokenLedger.from_dict(data.get("ledger", {})),
            proposals=ProposalStore.from_dict(data.get("proposals", {})),
            votes=VoteRegistry.from_dict(data.get("votes", {})),
        )
        state.verify_invariants()
        return state
