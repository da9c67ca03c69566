"""
Tests for the proposal store, vote registry and governance invariants
"""

import pytest
from pydantic import ValidationError

from dao_governance.governance.invariants import (
    check_proposal_tally,
    decide_outcome,
    has_passed,
    validate_voting_window,
)
from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    ProposalState,
    VoteChoice,
    VoteKey,
)
from dao_governance.governance.projections import ProposalStore, VoteRegistry
from dao_governance.kernel.errors import (
    AlreadyExecuted,
    AlreadyVoted,
    InvariantViolation,
    ProposalExpired,
    ProposalNotFound,
)
from dao_governance.kernel.events import create_event


def make_proposal(**overrides) -> Proposal:
    fields = {
        "proposal_id": 0,
        "creator": "account1",
        "title": "t",
        "description": "d",
        "link": "l",
        "start_height": 100,
        "end_height": 244,
    }
    fields.update(overrides)
    return Proposal(**fields)


class TestProposalStore:
    def test_ids_are_dense_from_zero(self, proposals: ProposalStore) -> None:
        first = proposals.create("a", "t", "d", "l", 0, 144)
        second = proposals.create("b", "t", "d", "l", 5, 144)

        assert (first, second) == (0, 1)
        assert proposals.count() == 2
        assert proposals.get(1).start_height == 5
        assert proposals.get(1).end_height == 149

    def test_new_proposal_has_empty_tally(self, proposals: ProposalStore) -> None:
        proposals.create("a", "t", "d", "l", 0, 144)
        proposal = proposals.get(0)

        assert proposal.yes_weight == 0
        assert proposal.no_weight == 0
        assert not proposal.executed
        assert proposals.version_of(0) == 1

    @pytest.mark.parametrize("proposal_id", [-1, 0, 99])
    def test_get_missing_returns_none(self, proposals: ProposalStore, proposal_id: int) -> None:
        assert proposals.get(proposal_id) is None
        assert proposals.version_of(proposal_id) == 0

    def test_zero_voting_period_rejected(self, proposals: ProposalStore) -> None:
        with pytest.raises(ValueError):
            proposals.create("a", "t", "d", "l", 0, 0)

    def test_record_vote_accumulates(self, proposals: ProposalStore) -> None:
        proposals.create("a", "t", "d", "l", 0, 144)
        proposals.record_vote(0, VoteChoice.YES, 10)
        proposals.record_vote(0, VoteChoice.YES, 5)
        proposals.record_vote(0, VoteChoice.NO, 7)

        assert proposals.get(0).yes_weight == 15
        assert proposals.get(0).no_weight == 7
        assert proposals.get(0).total_votes == 22

    def test_record_vote_missing_proposal(self, proposals: ProposalStore) -> None:
        with pytest.raises(ProposalNotFound):
            proposals.record_vote(3, VoteChoice.YES, 1)

    def test_mark_executed_once(self, proposals: ProposalStore) -> None:
        proposals.create("a", "t", "d", "l", 0, 144)
        proposals.mark_executed(0, ExecutionOutcome.PASSED, 144)

        assert proposals.get(0).executed
        assert proposals.get(0).outcome == ExecutionOutcome.PASSED
        with pytest.raises(AlreadyExecuted):
            proposals.mark_executed(0, ExecutionOutcome.REJECTED, 150)
        assert proposals.get(0).outcome == ExecutionOutcome.PASSED

    def test_apply_event_rejects_out_of_order_id(self, proposals: ProposalStore) -> None:
        event = create_event(
            event_id="evt-1",
            stream_id="proposal-3",
            stream_type="proposal",
            event_type="ProposalCreated",
            block_height=0,
            command_id="cmd-1",
            payload={
                "proposal_id": 3,
                "creator": "a",
                "title": "t",
                "description": "d",
                "link": "l",
                "start_height": 0,
                "end_height": 144,
            },
            version=1,
        )

        with pytest.raises(InvariantViolation):
            proposals.apply_event(event)

    def test_round_trip_through_dict(self, proposals: ProposalStore) -> None:
        proposals.create("a", "t", "d", "l", 0, 144)
        proposals.record_vote(0, VoteChoice.NO, 9)

        restored = ProposalStore.from_dict(proposals.to_dict())

        assert restored.get(0) == proposals.get(0)
        assert restored.next_id() == 1


class TestVoteRegistry:
    def test_cast_and_lookup(self, votes: VoteRegistry) -> None:
        record = votes.cast_vote(0, "alice", VoteChoice.YES, 40, height=120)

        assert votes.has_voted(0, "alice")
        assert not votes.has_voted(1, "alice")
        assert votes.get(0, "alice") == record
        assert record.key == VoteKey(0, "alice")
        assert record.cast_at_height == 120

    def test_one_vote_per_proposal_and_voter(self, votes: VoteRegistry) -> None:
        votes.cast_vote(0, "alice", VoteChoice.YES, 40)
        votes.cast_vote(1, "alice", VoteChoice.NO, 40)

        with pytest.raises(AlreadyVoted):
            votes.cast_vote(0, "alice", VoteChoice.NO, 40)
        assert votes.get(0, "alice").choice == VoteChoice.YES
        assert votes.count() == 2

    def test_votes_for_filters_by_proposal(self, votes: VoteRegistry) -> None:
        votes.cast_vote(0, "alice", VoteChoice.YES, 1)
        votes.cast_vote(1, "bob", VoteChoice.YES, 2)
        votes.cast_vote(0, "carol", VoteChoice.NO, 3)

        assert [v.voter for v in votes.votes_for(0)] == ["alice", "carol"]

    def test_records_are_immutable(self, votes: VoteRegistry) -> None:
        record = votes.cast_vote(0, "alice", VoteChoice.YES, 1)
        with pytest.raises(ValidationError):
            record.weight = 100

    def test_from_dict_rejects_duplicates(self) -> None:
        raw = {
            "proposal_id": 0,
            "voter": "alice",
            "choice": "YES",
            "weight": 1,
            "cast_at_height": 0,
        }
        with pytest.raises(InvariantViolation):
            VoteRegistry.from_dict({"votes": [raw, dict(raw, choice="NO")]})


class TestProposalState:
    @pytest.mark.parametrize(
        "height, state",
        [
            (99, ProposalState.PENDING),
            (100, ProposalState.OPEN),
            (243, ProposalState.OPEN),
            (244, ProposalState.CLOSED_UNRESOLVED),
            (10_000, ProposalState.CLOSED_UNRESOLVED),
        ],
    )
    def test_state_follows_height(self, height: int, state: ProposalState) -> None:
        assert make_proposal().state_at(height) == state

    def test_executed_is_terminal(self) -> None:
        proposal = make_proposal(executed=True, outcome=ExecutionOutcome.REJECTED)
        assert proposal.state_at(0) == ProposalState.EXECUTED
        assert proposal.state_at(500) == ProposalState.EXECUTED


class TestVoteChoice:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, VoteChoice.YES),
            (False, VoteChoice.NO),
            ("yes", VoteChoice.YES),
            ("No", VoteChoice.NO),
            (VoteChoice.NO, VoteChoice.NO),
        ],
    )
    def test_parse(self, value, expected: VoteChoice) -> None:
        assert VoteChoice.parse(value) == expected

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            VoteChoice.parse("abstain")


class TestInvariants:
    def test_voting_window_is_half_open(self) -> None:
        proposal = make_proposal()
        validate_voting_window(proposal, 100)
        validate_voting_window(proposal, 243)
        with pytest.raises(ProposalExpired):
            validate_voting_window(proposal, 244)

    @pytest.mark.parametrize(
        "yes, no, outcome",
        [
            (2, 1, ExecutionOutcome.PASSED),
            (1, 1, ExecutionOutcome.REJECTED),
            (0, 5, ExecutionOutcome.REJECTED),
        ],
    )
    def test_decide_outcome(self, yes: int, no: int, outcome: ExecutionOutcome) -> None:
        assert decide_outcome(yes, no) == outcome

    def test_has_passed(self) -> None:
        proposal = make_proposal(yes_weight=60, no_weight=10)

        assert has_passed(proposal, 244, threshold=51)
        assert not has_passed(proposal, 243, threshold=51)
        assert not has_passed(proposal, 244, threshold=71)
        assert not has_passed(None, 244, threshold=0)

    def test_tally_must_match_records(self, votes: VoteRegistry) -> None:
        votes.cast_vote(0, "alice", VoteChoice.YES, 60)
        votes.cast_vote(0, "bob", VoteChoice.NO, 10)

        check_proposal_tally(make_proposal(yes_weight=60, no_weight=10), votes.votes_for(0))
        with pytest.raises(InvariantViolation):
            check_proposal_tally(make_proposal(yes_weight=61, no_weight=10), votes.votes_for(0))
