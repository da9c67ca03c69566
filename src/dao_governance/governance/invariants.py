"""
Governance Invariants - the rules of the proposal lifecycle

Pure functions over proposals, balances and heights. Each raises the one
governance error that names the broken rule, or returns quietly.
"""

from dao_governance.governance.models import (
    ExecutionOutcome,
    Proposal,
    VoteChoice,
    VoteRecord,
)
from dao_governance.kernel.errors import (
    AlreadyExecuted,
    AlreadyVoted,
    InsufficientBalance,
    InvariantViolation,
    ProposalExpired,
    ProposalNotEnded,
    ProposalNotFound,
    QuorumNotReached,
)


def require_proposal(proposal: Proposal | None, proposal_id: int) -> Proposal:
    """
    Raises:
        ProposalNotFound: If proposal is None
    """
    if proposal is None:
        raise ProposalNotFound(proposal_id)
    return proposal


def validate_holds_tokens(account: str, balance: int) -> None:
    """
    Creators and voters need a positive balance

    Raises:
        InsufficientBalance: If balance <= 0
    """
    if balance <= 0:
        raise InsufficientBalance(account, balance, 1)


def validate_voting_window(proposal: Proposal, height: int) -> None:
    """
    Votes are accepted in [start_height, end_height)

    Raises:
        ProposalExpired: Before the window opens or once it has closed
    """
    if not proposal.is_open_at(height):
        raise ProposalExpired(
            proposal.proposal_id, height, proposal.start_height, proposal.end_height
        )


def validate_not_voted(already_voted: bool, proposal_id: int, voter: str) -> None:
    """
    Raises:
        AlreadyVoted: If the voter has a record for this proposal
    """
    if already_voted:
        raise AlreadyVoted(proposal_id, voter)


def validate_voting_ended(proposal: Proposal, height: int) -> None:
    """
    Raises:
        ProposalNotEnded: If height < end_height
    """
    if height < proposal.end_height:
        raise ProposalNotEnded(proposal.proposal_id, height, proposal.end_height)


def validate_not_executed(proposal: Proposal) -> None:
    """
    Raises:
        AlreadyExecuted: If the proposal was executed before
    """
    if proposal.executed:
        raise AlreadyExecuted(proposal.proposal_id)


def validate_quorum(proposal: Proposal, threshold: int) -> None:
    """
    Raises:
        QuorumNotReached: If yes + no is below threshold
    """
    if proposal.total_votes < threshold:
        raise QuorumNotReached(proposal.proposal_id, proposal.total_votes, threshold)


def decide_outcome(yes_weight: int, no_weight: int) -> ExecutionOutcome:
    """Strict majority passes; a tie rejects"""
    if yes_weight > no_weight:
        return ExecutionOutcome.PASSED
    return ExecutionOutcome.REJECTED


def has_passed(proposal: Proposal | None, height: int, threshold: int) -> bool:
    """
    Read-only verdict: closed, quorate and yes > no

    Never raises. Missing or still-open proposals have not passed.
    """
    if proposal is None:
        return False
    return (
        height >= proposal.end_height
        and proposal.total_votes >= threshold
        and proposal.yes_weight > proposal.no_weight
    )


def check_proposal_tally(proposal: Proposal, votes: list[VoteRecord]) -> None:
    """
    The tally must equal the sum of the proposal's vote records

    Raises:
        InvariantViolation: On any mismatch, or a window that is not forward
    """
    if proposal.end_height <= proposal.start_height:
        raise InvariantViolation(
            f"Proposal {proposal.proposal_id} window is empty: "
            f"[{proposal.start_height}, {proposal.end_height})"
        )

    yes = sum(v.weight for v in votes if v.choice == VoteChoice.YES)
    no = sum(v.weight for v in votes if v.choice == VoteChoice.NO)
    if (yes, no) != (proposal.yes_weight, proposal.no_weight):
        raise InvariantViolation(
            f"Proposal {proposal.proposal_id} tally {proposal.yes_weight}/"
            f"{proposal.no_weight} does not match vote records {yes}/{no}"
        )
