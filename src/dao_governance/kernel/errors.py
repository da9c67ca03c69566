"""
Custom exceptions for DAO Governance

Every failing operation raises exactly one of these. Governance errors carry
the numeric code the on-chain contract answers with, so hosts can map them
straight back to a transaction receipt.
"""


class DAOError(Exception):
    """Base exception for all DAO Governance errors"""

    pass


# Governance errors (caller-recoverable, one per failure condition)


class GovernanceError(DAOError):
    """
    Base class for domain errors returned to callers

    Subclasses set a stable ``code``. No state has been written when one
    of these is raised.
    """

    code: int = 0


class NotAuthorized(GovernanceError):
    """Raised when the caller is not allowed to act on behalf of an account"""

    code = 100

    def __init__(self, caller: str, account: str, action: str = "transfer") -> None:
        self.caller = caller
        self.account = account
        self.action = action
        super().__init__(f"Caller {caller} is not authorized to {action} for {account}")


class ProposalNotFound(GovernanceError):
    """Raised when a proposal id has no record"""

    code = 101

    def __init__(self, proposal_id: int) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} does not exist")


class ProposalExpired(GovernanceError):
    """Raised when a vote arrives outside the proposal's [start, end) window"""

    code = 102

    def __init__(
        self, proposal_id: int, height: int, start_height: int, end_height: int
    ) -> None:
        self.proposal_id = proposal_id
        self.height = height
        self.start_height = start_height
        self.end_height = end_height
        super().__init__(
            f"Proposal {proposal_id} is not open at height {height} "
            f"(voting window [{start_height}, {end_height}))"
        )


class AlreadyVoted(GovernanceError):
    """Raised on a second vote by the same voter on the same proposal"""

    code = 103

    def __init__(self, proposal_id: int, voter: str) -> None:
        self.proposal_id = proposal_id
        self.voter = voter
        super().__init__(f"{voter} has already voted on proposal {proposal_id}")


class InsufficientBalance(GovernanceError):
    """Raised when an account holds fewer tokens than the operation needs"""

    code = 104

    def __init__(self, account: str, balance: int, required: int) -> None:
        self.account = account
        self.balance = balance
        self.required = required
        super().__init__(
            f"{account} holds {balance} tokens, operation requires {required}"
        )


class QuorumNotReached(GovernanceError):
    """Raised when total cast weight is below the quorum threshold"""

    code = 105

    def __init__(self, proposal_id: int, total_votes: int, threshold: int) -> None:
        self.proposal_id = proposal_id
        self.total_votes = total_votes
        self.threshold = threshold
        super().__init__(
            f"Proposal {proposal_id} has {total_votes} votes cast, "
            f"quorum requires {threshold}"
        )


class ProposalNotEnded(GovernanceError):
    """Raised when execution is attempted before the voting window closes"""

    code = 106

    def __init__(self, proposal_id: int, height: int, end_height: int) -> None:
        self.proposal_id = proposal_id
        self.height = height
        self.end_height = end_height
        super().__init__(
            f"Proposal {proposal_id} voting ends at height {end_height}, "
            f"current height is {height}"
        )


class ZeroAmount(GovernanceError):
    """Raised when a mint or transfer amount is not positive"""

    code = 107

    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Amount must be positive, got {amount}")


class AlreadyExecuted(GovernanceError):
    """Raised when a proposal that was already executed is executed again"""

    code = 108

    def __init__(self, proposal_id: int) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} has already been executed")


# Infrastructure errors


class EventStoreError(DAOError):
    """Base class for event store errors"""

    pass


class CommandIdempotencyViolation(EventStoreError):
    """
    Raised when a batch reuses a command_id that was already committed

    The stored events are attached so callers can treat the duplicate
    as the earlier success.
    """

    def __init__(self, command_id: str, existing: list | None = None) -> None:
        self.command_id = command_id
        self.existing = existing or []
        super().__init__(f"Command {command_id} already committed")


class StreamVersionConflict(EventStoreError):
    """
    Raised when an event's version does not follow its stream's head

    Indicates two writers raced on the same stream outside the engine lock.
    """

    def __init__(
        self, stream_id: str, expected_version: int, actual_version: int
    ) -> None:
        self.stream_id = stream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stream {stream_id} version mismatch: "
            f"expected {expected_version}, got {actual_version}"
        )


class InvariantViolation(DAOError):
    """
    Raised when committed state breaks a ledger or tally invariant

    Seeing this means a bug or a tampered event log, never a bad request.
    """

    pass


class HeightRegression(DAOError):
    """Raised when a block clock is asked to move backwards"""

    def __init__(self, current: int, requested: int) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Block height cannot decrease (current {current}, requested {requested})"
        )


GOVERNANCE_ERRORS: dict[int, type[GovernanceError]] = {
    cls.code: cls
    for cls in (
        NotAuthorized,
        ProposalNotFound,
        ProposalExpired,
        AlreadyVoted,
        InsufficientBalance,
        QuorumNotReached,
        ProposalNotEnded,
        ZeroAmount,
        AlreadyExecuted,
    )
}
