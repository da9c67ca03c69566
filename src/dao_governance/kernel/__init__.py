"""
Kernel - event sourcing infrastructure shared by the token and governance modules

Commands, events, the append-only store, the bus, block height providers,
configuration and the error taxonomy.
"""

from dao_governance.kernel.commands import Command, create_command
from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.errors import (
    AlreadyExecuted,
    AlreadyVoted,
    CommandIdempotencyViolation,
    DAOError,
    EventStoreError,
    GovernanceError,
    HeightRegression,
    InsufficientBalance,
    InvariantViolation,
    NotAuthorized,
    ProposalExpired,
    ProposalNotEnded,
    ProposalNotFound,
    QuorumNotReached,
    StreamVersionConflict,
    ZeroAmount,
)
from dao_governance.kernel.event_store import InMemoryEventStore, SQLiteEventStore
from dao_governance.kernel.events import Event, create_event
from dao_governance.kernel.height import HeightProvider, ManualBlockClock
from dao_governance.kernel.ids import IdFactory, SequentialIdFactory, generate_id

__all__ = [
    # IDs
    "IdFactory",
    "SequentialIdFactory",
    "generate_id",
    # Height
    "HeightProvider",
    "ManualBlockClock",
    # Config
    "GovernanceConfig",
    # Events & Commands
    "Event",
    "create_event",
    "Command",
    "create_command",
    # Stores
    "InMemoryEventStore",
    "SQLiteEventStore",
    # Errors
    "DAOError",
    "GovernanceError",
    "NotAuthorized",
    "ProposalNotFound",
    "ProposalExpired",
    "AlreadyVoted",
    "InsufficientBalance",
    "QuorumNotReached",
    "ProposalNotEnded",
    "ZeroAmount",
    "AlreadyExecuted",
    "EventStoreError",
    "CommandIdempotencyViolation",
    "StreamVersionConflict",
    "InvariantViolation",
    "HeightRegression",
]
