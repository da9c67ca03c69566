"""
Base Event model for the governance log

Events are immutable facts: a mint happened, a vote was counted, a proposal
was executed. The ledger, proposal store and vote registry are nothing more
than these facts folded together in commit order.

Fun fact: A blockchain is an event log with consensus bolted on. Here the
host chain supplies the consensus, we keep the log.
"""

from pydantic import BaseModel, Field


class Event(BaseModel):
    """
    Base event class - every committed state change is one of these

    Events are:
    - Immutable (frozen model)
    - Append-only (never deleted)
    - Stamped with the block height they were committed at
    - Versioned per stream (ledger stream, one stream per proposal)
    - Replayable (folding them rebuilds GovernanceState exactly)

    All events produced by one command share its command_id and are
    committed as a single batch.
    """

    event_id: str = Field(
        ...,
        description="Unique event identifier (UUIDv7 for time-ordering)",
    )

    stream_id: str = Field(
        ...,
        description="Aggregate identifier: 'ledger' or 'proposal-<id>'",
    )

    stream_type: str = Field(
        ...,
        description="Type of aggregate: 'ledger' or 'proposal'",
    )

    event_type: str = Field(
        ...,
        description="Specific event type: 'TokensMinted', 'VoteCast', etc.",
    )

    block_height: int = Field(
        ...,
        ge=0,
        description="Block height supplied by the host when the event was committed",
    )

    actor_id: str | None = Field(
        default=None,
        description="Caller identity that issued the command",
    )

    command_id: str = Field(
        ...,
        description="ID of the command that produced this event (idempotency key)",
    )

    payload: dict = Field(
        default_factory=dict,
        description="Event-specific data (must be JSON-serializable)",
    )

    version: int = Field(
        ...,
        description="Stream version after this event (monotonically increasing)",
        ge=1,
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "01908e9a-3b87-7000-8000-123456789abc",
                    "stream_id": "proposal-0",
                    "stream_type": "proposal",
                    "event_type": "VoteCast",
                    "block_height": 120,
                    "actor_id": "account2",
                    "command_id": "cmd-123",
                    "payload": {
                        "proposal_id": 0,
                        "voter": "account2",
                        "choice": "YES",
                        "weight": 2000,
                    },
                    "version": 2,
                }
            ]
        },
    }


def create_event(
    *,
    event_id: str,
    stream_id: str,
    stream_type: str,
    event_type: str,
    block_height: int,
    command_id: str,
    version: int,
    actor_id: str | None = None,
    payload: dict | None = None,
) -> Event:
    """
    Factory function for creating events with all required fields
    """
    return Event(
        event_id=event_id,
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        block_height=block_height,
        actor_id=actor_id,
        command_id=command_id,
        payload=payload or {},
        version=version,
    )
