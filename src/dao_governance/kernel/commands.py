"""
Base Command envelope

Commands are requests from a caller to change state. The envelope carries
the per-call inputs the host supplies (caller identity, block height);
the payload is validated into a domain command by the handler.
"""

from pydantic import BaseModel, Field


class Command(BaseModel):
    """
    Command envelope routed through the in-process bus

    A command either produces a batch of events or raises a
    GovernanceError. It is never stored; only its events are.
    """

    command_id: str = Field(
        ...,
        description="Unique command identifier (idempotency key)",
    )

    command_type: str = Field(
        ...,
        description="Type of command: 'Mint', 'Transfer', 'CastVote', etc.",
    )

    actor_id: str | None = Field(
        default=None,
        description="Authenticated caller identity supplied by the host",
    )

    block_height: int = Field(
        ...,
        ge=0,
        description="Current block height supplied by the host",
    )

    payload: dict = Field(
        default_factory=dict,
        description="Command-specific parameters",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "command_id": "cmd-123",
                    "command_type": "CastVote",
                    "actor_id": "account2",
                    "block_height": 120,
                    "payload": {"proposal_id": 0, "voter": "account2", "choice": "YES"},
                }
            ]
        }
    }


def create_command(
    *,
    command_id: str,
    command_type: str,
    block_height: int,
    actor_id: str | None = None,
    payload: dict | None = None,
) -> Command:
    """Factory function for creating command envelopes"""
    return Command(
        command_id=command_id,
        command_type=command_type,
        actor_id=actor_id,
        block_height=block_height,
        payload=payload or {},
    )
