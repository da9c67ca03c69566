"""
Token Handlers - Command→Event transformation for the ledger

Handlers read the ledger, check invariants and return the events to commit.
They never touch the ledger themselves.
"""

from dao_governance.kernel.config import GovernanceConfig
from dao_governance.kernel.events import Event, create_event
from dao_governance.kernel.ids import DefaultIdFactory, IdFactory
from dao_governance.token.commands import Mint, Transfer
from dao_governance.token.events import TokensMinted, TokensTransferred
from dao_governance.token.invariants import (
    validate_caller_is_sender,
    validate_minter,
    validate_positive_amount,
    validate_sufficient_balance,
)
from dao_governance.token.projections import LEDGER_STREAM_ID, TokenLedger


class TokenCommandHandlers:
    """
    Command handlers for the token module

    Every ledger event goes to the single 'ledger' stream, versioned from
    the ledger projection's current version.
    """

    def __init__(
        self,
        config: GovernanceConfig,
        id_factory: IdFactory | None = None,
    ) -> None:
        self.config = config
        self.id_factory = id_factory or DefaultIdFactory()

    def handle_mint(
        self,
        command: Mint,
        command_id: str,
        actor_id: str | None,
        block_height: int,
        ledger: TokenLedger,
    ) -> list[Event]:
        """
        Handle Mint command

        Raises:
            NotAuthorized: If a minter is configured and actor_id is not it
            ZeroAmount: If amount <= 0
        """
        validate_minter(actor_id, self.config.minter, command.recipient)
        validate_positive_amount(command.amount)

        payload = TokensMinted(
            recipient=command.recipient,
            amount=command.amount,
            total_supply=ledger.total_supply() + command.amount,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=self.id_factory.generate(),
                stream_id=LEDGER_STREAM_ID,
                stream_type="ledger",
                event_type="TokensMinted",
                block_height=block_height,
                command_id=command_id,
                actor_id=actor_id,
                payload=payload,
                version=ledger.version + 1,
            )
        ]

    def handle_transfer(
        self,
        command: Transfer,
        command_id: str,
        actor_id: str | None,
        block_height: int,
        ledger: TokenLedger,
    ) -> list[Event]:
        """
        Handle Transfer command

        Raises:
            NotAuthorized: If actor_id is not the sender
            ZeroAmount: If amount <= 0
            InsufficientBalance: If the sender holds less than amount
        """
        validate_caller_is_sender(actor_id, command.sender)
        validate_positive_amount(command.amount)
        validate_sufficient_balance(
            command.sender, ledger.balance_of(command.sender), command.amount
        )

        payload = TokensTransferred(
            sender=command.sender,
            recipient=command.recipient,
            amount=command.amount,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=self.id_factory.generate(),
                stream_id=LEDGER_STREAM_ID,
                stream_type="ledger",
                event_type="TokensTransferred",
                block_height=block_height,
                command_id=command_id,
                actor_id=actor_id,
                payload=payload,
                version=ledger.version + 1,
            )
        ]
