"""
Token Projections - the ledger read model

TokenLedger is folded from TokensMinted and TokensTransferred events. Its
mint and transfer methods are the only code that changes a balance; the
event fold goes through them too, so replaying a tampered log fails the
same checks a live command would.
"""

from typing import Any

from dao_governance.kernel.events import Event
from dao_governance.token.invariants import (
    validate_caller_is_sender,
    validate_positive_amount,
    validate_sufficient_balance,
)
from dao_governance.token.models import Holder

LEDGER_STREAM_ID = "ledger"


class TokenLedger:
    """
    Projection: account balances and total supply

    Accounts with a zero balance are dropped from the map; unknown
    accounts read as 0.
    """

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.supply: int = 0
        self.version: int = 0

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def total_supply(self) -> int:
        return self.supply

    def mint(self, recipient: str, amount: int) -> None:
        """
        Credit new tokens to recipient

        Raises:
            ZeroAmount: If amount <= 0
        """
        validate_positive_amount(amount)
        self.balances[recipient] = self.balance_of(recipient) + amount
        self.supply += amount

    def transfer(self, amount: int, sender: str, recipient: str, caller: str | None) -> None:
        """
        Move tokens from sender to recipient

        Checks run in order: caller, amount, balance. A self-transfer passes
        the checks and changes nothing.

        Raises:
            NotAuthorized: If caller != sender
            ZeroAmount: If amount <= 0
            InsufficientBalance: If amount exceeds the sender's balance
        """
        validate_caller_is_sender(caller, sender)
        validate_positive_amount(amount)
        validate_sufficient_balance(sender, self.balance_of(sender), amount)

        if sender == recipient:
            return

        remaining = self.balance_of(sender) - amount
        if remaining:
            self.balances[sender] = remaining
        else:
            del self.balances[sender]
        self.balances[recipient] = self.balance_of(recipient) + amount

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "TokensMinted":
            self.mint(event.payload["recipient"], event.payload["amount"])
            self.version = event.version

        elif event.event_type == "TokensTransferred":
            sender = event.payload["sender"]
            self.transfer(
                event.payload["amount"], sender, event.payload["recipient"], caller=sender
            )
            self.version = event.version

    def holders(self) -> list[Holder]:
        """Accounts with a positive balance, largest first"""
        ranked = sorted(self.balances.items(), key=lambda item: (-item[1], item[0]))
        return [
            Holder(
                account=account,
                balance=balance,
                share=balance / self.supply if self.supply else 0.0,
            )
            for account, balance in ranked
        ]

    def is_conserved(self) -> bool:
        """True when the balances sum to total supply"""
        return sum(self.balances.values()) == self.supply

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for storage"""
        return {
            "balances": dict(self.balances),
            "total_supply": self.supply,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenLedger":
        """Deserialize from dict"""
        ledger = cls()
        ledger.balances = {k: v for k, v in data.get("balances", {}).items() if v}
        ledger.supply = data.get("total_supply", 0)
        ledger.version = data.get("version", 0)
        return ledger
