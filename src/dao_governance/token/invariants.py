"""
Token Invariants - rules every balance change must satisfy

Pure functions: they inspect values and raise, nothing else.
"""

from dao_governance.kernel.errors import InsufficientBalance, NotAuthorized, ZeroAmount


def validate_positive_amount(amount: int) -> None:
    """
    Raises:
        ZeroAmount: If amount is zero or negative
    """
    if amount <= 0:
        raise ZeroAmount(amount)


def validate_caller_is_sender(caller: str | None, sender: str) -> None:
    """
    Only the owner of an account may move its tokens

    Raises:
        NotAuthorized: If caller differs from sender (or is unknown)
    """
    if caller != sender:
        raise NotAuthorized(caller or "<anonymous>", sender, action="transfer")


def validate_sufficient_balance(account: str, balance: int, required: int) -> None:
    """
    Raises:
        InsufficientBalance: If balance is below required
    """
    if balance < required:
        raise InsufficientBalance(account, balance, required)


def validate_minter(caller: str | None, minter: str | None, recipient: str) -> None:
    """
    Enforce the configured minter, if any

    With no minter configured, minting authority is left to the host.

    Raises:
        NotAuthorized: If a minter is configured and caller is someone else
    """
    if minter is not None and caller != minter:
        raise NotAuthorized(caller or "<anonymous>", recipient, action="mint")
