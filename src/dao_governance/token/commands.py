"""
Token Commands - requests to change balances

Amounts are deliberately unconstrained here: a non-positive amount is a
governance error (ZeroAmount, code 107), not a malformed request.
"""

from pydantic import BaseModel, Field


class Mint(BaseModel):
    """Create new tokens for a recipient"""

    recipient: str = Field(..., min_length=1)
    amount: int


class Transfer(BaseModel):
    """
    Move tokens between accounts

    Only the sender may move its own tokens; the caller identity is taken
    from the command envelope, not from this payload.
    """

    amount: int
    sender: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
