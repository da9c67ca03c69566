"""
Token Events - facts about the ledger

Both land on the single 'ledger' stream, so their versions give a total
order over every balance change.
"""

from pydantic import BaseModel, Field


class TokensMinted(BaseModel):
    """New tokens were created for a recipient"""

    recipient: str
    amount: int = Field(..., gt=0)
    total_supply: int = Field(..., ge=0, description="Supply after the mint")


class TokensTransferred(BaseModel):
    """
    Tokens moved from sender to recipient

    A self-transfer is still recorded; applying it leaves every balance
    unchanged.
    """

    sender: str
    recipient: str
    amount: int = Field(..., gt=0)
