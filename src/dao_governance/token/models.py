"""
Token domain models

A single fungible token. Metadata is informational; balances and supply
live in the TokenLedger projection.
"""

from pydantic import BaseModel, Field


class TokenMetadata(BaseModel):
    """Name, symbol and decimals reported by the token's read-only getters"""

    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    decimals: int = Field(..., ge=0, le=18)

    model_config = {"frozen": True}


class Holder(BaseModel):
    """One account's position in the ledger"""

    account: str
    balance: int = Field(..., ge=0)
    share: float = Field(
        ..., ge=0.0, le=1.0, description="Fraction of total supply held"
    )
