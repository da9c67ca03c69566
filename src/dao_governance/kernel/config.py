"""
Governance configuration - constants fixed when the engine is deployed

Quorum and voting period shape every proposal's outcome, so they are set
once at construction and never mutated per call.
"""

import os

from pydantic import BaseModel, Field


class GovernanceConfig(BaseModel):
    """
    Deployment parameters for a governance engine

    Defaults: a 51% quorum over total supply and a 144-block (roughly one
    day) voting period.
    """

    quorum_percentage: int = Field(
        default=51,
        ge=0,
        le=100,
        description="Share of total supply that must vote for an outcome to be binding",
    )

    voting_period: int = Field(
        default=144,
        ge=1,
        description="Blocks a proposal stays open after creation",
    )

    # Token metadata - informational only
    token_name: str = Field(default="DAO-TOKEN", min_length=1, max_length=32)
    token_symbol: str = Field(default="DAO", min_length=1, max_length=32)
    token_decimals: int = Field(default=6, ge=0, le=18)

    minter: str | None = Field(
        default=None,
        description="If set, only this caller may mint; None leaves minting to the host",
    )

    verify_invariants: bool = Field(
        default=False,
        description="Re-check conservation and tally invariants after every commit",
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "description": "Fixed parameters of a token-weighted governance engine"
        },
    }

    def quorum_threshold(self, total_supply: int) -> int:
        """
        Minimum total vote weight for a binding outcome

        Integer division truncates, so 51% of 102000 is 52020 and
        51% of 3 is 1.
        """
        return total_supply * self.quorum_percentage // 100

    @classmethod
    def from_env(cls, prefix: str = "DAO_") -> "GovernanceConfig":
        """
        Build a config from environment variables

        Reads <prefix>QUORUM_PERCENTAGE, <prefix>VOTING_PERIOD,
        <prefix>TOKEN_NAME, <prefix>TOKEN_SYMBOL, <prefix>TOKEN_DECIMALS and
        <prefix>MINTER. Missing variables fall back to the defaults.
        """
        env_fields = {
            "quorum_percentage": "QUORUM_PERCENTAGE",
            "voting_period": "VOTING_PERIOD",
            "token_name": "TOKEN_NAME",
            "token_symbol": "TOKEN_SYMBOL",
            "token_decimals": "TOKEN_DECIMALS",
            "minter": "MINTER",
        }
        values = {
            field: os.environ[prefix + suffix]
            for field, suffix in env_fields.items()
            if prefix + suffix in os.environ
        }
        return cls(**values)

