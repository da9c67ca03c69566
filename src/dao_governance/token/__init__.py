"""
Token module - the fungible token ledger

Balances, total supply, mint and transfer.
"""

from dao_governance.token.commands import Mint, Transfer
from dao_governance.token.events import TokensMinted, TokensTransferred
from dao_governance.token.handlers import TokenCommandHandlers
from dao_governance.token.models import Holder, TokenMetadata
from dao_governance.token.projections import LEDGER_STREAM_ID, TokenLedger

__all__ = [
    "Mint",
    "Transfer",
    "TokensMinted",
    "TokensTransferred",
    "TokenCommandHandlers",
    "Holder",
    "TokenMetadata",
    "LEDGER_STREAM_ID",
    "TokenLedger",
]
