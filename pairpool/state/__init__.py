"""
Ledger state for pairpool
"""

from .balances import AssetLedger, InMemoryAssetLedger, LedgerError
from .shares import InMemoryShareLedger, ShareLedger

__all__ = [
    "AssetLedger",
    "InMemoryAssetLedger",
    "LedgerError",
    "ShareLedger",
    "InMemoryShareLedger",
]
