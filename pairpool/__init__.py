"""
pairpool: a single-pair constant-product AMM pool.
"""

from .core import (
    AssetMismatch,
    InsufficientShares,
    NotInitialized,
    Pool,
    PoolError,
    SlippageExceeded,
    UnsupportedPath,
    ZeroReserve,
    get_amount_out,
    isqrt,
)
from .state import InMemoryAssetLedger, InMemoryShareLedger, LedgerError

__version__ = "0.1.0"

__all__ = [
    "AssetMismatch",
    "InsufficientShares",
    "NotInitialized",
    "Pool",
    "PoolError",
    "SlippageExceeded",
    "UnsupportedPath",
    "ZeroReserve",
    "get_amount_out",
    "isqrt",
    "InMemoryAssetLedger",
    "InMemoryShareLedger",
    "LedgerError",
]
