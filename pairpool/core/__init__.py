"""
Core pool algorithms
"""

from .cpmm import (
    PRICE_SCALE,
    compute_price,
    compute_redemption,
    compute_shares_minted,
    get_amount_out,
    isqrt,
)
from .errors import (
    AssetMismatch,
    DeadlineExpired,
    InsufficientShares,
    NotInitialized,
    PoolError,
    SlippageExceeded,
    UnsupportedPath,
    ZeroReserve,
)
from .pool import Initialized, Pool, PoolState, Uninitialized

__all__ = [
    "PRICE_SCALE",
    "compute_price",
    "compute_redemption",
    "compute_shares_minted",
    "get_amount_out",
    "isqrt",
    "AssetMismatch",
    "DeadlineExpired",
    "InsufficientShares",
    "NotInitialized",
    "PoolError",
    "SlippageExceeded",
    "UnsupportedPath",
    "ZeroReserve",
    "Initialized",
    "Pool",
    "PoolState",
    "Uninitialized",
]
