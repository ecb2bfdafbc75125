"""
Constant Product Market Maker (CPMM) arithmetic.

Pure integer functions used by the pool state machine. No fees are charged.

Rounding rules (all floor division):
- swap output:       amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))
- share mint:        shares = floor(sqrt(desired_a * desired_b))
- share redemption:  withdrawn = floor(share_amount / total_shares) * balance
- price:             price = floor(balance_b * PRICE_SCALE / balance_a)

The redemption rule divides before it multiplies, so any redemption of less
than the full supply yields zero (see DESIGN.md).
"""

from __future__ import annotations

from typing import Tuple

from ..state.balances import Amount
from .errors import ZeroReserve

# Fixed-point scale used by `compute_price`.
PRICE_SCALE = 10**18


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def isqrt(y: int) -> int:
    """
    Integer square root, floor(sqrt(y)), by the Babylonian method.

    Seeded at y // 2 + 1 and iterated while the estimate keeps decreasing.
    Inputs 1..3 short-circuit to 1, and 0 maps to 0.
    """
    _require_amount("y", y)
    if y > 3:
        z = y
        x = y // 2 + 1
        while x < z:
            z = x
            x = (y // x + x) // 2
        return z
    if y != 0:
        return 1
    return 0


def get_amount_out(amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    """
    Quote the output of an exact-in swap against (reserve_in, reserve_out).

        amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))

    Stateless: usable for quoting independent of any pool.

    Raises:
        ZeroReserve: if reserve_in + amount_in == 0
    """
    _require_amount("amount_in", amount_in)
    _require_amount("reserve_in", reserve_in)
    _require_amount("reserve_out", reserve_out)
    denominator = reserve_in + amount_in
    if denominator == 0:
        raise ZeroReserve("reserve_in + amount_in must be positive")
    return (amount_in * reserve_out) // denominator


def compute_shares_minted(desired_a: Amount, desired_b: Amount) -> Amount:
    """Shares minted for a deposit: floor(sqrt(desired_a * desired_b)), whatever the pool holds."""
    _require_amount("desired_a", desired_a)
    _require_amount("desired_b", desired_b)
    return isqrt(desired_a * desired_b)


def compute_redemption(
    share_amount: Amount,
    total_shares: Amount,
    balance_a: Amount,
    balance_b: Amount,
) -> Tuple[Amount, Amount]:
    """
    Asset amounts released for burning `share_amount` shares.

    Formula (division first):
        withdrawn_a = floor(share_amount / total_shares) * balance_a
        withdrawn_b = floor(share_amount / total_shares) * balance_b

    Raises:
        ValueError: if total_shares is zero
    """
    _require_amount("share_amount", share_amount)
    _require_amount("total_shares", total_shares)
    _require_amount("balance_a", balance_a)
    _require_amount("balance_b", balance_b)
    if total_shares == 0:
        raise ValueError("total_shares must be positive")
    ratio = share_amount // total_shares
    return ratio * balance_a, ratio * balance_b


def compute_price(balance_a: Amount, balance_b: Amount) -> int:
    """Price of asset A in units of asset B, scaled by PRICE_SCALE."""
    _require_amount("balance_a", balance_a)
    _require_amount("balance_b", balance_b)
    if balance_a == 0:
        raise ZeroReserve("balance_a must be positive to quote a price")
    return (balance_b * PRICE_SCALE) // balance_a
