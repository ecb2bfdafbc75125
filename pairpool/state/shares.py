"""
Liquidity share tracking.

Shares are fungible claims on one pool. The pool only mints and burns; holders
may move shares between themselves with `transfer`.
"""

from __future__ import annotations

from typing import Any, Dict

from .balances import AccountId, Amount, LedgerError


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


class ShareLedger:
    """Interface for minting, burning and reading liquidity shares."""

    def mint(self, to: AccountId, amount: Amount) -> None:
        raise NotImplementedError

    def burn(self, holder: AccountId, amount: Amount) -> None:
        raise NotImplementedError

    def balance_of(self, holder: AccountId) -> Amount:
        raise NotImplementedError

    def total_supply(self) -> Amount:
        raise NotImplementedError

    def snapshot(self) -> Any:
        raise NotImplementedError

    def restore(self, snap: Any) -> None:
        raise NotImplementedError


class InMemoryShareLedger(ShareLedger):
    """
    Share table mapping holder -> amount, plus the running total supply.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._balances: Dict[AccountId, Amount] = {}
        self._total_supply: Amount = 0

    def _set(self, holder: AccountId, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = amount

    def mint(self, to: AccountId, amount: Amount) -> None:
        _require_amount("amount", amount)
        self._set(to, self.balance_of(to) + amount)
        self._total_supply += amount

    def burn(self, holder: AccountId, amount: Amount) -> None:
        _require_amount("amount", amount)
        current = self.balance_of(holder)
        if current < amount:
            raise LedgerError(f"cannot burn {amount} shares from {holder}: balance {current}")
        self._set(holder, current - amount)
        self._total_supply -= amount

    def transfer(self, sender: AccountId, to: AccountId, amount: Amount) -> None:
        """Move shares between holders; total supply is unchanged."""
        _require_amount("amount", amount)
        current = self.balance_of(sender)
        if current < amount:
            raise LedgerError(f"cannot transfer {amount} shares from {sender}: balance {current}")
        self._set(sender, current - amount)
        self._set(to, self.balance_of(to) + amount)

    def balance_of(self, holder: AccountId) -> Amount:
        return self._balances.get(holder, 0)

    def total_supply(self) -> Amount:
        return self._total_supply

    def snapshot(self) -> Any:
        return (dict(self._balances), self._total_supply)

    def restore(self, snap: Any) -> None:
        balances, total_supply = snap
        self._balances = dict(balances)
        self._total_supply = total_supply

    def get_all_balances(self) -> Dict[AccountId, Amount]:
        return dict(self._balances)

    def verify_supply(self) -> bool:
        """Verify the stored total equals the sum of balances."""
        return sum(self._balances.values()) == self._total_supply

    def __repr__(self) -> str:
        return f"InMemoryShareLedger({len(self._balances)} holders, supply={self._total_supply})"
