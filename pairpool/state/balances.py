"""
Asset ledger: per-account balances of fungible assets.

`AssetLedger` is the capability the pool consumes. `InMemoryAssetLedger` is a
dict-backed reference implementation used by the executor, the scenario
runner and the tests.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple


# Type aliases
AccountId = str
AssetId = str
Amount = int  # Non-negative integer (arbitrary precision)

BPS_DENOMINATOR = 10_000


class LedgerError(Exception):
    """Raised by a ledger when a transfer, mint or burn cannot be applied."""

    code = "ledger_error"


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


class AssetLedger:
    """
    Interface for moving value between accounts and the pool.

    `transfer_into` always credits the pool account the ledger was bound to;
    `transfer_out` always debits it.
    """

    def transfer_into(self, asset: AssetId, sender: AccountId, amount: Amount) -> None:
        raise NotImplementedError

    def transfer_out(self, asset: AssetId, to: AccountId, amount: Amount) -> None:
        raise NotImplementedError

    def balance_of(self, asset: AssetId, holder: AccountId) -> Amount:
        raise NotImplementedError

    def approve(self, asset: AssetId, owner: AccountId, spender: AccountId, amount: Amount) -> None:
        """Approval step issued before each pull. Ledgers without approvals ignore it."""
        return None

    def snapshot(self) -> Any:
        raise NotImplementedError

    def restore(self, snap: Any) -> None:
        raise NotImplementedError


class InMemoryAssetLedger(AssetLedger):
    """
    Balance table mapping (account, asset) -> amount.

    Notes:
    - Zero balances are omitted to keep the table sparse.
    - With `require_allowance`, a pull needs a prior `allow(asset, owner, amount)`
      and consumes it.
    - `transfer_fee_bps` simulates fee-on-transfer assets: the fee is taken from
      the amount credited to the custodian and burned.
    """

    def __init__(
        self,
        custodian: AccountId,
        *,
        require_allowance: bool = False,
        transfer_fee_bps: Optional[Mapping[AssetId, int]] = None,
    ) -> None:
        if not isinstance(custodian, str) or not custodian:
            raise ValueError("custodian must be a non-empty string")
        fees = dict(transfer_fee_bps or {})
        for asset, bps in fees.items():
            if not isinstance(bps, int) or isinstance(bps, bool) or not (0 <= bps <= BPS_DENOMINATOR):
                raise ValueError(f"transfer fee for {asset} must be in [0, {BPS_DENOMINATOR}]: {bps}")
        self.custodian = custodian
        self.require_allowance = require_allowance
        self._transfer_fee_bps: Dict[AssetId, int] = fees
        self._balances: Dict[Tuple[AccountId, AssetId], Amount] = {}
        self._allowances: Dict[Tuple[AccountId, AssetId], Amount] = {}
        self._approvals: Dict[Tuple[AccountId, AccountId, AssetId], Amount] = {}

    def get(self, account: AccountId, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        """Set balance for (account, asset)."""
        _require_amount("amount", amount)
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def _add(self, account: AccountId, asset: AssetId, delta: int) -> None:
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise LedgerError(
                f"insufficient {asset} balance for {account}: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, asset, new_balance)

    def mint(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        """Faucet: create `amount` of `asset` in `account`."""
        _require_amount("amount", amount)
        self._add(account, asset, amount)

    def allow(self, asset: AssetId, owner: AccountId, amount: Amount) -> None:
        """Authorize the custodian to pull up to `amount` of `asset` from `owner`."""
        _require_amount("amount", amount)
        if amount == 0:
            self._allowances.pop((owner, asset), None)
        else:
            self._allowances[(owner, asset)] = amount

    def allowance(self, asset: AssetId, owner: AccountId) -> Amount:
        return self._allowances.get((owner, asset), 0)

    def approve(self, asset: AssetId, owner: AccountId, spender: AccountId, amount: Amount) -> None:
        _require_amount("amount", amount)
        if amount == 0:
            self._approvals.pop((owner, spender, asset), None)
        else:
            self._approvals[(owner, spender, asset)] = amount

    def approval(self, asset: AssetId, owner: AccountId, spender: AccountId) -> Amount:
        return self._approvals.get((owner, spender, asset), 0)

    def transfer_into(self, asset: AssetId, sender: AccountId, amount: Amount) -> None:
        _require_amount("amount", amount)
        if self.require_allowance:
            allowed = self.allowance(asset, sender)
            if allowed < amount:
                raise LedgerError(f"allowance of {sender} for {asset} is {allowed} < {amount}")
            self.allow(asset, sender, allowed - amount)
        fee = (amount * self._transfer_fee_bps.get(asset, 0)) // BPS_DENOMINATOR
        self._add(sender, asset, -amount)
        self._add(self.custodian, asset, amount - fee)

    def transfer_out(self, asset: AssetId, to: AccountId, amount: Amount) -> None:
        _require_amount("amount", amount)
        self._add(self.custodian, asset, -amount)
        self._add(to, asset, amount)

    def balance_of(self, asset: AssetId, holder: AccountId) -> Amount:
        return self.get(holder, asset)

    def snapshot(self) -> Any:
        return (dict(self._balances), dict(self._allowances), dict(self._approvals))

    def restore(self, snap: Any) -> None:
        balances, allowances, approvals = snap
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._approvals = dict(approvals)

    def get_all_balances(self) -> Dict[Tuple[AccountId, AssetId], Amount]:
        """Return all balances as (account, asset) -> amount."""
        return dict(self._balances)

    def get_all_allowances(self) -> Dict[Tuple[AccountId, AssetId], Amount]:
        """Return all allowances as (owner, asset) -> amount."""
        return dict(self._allowances)

    def get_all_approvals(self) -> Dict[Tuple[AccountId, AccountId, AssetId], Amount]:
        """Return all approvals as (owner, spender, asset) -> amount."""
        return dict(self._approvals)

    @property
    def transfer_fee_bps(self) -> Dict[AssetId, int]:
        return dict(self._transfer_fee_bps)

    def verify_non_negative(self) -> bool:
        return all(amount >= 0 for amount in self._balances.values())

    def __repr__(self) -> str:
        return f"InMemoryAssetLedger(custodian={self.custodian!r}, {len(self._balances)} entries)"
