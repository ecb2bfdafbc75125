"""
Single-pair constant-product pool.

The pool owns no balances of its own: reserves are always read from the asset
ledger (the pool account's holdings) and the share supply from the share
ledger. The only state kept here is the asset pair, which is fixed by the
first successful `add_liquidity` and never changes afterwards.

Every operation is atomic. Preconditions are checked before any ledger call;
if anything raises after a ledger mutation, both ledgers and the pool state
are restored to the snapshot taken at the start of the call.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from ..state.balances import AccountId, Amount, AssetId, AssetLedger
from ..state.shares import ShareLedger
from .cpmm import compute_price, compute_redemption, compute_shares_minted
from .cpmm import get_amount_out as _get_amount_out
from .errors import (
    AssetMismatch,
    InsufficientShares,
    NotInitialized,
    SlippageExceeded,
    UnsupportedPath,
    ZeroReserve,
)

logger = logging.getLogger(__name__)

DEFAULT_POOL_ACCOUNT = "pool"


def _require_amount(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    return value


def _require_id(name: str, value: str) -> str:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{name} must be a non-empty string")
    return value


@dataclass(frozen=True)
class Uninitialized:
    """Pool before its first deposit: no asset pair yet."""


@dataclass(frozen=True)
class Initialized:
    """Pool with its asset pair fixed. Order matters: (asset_a, asset_b)."""

    asset_a: AssetId
    asset_b: AssetId

    def __post_init__(self) -> None:
        _require_id("asset_a", self.asset_a)
        _require_id("asset_b", self.asset_b)

    def matches(self, asset_a: AssetId, asset_b: AssetId) -> bool:
        return self.asset_a == asset_a and self.asset_b == asset_b


PoolState = Union[Uninitialized, Initialized]


class Pool:
    """
    Constant-product pool for one asset pair.

    Args:
        assets: ledger holding the pool's reserves under `account`
        shares: ledger of the pool's liquidity shares
        account: the pool's account id in the asset ledger
    """

    def __init__(
        self,
        assets: AssetLedger,
        shares: ShareLedger,
        *,
        account: AccountId = DEFAULT_POOL_ACCOUNT,
        state: Optional[PoolState] = None,
    ) -> None:
        if state is not None and not isinstance(state, (Uninitialized, Initialized)):
            raise TypeError("state must be Uninitialized or Initialized")
        self._assets = assets
        self._shares = shares
        self.account = _require_id("account", account)
        self._state: PoolState = Uninitialized() if state is None else state

    # -- read-only views -----------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def asset_ledger(self) -> AssetLedger:
        return self._assets

    @property
    def share_ledger(self) -> ShareLedger:
        return self._shares

    @property
    def pair(self) -> Tuple[AssetId, AssetId]:
        """The fixed (asset_a, asset_b) pair. Raises NotInitialized before the first deposit."""
        state = self._state
        if not isinstance(state, Initialized):
            raise NotInitialized("pool has no asset pair yet")
        return state.asset_a, state.asset_b

    def reserves(self) -> Tuple[Amount, Amount]:
        """Current (balance_a, balance_b) of the pool account."""
        asset_a, asset_b = self.pair
        return (
            self._assets.balance_of(asset_a, self.account),
            self._assets.balance_of(asset_b, self.account),
        )

    def total_shares(self) -> Amount:
        return self._shares.total_supply()

    # -- internals -----------------------------------------------------------

    def _require_pair(self, asset_a: AssetId, asset_b: AssetId) -> Initialized:
        state = self._state
        if not isinstance(state, Initialized):
            raise NotInitialized("pool has no asset pair yet")
        if not state.matches(asset_a, asset_b):
            raise AssetMismatch((state.asset_a, state.asset_b), (asset_a, asset_b))
        return state

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        asset_snap = self._assets.snapshot()
        share_snap = self._shares.snapshot()
        state = self._state
        try:
            yield
        except BaseException:
            self._assets.restore(asset_snap)
            self._shares.restore(share_snap)
            self._state = state
            raise

    def _pull(self, asset: AssetId, sender: AccountId, amount: Amount) -> None:
        # The pool approves itself before each pull; ledgers without approvals ignore it.
        self._assets.approve(asset, self.account, self.account, amount)
        self._assets.transfer_into(asset, sender, amount)

    # -- operations ----------------------------------------------------------

    def add_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        desired_a: Amount,
        desired_b: Amount,
        min_a: Amount,
        min_b: Amount,
        recipient: AccountId,
        deadline: int,
        *,
        caller: AccountId,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        Deposit both assets and mint floor(sqrt(desired_a * desired_b)) shares to `caller`.

        The first call fixes the pool pair. Later calls must pass the same pair
        in the same order. `min_a`, `min_b`, `recipient` and `deadline` are not
        enforced here.

        Returns:
            (balance_a, balance_b, shares_minted) with the balances read after the deposit
        """
        _require_id("asset_a", asset_a)
        _require_id("asset_b", asset_b)
        _require_id("caller", caller)
        _require_amount("desired_a", desired_a)
        _require_amount("desired_b", desired_b)
        _require_amount("min_a", min_a)
        _require_amount("min_b", min_b)

        if isinstance(self._state, Initialized):
            self._require_pair(asset_a, asset_b)

        first_deposit = isinstance(self._state, Uninitialized)
        with self._atomic():
            if first_deposit:
                self._state = Initialized(asset_a=asset_a, asset_b=asset_b)

            self._pull(asset_a, caller, desired_a)
            self._pull(asset_b, caller, desired_b)

            shares_minted = compute_shares_minted(desired_a, desired_b)
            self._shares.mint(caller, shares_minted)

            balance_a, balance_b = self.reserves()

        if first_deposit:
            logger.info("pool %s initialized with pair (%s, %s)", self.account, asset_a, asset_b)
        logger.debug(
            "add_liquidity caller=%s desired=(%d, %d) minted=%d reserves=(%d, %d)",
            caller, desired_a, desired_b, shares_minted, balance_a, balance_b,
        )
        return balance_a, balance_b, shares_minted

    def remove_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        share_amount: Amount,
        min_a: Amount,
        min_b: Amount,
        recipient: AccountId,
        deadline: int,
        *,
        caller: AccountId,
    ) -> Tuple[Amount, Amount]:
        """
        Burn `share_amount` of the caller's shares and release the matching assets.

        The minimums are checked twice: first against the pool's whole reserves,
        then against the computed withdrawal.
        """
        _require_id("caller", caller)
        _require_amount("share_amount", share_amount)
        _require_amount("min_a", min_a)
        _require_amount("min_b", min_b)
        self._require_pair(asset_a, asset_b)

        held = self._shares.balance_of(caller)
        if held < share_amount:
            raise InsufficientShares(caller, held, share_amount)

        balance_a, balance_b = self.reserves()
        if balance_a < min_a:
            raise SlippageExceeded("reserve_a", balance_a, min_a)
        if balance_b < min_b:
            raise SlippageExceeded("reserve_b", balance_b, min_b)

        total_shares = self._shares.total_supply()
        if total_shares == 0:
            raise ZeroReserve("no liquidity shares outstanding")
        withdrawn_a, withdrawn_b = compute_redemption(share_amount, total_shares, balance_a, balance_b)

        if withdrawn_a < min_a:
            raise SlippageExceeded("amount_a", withdrawn_a, min_a)
        if withdrawn_b < min_b:
            raise SlippageExceeded("amount_b", withdrawn_b, min_b)

        with self._atomic():
            self._shares.burn(caller, share_amount)
            self._assets.transfer_out(asset_a, caller, withdrawn_a)
            self._assets.transfer_out(asset_b, caller, withdrawn_b)

        logger.debug(
            "remove_liquidity caller=%s burned=%d of %d withdrawn=(%d, %d)",
            caller, share_amount, total_shares, withdrawn_a, withdrawn_b,
        )
        return withdrawn_a, withdrawn_b

    def swap_exact_in(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        recipient: AccountId,
        deadline: int,
        *,
        caller: AccountId,
    ) -> List[Amount]:
        """
        Swap exactly `amount_in` of path[0] for path[1].

        The two directions read reserves at different points:
        - A -> B reads reserves before the pull and adds amount_in to reserve_a.
        - B -> A pulls first and divides by reserve_b as it stands afterwards.
        They agree whenever the ledger credits exactly `amount_in`.

        Returns:
            [amount_in, amount_out]
        """
        _require_id("caller", caller)
        _require_amount("amount_in", amount_in)
        _require_amount("amount_out_min", amount_out_min)
        asset_a, asset_b = self.pair

        if isinstance(path, (str, bytes)) or len(path) != 2:
            raise UnsupportedPath((asset_a, asset_b), path)
        asset_in, asset_out = path[0], path[1]
        if (asset_in, asset_out) not in ((asset_a, asset_b), (asset_b, asset_a)) or asset_in == asset_out:
            raise UnsupportedPath((asset_a, asset_b), list(path))

        available_out = self._assets.balance_of(asset_out, self.account)
        if available_out < amount_out_min:
            raise SlippageExceeded("reserve_out", available_out, amount_out_min)

        with self._atomic():
            if asset_in == asset_a:
                reserve_a, reserve_b = self.reserves()
                self._pull(asset_a, caller, amount_in)
                amount_out = _get_amount_out(amount_in, reserve_a, reserve_b)
            else:
                self._pull(asset_b, caller, amount_in)
                reserve_a, reserve_b = self.reserves()
                if reserve_b == 0:
                    raise ZeroReserve("reserve_b is empty after the transfer")
                amount_out = (amount_in * reserve_a) // reserve_b

            if amount_out < amount_out_min:
                raise SlippageExceeded("amount_out", amount_out, amount_out_min)

            self._assets.transfer_out(asset_out, caller, amount_out)

        logger.debug(
            "swap_exact_in caller=%s %s->%s in=%d out=%d",
            caller, asset_in, asset_out, amount_in, amount_out,
        )
        return [amount_in, amount_out]

    # -- quotes --------------------------------------------------------------

    def get_price(self, asset_a: AssetId, asset_b: AssetId) -> int:
        """Price of asset_a in asset_b, scaled by 1e18."""
        self._require_pair(asset_a, asset_b)
        balance_a, balance_b = self.reserves()
        return compute_price(balance_a, balance_b)

    @staticmethod
    def get_amount_out(amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return _get_amount_out(amount_in, reserve_in, reserve_out)

    def __repr__(self) -> str:
        state = self._state
        if isinstance(state, Initialized):
            balance_a, balance_b = self.reserves()
            return (
                f"Pool(account={self.account!r}, pair=({state.asset_a}, {state.asset_b}), "
                f"reserves=({balance_a}, {balance_b}), total_shares={self.total_shares()})"
            )
        return f"Pool(account={self.account!r}, uninitialized)"
