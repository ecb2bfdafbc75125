"""
Pool state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / snapshot distribution.
- Round-trippable into a `Pool` backed by in-memory ledgers, including the
  ledger's transfer policy (fees, allowance requirement) and authorizations.
- Explicit versioning.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from ..core.pool import Initialized, Pool, Uninitialized
from ..state.balances import InMemoryAssetLedger
from ..state.canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.shares import InMemoryShareLedger


POOL_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise TypeError(f"{name} must be a non-empty string")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_entries(value: Any, *, name: str) -> List[Mapping[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list")
    for entry in value:
        if not isinstance(entry, Mapping):
            raise TypeError(f"{name} entries must be objects")
    return value


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Deterministic, versioned snapshot of a pool and, when in-memory, its ledgers.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("pool_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def _asset_ledger_data(assets: InMemoryAssetLedger) -> Dict[str, Any]:
    balances = [
        {"account": account, "asset": asset, "amount": int(amount)}
        for (account, asset), amount in assets.get_all_balances().items()
    ]
    balances.sort(key=lambda e: (e["account"], e["asset"]))

    allowances = [
        {"owner": owner, "asset": asset, "amount": int(amount)}
        for (owner, asset), amount in assets.get_all_allowances().items()
    ]
    allowances.sort(key=lambda e: (e["owner"], e["asset"]))

    approvals = [
        {"owner": owner, "spender": spender, "asset": asset, "amount": int(amount)}
        for (owner, spender, asset), amount in assets.get_all_approvals().items()
    ]
    approvals.sort(key=lambda e: (e["owner"], e["spender"], e["asset"]))

    fees = [{"asset": asset, "bps": int(bps)} for asset, bps in assets.transfer_fee_bps.items()]
    fees.sort(key=lambda e: e["asset"])

    return {
        "ledger": {"require_allowance": bool(assets.require_allowance), "transfer_fee_bps": fees},
        "balances": balances,
        "allowances": allowances,
        "approvals": approvals,
    }


def snapshot_pool(pool: Pool, *, version: int = POOL_SNAPSHOT_VERSION) -> PoolSnapshot:
    """
    Capture the pool pair, reserves and share supply.

    Full ledger tables are included only when the pool runs on the in-memory
    ledgers; other ledgers are summarized by the pool's own view.
    """
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    state = pool.state
    pair = None
    reserves = None
    if isinstance(state, Initialized):
        pair = [state.asset_a, state.asset_b]
        reserves = list(pool.reserves())

    data: Dict[str, Any] = {
        "version": int(version),
        "canonical_encoding_version": CANONICAL_ENCODING_VERSION,
        "pool_account": pool.account,
        "pair": pair,
        "reserves": reserves,
        "total_shares": int(pool.total_shares()),
    }

    assets = pool.asset_ledger
    if isinstance(assets, InMemoryAssetLedger):
        data.update(_asset_ledger_data(assets))

    shares = pool.share_ledger
    if isinstance(shares, InMemoryShareLedger):
        holders = [{"holder": holder, "amount": int(amount)} for holder, amount in shares.get_all_balances().items()]
        holders.sort(key=lambda e: e["holder"])
        data["shares"] = holders

    return PoolSnapshot(version=version, data=data)


def _asset_ledger_from_snapshot(snapshot: Mapping[str, Any], account: str) -> InMemoryAssetLedger:
    policy = snapshot.get("ledger") or {}
    if not isinstance(policy, Mapping):
        raise TypeError("snapshot.ledger must be an object")
    require_allowance = policy.get("require_allowance", False)
    if not isinstance(require_allowance, bool):
        raise TypeError("snapshot.ledger.require_allowance must be a bool")

    fees: Dict[str, int] = {}
    for entry in _require_entries(policy.get("transfer_fee_bps"), name="snapshot.ledger.transfer_fee_bps"):
        asset = _require_str(entry.get("asset"), name="transfer_fee_bps.asset")
        if asset in fees:
            raise ValueError("duplicate transfer_fee_bps entry (asset)")
        fees[asset] = _require_int(entry.get("bps"), name="transfer_fee_bps.bps")

    assets = InMemoryAssetLedger(account, require_allowance=require_allowance, transfer_fee_bps=fees)

    seen_balances: set[tuple[str, str]] = set()
    for entry in _require_entries(snapshot.get("balances"), name="snapshot.balances"):
        key = (
            _require_str(entry.get("account"), name="balance.account"),
            _require_str(entry.get("asset"), name="balance.asset"),
        )
        if key in seen_balances:
            raise ValueError("duplicate balance entry (account, asset)")
        seen_balances.add(key)
        assets.set(key[0], key[1], _require_int(entry.get("amount"), name="balance.amount"))

    seen_allowances: set[tuple[str, str]] = set()
    for entry in _require_entries(snapshot.get("allowances"), name="snapshot.allowances"):
        owner = _require_str(entry.get("owner"), name="allowance.owner")
        asset = _require_str(entry.get("asset"), name="allowance.asset")
        if (owner, asset) in seen_allowances:
            raise ValueError("duplicate allowance entry (owner, asset)")
        seen_allowances.add((owner, asset))
        assets.allow(asset, owner, _require_int(entry.get("amount"), name="allowance.amount"))

    seen_approvals: set[tuple[str, str, str]] = set()
    for entry in _require_entries(snapshot.get("approvals"), name="snapshot.approvals"):
        key3 = (
            _require_str(entry.get("owner"), name="approval.owner"),
            _require_str(entry.get("spender"), name="approval.spender"),
            _require_str(entry.get("asset"), name="approval.asset"),
        )
        if key3 in seen_approvals:
            raise ValueError("duplicate approval entry (owner, spender, asset)")
        seen_approvals.add(key3)
        assets.approve(key3[2], key3[0], key3[1], _require_int(entry.get("amount"), name="approval.amount"))

    return assets


def pool_from_snapshot(snapshot: Mapping[str, Any]) -> Pool:
    """Rebuild a pool on fresh in-memory ledgers from `PoolSnapshot.data`."""
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", POOL_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != POOL_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")
    encoding = snapshot.get("canonical_encoding_version", CANONICAL_ENCODING_VERSION)
    if encoding != CANONICAL_ENCODING_VERSION:
        raise ValueError(f"unsupported canonical encoding version: {encoding!r}")

    account = _require_str(snapshot.get("pool_account"), name="snapshot.pool_account")

    pair = snapshot.get("pair")
    if pair is None:
        state = Uninitialized()
    else:
        if not isinstance(pair, list) or len(pair) != 2:
            raise TypeError("snapshot.pair must be a two-element list or null")
        state = Initialized(
            asset_a=_require_str(pair[0], name="snapshot.pair[0]"),
            asset_b=_require_str(pair[1], name="snapshot.pair[1]"),
        )

    assets = _asset_ledger_from_snapshot(snapshot, account)

    reserves = snapshot.get("reserves")
    if "balances" in snapshot:
        if isinstance(state, Initialized):
            expected = [assets.balance_of(state.asset_a, account), assets.balance_of(state.asset_b, account)]
        else:
            expected = None
        if reserves != expected:
            raise ValueError(f"snapshot.reserves ({reserves}) does not match balance table ({expected})")

    shares = InMemoryShareLedger()
    seen_holders: set[str] = set()
    for entry in _require_entries(snapshot.get("shares"), name="snapshot.shares"):
        holder = _require_str(entry.get("holder"), name="shares.holder")
        if holder in seen_holders:
            raise ValueError("duplicate shares entry (holder)")
        seen_holders.add(holder)
        shares.mint(holder, _require_int(entry.get("amount"), name="shares.amount"))

    total_shares = _require_int(snapshot.get("total_shares", 0), name="snapshot.total_shares")
    if "shares" in snapshot and shares.total_supply() != total_shares:
        raise ValueError(
            f"snapshot.total_shares ({total_shares}) does not match share table ({shares.total_supply()})"
        )

    return Pool(assets, shares, account=account, state=state)
