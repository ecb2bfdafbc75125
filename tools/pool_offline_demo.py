#!/usr/bin/env python3

from __future__ import annotations

import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pairpool.core.errors import PoolError
from pairpool.integration import PoolConfig, PoolExecutor, snapshot_pool


def _now() -> int:
    return int(time.time())


def main() -> int:
    provider = "alice"
    trader = "bob"
    asset_a = "0x" + "11" * 32
    asset_b = "0x" + "22" * 32

    executor = PoolExecutor.in_memory(PoolConfig(enforce_deadlines=True))
    ledger = executor.pool.asset_ledger
    ledger.mint(provider, asset_a, 10_000)
    ledger.mint(provider, asset_b, 10_000)
    ledger.mint(trader, asset_a, 1_000)

    try:
        used_a, used_b, minted = executor.call(
            "add_liquidity",
            asset_a=asset_a,
            asset_b=asset_b,
            desired_a=1000,
            desired_b=4000,
            min_a=0,
            min_b=0,
            recipient=provider,
            deadline=_now() + 3600,
            caller=provider,
        )
    except PoolError as exc:
        print(f"[offline-demo] FAIL (add liquidity): {exc}")
        return 1
    print(f"[offline-demo] reserves after deposit: reserve_a={used_a} reserve_b={used_b} shares_minted={minted}")

    before_in = ledger.balance_of(asset_a, trader)
    before_out = ledger.balance_of(asset_b, trader)
    print(f"[offline-demo] balances before swap: in={before_in} out={before_out}")

    try:
        amount_in, amount_out = executor.call(
            "swap_exact_in",
            amount_in=100,
            amount_out_min=1,
            path=[asset_a, asset_b],
            recipient=trader,
            deadline=_now() + 3600,
            caller=trader,
        )
    except PoolError as exc:
        print(f"[offline-demo] FAIL (swap): {exc}")
        return 1

    reserve_a, reserve_b = executor.pool.reserves()
    print(f"[offline-demo] reserves after swap:   reserve_a={reserve_a} reserve_b={reserve_b}")

    after_in = ledger.balance_of(asset_a, trader)
    after_out = ledger.balance_of(asset_b, trader)
    print(f"[offline-demo] balances after swap:  in={after_in} out={after_out}")
    print(f"[offline-demo] deltas: d_in={after_in - before_in} d_out={after_out - before_out}")
    print(f"[offline-demo] price_a_in_b_e18={executor.call('get_price', asset_a=asset_a, asset_b=asset_b)}")
    print(f"[offline-demo] snapshot commitment={snapshot_pool(executor.pool).commitment_hex()}")
    print(f"[offline-demo] OK: swapped {amount_in} for {amount_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
