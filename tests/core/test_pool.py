# [TESTER] v1

from __future__ import annotations

import importlib.util
import math
from typing import Optional

import pytest

from pairpool.core.errors import (
    AssetMismatch,
    InsufficientShares,
    NotInitialized,
    SlippageExceeded,
    UnsupportedPath,
    ZeroReserve,
)
from pairpool.core.pool import Initialized, Pool, Uninitialized
from pairpool.state.balances import InMemoryAssetLedger, LedgerError
from pairpool.state.shares import InMemoryShareLedger

A = "0x" + "01" * 32
B = "0x" + "02" * 32
C = "0x" + "03" * 32
ALICE = "alice"
BOB = "bob"
DEADLINE = 9999999999


def _pool(*, fees: Optional[dict[str, int]] = None, require_allowance: bool = False) -> Pool:
    assets = InMemoryAssetLedger("pool", require_allowance=require_allowance, transfer_fee_bps=fees)
    assets.mint(ALICE, A, 1_000_000)
    assets.mint(ALICE, B, 1_000_000)
    assets.mint(BOB, A, 1_000_000)
    assets.mint(BOB, B, 1_000_000)
    return Pool(assets, InMemoryShareLedger(), account="pool")


def _seed(pool: Pool, desired_a: int = 1000, desired_b: int = 4000) -> tuple[int, int, int]:
    return pool.add_liquidity(A, B, desired_a, desired_b, 0, 0, ALICE, DEADLINE, caller=ALICE)


def test_end_to_end_seed_then_swap() -> None:
    pool = _pool()
    assert isinstance(pool.state, Uninitialized)

    assert _seed(pool) == (1000, 4000, 2000)
    assert pool.state == Initialized(asset_a=A, asset_b=B)
    assert pool.share_ledger.balance_of(ALICE) == 2000

    assert pool.swap_exact_in(100, 0, [A, B], BOB, DEADLINE, caller=BOB) == [100, 363]
    assert pool.reserves() == (1100, 3637)
    assert pool.asset_ledger.balance_of(B, BOB) == 1_000_000 + 363
    assert pool.asset_ledger.balance_of(A, BOB) == 1_000_000 - 100


def test_add_liquidity_returns_post_deposit_balances_not_used_amounts() -> None:
    pool = _pool()
    _seed(pool)
    used_a, used_b, minted = pool.add_liquidity(A, B, 10, 40, 0, 0, BOB, DEADLINE, caller=BOB)
    assert (used_a, used_b) == (1010, 4040)
    assert minted == 20


def test_add_liquidity_mints_sqrt_regardless_of_pool_state() -> None:
    pool = _pool()
    _seed(pool)
    pool.swap_exact_in(500, 0, [A, B], BOB, DEADLINE, caller=BOB)

    # Ratio and supply are ignored: a lopsided deposit still mints floor(sqrt(a*b)).
    _, _, minted = pool.add_liquidity(A, B, 9, 1_000_000 - 4000, 0, 0, ALICE, DEADLINE, caller=ALICE)
    assert minted == math.isqrt(9 * (1_000_000 - 4000))
    assert pool.total_shares() == 2000 + minted


def test_add_liquidity_ignores_minimums_and_deadline() -> None:
    pool = _pool()
    balance_a, balance_b, minted = pool.add_liquidity(A, B, 100, 100, 10**9, 10**9, BOB, 0, caller=ALICE)
    assert (balance_a, balance_b, minted) == (100, 100, 100)


def test_add_liquidity_mints_to_caller_not_recipient() -> None:
    pool = _pool()
    pool.add_liquidity(A, B, 100, 100, 0, 0, BOB, DEADLINE, caller=ALICE)
    assert pool.share_ledger.balance_of(ALICE) == 100
    assert pool.share_ledger.balance_of(BOB) == 0


def test_negligible_deposit_mints_zero_shares_silently() -> None:
    pool = _pool()
    assert pool.add_liquidity(A, B, 0, 5, 0, 0, ALICE, DEADLINE, caller=ALICE) == (0, 5, 0)
    assert pool.total_shares() == 0
    assert pool.pair == (A, B)
    with pytest.raises(ZeroReserve):
        pool.get_price(A, B)


def test_pair_is_locked_after_first_deposit() -> None:
    pool = _pool()
    _seed(pool)

    with pytest.raises(AssetMismatch):
        pool.add_liquidity(B, A, 10, 10, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(AssetMismatch):
        pool.add_liquidity(A, C, 10, 10, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(AssetMismatch):
        pool.remove_liquidity(A, C, 1, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(AssetMismatch):
        pool.remove_liquidity(B, A, 1, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(AssetMismatch):
        pool.get_price(B, A)
    with pytest.raises(AssetMismatch):
        pool.swap_exact_in(1, 0, [A, C], BOB, DEADLINE, caller=BOB)

    assert pool.pair == (A, B)
    assert pool.reserves() == (1000, 4000)


def test_operations_before_first_deposit_fail() -> None:
    pool = _pool()
    with pytest.raises(NotInitialized):
        pool.remove_liquidity(A, B, 0, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(NotInitialized):
        pool.swap_exact_in(1, 0, [A, B], ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(NotInitialized):
        pool.get_price(A, B)
    with pytest.raises(NotInitialized):
        pool.reserves()


def test_failed_first_deposit_leaves_pool_uninitialized() -> None:
    assets = InMemoryAssetLedger("pool")
    assets.mint(ALICE, A, 1000)
    pool = Pool(assets, InMemoryShareLedger())

    with pytest.raises(LedgerError, match="insufficient"):
        pool.add_liquidity(A, B, 1000, 4000, 0, 0, ALICE, DEADLINE, caller=ALICE)

    assert isinstance(pool.state, Uninitialized)
    assert assets.balance_of(A, ALICE) == 1000
    assert assets.balance_of(A, "pool") == 0
    assert pool.total_shares() == 0


def test_redeeming_half_the_supply_releases_nothing() -> None:
    assets = InMemoryAssetLedger("pool")
    assets.set("pool", A, 1000)
    assets.set("pool", B, 2000)
    shares = InMemoryShareLedger()
    shares.mint(ALICE, 50)
    shares.mint(BOB, 50)
    pool = Pool(assets, shares, state=Initialized(asset_a=A, asset_b=B))

    assert pool.remove_liquidity(A, B, 50, 0, 0, ALICE, DEADLINE, caller=ALICE) == (0, 0)
    assert shares.balance_of(ALICE) == 0
    assert shares.total_supply() == 50
    assert pool.reserves() == (1000, 2000)


def test_redeeming_full_supply_empties_the_pool() -> None:
    pool = _pool()
    _seed(pool)
    pool.swap_exact_in(100, 0, [A, B], BOB, DEADLINE, caller=BOB)

    assert pool.remove_liquidity(A, B, 2000, 0, 0, BOB, DEADLINE, caller=ALICE) == (1100, 3637)
    assert pool.reserves() == (0, 0)
    assert pool.total_shares() == 0
    assert pool.asset_ledger.balance_of(A, ALICE) == 1_000_000 + 100
    assert pool.asset_ledger.balance_of(B, ALICE) == 1_000_000 - 363


def test_remove_liquidity_checks_share_balance() -> None:
    pool = _pool()
    _seed(pool)
    with pytest.raises(InsufficientShares) as exc:
        pool.remove_liquidity(A, B, 1, 0, 0, BOB, DEADLINE, caller=BOB)
    assert exc.value.balance == 0
    assert exc.value.requested == 1


def test_remove_liquidity_precheck_is_against_whole_reserve() -> None:
    pool = _pool()
    _seed(pool)
    with pytest.raises(SlippageExceeded) as exc:
        pool.remove_liquidity(A, B, 2000, 1001, 0, ALICE, DEADLINE, caller=ALICE)
    assert exc.value.what == "reserve_a"
    with pytest.raises(SlippageExceeded) as exc:
        pool.remove_liquidity(A, B, 2000, 0, 4001, ALICE, DEADLINE, caller=ALICE)
    assert exc.value.what == "reserve_b"


def test_remove_liquidity_postcheck_keeps_shares() -> None:
    pool = _pool()
    _seed(pool)
    pool.add_liquidity(A, B, 1000, 4000, 0, 0, BOB, DEADLINE, caller=BOB)

    # Passes the reserve pre-check, then the truncated withdrawal (0) fails it.
    with pytest.raises(SlippageExceeded) as exc:
        pool.remove_liquidity(A, B, 2000, 1, 0, ALICE, DEADLINE, caller=ALICE)
    assert exc.value.what == "amount_a"
    assert exc.value.actual == 0
    assert pool.share_ledger.balance_of(ALICE) == 2000
    assert pool.total_shares() == 4000


def test_swap_b_to_a() -> None:
    pool = _pool()
    _seed(pool)
    assert pool.swap_exact_in(400, 0, [B, A], BOB, DEADLINE, caller=BOB) == [400, 90]
    assert pool.reserves() == (910, 4400)


def test_swap_directions_agree_with_exact_crediting_ledger() -> None:
    for amount in (1, 7, 100, 999, 123_456):
        pool = _pool()
        _seed(pool)
        _, out = pool.swap_exact_in(amount, 0, [B, A], BOB, DEADLINE, caller=BOB)
        assert out == Pool.get_amount_out(amount, 4000, 1000)


def test_swap_directions_diverge_on_fee_on_transfer_assets() -> None:
    fees = {A: 1000, B: 1000}  # 10% of every pull is burned

    pool = _pool(fees=fees)
    assert _seed(pool) == (900, 3600, 2000)
    # A -> B prices with the nominal input against reserves read before the pull.
    assert pool.swap_exact_in(100, 0, [A, B], BOB, DEADLINE, caller=BOB) == [100, 360]
    assert pool.reserves() == (990, 3240)

    pool = _pool(fees=fees)
    _seed(pool)
    # B -> A divides by reserve_b after the (taxed) input has landed.
    assert pool.swap_exact_in(1000, 0, [B, A], BOB, DEADLINE, caller=BOB) == [1000, 200]
    assert Pool.get_amount_out(1000, 3600, 900) == 195
    assert pool.reserves() == (700, 4500)


def test_swap_rejects_paths_outside_the_pair() -> None:
    pool = _pool()
    _seed(pool)
    for path in ([A, A], [B, B], [A], [A, B, A], [C, B], "AB"):
        with pytest.raises(UnsupportedPath):
            pool.swap_exact_in(1, 0, path, BOB, DEADLINE, caller=BOB)
    assert pool.reserves() == (1000, 4000)


def test_swap_precheck_against_whole_output_reserve() -> None:
    pool = _pool()
    _seed(pool)
    with pytest.raises(SlippageExceeded) as exc:
        pool.swap_exact_in(10**5, 4001, [A, B], BOB, DEADLINE, caller=BOB)
    assert exc.value.what == "reserve_out"


def test_swap_slippage_after_pull_rolls_back() -> None:
    pool = _pool()
    _seed(pool)
    with pytest.raises(SlippageExceeded) as exc:
        pool.swap_exact_in(400, 500, [B, A], BOB, DEADLINE, caller=BOB)
    assert exc.value.what == "amount_out"
    assert exc.value.actual == 90
    assert pool.reserves() == (1000, 4000)
    assert pool.asset_ledger.balance_of(B, BOB) == 1_000_000

    with pytest.raises(SlippageExceeded):
        pool.swap_exact_in(100, 364, [A, B], BOB, DEADLINE, caller=BOB)
    assert pool.reserves() == (1000, 4000)
    assert pool.swap_exact_in(100, 363, [A, B], BOB, DEADLINE, caller=BOB) == [100, 363]


def test_get_price_and_stateless_quote() -> None:
    pool = _pool()
    _seed(pool)
    assert pool.get_price(A, B) == 4 * 10**18
    pool.swap_exact_in(100, 0, [A, B], BOB, DEADLINE, caller=BOB)
    assert pool.get_price(A, B) == 3306363636363636363
    assert Pool.get_amount_out(100, 1000, 4000) == 363
    assert pool.get_amount_out(100, 1000, 4000) == 363


def test_pulls_need_allowance_when_ledger_requires_it() -> None:
    pool = _pool(require_allowance=True)
    ledger = pool.asset_ledger
    assert isinstance(ledger, InMemoryAssetLedger)

    with pytest.raises(LedgerError, match="allowance"):
        _seed(pool)
    assert isinstance(pool.state, Uninitialized)

    ledger.allow(A, ALICE, 1000)
    ledger.allow(B, ALICE, 4000)
    assert _seed(pool) == (1000, 4000, 2000)
    assert ledger.allowance(A, ALICE) == 0
    assert ledger.allowance(B, ALICE) == 0
    # Self-approval issued before each pull.
    assert ledger.approval(A, "pool", "pool") == 1000
    assert ledger.approval(B, "pool", "pool") == 4000


def test_invalid_amounts_are_rejected_before_ledger_calls() -> None:
    pool = _pool()
    with pytest.raises(ValueError, match="non-negative"):
        pool.add_liquidity(A, B, -1, 10, 0, 0, ALICE, DEADLINE, caller=ALICE)
    with pytest.raises(TypeError):
        pool.add_liquidity(A, B, 1.5, 10, 0, 0, ALICE, DEADLINE, caller=ALICE)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        pool.add_liquidity("", B, 1, 10, 0, 0, ALICE, DEADLINE, caller=ALICE)
    assert isinstance(pool.state, Uninitialized)


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given, settings

    @settings(max_examples=100, deadline=None)
    @given(
        st.lists(
            st.tuples(st.integers(min_value=0, max_value=10**5), st.integers(min_value=0, max_value=10**5)),
            min_size=1,
            max_size=6,
        )
    )
    def test_every_deposit_mints_floor_sqrt(deposits: list[tuple[int, int]]) -> None:
        pool = _pool()
        for desired_a, desired_b in deposits:
            _, _, minted = pool.add_liquidity(A, B, desired_a, desired_b, 0, 0, ALICE, DEADLINE, caller=ALICE)
            assert minted == math.isqrt(desired_a * desired_b)
        assert pool.total_shares() == sum(math.isqrt(a * b) for a, b in deposits)

    @settings(max_examples=100, deadline=None)
    @given(
        st.integers(min_value=1, max_value=10**5),
        st.integers(min_value=1, max_value=10**5),
        st.lists(st.tuples(st.booleans(), st.integers(min_value=0, max_value=10**4)), max_size=8),
    )
    def test_swaps_conserve_assets_and_never_shrink_k(seed_a: int, seed_b: int, swaps: list[tuple[bool, int]]) -> None:
        pool = _pool()
        pool.add_liquidity(A, B, seed_a, seed_b, 0, 0, ALICE, DEADLINE, caller=ALICE)
        ledger = pool.asset_ledger
        assert isinstance(ledger, InMemoryAssetLedger)
        total_a = sum(v for (_, asset), v in ledger.get_all_balances().items() if asset == A)
        total_b = sum(v for (_, asset), v in ledger.get_all_balances().items() if asset == B)

        for a_to_b, amount in swaps:
            reserve_a, reserve_b = pool.reserves()
            path = [A, B] if a_to_b else [B, A]
            _, out = pool.swap_exact_in(amount, 0, path, BOB, DEADLINE, caller=BOB)
            new_a, new_b = pool.reserves()
            assert new_a * new_b >= reserve_a * reserve_b
            assert out < (reserve_b if a_to_b else reserve_a) or amount == 0

        assert sum(v for (_, asset), v in ledger.get_all_balances().items() if asset == A) == total_a
        assert sum(v for (_, asset), v in ledger.get_all_balances().items() if asset == B) == total_b
