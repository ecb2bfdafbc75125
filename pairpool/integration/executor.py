"""
Execution environment for a pool (imperative shell).

The pool core assumes serialized, non-reentrant calls and never looks at the
clock. `PoolExecutor` supplies both:
- one lock per pool, so concurrent callers are totally ordered;
- optional deadline enforcement against an injected clock.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ..core.errors import DeadlineExpired, PoolError
from ..core.pool import Pool
from ..state.balances import AssetId, InMemoryAssetLedger, LedgerError
from ..state.shares import InMemoryShareLedger
from .config import PoolConfig

logger = logging.getLogger(__name__)

# Operations with a `deadline` argument.
_TIMED_OPERATIONS = frozenset({"add_liquidity", "remove_liquidity", "swap_exact_in"})
OPERATIONS = frozenset(_TIMED_OPERATIONS | {"get_price", "get_amount_out"})


def unix_now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class TxResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None
    code: Optional[str] = None


class PoolExecutor:
    """Serializes calls into one `Pool` and applies the deadline policy."""

    def __init__(
        self,
        pool: Pool,
        *,
        config: PoolConfig = PoolConfig(),
        clock: Callable[[], int] = unix_now,
    ) -> None:
        if pool.account != config.pool_account:
            raise ValueError(
                f"pool account {pool.account!r} does not match config.pool_account {config.pool_account!r}"
            )
        self.pool = pool
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()

    @classmethod
    def in_memory(
        cls,
        config: PoolConfig = PoolConfig(),
        *,
        clock: Callable[[], int] = unix_now,
        transfer_fee_bps: Optional[Mapping[AssetId, int]] = None,
    ) -> "PoolExecutor":
        """Wire a pool to fresh in-memory ledgers according to `config`."""
        assets = InMemoryAssetLedger(
            config.pool_account,
            require_allowance=config.require_allowance,
            transfer_fee_bps=transfer_fee_bps,
        )
        shares = InMemoryShareLedger()
        pool = Pool(assets, shares, account=config.pool_account)
        return cls(pool, config=config, clock=clock)

    def _check_deadline(self, op: str, kwargs: Dict[str, Any]) -> None:
        if not self.config.enforce_deadlines or op not in _TIMED_OPERATIONS:
            return
        deadline = kwargs.get("deadline")
        if not isinstance(deadline, int) or isinstance(deadline, bool):
            raise TypeError("deadline must be an int")
        now = self._clock()
        if deadline < now:
            raise DeadlineExpired(deadline, now)

    def call(self, op: str, **kwargs: Any) -> Any:
        """Run one pool operation and return its result. Errors propagate."""
        if op not in OPERATIONS:
            raise ValueError(f"unknown operation: {op!r}")
        with self._lock:
            self._check_deadline(op, kwargs)
            return getattr(self.pool, op)(**kwargs)

    def submit(self, op: str, **kwargs: Any) -> TxResult:
        """Like `call`, but reports pool and ledger failures as a `TxResult`."""
        try:
            value = self.call(op, **kwargs)
        except (PoolError, LedgerError) as exc:
            logger.info("%s rejected: %s: %s", op, exc.code, exc)
            return TxResult(ok=False, error=str(exc), code=exc.code)
        except (TypeError, ValueError) as exc:
            logger.info("%s rejected: invalid arguments: %s", op, exc)
            return TxResult(ok=False, error=str(exc), code="invalid_arguments")
        return TxResult(ok=True, value=value)
