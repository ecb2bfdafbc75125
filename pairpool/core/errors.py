"""Exception types raised by the pool state machine.

Every pool operation either completes or raises one of these before any
state is committed. ``code`` is a stable, machine-readable identifier used by
the executor and the scenario runner.
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for pool failures."""

    code = "pool_error"


class NotInitialized(PoolError):
    """Raised when an operation needs the asset pair before it has been set."""

    code = "not_initialized"


class AssetMismatch(PoolError):
    """Raised when the supplied pair differs from the pool's fixed pair."""

    code = "asset_mismatch"

    def __init__(self, expected: tuple[str, str], got: tuple[str, str]) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"asset pair mismatch: expected {expected}, got {got}")


class InsufficientShares(PoolError):
    """Raised when a redemption exceeds the caller's share balance."""

    code = "insufficient_shares"

    def __init__(self, holder: str, balance: int, requested: int) -> None:
        self.holder = holder
        self.balance = balance
        self.requested = requested
        super().__init__(f"insufficient shares for {holder}: {balance} < {requested}")


class UnsupportedPath(AssetMismatch):
    """Raised when a swap path does not reference the pool's two assets, one each."""

    code = "unsupported_path"

    def __init__(self, expected: tuple[str, str], path: object) -> None:
        self.expected = expected
        self.got = path
        PoolError.__init__(self, f"path {path!r} does not trade pair {expected}")


class SlippageExceeded(PoolError):
    """Raised when an amount falls below a caller-supplied minimum."""

    code = "slippage_exceeded"

    def __init__(self, what: str, actual: int, minimum: int) -> None:
        self.what = what
        self.actual = actual
        self.minimum = minimum
        super().__init__(f"{what} ({actual}) < minimum ({minimum})")


class ZeroReserve(PoolError):
    """Raised when a quote would divide by an empty reserve."""

    code = "zero_reserve"


class DeadlineExpired(PoolError):
    """Raised by the executor when a call arrives after its deadline."""

    code = "deadline_expired"

    def __init__(self, deadline: int, now: int) -> None:
        self.deadline = deadline
        self.now = now
        super().__init__(f"deadline {deadline} expired at {now}")
