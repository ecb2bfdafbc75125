"""
Pool deployment configuration.

Sources, in increasing precedence: dataclass defaults, a YAML file, and
`PAIRPOOL_*` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.pool import DEFAULT_POOL_ACCOUNT

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass(frozen=True)
class PoolConfig:
    # Account id of the pool in the asset ledger.
    pool_account: str = DEFAULT_POOL_ACCOUNT
    # Reject calls whose deadline is before the executor clock. Off by default:
    # the pool itself never checks deadlines.
    enforce_deadlines: bool = False
    # In-memory ledger only: require callers to `allow()` the pool before a pull.
    require_allowance: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.pool_account, str) or not self.pool_account:
            raise ValueError("pool_account must be a non-empty string")
        if not isinstance(self.enforce_deadlines, bool):
            raise TypeError("enforce_deadlines must be a bool")
        if not isinstance(self.require_allowance, bool):
            raise TypeError("require_allowance must be a bool")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")


def config_from_mapping(data: Mapping[str, Any], *, base: Optional[PoolConfig] = None) -> PoolConfig:
    """Build a config from a mapping, rejecting unknown keys."""
    if not isinstance(data, Mapping):
        raise TypeError("config must be a mapping")
    known = {f.name for f in fields(PoolConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {unknown}")
    return replace(base or PoolConfig(), **dict(data))


def load_config(path: Path | str) -> PoolConfig:
    """Load a `PoolConfig` from a YAML file. An empty file yields the defaults."""
    text = Path(path).read_text(encoding="utf-8")
    obj = yaml.safe_load(text)
    if obj is None:
        return PoolConfig()
    return config_from_mapping(obj)


def _env_bool(raw: str, *, name: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag: {raw!r}")


def config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    *,
    base: Optional[PoolConfig] = None,
) -> PoolConfig:
    """Overlay `PAIRPOOL_*` environment variables on `base` (or the defaults)."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    account = env.get("PAIRPOOL_POOL_ACCOUNT")
    if account is not None and account.strip():
        overrides["pool_account"] = account.strip()

    for key, name in (
        ("enforce_deadlines", "PAIRPOOL_ENFORCE_DEADLINES"),
        ("require_allowance", "PAIRPOOL_REQUIRE_ALLOWANCE"),
    ):
        raw = env.get(name)
        if raw is not None and raw.strip():
            overrides[key] = _env_bool(raw, name=name)

    level = env.get("PAIRPOOL_LOG_LEVEL")
    if level is not None and level.strip():
        overrides["log_level"] = level.strip().upper()

    return replace(base or PoolConfig(), **overrides)
