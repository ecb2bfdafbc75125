"""
Scenario replay: run a scripted sequence of pool operations.

A scenario is a mapping (YAML or JSON on disk):

    config:            # optional PoolConfig fields
      enforce_deadlines: true
    now: 1700000000    # optional fixed clock for deadline checks
    transfer_fee_bps:  # optional fee-on-transfer assets
      TAX: 100
    mint:              # faucet grants: [account, asset, amount]
      - [alice, A, 10000]
    allow:             # allowances when config.require_allowance is set
      - [alice, A, 10000]
    steps:
      - op: add_liquidity
        caller: alice
        asset_a: A
        ...

Each step runs through a `PoolExecutor`; failures are recorded, not raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

import yaml

from .config import config_from_mapping
from .executor import PoolExecutor, unix_now
from .pool_snapshot import PoolSnapshot, snapshot_pool


@dataclass(frozen=True)
class StepOutcome:
    index: int
    op: str
    ok: bool
    value: Any = None
    error: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"index": self.index, "op": self.op, "ok": self.ok}
        if self.ok:
            out["value"] = self.value
        else:
            out["error"] = self.error
            out["code"] = self.code
        return out


@dataclass(frozen=True)
class ScenarioResult:
    steps: List[StepOutcome]
    snapshot: PoolSnapshot

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)


def load_scenario(path: Path | str) -> Mapping[str, Any]:
    """Read a scenario file. JSON is accepted as a subset of YAML."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise TypeError("scenario must be a mapping")
    return obj


def _grants(scenario: Mapping[str, Any], key: str) -> Sequence[Sequence[Any]]:
    entries = scenario.get(key) or []
    if not isinstance(entries, list):
        raise TypeError(f"scenario.{key} must be a list")
    for entry in entries:
        if not isinstance(entry, (list, tuple)) or len(entry) != 3:
            raise TypeError(f"scenario.{key} entries must be [account, asset, amount]")
    return entries


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def run_scenario(scenario: Mapping[str, Any], *, stop_on_error: bool = False) -> ScenarioResult:
    """Execute every step of `scenario` and return per-step outcomes plus the final snapshot."""
    if not isinstance(scenario, Mapping):
        raise TypeError("scenario must be a mapping")

    config = config_from_mapping(scenario.get("config") or {})
    now = scenario.get("now")
    if now is None:
        clock = unix_now
    else:
        if not isinstance(now, int) or isinstance(now, bool):
            raise TypeError("scenario.now must be an int")
        fixed_now = int(now)
        clock = lambda: fixed_now  # noqa: E731

    executor = PoolExecutor.in_memory(
        config,
        clock=clock,
        transfer_fee_bps=scenario.get("transfer_fee_bps"),
    )
    ledger = executor.pool.asset_ledger
    for account, asset, amount in _grants(scenario, "mint"):
        ledger.mint(account, asset, amount)
    for account, asset, amount in _grants(scenario, "allow"):
        ledger.allow(asset, account, amount)

    steps = scenario.get("steps") or []
    if not isinstance(steps, list):
        raise TypeError("scenario.steps must be a list")

    outcomes: List[StepOutcome] = []
    for index, step in enumerate(steps):
        if not isinstance(step, Mapping) or not isinstance(step.get("op"), str):
            raise TypeError(f"scenario.steps[{index}] must be a mapping with an 'op' string")
        kwargs = {k: v for k, v in step.items() if k != "op"}
        op = step["op"]
        res = executor.submit(op, **kwargs)
        outcomes.append(
            StepOutcome(
                index=index,
                op=op,
                ok=res.ok,
                value=_jsonable(res.value),
                error=res.error,
                code=res.code,
            )
        )
        if stop_on_error and not res.ok:
            break

    return ScenarioResult(steps=outcomes, snapshot=snapshot_pool(executor.pool))
