"""
Command-line entry point.

    pairpool run scenario.yaml [--json] [--stop-on-error]
    pairpool quote AMOUNT_IN RESERVE_IN RESERVE_OUT
    pairpool isqrt Y
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

import yaml

from .core.cpmm import get_amount_out, isqrt
from .core.errors import PoolError
from .integration.config import config_from_env
from .integration.scenario import load_scenario, run_scenario
from .logging_config import configure_logging


def _cmd_run(args: argparse.Namespace) -> int:
    try:
        scenario = load_scenario(args.scenario)
        result = run_scenario(scenario, stop_on_error=args.stop_on_error)
    except (OSError, yaml.YAMLError, TypeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if args.json:
        report = {
            "ok": result.ok,
            "steps": [s.to_dict() for s in result.steps],
            "snapshot": result.snapshot.data,
            "commitment": result.snapshot.commitment_hex(),
        }
        print(json.dumps(report, indent=2, sort_keys=True))
    else:
        for s in result.steps:
            if s.ok:
                print(f"[{s.index}] {s.op}: ok {s.value}")
            else:
                print(f"[{s.index}] {s.op}: FAIL {s.code}: {s.error}")
        data = result.snapshot.data
        print(f"pair={data['pair']} reserves={data['reserves']} total_shares={data['total_shares']}")
        print(f"commitment={result.snapshot.commitment_hex()}")
    return 0 if result.ok else 1


def _cmd_quote(args: argparse.Namespace) -> int:
    try:
        print(get_amount_out(args.amount_in, args.reserve_in, args.reserve_out))
    except (PoolError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def _cmd_isqrt(args: argparse.Namespace) -> int:
    try:
        print(isqrt(args.y))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pairpool", description="Single-pair constant-product AMM tools")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: PAIRPOOL_LOG_LEVEL or INFO)")
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Replay a YAML/JSON scenario against a fresh in-memory pool")
    run.add_argument("scenario", help="Path to the scenario file")
    run.add_argument("--json", action="store_true", help="Print a JSON report")
    run.add_argument("--stop-on-error", action="store_true", help="Stop at the first failed step")
    run.set_defaults(func=_cmd_run)

    quote = sub.add_parser("quote", help="Quote an exact-in swap against given reserves")
    quote.add_argument("amount_in", type=int)
    quote.add_argument("reserve_in", type=int)
    quote.add_argument("reserve_out", type=int)
    quote.set_defaults(func=_cmd_quote)

    sq = sub.add_parser("isqrt", help="Integer square root")
    sq.add_argument("y", type=int)
    sq.set_defaults(func=_cmd_isqrt)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = args.log_level or config_from_env().log_level
    configure_logging(level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
