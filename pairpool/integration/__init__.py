"""
Execution environment, configuration and replay tooling around the pool core
"""

from .config import PoolConfig, config_from_env, config_from_mapping, load_config
from .executor import PoolExecutor, TxResult
from .pool_snapshot import PoolSnapshot, pool_from_snapshot, snapshot_pool
from .scenario import ScenarioResult, StepOutcome, load_scenario, run_scenario

__all__ = [
    "PoolConfig",
    "config_from_env",
    "config_from_mapping",
    "load_config",
    "PoolExecutor",
    "TxResult",
    "PoolSnapshot",
    "pool_from_snapshot",
    "snapshot_pool",
    "ScenarioResult",
    "StepOutcome",
    "load_scenario",
    "run_scenario",
]
