# src/tierstake/runtime/executor_boot.py

from __future__ import annotations

from typing import Optional

from tierstake.runtime.executor import StakingExecutor
from tierstake.runtime.node_config import NodeConfig, load_node_config


def build_executor(cfg: Optional[NodeConfig] = None) -> StakingExecutor:
    """
    Build a StakingExecutor from an explicit node config or, if omitted,
    from TIERSTAKE_CONFIG_PATH (falling back to production-safe defaults).

    tierstake.api.app calls this with no args in production.
    """
    c = cfg or load_node_config()
    return StakingExecutor(
        db_path=c.db_path,
        chain_id=c.chain_id,
        allow_unsigned_txs=c.allow_unsigned_txs,
        genesis_balances=c.genesis_balances,
        genesis_keys=c.genesis_keys,
    )
