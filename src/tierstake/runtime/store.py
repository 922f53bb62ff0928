# src/tierstake/runtime/store.py
from __future__ import annotations

from typing import Any, Dict, Optional

from tierstake.runtime.errors import ApplyError
from tierstake.staking.records import PoolAggregate, StakePosition

Json = Dict[str, Any]


def _ensure_root_dict(parent: Json, key: str) -> Json:
    cur = parent.get(key)
    if not isinstance(cur, dict):
        cur = {}
        parent[key] = cur
    return cur


class RecordStore:
    """Keyed storage for staking records.

    Pools are keyed by pool_id, positions by (pool_id, staker). Records are
    copied in and out as dataclasses; callers mutate the dataclass and put it
    back, so nothing is visible until put_* is called.
    """

    def get_pool(self, pool_id: str) -> Optional[PoolAggregate]:
        raise NotImplementedError

    def create_pool(self, pool: PoolAggregate) -> None:
        raise NotImplementedError

    def put_pool(self, pool: PoolAggregate) -> None:
        raise NotImplementedError

    def get_position(self, pool_id: str, staker: str) -> Optional[StakePosition]:
        raise NotImplementedError

    def create_position(self, position: StakePosition) -> None:
        raise NotImplementedError

    def put_position(self, position: StakePosition) -> None:
        raise NotImplementedError


class StateRecordStore(RecordStore):
    """RecordStore over the ledger state dict.

    Layout:
      state["staking"]["pools"][pool_id]
      state["staking"]["positions"][pool_id][staker]
    """

    def __init__(self, state: Json) -> None:
        self._state = state

    def _peek(self, key: str) -> Json:
        root = self._state.get("staking")
        cur = root.get(key) if isinstance(root, dict) else None
        return cur if isinstance(cur, dict) else {}

    def _root(self) -> Json:
        root = _ensure_root_dict(self._state, "staking")
        _ensure_root_dict(root, "pools")
        _ensure_root_dict(root, "positions")
        return root

    def get_pool(self, pool_id: str) -> Optional[PoolAggregate]:
        rec = self._peek("pools").get(pool_id)
        return PoolAggregate.from_json(rec) if isinstance(rec, dict) else None

    def create_pool(self, pool: PoolAggregate) -> None:
        pools = self._root()["pools"]
        if pool.pool_id in pools:
            raise ApplyError("already_exists", "pool_exists", {"pool_id": pool.pool_id})
        pools[pool.pool_id] = pool.to_json()

    def put_pool(self, pool: PoolAggregate) -> None:
        pools = self._root()["pools"]
        if pool.pool_id not in pools:
            raise ApplyError("not_found", "pool_missing", {"pool_id": pool.pool_id})
        pools[pool.pool_id] = pool.to_json()

    def get_position(self, pool_id: str, staker: str) -> Optional[StakePosition]:
        by_pool = self._peek("positions").get(pool_id)
        if not isinstance(by_pool, dict):
            return None
        rec = by_pool.get(staker)
        return StakePosition.from_json(rec) if isinstance(rec, dict) else None

    def create_position(self, position: StakePosition) -> None:
        by_pool = _ensure_root_dict(self._root()["positions"], position.pool_id)
        if position.owner in by_pool:
            raise ApplyError(
                "already_exists",
                "position_exists",
                {"pool_id": position.pool_id, "staker": position.owner},
            )
        by_pool[position.owner] = position.to_json()

    def put_position(self, position: StakePosition) -> None:
        by_pool = self._root()["positions"].get(position.pool_id)
        if not isinstance(by_pool, dict) or position.owner not in by_pool:
            raise ApplyError(
                "not_found",
                "position_missing",
                {"pool_id": position.pool_id, "staker": position.owner},
            )
        by_pool[position.owner] = position.to_json()

    def iter_positions(self, pool_id: str):
        by_pool = self._peek("positions").get(pool_id)
        if not isinstance(by_pool, dict):
            return
        for staker in sorted(by_pool.keys()):
            rec = by_pool.get(staker)
            if isinstance(rec, dict):
                yield StakePosition.from_json(rec)
