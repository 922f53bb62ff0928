# src/tierstake/runtime/state_invariants.py
from __future__ import annotations

"""State invariants / normalization helpers.

Ledger state is a nested JSON-like dict mutated deterministically by apply_*
modules. This module:

  - validates the state is dict-like
  - ensures core top-level containers exist (accounts, params)
  - audits staking aggregates against the positions they summarize

Domain containers (staking, token) are created lazily by their own modules.
"""

from collections.abc import MutableMapping
from typing import Any, Dict, List

from tierstake.ledger.constants import vault_account_id
from tierstake.runtime.store import StateRecordStore
from tierstake.runtime.token_ledger import balance_of

Json = Dict[str, Any]


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains core keys.

    Returns the (possibly mutated) dict.

    Raises:
        TypeError: if st is not a MutableMapping
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    acc = st.get("accounts")
    if acc is None:
        st["accounts"] = {}
    elif not isinstance(acc, dict):
        # Fail closed: do not attempt to coerce arbitrary types.
        raise TypeError(f"state['accounts'] must be dict, got {type(acc)}")

    params = st.get("params")
    if params is None:
        st["params"] = {}
    elif not isinstance(params, dict):
        raise TypeError(f"state['params'] must be dict, got {type(params)}")

    return st  # type: ignore[return-value]


def audit_pool_totals(st: Json) -> List[Json]:
    """Return one finding per pool whose totals disagree with its positions.

    Checks, per pool:
      - total_staked == sum of position principals
      - vault balance == total_staked

    An empty list means the staking state is consistent.
    """
    findings: List[Json] = []
    root = st.get("staking")
    pools = root.get("pools") if isinstance(root, dict) else None
    if not isinstance(pools, dict):
        return findings

    store = StateRecordStore(st)
    for pool_id in sorted(pools.keys()):
        pool = store.get_pool(pool_id)
        if pool is None:
            continue
        principal_sum = sum(int(p.principal) for p in store.iter_positions(pool_id))
        if principal_sum != int(pool.total_staked):
            findings.append(
                {
                    "pool_id": pool_id,
                    "check": "total_staked_vs_principals",
                    "total_staked": int(pool.total_staked),
                    "principal_sum": principal_sum,
                }
            )
        vault = balance_of(st, vault_account_id(pool_id))
        if vault != int(pool.total_staked):
            findings.append(
                {
                    "pool_id": pool_id,
                    "check": "vault_balance_vs_total_staked",
                    "total_staked": int(pool.total_staked),
                    "vault_balance": vault,
                }
            )
    return findings


__all__ = ["ensure_state", "audit_pool_totals"]
