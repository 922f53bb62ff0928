# src/tierstake/runtime/domain_apply.py
# ---------------------------------------------------------------------------
# Public, stable import path for applying tx envelopes.
# ---------------------------------------------------------------------------

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from tierstake.runtime.domain_dispatch import apply_tx
from tierstake.runtime.errors import ApplyError
from tierstake.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def consume_nonce(state: Json, env: TxEnvelope) -> None:
    """Record env.nonce as the signer's last used nonce.

    Production rule:
      - non-system txs consume nonce even if apply fails (prevents account deadlock)
      - system txs do not consume nonce

    This function only mutates the account nonce and nothing else.
    """

    if bool(env.system):
        return

    signer = str(env.signer or "").strip()
    if not signer:
        return

    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        accounts = {}
        state["accounts"] = accounts
    acct = accounts.get(signer)
    if not isinstance(acct, dict):
        acct = {"nonce": 0, "balance": 0, "keys": []}
        accounts[signer] = acct

    acct["nonce"] = int(env.nonce)


def apply_tx_atomic(
    state: Json,
    env: Any,
    *,
    consume_nonce_on_fail: bool = True,
) -> Optional[Json]:
    """Apply a tx with fail-atomic semantics.

    On success:
      - state is updated as if apply_tx() ran directly, and the nonce is consumed.

    On ApplyError:
      - state remains unchanged, except (optionally) nonce consumption.

    A rejected stake, unstake or claim must never leave a half-moved balance
    or a half-updated position behind.
    """

    env_norm = TxEnvelope.from_json(env)

    snapshot = copy.deepcopy(state)

    try:
        meta = apply_tx(snapshot, env_norm)
    except ApplyError:
        if consume_nonce_on_fail:
            consume_nonce(state, env_norm)
        raise

    consume_nonce(snapshot, env_norm)

    # Commit by replacing contents in-place so callers holding references
    # to `state` see the updated view.
    state.clear()
    state.update(snapshot)
    return meta


__all__ = ["ApplyError", "apply_tx", "apply_tx_atomic", "consume_nonce", "Json"]
