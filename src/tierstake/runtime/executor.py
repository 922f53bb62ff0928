# src/tierstake/runtime/executor.py
from __future__ import annotations

import copy
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from tierstake.ledger.staking_view import get_pool_info, get_staking_info
from tierstake.runtime.domain_apply import ApplyError, apply_tx_atomic
from tierstake.runtime.events import EventSink, LoggingEventSink
from tierstake.runtime.runtime_logging import log_event
from tierstake.runtime.sigverify import verify_tx_signature
from tierstake.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from tierstake.runtime.state_invariants import ensure_state
from tierstake.runtime.token_ledger import ensure_account
from tierstake.runtime.tx_admission_types import TxEnvelope, TxVerdict

Json = Dict[str, Any]
Clock = Callable[[], int]

log = logging.getLogger("tierstake.executor")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _unix_now() -> int:
    return int(time.time())


def _safe_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


class ExecutorError(RuntimeError):
    pass


def check_tx_shape(env: Any) -> TxVerdict:
    """Structural checks done before anything touches state."""
    if not isinstance(env, dict):
        return TxVerdict.reject("bad_env", "not_object")

    tx_type = env.get("tx_type")
    if not isinstance(tx_type, str) or not tx_type.strip():
        return TxVerdict.reject("bad_env", "missing_tx_type")

    signer = env.get("signer")
    if not isinstance(signer, str) or not signer.strip():
        return TxVerdict.reject("bad_env", "missing_signer")

    nonce = env.get("nonce")
    if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce <= 0:
        return TxVerdict.reject("bad_env", "bad_nonce", {"nonce": nonce})

    payload = env.get("payload", {})
    if not isinstance(payload, dict):
        return TxVerdict.reject("bad_env", "payload_not_object")

    if bool(env.get("system", False)):
        return TxVerdict.reject("forbidden", "system_tx_not_submittable", {"tx_type": tx_type})

    return TxVerdict.admit()


def _reject_receipt(code: str, reason: str, details: Any = None) -> Json:
    return {"ok": False, "error": {"code": code, "reason": reason, "details": details}}


class StakingExecutor:
    """Single-writer staking node using SQLite for persistence.

    Every submitted tx is processed in order under one lock:
      shape -> nonce -> signature -> chain time -> atomic apply -> commit -> emit.

    The in-memory state is only replaced after the SQLite commit succeeds.
    """

    def __init__(
        self,
        *,
        db_path: str,
        chain_id: str,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
        allow_unsigned_txs: bool = False,
        genesis_balances: Optional[Mapping[str, int]] = None,
        genesis_keys: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.chain_id = str(chain_id)
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._clock: Clock = clock or _unix_now
        self._sink: EventSink = event_sink or LoggingEventSink()
        self._lock = threading.RLock()

        self._db = SqliteDB(path=self.db_path)
        self._store = SqliteLedgerStore(db=self._db)

        if self._store.exists():
            self.state = self._store.read()
        else:
            self.state = self._initial_state(genesis_balances or {}, genesis_keys or {})

        # Fail-closed on chain_id mismatch once state is present.
        st_chain_id = str(self.state.get("chain_id") or "").strip()
        if st_chain_id and st_chain_id != self.chain_id:
            raise ExecutorError(f"chain_id mismatch: db={st_chain_id!r} executor={self.chain_id!r}. Refuse to start.")
        self.state["chain_id"] = self.chain_id

        ensure_state(self.state)
        self.state["params"]["require_signatures"] = not bool(allow_unsigned_txs)
        self._store.write(self.state)

        log_event(
            log,
            "executor_started",
            chain_id=self.chain_id,
            db_path=self.db_path,
            height=_safe_int(self.state.get("height"), 0),
            require_signatures=not bool(allow_unsigned_txs),
        )

    def _initial_state(self, balances: Mapping[str, int], keys: Mapping[str, str]) -> Json:
        st: Json = {
            "chain_id": self.chain_id,
            "height": 0,
            "time": 0,
            "accounts": {},
            "params": {},
            "created_ms": _now_ms(),
        }
        for acct_id in sorted(balances.keys()):
            ensure_account(st, acct_id)["balance"] = int(balances[acct_id])
        for acct_id in sorted(keys.keys()):
            acct = ensure_account(st, acct_id)
            acct["keys"] = [{"pubkey": str(keys[acct_id]), "active": True}]
        return st

    # ----------------------------
    # Public accessors
    # ----------------------------

    def read_state(self) -> Json:
        with self._lock:
            return copy.deepcopy(self.state)

    def chain_time(self) -> int:
        with self._lock:
            return max(_safe_int(self.state.get("time"), 0), int(self._clock()))

    def staking_info(self, pool_id: str, staker: str) -> Optional[Json]:
        with self._lock:
            return get_staking_info(self.state, pool_id, staker, now=self.chain_time())

    def pool_info(self, pool_id: str) -> Optional[Json]:
        with self._lock:
            return get_pool_info(self.state, pool_id)

    def account_info(self, account_id: str) -> Json:
        with self._lock:
            accounts = self.state.get("accounts")
            acct = accounts.get(account_id) if isinstance(accounts, dict) else None
            if not isinstance(acct, dict):
                acct = {}
            return {
                "account": account_id,
                "balance": _safe_int(acct.get("balance"), 0),
                "nonce": _safe_int(acct.get("nonce"), 0),
                "keys": copy.deepcopy(acct.get("keys") or []),
            }

    def recent_events(self, *, limit: int = 50, pool_id: str = "") -> List[Json]:
        return self._store.recent_events(limit=limit, pool_id=pool_id)

    # ----------------------------
    # Tx submission
    # ----------------------------

    def submit_tx(self, env: Json) -> Json:
        verdict = check_tx_shape(env)
        if not verdict.ok:
            return _reject_receipt(verdict.code, verdict.reason, verdict.details)

        tx = TxEnvelope.from_json(env)

        with self._lock:
            acct = (self.state.get("accounts") or {}).get(tx.signer)
            last_nonce = _safe_int(acct.get("nonce"), 0) if isinstance(acct, dict) else 0
            if tx.nonce <= last_nonce:
                return _reject_receipt("bad_nonce", "nonce_not_increasing", {"nonce": tx.nonce, "last_nonce": last_nonce})

            if not verify_tx_signature(self.state, env):
                return _reject_receipt("bad_sig", "signature_invalid", {"signer": tx.signer})

            working = copy.deepcopy(self.state)
            now = max(_safe_int(working.get("time"), 0), int(self._clock()))
            working["time"] = now
            working["height"] = _safe_int(working.get("height"), 0) + 1

            err: Optional[ApplyError] = None
            meta: Optional[Json] = None
            try:
                meta = apply_tx_atomic(working, tx)
            except ApplyError as e:
                err = e

            event = meta.get("event") if isinstance(meta, dict) else None
            self._store.commit(working, [event] if isinstance(event, dict) else [])
            self.state = working

        if err is not None:
            log_event(
                log,
                "tx_rejected",
                tx_type=tx.tx_type,
                signer=tx.signer,
                nonce=tx.nonce,
                code=err.code,
                reason=err.reason,
            )
            return {"ok": False, "height": int(working["height"]), "time": now, "error": err.to_json()}

        if isinstance(event, dict):
            self._sink.emit(event)

        log_event(log, "tx_applied", tx_type=tx.tx_type, signer=tx.signer, nonce=tx.nonce, height=int(working["height"]))
        return {
            "ok": True,
            "height": int(working["height"]),
            "time": now,
            "applied": (meta or {}).get("applied"),
            "result": meta,
        }
