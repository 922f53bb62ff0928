# src/tierstake/runtime/token_ledger.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from tierstake.runtime.errors import ApplyError
from tierstake.staking.arith import checked_add, checked_sub

Json = Dict[str, Any]


@dataclass
class TokenLedgerError(ApplyError):
    code: str
    reason: str
    details: Optional[Json] = None


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def ensure_account(state: Json, account_id: str) -> Json:
    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        accounts = {}
        state["accounts"] = accounts
    acct = accounts.get(account_id)
    if not isinstance(acct, dict):
        acct = {"nonce": 0, "balance": 0, "keys": []}
        accounts[account_id] = acct
    if "balance" not in acct:
        acct["balance"] = 0
    return acct


def balance_of(state: Json, account_id: str) -> int:
    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        return 0
    acct = accounts.get(account_id)
    if not isinstance(acct, dict):
        return 0
    return _as_int(acct.get("balance"), 0)


class TokenLedger:
    """Balance-changing operations the staking engine requests.

    Implementations must fail atomically: either the whole transfer/mint
    happens or an ApplyError is raised and nothing changed.
    """

    def transfer(self, state: Json, frm: str, to: str, amount: int) -> None:
        raise NotImplementedError

    def mint(self, state: Json, to: str, amount: int) -> None:
        raise NotImplementedError


class StateTokenLedger(TokenLedger):
    """Token ledger keeping balances in state["accounts"][id]["balance"].

    Minted supply is tracked in state["token"]["minted_total"].
    """

    def transfer(self, state: Json, frm: str, to: str, amount: int) -> None:
        amt = int(amount)
        if amt <= 0:
            raise TokenLedgerError("invalid_payload", "bad_amount", {"amount": amount})
        if frm == to:
            raise TokenLedgerError("invalid_payload", "self_transfer", {"account": frm})

        src = ensure_account(state, frm)
        bal = _as_int(src.get("balance"), 0)
        if bal < amt:
            raise TokenLedgerError(
                "insufficient_balance",
                "balance_too_low",
                {"account": frm, "balance": bal, "amount": amt},
            )

        dst = ensure_account(state, to)
        new_dst = checked_add(_as_int(dst.get("balance"), 0), amt)
        src["balance"] = checked_sub(bal, amt)
        dst["balance"] = new_dst

    def mint(self, state: Json, to: str, amount: int) -> None:
        amt = int(amount)
        if amt <= 0:
            raise TokenLedgerError("invalid_payload", "bad_amount", {"amount": amount})

        token = state.get("token")
        if not isinstance(token, dict):
            token = {}
            state["token"] = token
        minted = checked_add(_as_int(token.get("minted_total"), 0), amt)

        dst = ensure_account(state, to)
        dst["balance"] = checked_add(_as_int(dst.get("balance"), 0), amt)
        token["minted_total"] = minted
