# src/tierstake/runtime/sigverify.py

from __future__ import annotations

from typing import Any, Dict, List

from tierstake.crypto.sig import canonical_tx_message, verify_ed25519_signature

Json = Dict[str, Any]


def _add_pubkey(out: List[str], seen: set[str], pk: Any) -> None:
    if not isinstance(pk, str):
        return
    pk2 = pk.strip()
    if not pk2 or pk2 in seen:
        return
    seen.add(pk2)
    out.append(pk2)


def extract_active_keys(acct: Any) -> List[str]:
    """Extract active pubkeys from a signer account record.

    Supported shapes:
      1) acct["keys"] = [{"pubkey": "...", "active": True}, ...]
      2) acct["keys"] = ["<pubkey>", ...]   (treated as active)
      3) acct["pubkey"] = "<pubkey>"        (treated as active)
    """
    if not isinstance(acct, dict):
        return []

    out: List[str] = []
    seen: set[str] = set()

    _add_pubkey(out, seen, acct.get("pubkey"))

    keys = acct.get("keys")
    if isinstance(keys, list):
        for item in keys:
            if isinstance(item, str):
                _add_pubkey(out, seen, item)
                continue
            if not isinstance(item, dict):
                continue
            # default to active unless explicitly False
            if item.get("active", True) is False:
                continue
            _add_pubkey(out, seen, item.get("pubkey"))

    return out


def signatures_required(state: Json) -> bool:
    params = state.get("params") if isinstance(state, dict) else None
    if not isinstance(params, dict):
        return True
    return bool(params.get("require_signatures", True))


def verify_tx_signature(state: Json, tx: Json) -> bool:
    """Verify tx signature against active keys for the signer.

    Policy:
      - If params disable signatures (require_signatures=False), return True.
      - If signer has active keys: signature must verify against one active key.
      - If signer has no active keys: fail closed.

    NOTE: This function is pure (no I/O).
    """
    if not isinstance(tx, dict):
        return False

    signer = tx.get("signer")
    if not isinstance(signer, str) or not signer.strip():
        return False

    if not signatures_required(state):
        return True

    sig = tx.get("sig")
    if not isinstance(sig, str) or not sig.strip():
        return False

    accounts = state.get("accounts") if isinstance(state, dict) else None
    acct: Any = accounts.get(signer) if isinstance(accounts, dict) else None
    active_keys = extract_active_keys(acct)
    if not active_keys:
        return False

    try:
        msg = canonical_tx_message(
            tx_type=str(tx.get("tx_type") or ""),
            signer=signer,
            nonce=int(tx.get("nonce") or 0),
            payload=tx.get("payload") if isinstance(tx.get("payload"), dict) else {},
            parent=tx.get("parent"),
        )
    except (TypeError, ValueError):
        return False

    for pk in active_keys:
        if verify_ed25519_signature(message=msg, sig=sig, pubkey=pk):
            return True

    return False
