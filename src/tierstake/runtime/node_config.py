# src/tierstake/runtime/node_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tierstake.ledger.constants import U64_MAX, VAULT_ACCOUNT_PREFIX

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class NodeConfig:
    chain_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Single SQLite DB file path for all node persistence.
    db_path: str

    api_host: str
    api_port: int

    allow_unsigned_txs: bool

    log_level: str

    # Applied once, on a fresh state.
    genesis_balances: Dict[str, int] = field(default_factory=dict)
    genesis_keys: Dict[str, str] = field(default_factory=dict)


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_node_config(cfg: NodeConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.chain_id, str) or not cfg.chain_id.strip():
        raise ValueError("chain_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    if str(cfg.log_level).upper() not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_ALLOWED_LOG_LEVELS}; got: {cfg.log_level!r}")

    # Unsigned txs let anyone act as any account.
    if cfg.allow_unsigned_txs and mode == "prod":
        raise ValueError("allow_unsigned_txs is not permitted in prod mode")

    for acct, bal in cfg.genesis_balances.items():
        if not str(acct).strip():
            raise ValueError("genesis_balances keys must be non-empty account ids")
        if str(acct).startswith(VAULT_ACCOUNT_PREFIX):
            raise ValueError(f"genesis_balances may not fund pool vaults: {acct!r}")
        if int(bal) < 0 or int(bal) > U64_MAX:
            raise ValueError(f"genesis balance out of range for {acct!r}: {bal}")

    for acct, pk in cfg.genesis_keys.items():
        if not str(acct).strip() or not str(pk).strip():
            raise ValueError("genesis_keys entries must be non-empty account -> pubkey")


def default_node_config() -> NodeConfig:
    return NodeConfig(
        chain_id="tierstake-dev",
        # Without an explicit config file the node must not drop into a
        # permissive development posture.
        mode="prod",
        db_path="./data/tierstake.db",
        api_host="0.0.0.0",
        api_port=8000,
        allow_unsigned_txs=False,
        log_level="INFO",
    )


def _parse_int_map(v: Any, name: str) -> Dict[str, int]:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ValueError(f"{name} must be a mapping of account -> int")
    out: Dict[str, int] = {}
    for k, val in v.items():
        if isinstance(val, bool):
            raise ValueError(f"{name}[{k!r}] must be an int")
        try:
            out[str(k)] = int(val)
        except (TypeError, ValueError):
            raise ValueError(f"{name}[{k!r}] must be an int")
    return out


def _parse_str_map(v: Any, name: str) -> Dict[str, str]:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ValueError(f"{name} must be a mapping of account -> pubkey")
    return {str(k): str(val) for k, val in v.items()}


def _read_raw(p: Path) -> Json:
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("node config must be a mapping at the top level")
    return raw


def read_node_config_file(path: str) -> NodeConfig:
    raw = _read_raw(Path(path))
    d = default_node_config()

    cfg = NodeConfig(
        chain_id=_as_str(raw.get("chain_id"), d.chain_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), d.db_path),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        allow_unsigned_txs=_as_bool(raw.get("allow_unsigned_txs"), d.allow_unsigned_txs),
        log_level=_as_str(raw.get("log_level"), d.log_level).upper(),
        genesis_balances=_parse_int_map(raw.get("genesis_balances"), "genesis_balances"),
        genesis_keys=_parse_str_map(raw.get("genesis_keys"), "genesis_keys"),
    )

    validate_node_config(cfg)
    return cfg


def load_node_config(*, config_path: Optional[str] = None) -> NodeConfig:
    p = config_path or os.environ.get("TIERSTAKE_CONFIG_PATH")
    if p:
        return read_node_config_file(p)

    cfg = default_node_config()
    validate_node_config(cfg)
    return cfg


def apply_node_config_to_env(cfg: NodeConfig) -> None:
    validate_node_config(cfg)
    os.environ["TIERSTAKE_CHAIN_ID"] = cfg.chain_id
    os.environ["TIERSTAKE_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["TIERSTAKE_DB_PATH"] = cfg.db_path
    os.environ["TIERSTAKE_LOG_LEVEL"] = cfg.log_level
    os.environ["TIERSTAKE_ALLOW_UNSIGNED_TXS"] = "1" if cfg.allow_unsigned_txs else "0"
