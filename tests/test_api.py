from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

import tierstake.api.app as app_mod
from tierstake.api.app import create_app
from tierstake.ledger.constants import SECONDS_PER_MONTH
from tierstake.runtime.executor import StakingExecutor
from tierstake.testing.sigtools import pubkey_for_label, sign_tx_dict

Json = Dict[str, Any]

T0 = 1_700_000_000


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now


@pytest.fixture()
def clock() -> _Clock:
    return _Clock(T0)


@pytest.fixture()
def client(tmp_path: Path, monkeypatch, clock: _Clock) -> TestClient:
    monkeypatch.setenv("TIERSTAKE_MODE", "dev")
    monkeypatch.delenv("TIERSTAKE_SIZE_LIMIT_DISABLE", raising=False)
    monkeypatch.delenv("TIERSTAKE_MAX_REQUEST_BYTES", raising=False)

    def _build():
        return StakingExecutor(
            db_path=str(tmp_path / "api.db"),
            chain_id="tierstake-api-test",
            clock=clock,
            genesis_balances={"alice": 1_000_000},
            genesis_keys={"alice": pubkey_for_label("alice"), "admin": pubkey_for_label("admin")},
        )

    monkeypatch.setattr(app_mod, "build_executor", _build)
    return TestClient(create_app())


def _tx(tx_type: str, signer: str, nonce: int, **payload: Any) -> Json:
    return sign_tx_dict({"tx_type": tx_type, "signer": signer, "nonce": nonce, "payload": payload})


def test_health_reports_executor(client: TestClient) -> None:
    r = client.get("/v1/health")
    assert r.status_code == 200
    j = r.json()
    assert j["ok"] is True
    assert j["executor"] == "ready"
    assert j["chain_id"] == "tierstake-api-test"


def test_health_without_runtime() -> None:
    c = TestClient(create_app(boot_runtime=False))
    j = c.get("/v1/health").json()
    assert j["executor"] == "not_attached"

    r = c.get("/v1/staking/pools/p1")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "not_ready"


def test_submit_and_read_back(client: TestClient, clock: _Clock) -> None:
    r = client.post("/v1/tx/submit", json=_tx("STAKING_POOL_INIT", "admin", 1, pool_id="p1"))
    assert r.status_code == 200, r.text
    assert r.json()["applied"] == "STAKING_POOL_INIT"

    r = client.post("/v1/tx/submit", json=_tx("STAKE", "alice", 1, pool_id="p1", amount=1_000, lock_duration=2))
    assert r.status_code == 200, r.text

    clock.now = T0 + 100
    pos = client.get("/v1/staking/pools/p1/positions/alice").json()["position"]
    assert pos["principal"] == 1_000
    assert pos["lock_remaining"] == 2 * SECONDS_PER_MONTH - 100
    assert pos["unlock_eligible"] is False

    pool = client.get("/v1/staking/pools/p1").json()["pool"]
    assert pool["total_staked"] == 1_000
    assert pool["vault_balance"] == 1_000

    acct = client.get("/v1/accounts/alice").json()
    assert acct["balance"] == 999_000
    assert acct["nonce"] == 1

    evs = client.get("/v1/staking/events", params={"pool_id": "p1", "limit": "1"}).json()
    assert evs["count"] == 1
    assert evs["events"][0]["event"] == "staked"


def test_missing_records_are_404(client: TestClient) -> None:
    r = client.get("/v1/staking/pools/nope")
    assert r.status_code == 404
    assert r.json()["ok"] is False

    client.post("/v1/tx/submit", json=_tx("STAKING_POOL_INIT", "admin", 1, pool_id="p1"))
    r = client.get("/v1/staking/pools/p1/positions/bob")
    assert r.status_code == 404


def test_rejections_map_to_http_status(client: TestClient) -> None:
    client.post("/v1/tx/submit", json=_tx("STAKING_POOL_INIT", "admin", 1, pool_id="p1"))
    client.post("/v1/tx/submit", json=_tx("STAKE", "alice", 1, pool_id="p1", amount=1_000, lock_duration=1))

    r = client.post("/v1/tx/submit", json=_tx("UNSTAKE", "alice", 2, pool_id="p1", amount=1_000))
    assert r.status_code == 409
    err = r.json()["error"]
    assert err["code"] == "lock_period_not_expired"
    assert err["details"]["receipt"]["height"] == 3

    r = client.post("/v1/tx/submit", json=_tx("STAKING_TIER_RATE_SET", "alice", 3, pool_id="p1", tier="gold", rate=1))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "unauthorized"

    r = client.post("/v1/tx/submit", json=_tx("STAKE", "alice", 3, pool_id="p1", amount=1, lock_duration=0))
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "bad_nonce"

    r = client.post("/v1/tx/submit", json=_tx("STAKE", "alice", 4, pool_id="p1", amount=0, lock_duration=0))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_payload"


def test_submit_schema_rejects_system_field(client: TestClient) -> None:
    body = _tx("STAKING_POOL_INIT", "admin", 1, pool_id="p1")
    body["system"] = True
    r = client.post("/v1/tx/submit", json=body)
    assert r.status_code == 422


def test_bad_limit_query_param(client: TestClient) -> None:
    r = client.get("/v1/staking/events", params={"limit": "lots"})
    assert r.status_code == 400


def test_request_size_limit_returns_413(client: TestClient, monkeypatch) -> None:
    monkeypatch.setenv("TIERSTAKE_MAX_REQUEST_BYTES", "128")
    c = TestClient(create_app())

    body = _tx("STAKING_POOL_INIT", "admin", 1, pool_id="p1", pad="x" * 500)
    r = c.post("/v1/tx/submit", json=body)
    assert r.status_code == 413
    j = r.json()
    assert j.get("ok") is False
    assert j["error"].get("code") == "tx_too_large"
