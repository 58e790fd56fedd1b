from __future__ import annotations

from fastapi.testclient import TestClient

from raffle.app.main import create_app
from raffle.core.clock import ManualClock
from raffle.core.run.assembly import build_raffle
from raffle.core.run.spec import KeeperSpec, RunSpec
from raffle.lottery.config import RaffleConfig

FEE = 50
INTERVAL = 30


def _client() -> tuple[TestClient, ManualClock]:
    clock = ManualClock(current=10_000)
    spec = RunSpec(
        clock="manual",
        raffle=RaffleConfig(entrance_fee=FEE, interval=INTERVAL),
        keeper=KeeperSpec(auto_fulfill=False),
    )
    handle = build_raffle(spec, clock=clock)
    return TestClient(create_app(handle=handle)), clock


def test_health() -> None:
    client, _ = _client()
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_full_round_over_http() -> None:
    client, clock = _client()

    assert client.post("/api/accounts/alice/fund", json={"amount": 500}).json()["balance"] == 500
    client.post("/api/accounts/bob/fund", json={"amount": 500})

    r = client.post("/api/raffle/enter", json={"player": "alice", "amount": FEE})
    assert r.status_code == 200
    assert r.json()["player_count"] == 1
    client.post("/api/raffle/enter", json={"player": "bob", "amount": FEE})

    assert client.get("/api/raffle/upkeep").json()["upkeep_needed"] is False
    r = client.post("/api/raffle/upkeep")
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "upkeep_not_needed"

    clock.advance(INTERVAL + 1)
    assert client.get("/api/raffle/upkeep").json()["upkeep_needed"] is True

    r = client.post("/api/raffle/upkeep")
    assert r.status_code == 200
    request_id = r.json()["request_id"]
    assert r.json()["state"] == "calculating"

    r = client.post("/api/raffle/enter", json={"player": "bob", "amount": FEE})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "round_not_open"
    assert client.get("/api/accounts/bob").json()["balance"] == 500 - FEE

    r = client.post(f"/api/raffle/oracle/{request_id}/fulfill")
    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "open"
    winner = body["recent_winner"]
    assert winner in ("alice", "bob")

    snap = client.get("/api/raffle").json()
    assert snap["players"] == []
    assert snap["pool_balance"] == 0
    assert snap["round_number"] == 2
    assert snap["last_timestamp"] == clock.now()
    assert client.get(f"/api/accounts/{winner}").json()["balance"] == 500 - FEE + 2 * FEE


def test_enter_errors() -> None:
    client, _ = _client()
    client.post("/api/accounts/alice/fund", json={"amount": 10})

    r = client.post("/api/raffle/enter", json={"player": "alice", "amount": 5})
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "insufficient_fee"
    assert client.get("/api/accounts/alice").json()["balance"] == 10

    r = client.post("/api/raffle/enter", json={"player": "alice", "amount": FEE})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "insufficient_funds"


def test_fulfill_unknown_request() -> None:
    client, _ = _client()
    r = client.post("/api/raffle/oracle/1/fulfill")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "nonexistent_request"


def test_retry_without_pending_payout() -> None:
    client, _ = _client()
    r = client.post("/api/raffle/payout/retry")
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "no_pending_payout"
