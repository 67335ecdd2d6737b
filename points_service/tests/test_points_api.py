from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from points_service.app.config import AppConfig, get_app_config
from points_service.app.exceptions import StoreTimeoutError
from points_service.app.main import app
from points_service.app.repositories.memory_store import InMemoryPointsStore
from points_service.app.services.ledger_service import get_points_store


class _TimingOutStore(InMemoryPointsStore):
    def run_in_transaction(self, work, *, timeout=None):
        raise StoreTimeoutError("simulated timeout")

    def run(self, work, *, timeout=None):
        raise StoreTimeoutError("simulated timeout")


@pytest.fixture
def client(store: InMemoryPointsStore):
    app.dependency_overrides[get_points_store] = lambda: store
    app.dependency_overrides[get_app_config] = lambda: AppConfig()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "points-service"}


def test_list_tiers(client: TestClient) -> None:
    resp = client.get("/api/v1/points/tiers")

    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()] == ["bronze", "silver", "gold", "platinum"]


def test_get_points_initializes_account(client: TestClient) -> None:
    resp = client.get("/api/v1/points/host-001")

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 0
    assert body["tier"] == "bronze"
    assert body["progress"]["next"]["id"] == "silver"


def test_activity_and_history(client: TestClient) -> None:
    client.post(
        "/api/v1/points/host-001/activities",
        json={"activity": "booking", "booking_id": "bk-1", "listing_name": "Loft"},
    )
    resp = client.post(
        "/api/v1/points/host-001/activities",
        json={"activity": "review_received", "listing_name": "Loft", "rating": 5},
    )
    assert resp.json() == {"applied": True, "total": 150}

    history = client.get("/api/v1/points/host-001/history").json()

    assert history["total"] == 2
    assert [item["source"] for item in history["items"]] == ["review_received", "booking"]
    assert history["items"][0]["description"] == '5-star review on "Loft"'
    assert history["items"][1]["label"] == "Booking Completed"


def test_apply_delta_zero_reports_not_applied(client: TestClient) -> None:
    resp = client.post("/api/v1/points/host-001/delta", json={"amount": 0})

    assert resp.status_code == 200
    assert resp.json() == {"applied": False, "total": None}


def test_apply_delta_rejects_mismatched_meta(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/points/host-001/delta",
        json={"amount": 10, "source": "manual", "meta": {"source": "booking"}},
    )

    assert resp.status_code == 422


def test_redeem_flow(client: TestClient) -> None:
    client.post("/api/v1/points/host-001/delta", json={"amount": 550})

    resp = client.post("/api/v1/rewards/host-001/redeem", json={"reward_id": "coupon-fixed-5"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["new_total"] == 450
    code = body["coupon"]["code"]
    assert re.fullmatch(r"HZ-5-[A-Z0-9]{6}", code)

    assert client.get(f"/api/v1/coupons/{code}", params={"host_id": "host-001"}).status_code == 200
    consumed = client.post(f"/api/v1/coupons/{code}/consume")
    assert consumed.json()["status"] == "inactive"
    again = client.post(f"/api/v1/coupons/{code}/consume")
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "coupon_inactive"

    redemptions = client.get("/api/v1/rewards/host-001/redemptions").json()
    assert redemptions["items"][0]["coupon_code"] == code


def test_redeem_insufficient_points(client: TestClient, store: InMemoryPointsStore) -> None:
    resp = client.post("/api/v1/rewards/host-001/redeem", json={"reward_id": "coupon-fixed-5"})

    assert resp.status_code == 402
    assert resp.json()["detail"]["code"] == "insufficient_points"
    assert store.state.accounts == {}


def test_redeem_unknown_reward(client: TestClient) -> None:
    resp = client.post("/api/v1/rewards/host-001/redeem", json={"reward_id": "free-stay"})

    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "unknown_reward"


def test_unknown_coupon_is_404(client: TestClient) -> None:
    resp = client.get("/api/v1/coupons/HZ-5-NOPE00")

    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "coupon_not_found"


def test_service_fee_payment(client: TestClient) -> None:
    client.post("/api/v1/points/host-001/delta", json={"amount": 300})

    ok = client.post("/api/v1/points/host-001/service-fee", json={"plan": "premium", "amount": 200})
    short = client.post("/api/v1/points/host-001/service-fee", json={"plan": "premium", "amount": 200})

    assert ok.status_code == 200
    assert ok.json()["new_total"] == 100
    assert short.status_code == 402
    fees = client.get("/api/v1/points/host-001/service-fees").json()
    assert [f["amount"] for f in fees] == [200]


def test_store_timeout_maps_to_503() -> None:
    app.dependency_overrides[get_points_store] = lambda: _TimingOutStore()
    app.dependency_overrides[get_app_config] = lambda: AppConfig()
    try:
        with TestClient(app) as client:
            resp = client.get("/api/v1/points/host-001")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "store_timeout"


@pytest.mark.parametrize(
    "params",
    [{"page": 0}, {"page_size": 0}, {"page_size": 1000}],
)
def test_history_rejects_out_of_range_paging(client: TestClient, params: dict) -> None:
    client.post("/api/v1/points/host-001/delta", json={"amount": 10})

    resp = client.get("/api/v1/points/host-001/history", params=params)

    assert resp.status_code == 422


def test_redemptions_rejects_out_of_range_paging(client: TestClient) -> None:
    resp = client.get("/api/v1/rewards/host-001/redemptions", params={"page": 0, "page_size": 1000})

    assert resp.status_code == 422


def test_history_paging_metadata_matches_items(client: TestClient) -> None:
    for amount in (1, 2, 3):
        client.post("/api/v1/points/host-001/delta", json={"amount": amount})

    body = client.get(
        "/api/v1/points/host-001/history", params={"page": 2, "page_size": 2}
    ).json()

    assert (body["page"], body["page_size"], body["total"]) == (2, 2, 3)
    assert [item["amount"] for item in body["items"]] == [1]
