"""
Tests for the HTTP endpoints.
"""
import pytest
from fastapi.testclient import TestClient

from backoffice.api.dependencies import get_resolver
from backoffice.db.session import get_db
from backoffice.main import app
from backoffice.models.service_fee import FeeStatus


@pytest.fixture
def client(db, resolver):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_resolver] = lambda: resolver
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_financial_summary(client, factory):
    trip = factory.trip()
    factory.traveller(trip, is_primary=True)
    factory.activity(trip, price_cents=50000)
    factory.fee(trip, amount_cents=10000, status=FeeStatus.PAID)

    response = client.get(f"/api/financials/trips/{trip.id}/summary")

    assert response.status_code == 200
    data = response.json()
    assert data["trip_currency"] == "CAD"
    assert data["grand_total"] == {
        "total_cost_cents": 60000,
        "total_collected_cents": 10000,
        "outstanding_cents": 0,
    }


def test_missing_trip_returns_not_found(client):
    response = client.get("/api/financials/trips/999/summary")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_service_fee_lifecycle(client, factory):
    trip = factory.trip()

    response = client.post(
        f"/api/trips/{trip.id}/service-fees",
        json={"title": "Planning fee", "amount_cents": 25000},
    )
    assert response.status_code == 201
    fee_id = response.json()["id"]
    assert response.json()["status"] == "draft"

    response = client.post(f"/api/service-fees/{fee_id}/pay")
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"

    assert client.post(f"/api/service-fees/{fee_id}/send").json()["status"] == "sent"
    assert client.post(f"/api/service-fees/{fee_id}/pay").json()["status"] == "paid"

    response = client.post(f"/api/service-fees/{fee_id}/refund", json={"amount_cents": 5000})
    assert response.status_code == 200
    assert response.json()["status"] == "partially_refunded"

    response = client.get(f"/api/trips/{trip.id}/service-fees")
    assert [fee["id"] for fee in response.json()] == [fee_id]


def test_delete_non_draft_fee_is_rejected(client, factory):
    trip = factory.trip()
    fee = factory.fee(trip, status=FeeStatus.SENT)

    response = client.delete(f"/api/service-fees/{fee.id}")

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


def test_set_and_get_splits(client, factory):
    trip = factory.trip()
    factory.traveller(trip, is_primary=True)
    factory.traveller(trip)
    activity = factory.activity(trip, price_cents=1001)

    response = client.put(f"/api/activities/{activity.id}/splits", json={"split_type": "equal"})

    assert response.status_code == 200
    assert [s["amount_cents"] for s in response.json()["splits"]] == [501, 500]
    assert client.get(f"/api/activities/{activity.id}/splits").json()["is_complete"] is True


def test_record_commission(client, factory):
    trip = factory.trip()
    activity = factory.activity(trip, price_cents=50000, commission_cents=5000)

    response = client.post(
        "/api/commissions",
        json={"activity_pricing_id": activity.pricing.id, "commission_amount": "125.50"},
    )

    assert response.status_code == 201
    assert response.json()["commission_amount_cents"] == 12550


def test_currencies_and_conversion(client):
    currencies = client.get("/api/fx-rates/currencies").json()
    assert "CAD" in currencies and "USD" in currencies

    response = client.post(
        "/api/fx-rates/convert",
        json={"amount_cents": 10000, "from_currency": "CAD", "to_currency": "CAD"},
    )
    assert response.status_code == 200
    assert response.json()["converted_amount_cents"] == 10000

    response = client.post(
        "/api/fx-rates/convert",
        json={"amount_cents": -5, "from_currency": "CAD", "to_currency": "USD"},
    )
    assert response.status_code == 400


def test_unsupported_currency_rate(client):
    response = client.get("/api/fx-rates/rate", params={"from_currency": "CAD", "to_currency": "XYZ"})

    assert response.status_code == 400
    assert "not supported" in response.json()["detail"]


def test_traveller_splits_listed_and_deleted(client, factory):
    trip = factory.trip()
    ana = factory.traveller(trip, is_primary=True)
    factory.traveller(trip)
    activity = factory.activity(trip, price_cents=1001)
    client.put(f"/api/activities/{activity.id}/splits", json={"split_type": "equal"})

    response = client.get(f"/api/trips/{trip.id}/travellers/{ana.id}/splits")

    assert response.status_code == 200
    (split,) = response.json()
    assert split["activity_id"] == activity.id
    assert split["amount_cents"] == 501
    assert split["split_type"] == "equal"

    response = client.delete(f"/api/trips/{trip.id}/travellers/{ana.id}/splits")
    assert response.json()["affected_activity_ids"] == [activity.id]
    assert client.get(f"/api/trips/{trip.id}/travellers/{ana.id}/splits").json() == []
