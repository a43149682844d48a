"""API tests for partial order updates (PUT and PATCH)."""

import pytest

ORDERS_URL = "/api/orders"


@pytest.fixture
def order(client, order_payload):
    return client.post(ORDERS_URL, json=order_payload).json()


def test_district_change_regenerates_lr_number(client, order):
    r = client.put(f"{ORDERS_URL}/{order['id']}", json={"fromDistrict": "Salem"})
    assert r.status_code == 200
    assert r.json() == {"message": "Order updated successfully"}

    stored = client.get(f"{ORDERS_URL}/{order['id']}").json()
    assert stored["from_district"] == "Salem"
    assert stored["lr_number"] == f"N2KS{order['id']}"


def test_unrelated_update_keeps_lr_number(client, order):
    r = client.patch(f"{ORDERS_URL}/{order['id']}", json={"toName": "New Receiver"})
    assert r.status_code == 200
    stored = client.get(f"{ORDERS_URL}/{order['id']}").json()
    assert stored["to_name"] == "New Receiver"
    assert stored["lr_number"] == order["lr_number"]


def test_weight_only_update_touches_nothing_else(client, order):
    before = client.get(f"{ORDERS_URL}/{order['id']}").json()
    client.put(f"{ORDERS_URL}/{order['id']}", json={"weight": 12.5})
    after = client.get(f"{ORDERS_URL}/{order['id']}").json()

    assert after["weight"] == 12.5
    for key in ("weight", "updated_at"):
        before.pop(key)
        after.pop(key)
    assert after == before


def test_status_update_by_name(client, order):
    r = client.put(f"{ORDERS_URL}/{order['id']}", json={"status": "Delivered"})
    assert r.status_code == 200
    stored = client.get(f"{ORDERS_URL}/{order['id']}").json()
    assert stored["status"] == "Delivered"
    assert stored["status_color"] == "#10b981"


def test_update_invalid_references_reported_together(client, order):
    r = client.put(f"{ORDERS_URL}/{order['id']}", json={"route": "Nowhere", "status": "Lost"})
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "INVALID_REFERENCE"
    assert body["fields"] == ["route", "status"]


def test_update_missing_order_returns_404(client):
    r = client.put(f"{ORDERS_URL}/999", json={"toName": "Nobody"})
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


def test_empty_update_is_rejected(client, order):
    r = client.put(f"{ORDERS_URL}/{order['id']}", json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"


def test_null_for_required_field_is_rejected(client, order):
    r = client.patch(f"{ORDERS_URL}/{order['id']}", json={"fromName": None})
    assert r.status_code == 400


def test_district_cleared_uses_fallback(client, order):
    r = client.patch(f"{ORDERS_URL}/{order['id']}", json={"fromDistrict": ""})
    assert r.status_code == 200
    stored = client.get(f"{ORDERS_URL}/{order['id']}").json()
    assert stored["lr_number"] == f"N2KX{order['id']}"


@pytest.mark.parametrize("body", [{"weight": 100000000}, {"quantity": 2**31}, {"lrCharge": 1e9}])
def test_update_rejects_values_too_large_for_columns(client, order, body):
    r = client.patch(f"{ORDERS_URL}/{order['id']}", json=body)
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"
    stored = client.get(f"{ORDERS_URL}/{order['id']}").json()
    assert stored["weight"] == 35.5
    assert stored["lr_charge"] == 20.0
