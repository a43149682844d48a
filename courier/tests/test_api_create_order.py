"""API tests for the create-order endpoint.

Covers successful booking, unknown reference names and payload validation
errors. Orders are written to the SQLite database of the test session.
"""

import pytest

ORDERS_URL = "/api/orders"


def test_create_order_returns_201_and_lr_number(client, order_payload, next_order_id):
    next_order_id(101)
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 201
    body = r.json()
    assert body == {"id": 101, "lr_number": "N2KE101", "message": "Order created successfully"}


def test_created_order_is_readable(client, order_payload):
    created = client.post(ORDERS_URL, json=order_payload).json()

    r = client.get(f"{ORDERS_URL}/{created['id']}")
    assert r.status_code == 200
    order = r.json()
    assert order["lr_number"] == created["lr_number"] == f"N2KE{created['id']}"
    assert order["from_name"] == "Kumar Traders"
    assert order["route"] == "Erode - Chennai"
    assert order["payment_method"] == "Paid"
    assert order["terms_of_delivery"] == "Door Delivery"
    assert order["item_type"] == "Parcel"
    assert order["status"] == "Pending"
    assert order["fright_charge"] == 450.0
    assert order["weight"] == 35.5
    assert order["invoice_date"] == "2026-10-01"


def test_create_order_without_district_uses_fallback_code(client, order_payload):
    order_payload.pop("fromDistrict")
    body = client.post(ORDERS_URL, json=order_payload).json()
    assert body["lr_number"] == f"N2KX{body['id']}"


def test_charges_default_to_zero(client, order_payload):
    for key in ("lrCharge", "frightCharge", "fuelSurcharge", "ieCharge", "doorDeliveryCharge"):
        order_payload.pop(key)
    order_payload["hamali"] = None
    created = client.post(ORDERS_URL, json=order_payload).json()
    order = client.get(f"{ORDERS_URL}/{created['id']}").json()
    assert order["fright_charge"] == 0.0
    assert order["hamali"] == 0.0


def test_create_order_unknown_route_returns_400(client, order_payload):
    order_payload["route"] = "Nowhere"
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "INVALID_REFERENCE"
    assert body["fields"] == ["route"]
    assert "Nowhere" in body["message"]
    assert client.get(ORDERS_URL).json() == []


def test_create_order_reports_all_unknown_references(client, order_payload):
    order_payload["paymentMethod"] = "Barter"
    order_payload["termsDelivery"] = "Teleport"
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 400
    assert r.json()["fields"] == ["payment_method", "terms_of_delivery"]


def test_create_order_validation_error(client, order_payload):
    """Missing required names and negative amounts are rejected before any lookup."""
    order_payload.pop("fromName")
    order_payload["weight"] = -1
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"
    assert client.get(ORDERS_URL).json() == []


def test_create_order_rejects_unknown_fields(client, order_payload):
    order_payload["lrNumber"] = "N2KE1"
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 400


@pytest.mark.parametrize(
    "field,value",
    [
        ("quantity", 2**31),
        ("weight", 100000000),
        ("frightCharge", 100000000),
        ("hamali", 123456789.5),
        ("invoiceValue", 10**16),
        ("fromPhone", "9" * 21),
    ],
)
def test_create_order_rejects_values_too_large_for_columns(client, order_payload, field, value):
    order_payload[field] = value
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"
    assert client.get(ORDERS_URL).json() == []


def test_create_order_accepts_column_maximums(client, order_payload):
    order_payload["quantity"] = 2**31 - 1
    order_payload["weight"] = "99999999.99"
    r = client.post(ORDERS_URL, json=order_payload)
    assert r.status_code == 201
