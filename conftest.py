# Point the service at a throwaway SQLite file before 'courier' is imported
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="courier-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'courier.db')}"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text


@pytest.fixture(autouse=True)
def db():
    """Fresh schema with the default reference data for every test."""
    from courier import models  # noqa: F401  registers the tables
    from courier.db import Base, engine
    from courier.seed import seed_reference_data

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    seed_reference_data()
    yield engine


@pytest.fixture
def client():
    from courier.main import app

    app.dependency_overrides.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def next_order_id(db):
    """Make the database hand out a chosen id to the next order."""

    def _set(order_id: int):
        with db.begin() as conn:
            conn.execute(text("DELETE FROM sqlite_sequence WHERE name = 'orders'"))
            conn.execute(
                text("INSERT INTO sqlite_sequence (name, seq) VALUES ('orders', :seq)"),
                {"seq": order_id - 1},
            )

    return _set


@pytest.fixture
def order_payload():
    return {
        "fromName": "Kumar Traders",
        "fromAddress": "12 Market Road",
        "fromDistrict": "Erode",
        "fromPhone": "9876543210",
        "toName": "Lakshmi Stores",
        "toAddress": "4 Bazaar Street",
        "toDistrict": "Chennai",
        "toPhone": "9123456780",
        "quantity": 4,
        "weight": 35.5,
        "itemType": "Parcel",
        "invoiceNumber": "INV-001",
        "invoiceDate": "2026-10-01",
        "invoiceValue": 15000,
        "lrCharge": 20,
        "frightCharge": 450,
        "fuelSurcharge": 30,
        "ieCharge": 0,
        "doorDeliveryCharge": 50,
        "hamali": 15,
        "route": "Erode - Chennai",
        "paymentMethod": "Paid",
        "termsDelivery": "Door Delivery",
        "eWayBill": "EWB123",
    }
