"""Default reference data.

Statuses and their dashboard colours, and the standard fleet (bike, mini
van, truck, heavy truck), are inserted when missing. Existing rows are
left untouched, so seeding is safe to run on every startup.
"""

import logging
from decimal import Decimal

from sqlalchemy import select

from .db import get_session
from .models import (
    ItemTypeModel,
    OrderStatusModel,
    PaymentMethodModel,
    RouteModel,
    TermsOfDeliveryModel,
    VehicleModel,
)

logger = logging.getLogger("courier.seed")

ORDER_STATUSES = [
    ("Pending", "#f59e0b"),
    ("Processing", "#3b82f6"),
    ("In Transit", "#8b5cf6"),
    ("Delivered", "#10b981"),
    ("Cancelled", "#ef4444"),
]

VEHICLES = [
    ("Delivery Bike", Decimal("20"), 5),
    ("Mini Van", Decimal("500"), 50),
    ("Delivery Truck", Decimal("2000"), 200),
    ("Heavy Duty Truck", Decimal("10000"), 1000),
]

PAYMENT_METHODS = ["Paid", "To Pay", "Account"]
TERMS_OF_DELIVERY = ["Door Delivery", "Godown Delivery"]
ITEM_TYPES = ["Parcel", "Carton", "Bundle", "Documents"]
ROUTES = ["Erode - Chennai", "Salem - Coimbatore", "Madurai - Trichy"]


def _missing(session, model, names):
    existing = set(session.execute(select(model.name).where(model.name.in_(names))).scalars())
    return [n for n in names if n not in existing]


def seed_reference_data() -> None:
    """Insert the default reference rows that do not exist yet."""
    with get_session() as s:
        for model, names in (
            (RouteModel, ROUTES),
            (PaymentMethodModel, PAYMENT_METHODS),
            (TermsOfDeliveryModel, TERMS_OF_DELIVERY),
            (ItemTypeModel, ITEM_TYPES),
        ):
            s.add_all(model(name=n) for n in _missing(s, model, names))

        colors = dict(ORDER_STATUSES)
        for name in _missing(s, OrderStatusModel, list(colors)):
            s.add(OrderStatusModel(name=name, color=colors[name]))

        capacities = {name: (w, q) for name, w, q in VEHICLES}
        for name in _missing(s, VehicleModel, list(capacities)):
            w, q = capacities[name]
            s.add(VehicleModel(name=name, max_weight=w, max_quantity=q))

        s.commit()
    logger.info("reference data seeded")
