"""SQLAlchemy models for orders and their reference data.

Reference tables (routes, payment methods, terms of delivery, item types,
order statuses, vehicles) are small lookup tables maintained out of band.
``orders`` points at them by id and carries a unique, non-null LR number.
"""

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import mapped_column

from .db import Base


class RouteModel(Base):
    __tablename__ = "routes"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), unique=True, nullable=False)


class PaymentMethodModel(Base):
    __tablename__ = "payment_methods"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), unique=True, nullable=False)


class TermsOfDeliveryModel(Base):
    __tablename__ = "terms_of_delivery"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), unique=True, nullable=False)


class ItemTypeModel(Base):
    __tablename__ = "item_types"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), unique=True, nullable=False)


class OrderStatusModel(Base):
    """Order status with the colour used by dashboards (e.g. "#f59e0b")."""

    __tablename__ = "order_status"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(50), unique=True, nullable=False)
    color = mapped_column(String(20), nullable=True)


class VehicleModel(Base):
    """A vehicle and its capacity.

    Attributes:
        max_weight: Maximum load in kg.
        max_quantity: Maximum number of packages.
    """

    __tablename__ = "vehicles"
    id = mapped_column(Integer, primary_key=True)
    name = mapped_column(String(100), unique=True, nullable=False)
    max_weight = mapped_column(Numeric(10, 2), nullable=False)
    max_quantity = mapped_column(Integer, nullable=False)


# Lookup table name -> model, for name based resolution
REFERENCE_MODELS = {
    "routes": RouteModel,
    "payment_methods": PaymentMethodModel,
    "terms_of_delivery": TermsOfDeliveryModel,
    "item_types": ItemTypeModel,
    "order_status": OrderStatusModel,
}


class OrderModel(Base):
    """One shipment order (LR entry).

    ``id`` comes from the database (AUTOINCREMENT on SQLite so ids are
    never reused). ``lr_number`` is unique and never null; it briefly holds
    a placeholder inside the creating transaction.
    """

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("lr_number", name="uq_orders_lr_number"),
        {"sqlite_autoincrement": True},
    )

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    lr_number = mapped_column(String(50), nullable=False)

    from_name = mapped_column(String(200), nullable=False)
    from_address = mapped_column(String(500), nullable=True)
    from_district = mapped_column(String(100), nullable=True)
    from_phone = mapped_column(String(20), nullable=True)
    to_name = mapped_column(String(200), nullable=False)
    to_address = mapped_column(String(500), nullable=True)
    to_district = mapped_column(String(100), nullable=True)
    to_phone = mapped_column(String(20), nullable=True)

    quantity = mapped_column(Integer, nullable=True)
    weight = mapped_column(Numeric(10, 2), nullable=True)
    item_type_id = mapped_column(ForeignKey("item_types.id"), nullable=False)

    invoice_number = mapped_column(String(50), nullable=True)
    invoice_date = mapped_column(Date, nullable=True)
    invoice_value = mapped_column(Numeric(18, 2), nullable=True)
    eway_bill = mapped_column(String(50), nullable=True)

    # Charges
    lr_charge = mapped_column(Numeric(10, 2), nullable=False, default=0)
    freight_charge = mapped_column("fright_charge", Numeric(10, 2), nullable=False, default=0)
    fuel_surcharge = mapped_column(Numeric(10, 2), nullable=False, default=0)
    ie_charge = mapped_column(Numeric(10, 2), nullable=False, default=0)
    door_delivery_charge = mapped_column(Numeric(10, 2), nullable=False, default=0)
    hamali = mapped_column(Numeric(10, 2), nullable=False, default=0)

    route_id = mapped_column(ForeignKey("routes.id"), nullable=False)
    payment_method_id = mapped_column(ForeignKey("payment_methods.id"), nullable=False)
    terms_of_delivery_id = mapped_column(ForeignKey("terms_of_delivery.id"), nullable=False)
    status_id = mapped_column(ForeignKey("order_status.id"), nullable=False)

    created_at = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at = mapped_column(DateTime, nullable=False, server_default=func.now())
