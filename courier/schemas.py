"""Pydantic schemas for the booking API.

Request bodies use the camelCase wire names of the booking dashboard
(``fromName``, ``frightCharge``, ``termsDelivery``, ``eWayBill``...), mapped
onto the snake_case attribute names of the domain.
"""

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .domain import OrderInput

# Upper bounds of the INTEGER, NUMERIC(10,2) and NUMERIC(18,2) columns
MAX_INTEGER = 2**31 - 1
MAX_NUMERIC_10_2 = Decimal("99999999.99")
MAX_NUMERIC_18_2 = Decimal("9999999999999999.99")

CHARGE_FIELDS = (
    "lr_charge",
    "freight_charge",
    "fuel_surcharge",
    "ie_charge",
    "door_delivery_charge",
    "hamali",
)


class _OrderFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    from_address: Optional[str] = Field(default=None, max_length=500, alias="fromAddress")
    from_district: Optional[str] = Field(default=None, max_length=100, alias="fromDistrict")
    from_phone: Optional[str] = Field(default=None, max_length=20, alias="fromPhone")
    to_address: Optional[str] = Field(default=None, max_length=500, alias="toAddress")
    to_district: Optional[str] = Field(default=None, max_length=100, alias="toDistrict")
    to_phone: Optional[str] = Field(default=None, max_length=20, alias="toPhone")
    quantity: Optional[int] = Field(default=None, ge=0, le=MAX_INTEGER)
    weight: Optional[Decimal] = Field(default=None, ge=0, le=MAX_NUMERIC_10_2)
    invoice_number: Optional[str] = Field(default=None, max_length=50, alias="invoiceNumber")
    invoice_date: Optional[dt.date] = Field(default=None, alias="invoiceDate")
    invoice_value: Optional[Decimal] = Field(default=None, ge=0, le=MAX_NUMERIC_18_2, alias="invoiceValue")
    lr_charge: Optional[Decimal] = Field(default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2, alias="lrCharge")
    freight_charge: Optional[Decimal] = Field(default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2, alias="frightCharge")
    fuel_surcharge: Optional[Decimal] = Field(default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2, alias="fuelSurcharge")
    ie_charge: Optional[Decimal] = Field(default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2, alias="ieCharge")
    door_delivery_charge: Optional[Decimal] = Field(
        default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2, alias="doorDeliveryCharge"
    )
    hamali: Optional[Decimal] = Field(default=Decimal("0"), ge=0, le=MAX_NUMERIC_10_2)
    eway_bill: Optional[str] = Field(default=None, max_length=50, alias="eWayBill")

    @field_validator(*CHARGE_FIELDS)
    @classmethod
    def null_charge_is_zero(cls, v: Optional[Decimal]) -> Decimal:
        """Charges are never stored as NULL; an explicit null means zero."""
        return Decimal("0") if v is None else v


class CreateOrderDTO(_OrderFields):
    """Schema for booking a new order.

    Attributes:
        from_name / to_name: Sender and receiver names (required).
        route, payment_method, terms_of_delivery, item_type: Reference data
            by name; resolved to ids by the service.
    """

    from_name: str = Field(min_length=1, max_length=200, alias="fromName")
    to_name: str = Field(min_length=1, max_length=200, alias="toName")
    route: str = Field(min_length=1)
    payment_method: str = Field(min_length=1, alias="paymentMethod")
    terms_of_delivery: str = Field(min_length=1, alias="termsDelivery")
    item_type: str = Field(min_length=1, alias="itemType")

    def to_domain(self) -> OrderInput:
        return OrderInput(**self.model_dump())


class UpdateOrderDTO(_OrderFields):
    """Schema for a partial order update.

    Every field is optional but at least one must be given. Only the fields
    present in the payload are written; ``to_changes()`` keeps that set.
    """

    from_name: Optional[str] = Field(default=None, min_length=1, max_length=200, alias="fromName")
    to_name: Optional[str] = Field(default=None, min_length=1, max_length=200, alias="toName")
    route: Optional[str] = Field(default=None, min_length=1)
    payment_method: Optional[str] = Field(default=None, min_length=1, alias="paymentMethod")
    terms_of_delivery: Optional[str] = Field(default=None, min_length=1, alias="termsDelivery")
    item_type: Optional[str] = Field(default=None, min_length=1, alias="itemType")
    status: Optional[str] = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        required = ("from_name", "to_name", "route", "payment_method", "terms_of_delivery", "item_type", "status")
        nulls = [f for f in required if f in self.model_fields_set and getattr(self, f) is None]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self

    def to_changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class OrderCreatedDTO(BaseModel):
    id: int
    lr_number: str
    message: str = "Order created successfully"


class MessageDTO(BaseModel):
    message: str


class OrderReadDTO(BaseModel):
    """Order as returned by the read endpoints, with reference names joined."""

    id: int
    lr_number: str
    from_name: str
    from_address: Optional[str] = None
    from_district: Optional[str] = None
    from_phone: Optional[str] = None
    to_name: str
    to_address: Optional[str] = None
    to_district: Optional[str] = None
    to_phone: Optional[str] = None
    quantity: Optional[int] = None
    weight: Optional[Decimal] = None
    item_type: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[dt.date] = None
    invoice_value: Optional[Decimal] = None
    lr_charge: Decimal = Decimal("0")
    fright_charge: Decimal = Decimal("0")
    fuel_surcharge: Decimal = Decimal("0")
    ie_charge: Decimal = Decimal("0")
    door_delivery_charge: Decimal = Decimal("0")
    hamali: Decimal = Decimal("0")
    eway_bill: Optional[str] = None
    route: Optional[str] = None
    payment_method: Optional[str] = None
    terms_of_delivery: Optional[str] = None
    status: Optional[str] = None
    status_color: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_serializer(
        "weight",
        "invoice_value",
        "lr_charge",
        "fright_charge",
        "fuel_surcharge",
        "ie_charge",
        "door_delivery_charge",
        "hamali",
        when_used="json",
    )
    def money_as_number(self, v: Optional[Decimal]):
        return None if v is None else float(v)


class ReferenceDTO(BaseModel):
    id: int
    name: str


class StatusDTO(ReferenceDTO):
    color: Optional[str] = None


class VehicleDTO(BaseModel):
    id: int
    name: str
    max_weight: Decimal
    max_quantity: int

    @field_serializer("max_weight", when_used="json")
    def weight_as_number(self, v: Decimal) -> float:
        return float(v)


class AllocationDTO(BaseModel):
    vehicle: VehicleDTO
    message: Optional[str] = None


class RouteStatsDTO(BaseModel):
    id: int
    name: str
    totalOrders: int
    deliveredOrders: int
    inTransitOrders: int
    pendingOrders: int
    efficiency: float


class RouteDayDTO(BaseModel):
    route: str
    deliveries: int
    efficiency: float


class RoutePerformanceDTO(BaseModel):
    date: dt.date
    routes: List[RouteDayDTO]


class TrendPointDTO(BaseModel):
    date: dt.date
    deliveries: int
    efficiency: float
