"""Domain models, ports and service for courier bookings.

This module contains the dataclasses used as DTOs for orders and vehicles,
the error taxonomy raised by the booking workflows, the two pure rules of
the system (LR number generation and best-fit vehicle allocation), protocol
definitions (ports) for the relational store, and the domain service that
orchestrates order creation, update and deletion.
"""

import logging
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol

from . import settings

logger = logging.getLogger("courier.domain")


# ---- Field maps ----
# Plain order columns a caller may set, by attribute name.
ORDER_FIELDS = (
    "from_name",
    "from_address",
    "from_district",
    "from_phone",
    "to_name",
    "to_address",
    "to_district",
    "to_phone",
    "quantity",
    "weight",
    "invoice_number",
    "invoice_date",
    "invoice_value",
    "lr_charge",
    "freight_charge",
    "fuel_surcharge",
    "ie_charge",
    "door_delivery_charge",
    "hamali",
    "eway_bill",
)

# Reference fields: name given by the caller -> (lookup table, FK attribute)
REFERENCE_FIELDS = {
    "route": ("routes", "route_id"),
    "payment_method": ("payment_methods", "payment_method_id"),
    "terms_of_delivery": ("terms_of_delivery", "terms_of_delivery_id"),
    "item_type": ("item_types", "item_type_id"),
    "status": ("order_status", "status_id"),
}

REFERENCE_LABELS = {
    "route": "Route",
    "payment_method": "Payment Method",
    "terms_of_delivery": "Terms of Delivery",
    "item_type": "Item Type",
    "status": "Status",
}

CAPACITY_WARNING = "Order may exceed capacity of the largest available vehicle."


# ---- Errors ----
class BookingError(ValueError):
    """Base class for booking workflow failures.

    ``str(error)`` is a short machine-readable code (e.g. ``NOT_FOUND``);
    the human message and any offending field names are kept on the
    instance so the HTTP layer can build a small structured body.

    Attributes:
        code: Short error code, also the exception's string form.
        message: Human readable explanation, safe to show to clients.
        fields: Names of the offending input fields, if any.
    """

    code = "BOOKING_ERROR"

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(self.code)
        self.message = message
        self.fields = list(fields)


class InvalidReference(BookingError):
    """One or more reference names did not resolve to an existing row."""

    code = "INVALID_REFERENCE"

    def __init__(self, fields: Iterable[str], names: Optional[dict] = None):
        fields = list(fields)
        names = names or {}
        parts = [f"{REFERENCE_LABELS.get(f, f)} ('{names.get(f)}')" for f in fields]
        super().__init__(f"Invalid reference data: {', '.join(parts)} not found.", fields)


class NotFound(BookingError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier=None):
        if identifier is None:
            message = f"No {resource} found."
        else:
            message = f"{resource} '{identifier}' not found."
        super().__init__(message)


class Conflict(BookingError):
    """Uniqueness violation on the LR number column."""

    code = "LR_NUMBER_CONFLICT"

    def __init__(self, message: str = "Possible duplicate entry (e.g., LR Number)."):
        super().__init__(message, ["lr_number"])


class ForeignKeyConflict(BookingError):
    """Deletion blocked because the order is referenced elsewhere."""

    code = "FOREIGN_KEY_CONFLICT"

    def __init__(self, order_id: int):
        super().__init__(f"Cannot delete order {order_id}. It is referenced by other records.")


class TransactionFailure(BookingError):
    """A store failure after a transaction was opened (rolled back)."""

    code = "TRANSACTION_FAILED"

    def __init__(self, message: str = "The order could not be saved."):
        super().__init__(message)


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Vehicle:
    """A vehicle of the fleet and its capacity.

    Attributes:
        id: Persistent identifier of the vehicle row.
        name: Display name, e.g. "Mini Van".
        max_weight: Maximum load in kg.
        max_quantity: Maximum number of packages.
    """

    id: int
    name: str
    max_weight: Decimal
    max_quantity: int


@dataclass(frozen=True)
class Allocation:
    vehicle: Vehicle
    warning: Optional[str] = None


@dataclass
class OrderInput:
    """Data needed to book a new shipment.

    Reference data (route, payment method, terms of delivery, item type) is
    given by human readable name and resolved to ids by the service. Charges
    default to zero.
    """

    from_name: str
    to_name: str
    route: str
    payment_method: str
    terms_of_delivery: str
    item_type: str
    from_address: Optional[str] = None
    from_district: Optional[str] = None
    from_phone: Optional[str] = None
    to_address: Optional[str] = None
    to_district: Optional[str] = None
    to_phone: Optional[str] = None
    quantity: Optional[int] = None
    weight: Optional[Decimal] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    invoice_value: Optional[Decimal] = None
    lr_charge: Decimal = Decimal("0")
    freight_charge: Decimal = Decimal("0")
    fuel_surcharge: Decimal = Decimal("0")
    ie_charge: Decimal = Decimal("0")
    door_delivery_charge: Decimal = Decimal("0")
    hamali: Decimal = Decimal("0")
    eway_bill: Optional[str] = None


@dataclass(frozen=True)
class CreatedOrder:
    id: int
    lr_number: str


@dataclass(frozen=True)
class ReceiptState:
    """The stored columns the update workflow needs to keep the LR number in sync."""

    from_district: Optional[str]
    lr_number: str


@dataclass(frozen=True)
class UpdateResult:
    id: int
    updated: bool
    lr_number: str


# ---- Rules ----
def generate_lr_number(from_district: Optional[str], order_id: int) -> str:
    """Build the LR (Lorry Receipt) number of an order.

    The number is the organization prefix, the upper-cased first character
    of the origin district (or a fixed fallback when the district is empty
    or missing) and the decimal order id. The first character is not
    checked for being a letter.

    Args:
        from_district: Origin district name, may be empty or None.
        order_id: Store-assigned order id.

    Returns:
        str: e.g. ``"N2KE101"`` for ("Erode", 101).
    """
    if isinstance(from_district, str) and from_district:
        district_code = from_district[0].upper()
    else:
        district_code = settings.LR_FALLBACK_DISTRICT
    return f"{settings.LR_PREFIX}{district_code}{order_id}"


def provisional_lr_number() -> str:
    """Unique placeholder written before the order id is known."""
    return f"TEMP-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def allocate_vehicle(weight, quantity: int, fleet: Iterable[Vehicle]) -> Allocation:
    """Pick the smallest vehicle that can carry the shipment.

    Candidates must cover both the weight and the quantity. Among them the
    one with the lowest ``(max_weight, max_quantity)`` wins. When no vehicle
    is big enough the largest one is returned with a capacity warning.

    Args:
        weight: Requested weight in kg (>= 0).
        quantity: Requested number of packages (>= 0).
        fleet: Available vehicles.

    Returns:
        Allocation: The chosen vehicle and an optional warning.

    Raises:
        NotFound: If the fleet is empty.
    """
    fleet = list(fleet)
    if not fleet:
        raise NotFound("vehicles")

    def capacity(v: Vehicle):
        return (v.max_weight, v.max_quantity)

    fitting = [v for v in fleet if v.max_weight >= weight and v.max_quantity >= quantity]
    if fitting:
        return Allocation(vehicle=min(fitting, key=capacity))

    largest = max(fleet, key=capacity)
    logger.warning(
        "no vehicle fits shipment, using largest",
        extra={"weight": str(weight), "quantity": quantity, "vehicle": largest.name},
    )
    return Allocation(vehicle=largest, warning=CAPACITY_WARNING)


# ---- Ports (DIP) ----
class ReferencePort(Protocol):
    """Name to id lookups over the reference tables."""

    def lookup_id(self, table: str, name: str) -> Optional[int]:
        """Return the id of the first row of ``table`` named ``name``, or None."""
        raise NotImplementedError()


class OrderTransaction(Protocol):
    """Writes available inside an open order transaction."""

    def insert(self, values: dict, lr_number: str) -> int:
        """Insert an order row and return its store-assigned id."""
        raise NotImplementedError()

    def set_lr_number(self, order_id: int, lr_number: str) -> None:
        raise NotImplementedError()


class OrderStorePort(Protocol):
    """Persistence operations on the ``orders`` table.

    ``transaction()`` must commit on normal exit and roll back on any
    exception, translating a uniqueness violation on ``lr_number`` into
    ``Conflict`` and other store failures into ``TransactionFailure``.
    """

    def transaction(self) -> AbstractContextManager:
        raise NotImplementedError()

    def get_receipt_state(self, order_id: int) -> Optional[ReceiptState]:
        raise NotImplementedError()

    def update(self, order_id: int, values: dict) -> int:
        """Apply ``values`` and refresh ``updated_at``; return affected rows."""
        raise NotImplementedError()

    def delete(self, order_id: int) -> int:
        raise NotImplementedError()


class FleetPort(Protocol):
    def list_vehicles(self) -> List[Vehicle]:
        raise NotImplementedError()


# ---- Domain service ----
class BookingService:
    """Domain service for the order lifecycle.

    It resolves reference names, writes orders through the store port and
    keeps every committed order's LR number derived from its origin
    district and id. It never computes ids itself: the store assigns them.
    """

    def __init__(
        self,
        references: ReferencePort,
        orders: OrderStorePort,
        fleet: FleetPort,
        default_status: str = settings.DEFAULT_ORDER_STATUS,
        lookup_workers: int = settings.LOOKUP_WORKERS,
    ):
        """Initialize the service with required dependencies.

        Args:
            references: ReferencePort used to resolve names to ids.
            orders: OrderStorePort used to persist orders.
            fleet: FleetPort used by vehicle allocation.
            default_status: Status name given to new orders.
            lookup_workers: Upper bound of parallel reference lookups.
        """
        self.references = references
        self.orders = orders
        self.fleet = fleet
        self.default_status = default_status
        self.lookup_workers = lookup_workers

    def resolve_references(self, names: dict) -> dict:
        """Resolve reference names to ids, all lookups in parallel.

        Args:
            names: Mapping of reference field (e.g. "route") to name.

        Returns:
            dict: Same keys mapped to the resolved id, or None when no row
            matches. Lookup failures propagate.
        """
        if not names:
            return {}
        workers = max(1, min(self.lookup_workers, len(names)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ref-lookup") as pool:
            futures = {
                field: pool.submit(self.references.lookup_id, REFERENCE_FIELDS[field][0], name)
                for field, name in names.items()
            }
            return {field: fut.result() for field, fut in futures.items()}

    def _reference_columns(self, names: dict) -> dict:
        ids = self.resolve_references(names)
        missing = [field for field, ref_id in ids.items() if ref_id is None]
        if missing:
            raise InvalidReference(missing, names)
        return {REFERENCE_FIELDS[field][1]: ref_id for field, ref_id in ids.items()}

    def create_order(self, order: OrderInput) -> CreatedOrder:
        """Book a new order and assign its LR number.

        The row is inserted with a unique placeholder LR number, the real
        number is derived from the assigned id and written back, and only
        then the transaction commits. Readers never see the placeholder.

        Args:
            order: Validated order data.

        Returns:
            CreatedOrder: The new id and its LR number.

        Raises:
            InvalidReference: A reference name (or the default status) is
                unknown. Raised before any transaction is opened.
            Conflict: The LR number collides with an existing one.
            TransactionFailure: Any other store failure; already rolled back.
        """
        names = {
            "route": order.route,
            "payment_method": order.payment_method,
            "terms_of_delivery": order.terms_of_delivery,
            "item_type": order.item_type,
            "status": self.default_status,
        }
        values = {field: getattr(order, field) for field in ORDER_FIELDS}
        values.update(self._reference_columns(names))

        with self.orders.transaction() as tx:
            order_id = tx.insert(values, lr_number=provisional_lr_number())
            lr_number = generate_lr_number(order.from_district, order_id)
            tx.set_lr_number(order_id, lr_number)

        logger.info("order created", extra={"order_id": order_id, "lr_number": lr_number})
        return CreatedOrder(id=order_id, lr_number=lr_number)

    def update_order(self, order_id: int, changes: dict) -> UpdateResult:
        """Apply a partial update to an order.

        Only the keys present in ``changes`` are written. Reference names
        among them are resolved first and all unknown ones reported
        together. A new origin district regenerates the LR number when the
        derived value differs from the stored one.

        Args:
            order_id: Id of the order to update.
            changes: Attribute name -> new value; reference fields carry
                names ("route", "status", ...).

        Returns:
            UpdateResult: ``updated`` is False when nothing had to change.

        Raises:
            NotFound: The order does not exist, or vanished before the write.
            InvalidReference: Some reference names are unknown.
            Conflict: The regenerated LR number collides with another order.
        """
        unknown = set(changes) - set(ORDER_FIELDS) - set(REFERENCE_FIELDS)
        if unknown:
            raise TypeError(f"unknown order fields: {', '.join(sorted(unknown))}")

        current = self.orders.get_receipt_state(order_id)
        if current is None:
            raise NotFound("Order", order_id)

        names = {field: changes[field] for field in REFERENCE_FIELDS if field in changes}
        values = {field: changes[field] for field in ORDER_FIELDS if field in changes}
        values.update(self._reference_columns(names))

        lr_number = current.lr_number
        if "from_district" in changes:
            regenerated = generate_lr_number(changes["from_district"], order_id)
            if regenerated != current.lr_number:
                logger.warning(
                    "regenerating LR number after district change",
                    extra={"order_id": order_id, "old": current.lr_number, "new": regenerated},
                )
                values["lr_number"] = regenerated
                lr_number = regenerated

        if not values:
            return UpdateResult(id=order_id, updated=False, lr_number=lr_number)

        if self.orders.update(order_id, values) == 0:
            logger.warning("update affected no rows", extra={"order_id": order_id})
            raise NotFound("Order", order_id)

        logger.info("order updated", extra={"order_id": order_id, "fields": sorted(values)})
        return UpdateResult(id=order_id, updated=True, lr_number=lr_number)

    def delete_order(self, order_id: int) -> None:
        """Delete an order.

        Raises:
            NotFound: No order has this id.
            ForeignKeyConflict: Other records still reference the order.
        """
        if self.orders.delete(order_id) == 0:
            raise NotFound("Order", order_id)
        logger.info("order deleted", extra={"order_id": order_id})

    def allocate(self, weight, quantity: int) -> Allocation:
        """Allocate a vehicle from the stored fleet."""
        return allocate_vehicle(weight, quantity, self.fleet.list_vehicles())
