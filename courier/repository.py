"""SQLAlchemy repositories implementing the booking ports.

The repositories keep a thin interface so the domain service is not coupled
to SQLAlchemy: they take and return plain dicts, ids and domain dataclasses.
Store errors are translated here into the domain taxonomy (``Conflict``,
``ForeignKeyConflict``, ``TransactionFailure``).
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .db import SessionLocal
from .domain import (
    Conflict,
    ForeignKeyConflict,
    ReceiptState,
    TransactionFailure,
    Vehicle,
)
from .models import (
    REFERENCE_MODELS,
    ItemTypeModel,
    OrderModel,
    OrderStatusModel,
    PaymentMethodModel,
    RouteModel,
    TermsOfDeliveryModel,
    VehicleModel,
)

logger = logging.getLogger("courier.repository")


def _is_lr_number_violation(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: orders.lr_number"
    # Postgres: 'duplicate key ... constraint "uq_orders_lr_number"'
    return "lr_number" in str(exc.orig)


def _rollback(session: Session) -> None:
    """Roll back, logging (never raising) a failed rollback."""
    try:
        logger.warning("rolling back order transaction")
        session.rollback()
    except Exception:
        logger.critical("error rolling back order transaction", exc_info=True)


class ReferenceRepository:
    """Read-only access to the reference tables."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def lookup_id(self, table: str, name: str) -> Optional[int]:
        """Return the id of the first row in ``table`` whose name equals ``name``.

        Each call uses its own session so lookups can run in parallel.

        Args:
            table: One of the keys of ``REFERENCE_MODELS``.
            name: Exact (case-sensitive) name to match.

        Returns:
            The row id, or None when no row matches.
        """
        model = REFERENCE_MODELS[table]
        with self.session_factory() as s:
            return s.execute(
                select(model.id).where(model.name == name).order_by(model.id).limit(1)
            ).scalar_one_or_none()

    def list(self, table: str) -> List[dict]:
        model = REFERENCE_MODELS[table]
        columns = [model.id, model.name]
        if model is OrderStatusModel:
            columns.append(model.color)
        with self.session_factory() as s:
            rows = s.execute(select(*columns).order_by(model.id)).mappings().all()
            return [dict(r) for r in rows]


class FleetRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def list_vehicles(self) -> List[Vehicle]:
        with self.session_factory() as s:
            rows = s.execute(select(VehicleModel).order_by(VehicleModel.id)).scalars().all()
            return [
                Vehicle(id=v.id, name=v.name, max_weight=v.max_weight, max_quantity=v.max_quantity)
                for v in rows
            ]


class _SqlOrderTransaction:
    """Order writes bound to one open session."""

    def __init__(self, session: Session):
        self.session = session
        self._rows = {}

    def insert(self, values: dict, lr_number: str) -> int:
        row = OrderModel(lr_number=lr_number, **values)
        self.session.add(row)
        self.session.flush()
        self._rows[row.id] = row
        return row.id

    def set_lr_number(self, order_id: int, lr_number: str) -> None:
        row = self._rows.get(order_id) or self.session.get(OrderModel, order_id)
        row.lr_number = lr_number
        self.session.flush()


def _order_view():
    """SELECT of orders with reference names joined in, original column names."""
    return (
        select(
            OrderModel.id,
            OrderModel.lr_number,
            OrderModel.from_name,
            OrderModel.from_address,
            OrderModel.from_district,
            OrderModel.from_phone,
            OrderModel.to_name,
            OrderModel.to_address,
            OrderModel.to_district,
            OrderModel.to_phone,
            OrderModel.quantity,
            OrderModel.weight,
            ItemTypeModel.name.label("item_type"),
            OrderModel.invoice_number,
            OrderModel.invoice_date,
            OrderModel.invoice_value,
            OrderModel.lr_charge,
            OrderModel.freight_charge.label("fright_charge"),
            OrderModel.fuel_surcharge,
            OrderModel.ie_charge,
            OrderModel.door_delivery_charge,
            OrderModel.hamali,
            OrderModel.eway_bill,
            RouteModel.name.label("route"),
            PaymentMethodModel.name.label("payment_method"),
            TermsOfDeliveryModel.name.label("terms_of_delivery"),
            OrderStatusModel.name.label("status"),
            OrderStatusModel.color.label("status_color"),
            OrderModel.created_at,
            OrderModel.updated_at,
        )
        .select_from(OrderModel)
        .outerjoin(RouteModel, OrderModel.route_id == RouteModel.id)
        .outerjoin(PaymentMethodModel, OrderModel.payment_method_id == PaymentMethodModel.id)
        .outerjoin(TermsOfDeliveryModel, OrderModel.terms_of_delivery_id == TermsOfDeliveryModel.id)
        .outerjoin(ItemTypeModel, OrderModel.item_type_id == ItemTypeModel.id)
        .outerjoin(OrderStatusModel, OrderModel.status_id == OrderStatusModel.id)
    )


class OrderRepository:
    """Repository that persists orders using SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def transaction(self):
        """Open a transaction for creating an order.

        Commits when the block exits normally. On any exception, including
        cancellation, the transaction is rolled back before the error is
        re-raised; a failing rollback is logged and does not replace the
        original error.

        Yields:
            _SqlOrderTransaction: Writer bound to the open session.

        Raises:
            Conflict: Unique violation on ``lr_number``.
            TransactionFailure: Any other SQLAlchemy error.
        """
        session = self.session_factory()
        try:
            yield _SqlOrderTransaction(session)
            session.commit()
        except BaseException as exc:
            _rollback(session)
            if isinstance(exc, IntegrityError) and _is_lr_number_violation(exc):
                logger.error("unique constraint violation on lr_number", extra={"error": str(exc.orig)})
                raise Conflict() from exc
            if isinstance(exc, SQLAlchemyError):
                logger.error("order transaction failed", exc_info=True)
                raise TransactionFailure() from exc
            raise
        finally:
            session.close()

    def get_receipt_state(self, order_id: int) -> Optional[ReceiptState]:
        with self.session_factory() as s:
            row = s.execute(
                select(OrderModel.from_district, OrderModel.lr_number).where(OrderModel.id == order_id)
            ).first()
        if row is None:
            return None
        return ReceiptState(from_district=row.from_district, lr_number=row.lr_number)

    def update(self, order_id: int, values: dict) -> int:
        """Update the given attributes of one order in a single statement.

        Args:
            order_id: Target order id.
            values: Attribute name -> value. ``updated_at`` is refreshed.

        Returns:
            int: Number of rows affected (0 or 1).

        Raises:
            Conflict: The new ``lr_number`` is already taken.
        """
        assignments = {getattr(OrderModel, key): value for key, value in values.items()}
        assignments[OrderModel.updated_at] = func.now()
        stmt = update(OrderModel).where(OrderModel.id == order_id).values(assignments)
        with self.session_factory() as s:
            try:
                result = s.execute(stmt, execution_options={"synchronize_session": False})
                s.commit()
            except IntegrityError as exc:
                s.rollback()
                if _is_lr_number_violation(exc):
                    raise Conflict() from exc
                raise
            return result.rowcount

    def delete(self, order_id: int) -> int:
        """Delete one order.

        Returns:
            int: Number of rows deleted.

        Raises:
            ForeignKeyConflict: Other rows still reference the order.
        """
        with self.session_factory() as s:
            try:
                result = s.execute(
                    delete(OrderModel).where(OrderModel.id == order_id),
                    execution_options={"synchronize_session": False},
                )
                s.commit()
            except IntegrityError as exc:
                s.rollback()
                logger.error("order delete blocked by foreign key", extra={"order_id": order_id})
                raise ForeignKeyConflict(order_id) from exc
            return result.rowcount

    def list_orders(self) -> List[dict]:
        stmt = _order_view().order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        with self.session_factory() as s:
            return [dict(r) for r in s.execute(stmt).mappings().all()]

    def get_order(self, order_id: int) -> Optional[dict]:
        with self.session_factory() as s:
            row = s.execute(_order_view().where(OrderModel.id == order_id)).mappings().first()
            return dict(row) if row else None

    def count(self) -> int:
        with self.session_factory() as s:
            return s.execute(select(func.count(OrderModel.id))).scalar_one()
