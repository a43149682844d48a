"""Service provider helpers for wiring BookingService with ports.

``get_booking_service`` is used as a FastAPI dependency, so tests can swap
the wiring through ``app.dependency_overrides`` (for example with the
in-memory stubs from ``courier.adapters``) without changing endpoint code.
"""

from .domain import BookingService
from .reports import RouteReports
from .repository import FleetRepository, OrderRepository, ReferenceRepository


def get_booking_service() -> BookingService:
    """Return a BookingService backed by the SQLAlchemy repositories."""
    return BookingService(
        references=ReferenceRepository(),
        orders=OrderRepository(),
        fleet=FleetRepository(),
    )


def get_order_repository() -> OrderRepository:
    return OrderRepository()


def get_reference_repository() -> ReferenceRepository:
    return ReferenceRepository()


def get_route_reports() -> RouteReports:
    return RouteReports()
