"""Courier booking API built with FastAPI.

This module exposes the booking endpoints: reference data listings, order
CRUD, vehicle allocation, route reports and a health probe. Validation is
performed with Pydantic models; the order workflows are delegated to
``BookingService`` and persistence to the SQLAlchemy repositories.

Errors raised by the workflows are mapped to small JSON bodies of the form
``{"detail": CODE, "message": ..., "fields": [...]}``. Internal details
(tracebacks, connection strings) are only logged, never returned.
"""

import datetime as dt
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import List

import uvicorn
from fastapi import Depends, FastAPI, Path, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import settings
from .db import check_db, init_db, wait_for_db
from .domain import BookingError, BookingService, NotFound
from .logging_filters import configure_logging
from .middleware import RequestIdMiddleware
from .providers import (
    get_booking_service,
    get_order_repository,
    get_reference_repository,
    get_route_reports,
)
from .reports import RouteReports
from .repository import OrderRepository, ReferenceRepository
from .schemas import (
    AllocationDTO,
    CreateOrderDTO,
    MessageDTO,
    OrderCreatedDTO,
    OrderReadDTO,
    ReferenceDTO,
    RoutePerformanceDTO,
    RouteStatsDTO,
    StatusDTO,
    TrendPointDTO,
    UpdateOrderDTO,
    VehicleDTO,
)
from .seed import seed_reference_data

logger = configure_logging(settings.LOG_LEVEL)

STATUS_BY_CODE = {
    "INVALID_REFERENCE": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "LR_NUMBER_CONFLICT": status.HTTP_409_CONFLICT,
    "FOREIGN_KEY_CONFLICT": status.HTTP_409_CONFLICT,
    "TRANSACTION_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("starting courier booking service")
    wait_for_db()
    init_db()
    if settings.SEED_REFERENCE_DATA:
        seed_reference_data()
    yield
    logger.info("shutting down courier booking service")


app = FastAPI(title="Courier Booking Service", lifespan=lifespan)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    code = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    if code >= 500:
        logger.error("booking failed", extra={"code": exc.code, "path": request.url.path})
    return JSONResponse(
        status_code=code,
        content={"detail": exc.code, "message": exc.message, "fields": exc.fields},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "VALIDATION_ERROR", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


@app.get("/health")
def health():
    """Liveness/health probe including a database round trip.

    Returns:
        JSONResponse: 200 when the database answers, 503 otherwise.
    """
    db_ok = check_db()
    return JSONResponse(
        {"ok": db_ok, "components": {"db": {"ok": db_ok}}},
        status_code=200 if db_ok else 503,
    )


# ---- Reference data ----
@app.get("/api/routes", response_model=List[ReferenceDTO])
def list_routes(refs: ReferenceRepository = Depends(get_reference_repository)):
    return refs.list("routes")


@app.get("/api/payment-methods", response_model=List[ReferenceDTO])
def list_payment_methods(refs: ReferenceRepository = Depends(get_reference_repository)):
    return refs.list("payment_methods")


@app.get("/api/terms-of-delivery", response_model=List[ReferenceDTO])
def list_terms_of_delivery(refs: ReferenceRepository = Depends(get_reference_repository)):
    return refs.list("terms_of_delivery")


@app.get("/api/item-types", response_model=List[ReferenceDTO])
def list_item_types(refs: ReferenceRepository = Depends(get_reference_repository)):
    return refs.list("item_types")


@app.get("/api/order-status", response_model=List[StatusDTO])
def list_order_statuses(refs: ReferenceRepository = Depends(get_reference_repository)):
    return refs.list("order_status")


# ---- Orders ----
@app.get("/api/orders", response_model=List[OrderReadDTO])
def list_orders(orders: OrderRepository = Depends(get_order_repository)):
    return orders.list_orders()


@app.get("/api/orders/{order_id}", response_model=OrderReadDTO)
def get_order(order_id: int = Path(gt=0), orders: OrderRepository = Depends(get_order_repository)):
    row = orders.get_order(order_id)
    if row is None:
        raise NotFound("Order", order_id)
    return row


@app.post("/api/orders", response_model=OrderCreatedDTO, status_code=status.HTTP_201_CREATED)
def create_order(dto: CreateOrderDTO, service: BookingService = Depends(get_booking_service)):
    """Book an order.

    Returns:
        201 with ``{id, lr_number, message}``.
        400 ``INVALID_REFERENCE`` when a route, payment method, terms of
        delivery or item type name is unknown.
        409 ``LR_NUMBER_CONFLICT`` on a duplicate LR number.
    """
    created = service.create_order(dto.to_domain())
    return OrderCreatedDTO(id=created.id, lr_number=created.lr_number)


@app.api_route("/api/orders/{order_id}", methods=["PUT", "PATCH"], response_model=MessageDTO)
def update_order(
    dto: UpdateOrderDTO,
    order_id: int = Path(gt=0),
    service: BookingService = Depends(get_booking_service),
):
    """Partially update an order; only the fields sent are written."""
    result = service.update_order(order_id, dto.to_changes())
    if not result.updated:
        return MessageDTO(message="No fields provided to update.")
    return MessageDTO(message="Order updated successfully")


@app.delete("/api/orders/{order_id}", response_model=MessageDTO)
def delete_order(order_id: int = Path(gt=0), service: BookingService = Depends(get_booking_service)):
    service.delete_order(order_id)
    return MessageDTO(message="Order deleted successfully")


# ---- Vehicles ----
@app.get("/api/vehicle-allocation", response_model=AllocationDTO, response_model_exclude_none=True)
def vehicle_allocation(
    weight: Decimal = Query(ge=0),
    quantity: int = Query(ge=0),
    service: BookingService = Depends(get_booking_service),
):
    allocation = service.allocate(weight, quantity)
    v = allocation.vehicle
    return AllocationDTO(
        vehicle=VehicleDTO(id=v.id, name=v.name, max_weight=v.max_weight, max_quantity=v.max_quantity),
        message=f"Warning: {allocation.warning}" if allocation.warning else None,
    )


# ---- Reports ----
@app.get("/api/routes/stats", response_model=List[RouteStatsDTO])
def route_stats(reports: RouteReports = Depends(get_route_reports)):
    return reports.route_stats()


@app.get("/api/route-performance", response_model=List[RoutePerformanceDTO])
def route_performance(
    start_date: dt.date = Query(alias="startDate"),
    end_date: dt.date = Query(alias="endDate"),
    reports: RouteReports = Depends(get_route_reports),
):
    return reports.route_performance(start_date, end_date)


@app.get("/api/route-performance/trends", response_model=List[TrendPointDTO])
def route_performance_trends(
    route: str = Query(min_length=1),
    start_date: dt.date = Query(alias="startDate"),
    end_date: dt.date = Query(alias="endDate"),
    reports: RouteReports = Depends(get_route_reports),
):
    return reports.route_trends(route, start_date, end_date)


def run():
    uvicorn.run(
        "courier.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    run()
