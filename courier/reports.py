"""Route dashboards: per-route totals, daily performance and trends.

Each order contributes an efficiency score derived from its status
(Delivered 100, In Transit 75, Pending/Processing 50, anything else 25);
route and day figures average those scores, rounded to one decimal.
Counting and averaging happen in the database; only one row per route
(or per day and route) comes back.
"""

import datetime as dt
from collections import defaultdict
from typing import Dict, List

from sqlalchemy import Date, case, func, select
from sqlalchemy.orm import sessionmaker

from .db import SessionLocal
from .models import OrderModel, OrderStatusModel, RouteModel

STATUS_SCORES = {
    "Delivered": 100.0,
    "In Transit": 75.0,
    "Pending": 50.0,
    "Processing": 50.0,
}
OTHER_STATUS_SCORE = 25.0
PENDING_STATUSES = ("Pending", "Processing")


def efficiency_score():
    """SQL expression scoring the status of the joined order row."""
    return case(
        *[(OrderStatusModel.name == name, score) for name, score in STATUS_SCORES.items()],
        else_=OTHER_STATUS_SCORE,
    )


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _rounded(avg) -> float:
    return 0.0 if avg is None else round(float(avg), 1)


def _order_day():
    return func.date(OrderModel.created_at, type_=Date)


def _day_bounds(start: dt.date, end: dt.date):
    """Half-open datetime range covering ``start`` through ``end`` inclusive."""
    lower = dt.datetime.combine(start, dt.time.min)
    upper = dt.datetime.combine(end + dt.timedelta(days=1), dt.time.min)
    return lower, upper


class RouteReports:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def route_stats(self) -> List[dict]:
        """Order counts per route and their average efficiency.

        Routes without orders are included with zero counts. The result is
        sorted by efficiency, best first.
        """
        per_route = (
            select(
                OrderModel.route_id,
                func.count(OrderModel.id).label("total"),
                _count_where(OrderStatusModel.name == "Delivered").label("delivered"),
                _count_where(OrderStatusModel.name == "In Transit").label("in_transit"),
                _count_where(OrderStatusModel.name.in_(PENDING_STATUSES)).label("pending"),
                func.avg(efficiency_score()).label("efficiency"),
            )
            .select_from(OrderModel)
            .join(OrderStatusModel, OrderModel.status_id == OrderStatusModel.id)
            .group_by(OrderModel.route_id)
            .subquery()
        )
        stmt = (
            select(
                RouteModel.id,
                RouteModel.name,
                per_route.c.total,
                per_route.c.delivered,
                per_route.c.in_transit,
                per_route.c.pending,
                per_route.c.efficiency,
            )
            .select_from(RouteModel)
            .outerjoin(per_route, per_route.c.route_id == RouteModel.id)
            .order_by(RouteModel.id)
        )
        with self.session_factory() as s:
            rows = s.execute(stmt).all()

        out = [
            {
                "id": r.id,
                "name": r.name,
                "totalOrders": r.total or 0,
                "deliveredOrders": r.delivered or 0,
                "inTransitOrders": r.in_transit or 0,
                "pendingOrders": r.pending or 0,
                "efficiency": _rounded(r.efficiency),
            }
            for r in rows
        ]
        out.sort(key=lambda r: r["efficiency"], reverse=True)
        return out

    def route_performance(self, start: dt.date, end: dt.date) -> List[dict]:
        """Deliveries and efficiency per day and route between two dates.

        Every day that has at least one order lists all routes, those
        without orders on that day with zero figures, sorted by route name.
        """
        lower, upper = _day_bounds(start, end)
        day = _order_day()
        stmt = (
            select(
                day.label("day"),
                OrderModel.route_id,
                func.count(OrderModel.id).label("deliveries"),
                func.avg(efficiency_score()).label("efficiency"),
            )
            .select_from(OrderModel)
            .join(OrderStatusModel, OrderModel.status_id == OrderStatusModel.id)
            .where(OrderModel.created_at >= lower, OrderModel.created_at < upper)
            .group_by(day, OrderModel.route_id)
        )
        with self.session_factory() as s:
            all_routes = s.execute(select(RouteModel.id, RouteModel.name).order_by(RouteModel.name)).all()
            rows = s.execute(stmt).all()

        by_day: Dict[dt.date, Dict[int, tuple]] = defaultdict(dict)
        for r in rows:
            by_day[r.day][r.route_id] = (r.deliveries, _rounded(r.efficiency))

        result = []
        for d in sorted(by_day):
            day_routes = []
            for route_id, name in all_routes:
                deliveries, efficiency = by_day[d].get(route_id, (0, 0.0))
                day_routes.append({"route": name, "deliveries": deliveries, "efficiency": efficiency})
            result.append({"date": d, "routes": day_routes})
        return result

    def route_trends(self, route: str, start: dt.date, end: dt.date) -> List[dict]:
        """Daily deliveries and efficiency of one route, by route name."""
        lower, upper = _day_bounds(start, end)
        day = _order_day()
        stmt = (
            select(
                day.label("day"),
                func.count(OrderModel.id).label("deliveries"),
                func.avg(efficiency_score()).label("efficiency"),
            )
            .select_from(OrderModel)
            .join(RouteModel, OrderModel.route_id == RouteModel.id)
            .join(OrderStatusModel, OrderModel.status_id == OrderStatusModel.id)
            .where(RouteModel.name == route, OrderModel.created_at >= lower, OrderModel.created_at < upper)
            .group_by(day)
            .order_by(day)
        )
        with self.session_factory() as s:
            rows = s.execute(stmt).all()
        return [
            {"date": r.day, "deliveries": r.deliveries, "efficiency": _rounded(r.efficiency)}
            for r in rows
        ]
