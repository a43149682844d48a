"""In-process stub adapters for the booking domain ports.

These stubs implement ``ReferencePort``, ``OrderStorePort`` and
``FleetPort`` in memory, without a database. They are intended for unit
tests and local experiments where deterministic behavior is useful: ids
come from a counter owned by the fake store (standing in for the
database identity column), and the LR number uniqueness constraint is
enforced on commit.
"""

import copy
import itertools
from contextlib import contextmanager
from typing import Dict, List, Optional

from .domain import (
    Conflict,
    FleetPort,
    OrderStorePort,
    ReceiptState,
    ReferencePort,
    Vehicle,
)


class ReferenceStub(ReferencePort):
    """Name lookups over a ``{table: {name: id}}`` mapping."""

    def __init__(self, tables: Dict[str, Dict[str, int]]):
        self.tables = tables
        self.calls = []

    def lookup_id(self, table: str, name: str) -> Optional[int]:
        self.calls.append((table, name))
        return self.tables.get(table, {}).get(name)


class _StubTransaction:
    def __init__(self, store: "OrderStoreStub"):
        self.store = store
        self.staged = copy.deepcopy(store.rows)

    def insert(self, values: dict, lr_number: str) -> int:
        order_id = next(self.store._ids)
        self.staged[order_id] = dict(values, id=order_id, lr_number=lr_number)
        self.store.placeholders.append(lr_number)
        return order_id

    def set_lr_number(self, order_id: int, lr_number: str) -> None:
        self.staged[order_id]["lr_number"] = lr_number


class OrderStoreStub(OrderStorePort):
    """Dict-backed order store with all-or-nothing transactions.

    Rows only become visible in ``rows`` when a transaction commits. Set
    ``fail_on_set_lr_number`` to make the second write of the creation
    workflow raise, which exercises the rollback path.
    """

    def __init__(self, first_id: int = 1):
        self.rows: Dict[int, dict] = {}
        self.placeholders: List[str] = []
        self.fail_on_set_lr_number: Optional[Exception] = None
        self._ids = itertools.count(first_id)

    @contextmanager
    def transaction(self):
        tx = _StubTransaction(self)
        if self.fail_on_set_lr_number is not None:
            error = self.fail_on_set_lr_number

            def failing(order_id, lr_number):
                raise error

            tx.set_lr_number = failing
        yield tx
        self._check_unique(tx.staged)
        self.rows = tx.staged

    def _check_unique(self, rows: Dict[int, dict]) -> None:
        seen = set()
        for row in rows.values():
            if row["lr_number"] in seen:
                raise Conflict()
            seen.add(row["lr_number"])

    def get_receipt_state(self, order_id: int) -> Optional[ReceiptState]:
        row = self.rows.get(order_id)
        if row is None:
            return None
        return ReceiptState(from_district=row.get("from_district"), lr_number=row["lr_number"])

    def update(self, order_id: int, values: dict) -> int:
        if order_id not in self.rows:
            return 0
        staged = copy.deepcopy(self.rows)
        staged[order_id].update(values)
        self._check_unique(staged)
        self.rows = staged
        return 1

    def delete(self, order_id: int) -> int:
        return 1 if self.rows.pop(order_id, None) is not None else 0


class FleetStub(FleetPort):
    def __init__(self, vehicles: List[Vehicle]):
        self.vehicles = list(vehicles)

    def list_vehicles(self) -> List[Vehicle]:
        return list(self.vehicles)
