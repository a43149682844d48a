"""Unit tests for best-fit vehicle allocation."""

import random
from decimal import Decimal

import pytest

from courier.domain import CAPACITY_WARNING, NotFound, Vehicle, allocate_vehicle

BIKE = Vehicle(1, "Delivery Bike", Decimal("20"), 5)
VAN = Vehicle(2, "Mini Van", Decimal("500"), 50)
TRUCK = Vehicle(3, "Delivery Truck", Decimal("2000"), 200)
HEAVY = Vehicle(4, "Heavy Duty Truck", Decimal("10000"), 1000)
FLEET = [BIKE, VAN, TRUCK, HEAVY]


@pytest.mark.parametrize(
    "weight,quantity,expected",
    [
        (Decimal("10"), 2, BIKE),
        (Decimal("20"), 5, BIKE),
        (Decimal("21"), 1, VAN),
        (Decimal("5"), 6, VAN),
        (Decimal("600"), 10, TRUCK),
        (Decimal("0"), 0, BIKE),
        (Decimal("10000"), 1000, HEAVY),
    ],
)
def test_smallest_fitting_vehicle_is_chosen(weight, quantity, expected):
    allocation = allocate_vehicle(weight, quantity, FLEET)
    assert allocation.vehicle == expected
    assert allocation.warning is None


def test_allocated_vehicle_belongs_to_fleet():
    allocation = allocate_vehicle(Decimal("300"), 40, FLEET)
    assert allocation.vehicle in FLEET


def test_no_vehicle_fits_returns_largest_with_warning():
    allocation = allocate_vehicle(Decimal("20000"), 10, FLEET)
    assert allocation.vehicle == HEAVY
    assert allocation.warning == CAPACITY_WARNING


def test_quantity_alone_can_exceed_capacity():
    allocation = allocate_vehicle(Decimal("1"), 5000, FLEET)
    assert allocation.vehicle == HEAVY
    assert allocation.warning == CAPACITY_WARNING


def test_empty_fleet_raises_not_found():
    with pytest.raises(NotFound) as e:
        allocate_vehicle(Decimal("1"), 1, [])
    assert str(e.value) == "NOT_FOUND"


def test_result_does_not_depend_on_fleet_order():
    shuffled = FLEET[:]
    random.Random(42).shuffle(shuffled)
    for weight, quantity in [(Decimal("15"), 3), (Decimal("450"), 60), (Decimal("99999"), 1)]:
        assert allocate_vehicle(weight, quantity, shuffled) == allocate_vehicle(weight, quantity, FLEET)


VAN_A = Vehicle(5, "Van A", Decimal("500"), 80)
VAN_B = Vehicle(6, "Van B", Decimal("500"), 50)


@pytest.mark.parametrize("fleet", [[VAN_A, VAN_B], [VAN_B, VAN_A]])
def test_equal_weight_best_fit_prefers_smaller_quantity(fleet):
    assert allocate_vehicle(Decimal("100"), 10, fleet).vehicle == VAN_B


@pytest.mark.parametrize("fleet", [[VAN_A, VAN_B], [VAN_B, VAN_A]])
def test_equal_weight_fallback_prefers_larger_quantity(fleet):
    allocation = allocate_vehicle(Decimal("1000"), 10, fleet)
    assert allocation.vehicle == VAN_A
    assert allocation.warning == CAPACITY_WARNING


def test_quantity_breaks_best_fit_tie_only_among_fitting_vehicles():
    """Van B is the smaller of the two but cannot take 60 packages."""
    assert allocate_vehicle(Decimal("100"), 60, [VAN_B, VAN_A]).vehicle == VAN_A
