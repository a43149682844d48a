"""Unit tests for LR number generation.

The LR number is the "N2K" prefix, the upper-cased first character of the
origin district (or "X" when there is none) and the order id.
"""

import pytest

from courier.domain import generate_lr_number, provisional_lr_number


def test_lr_number_from_district_and_id():
    assert generate_lr_number("Erode", 101) == "N2KE101"


def test_lr_number_is_deterministic():
    assert generate_lr_number("Salem", 7) == generate_lr_number("Salem", 7)


@pytest.mark.parametrize("district", ["", None])
def test_lr_number_fallback_when_district_missing(district):
    assert generate_lr_number(district, 5) == "N2KX5"


def test_lr_number_ignores_case_of_district():
    """Only the upper-cased first character matters."""
    assert generate_lr_number("erode", 12) == generate_lr_number("Erode", 12) == "N2KE12"


def test_lr_number_keeps_non_letter_first_character():
    assert generate_lr_number("9 Mile", 3) == "N2K93"
    assert generate_lr_number(" Erode", 3) == "N2K 3"


def test_lr_number_differs_per_order():
    assert generate_lr_number("Erode", 1) != generate_lr_number("Erode", 11)


def test_provisional_numbers_are_unique_placeholders():
    a, b = provisional_lr_number(), provisional_lr_number()
    assert a.startswith("TEMP-")
    assert a != b
    assert len(a) <= 50
