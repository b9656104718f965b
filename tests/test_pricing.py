from dataclasses import replace
from datetime import date

import pytest

from conftest import make_booking
from core.errors import ValidationError
from core.pricing import compute_end_date, compute_total, price_breakdown, recompute_booking


def test_total_and_end_date():
    b = make_booking(start=date(2024, 6, 1), nights=3, rate=500, fee=50,
                     housekeeping_enabled=True, housekeeping_price=200)
    assert b.total_rental_price == 1850
    assert b.end_date == date(2024, 6, 4)


def test_housekeeping_price_ignored_when_disabled():
    assert compute_total(500, 50, 3, housekeeping_enabled=False, housekeeping_price=200) == 1650


def test_end_date_crosses_month():
    assert compute_end_date(date(2024, 1, 30), 3) == date(2024, 2, 2)


def test_recompute_returns_new_instance_with_fresh_values():
    b = make_booking(nights=3)
    stale = replace(b, nights=5)
    fresh = recompute_booking(stale)
    assert fresh is not stale
    assert fresh.end_date == date(2024, 6, 6)
    assert fresh.total_rental_price == 550 * 5
    assert stale.end_date == date(2024, 6, 4)


@pytest.mark.parametrize("nights", [0, -2, 1.5])
def test_nights_must_be_positive_integer(nights):
    b = make_booking()
    bad = replace(b, nights=nights)
    with pytest.raises(ValidationError):
        recompute_booking(bad)


def test_deposit_is_kept_out_of_the_total():
    b = make_booking(nights=2, rate=1000, fee=100, deposit_enabled=True, deposit_amount=2000,
                     housekeeping_enabled=True, housekeeping_price=300)
    lines = price_breakdown(b)
    assert lines == {
        "base_rent": 2000,
        "village_fees": 200,
        "housekeeping": 300,
        "subtotal": 2500,
        "deposit": 2000,
    }
    assert b.total_rental_price == lines["subtotal"]
