"""
Derived booking fields: check-out date and grand total.

Called explicitly by the submit handler before a booking is created or
updated. The coordinator stores whatever values it receives.
"""

from dataclasses import replace
from datetime import date, timedelta

from core.errors import ValidationError
from core.models import Booking


def compute_end_date(start: date, nights: int) -> date:
    return start + timedelta(days=nights)


def compute_total(
    nightly_rate: float,
    village_fee: float,
    nights: int,
    housekeeping_enabled: bool = False,
    housekeeping_price: float = 0.0,
) -> float:
    """(base + fee) * nights + housekeeping. The deposit is never included."""
    housekeeping = housekeeping_price if housekeeping_enabled else 0.0
    return (nightly_rate + village_fee) * nights + housekeeping


def recompute_booking(b: Booking) -> Booking:
    """Returns a copy of the booking with end_date and total_rental_price refreshed."""
    if isinstance(b.nights, bool) or not isinstance(b.nights, int) or b.nights < 1:
        raise ValidationError(f"nights must be a positive integer, got {b.nights!r}")
    return replace(
        b,
        end_date=compute_end_date(b.start_date, b.nights),
        total_rental_price=compute_total(
            b.nightly_rate or 0.0,
            b.village_fee or 0.0,
            b.nights,
            b.housekeeping_enabled,
            b.housekeeping_price or 0.0,
        ),
    )


def price_breakdown(b: Booking) -> dict:
    """Receipt lines for a booking."""
    base = (b.nightly_rate or 0.0) * b.nights
    fees = (b.village_fee or 0.0) * b.nights
    housekeeping = (b.housekeeping_price or 0.0) if b.housekeeping_enabled else 0.0
    return {
        "base_rent": base,
        "village_fees": fees,
        "housekeeping": housekeeping,
        "subtotal": base + fees + housekeeping,
        "deposit": (b.deposit_amount or 0.0) if b.deposit_enabled else 0.0,
    }
