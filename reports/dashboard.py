"""
Owner dashboard: headline numbers and the most recent rentals.
"""

from typing import Iterable

import pandas as pd

from core.models import Booking, BookingStatus, Expense, Unit
from reports.pivot import bookings_frame

LATEST_RENTALS = 10


def dashboard_kpis(bookings: Iterable[Booking], expenses: Iterable[Expense]) -> dict:
    """
    All-time figures:
      - active_bookings → confirmed or pending
      - revenue         → base rent of confirmed bookings
      - net             → revenue minus every expense
    """
    bookings = list(bookings)
    active = sum(
        1 for b in bookings if b.status in (BookingStatus.CONFIRMED, BookingStatus.PENDING)
    )
    revenue = sum(b.nightly_rate * b.nights for b in bookings if b.status == BookingStatus.CONFIRMED)
    spent = sum(e.amount for e in expenses)
    return {
        "active_bookings": active,
        "revenue": revenue,
        "expenses": spent,
        "net": revenue - spent,
    }


def latest_rentals(bookings: Iterable[Booking], units: Iterable[Unit], limit: int = LATEST_RENTALS) -> pd.DataFrame:
    return bookings_frame(bookings, units).head(limit)
