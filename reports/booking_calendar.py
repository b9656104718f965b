"""
Booking calendar: one row per day of the month, one column per unit.

A cell holds the tenant staying that night (check-out day excluded),
so back-to-back bookings never share a cell. Cancelled bookings are left out.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable

import pandas as pd

from core.models import Booking, BookingStatus, Unit
from reports.pivot import unit_labels


def _cell(b: Booking) -> str:
    if b.status == BookingStatus.PENDING:
        return f"{b.tenant_name} (?)"
    return b.tenant_name


def month_calendar(
    bookings: Iterable[Booking],
    units: Iterable[Unit],
    year: int,
    month: int,
) -> pd.DataFrame:
    units = list(units)
    n_days = calendar.monthrange(year, month)[1]
    days = [date(year, month, d) for d in range(1, n_days + 1)]

    grid = pd.DataFrame("", index=pd.Index(days, name="day"), columns=[u.id for u in units])
    for b in bookings:
        if b.is_cancelled or b.unit_id not in grid.columns:
            continue
        night = max(b.start_date, days[0])
        while night < b.end_date and night <= days[-1]:
            grid.at[night, b.unit_id] = _cell(b)
            night += timedelta(days=1)

    names = unit_labels(units)
    grid.columns = pd.Index([names[c] for c in grid.columns], name="unit")
    return grid
