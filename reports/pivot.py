"""
Reports and pivots over the current lists of units, bookings and expenses.

Read-only: every function takes plain lists (a snapshot of AppState) and
returns pandas DataFrames for st.dataframe or for export:
  - financial report per unit (revenue, expenses, net)
  - occupancy and village fee statements per unit
  - expense summary per category, month × unit pivot
  - admin overview of client subscriptions
"""

from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from core.models import Booking, BookingStatus, Expense, Subscription, Unit, User
from core.pricing import price_breakdown
from core.subscriptions import ACTIVE, days_remaining, subscription_end, subscription_status

ALL = "all"


def _unit_match(unit_id: str, selected: Optional[str]) -> bool:
    return selected in (None, "", ALL) or unit_id == selected


def _date_match(d: date, start: Optional[date], end: Optional[date]) -> bool:
    # Both bounds inclusive; the filter applies only when both are given
    if start is None or end is None:
        return True
    return d is not None and start <= d <= end


def _unit_names(units: Iterable[Unit]) -> dict:
    return {u.id: u.name for u in units}


def unit_labels(units: Iterable[Unit]) -> dict:
    """Column label per unit id; a shared name gets a short id suffix."""
    units = list(units)
    counts = {}
    for u in units:
        counts[u.name] = counts.get(u.name, 0) + 1
    return {u.id: u.name if counts[u.name] == 1 else f"{u.name} · {u.id[:6]}" for u in units}


def _displayed_units(units: Iterable[Unit], unit_id: Optional[str]) -> List[Unit]:
    return [u for u in units if _unit_match(u.id, unit_id)]


def filter_bookings(
    bookings: Iterable[Booking],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> List[Booking]:
    """Bookings of the selected unit whose check-in falls inside [start, end]."""
    return [
        b for b in bookings
        if _unit_match(b.unit_id, unit_id) and _date_match(b.start_date, start, end)
    ]


def filter_expenses(
    expenses: Iterable[Expense],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> List[Expense]:
    return [
        e for e in expenses
        if _unit_match(e.unit_id, unit_id) and _date_match(e.date, start, end)
    ]


BOOKING_COLUMNS = [
    "month", "unit", "tenant", "phone", "check_in", "check_out", "nights",
    "nightly_rate", "village_fee", "housekeeping", "total", "deposit",
    "status", "payment", "welcome_again",
]


def bookings_frame(bookings: Iterable[Booking], units: Iterable[Unit]) -> pd.DataFrame:
    """Booking list for tabular display, newest check-in first."""
    names = _unit_names(units)
    rows = []
    for b in bookings:
        lines = price_breakdown(b)
        rows.append({
            "month": b.start_date.strftime("%Y-%m"),
            "unit": names.get(b.unit_id, "N/A"),
            "tenant": b.tenant_name,
            "phone": b.phone,
            "check_in": b.start_date,
            "check_out": b.end_date,
            "nights": b.nights,
            "nightly_rate": b.nightly_rate,
            "village_fee": b.village_fee,
            "housekeeping": lines["housekeeping"],
            "total": b.total_rental_price,
            "deposit": lines["deposit"],
            "status": b.status.value,
            "payment": b.payment_status.value,
            "welcome_again": b.tenant_rating_good,
        })
    if not rows:
        return pd.DataFrame(columns=BOOKING_COLUMNS)
    return (pd.DataFrame(rows, columns=BOOKING_COLUMNS)
            .sort_values("check_in", ascending=False)
            .reset_index(drop=True))


def expenses_frame(expenses: Iterable[Expense], units: Iterable[Unit]) -> pd.DataFrame:
    names = _unit_names(units)
    cols = ["date", "unit", "title", "category", "amount"]
    rows = [{
        "date": e.date,
        "unit": names.get(e.unit_id, "N/A"),
        "title": e.title,
        "category": e.category,
        "amount": e.amount,
    } for e in expenses]
    if not rows:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame(rows, columns=cols).sort_values("date", ascending=False).reset_index(drop=True)


def _with_total_row(df: pd.DataFrame, label_col: str = "unit") -> pd.DataFrame:
    if df.empty:
        return df
    totals = {
        c: df[c].sum() if pd.api.types.is_numeric_dtype(df[c]) else ""
        for c in df.columns
    }
    totals[label_col] = "TOTAL"
    return pd.concat([df, pd.DataFrame([totals])], ignore_index=True)


def financial_report(
    units: Iterable[Unit],
    bookings: Iterable[Booking],
    expenses: Iterable[Expense],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> pd.DataFrame:
    """
    Revenue, expenses and net profit per unit, with a TOTAL row.
    Revenue counts confirmed bookings only, at base rate (village fees and
    housekeeping are passed through, not earned).
    """
    fb = [b for b in filter_bookings(bookings, start, end, unit_id)
          if b.status == BookingStatus.CONFIRMED]
    fe = filter_expenses(expenses, start, end, unit_id)

    rows = []
    for u in _displayed_units(units, unit_id):
        revenue = sum(b.nightly_rate * b.nights for b in fb if b.unit_id == u.id)
        spent = sum(e.amount for e in fe if e.unit_id == u.id)
        rows.append({"unit": u.name, "revenue": revenue, "expenses": spent, "net": revenue - spent})

    df = pd.DataFrame(rows, columns=["unit", "revenue", "expenses", "net"])
    return _with_total_row(df)


def financial_totals(report: pd.DataFrame) -> dict:
    """KPI values from the TOTAL row of financial_report()."""
    if report.empty:
        return {"revenue": 0.0, "expenses": 0.0, "net": 0.0}
    total = report.iloc[-1]
    return {k: float(total[k]) for k in ("revenue", "expenses", "net")}


def occupancy_report(
    units: Iterable[Unit],
    bookings: Iterable[Booking],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> pd.DataFrame:
    """Per unit: bookings, nights and the split of the amounts charged."""
    fb = filter_bookings(bookings, start, end, unit_id)
    cols = ["unit", "bookings", "nights", "base_rent", "village_fees", "housekeeping", "grand_total"]

    rows = []
    for u in _displayed_units(units, unit_id):
        ub = [b for b in fb if b.unit_id == u.id]
        if not ub:
            continue
        lines = [price_breakdown(b) for b in ub]
        rows.append({
            "unit": u.name,
            "bookings": len(ub),
            "nights": sum(b.nights for b in ub),
            "base_rent": sum(x["base_rent"] for x in lines),
            "village_fees": sum(x["village_fees"] for x in lines),
            "housekeeping": sum(x["housekeeping"] for x in lines),
            "grand_total": sum(b.total_rental_price for b in ub),
        })
    return _with_total_row(pd.DataFrame(rows, columns=cols))


def village_fees_report(
    units: Iterable[Unit],
    bookings: Iterable[Booking],
    start: Optional[date] = None,
    end: Optional[date] = None,
    unit_id: Optional[str] = None,
) -> pd.DataFrame:
    """Village fees owed per unit. Cancelled bookings owe nothing."""
    fb = [b for b in filter_bookings(bookings, start, end, unit_id) if not b.is_cancelled]
    cols = ["unit", "bookings", "nights", "village_fees"]

    rows = []
    for u in _displayed_units(units, unit_id):
        ub = [b for b in fb if b.unit_id == u.id]
        if not ub:
            continue
        rows.append({
            "unit": u.name,
            "bookings": len(ub),
            "nights": sum(b.nights for b in ub),
            "village_fees": sum((b.village_fee or 0.0) * b.nights for b in ub),
        })
    return _with_total_row(pd.DataFrame(rows, columns=cols))


def expense_summary(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Total and count per category, largest first."""
    df = pd.DataFrame([{"category": e.category, "amount": e.amount} for e in expenses],
                      columns=["category", "amount"])
    if df.empty:
        return pd.DataFrame(columns=["category", "total", "count"])
    summary = df.groupby("category").agg(
        total=("amount", "sum"),
        count=("amount", "count"),
    ).reset_index()
    return summary.sort_values("total", ascending=False).reset_index(drop=True)


def pivot_by_month_unit(bookings: Iterable[Booking], units: Iterable[Unit]) -> pd.DataFrame:
    """Pivot: month × unit, grand totals of non-cancelled bookings."""
    df = pd.DataFrame([{
        "month": b.start_date.strftime("%Y-%m"),
        "unit_id": b.unit_id,
        "total": b.total_rental_price,
    } for b in bookings if not b.is_cancelled], columns=["month", "unit_id", "total"])
    if df.empty:
        return pd.DataFrame()
    # Pivot on ids, two units may share a name
    pivot = df.pivot_table(
        values="total",
        index="month",
        columns="unit_id",
        aggfunc="sum",
        fill_value=0,
        margins=True,
        margins_name="TOTAL",
    )
    names = unit_labels(units)
    pivot.columns = pd.Index([names.get(c, c) for c in pivot.columns], name="unit")
    return pivot


# ── Admin ────────────────────────────────────────────────────────────────────

def subscriptions_report(
    users: Iterable[User],
    subscriptions: Iterable[Subscription],
    today: date,
) -> pd.DataFrame:
    """One row per client account with the state of its subscription."""
    by_user = {s.user_id: s for s in subscriptions}
    cols = ["client", "email", "status", "start", "end", "days_left", "price"]

    rows = []
    for u in users:
        if u.is_admin:
            continue
        sub = by_user.get(u.id)
        rows.append({
            "client": u.full_name or u.email,
            "email": u.email,
            "status": subscription_status(sub, today) if sub else "none",
            "start": sub.start_date if sub else None,
            "end": subscription_end(sub) if sub else None,
            "days_left": days_remaining(sub, today),
            "price": sub.price if sub else 0.0,
        })
    return pd.DataFrame(rows, columns=cols)


def admin_totals(users: Iterable[User], subscriptions: Iterable[Subscription], today: date) -> dict:
    clients = [u for u in users if not u.is_admin]
    by_user = {s.user_id: s for s in subscriptions}
    subs = [by_user[u.id] for u in clients if u.id in by_user]
    active = sum(1 for s in subs if subscription_status(s, today) == ACTIVE)
    return {
        "clients": len(clients),
        "active": active,
        "inactive": len(subs) - active,
        "revenue": sum(s.price for s in subs),
    }
