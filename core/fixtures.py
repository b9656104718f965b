"""
Demo data for the in-memory backend (SUNLIGHT_BACKEND=memory).
Dates are relative to today so the calendar always has something to show.
"""

from datetime import date, timedelta

from core.models import (
    Booking, BookingStatus, Expense, PaymentStatus, SessionLog,
    Subscription, Unit, UnitType, User, utcnow,
)
from core.pricing import recompute_booking

DEMO_ADMIN = User(id="demo-admin", email="admin@sunlight.local", full_name="Admin", role="admin")
DEMO_USER = User(id="demo-user", email="owner@sunlight.local", full_name="Demo Owner", role="user")


def _booking(id, unit_id, tenant, phone, start, nights, rate, fee, status, paid, hk=0.0):
    b = Booking(
        id=id, tenant_name=tenant, phone=phone, unit_id=unit_id,
        start_date=start, nights=nights, end_date=start,
        nightly_rate=rate, village_fee=fee, total_rental_price=0.0,
        status=status, payment_status=paid,
        housekeeping_enabled=hk > 0, housekeeping_price=hk,
        created_at=utcnow(), user_id=DEMO_USER.id,
    )
    return recompute_booking(b)


def demo_seed(today: date = None) -> dict:
    today = today or date.today()
    now = utcnow()
    owner = DEMO_USER.id

    units = [
        Unit(id="u1", name="Chalet 12", type=UnitType.CHALET, created_at=now, user_id=owner),
        Unit(id="u2", name="Villa Marina", type=UnitType.VILLA, created_at=now, user_id=owner),
        Unit(id="u3", name="Palace Sunset", type=UnitType.PALACE, created_at=now, user_id=owner),
    ]

    bookings = [
        _booking("b1", "u1", "Ahmed Hassan", "01001234567", today - timedelta(days=2), 4,
                 1500, 100, BookingStatus.CONFIRMED, PaymentStatus.PAID, hk=300),
        _booking("b2", "u1", "Sara Ali", "01117654321", today + timedelta(days=2), 3,
                 1500, 100, BookingStatus.PENDING, PaymentStatus.UNPAID),
        _booking("b3", "u2", "John Smith", "+447700900123", today + timedelta(days=5), 7,
                 3000, 150, BookingStatus.CONFIRMED, PaymentStatus.UNPAID, hk=500),
        _booking("b4", "u3", "Mona Adel", "01223344556", today - timedelta(days=10), 2,
                 6000, 200, BookingStatus.CANCELLED, PaymentStatus.UNPAID),
    ]

    expenses = [
        Expense(id="e1", unit_id="u1", title="AC repair", category="Maintenance",
                amount=850, date=today - timedelta(days=3), created_at=now, user_id=owner),
        Expense(id="e2", unit_id="u2", title="Electricity bill", category="Electricity",
                amount=1200, date=today - timedelta(days=6), created_at=now, user_id=owner),
    ]

    subscriptions = [
        Subscription(id="s1", user_id=owner, start_date=today - timedelta(days=5),
                     duration_days=30, price=500),
    ]

    session_logs = [
        SessionLog(id="l1", user_id=owner, device_id="laptop-1", user_agent="Mozilla/5.0",
                   ip_address="10.0.0.5", login_at=now - timedelta(hours=5),
                   last_active_at=now - timedelta(hours=1)),
    ]

    return {
        "units": units,
        "bookings": bookings,
        "expenses": expenses,
        "subscriptions": subscriptions,
        "session_logs": session_logs,
        "profiles": [DEMO_ADMIN, DEMO_USER],
    }
