from datetime import date, datetime, timezone

import pytest

from core.backends import InMemoryBackend
from core.models import (
    Booking, BookingStatus, Expense, Subscription, Unit, UnitType, User,
)
from core.mutations import MutationCoordinator
from core.pricing import recompute_booking
from core.state import AppState

TODAY = date(2024, 6, 1)
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

ADMIN = User(id="admin", email="admin@example.com", full_name="Admin", role="admin")
OWNER = User(id="owner", email="owner@example.com", full_name="Owner")


def make_unit(id="U1", name="Chalet 1", user_id="owner"):
    return Unit(id=id, name=name, type=UnitType.CHALET, created_at=NOW, user_id=user_id)


def make_booking(id="B1", unit_id="U1", start=date(2024, 6, 1), nights=3,
                 status=BookingStatus.CONFIRMED, rate=500.0, fee=50.0, user_id="owner", **kw):
    b = Booking(
        id=id, tenant_name=f"Tenant {id}", phone="0100000000", unit_id=unit_id,
        start_date=start, nights=nights, end_date=start,
        nightly_rate=rate, village_fee=fee, total_rental_price=0.0,
        status=status, created_at=NOW, user_id=user_id, **kw,
    )
    return recompute_booking(b)


def make_expense(id="E1", unit_id="U1", amount=100.0, when=date(2024, 6, 2),
                 category="Maintenance", user_id="owner"):
    return Expense(id=id, unit_id=unit_id, title=f"Expense {id}", category=category,
                   amount=amount, date=when, created_at=NOW, user_id=user_id)


def make_subscription(id="S1", user_id="owner", start=date(2024, 5, 20), days=30, status="active"):
    return Subscription(id=id, user_id=user_id, start_date=start, duration_days=days,
                        price=500.0, status=status)


@pytest.fixture
def seed():
    return {
        "units": [make_unit()],
        "bookings": [make_booking()],
        "expenses": [],
        "subscriptions": [make_subscription()],
        "session_logs": [],
        "profiles": [ADMIN, OWNER],
    }


@pytest.fixture
def backend(seed):
    return InMemoryBackend(seed)


@pytest.fixture
def state(seed):
    return AppState(
        units=seed["units"],
        bookings=seed["bookings"],
        expenses=seed["expenses"],
        subscriptions=seed["subscriptions"],
        session_logs=seed["session_logs"],
        users=seed["profiles"],
    )


@pytest.fixture
def coordinator(state, backend):
    return MutationCoordinator(state, backend, user=OWNER, today=lambda: TODAY)


def fail(*args, **kwargs):
    raise ConnectionError("remote store unreachable")
