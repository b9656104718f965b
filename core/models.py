"""
Data models: Unit, Booking, Expense (owner side) and Subscription,
SessionLog, User (admin side).

Entities are handled as values: every change builds a new instance with
dataclasses.replace(), so a list snapshot is always an exact copy of state.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


class UnitType(str, Enum):
    CHALET = "Chalet"
    VILLA = "Villa"
    PALACE = "Palace"


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Unit:
    """A rentable property in the village."""
    id: str
    name: str
    type: UnitType
    created_at: datetime
    user_id: str = ""       # owner account


@dataclass
class Booking:
    """A reservation of a unit for a contiguous range of nights."""
    id: str
    tenant_name: str
    phone: str
    unit_id: str
    start_date: date
    nights: int
    end_date: date                 # start_date + nights (check-out day)
    nightly_rate: float            # base rate, unit only
    village_fee: float             # per-night gate/village fee
    total_rental_price: float      # (nightly_rate + village_fee) * nights + housekeeping
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    housekeeping_enabled: bool = False
    housekeeping_price: float = 0.0
    deposit_enabled: bool = False
    deposit_amount: float = 0.0    # refundable, never part of the total
    notes: str = ""
    tenant_rating_good: bool = True  # True = welcome again
    created_at: Optional[datetime] = None
    user_id: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


@dataclass
class Expense:
    """A cost charged to a unit: bills, cleaning supplies, repairs."""
    id: str
    unit_id: str
    title: str
    category: str           # see config.EXPENSE_CATEGORIES, free text allowed
    amount: float
    date: date
    description: str = ""
    created_at: Optional[datetime] = None
    user_id: str = ""


@dataclass
class Subscription:
    """Client plan. Only "active" and "paused" are stored; "expired" is derived."""
    id: str
    user_id: str
    start_date: date
    duration_days: int
    price: float
    status: str = "active"


@dataclass
class SessionLog:
    """Login record written by the auth provider. Read and delete only."""
    id: str
    user_id: str
    device_id: str
    user_agent: str
    ip_address: str
    login_at: datetime
    last_active_at: datetime


@dataclass
class User:
    id: str
    email: str
    full_name: str = ""
    role: str = "user"      # "admin" | "user"
    phone: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
