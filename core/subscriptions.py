"""
Subscription status. Only "active" and "paused" are ever stored;
"expired" follows from start_date + duration_days.
"""

from datetime import date, timedelta
from typing import Optional

from core.models import Subscription

ACTIVE = "active"
PAUSED = "paused"
EXPIRED = "expired"


def subscription_end(sub: Subscription) -> date:
    return sub.start_date + timedelta(days=sub.duration_days)


def subscription_status(sub: Subscription, today: date) -> str:
    # A pause set by the admin wins over the dates
    if sub.status == PAUSED:
        return PAUSED
    if subscription_end(sub) > today:
        return ACTIVE
    return EXPIRED


def days_remaining(sub: Optional[Subscription], today: date) -> int:
    if sub is None or sub.status == PAUSED:
        return 0
    return max((subscription_end(sub) - today).days, 0)


def has_valid_subscription(sub: Optional[Subscription], today: date) -> bool:
    return sub is not None and subscription_status(sub, today) == ACTIVE
