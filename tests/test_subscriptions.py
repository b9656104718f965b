from datetime import date

from conftest import make_subscription
from core.subscriptions import (
    days_remaining, has_valid_subscription, subscription_end, subscription_status,
)


def test_active_until_end_date():
    sub = make_subscription(start=date(2024, 6, 1), days=30)
    assert subscription_end(sub) == date(2024, 7, 1)
    assert subscription_status(sub, date(2024, 6, 30)) == "active"
    assert days_remaining(sub, date(2024, 6, 30)) == 1
    assert subscription_status(sub, date(2024, 7, 1)) == "expired"
    assert days_remaining(sub, date(2024, 7, 15)) == 0


def test_paused_overrides_dates():
    sub = make_subscription(start=date(2024, 6, 1), days=30, status="paused")
    assert subscription_status(sub, date(2024, 6, 2)) == "paused"
    assert days_remaining(sub, date(2024, 6, 2)) == 0
    assert not has_valid_subscription(sub, date(2024, 6, 2))


def test_no_subscription_is_not_valid():
    assert not has_valid_subscription(None, date(2024, 6, 2))
    assert days_remaining(None, date(2024, 6, 2)) == 0
