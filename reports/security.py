"""
Account sharing alerts for the admin: the same client active on more
than one device within a recent window.
"""

from datetime import datetime, timedelta
from typing import Iterable

import pandas as pd

import config
from core.models import SessionLog, User

ALERT_COLUMNS = ["user_id", "email", "full_name", "devices", "last_seen"]


def multi_device_alerts(
    session_logs: Iterable[SessionLog],
    users: Iterable[User],
    now: datetime,
    window_hours: int = config.MULTI_DEVICE_WINDOW_HOURS,
) -> pd.DataFrame:
    cutoff = now - timedelta(hours=window_hours)

    devices = {}
    last_seen = {}
    for log in session_logs:
        if log.last_active_at is None or log.last_active_at <= cutoff:
            continue
        devices.setdefault(log.user_id, set()).add(log.device_id or "unknown")
        if log.user_id not in last_seen or log.last_active_at > last_seen[log.user_id]:
            last_seen[log.user_id] = log.last_active_at

    by_id = {u.id: u for u in users}
    rows = []
    for user_id, seen in devices.items():
        if len(seen) <= 1:
            continue
        u = by_id.get(user_id)
        rows.append({
            "user_id": user_id,
            "email": u.email if u else "",
            "full_name": u.full_name if u else "",
            "devices": len(seen),
            "last_seen": last_seen[user_id],
        })

    if not rows:
        return pd.DataFrame(columns=ALERT_COLUMNS)
    return pd.DataFrame(rows, columns=ALERT_COLUMNS).sort_values(
        "last_seen", ascending=False
    ).reset_index(drop=True)
