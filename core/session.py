"""
Session lifecycle: fills AppState on login, empties it on logout, and
decides whether the signed-in client may add new data.

Authentication itself belongs to the auth provider; login() receives a
User that has already been authenticated.
"""

import logging
from datetime import date
from typing import Optional

from core.backends import PersistenceBackend
from core.errors import AccessDeniedError
from core.models import Subscription, User
from core.state import AppState
from core.subscriptions import PAUSED, has_valid_subscription

logger = logging.getLogger(__name__)


def check_write_access(user: Optional[User], subscription: Optional[Subscription], today: date) -> None:
    """Raises AccessDeniedError unless the user is admin or has a running subscription."""
    if user is None or user.is_admin:
        return
    if subscription is None:
        raise AccessDeniedError("no_subscription")
    if subscription.status == PAUSED:
        raise AccessDeniedError("paused")
    if not has_valid_subscription(subscription, today):
        raise AccessDeniedError("expired")


class Session:
    def __init__(self, backend: PersistenceBackend, state: AppState = None):
        self.backend = backend
        self.state = state if state is not None else AppState()
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def subscription(self) -> Optional[Subscription]:
        """The signed-in client's own subscription, if any."""
        if self.user is None:
            return None
        for s in self.state.subscriptions:
            if s.user_id == self.user.id:
                return s
        return None

    def login(self, user: User) -> None:
        self.user = user
        self.refresh()
        logger.info("Signed in %s (%s): %r", user.email, user.role, self.state)

    def refresh(self) -> None:
        """Reloads every list from the backend. Admins see all rows, clients only theirs."""
        if self.user is None:
            self.state.clear()
            return
        owner = None if self.user.is_admin else self.user.id
        b = self.backend
        # Everything is fetched before anything is replaced, so a failed
        # load leaves the previous state untouched
        fresh = {
            "units": b.units.list_all(owner),
            "bookings": b.bookings.list_all(owner),
            "expenses": b.expenses.list_all(owner),
            "subscriptions": b.subscriptions.list_all(owner),
            "session_logs": b.session_logs.list_all() if self.user.is_admin else [],
            "users": b.profiles.list_all() if self.user.is_admin else [],
        }
        self.state.replace_all(**fresh)

    def logout(self) -> None:
        if self.user is not None:
            logger.info("Signed out %s", self.user.email)
        self.user = None
        self.state.clear()

    def check_write_access(self, today: date) -> None:
        check_write_access(self.user, self.subscription, today)
