"""
Optimistic writes: local state first, remote store second, rollback on failure.

Every operation follows the same steps:
  1. guards (availability, write access, existence) - nothing touched yet
  2. snapshot of the collections the operation changes
  3. local change, so the page shows the result straight away
  4. remote call; on any error the snapshot is put back and the error
     is raised again as PersistenceError

Operations run one at a time (a Streamlit session reruns its script on a
single thread). A host that runs handlers in parallel must put a lock
around each AppState.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

import config
from core.backends import PersistenceBackend
from core.conflicts import check_availability
from core.errors import (
    NotFoundError, PartialCascadeFailure, PersistenceError, SunlightError, ValidationError,
)
from core.models import Booking, Expense, Subscription, Unit, User, new_id
from core.session import check_write_access
from core.state import AppState
from core.subscriptions import ACTIVE, PAUSED

logger = logging.getLogger(__name__)


@contextmanager
def optimistic(state: AppState, *collections: str, label: str = ""):
    """
    Restores the given collections if the body raises.

    Core errors pass through unchanged; anything else (transport errors
    from a backend that does not wrap them) becomes PersistenceError.
    """
    snapshot = state.snapshot(*collections)
    try:
        yield
    except SunlightError as e:
        state.restore(snapshot)
        logger.warning("Rolled back %s: %s", label or "/".join(collections), e)
        raise
    except Exception as e:
        state.restore(snapshot)
        logger.warning("Rolled back %s: %s", label or "/".join(collections), e)
        raise PersistenceError(str(e)) from e


class MutationCoordinator:
    def __init__(
        self,
        state: AppState,
        backend: PersistenceBackend,
        user=None,
        today: Callable[[], date] = date.today,
    ):
        self.state = state
        self.backend = backend
        self.user = user
        self.today = today

    # ── helpers ──────────────────────────────────────────────────────────────

    def _require(self, collection: str, entity_id: str):
        item = self.state.find(collection, entity_id)
        if item is None:
            raise NotFoundError(collection, entity_id)
        return item

    def _check_write_access(self) -> None:
        subscription = None
        if self.user is not None:
            subscription = next(
                (s for s in self.state.subscriptions if s.user_id == self.user.id), None
            )
        check_write_access(self.user, subscription, self.today())

    def _owned(self, entity):
        if self.user is not None and not entity.user_id:
            return replace(entity, user_id=self.user.id)
        return entity

    def _create(self, collection: str, entity, at_head: bool):
        with optimistic(self.state, collection, label=f"create {collection} {entity.id}"):
            items = self.state.collection(collection)
            if at_head:
                items.insert(0, entity)
            else:
                items.append(entity)
            self.backend.repository(collection).insert(entity)
        return entity

    def _update(self, collection: str, entity, repo_kind: str = None):
        idx = self.state.index_of(collection, entity.id)
        if idx is None:
            raise NotFoundError(collection, entity.id)
        with optimistic(self.state, collection, label=f"update {collection} {entity.id}"):
            self.state.collection(collection)[idx] = entity
            self.backend.repository(repo_kind or collection).update(entity)
        return entity

    def _delete(self, collection: str, entity_id: str, repo_kind: str = None) -> None:
        idx = self.state.index_of(collection, entity_id)
        if idx is None:
            raise NotFoundError(collection, entity_id)
        with optimistic(self.state, collection, label=f"delete {collection} {entity_id}"):
            del self.state.collection(collection)[idx]
            self.backend.repository(repo_kind or collection).delete(entity_id)

    # ── units ────────────────────────────────────────────────────────────────

    def create_unit(self, unit: Unit) -> Unit:
        self._check_write_access()
        return self._create("units", self._owned(unit), at_head=False)

    def update_unit(self, unit: Unit) -> Unit:
        return self._update("units", unit)

    def delete_unit(self, unit_id: str) -> None:
        """
        Removes the unit with all its expenses and bookings.

        Remote order: expenses, bookings, unit. Any failure puts the three
        local lists back as they were. When some dependents were already
        deleted remotely the error is PartialCascadeFailure: the page shows
        rows the remote store no longer holds until the next reload.
        """
        self._require("units", unit_id)
        expenses = [e for e in self.state.expenses if e.unit_id == unit_id]
        bookings = self.state.bookings_for_unit(unit_id)

        removed_expenses = removed_bookings = 0
        with optimistic(self.state, "units", "bookings", "expenses", label=f"delete unit {unit_id}"):
            self.state.expenses[:] = [e for e in self.state.expenses if e.unit_id != unit_id]
            self.state.bookings[:] = [b for b in self.state.bookings if b.unit_id != unit_id]
            self.state.units[:] = [u for u in self.state.units if u.id != unit_id]

            try:
                for e in expenses:
                    self.backend.expenses.delete(e.id)
                    removed_expenses += 1
                for b in bookings:
                    self.backend.bookings.delete(b.id)
                    removed_bookings += 1
                self.backend.units.delete(unit_id)
            except Exception as e:
                if removed_expenses or removed_bookings:
                    logger.error(
                        "Unit %s cascade stopped half way (%d expenses, %d bookings "
                        "already deleted remotely): %s",
                        unit_id, removed_expenses, removed_bookings, e,
                    )
                    raise PartialCascadeFailure(unit_id, removed_expenses, removed_bookings) from e
                raise

        logger.info(
            "Deleted unit %s with %d expense(s) and %d booking(s)",
            unit_id, len(expenses), len(bookings),
        )

    # ── bookings ─────────────────────────────────────────────────────────────

    def create_booking(self, booking: Booking) -> Booking:
        """Expects end_date and total already set (see core.pricing.recompute_booking)."""
        self._check_write_access()
        check_availability(booking, self.state.bookings)
        return self._create("bookings", self._owned(booking), at_head=True)

    def update_booking(self, booking: Booking) -> Booking:
        self._require("bookings", booking.id)
        check_availability(booking, self.state.bookings)
        return self._update("bookings", booking)

    def delete_booking(self, booking_id: str) -> None:
        self._delete("bookings", booking_id)

    # ── expenses ─────────────────────────────────────────────────────────────

    def create_expense(self, expense: Expense) -> Expense:
        self._check_write_access()
        return self._create("expenses", self._owned(expense), at_head=True)

    def update_expense(self, expense: Expense) -> Expense:
        return self._update("expenses", expense)

    def delete_expense(self, expense_id: str) -> None:
        self._delete("expenses", expense_id)

    # ── admin: subscriptions, sessions, accounts ─────────────────────────────

    def save_subscription(self, sub: Subscription) -> Subscription:
        """Insert or replace by id."""
        if self.state.find("subscriptions", sub.id) is None:
            return self._create("subscriptions", sub, at_head=False)
        return self._update("subscriptions", sub)

    def toggle_pause(self, subscription_id: str) -> Subscription:
        sub = self._require("subscriptions", subscription_id)
        new_status = ACTIVE if sub.status == PAUSED else PAUSED
        return self._update("subscriptions", replace(sub, status=new_status))

    def delete_subscription(self, subscription_id: str) -> None:
        self._delete("subscriptions", subscription_id)

    def delete_session_log(self, log_id: str) -> None:
        self._delete("session_logs", log_id)

    def create_account(self, user: User) -> Subscription:
        """
        Adds a client profile with a free trial subscription starting today.

        The profile is written before the subscription. If the second write
        fails, both local lists are restored and the remote profile stays
        without a subscription until the admin saves one.
        """
        email = user.email.strip().lower()
        if not email:
            raise ValidationError("email is required")
        if any(u.email.strip().lower() == email for u in self.state.users):
            raise ValidationError(f"an account with email '{user.email}' already exists")

        sub = Subscription(
            id=new_id(),
            user_id=user.id,
            start_date=self.today(),
            duration_days=config.DEFAULT_SUBSCRIPTION_DAYS,
            price=0.0,
            status=ACTIVE,
        )
        with optimistic(self.state, "users", "subscriptions", label=f"create account {user.email}"):
            self.state.users.append(user)
            self.state.subscriptions.append(sub)
            self.backend.profiles.insert(user)
            self.backend.subscriptions.insert(sub)
        logger.info("Created account %s with a %d-day subscription", user.email, sub.duration_days)
        return sub

    def delete_account(self, user_id: str) -> None:
        self._delete("users", user_id, repo_kind="profiles")
