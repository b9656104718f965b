"""
AppState: the in-process copy of the signed-in user's data.

One instance per session (kept in st.session_state by the app). Only the
MutationCoordinator and the Session write to it; the conflict guard and
the reports read it.
"""

from typing import Dict, List, Optional

from core.models import Booking

COLLECTIONS = ("units", "bookings", "expenses", "subscriptions", "session_logs", "users")


class AppState:
    def __init__(self, **collections):
        for name in COLLECTIONS:
            setattr(self, name, list(collections.pop(name, [])))
        if collections:
            raise TypeError(f"unknown collections: {sorted(collections)}")

    def collection(self, name: str) -> list:
        if name not in COLLECTIONS:
            raise KeyError(name)
        return getattr(self, name)

    def find(self, name: str, entity_id: str):
        for item in self.collection(name):
            if item.id == entity_id:
                return item
        return None

    def index_of(self, name: str, entity_id: str) -> Optional[int]:
        for i, item in enumerate(self.collection(name)):
            if item.id == entity_id:
                return i
        return None

    def bookings_for_unit(self, unit_id: str) -> List[Booking]:
        return [b for b in self.bookings if b.unit_id == unit_id]

    def snapshot(self, *names) -> Dict[str, list]:
        """Shallow copies of the given collections (entities are never mutated in place)."""
        return {name: list(self.collection(name)) for name in names or COLLECTIONS}

    def restore(self, snapshot: Dict[str, list]) -> None:
        for name, items in snapshot.items():
            self.collection(name)[:] = items

    def replace_all(self, **collections) -> None:
        for name, items in collections.items():
            self.collection(name)[:] = list(items)

    def clear(self) -> None:
        for name in COLLECTIONS:
            self.collection(name).clear()

    def __repr__(self):
        counts = ", ".join(f"{n}={len(self.collection(n))}" for n in COLLECTIONS)
        return f"AppState({counts})"
