"""
Persistence backends.

A backend hands out one Repository per entity kind. Two variants exist:
  - InMemoryBackend → dict storage, optionally seeded with demo fixtures
  - SheetsBackend   → Google Sheets via gspread (core/sheets.py)

The variant is picked once by get_backend() at startup; nothing else in
the code branches on which one is in use.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import config
from core.errors import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)

KINDS = ("units", "bookings", "expenses", "subscriptions", "session_logs", "profiles")


def owner_of(entity) -> str:
    # Profiles are owned by themselves
    return getattr(entity, "user_id", None) or entity.id


class Repository(ABC):
    """CRUD on one entity kind. Every method raises PersistenceError on failure."""

    kind: str

    @abstractmethod
    def insert(self, entity) -> None: ...

    @abstractmethod
    def update(self, entity) -> None: ...

    @abstractmethod
    def delete(self, entity_id: str) -> None: ...

    @abstractmethod
    def list_all(self, user_id: Optional[str] = None) -> list: ...


class PersistenceBackend(ABC):
    name: str

    @abstractmethod
    def repository(self, kind: str) -> Repository: ...

    def __getattr__(self, kind):
        # backend.bookings is backend.repository("bookings")
        if kind in KINDS:
            return self.repository(kind)
        raise AttributeError(kind)


class InMemoryRepository(Repository):
    def __init__(self, kind: str, items: Iterable = ()):
        self.kind = kind
        self._rows: Dict[str, object] = {}
        for item in items:
            self._rows[item.id] = item

    def insert(self, entity) -> None:
        if entity.id in self._rows:
            raise PersistenceError(f"{self.kind}: duplicate id '{entity.id}'")
        self._rows[entity.id] = entity

    def update(self, entity) -> None:
        if entity.id not in self._rows:
            raise PersistenceError(f"{self.kind}: no row with id '{entity.id}'")
        self._rows[entity.id] = entity

    def delete(self, entity_id: str) -> None:
        self._rows.pop(entity_id, None)

    def list_all(self, user_id: Optional[str] = None) -> list:
        rows = list(self._rows.values())
        if user_id is None:
            return rows
        return [r for r in rows if owner_of(r) == user_id]

    def __len__(self):
        return len(self._rows)


class InMemoryBackend(PersistenceBackend):
    name = "memory"

    def __init__(self, seed: Optional[Dict[str, List]] = None):
        seed = seed or {}
        self._repos = {kind: InMemoryRepository(kind, seed.get(kind, ())) for kind in KINDS}

    def repository(self, kind: str) -> Repository:
        try:
            return self._repos[kind]
        except KeyError:
            raise ConfigurationError(f"unknown entity kind '{kind}'") from None


def get_backend(name: str = None) -> PersistenceBackend:
    """Builds the configured backend. Called once per app process."""
    if name is None:
        name = config.PERSISTENCE_BACKEND

    if name == "memory":
        from core.fixtures import demo_seed
        logger.info("Persistence: in-memory demo data, nothing will be saved")
        return InMemoryBackend(demo_seed())

    if name == "sheets":
        from core.sheets import SheetsBackend, open_spreadsheet
        logger.info("Persistence: Google Sheets")
        return SheetsBackend(open_spreadsheet())

    raise ConfigurationError(f"unknown persistence backend '{name}' (expected 'sheets' or 'memory')")
