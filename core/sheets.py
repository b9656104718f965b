"""
Google Sheets storage - the remote backend.

The Google Sheet has one worksheet per entity kind (see config.SHEET_NAMES),
header in row 1, record id in column A:
  - units, bookings, expenses      → owner data
  - subscriptions, session_logs,
    profiles                       → admin data

Authentication via Service Account (credentials in Streamlit secrets).

One-off setup:
  1. Create a Service Account on Google Cloud
  2. Share the Google Sheet with the service account email
  3. Put the credentials in .streamlit/secrets.toml under
     [gcp_service_account] and the sheet id under [google_sheets]
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import gspread
import streamlit as st
from gspread.exceptions import GSpreadException

import config
from core.backends import KINDS, PersistenceBackend, Repository, owner_of
from core.errors import ConfigurationError, PersistenceError
from core.models import (
    Booking, BookingStatus, Expense, PaymentStatus, SessionLog,
    Subscription, Unit, UnitType, User,
)

logger = logging.getLogger(__name__)


@st.cache_resource
def get_gspread_client():
    """
    Returns a gspread client authenticated via Service Account.
    Credentials come from st.secrets (Streamlit Cloud) or from
    .streamlit/secrets.toml locally.
    """
    creds_dict = dict(st.secrets[config.SECRETS_SERVICE_ACCOUNT])
    return gspread.service_account_from_dict(creds_dict)


def open_spreadsheet():
    try:
        spreadsheet_id = st.secrets[config.SECRETS_SHEETS]["spreadsheet_id"]
    except (KeyError, FileNotFoundError) as e:
        raise ConfigurationError("Google Sheets credentials missing from secrets") from e
    try:
        return get_gspread_client().open_by_key(spreadsheet_id)
    except (GSpreadException, OSError) as e:
        raise PersistenceError(f"cannot open spreadsheet: {e}") from e


# ── Cell helpers ─────────────────────────────────────────────────────────────

def fmt_date(d) -> str:
    return d.isoformat() if d else ""


def _parse_date(s) -> Optional[date]:
    s = str(s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def _parse_datetime(s) -> Optional[datetime]:
    s = str(s or "").strip()
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    # Timestamps written without an offset are UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _to_float(val) -> float:
    if val is None or str(val).strip() in ("", "nan", "-"):
        return 0.0
    try:
        return float(str(val).replace(",", "").replace(" ", ""))
    except (ValueError, TypeError):
        return 0.0


def _to_int(val) -> int:
    return int(_to_float(val))


def _to_bool(val) -> bool:
    return str(val).strip().lower() in ("true", "1", "yes", "si")


# ── Row conversion ───────────────────────────────────────────────────────────

def _unit_to_row(u: Unit) -> list:
    return [u.id, u.name, u.type.value, fmt_date(u.created_at), u.user_id]


def _row_to_unit(r: dict) -> Unit:
    return Unit(
        id=str(r["id"]),
        name=str(r.get("name", "")),
        type=UnitType(r.get("type") or UnitType.CHALET.value),
        created_at=_parse_datetime(r.get("created_at")),
        user_id=str(r.get("user_id", "")),
    )


def _booking_to_row(b: Booking) -> list:
    return [
        b.id,
        b.tenant_name,
        b.phone,
        b.unit_id,
        fmt_date(b.start_date),
        b.nights,
        fmt_date(b.end_date),
        b.nightly_rate,
        b.village_fee,
        b.total_rental_price,
        b.status.value,
        b.payment_status.value,
        "TRUE" if b.housekeeping_enabled else "FALSE",
        b.housekeeping_price,
        "TRUE" if b.deposit_enabled else "FALSE",
        b.deposit_amount,
        b.notes,
        "TRUE" if b.tenant_rating_good else "FALSE",
        fmt_date(b.created_at),
        b.user_id,
    ]


def _row_to_booking(r: dict) -> Booking:
    start = _parse_date(r.get("start_date"))
    end = _parse_date(r.get("end_date"))
    # A booking without its range cannot be checked for conflicts
    if start is None or end is None:
        raise ValueError("missing start_date/end_date")
    return Booking(
        id=str(r["id"]),
        tenant_name=str(r.get("tenant_name", "")),
        phone=str(r.get("phone", "")),
        unit_id=str(r.get("unit_id", "")),
        start_date=start,
        nights=_to_int(r.get("nights")),
        end_date=end,
        nightly_rate=_to_float(r.get("nightly_rate")),
        village_fee=_to_float(r.get("village_fee")),
        total_rental_price=_to_float(r.get("total_rental_price")),
        status=BookingStatus(r.get("status") or BookingStatus.PENDING.value),
        payment_status=PaymentStatus(r.get("payment_status") or PaymentStatus.UNPAID.value),
        housekeeping_enabled=_to_bool(r.get("housekeeping_enabled")),
        housekeeping_price=_to_float(r.get("housekeeping_price")),
        deposit_enabled=_to_bool(r.get("deposit_enabled")),
        deposit_amount=_to_float(r.get("deposit_amount")),
        notes=str(r.get("notes", "")),
        tenant_rating_good=_to_bool(r.get("tenant_rating_good", "TRUE")),
        created_at=_parse_datetime(r.get("created_at")),
        user_id=str(r.get("user_id", "")),
    )


def _expense_to_row(e: Expense) -> list:
    return [
        e.id, e.unit_id, e.title, e.category, e.amount, fmt_date(e.date),
        e.description, fmt_date(e.created_at), e.user_id,
    ]


def _row_to_expense(r: dict) -> Expense:
    return Expense(
        id=str(r["id"]),
        unit_id=str(r.get("unit_id", "")),
        title=str(r.get("title", "")),
        category=str(r.get("category", "")),
        amount=_to_float(r.get("amount")),
        date=_parse_date(r.get("date")),
        description=str(r.get("description", "")),
        created_at=_parse_datetime(r.get("created_at")),
        user_id=str(r.get("user_id", "")),
    )


def _subscription_to_row(s: Subscription) -> list:
    return [s.id, s.user_id, fmt_date(s.start_date), s.duration_days, s.price, s.status]


def _row_to_subscription(r: dict) -> Subscription:
    start = _parse_date(r.get("start_date"))
    if start is None:
        raise ValueError("missing start_date")
    return Subscription(
        id=str(r["id"]),
        user_id=str(r.get("user_id", "")),
        start_date=start,
        duration_days=_to_int(r.get("duration_days")),
        price=_to_float(r.get("price")),
        status=str(r.get("status") or "active"),
    )


def _session_log_to_row(s: SessionLog) -> list:
    return [
        s.id, s.user_id, s.device_id, s.user_agent, s.ip_address,
        fmt_date(s.login_at), fmt_date(s.last_active_at),
    ]


def _row_to_session_log(r: dict) -> SessionLog:
    return SessionLog(
        id=str(r["id"]),
        user_id=str(r.get("user_id", "")),
        device_id=str(r.get("device_id", "")) or "unknown",
        user_agent=str(r.get("user_agent", "")),
        ip_address=str(r.get("ip_address", "")),
        login_at=_parse_datetime(r.get("login_at")),
        last_active_at=_parse_datetime(r.get("last_active_at")),
    )


def _profile_to_row(u: User) -> list:
    return [u.id, u.email, u.full_name, u.role, u.phone]


def _row_to_profile(r: dict) -> User:
    return User(
        id=str(r["id"]),
        email=str(r.get("email", "")),
        full_name=str(r.get("full_name", "")),
        role=str(r.get("role") or "user"),
        phone=str(r.get("phone", "")),
    )


CONVERTERS: Dict[str, tuple] = {
    "units":         (_unit_to_row, _row_to_unit),
    "bookings":      (_booking_to_row, _row_to_booking),
    "expenses":      (_expense_to_row, _row_to_expense),
    "subscriptions": (_subscription_to_row, _row_to_subscription),
    "session_logs":  (_session_log_to_row, _row_to_session_log),
    "profiles":      (_profile_to_row, _row_to_profile),
}


# ── Repository ───────────────────────────────────────────────────────────────

class SheetsRepository(Repository):
    def __init__(self, kind: str, spreadsheet):
        self.kind = kind
        self.spreadsheet = spreadsheet
        self.columns: List[str] = config.SHEET_COLUMNS[kind]
        self._to_row, self._from_row = CONVERTERS[kind]
        self._ws = None

    def worksheet(self):
        """Opens the worksheet for this kind, creating it with a header if missing."""
        if self._ws is None:
            title = config.SHEET_NAMES[self.kind]
            try:
                self._ws = self.spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                ws = self.spreadsheet.add_worksheet(title=title, rows=1000, cols=len(self.columns))
                ws.append_row(self.columns)
                self._ws = ws
        return self._ws

    def _row_number(self, entity_id: str) -> Optional[int]:
        ids = self.worksheet().col_values(1)
        for i, value in enumerate(ids[1:], start=2):
            if str(value).strip() == entity_id:
                return i
        return None

    def insert(self, entity) -> None:
        try:
            # RAW keeps phone numbers and ISO dates as typed
            self.worksheet().append_row(self._to_row(entity), value_input_option="RAW")
        except (GSpreadException, OSError) as e:
            raise PersistenceError(f"{self.kind}: insert '{entity.id}' failed: {e}") from e

    def update(self, entity) -> None:
        try:
            row = self._row_number(entity.id)
            if row is None:
                raise PersistenceError(f"{self.kind}: no row with id '{entity.id}'")
            self.worksheet().update(
                range_name=f"A{row}",
                values=[self._to_row(entity)],
                value_input_option="RAW",
            )
        except (GSpreadException, OSError) as e:
            raise PersistenceError(f"{self.kind}: update '{entity.id}' failed: {e}") from e

    def delete(self, entity_id: str) -> None:
        try:
            row = self._row_number(entity_id)
            if row is not None:
                self.worksheet().delete_rows(row)
        except (GSpreadException, OSError) as e:
            raise PersistenceError(f"{self.kind}: delete '{entity_id}' failed: {e}") from e

    def list_all(self, user_id: Optional[str] = None) -> list:
        try:
            records = self.worksheet().get_all_records(
                expected_headers=self.columns, numericise_ignore=["all"],
            )
        except (GSpreadException, OSError) as e:
            raise PersistenceError(f"{self.kind}: load failed: {e}") from e

        items = []
        for r in records:
            if not str(r.get("id", "")).strip():
                continue
            try:
                items.append(self._from_row(r))
            except (ValueError, KeyError) as e:
                logger.warning("Skipping malformed %s row %s: %s", self.kind, r.get("id"), e)
        if user_id is not None:
            items = [i for i in items if owner_of(i) == user_id]
        return items


class SheetsBackend(PersistenceBackend):
    name = "sheets"

    def __init__(self, spreadsheet):
        self._repos = {kind: SheetsRepository(kind, spreadsheet) for kind in KINDS}

    def repository(self, kind: str) -> Repository:
        try:
            return self._repos[kind]
        except KeyError:
            raise ConfigurationError(f"unknown entity kind '{kind}'") from None
