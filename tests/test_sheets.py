from dataclasses import replace
from datetime import date, timedelta

import gspread
import pytest

import config
from conftest import ADMIN, NOW, OWNER, fail, make_booking, make_expense, make_subscription, make_unit
from core.errors import ConfigurationError, PersistenceError
from core.models import BookingStatus, PaymentStatus
from core.sheets import SheetsBackend, _to_bool, _to_float
from reports.security import multi_device_alerts


class FakeWorksheet:
    """Just enough of gspread.Worksheet; cells come back as strings like the API returns them."""

    def __init__(self, title, rows=None):
        self.title = title
        self.rows = [list(r) for r in rows or []]

    def append_row(self, values, value_input_option=None):
        self.rows.append(["" if v is None else str(v) for v in values])

    def col_values(self, col):
        return [r[col - 1] if len(r) >= col else "" for r in self.rows]

    def update(self, range_name=None, values=None, value_input_option=None):
        row = int(range_name[1:])
        self.rows[row - 1] = ["" if v is None else str(v) for v in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]

    def get_all_records(self, expected_headers=None, numericise_ignore=None):
        header, *body = self.rows
        return [dict(zip(header, r + [""] * (len(header) - len(r)))) for r in body]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        try:
            return self.sheets[title]
        except KeyError:
            raise gspread.WorksheetNotFound(title) from None

    def add_worksheet(self, title, rows, cols):
        ws = FakeWorksheet(title)
        self.sheets[title] = ws
        return ws


@pytest.fixture
def spreadsheet():
    return FakeSpreadsheet()


@pytest.fixture
def sheets(spreadsheet):
    return SheetsBackend(spreadsheet)


def test_missing_worksheet_is_created_with_header(sheets, spreadsheet):
    assert sheets.units.list_all() == []
    ws = spreadsheet.sheets[config.SHEET_NAMES["units"]]
    assert ws.rows == [config.SHEET_COLUMNS["units"]]


def test_booking_survives_a_round_trip_through_the_sheet(sheets):
    b = make_booking("B1", housekeeping_enabled=True, housekeeping_price=200,
                     deposit_enabled=True, deposit_amount=1000, notes="late arrival")
    b = replace(b, phone="01001234567", payment_status=PaymentStatus.PAID, tenant_rating_good=False)
    sheets.bookings.insert(b)

    [loaded] = sheets.bookings.list_all()
    assert loaded == b


def test_update_rewrites_the_matching_row(sheets, spreadsheet):
    sheets.units.insert(make_unit("U1"))
    sheets.units.insert(make_unit("U2", "Villa"))
    sheets.units.update(make_unit("U2", "Villa Marina"))

    assert [u.name for u in sheets.units.list_all()] == ["Chalet 1", "Villa Marina"]
    assert len(spreadsheet.sheets[config.SHEET_NAMES["units"]].rows) == 3


def test_update_of_unknown_id_fails(sheets):
    with pytest.raises(PersistenceError):
        sheets.units.update(make_unit("nope"))


def test_delete_removes_the_row(sheets):
    for e in (make_expense("E1"), make_expense("E2"), make_expense("E3")):
        sheets.expenses.insert(e)
    sheets.expenses.delete("E2")
    sheets.expenses.delete("missing")
    assert [e.id for e in sheets.expenses.list_all()] == ["E1", "E3"]


def test_list_all_filters_by_owner(sheets):
    sheets.subscriptions.insert(make_subscription("S1", user_id="owner"))
    sheets.subscriptions.insert(make_subscription("S2", user_id="other"))
    sheets.profiles.insert(ADMIN)
    sheets.profiles.insert(OWNER)

    assert [s.id for s in sheets.subscriptions.list_all("owner")] == ["S1"]
    assert sheets.profiles.list_all("owner") == [OWNER]
    assert sheets.subscriptions.list_all()[0].start_date == date(2024, 5, 20)


def test_malformed_rows_are_skipped(sheets, spreadsheet, caplog):
    sheets.bookings.insert(make_booking("B1", status=BookingStatus.PENDING))
    ws = spreadsheet.sheets[config.SHEET_NAMES["bookings"]]
    ws.rows.append(["B2", "No dates", "", "U1"])
    ws.rows.append([""])

    assert [b.id for b in sheets.bookings.list_all()] == ["B1"]
    assert "B2" in caplog.text

    subs = spreadsheet.sheets.setdefault(
        config.SHEET_NAMES["subscriptions"],
        FakeWorksheet("subscriptions", [config.SHEET_COLUMNS["subscriptions"]]),
    )
    subs.rows.append(["S1", "owner", "", "30", "500", "active"])
    subs.rows.append(["S2", "owner", "2024-05-20", "30", "500", "active"])

    assert [s.id for s in sheets.subscriptions.list_all()] == ["S2"]
    assert "S1" in caplog.text


def test_timestamps_without_offset_are_read_as_utc(sheets, spreadsheet):
    ws = FakeWorksheet("session_logs", [config.SHEET_COLUMNS["session_logs"]])
    spreadsheet.sheets[config.SHEET_NAMES["session_logs"]] = ws
    ws.rows.append(["L1", "owner", "phone", "ua", "10.0.0.1", "2024-06-01 09:00:00", "2024-06-01 11:00:00"])
    ws.rows.append(["L2", "owner", "laptop", "ua", "10.0.0.2", "2024-06-01T10:00:00Z", "2024-06-01T10:30:00Z"])

    logs = sheets.session_logs.list_all()
    assert logs[0].last_active_at == NOW - timedelta(hours=1)
    assert logs[0].last_active_at.tzinfo is not None

    alerts = multi_device_alerts(logs, [OWNER], NOW)
    assert alerts.loc[0, "devices"] == 2


def test_network_errors_become_persistence_errors(sheets, spreadsheet, monkeypatch):
    sheets.units.list_all()
    ws = spreadsheet.sheets[config.SHEET_NAMES["units"]]
    monkeypatch.setattr(ws, "append_row", fail)

    with pytest.raises(PersistenceError) as exc:
        sheets.units.insert(make_unit())
    assert isinstance(exc.value.__cause__, ConnectionError)


def test_unknown_kind(sheets):
    with pytest.raises(ConfigurationError):
        sheets.repository("invoices")


@pytest.mark.parametrize("raw, expected", [
    ("1,250.50", 1250.5), ("", 0.0), ("-", 0.0), ("abc", 0.0), ("300", 300.0),
])
def test_to_float(raw, expected):
    assert _to_float(raw) == expected


def test_to_bool():
    assert _to_bool("TRUE") and _to_bool("yes")
    assert not _to_bool("FALSE") and not _to_bool("")
