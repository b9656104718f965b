from datetime import date

from conftest import make_booking, make_expense, make_unit
from core.models import BookingStatus
from reports.booking_calendar import month_calendar
from reports.dashboard import dashboard_kpis, latest_rentals
from reports.receipt import receipt_frame, receipt_header


def test_calendar_marks_occupied_nights_only():
    units = [make_unit("U1", "Chalet 1"), make_unit("U2", "Villa")]
    bookings = [
        make_booking("B1", "U1", date(2024, 6, 1), 3),
        make_booking("B2", "U1", date(2024, 6, 4), 2, status=BookingStatus.PENDING),
        make_booking("B3", "U2", date(2024, 6, 2), 2, status=BookingStatus.CANCELLED),
        make_booking("B4", "U2", date(2024, 6, 29), 4),
    ]
    grid = month_calendar(bookings, units, 2024, 6)

    assert len(grid) == 30
    assert list(grid.columns) == ["Chalet 1", "Villa"]
    assert grid.loc[date(2024, 6, 3), "Chalet 1"] == "Tenant B1"
    # Check-out day belongs to the next guest
    assert grid.loc[date(2024, 6, 4), "Chalet 1"] == "Tenant B2 (?)"
    assert grid.loc[date(2024, 6, 6), "Chalet 1"] == ""
    assert (grid["Villa"].iloc[:28] == "").all()
    assert grid.loc[date(2024, 6, 30), "Villa"] == "Tenant B4"


def test_calendar_shows_stays_started_last_month():
    grid = month_calendar([make_booking("B1", start=date(2024, 5, 30), nights=4)],
                          [make_unit()], 2024, 6)
    assert list(grid["Chalet 1"].iloc[:3]) == ["Tenant B1", "Tenant B1", ""]


def test_dashboard_kpis():
    bookings = [
        make_booking("B1", nights=3),
        make_booking("B2", start=date(2024, 6, 10), nights=2, status=BookingStatus.PENDING),
        make_booking("B3", start=date(2024, 6, 20), nights=2, status=BookingStatus.CANCELLED),
    ]
    kpis = dashboard_kpis(bookings, [make_expense(amount=400), make_expense("E2", amount=100)])
    assert kpis == {"active_bookings": 2, "revenue": 1500, "expenses": 500, "net": 1000}


def test_latest_rentals_are_the_ten_newest():
    bookings = [make_booking(f"B{i}", start=date(2024, 6, 1 + 2 * i), nights=1) for i in range(12)]
    latest = latest_rentals(bookings, [make_unit()])
    assert len(latest) == 10
    assert latest.loc[0, "tenant"] == "Tenant B11"
    assert latest.iloc[-1]["tenant"] == "Tenant B2"


def test_receipt_lines():
    b = make_booking(nights=2, rate=1000, fee=100, housekeeping_enabled=True, housekeeping_price=300,
                     deposit_enabled=True, deposit_amount=2000)
    df = receipt_frame(b)

    assert list(df["Item"]) == [
        "Accommodation (base rent)", "Village fees", "Housekeeping",
        "Total rental price", "Security deposit (separate)",
    ]
    assert list(df["Total"]) == [2000, 200, 300, 2500, 2000]
    assert df.loc[3, "Total"] == b.total_rental_price


def test_receipt_without_extras_in_arabic():
    b = make_booking(nights=3)
    df = receipt_frame(b, lang="ar")
    assert list(df.columns) == ["الصنف", "السعر (يومي)", "العدد", "الإجمالي"]
    assert len(df) == 3
    assert df.iloc[-1]["الإجمالي"] == 1650

    header = receipt_header(b, "Chalet 1")
    assert header["unit"] == "Chalet 1"
    assert header["check_out"] == date(2024, 6, 4)
