import random
from datetime import date, timedelta

import pytest

from conftest import make_booking
from core.conflicts import check_availability, find_conflicts, overlaps
from core.errors import ConflictError
from core.models import BookingStatus


@pytest.fixture
def b1():
    # 2024-06-01 -> 2024-06-04
    return make_booking("B1", start=date(2024, 6, 1), nights=3)


def test_back_to_back_booking_is_accepted(b1):
    b2 = make_booking("B2", start=date(2024, 6, 4), nights=2)
    check_availability(b2, [b1])


def test_booking_ending_on_existing_check_in_is_accepted(b1):
    before = make_booking("B0", start=date(2024, 5, 29), nights=3)
    assert before.end_date == b1.start_date
    check_availability(before, [b1])


def test_overlapping_booking_is_rejected(b1):
    b3 = make_booking("B3", start=date(2024, 6, 3), nights=2)
    with pytest.raises(ConflictError) as exc:
        check_availability(b3, [b1])
    assert exc.value.conflicts == [b1]
    assert exc.value.candidate is b3


def test_cancelled_existing_booking_does_not_block(b1):
    cancelled = make_booking("B1", start=date(2024, 6, 1), nights=3, status=BookingStatus.CANCELLED)
    b3 = make_booking("B3", start=date(2024, 6, 3), nights=2)
    check_availability(b3, [cancelled])


def test_cancelled_candidate_never_conflicts(b1):
    b3 = make_booking("B3", start=date(2024, 6, 2), nights=1, status=BookingStatus.CANCELLED)
    check_availability(b3, [b1])
    assert find_conflicts(b3, [b1]) == []


def test_update_excludes_own_record(b1):
    longer = make_booking("B1", start=date(2024, 6, 1), nights=4)
    check_availability(longer, [b1])


def test_other_unit_is_ignored(b1):
    elsewhere = make_booking("B9", unit_id="U2", start=date(2024, 6, 1), nights=3)
    check_availability(elsewhere, [b1])


def test_booking_inside_existing_range_conflicts():
    long_stay = make_booking("L", start=date(2024, 6, 1), nights=10)
    inner = make_booking("I", start=date(2024, 6, 4), nights=1)
    assert overlaps(inner, long_stay)
    assert find_conflicts(inner, [long_stay]) == [long_stay]


def test_find_conflicts_reports_every_clash():
    a = make_booking("A", start=date(2024, 6, 1), nights=2)
    b = make_booking("B", start=date(2024, 6, 3), nights=2)
    c = make_booking("C", start=date(2024, 6, 10), nights=2)
    wide = make_booking("W", start=date(2024, 6, 2), nights=3)
    assert find_conflicts(wide, [a, b, c]) == [a, b]


def test_accepted_bookings_never_overlap():
    rng = random.Random(7)
    accepted = []
    for i in range(300):
        candidate = make_booking(
            f"R{i}",
            unit_id=rng.choice(["U1", "U2"]),
            start=date(2024, 6, 1) + timedelta(days=rng.randrange(60)),
            nights=rng.randrange(1, 6),
            status=rng.choice([BookingStatus.CONFIRMED, BookingStatus.PENDING, BookingStatus.CANCELLED]),
        )
        try:
            check_availability(candidate, accepted)
        except ConflictError:
            continue
        accepted.append(candidate)

    live = [b for b in accepted if not b.is_cancelled]
    for i, a in enumerate(live):
        for b in live[i + 1:]:
            if a.unit_id == b.unit_id:
                assert not (a.start_date < b.end_date and a.end_date > b.start_date)
