"""
Availability check: stops a booking from being stored over another one.

Intervals are half-open [start_date, end_date): the check-out day of one
stay can be the check-in day of the next. Cancelled bookings never take
part in the check, on either side.
"""

from typing import Iterable, List

from core.errors import ConflictError
from core.models import Booking


def overlaps(a: Booking, b: Booking) -> bool:
    return a.start_date < b.end_date and a.end_date > b.start_date


def find_conflicts(candidate: Booking, existing: Iterable[Booking]) -> List[Booking]:
    """All non-cancelled bookings on the candidate's unit that overlap it."""
    if candidate.is_cancelled:
        return []

    clashes = []
    for e in existing:
        # Self, when updating
        if e.id == candidate.id:
            continue
        if e.is_cancelled:
            continue
        if e.unit_id != candidate.unit_id:
            continue
        if overlaps(candidate, e):
            clashes.append(e)
    return clashes


def check_availability(candidate: Booking, existing: Iterable[Booking]) -> None:
    """Raises ConflictError if the unit is not free for the candidate's range."""
    clashes = find_conflicts(candidate, existing)
    if clashes:
        raise ConflictError(candidate, clashes)
