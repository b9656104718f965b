"""
Error taxonomy. The UI catches SunlightError and turns it into a message;
everything below it carries enough context to localize that message.
"""


class SunlightError(Exception):
    """Base class for every error raised by the core."""


class ValidationError(SunlightError, ValueError):
    pass


class ConfigurationError(SunlightError):
    pass


class NotFoundError(SunlightError, LookupError):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(SunlightError):
    """The unit is already taken for (part of) the requested range."""

    def __init__(self, candidate, conflicts):
        self.candidate = candidate
        self.conflicts = list(conflicts)
        first = self.conflicts[0]
        super().__init__(
            f"unit '{candidate.unit_id}' unavailable from {candidate.start_date} "
            f"to {candidate.end_date}: overlaps booking '{first.id}' "
            f"({first.start_date} -> {first.end_date})"
        )


class AccessDeniedError(SunlightError):
    """Raised when a client without a usable subscription tries to add data."""

    def __init__(self, reason: str):
        super().__init__(f"write access denied: {reason}")
        self.reason = reason    # "no_subscription" | "paused" | "expired"


class PersistenceError(SunlightError):
    """The remote store rejected a mutation. Local state has been rolled back."""


class PartialCascadeFailure(PersistenceError):
    """
    A unit delete failed after some dependents were already removed remotely.
    Local state is restored in full, so what the user sees may include rows
    the remote store no longer has.
    """

    def __init__(self, unit_id: str, removed_expenses: int, removed_bookings: int):
        super().__init__(
            f"unit '{unit_id}' delete failed after removing "
            f"{removed_expenses} expense(s) and {removed_bookings} booking(s) remotely"
        )
        self.unit_id = unit_id
        self.removed_expenses = removed_expenses
        self.removed_bookings = removed_bookings
