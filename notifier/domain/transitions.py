"""Status progressions for orders, bookings and appointments."""

from __future__ import annotations

from ..errors import InvalidStatusError

ORDERS = "orders"
APPOINTMENTS = "appointments"
PRESCRIPTIONS = "doctorPrescriptions"
GROOMING_BOOKINGS = "groomingBookings"
BOARDING_BOOKINGS = "boardingBookings"
PRODUCTS = "products"
DOCTORS = "doctors"
GROOMING_CENTERS = "groomingCenters"
BOARDING_CENTERS = "petBoardingCenters"
REVIEW_REQUESTS = "reviewRequests"
SCHEDULED_EMAILS = "scheduledEmails"

BOOKING_COLLECTIONS = (GROOMING_BOOKINGS, BOARDING_BOOKINGS)

ORDER_STATUSES = ("pending", "confirmed", "dispatched", "delivered", "cancelled")
BOOKING_STATUSES = ("pending", "confirmed", "arrived", "completed", "cancelled")
APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")

# target status -> statuses it may be entered from
_ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    "confirmed": frozenset({"pending"}),
    "dispatched": frozenset({"confirmed"}),
    "delivered": frozenset({"dispatched"}),
    "cancelled": frozenset({"pending", "confirmed", "dispatched"}),
}

_BOOKING_TRANSITIONS: dict[str, frozenset[str]] = {
    "confirmed": frozenset({"pending"}),
    "arrived": frozenset({"confirmed"}),
    "completed": frozenset({"arrived", "confirmed"}),
    "cancelled": frozenset({"pending", "confirmed", "arrived"}),
}

_APPOINTMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    "confirmed": frozenset({"pending"}),
    "completed": frozenset({"confirmed"}),
    "cancelled": frozenset({"pending", "confirmed"}),
}


def allowed_statuses(collection: str) -> tuple[str, ...]:
    if collection == ORDERS:
        return ORDER_STATUSES
    if collection in BOOKING_COLLECTIONS:
        return BOOKING_STATUSES
    if collection == APPOINTMENTS:
        return APPOINTMENT_STATUSES
    raise InvalidStatusError(f"Collection {collection!r} has no status progression")


def can_transition(collection: str, current: str | None, target: str) -> bool:
    """Whether an operator may move a record from `current` to `target`."""
    if target not in allowed_statuses(collection):
        return False
    sources = _transitions_for(collection).get(target, frozenset())
    return (current or "pending") in sources


def next_status(collection: str, current: str | None) -> str | None:
    """The next step of the linear progression, or None at the end."""
    progression = [s for s in allowed_statuses(collection) if s != "cancelled"]
    current = current or "pending"
    if current not in progression:
        return None
    index = progression.index(current)
    if index + 1 >= len(progression):
        return None
    return progression[index + 1]


def _transitions_for(collection: str) -> dict[str, frozenset[str]]:
    if collection == ORDERS:
        return _ORDER_TRANSITIONS
    if collection in BOOKING_COLLECTIONS:
        return _BOOKING_TRANSITIONS
    return _APPOINTMENT_TRANSITIONS
