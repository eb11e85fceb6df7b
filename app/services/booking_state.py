"""Booking lifecycle: the closed set of legal status edges."""
from typing import Dict, FrozenSet, Optional

from app.core.results import InvalidTransitionError
from app.models.enums import BookingStatus

BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

TERMINAL_BOOKING_STATUSES = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)

# Statuses a booking's dates/rooms may still be changed in
MODIFIABLE_BOOKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[BookingStatus(current)]


def check_transition(current: BookingStatus, target: BookingStatus) -> Optional[InvalidTransitionError]:
    current = BookingStatus(current)
    target = BookingStatus(target)
    if can_transition(current, target):
        return None
    return InvalidTransitionError(current=current.value, attempted=target.value)
