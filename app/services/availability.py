from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models.booking import Booking, BookingRoom
from app.models.enums import BookingStatus, RoomStatus
from app.models.room import Room, RoomType

# Bookings in these states hold their rooms
BLOCKING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
)

# Rooms in these states are never offered by the pre-flight search
UNSELLABLE_ROOM_STATUSES = (RoomStatus.MAINTENANCE, RoomStatus.OUT_OF_ORDER)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicting_room_ids: FrozenSet[int]


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open [a_start, a_end) vs [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def _overlapping_rows(db: Session, room_ids, check_in: date, check_out: date, exclude_booking_id=None):
    query = (
        db.query(BookingRoom.room_id)
        .join(Booking, Booking.id == BookingRoom.booking_id)
        .filter(
            BookingRoom.room_id.in_(list(room_ids)),
            Booking.status.in_(BLOCKING_STATUSES),
            Booking.check_in_date < check_out,
            Booking.check_out_date > check_in,
        )
    )
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return query


def check_availability(
    db: Session,
    room_ids: Iterable[int],
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
    lock: bool = False,
) -> AvailabilityResult:
    """Read-only answer to "can these rooms be held for [check_in, check_out)?".

    With ``lock`` the overlapping rows are read FOR UPDATE, which is how the
    booking orchestrator uses it inside its transaction.
    """
    room_ids = list(room_ids)
    if not room_ids:
        return AvailabilityResult(available=True, conflicting_room_ids=frozenset())

    query = _overlapping_rows(db, room_ids, check_in, check_out, exclude_booking_id)
    if lock:
        query = query.with_for_update()

    conflicting = frozenset(row.room_id for row in query.all())
    return AvailabilityResult(available=not conflicting, conflicting_room_ids=conflicting)


def find_available_rooms(
    db: Session,
    check_in: date,
    check_out: date,
    room_type_id: Optional[int] = None,
    guests: Optional[int] = None,
) -> List[Room]:
    query = db.query(Room).join(RoomType).filter(Room.status.notin_(UNSELLABLE_ROOM_STATUSES))
    if room_type_id is not None:
        query = query.filter(Room.type_id == room_type_id)
    if guests is not None:
        query = query.filter(RoomType.capacity >= guests)

    rooms = query.order_by(Room.room_number).all()
    if not rooms:
        return []

    taken = check_availability(db, [r.id for r in rooms], check_in, check_out).conflicting_room_ids
    return [r for r in rooms if r.id not in taken]
