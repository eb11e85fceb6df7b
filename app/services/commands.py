"""
Validation of external input into immutable commands.

Each ``validate_*`` function returns either a command or a ValidationError;
only commands reach the state-mutating services.
"""
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional, Tuple, Union

from app.core.results import ValidationError
from app.models.enums import (
    BookingSource, BookingStatus, PaymentMethod, ServiceBookingStatus,
)

MIN_CANCEL_REASON_LENGTH = 10


@dataclass(frozen=True)
class GuestInfo:
    name: str
    email: str
    phone: str
    number_of_guests: int
    id_number: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass(frozen=True)
class CreateBookingCommand:
    user_id: int
    room_ids: Tuple[int, ...]
    check_in: date
    check_out: date
    guest: GuestInfo
    promotion_code: Optional[str] = None
    source: BookingSource = BookingSource.WEBSITE


@dataclass(frozen=True)
class ModifyBookingCommand:
    booking_id: int
    room_ids: Optional[Tuple[int, ...]] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    number_of_guests: Optional[int] = None


@dataclass(frozen=True)
class CancelBookingCommand:
    booking_id: int
    reason: str


@dataclass(frozen=True)
class ChangeBookingStatusCommand:
    booking_id: int
    target: BookingStatus
    staff_notes: Optional[str] = None


@dataclass(frozen=True)
class RecordPaymentCommand:
    booking_id: int
    amount: Decimal
    method: PaymentMethod
    transaction_id: str


@dataclass(frozen=True)
class CreateServiceBookingCommand:
    service_id: int
    booking_id: int
    scheduled_date: date
    scheduled_time: time
    quantity: int = 1
    duration: Optional[int] = None
    special_requests: Optional[str] = None


@dataclass(frozen=True)
class ChangeServiceStatusCommand:
    service_booking_id: int
    target: ServiceBookingStatus
    staff_notes: Optional[str] = None


@dataclass(frozen=True)
class AssignStaffCommand:
    service_booking_id: int
    staff_id: int
    staff_notes: Optional[str] = None


@dataclass(frozen=True)
class CancelServiceBookingCommand:
    service_booking_id: int
    reason: str


def validate_date_range(check_in: date, check_out: date, today: date) -> Optional[ValidationError]:
    if check_out <= check_in:
        return ValidationError("Check-out date must be after check-in date", field="check_out_date")
    if check_in < today:
        return ValidationError("Check-in date cannot be in the past", field="check_in_date")
    return None


def _validate_room_ids(room_ids) -> Union[Tuple[int, ...], ValidationError]:
    room_ids = tuple(room_ids or ())
    if not room_ids:
        return ValidationError("At least one room must be selected", field="room_ids")
    if len(set(room_ids)) != len(room_ids):
        return ValidationError("Room ids must be unique", field="room_ids")
    return tuple(sorted(room_ids))


def _validate_reason(reason: Optional[str]) -> Union[str, ValidationError]:
    reason = (reason or "").strip()
    if len(reason) < MIN_CANCEL_REASON_LENGTH:
        return ValidationError(
            f"Cancellation reason must be at least {MIN_CANCEL_REASON_LENGTH} characters",
            field="cancel_reason",
        )
    return reason


def validate_create_booking(
    user_id: int,
    room_ids,
    check_in: date,
    check_out: date,
    guest: GuestInfo,
    today: date,
    promotion_code: Optional[str] = None,
    source: BookingSource = BookingSource.WEBSITE,
) -> Union[CreateBookingCommand, ValidationError]:
    rooms = _validate_room_ids(room_ids)
    if isinstance(rooms, ValidationError):
        return rooms

    error = validate_date_range(check_in, check_out, today)
    if error:
        return error

    if guest.number_of_guests is None or guest.number_of_guests <= 0:
        return ValidationError("Number of guests must be positive", field="number_of_guests")
    if not guest.name or len(guest.name.strip()) < 2:
        return ValidationError("Guest name must be at least 2 characters", field="guest_name")

    return CreateBookingCommand(
        user_id=user_id,
        room_ids=rooms,
        check_in=check_in,
        check_out=check_out,
        guest=guest,
        promotion_code=(promotion_code or "").strip() or None,
        source=source,
    )


def validate_modify_booking(
    booking_id: int,
    today: date,
    room_ids=None,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    number_of_guests: Optional[int] = None,
) -> Union[ModifyBookingCommand, ValidationError]:
    if room_ids is None and check_in is None and check_out is None and number_of_guests is None:
        return ValidationError("Nothing to modify")

    rooms = None
    if room_ids is not None:
        rooms = _validate_room_ids(room_ids)
        if isinstance(rooms, ValidationError):
            return rooms

    if check_in is not None and check_out is not None:
        error = validate_date_range(check_in, check_out, today)
        if error:
            return error
    elif check_in is not None and check_in < today:
        return ValidationError("Check-in date cannot be in the past", field="check_in_date")

    if number_of_guests is not None and number_of_guests <= 0:
        return ValidationError("Number of guests must be positive", field="number_of_guests")

    return ModifyBookingCommand(
        booking_id=booking_id,
        room_ids=rooms,
        check_in=check_in,
        check_out=check_out,
        number_of_guests=number_of_guests,
    )


def validate_cancel_booking(booking_id: int, reason: Optional[str]) -> Union[CancelBookingCommand, ValidationError]:
    reason = _validate_reason(reason)
    if isinstance(reason, ValidationError):
        return reason
    return CancelBookingCommand(booking_id=booking_id, reason=reason)


def validate_record_payment(
    booking_id: int, amount, method: PaymentMethod, transaction_id: Optional[str]
) -> Union[RecordPaymentCommand, ValidationError]:
    amount = Decimal(amount)
    if amount <= 0:
        return ValidationError("Payment amount must be positive", field="amount")
    transaction_id = (transaction_id or "").strip()
    if not transaction_id:
        return ValidationError("Transaction reference is required", field="transaction_id")
    return RecordPaymentCommand(
        booking_id=booking_id, amount=amount, method=method, transaction_id=transaction_id
    )


def validate_create_service_booking(
    service_id: int,
    booking_id: int,
    scheduled_date: date,
    scheduled_time: time,
    quantity: int = 1,
    duration: Optional[int] = None,
    special_requests: Optional[str] = None,
) -> Union[CreateServiceBookingCommand, ValidationError]:
    if quantity is None or quantity <= 0:
        return ValidationError("Quantity must be positive", field="quantity")
    if duration is not None and duration <= 0:
        return ValidationError("Duration must be positive", field="duration")
    return CreateServiceBookingCommand(
        service_id=service_id,
        booking_id=booking_id,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        quantity=quantity,
        duration=duration,
        special_requests=special_requests,
    )


def validate_cancel_service_booking(
    service_booking_id: int, reason: Optional[str]
) -> Union[CancelServiceBookingCommand, ValidationError]:
    reason = _validate_reason(reason)
    if isinstance(reason, ValidationError):
        return reason
    return CancelServiceBookingCommand(service_booking_id=service_booking_id, reason=reason)
