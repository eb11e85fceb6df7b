from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import raise_if_invalid, unwrap
from app.core.context import RequestContext
from app.core.dependencies import get_db, get_request_context, require_staff
from app.models.enums import BookingStatus
from app.schemas.booking import (
    AvailabilityOut, AvailabilityQuery, BookingCancel, BookingCreate, BookingOut,
    BookingStatusUpdate, BookingUpdate, CheckoutSummaryOut, PaymentCreate, PaymentOut,
)
from app.services.booking_orchestrator import BookingOrchestrator
from app.services.commands import (
    ChangeBookingStatusCommand, GuestInfo, validate_cancel_booking, validate_create_booking,
    validate_modify_booking, validate_record_payment,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_orchestrator(db: Session = Depends(get_db)) -> BookingOrchestrator:
    return BookingOrchestrator(db)


# ---------------------------------------------------------------------
# PRE-FLIGHT AVAILABILITY
# ---------------------------------------------------------------------
@router.post("/check-availability", response_model=AvailabilityOut)
def check_availability(
    data: AvailabilityQuery,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    answer = unwrap(
        orchestrator.check_availability(data.room_ids, data.check_in_date, data.check_out_date)
    )
    return AvailabilityOut(
        available=answer.available,
        conflicting_room_ids=sorted(answer.conflicting_room_ids),
    )


# ---------------------------------------------------------------------
# CREATE BOOKING
# ---------------------------------------------------------------------
@router.post("", response_model=BookingOut, status_code=201)
def create_booking(
    data: BookingCreate,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    user_id = data.user_id if (ctx.is_staff and data.user_id) else ctx.user_id

    guest = GuestInfo(
        name=data.guest_name,
        email=data.guest_email,
        phone=data.guest_phone,
        number_of_guests=data.number_of_guests,
        id_number=data.guest_id_number,
        special_requests=data.special_requests,
    )
    command = raise_if_invalid(
        validate_create_booking(
            user_id=user_id,
            room_ids=data.room_ids,
            check_in=data.check_in_date,
            check_out=data.check_out_date,
            guest=guest,
            today=orchestrator.today(),
            promotion_code=data.promotion_code,
            source=data.booking_source,
        )
    )
    return unwrap(orchestrator.create_booking(ctx, command))


# ---------------------------------------------------------------------
# LISTINGS
# ---------------------------------------------------------------------
@router.get("", response_model=List[BookingOut])
def list_bookings(
    status: Optional[BookingStatus] = None,
    ctx: RequestContext = Depends(require_staff),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.list_bookings(ctx, status=status)


@router.get("/my", response_model=List[BookingOut])
def my_bookings(
    status: Optional[BookingStatus] = None,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.list_bookings(ctx, status=status, only_mine=True)


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(
    booking_id: int,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    return unwrap(orchestrator.get_booking(ctx, booking_id))


@router.get("/{booking_id}/checkout-summary", response_model=CheckoutSummaryOut)
def checkout_summary(
    booking_id: int,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    summary = unwrap(orchestrator.checkout_summary(ctx, booking_id))
    return CheckoutSummaryOut(
        booking_code=summary.booking.booking_code,
        status=summary.booking.status,
        room_charges=summary.room_charges,
        tax_amount=summary.tax_amount,
        service_charge=summary.service_charge,
        discount_amount=summary.discount_amount,
        total_amount=summary.total_amount,
        service_orders_amount=summary.service_orders_amount,
        paid_amount=summary.paid_amount,
        balance_due=summary.balance_due,
    )


# ---------------------------------------------------------------------
# MODIFY / STATUS / CANCEL
# ---------------------------------------------------------------------
@router.patch("/{booking_id}", response_model=BookingOut)
def modify_booking(
    booking_id: int,
    data: BookingUpdate,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    command = raise_if_invalid(
        validate_modify_booking(
            booking_id=booking_id,
            today=orchestrator.today(),
            room_ids=data.room_ids,
            check_in=data.check_in_date,
            check_out=data.check_out_date,
            number_of_guests=data.number_of_guests,
        )
    )
    return unwrap(orchestrator.modify_booking(ctx, command))


@router.patch("/{booking_id}/status", response_model=BookingOut)
def change_status(
    booking_id: int,
    data: BookingStatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    command = ChangeBookingStatusCommand(
        booking_id=booking_id, target=data.status, staff_notes=data.staff_notes
    )
    return unwrap(orchestrator.change_status(ctx, command))


@router.post("/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking(
    booking_id: int,
    data: BookingCancel,
    ctx: RequestContext = Depends(get_request_context),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    command = raise_if_invalid(validate_cancel_booking(booking_id, data.cancel_reason))
    return unwrap(orchestrator.cancel_booking(ctx, command))


# ---------------------------------------------------------------------
# PAYMENT GATEWAY CALLBACKS
# ---------------------------------------------------------------------
@router.post("/{booking_id}/payments", response_model=BookingOut)
def mark_paid(
    booking_id: int,
    data: PaymentCreate,
    ctx: RequestContext = Depends(require_staff),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    command = raise_if_invalid(
        validate_record_payment(booking_id, str(data.amount), data.method, data.transaction_id)
    )
    return unwrap(orchestrator.mark_paid(command))


@router.post("/{booking_id}/payments/failed", response_model=PaymentOut)
def payment_failed(
    booking_id: int,
    data: PaymentCreate,
    ctx: RequestContext = Depends(require_staff),
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    command = raise_if_invalid(
        validate_record_payment(booking_id, str(data.amount), data.method, data.transaction_id)
    )
    return unwrap(orchestrator.record_failed_payment(command))
