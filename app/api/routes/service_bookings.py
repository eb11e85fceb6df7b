from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import raise_if_invalid, unwrap
from app.core.context import RequestContext
from app.core.dependencies import get_db, get_request_context, require_staff
from app.models.enums import ServiceBookingStatus
from app.schemas.service_booking import (
    AssignStaff, ServiceBookingCancel, ServiceBookingCreate, ServiceBookingOut,
    ServiceBookingStatusUpdate, StaffOut,
)
from app.services.commands import (
    AssignStaffCommand, ChangeServiceStatusCommand, validate_cancel_service_booking,
    validate_create_service_booking,
)
from app.services.service_orders import ServiceOrderService, list_assignable_staff

router = APIRouter(prefix="/service-bookings", tags=["Service Bookings"])


def get_service_orders(db: Session = Depends(get_db)) -> ServiceOrderService:
    return ServiceOrderService(db)


# ---------------------------------------------------------------------
# CREATE (charge to room)
# ---------------------------------------------------------------------
@router.post("", response_model=ServiceBookingOut, status_code=201)
def create_service_booking(
    data: ServiceBookingCreate,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    command = raise_if_invalid(
        validate_create_service_booking(
            service_id=data.service_id,
            booking_id=data.booking_id,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            quantity=data.quantity,
            duration=data.duration,
            special_requests=data.special_requests,
        )
    )
    return unwrap(orders.create(ctx, command))


# ---------------------------------------------------------------------
# READS
# ---------------------------------------------------------------------
@router.get("", response_model=List[ServiceBookingOut])
def list_service_bookings(
    booking_id: Optional[int] = None,
    status: Optional[ServiceBookingStatus] = None,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    return orders.list_orders(ctx, booking_id=booking_id, status=status)


@router.get("/assignable-staff", response_model=List[StaffOut])
def assignable_staff(
    ctx: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return list_assignable_staff(db)


@router.get("/{service_booking_id}", response_model=ServiceBookingOut)
def get_service_booking(
    service_booking_id: int,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    return unwrap(orders.get(ctx, service_booking_id))


# ---------------------------------------------------------------------
# LIFECYCLE
# ---------------------------------------------------------------------
@router.patch("/{service_booking_id}/status", response_model=ServiceBookingOut)
def change_status(
    service_booking_id: int,
    data: ServiceBookingStatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    command = ChangeServiceStatusCommand(
        service_booking_id=service_booking_id, target=data.status, staff_notes=data.staff_notes
    )
    return unwrap(orders.change_status(ctx, command))


@router.post("/{service_booking_id}/assign-staff", response_model=ServiceBookingOut)
def assign_staff(
    service_booking_id: int,
    data: AssignStaff,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    command = AssignStaffCommand(
        service_booking_id=service_booking_id, staff_id=data.staff_id, staff_notes=data.staff_notes
    )
    return unwrap(orders.assign_staff(ctx, command))


@router.post("/{service_booking_id}/cancel", response_model=ServiceBookingOut)
def cancel_service_booking(
    service_booking_id: int,
    data: ServiceBookingCancel,
    ctx: RequestContext = Depends(get_request_context),
    orders: ServiceOrderService = Depends(get_service_orders),
):
    command = raise_if_invalid(validate_cancel_service_booking(service_booking_id, data.cancel_reason))
    return unwrap(orders.cancel(ctx, command))
