"""
In-stay service orders ("charge to room").

Orders hang off a CHECKED_IN booking and then follow their own lifecycle;
the parent booking only reaches in here when it is cancelled.
"""
import time
from datetime import date, datetime
from datetime import time as dtime
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.context import RequestContext
from app.core.logging_config import get_logger
from app.core.results import (
    BookingNotCheckedInError, ForbiddenError, NotFoundError, ServiceResult, ValidationError,
)
from app.models.booking import Booking
from app.models.enums import ASSIGNABLE_ROLES, BookingStatus, ServiceBookingStatus
from app.models.service import Service, ServiceBooking
from app.models.user import User
from app.services import service_order_state
from app.services.commands import (
    AssignStaffCommand, CancelServiceBookingCommand, ChangeServiceStatusCommand,
    CreateServiceBookingCommand,
)
from app.services.transactions import run_in_transaction
from app.utils.pricing import calculate_service_price, to_money

logger = get_logger("service")


def list_assignable_staff(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.is_active.is_(True), User.role.in_(list(ASSIGNABLE_ROLES)))
        .order_by(User.full_name)
        .all()
    )


def _parse_hhmm(value: str) -> dtime:
    hours, minutes = value.split(":")
    return dtime(int(hours), int(minutes))


def check_operating_hours(service: Service, scheduled_date: date, scheduled_time: dtime) -> Optional[ValidationError]:
    if not service.operating_hours:
        return None

    weekday = scheduled_date.strftime("%A").lower()
    hours = service.operating_hours.get(weekday)
    if not hours or hours.get("is_closed"):
        return ValidationError(f"{service.name} is closed on {weekday}", field="scheduled_date")

    opens, closes = _parse_hhmm(hours["open"]), _parse_hhmm(hours["close"])
    requested = scheduled_time.replace(second=0, microsecond=0)
    if requested < opens or requested > closes:
        return ValidationError(
            f"{service.name} operates from {hours['open']} to {hours['close']}",
            field="scheduled_time",
        )
    return None


class ServiceOrderService:

    def __init__(self, db: Session, sleep: Callable[[float], None] = time.sleep):
        self.db = db
        self.sleep = sleep

    def _transaction(self, work, operation: str) -> ServiceResult:
        return run_in_transaction(self.db, work, operation, sleep=self.sleep)

    def _locked_order(self, service_booking_id: int) -> Optional[ServiceBooking]:
        return (
            self.db.query(ServiceBooking)
            .filter(ServiceBooking.id == service_booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def _next_code(self) -> str:
        prefix = f"SV{datetime.utcnow().strftime('%Y%m%d')}"
        count = self.db.query(func.count(ServiceBooking.id)).filter(
            ServiceBooking.booking_code.like(f"{prefix}%")
        ).scalar()
        return f"{prefix}{str(count + 1).zfill(3)}"

    def _check_capacity(self, service: Service, scheduled_date: date, quantity: int) -> Optional[ValidationError]:
        if not service.max_capacity:
            return None
        booked = self.db.query(func.coalesce(func.sum(ServiceBooking.quantity), 0)).filter(
            ServiceBooking.service_id == service.id,
            ServiceBooking.scheduled_date == scheduled_date,
            ServiceBooking.status.in_(list(service_order_state.ACTIVE_SERVICE_STATUSES)),
        ).scalar()
        if booked + quantity > service.max_capacity:
            return ValidationError(
                f"{service.name} is fully booked on {scheduled_date} "
                f"(capacity {service.max_capacity}, booked {booked})",
                field="quantity",
            )
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, ctx: RequestContext, service_booking_id: int) -> ServiceResult[ServiceBooking]:
        order = self.db.get(ServiceBooking, service_booking_id)
        if not order:
            return ServiceResult.failure(NotFoundError("ServiceBooking", service_booking_id))
        if not ctx.may_act_for(order.booking.user_id):
            return ServiceResult.failure(ForbiddenError("You do not have access to this service order"))
        return ServiceResult.success(order)

    def list_orders(
        self,
        ctx: RequestContext,
        booking_id: Optional[int] = None,
        status: Optional[ServiceBookingStatus] = None,
    ) -> List[ServiceBooking]:
        query = self.db.query(ServiceBooking).join(Booking, Booking.id == ServiceBooking.booking_id)
        if not ctx.is_staff:
            query = query.filter(Booking.user_id == ctx.user_id)
        if booking_id is not None:
            query = query.filter(ServiceBooking.booking_id == booking_id)
        if status is not None:
            query = query.filter(ServiceBooking.status == status)
        return query.order_by(ServiceBooking.scheduled_date.desc(), ServiceBooking.id.desc()).all()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create(self, ctx: RequestContext, command: CreateServiceBookingCommand) -> ServiceResult[ServiceBooking]:
        def work():
            service = self.db.get(Service, command.service_id)
            if not service:
                return ServiceResult.failure(NotFoundError("Service", command.service_id))
            if not service.is_active:
                return ServiceResult.failure(
                    ValidationError(f"{service.name} is currently unavailable", field="service_id")
                )

            booking = (
                self.db.query(Booking)
                .filter(Booking.id == command.booking_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))
            if not ctx.may_act_for(booking.user_id):
                return ServiceResult.failure(
                    ForbiddenError("You cannot order services for this booking")
                )
            if booking.status != BookingStatus.CHECKED_IN:
                return ServiceResult.failure(
                    BookingNotCheckedInError(booking_id=booking.id, current=booking.status.value)
                )

            if service.requires_booking:
                error = check_operating_hours(service, command.scheduled_date, command.scheduled_time)
                if error is None:
                    error = self._check_capacity(service, command.scheduled_date, command.quantity)
                if error:
                    return ServiceResult.failure(error)

            duration = command.duration or service.duration
            total = calculate_service_price(service.pricing_type, service.base_price, command.quantity, duration)

            order = ServiceBooking(
                booking_code=self._next_code(),
                service_id=service.id,
                booking_id=booking.id,
                guest_name=booking.guest_name,
                guest_phone=booking.guest_phone,
                room_number=", ".join(br.room.room_number for br in booking.rooms),
                scheduled_date=command.scheduled_date,
                scheduled_time=command.scheduled_time,
                duration=duration,
                quantity=command.quantity,
                unit_price=to_money(service.base_price),
                total_price=total,
                status=ServiceBookingStatus.PENDING,
                special_requests=command.special_requests,
            )
            self.db.add(order)
            self.db.flush()
            return ServiceResult.success(order)

        result = self._transaction(work, "create service order")

        if result.is_success:
            order = result.data
            logger.info(
                f"Service Order Created | Code={order.booking_code} | Booking={order.booking_id} | "
                f"Service={order.service_id} | Total={order.total_price}"
            )
        else:
            logger.info(f"Service Order Rejected | Booking={command.booking_id} | {result.error}")
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def change_status(self, ctx: RequestContext, command: ChangeServiceStatusCommand) -> ServiceResult[ServiceBooking]:
        if not ctx.is_staff:
            return ServiceResult.failure(ForbiddenError("Only staff can change service order status"))

        target = ServiceBookingStatus(command.target)

        def work():
            order = self._locked_order(command.service_booking_id)
            if not order:
                return ServiceResult.failure(NotFoundError("ServiceBooking", command.service_booking_id))

            error = service_order_state.check_transition(order.status, target)
            if error:
                return ServiceResult.failure(error)

            now = datetime.utcnow()
            if target == ServiceBookingStatus.IN_PROGRESS:
                order.started_at = now
            elif target == ServiceBookingStatus.COMPLETED:
                order.completed_at = now
            elif target == ServiceBookingStatus.CANCELLED:
                order.cancelled_at = now
                order.cancel_reason = command.staff_notes or "Cancelled by staff"

            if command.staff_notes:
                order.staff_notes = command.staff_notes
            order.status = target
            return ServiceResult.success(order)

        result = self._transaction(work, f"service order -> {target.value}")

        if result.is_success:
            logger.info(
                f"Service Order Status | Code={result.data.booking_code} | -> {target.value} | By={ctx.user_id}"
            )
        else:
            logger.info(f"Service Order Status Rejected | Id={command.service_booking_id} | {result.error}")
        return result

    def assign_staff(self, ctx: RequestContext, command: AssignStaffCommand) -> ServiceResult[ServiceBooking]:
        if not ctx.is_staff:
            return ServiceResult.failure(ForbiddenError("Only staff can assign service orders"))

        def work():
            order = self._locked_order(command.service_booking_id)
            if not order:
                return ServiceResult.failure(NotFoundError("ServiceBooking", command.service_booking_id))

            error = service_order_state.check_assignment(order.status, order.assigned_staff_id)
            if error:
                return ServiceResult.failure(error)

            staff = self.db.get(User, command.staff_id)
            if not staff:
                return ServiceResult.failure(NotFoundError("User", command.staff_id))
            if not staff.is_active or staff.role not in ASSIGNABLE_ROLES:
                return ServiceResult.failure(
                    ValidationError(f"User {staff.id} cannot be assigned to service orders", field="staff_id")
                )

            order.assigned_staff_id = staff.id
            if command.staff_notes:
                order.staff_notes = command.staff_notes
            if order.status == ServiceBookingStatus.PENDING:
                order.status = ServiceBookingStatus.CONFIRMED
            return ServiceResult.success(order)

        result = self._transaction(work, "assign staff")

        if result.is_success:
            logger.info(
                f"Service Order Assigned | Code={result.data.booking_code} | Staff={command.staff_id} | "
                f"Status={result.data.status.value}"
            )
        else:
            logger.info(f"Service Order Assign Rejected | Id={command.service_booking_id} | {result.error}")
        return result

    def cancel(self, ctx: RequestContext, command: CancelServiceBookingCommand) -> ServiceResult[ServiceBooking]:
        def work():
            order = self._locked_order(command.service_booking_id)
            if not order:
                return ServiceResult.failure(NotFoundError("ServiceBooking", command.service_booking_id))
            if not ctx.may_act_for(order.booking.user_id):
                return ServiceResult.failure(ForbiddenError("You do not have access to this service order"))

            error = service_order_state.check_transition(order.status, ServiceBookingStatus.CANCELLED)
            if error:
                return ServiceResult.failure(error)

            order.status = ServiceBookingStatus.CANCELLED
            order.cancelled_at = datetime.utcnow()
            order.cancel_reason = command.reason
            return ServiceResult.success(order)

        result = self._transaction(work, "cancel service order")

        if result.is_success:
            logger.info(
                f"Service Order Cancelled | Code={result.data.booking_code} | By={ctx.user_id} | "
                f"Reason={command.reason}"
            )
        else:
            logger.info(f"Service Order Cancel Rejected | Id={command.service_booking_id} | {result.error}")
        return result
