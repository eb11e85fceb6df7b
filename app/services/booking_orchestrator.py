"""
Booking orchestrator: the only writer of Booking / BookingRoom rows.

Every mutation re-reads what it depends on under a locking read inside one
transaction (availability, pricing and the insert/update happen together),
so a pre-flight availability answer is advisory and the check made here is
authoritative.
"""
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import NO_SHOW_GRACE_DAYS, SERVICE_CHARGE_PERCENT, TAX_RATE_PERCENT
from app.core.context import RequestContext
from app.core.logging_config import get_logger
from app.core.redis import ROOM_CATALOG_KEY, delete_cache
from app.core.results import (
    ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError,
    ServiceResult, ValidationError,
)
from app.models.booking import Booking, BookingRoom
from app.models.enums import (
    BookingStatus, PaymentStatus, RoomStatus, ServiceBookingStatus,
)
from app.models.payment import Payment
from app.models.promotion import Promotion
from app.models.room import Room
from app.models.service import ServiceBooking
from app.models.user import User
from app.services import booking_state
from app.services.availability import AvailabilityResult, check_availability
from app.services.commands import (
    CancelBookingCommand, ChangeBookingStatusCommand, CreateBookingCommand,
    ModifyBookingCommand, RecordPaymentCommand,
)
from app.services.service_order_state import UNSTARTED_SERVICE_STATUSES
from app.services.transactions import run_in_transaction
from app.utils.pricing import (
    RoomCharge, calculate_booking_price, nights_between, promotion_discount, to_money,
)

logger = get_logger("booking")
payment_logger = get_logger("payment")

ROOM_BLOCKING_STATUSES = (RoomStatus.OCCUPIED, RoomStatus.MAINTENANCE, RoomStatus.OUT_OF_ORDER)
CASCADE_CANCEL_REASON = "Room booking cancelled"
STAFF_CANCEL_REASON = "Cancelled by staff"


@dataclass(frozen=True)
class CheckoutSummary:
    booking: Booking
    room_charges: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    service_orders_amount: Decimal
    paid_amount: Decimal
    balance_due: Decimal


class BookingOrchestrator:

    def __init__(
        self,
        db: Session,
        today: Callable[[], date] = date.today,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.today = today
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _transaction(self, work, operation: str, room_ids=()) -> ServiceResult:
        return run_in_transaction(self.db, work, operation, room_ids=room_ids, sleep=self.sleep)

    def _locked_booking(self, booking_id: int) -> Optional[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.id == booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def _locked_rooms(self, room_ids) -> List[Room]:
        # Fixed lock order keeps competing writers from deadlocking
        return (
            self.db.query(Room)
            .filter(Room.id.in_(list(room_ids)))
            .order_by(Room.id)
            .populate_existing()
            .with_for_update()
            .all()
        )

    def _next_booking_code(self) -> str:
        prefix = f"BK{datetime.utcnow().strftime('%Y%m%d')}"
        count = self.db.query(func.count(Booking.id)).filter(
            Booking.booking_code.like(f"{prefix}%")
        ).scalar()
        return f"{prefix}{str(count + 1).zfill(3)}"

    def _no_show_due(self, booking: Booking) -> bool:
        deadline = booking.check_in_date + timedelta(days=NO_SHOW_GRACE_DAYS)
        return self.today() > deadline

    def _resolve_promotion(self, code: Optional[str]):
        if not code:
            return None, None
        promotion = self.db.query(Promotion).filter(Promotion.code == code).first()
        today = self.today()
        if (
            not promotion
            or not promotion.is_active
            or not (promotion.start_date <= today <= promotion.end_date)
        ):
            return None, ValidationError(f"Promotion code {code} is not valid", field="promotion_code")
        return promotion, None

    def _price_rooms(self, rooms: List[Room], check_in: date, check_out: date, promotion: Optional[Promotion]):
        nights = nights_between(check_in, check_out)
        charges = [
            RoomCharge(room_id=room.id, nights=nights, rate_per_night=to_money(room.room_type.base_price))
            for room in rooms
        ]
        subtotal = sum((c.line_total for c in charges), Decimal("0"))
        discount = Decimal("0")
        if promotion is not None:
            discount = promotion_discount(promotion.discount_type, promotion.discount_value, subtotal)

        return calculate_booking_price(charges, TAX_RATE_PERCENT, SERVICE_CHARGE_PERCENT, discount)

    def _load_rooms_for_stay(self, room_ids, number_of_guests: int):
        rooms = self._locked_rooms(room_ids)
        found = {room.id for room in rooms}
        missing = [rid for rid in room_ids if rid not in found]
        if missing:
            return None, NotFoundError("Room", missing[0])

        capacity = sum(room.room_type.capacity for room in rooms)
        if number_of_guests > capacity:
            return None, ValidationError(
                f"{number_of_guests} guests exceed the combined capacity ({capacity}) of the selected rooms",
                field="number_of_guests",
            )
        return rooms, None

    @staticmethod
    def _booking_rooms(pricing) -> List[BookingRoom]:
        return [
            BookingRoom(
                room_id=line.room_id,
                price_per_night=line.rate_per_night,
                number_of_nights=line.nights,
                total_price=line.line_total,
            )
            for line in pricing.lines
        ]

    @staticmethod
    def _apply_pricing(booking: Booking, pricing) -> None:
        booking.subtotal = pricing.subtotal
        booking.tax_amount = pricing.tax_amount
        booking.service_charge = pricing.service_charge
        booking.discount_amount = pricing.discount_amount
        booking.total_amount = pricing.total_amount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def check_availability(self, room_ids, check_in: date, check_out: date) -> ServiceResult[AvailabilityResult]:
        """Pre-flight check for search screens; takes no locks and writes nothing."""
        if check_out <= check_in:
            return ServiceResult.failure(
                ValidationError("Check-out date must be after check-in date", field="check_out_date")
            )
        return ServiceResult.success(check_availability(self.db, room_ids, check_in, check_out))

    def apply_lazy_no_show(self, bookings: List[Booking]) -> None:
        """Move CONFIRMED bookings whose check-in day has passed to NO_SHOW.

        Reads call this before returning, so a read may commit a transition.
        """
        due_ids = [
            b.id for b in bookings
            if b.status == BookingStatus.CONFIRMED and self._no_show_due(b)
        ]
        if not due_ids:
            return

        def work():
            changed = []
            for booking_id in due_ids:
                booking = self._locked_booking(booking_id)
                if booking.status == BookingStatus.CONFIRMED and self._no_show_due(booking):
                    booking.status = BookingStatus.NO_SHOW
                    changed.append(booking.booking_code)
            return ServiceResult.success(changed)

        result = self._transaction(work, "lazy no-show")
        if result.is_success and result.data:
            logger.info(f"NO_SHOW (lazy) | Bookings={', '.join(result.data)}")

    def _settle_no_show(self, booking_id: int) -> None:
        """Apply the lazy NO_SHOW rule to one booking ahead of a write."""
        booking = self.db.get(Booking, booking_id)
        if booking is not None:
            self.apply_lazy_no_show([booking])

    def get_booking(self, ctx: RequestContext, booking_id: int) -> ServiceResult[Booking]:
        booking = self.db.get(Booking, booking_id)
        if not booking:
            return ServiceResult.failure(NotFoundError("Booking", booking_id))
        if not ctx.may_act_for(booking.user_id):
            return ServiceResult.failure(ForbiddenError("You do not have access to this booking"))

        self.apply_lazy_no_show([booking])
        return ServiceResult.success(booking)

    def list_bookings(
        self,
        ctx: RequestContext,
        status: Optional[BookingStatus] = None,
        only_mine: bool = False,
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if only_mine or not ctx.is_staff:
            query = query.filter(Booking.user_id == ctx.user_id)

        bookings = query.order_by(Booking.check_in_date.desc(), Booking.id.desc()).all()
        self.apply_lazy_no_show(bookings)

        if status is not None:
            bookings = [b for b in bookings if b.status == status]
        return bookings

    def checkout_summary(self, ctx: RequestContext, booking_id: int) -> ServiceResult[CheckoutSummary]:
        result = self.get_booking(ctx, booking_id)
        if not result.is_success:
            return result

        booking = result.data
        services_total = self.db.query(func.coalesce(func.sum(ServiceBooking.total_price), 0)).filter(
            ServiceBooking.booking_id == booking.id,
            ServiceBooking.status != ServiceBookingStatus.CANCELLED,
        ).scalar()
        services_total = to_money(services_total)
        total = to_money(booking.total_amount)
        paid = to_money(booking.paid_amount)

        return ServiceResult.success(
            CheckoutSummary(
                booking=booking,
                room_charges=to_money(booking.subtotal),
                tax_amount=to_money(booking.tax_amount),
                service_charge=to_money(booking.service_charge),
                discount_amount=to_money(booking.discount_amount),
                total_amount=total,
                service_orders_amount=services_total,
                paid_amount=paid,
                balance_due=total + services_total - paid,
            )
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_booking(self, ctx: RequestContext, command: CreateBookingCommand) -> ServiceResult[Booking]:
        if not ctx.may_act_for(command.user_id):
            return ServiceResult.failure(ForbiddenError("You cannot book on behalf of another user"))

        def work():
            if self.db.get(User, command.user_id) is None:
                return ServiceResult.failure(NotFoundError("User", command.user_id))

            rooms, error = self._load_rooms_for_stay(command.room_ids, command.guest.number_of_guests)
            if error:
                return ServiceResult.failure(error)

            availability = check_availability(
                self.db, command.room_ids, command.check_in, command.check_out, lock=True
            )
            if not availability.available:
                return ServiceResult.failure(
                    ConflictError(
                        message="Some rooms are already booked for these dates",
                        conflicting_room_ids=availability.conflicting_room_ids,
                    )
                )

            promotion, error = self._resolve_promotion(command.promotion_code)
            if error:
                return ServiceResult.failure(error)

            pricing = self._price_rooms(rooms, command.check_in, command.check_out, promotion)

            booking = Booking(
                booking_code=self._next_booking_code(),
                user_id=command.user_id,
                guest_name=command.guest.name,
                guest_email=command.guest.email,
                guest_phone=command.guest.phone,
                guest_id_number=command.guest.id_number,
                special_requests=command.guest.special_requests,
                check_in_date=command.check_in,
                check_out_date=command.check_out,
                number_of_guests=command.guest.number_of_guests,
                number_of_nights=nights_between(command.check_in, command.check_out),
                paid_amount=Decimal("0"),
                status=BookingStatus.PENDING,
                booking_source=command.source,
                promotion_id=promotion.id if promotion else None,
            )
            self._apply_pricing(booking, pricing)
            booking.rooms = self._booking_rooms(pricing)

            self.db.add(booking)
            self.db.flush()
            return ServiceResult.success(booking)

        result = self._transaction(work, "create booking", room_ids=command.room_ids)

        if result.is_success:
            booking = result.data
            logger.info(
                f"Booking Created | Code={booking.booking_code} | User={booking.user_id} | "
                f"Rooms={list(command.room_ids)} | {booking.check_in_date}->{booking.check_out_date} | "
                f"Total={booking.total_amount}"
            )
        else:
            logger.info(f"Booking Rejected | User={command.user_id} | {result.error}")
        return result

    # ------------------------------------------------------------------
    # Modify
    # ------------------------------------------------------------------
    def modify_booking(self, ctx: RequestContext, command: ModifyBookingCommand) -> ServiceResult[Booking]:
        self._settle_no_show(command.booking_id)

        def work():
            booking = self._locked_booking(command.booking_id)
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))
            if not ctx.may_act_for(booking.user_id):
                return ServiceResult.failure(ForbiddenError("You do not have access to this booking"))

            if booking.status not in booking_state.MODIFIABLE_BOOKING_STATUSES:
                return ServiceResult.failure(
                    InvalidTransitionError(
                        current=booking.status.value,
                        attempted="MODIFY",
                        message=f"Booking in {booking.status.value} cannot be modified",
                    )
                )

            check_in = command.check_in or booking.check_in_date
            check_out = command.check_out or booking.check_out_date
            if check_out <= check_in:
                return ServiceResult.failure(
                    ValidationError("Check-out date must be after check-in date", field="check_out_date")
                )

            room_ids = command.room_ids or tuple(sorted(br.room_id for br in booking.rooms))
            guests = command.number_of_guests or booking.number_of_guests

            rooms, error = self._load_rooms_for_stay(room_ids, guests)
            if error:
                return ServiceResult.failure(error)

            availability = check_availability(
                self.db, room_ids, check_in, check_out,
                exclude_booking_id=booking.id, lock=True,
            )
            if not availability.available:
                return ServiceResult.failure(
                    ConflictError(
                        message="Some rooms are already booked for the new dates",
                        conflicting_room_ids=availability.conflicting_room_ids,
                    )
                )

            pricing = self._price_rooms(rooms, check_in, check_out, booking.promotion)
            if to_money(booking.paid_amount) > pricing.total_amount:
                return ServiceResult.failure(
                    ValidationError(
                        "New total is below the amount already paid; issue a refund first",
                        field="total_amount",
                    )
                )

            # Release the old reservation before writing the new one
            booking.rooms.clear()
            self.db.flush()

            booking.rooms = self._booking_rooms(pricing)
            booking.check_in_date = check_in
            booking.check_out_date = check_out
            booking.number_of_guests = guests
            booking.number_of_nights = nights_between(check_in, check_out)
            self._apply_pricing(booking, pricing)

            self.db.flush()
            return ServiceResult.success(booking)

        result = self._transaction(work, "modify booking", room_ids=command.room_ids or ())

        if result.is_success:
            booking = result.data
            logger.info(
                f"Booking Modified | Code={booking.booking_code} | "
                f"{booking.check_in_date}->{booking.check_out_date} | Total={booking.total_amount}"
            )
        else:
            logger.info(f"Booking Modify Rejected | Booking={command.booking_id} | {result.error}")
        return result

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------
    def _cancel_locked(self, booking: Booking, reason: str, actor_id: int) -> bool:
        """Cancel a locked booking and its unstarted service orders.

        Returns True when room statuses changed.
        """
        now = datetime.utcnow()
        was_in_house = booking.status == BookingStatus.CHECKED_IN

        orders = (
            self.db.query(ServiceBooking)
            .filter(
                ServiceBooking.booking_id == booking.id,
                ServiceBooking.status.in_(list(UNSTARTED_SERVICE_STATUSES)),
            )
            .with_for_update()
            .all()
        )
        for order in orders:
            order.status = ServiceBookingStatus.CANCELLED
            order.cancelled_at = now
            order.cancel_reason = CASCADE_CANCEL_REASON

        if was_in_house:
            for room in self._locked_rooms([br.room_id for br in booking.rooms]):
                room.status = RoomStatus.CLEANING

        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = now
        booking.cancelled_by = actor_id
        booking.cancel_reason = reason
        return was_in_house

    def cancel_booking(self, ctx: RequestContext, command: CancelBookingCommand) -> ServiceResult[Booking]:
        self._settle_no_show(command.booking_id)
        rooms_changed = []

        def work():
            booking = self._locked_booking(command.booking_id)
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))
            if not ctx.may_act_for(booking.user_id):
                return ServiceResult.failure(ForbiddenError("You do not have access to this booking"))

            error = booking_state.check_transition(booking.status, BookingStatus.CANCELLED)
            if error:
                return ServiceResult.failure(error)

            if booking.status == BookingStatus.CHECKED_IN and not ctx.is_staff:
                return ServiceResult.failure(ForbiddenError("Only staff can cancel a checked-in stay"))

            rooms_changed.append(self._cancel_locked(booking, command.reason, ctx.user_id))
            return ServiceResult.success(booking)

        result = self._transaction(work, "cancel booking")

        if result.is_success:
            if any(rooms_changed):
                delete_cache(ROOM_CATALOG_KEY)
            logger.info(
                f"Booking Cancelled | Code={result.data.booking_code} | By={ctx.user_id} | "
                f"Reason={command.reason}"
            )
        else:
            logger.info(f"Booking Cancel Rejected | Booking={command.booking_id} | {result.error}")
        return result

    # ------------------------------------------------------------------
    # Status transitions (front desk)
    # ------------------------------------------------------------------
    def change_status(self, ctx: RequestContext, command: ChangeBookingStatusCommand) -> ServiceResult[Booking]:
        if not ctx.is_staff:
            return ServiceResult.failure(ForbiddenError("Only staff can change booking status"))

        target = BookingStatus(command.target)
        rooms_changed = []

        # A stale CONFIRMED booking becomes NO_SHOW before anything else is attempted
        if target != BookingStatus.NO_SHOW:
            self._settle_no_show(command.booking_id)

        def work():
            booking = self._locked_booking(command.booking_id)
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))

            error = booking_state.check_transition(booking.status, target)
            if error:
                return ServiceResult.failure(error)

            if command.staff_notes:
                booking.staff_notes = command.staff_notes

            if target == BookingStatus.CANCELLED:
                rooms_changed.append(
                    self._cancel_locked(booking, command.staff_notes or STAFF_CANCEL_REASON, ctx.user_id)
                )
                return ServiceResult.success(booking)

            today = self.today()

            if target == BookingStatus.CHECKED_IN:
                if not (booking.check_in_date <= today < booking.check_out_date):
                    return ServiceResult.failure(
                        ValidationError(
                            f"Check-in is only possible from {booking.check_in_date} "
                            f"until before {booking.check_out_date}"
                        )
                    )
                rooms = self._locked_rooms([br.room_id for br in booking.rooms])
                blocked = frozenset(r.id for r in rooms if r.status in ROOM_BLOCKING_STATUSES)
                if blocked:
                    return ServiceResult.failure(
                        ConflictError(message="Some rooms are not ready for check-in", conflicting_room_ids=blocked)
                    )
                for room in rooms:
                    room.status = RoomStatus.OCCUPIED
                booking.check_in_time = datetime.utcnow()
                rooms_changed.append(True)

            elif target == BookingStatus.CHECKED_OUT:
                for room in self._locked_rooms([br.room_id for br in booking.rooms]):
                    room.status = RoomStatus.CLEANING
                booking.check_out_time = datetime.utcnow()
                rooms_changed.append(True)

            elif target == BookingStatus.NO_SHOW:
                if not self._no_show_due(booking):
                    return ServiceResult.failure(
                        ValidationError(f"Check-in date {booking.check_in_date} has not passed yet")
                    )

            booking.status = target
            return ServiceResult.success(booking)

        result = self._transaction(work, f"booking -> {target.value}")

        if result.is_success:
            if any(rooms_changed):
                delete_cache(ROOM_CATALOG_KEY)
            logger.info(
                f"Booking Status | Code={result.data.booking_code} | -> {target.value} | By={ctx.user_id}"
            )
        else:
            logger.info(f"Booking Status Rejected | Booking={command.booking_id} | {result.error}")
        return result

    # ------------------------------------------------------------------
    # Payments (gateway entry points)
    # ------------------------------------------------------------------
    def _payment_by_reference(self, booking_id: int, transaction_id: str, status: PaymentStatus):
        return self.db.query(Payment).filter(
            Payment.booking_id == booking_id,
            Payment.transaction_id == transaction_id,
            Payment.status == status,
        ).first()

    def mark_paid(self, command: RecordPaymentCommand) -> ServiceResult[Booking]:
        """Record a completed gateway payment; PENDING bookings become CONFIRMED.

        Reporting the same transaction reference again returns the booking unchanged.
        """
        self._settle_no_show(command.booking_id)
        duplicate = []

        def work():
            booking = self._locked_booking(command.booking_id)
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))

            if self._payment_by_reference(booking.id, command.transaction_id, PaymentStatus.COMPLETED):
                duplicate.append(True)
                return ServiceResult.success(booking)

            if booking.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN):
                return ServiceResult.failure(
                    InvalidTransitionError(current=booking.status.value, attempted=BookingStatus.CONFIRMED.value)
                )

            paid = to_money(booking.paid_amount) + to_money(command.amount)
            if paid > to_money(booking.total_amount):
                return ServiceResult.failure(
                    ValidationError(
                        f"Payment would exceed the booking total ({booking.total_amount})",
                        field="amount",
                    )
                )

            self.db.add(
                Payment(
                    booking_id=booking.id,
                    amount=to_money(command.amount),
                    method=command.method,
                    status=PaymentStatus.COMPLETED,
                    transaction_id=command.transaction_id,
                )
            )
            booking.paid_amount = paid
            if booking.status == BookingStatus.PENDING:
                booking.status = BookingStatus.CONFIRMED

            self.db.flush()
            return ServiceResult.success(booking)

        result = self._transaction(work, "mark paid")

        if result.is_success:
            booking = result.data
            if duplicate:
                payment_logger.info(
                    f"Payment already recorded | Booking={booking.booking_code} | Ref={command.transaction_id}"
                )
            else:
                payment_logger.info(
                    f"Payment Completed | Booking={booking.booking_code} | Amount={command.amount} | "
                    f"Ref={command.transaction_id} | Status={booking.status.value}"
                )
        else:
            payment_logger.info(f"Payment Rejected | Booking={command.booking_id} | {result.error}")
        return result

    def record_failed_payment(self, command: RecordPaymentCommand) -> ServiceResult[Payment]:
        def work():
            booking = self.db.get(Booking, command.booking_id)
            if not booking:
                return ServiceResult.failure(NotFoundError("Booking", command.booking_id))

            existing = self._payment_by_reference(booking.id, command.transaction_id, PaymentStatus.FAILED)
            if existing:
                return ServiceResult.success(existing)

            payment = Payment(
                booking_id=booking.id,
                amount=to_money(command.amount),
                method=command.method,
                status=PaymentStatus.FAILED,
                transaction_id=command.transaction_id,
            )
            self.db.add(payment)
            self.db.flush()
            return ServiceResult.success(payment)

        result = self._transaction(work, "record failed payment")
        if result.is_success:
            payment_logger.info(
                f"Payment Failed | Booking={command.booking_id} | Ref={command.transaction_id}"
            )
        return result
