import itertools
from datetime import date, time

import pytest

from app.core.results import InvalidTransitionError
from app.models.enums import BookingStatus, PaymentMethod, RoomStatus, ServiceBookingStatus
from app.services import booking_state, service_order_state
from app.services.commands import (
    ChangeBookingStatusCommand, ChangeServiceStatusCommand, CreateServiceBookingCommand,
    validate_record_payment,
)

from factories import booking_command, make_orchestrator

DEC_10 = date(2024, 12, 10)
DEC_12 = date(2024, 12, 12)

LEGAL_BOOKING_EDGES = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED),
    (BookingStatus.PENDING, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
    (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT),
    (BookingStatus.CHECKED_IN, BookingStatus.CANCELLED),
}

LEGAL_SERVICE_EDGES = {
    (ServiceBookingStatus.PENDING, ServiceBookingStatus.CONFIRMED),
    (ServiceBookingStatus.PENDING, ServiceBookingStatus.CANCELLED),
    (ServiceBookingStatus.CONFIRMED, ServiceBookingStatus.IN_PROGRESS),
    (ServiceBookingStatus.CONFIRMED, ServiceBookingStatus.CANCELLED),
    (ServiceBookingStatus.IN_PROGRESS, ServiceBookingStatus.COMPLETED),
}


class TestBookingTransitions:

    @pytest.mark.parametrize("current, target", list(itertools.product(BookingStatus, BookingStatus)))
    def test_every_edge(self, current, target):
        error = booking_state.check_transition(current, target)
        if (current, target) in LEGAL_BOOKING_EDGES:
            assert error is None
        else:
            assert isinstance(error, InvalidTransitionError)
            assert error.current == current.value
            assert error.attempted == target.value

    @pytest.mark.parametrize(
        "status", [BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW]
    )
    def test_terminal_states_have_no_exits(self, status):
        assert status in booking_state.TERMINAL_BOOKING_STATUSES
        assert not booking_state.BOOKING_TRANSITIONS[status]

    def test_error_message_names_both_states(self):
        error = booking_state.check_transition(BookingStatus.CHECKED_OUT, BookingStatus.CHECKED_IN)
        assert error.message == "Cannot transition from CHECKED_OUT to CHECKED_IN"


class TestServiceOrderTransitions:

    @pytest.mark.parametrize(
        "current, target", list(itertools.product(ServiceBookingStatus, ServiceBookingStatus))
    )
    def test_every_edge(self, current, target):
        error = service_order_state.check_transition(current, target)
        if (current, target) in LEGAL_SERVICE_EDGES:
            assert error is None
        else:
            assert isinstance(error, InvalidTransitionError)

    @pytest.mark.parametrize("status", [ServiceBookingStatus.PENDING, ServiceBookingStatus.CONFIRMED])
    def test_assignment_allowed_before_start(self, status):
        assert service_order_state.check_assignment(status, None) is None

    @pytest.mark.parametrize(
        "status",
        [ServiceBookingStatus.IN_PROGRESS, ServiceBookingStatus.COMPLETED, ServiceBookingStatus.CANCELLED],
    )
    def test_assignment_rejected_once_started_or_closed(self, status):
        error = service_order_state.check_assignment(status, None)
        assert isinstance(error, InvalidTransitionError)
        assert error.attempted == "ASSIGN_STAFF"

    def test_reassignment_rejected(self):
        error = service_order_state.check_assignment(ServiceBookingStatus.CONFIRMED, 7)
        assert isinstance(error, InvalidTransitionError)
        assert "already assigned" in error.message


# ── illegal edges leave the stored row alone ─────────────────────────

ILLEGAL_BOOKING_EDGES = [
    pair for pair in itertools.product(BookingStatus, BookingStatus) if pair not in LEGAL_BOOKING_EDGES
]

ILLEGAL_SERVICE_EDGES = [
    pair for pair in itertools.product(ServiceBookingStatus, ServiceBookingStatus)
    if pair not in LEGAL_SERVICE_EDGES
]


def _force_status(db, row, status):
    row.status = status
    db.commit()


class TestStoredStatusOnRejectedEdge:

    @pytest.mark.parametrize("current, target", ILLEGAL_BOOKING_EDGES)
    def test_booking_row_unchanged(self, db_session, hotel, guest_ctx, staff_ctx, orchestrator, current, target):
        booking = orchestrator.create_booking(
            guest_ctx, booking_command(hotel.guest.id, [hotel.r101.id], DEC_10, DEC_12)
        ).data
        _force_status(db_session, booking, current)

        result = orchestrator.change_status(
            staff_ctx, ChangeBookingStatusCommand(booking_id=booking.id, target=target, staff_notes="desk note")
        )

        assert isinstance(result.error, InvalidTransitionError)
        db_session.refresh(booking)
        assert booking.status == current
        assert booking.staff_notes is None
        db_session.refresh(hotel.r101)
        assert hotel.r101.status == RoomStatus.AVAILABLE

    @pytest.mark.parametrize("current, target", ILLEGAL_SERVICE_EDGES)
    def test_service_order_row_unchanged(
        self, db_session, hotel, guest_ctx, staff_ctx, orchestrator, service_orders, current, target,
    ):
        booking = orchestrator.create_booking(
            guest_ctx, booking_command(hotel.guest.id, [hotel.r101.id], DEC_10, DEC_12)
        ).data
        orchestrator.mark_paid(
            validate_record_payment(booking.id, str(booking.total_amount), PaymentMethod.CASH, "TX-STAY")
        )
        checked_in = make_orchestrator(db_session, today=DEC_10).change_status(
            staff_ctx, ChangeBookingStatusCommand(booking_id=booking.id, target=BookingStatus.CHECKED_IN)
        )
        assert checked_in.is_success, checked_in.error

        order = service_orders.create(guest_ctx, CreateServiceBookingCommand(
            service_id=hotel.breakfast.id, booking_id=booking.id,
            scheduled_date=DEC_10, scheduled_time=time(7, 30), quantity=1,
        )).data
        _force_status(db_session, order, current)

        result = service_orders.change_status(
            staff_ctx, ChangeServiceStatusCommand(order.id, target, staff_notes="desk note")
        )

        assert isinstance(result.error, InvalidTransitionError)
        db_session.refresh(order)
        assert order.status == current
        assert order.staff_notes is None
        assert order.started_at is None
        assert order.completed_at is None
        assert order.cancelled_at is None
