from datetime import datetime

from sqlalchemy import (
    CheckConstraint, Column, Integer, String, Date, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import BookingStatus, BookingSource


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_code = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Guest contact
    guest_name = Column(String, nullable=False)
    guest_email = Column(String, nullable=False)
    guest_phone = Column(String, nullable=False)
    guest_id_number = Column(String, nullable=True)

    check_in_date = Column(Date, nullable=False, index=True)
    check_out_date = Column(Date, nullable=False, index=True)
    number_of_guests = Column(Integer, nullable=False)
    number_of_nights = Column(Integer, nullable=False)

    # Money (totalAmount = subtotal + tax + service_charge - discount, floored at 0)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    service_charge = Column(Numeric(14, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True)
    booking_source = Column(Enum(BookingSource), nullable=False, default=BookingSource.WEBSITE)
    promotion_id = Column(Integer, ForeignKey("promotions.id"), nullable=True)

    special_requests = Column(String, nullable=True)
    staff_notes = Column(String, nullable=True)

    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)

    # Cancellation metadata
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancel_reason = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    promotion = relationship("Promotion")
    rooms = relationship(
        "BookingRoom",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingRoom.room_id",
    )
    payments = relationship("Payment", back_populates="booking", order_by="Payment.id")
    service_bookings = relationship("ServiceBooking", back_populates="booking")

    __table_args__ = (CheckConstraint("check_out_date > check_in_date", name="ck_booking_date_range"),)


class BookingRoom(Base):
    __tablename__ = "booking_rooms"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)

    # Rate snapshot; later RoomType price changes never touch it
    price_per_night = Column(Numeric(14, 2), nullable=False)
    number_of_nights = Column(Integer, nullable=False)
    total_price = Column(Numeric(14, 2), nullable=False)

    booking = relationship("Booking", back_populates="rooms")
    room = relationship("Room", back_populates="booking_rooms")

    __table_args__ = (UniqueConstraint("booking_id", "room_id", name="uq_booking_room"),)
