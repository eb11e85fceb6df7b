from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, Date, Time, DateTime, Numeric, JSON, ForeignKey, Enum
)
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import ServicePricingType, ServiceBookingStatus


class Service(Base):
    """In-stay service catalog entry (read-only for the reservation core)."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)

    pricing_type = Column(Enum(ServicePricingType), nullable=False, default=ServicePricingType.FIXED)
    base_price = Column(Numeric(14, 2), nullable=False)
    duration = Column(Integer, nullable=True)  # minutes

    requires_booking = Column(Boolean, nullable=False, default=False)
    # {"monday": {"open": "08:00", "close": "22:00", "is_closed": false}, ...}
    operating_hours = Column(JSON, nullable=True)
    max_capacity = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)


class ServiceBooking(Base):
    __tablename__ = "service_bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_code = Column(String, unique=True, nullable=False, index=True)

    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)

    # Snapshot of the stay at order time
    guest_name = Column(String, nullable=False)
    guest_phone = Column(String, nullable=False)
    room_number = Column(String, nullable=False)

    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)

    unit_price = Column(Numeric(14, 2), nullable=False)
    total_price = Column(Numeric(14, 2), nullable=False)

    status = Column(Enum(ServiceBookingStatus), nullable=False, default=ServiceBookingStatus.PENDING, index=True)
    special_requests = Column(String, nullable=True)

    assigned_staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    staff_notes = Column(String, nullable=True)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    service = relationship("Service")
    booking = relationship("Booking", back_populates="service_bookings")
    assigned_staff = relationship("User", foreign_keys=[assigned_staff_id])
