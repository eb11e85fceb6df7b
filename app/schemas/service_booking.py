from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import ServiceBookingStatus, UserRole


class ServiceBookingCreate(BaseModel):
    service_id: int
    booking_id: int
    scheduled_date: date
    scheduled_time: time
    quantity: int = Field(default=1, gt=0)
    duration: Optional[int] = Field(default=None, gt=0)
    special_requests: Optional[str] = None


class ServiceBookingStatusUpdate(BaseModel):
    status: ServiceBookingStatus
    staff_notes: Optional[str] = None


class AssignStaff(BaseModel):
    staff_id: int
    staff_notes: Optional[str] = None


class ServiceBookingCancel(BaseModel):
    cancel_reason: str


class ServiceBookingOut(BaseModel):
    id: int
    booking_code: str
    service_id: int
    booking_id: int

    guest_name: str
    guest_phone: str
    room_number: str

    scheduled_date: date
    scheduled_time: time
    duration: Optional[int] = None
    quantity: int
    unit_price: float
    total_price: float

    status: ServiceBookingStatus
    special_requests: Optional[str] = None
    assigned_staff_id: Optional[int] = None
    staff_notes: Optional[str] = None

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StaffOut(BaseModel):
    id: int
    full_name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}
