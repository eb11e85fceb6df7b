from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.enums import BookingSource, BookingStatus, PaymentMethod, PaymentStatus


class GuestDetails(BaseModel):
    guest_name: str = Field(min_length=2, max_length=100)
    guest_email: EmailStr
    guest_phone: str = Field(min_length=6, max_length=20)
    guest_id_number: Optional[str] = None
    number_of_guests: int = Field(gt=0)
    special_requests: Optional[str] = None


class BookingCreate(GuestDetails):
    room_ids: List[int] = Field(min_length=1)
    check_in_date: date
    check_out_date: date
    promotion_code: Optional[str] = None
    booking_source: BookingSource = BookingSource.WEBSITE
    # Staff may book on behalf of a guest account
    user_id: Optional[int] = None


class BookingUpdate(BaseModel):
    room_ids: Optional[List[int]] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = None


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    staff_notes: Optional[str] = None


class BookingCancel(BaseModel):
    cancel_reason: str


class AvailabilityQuery(BaseModel):
    room_ids: List[int] = Field(min_length=1)
    check_in_date: date
    check_out_date: date


class AvailabilityOut(BaseModel):
    available: bool
    conflicting_room_ids: List[int]


class PaymentCreate(BaseModel):
    amount: float = Field(gt=0)
    method: PaymentMethod
    transaction_id: str = Field(min_length=1)


class PaymentOut(BaseModel):
    id: int
    booking_id: int
    amount: float
    method: PaymentMethod
    status: PaymentStatus
    transaction_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingRoomOut(BaseModel):
    room_id: int
    price_per_night: float
    number_of_nights: int
    total_price: float

    model_config = {"from_attributes": True}


class BookingOut(BaseModel):
    id: int
    booking_code: str
    user_id: int

    guest_name: str
    guest_email: str
    guest_phone: str
    guest_id_number: Optional[str] = None

    check_in_date: date
    check_out_date: date
    number_of_guests: int
    number_of_nights: int

    subtotal: float
    tax_amount: float
    service_charge: float
    discount_amount: float
    total_amount: float
    paid_amount: float

    status: BookingStatus
    booking_source: BookingSource
    special_requests: Optional[str] = None
    staff_notes: Optional[str] = None

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: datetime

    rooms: List[BookingRoomOut] = []

    model_config = {"from_attributes": True}


class CheckoutSummaryOut(BaseModel):
    booking_code: str
    status: BookingStatus
    room_charges: float
    tax_amount: float
    service_charge: float
    discount_amount: float
    total_amount: float
    service_orders_amount: float
    paid_amount: float
    balance_due: float
