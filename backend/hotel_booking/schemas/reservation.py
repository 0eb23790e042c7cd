"""
Pydantic schemas for reservation requests and responses.
"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from hotel_booking.models.reservation import BookingChannel, ReservationStatus
from hotel_booking.models.room import RoomType


class NewClientDetails(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)


class StayRequest(BaseModel):
    room_ids: list[int] = Field(..., min_length=1)
    check_in: datetime
    check_out: datetime
    adults: int = 1
    children: int = 0
    quoted_total: Optional[Decimal] = None
    promo_code: Optional[str] = Field(None, max_length=50)

    @field_validator("room_ids")
    @classmethod
    def unique_rooms(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class WebBookingCreate(StayRequest):
    payment_authorized: bool = False


class AgentBookingCreate(StayRequest):
    client_id: Optional[int] = None
    new_client: Optional[NewClientDetails] = None
    channel: BookingChannel = BookingChannel.RECEPTION

    @field_validator("channel")
    @classmethod
    def staff_channel(cls, value: BookingChannel) -> BookingChannel:
        if value == BookingChannel.WEB:
            raise ValueError("Staff bookings must use a staff channel (RECEPTION or PHONE)")
        return value


class BookingRequest(StayRequest):
    """Channel-independent booking request handed to the booking service."""

    channel: BookingChannel
    client_id: Optional[int] = None
    new_client: Optional[NewClientDetails] = None
    payment_authorized: bool = False


class ReservationEdit(BaseModel):
    check_in: datetime
    check_out: datetime
    adults: int
    children: int = 0


class ValidationAction(str, enum.Enum):
    CONFIRM = "confirm"
    REJECT = "reject"


class ReservationValidate(BaseModel):
    action: ValidationAction
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class StaffStatusAction(str, enum.Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    COMPLETE = "complete"


class ReservationStatusUpdate(BaseModel):
    action: StaffStatusAction


class ReservationStatusFilter(str, enum.Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReservedRoom(BaseModel):
    id: int
    room_number: str
    name: str
    type: RoomType
    max_guests: int
    price_per_night: Decimal

    model_config = {"from_attributes": True}


class ReservationResponse(BaseModel):
    id: int
    client_id: int
    created_by_id: Optional[int]
    check_in: datetime
    check_out: datetime
    adults: int
    children: int
    total_price: Decimal
    promo_code: Optional[str]
    source: BookingChannel
    status: ReservationStatus
    status_reason: Optional[str]
    rooms: list[ReservedRoom]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationDetail(ReservationResponse):
    nights: int
    can_edit: bool
    can_cancel: bool
    stay_finished: bool
    cancellation_policy: str


class ReservationCancelResponse(BaseModel):
    message: str
    reservation_id: int
    status: ReservationStatus
