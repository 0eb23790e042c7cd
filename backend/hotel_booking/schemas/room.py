"""
Pydantic schemas for room catalog and availability requests/responses.
"""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from hotel_booking.models.room import RoomType, RoomView


class RoomBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    room_number: str = Field(..., min_length=1, max_length=20)
    type: RoomType
    floor: int = 0
    price_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    max_guests: int = Field(..., ge=1)
    beds: Optional[int] = Field(None, ge=0)
    bed_configuration: Optional[str] = Field(None, max_length=255)
    view: Optional[RoomView] = None
    characteristics: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    image_urls: list[str] = Field(default_factory=list)
    sq_meters: Optional[float] = Field(None, gt=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    featured: bool = False


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    room_number: Optional[str] = Field(None, min_length=1, max_length=20)
    type: Optional[RoomType] = None
    floor: Optional[int] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_guests: Optional[int] = Field(None, ge=1)
    beds: Optional[int] = Field(None, ge=0)
    bed_configuration: Optional[str] = Field(None, max_length=255)
    view: Optional[RoomView] = None
    characteristics: Optional[list[str]] = None
    image_url: Optional[str] = None
    image_urls: Optional[list[str]] = None
    sq_meters: Optional[float] = Field(None, gt=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    featured: Optional[bool] = None


class RoomResponse(RoomBase):
    id: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RoomListResponse(BaseModel):
    rooms: list[RoomResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class RoomDeleteResponse(BaseModel):
    message: str
    room_id: int
    archived: bool


class SortOrder(str, enum.Enum):
    RECOMMENDED = "recommended"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING_DESC = "rating_desc"


class RoomFilters(BaseModel):
    max_price: Optional[Decimal] = Field(None, ge=0)
    views: list[RoomView] = Field(default_factory=list)
    bed_types: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    room_type: Optional[RoomType] = None


class AvailableRoom(RoomResponse):
    nights: int
    stay_price: Decimal
    currency: str


class RoomAvailability(BaseModel):
    room_id: int
    room_number: str
    room_name: str
    room_type: RoomType
    max_guests: int
    is_available: bool
    conflicting_reservation_ids: list[int]


class AvailabilityGridRequest(BaseModel):
    start_date: date
    end_date: date  # inclusive
    room_type: Optional[RoomType] = None
