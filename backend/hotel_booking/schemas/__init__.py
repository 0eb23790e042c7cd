from hotel_booking.schemas.room import (
    AvailabilityGridRequest, AvailableRoom, RoomAvailability, RoomCreate, RoomDeleteResponse,
    RoomFilters, RoomListResponse, RoomResponse, RoomUpdate, SortOrder,
)
from hotel_booking.schemas.reservation import (
    AgentBookingCreate, BookingRequest, NewClientDetails, ReservationCancelResponse, ReservationDetail,
    ReservationEdit, ReservationResponse, ReservationStatusFilter, ReservationStatusUpdate,
    ReservationValidate, WebBookingCreate,
)

__all__ = [
    "AvailabilityGridRequest", "AvailableRoom", "RoomAvailability", "RoomCreate", "RoomDeleteResponse",
    "RoomFilters", "RoomListResponse", "RoomResponse", "RoomUpdate", "SortOrder",
    "AgentBookingCreate", "BookingRequest", "NewClientDetails", "ReservationCancelResponse",
    "ReservationDetail", "ReservationEdit", "ReservationResponse", "ReservationStatusFilter",
    "ReservationStatusUpdate", "ReservationValidate", "WebBookingCreate",
]
