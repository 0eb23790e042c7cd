from hotel_booking.models.user import Role, User
from hotel_booking.models.room import Room, RoomType, RoomView
from hotel_booking.models.reservation import BookingChannel, Reservation, ReservationStatus, reservation_rooms

__all__ = [
    "Role", "User",
    "Room", "RoomType", "RoomView",
    "BookingChannel", "Reservation", "ReservationStatus", "reservation_rooms",
]
