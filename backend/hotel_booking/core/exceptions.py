"""
Typed booking errors.

Every error carries a machine-readable ``kind`` and a human-readable message.
The API layer renders them as ``{"detail": message, "kind": kind}`` with the
HTTP status attached to the class.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for all errors raised by the booking engine."""

    kind = "BookingError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request could not be processed"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class DateInvalid(BookingError):
    kind = "DateInvalid"
    default_message = "Check-out must be after check-in and check-in cannot be in the past"


class GuestCountInvalid(BookingError):
    kind = "GuestCountInvalid"
    default_message = "At least one adult is required"


class CapacityExceeded(BookingError):
    kind = "CapacityExceeded"
    default_message = "Guest count exceeds the capacity of the selected rooms"


class ClientResolutionFailed(BookingError):
    kind = "ClientResolutionFailed"
    default_message = "Client information (existing id or new client details) is required"


class RoomUnavailable(BookingError):
    kind = "RoomUnavailable"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Room no longer available for the selected dates"


class NotEligible(BookingError):
    kind = "NotEligible"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This action is not allowed for the reservation in its current state"


class AlreadyCanceled(BookingError):
    kind = "AlreadyCanceled"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Reservation is already canceled"


class RoomInUse(BookingError):
    kind = "RoomInUse"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Room has active or upcoming reservations"


class DuplicateRoomNumber(BookingError):
    kind = "DuplicateRoomNumber"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Room number already exists"


class PriceMismatch(BookingError):
    kind = "PriceMismatch"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Price discrepancy detected. Please refresh your selection and try again."


class NotFound(BookingError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Forbidden(BookingError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to access this resource"


class Internal(BookingError):
    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "The reservation could not be processed. Please try again later."
