"""Request validation shared by search, booking and edit. Runs before any DB work."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hotel_booking.core.exceptions import DateInvalid, GuestCountInvalid
from hotel_booking.db.base import ensure_utc, utcnow


@dataclass(frozen=True)
class Stay:
    check_in: datetime
    check_out: datetime
    adults: int
    children: int

    @property
    def guests(self) -> int:
        return self.adults + self.children


def validate_window(check_in: datetime, check_out: datetime, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    check_in, check_out = ensure_utc(check_in), ensure_utc(check_out)
    now = ensure_utc(now or utcnow())
    if check_out <= check_in:
        raise DateInvalid("Check-out must be after check-in.")
    if check_in.date() < now.date():
        raise DateInvalid("Check-in date cannot be in the past.")
    return check_in, check_out


def validate_guests(adults: int, children: int) -> None:
    if adults < 1:
        raise GuestCountInvalid("At least one adult is required.")
    if children < 0:
        raise GuestCountInvalid("Children count cannot be negative.")


def validate_stay(
    check_in: datetime,
    check_out: datetime,
    adults: int,
    children: int = 0,
    now: Optional[datetime] = None,
) -> Stay:
    check_in, check_out = validate_window(check_in, check_out, now)
    validate_guests(adults, children)
    return Stay(check_in=check_in, check_out=check_out, adults=adults, children=children)
