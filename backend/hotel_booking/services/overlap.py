"""
Interval overlap checking for room reservations.

Stay windows are half-open ``[check_in, check_out)``: a guest checking out on
day N does not conflict with a guest checking in on day N. Only blocking
reservations (PENDING, CONFIRMED, CHECKED_IN) take part in the check.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.models.reservation import Reservation, ReservationStatus, reservation_rooms

BLOCKING_STATUSES = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
    }
)


def overlaps(
    existing_start: datetime,
    existing_end: datetime,
    candidate_start: datetime,
    candidate_end: datetime,
) -> bool:
    return existing_start < candidate_end and existing_end > candidate_start


def is_blocking(status: ReservationStatus) -> bool:
    return status in BLOCKING_STATUSES


@dataclass(frozen=True)
class Conflict:
    reservation_id: int
    room_id: int


def blocking_overlap_filter(start: datetime, end: datetime):
    """SQL counterpart of ``overlaps`` restricted to blocking reservations."""
    return (
        Reservation.status.in_(BLOCKING_STATUSES),
        Reservation.check_in < end,
        Reservation.check_out > start,
    )


async def find_conflicts(
    db: AsyncSession,
    room_ids: Iterable[int],
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> list[Conflict]:
    """Blocking reservations holding any of ``room_ids`` during ``[start, end)``."""
    room_ids = list(room_ids)
    if not room_ids:
        return []

    query = (
        select(Reservation.id, reservation_rooms.c.room_id)
        .join(reservation_rooms, reservation_rooms.c.reservation_id == Reservation.id)
        .where(
            reservation_rooms.c.room_id.in_(room_ids),
            *blocking_overlap_filter(start, end),
        )
        .order_by(reservation_rooms.c.room_id, Reservation.id)
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)

    result = await db.execute(query)
    return [Conflict(reservation_id=row[0], room_id=row[1]) for row in result.all()]


async def booked_room_ids(db: AsyncSession, start: datetime, end: datetime) -> set[int]:
    """Ids of every room held by a blocking reservation overlapping ``[start, end)``."""
    result = await db.execute(
        select(reservation_rooms.c.room_id)
        .join(Reservation, reservation_rooms.c.reservation_id == Reservation.id)
        .where(*blocking_overlap_filter(start, end))
        .distinct()
    )
    return set(result.scalars().all())
