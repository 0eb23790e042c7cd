"""
Room availability queries.

All functions here are read-only snapshots: a room reported free can be taken
by another booking a moment later. The booking service re-checks under lock
before it writes anything.
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import DateInvalid, NotFound
from hotel_booking.core.logging import get_logger
from hotel_booking.db.base import ensure_utc
from hotel_booking.models.room import Room, RoomType
from hotel_booking.schemas.room import RoomAvailability, RoomFilters, SortOrder
from hotel_booking.services.overlap import booked_room_ids, find_conflicts
from hotel_booking.services.validation import validate_stay

logger = get_logger(__name__)

_ORDERINGS = {
    SortOrder.PRICE_ASC: (Room.price_per_night.asc(),),
    SortOrder.PRICE_DESC: (Room.price_per_night.desc(),),
    SortOrder.RATING_DESC: (Room.rating.desc().nulls_last(), Room.featured.desc()),
    SortOrder.RECOMMENDED: (
        Room.featured.desc(),
        Room.rating.desc().nulls_last(),
        Room.price_per_night.asc(),
    ),
}


async def find_available(
    db: AsyncSession,
    check_in: datetime,
    check_out: datetime,
    adults: int,
    children: int = 0,
    filters: Optional[RoomFilters] = None,
    sort: SortOrder = SortOrder.RECOMMENDED,
    now: Optional[datetime] = None,
) -> list[Room]:
    """Active rooms free for the whole of ``[check_in, check_out)`` that fit the party."""
    stay = validate_stay(check_in, check_out, adults, children, now)
    filters = filters or RoomFilters()

    booked = await booked_room_ids(db, stay.check_in, stay.check_out)

    query = select(Room).where(Room.is_active.is_(True), Room.max_guests >= stay.guests)
    if booked:
        query = query.where(Room.id.not_in(booked))
    if filters.max_price is not None:
        query = query.where(Room.price_per_night <= filters.max_price)
    if filters.views:
        query = query.where(Room.view.in_(filters.views))
    if filters.room_type is not None:
        query = query.where(Room.type == filters.room_type)
    if filters.bed_types:
        query = query.where(or_(*(Room.bed_configuration.ilike(f"%{bed}%") for bed in filters.bed_types)))

    query = query.order_by(*_ORDERINGS[sort], Room.id.asc())
    rooms = list((await db.execute(query)).scalars().all())

    # amenity tags live in a JSON column; match any of the requested tags
    if filters.amenities:
        wanted = {tag.lower() for tag in filters.amenities}
        rooms = [room for room in rooms if wanted & {tag.lower() for tag in (room.characteristics or [])}]

    logger.info(
        "availability_searched",
        check_in=stay.check_in.isoformat(),
        check_out=stay.check_out.isoformat(),
        guests=stay.guests,
        booked_rooms=len(booked),
        available_rooms=len(rooms),
    )
    return rooms


async def check_room_availability(
    db: AsyncSession,
    room_id: int,
    start: datetime,
    end: datetime,
) -> RoomAvailability:
    """Is this room free for ``[start, end)``, and if not, which reservations hold it?"""
    start, end = ensure_utc(start), ensure_utc(end)
    if end <= start:
        raise DateInvalid("End of the range must be after its start.")

    room = await db.get(Room, room_id)
    if room is None:
        raise NotFound(f"Room {room_id} not found")

    conflicts = await find_conflicts(db, [room_id], start, end)
    return _availability(room, [c.reservation_id for c in conflicts])


def day_range(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Half-open UTC window covering ``start_date`` through ``end_date`` inclusive."""
    if end_date < start_date:
        raise DateInvalid("End date must not be before start date.")
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


async def availability_grid(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    room_type: Optional[RoomType] = None,
) -> list[RoomAvailability]:
    """Per-room availability over whole days, for the reception calendar."""
    start, end = day_range(start_date, end_date)

    query = select(Room).where(Room.is_active.is_(True))
    if room_type is not None:
        query = query.where(Room.type == room_type)
    rooms = list((await db.execute(query.order_by(Room.floor.asc(), Room.room_number.asc()))).scalars().all())

    conflicts_by_room: dict[int, list[int]] = defaultdict(list)
    for conflict in await find_conflicts(db, [room.id for room in rooms], start, end):
        conflicts_by_room[conflict.room_id].append(conflict.reservation_id)

    return [_availability(room, conflicts_by_room.get(room.id, [])) for room in rooms]


def _availability(room: Room, conflicting_ids: list[int]) -> RoomAvailability:
    return RoomAvailability(
        room_id=room.id,
        room_number=room.room_number,
        room_name=room.name,
        room_type=room.type,
        max_guests=room.max_guests,
        is_available=not conflicting_ids,
        conflicting_reservation_ids=conflicting_ids,
    )
