"""
Room catalog maintenance (back-office).
"""

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import DuplicateRoomNumber, NotFound, RoomInUse
from hotel_booking.core.logging import get_logger
from hotel_booking.models.reservation import Reservation, reservation_rooms
from hotel_booking.models.room import Room
from hotel_booking.schemas.room import RoomCreate, RoomUpdate
from hotel_booking.services.overlap import BLOCKING_STATUSES

logger = get_logger(__name__)


async def _ensure_room_number_free(db: AsyncSession, room_number: str, exclude_id: int | None = None) -> None:
    query = select(Room.id).where(Room.room_number == room_number)
    if exclude_id is not None:
        query = query.where(Room.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateRoomNumber(f"Room number '{room_number}' already exists.")


async def _commit_room(db: AsyncSession, room: Room) -> None:
    try:
        await db.commit()
    except IntegrityError:
        # lost a race on the unique room number
        await db.rollback()
        raise DuplicateRoomNumber(f"Room number '{room.room_number}' already exists.")


async def create_room(db: AsyncSession, room_data: RoomCreate) -> Room:
    await _ensure_room_number_free(db, room_data.room_number)

    room = Room(**room_data.model_dump())
    db.add(room)
    await _commit_room(db, room)
    await db.refresh(room)

    logger.info("room_created", room_id=room.id, room_number=room.room_number)
    return room


async def get_room(db: AsyncSession, room_id: int, for_update: bool = False) -> Room:
    room = await db.get(Room, room_id, with_for_update=for_update, populate_existing=for_update)
    if room is None:
        raise NotFound(f"Room {room_id} not found")
    return room


async def list_rooms(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    include_archived: bool = False,
) -> tuple[list[Room], int]:
    query = select(Room)
    if not include_archived:
        query = query.where(Room.is_active.is_(True))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(
        query.order_by(Room.room_number.asc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total


async def update_room(db: AsyncSession, room_id: int, room_data: RoomUpdate) -> Room:
    room = await get_room(db, room_id)
    changes = room_data.model_dump(exclude_unset=True)

    if "room_number" in changes and changes["room_number"] != room.room_number:
        await _ensure_room_number_free(db, changes["room_number"], exclude_id=room_id)

    for key, value in changes.items():
        setattr(room, key, value)
    await _commit_room(db, room)
    await db.refresh(room)

    logger.info("room_updated", room_id=room.id, fields=sorted(changes))
    return room


async def delete_room(db: AsyncSession, room_id: int) -> bool:
    """
    Remove a room from the catalog.

    Refused while any blocking reservation holds the room. A room that only
    appears in finished or canceled reservations is archived instead of
    deleted so those reservations keep their rooms. Returns True if archived.
    """
    # bookings lock the same row, so none can commit between the count and the write
    room = await get_room(db, room_id, for_update=True)

    linked = select(Reservation.id).join(
        reservation_rooms, reservation_rooms.c.reservation_id == Reservation.id
    ).where(reservation_rooms.c.room_id == room_id)

    active_count = (
        await db.execute(
            select(func.count()).select_from(
                linked.where(Reservation.status.in_(BLOCKING_STATUSES)).subquery()
            )
        )
    ).scalar()
    if active_count:
        logger.warning("room_delete_refused", room_id=room_id, active_reservations=active_count)
        raise RoomInUse(
            f"Cannot delete room. It has {active_count} active or upcoming reservation(s). "
            "Please cancel or reassign them first."
        )

    has_history = (await db.execute(select(exists(linked)))).scalar()
    if has_history:
        room.is_active = False
        await db.commit()
        logger.info("room_archived", room_id=room_id)
        return True

    await db.delete(room)
    try:
        await db.commit()
    except IntegrityError:
        # link rows written outside the booking path (FK RESTRICT)
        await db.rollback()
        logger.warning("room_delete_refused", room_id=room_id, reason="referenced")
        raise RoomInUse("Cannot delete room. It is referenced by reservations.")
    logger.info("room_deleted", room_id=room_id)
    return False
