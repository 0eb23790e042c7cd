"""
Room catalog and availability endpoints.

The catalog listing is cached in Redis; availability search never is.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.api.deps import get_room_cache
from hotel_booking.core.config import get_settings
from hotel_booking.core.logging import get_logger
from hotel_booking.core.security import Principal, require_roles
from hotel_booking.db.base import ensure_utc
from hotel_booking.db.session import get_db
from hotel_booking.models.room import RoomType, RoomView
from hotel_booking.models.user import Role
from hotel_booking.schemas.room import (
    AvailableRoom,
    RoomAvailability,
    RoomCreate,
    RoomDeleteResponse,
    RoomFilters,
    RoomListResponse,
    RoomResponse,
    RoomUpdate,
    SortOrder,
)
from hotel_booking.services.availability_service import check_room_availability, find_available
from hotel_booking.services.cache_service import RoomCache
from hotel_booking.services.pricing import calculate_total, count_nights
from hotel_booking.services.room_service import create_room, delete_room, get_room, list_rooms, update_room

logger = get_logger(__name__)
router = APIRouter(prefix="/rooms", tags=["Rooms"])

require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.AGENT, Role.ADMIN)


@router.get("/search", response_model=list[AvailableRoom])
async def search_rooms(
    check_in: datetime,
    check_out: datetime,
    adults: int = Query(1),
    children: int = Query(0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    views: list[RoomView] = Query(default=[]),
    bed_types: list[str] = Query(default=[]),
    amenities: list[str] = Query(default=[]),
    room_type: Optional[RoomType] = None,
    sort: SortOrder = SortOrder.RECOMMENDED,
    db: AsyncSession = Depends(get_db),
):
    """
    Rooms free for the whole stay that fit the party, with the stay price.

    The result is a snapshot; booking re-checks availability.
    """
    filters = RoomFilters(
        max_price=max_price,
        views=views,
        bed_types=bed_types,
        amenities=amenities,
        room_type=room_type,
    )
    rooms = await find_available(db, check_in, check_out, adults, children, filters, sort)

    check_in, check_out = ensure_utc(check_in), ensure_utc(check_out)
    currency = get_settings().CURRENCY
    nights = count_nights(check_in, check_out)
    return [
        AvailableRoom(
            **RoomResponse.model_validate(room).model_dump(),
            nights=nights,
            stay_price=calculate_total([room], check_in, check_out),
            currency=currency,
        )
        for room in rooms
    ]


@router.get("", response_model=RoomListResponse)
async def list_rooms_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    cache: RoomCache = Depends(get_room_cache),
):
    """
    List active rooms with pagination.
    Results are cached in Redis and invalidated on any catalog change.
    """
    cached = await cache.get_rooms(page, page_size)
    if cached:
        logger.info("rooms_list_cache_hit", page=page)
        cached["cached"] = True
        return RoomListResponse(**cached)

    rooms, total = await list_rooms(db, page, page_size)
    response_data = {
        "rooms": [RoomResponse.model_validate(r).model_dump(mode="json") for r in rooms],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await cache.set_rooms(page, page_size, response_data)
    return RoomListResponse(**response_data)


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room_endpoint(
    room_data: RoomCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: RoomCache = Depends(get_room_cache),
):
    room = await create_room(db, room_data)
    await cache.invalidate_rooms()
    return room


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room_endpoint(room_id: int, db: AsyncSession = Depends(get_db)):
    return await get_room(db, room_id)


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room_endpoint(
    room_id: int,
    room_data: RoomUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: RoomCache = Depends(get_room_cache),
):
    room = await update_room(db, room_id, room_data)
    await cache.invalidate_rooms()
    return room


@router.delete("/{room_id}", response_model=RoomDeleteResponse)
async def delete_room_endpoint(
    room_id: int,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: RoomCache = Depends(get_room_cache),
):
    """
    Delete a room. Refused while it has active or upcoming reservations;
    rooms with only past reservations are archived instead.
    """
    archived = await delete_room(db, room_id)
    await cache.invalidate_rooms()
    return RoomDeleteResponse(
        message="Room archived" if archived else "Room deleted",
        room_id=room_id,
        archived=archived,
    )


@router.get("/{room_id}/availability", response_model=RoomAvailability)
async def room_availability_endpoint(
    room_id: int,
    start: datetime,
    end: datetime,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Is this room free for ``[start, end)``, and which reservations hold it if not."""
    return await check_room_availability(db, room_id, start, end)
