"""
Reception desk endpoints: bookings on behalf of clients, the availability
calendar and stay status updates.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.api.deps import get_notifier
from hotel_booking.core.security import Principal, require_roles
from hotel_booking.db.session import get_db
from hotel_booking.models.user import Role
from hotel_booking.schemas.reservation import (
    AgentBookingCreate,
    BookingRequest,
    ReservationResponse,
    ReservationStatusUpdate,
)
from hotel_booking.schemas.room import AvailabilityGridRequest, RoomAvailability
from hotel_booking.services.availability_service import availability_grid
from hotel_booking.services.booking_service import book
from hotel_booking.services.interfaces.notifier import Notifier
from hotel_booking.services.reservation_service import update_stay_status

router = APIRouter(prefix="/agent", tags=["Reception"])

require_staff = require_roles(Role.AGENT, Role.ADMIN)


@router.post("/reservations", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_agent_reservation(
    booking_data: AgentBookingCreate,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Book for an existing client (``client_id``) or a walk-in guest
    (``new_client``). The reservation starts PENDING until validated.
    """
    request = BookingRequest.model_validate(booking_data.model_dump())
    return await book(db, request, principal, notifier)


@router.post("/availability", response_model=list[RoomAvailability])
async def availability_calendar(
    grid: AvailabilityGridRequest,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Per-room availability from ``start_date`` through ``end_date`` (both inclusive)."""
    return await availability_grid(db, grid.start_date, grid.end_date, grid.room_type)


@router.post("/reservations/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: int,
    update: ReservationStatusUpdate,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Check a guest in or out, or archive a finished stay."""
    return await update_stay_status(db, reservation_id, update.action, principal, notifier)
