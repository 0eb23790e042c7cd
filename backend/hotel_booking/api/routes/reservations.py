"""
Client reservation endpoints: online booking, history, edit and cancel.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.api.deps import get_notifier, get_policy
from hotel_booking.core.security import Principal, require_roles
from hotel_booking.db.session import get_db
from hotel_booking.models.reservation import BookingChannel, Reservation
from hotel_booking.models.user import Role
from hotel_booking.schemas.reservation import (
    BookingRequest,
    ReservationCancelResponse,
    ReservationDetail,
    ReservationEdit,
    ReservationResponse,
    ReservationStatusFilter,
    WebBookingCreate,
)
from hotel_booking.services.booking_service import book
from hotel_booking.services.interfaces.notifier import Notifier
from hotel_booking.services.reservation_service import (
    cancel_reservation,
    edit_reservation,
    get_client_reservation,
    list_client_reservations,
    reservation_detail,
)
from hotel_booking.services.state_machine import ReservationPolicy

router = APIRouter(prefix="/reservations", tags=["Reservations"])

require_client = require_roles(Role.CLIENT)


def to_detail(reservation: Reservation, policy: ReservationPolicy) -> ReservationDetail:
    return ReservationDetail(
        **ReservationResponse.model_validate(reservation).model_dump(),
        **reservation_detail(reservation, policy),
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    booking_data: WebBookingCreate,
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Book one or more rooms online.

    The payment must already be authorised; the reservation is confirmed
    immediately. Availability is re-checked under lock, so a room taken
    since the search returns 409.
    """
    request = BookingRequest.model_validate({**booking_data.model_dump(), "channel": BookingChannel.WEB})
    return await book(db, request, principal, notifier)


@router.get("", response_model=list[ReservationDetail])
async def list_my_reservations(
    status_filter: ReservationStatusFilter = Query(ReservationStatusFilter.ALL, alias="status"),
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    policy: ReservationPolicy = Depends(get_policy),
):
    """The caller's reservations, newest first."""
    reservations = await list_client_reservations(db, principal.user_id, status_filter)
    return [to_detail(r, policy) for r in reservations]


@router.get("/{reservation_id}", response_model=ReservationDetail)
async def get_my_reservation(
    reservation_id: int,
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    policy: ReservationPolicy = Depends(get_policy),
):
    reservation = await get_client_reservation(db, reservation_id, principal)
    return to_detail(reservation, policy)


@router.put("/{reservation_id}", response_model=ReservationDetail)
async def edit_my_reservation(
    reservation_id: int,
    changes: ReservationEdit,
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    policy: ReservationPolicy = Depends(get_policy),
    notifier: Notifier = Depends(get_notifier),
):
    """Change dates and guests of a confirmed reservation. The price is recomputed."""
    reservation = await edit_reservation(db, reservation_id, changes, principal, policy, notifier)
    return to_detail(reservation, policy)


@router.post("/{reservation_id}/cancel", response_model=ReservationCancelResponse)
async def cancel_my_reservation(
    reservation_id: int,
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
    policy: ReservationPolicy = Depends(get_policy),
    notifier: Notifier = Depends(get_notifier),
):
    reservation = await cancel_reservation(db, reservation_id, principal, policy, notifier)
    return ReservationCancelResponse(
        message="Reservation cancelled successfully",
        reservation_id=reservation.id,
        status=reservation.status,
    )
