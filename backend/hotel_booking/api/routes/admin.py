"""
Back-office validation of pending reservations.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.api.deps import get_notifier
from hotel_booking.core.security import Principal, require_roles
from hotel_booking.db.session import get_db
from hotel_booking.models.user import Role
from hotel_booking.schemas.reservation import ReservationResponse, ReservationValidate
from hotel_booking.services.interfaces.notifier import Notifier
from hotel_booking.services.reservation_service import validate_reservation

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/reservations/{reservation_id}/validate", response_model=ReservationResponse)
async def validate_reservation_endpoint(
    reservation_id: int,
    validation: ReservationValidate,
    principal: Principal = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Confirm or reject a PENDING reservation.
    Rejection cancels it and requires a reason, which is sent to the client.
    """
    return await validate_reservation(
        db,
        reservation_id,
        validation.action,
        principal,
        reason=validation.rejection_reason,
        notifier=notifier,
    )
