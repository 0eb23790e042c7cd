"""
Reservation mutation service: reads, client edits and cancellations, and
staff lifecycle actions.

Every mutation loads the reservation with a row lock, checks ownership and
the lifecycle guards, writes, commits, and only then emits its notification.
Date edits lock the reservation's rooms the same way bookings do, so an edit
and a booking for the same room cannot both pass the overlap check.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import (
    AlreadyCanceled,
    BookingError,
    Forbidden,
    Internal,
    NotFound,
    RoomUnavailable,
)
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import record_transition
from hotel_booking.core.security import Principal
from hotel_booking.db.base import utcnow
from hotel_booking.models.reservation import Reservation, ReservationStatus
from hotel_booking.schemas.reservation import (
    ReservationEdit,
    ReservationStatusFilter,
    StaffStatusAction,
    ValidationAction,
)
from hotel_booking.services.booking_service import lock_rooms
from hotel_booking.services.interfaces.notifier import NotificationKind, Notifier
from hotel_booking.services.notification_service import emit
from hotel_booking.services.overlap import find_conflicts
from hotel_booking.services.pricing import calculate_total, count_nights
from hotel_booking.services.state_machine import (
    Action,
    ReservationPolicy,
    apply_transition,
    can_cancel,
    can_edit,
    ensure_editable,
    is_stay_finished,
)
from hotel_booking.services.validation import validate_stay

logger = get_logger(__name__)

_ACTION_NOTIFICATIONS = {
    Action.CONFIRM: NotificationKind.BOOKING_CONFIRMED,
    Action.REJECT: NotificationKind.BOOKING_REJECTED,
    Action.CHECK_IN: NotificationKind.CHECKED_IN,
    Action.CHECK_OUT: NotificationKind.CHECKED_OUT,
    Action.COMPLETE: NotificationKind.STAY_COMPLETED,
    Action.CANCEL: NotificationKind.BOOKING_CANCELED,
}

_UPCOMING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


async def get_reservation(db: AsyncSession, reservation_id: int, for_update: bool = False) -> Reservation:
    query = select(Reservation).where(Reservation.id == reservation_id).execution_options(populate_existing=True)
    if for_update:
        query = query.with_for_update()
    reservation = (await db.execute(query)).scalar_one_or_none()
    if reservation is None:
        raise NotFound(f"Reservation {reservation_id} not found")
    return reservation


def ensure_owner(reservation: Reservation, principal: Principal) -> None:
    if reservation.client_id != principal.user_id:
        raise Forbidden("You are not allowed to access this reservation")


async def get_client_reservation(db: AsyncSession, reservation_id: int, principal: Principal) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, principal)
    return reservation


async def list_client_reservations(
    db: AsyncSession,
    client_id: int,
    status_filter: ReservationStatusFilter = ReservationStatusFilter.ALL,
    now: Optional[datetime] = None,
) -> list[Reservation]:
    """
    A client's reservations, newest first.

    "upcoming" is a pending or confirmed stay that has not ended yet.
    "completed" also covers pending or confirmed stays whose check-out
    has passed, since nobody will check those in any more.
    """
    now = now or utcnow()
    query = select(Reservation).where(Reservation.client_id == client_id)

    if status_filter == ReservationStatusFilter.UPCOMING:
        query = query.where(Reservation.status.in_(_UPCOMING_STATUSES), Reservation.check_out >= now)
    elif status_filter == ReservationStatusFilter.COMPLETED:
        query = query.where(
            or_(
                Reservation.status.in_((ReservationStatus.CHECKED_OUT, ReservationStatus.COMPLETED)),
                and_(Reservation.status.in_(_UPCOMING_STATUSES), Reservation.check_out < now),
            )
        )
    elif status_filter == ReservationStatusFilter.CANCELLED:
        query = query.where(Reservation.status == ReservationStatus.CANCELED)

    result = await db.execute(query.order_by(Reservation.created_at.desc(), Reservation.id.desc()))
    return list(result.scalars().all())


def reservation_detail(
    reservation: Reservation,
    policy: ReservationPolicy,
    now: Optional[datetime] = None,
) -> dict:
    """Fields for ReservationDetail on top of the reservation's own attributes."""
    now = now or utcnow()
    return {
        "nights": count_nights(reservation.check_in, reservation.check_out),
        "can_edit": can_edit(reservation, policy, now),
        "can_cancel": can_cancel(reservation, policy, now),
        "stay_finished": is_stay_finished(reservation),
        "cancellation_policy": (
            f"Free cancellation up to {policy.cancellation_notice.days} days before check-in. "
            f"Dates and guests can be changed up to {policy.edit_notice.days} days before check-in."
        ),
    }


async def edit_reservation(
    db: AsyncSession,
    reservation_id: int,
    changes: ReservationEdit,
    principal: Principal,
    policy: ReservationPolicy,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """Change the dates and party of a confirmed reservation and reprice it."""
    stay = validate_stay(changes.check_in, changes.check_out, changes.adults, changes.children, now)

    context = {"room_ids": [], "check_in": stay.check_in.isoformat(), "check_out": stay.check_out.isoformat()}
    try:
        reservation = await get_reservation(db, reservation_id, for_update=True)
        ensure_owner(reservation, principal)
        ensure_editable(reservation, stay.guests, policy, now)

        room_ids = [room.id for room in reservation.rooms]
        context["room_ids"] = room_ids
        rooms = await lock_rooms(db, room_ids)

        dates_changed = (stay.check_in, stay.check_out) != (reservation.check_in, reservation.check_out)
        if dates_changed:
            conflicts = await find_conflicts(
                db, room_ids, stay.check_in, stay.check_out, exclude_reservation_id=reservation.id
            )
            if conflicts:
                logger.warning(
                    "edit_conflict",
                    reservation_id=reservation.id,
                    conflicting_reservations=sorted({c.reservation_id for c in conflicts}),
                )
                raise RoomUnavailable(room_ids=sorted({c.room_id for c in conflicts}))

        previous_total = reservation.total_price
        reservation.check_in = stay.check_in
        reservation.check_out = stay.check_out
        reservation.adults = stay.adults
        reservation.children = stay.children
        reservation.total_price = calculate_total(rooms, stay.check_in, stay.check_out)
        await db.commit()
    except BookingError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await _storage_failure(db, "edit", reservation_id, e, context)
        raise Internal()

    record_transition("edit")
    logger.info(
        "reservation_edited",
        reservation_id=reservation.id,
        dates_changed=dates_changed,
        previous_total=str(previous_total),
        total_price=str(reservation.total_price),
    )
    await emit(notifier, reservation, NotificationKind.BOOKING_UPDATED)
    return reservation


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: int,
    principal: Principal,
    policy: ReservationPolicy,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Client-initiated cancellation.

    Cancelling twice is reported as AlreadyCanceled rather than accepted
    silently. The row is never deleted.
    """
    context = {}
    try:
        reservation = await get_reservation(db, reservation_id, for_update=True)
        context = _log_context(reservation)
        ensure_owner(reservation, principal)
        if reservation.status == ReservationStatus.CANCELED:
            raise AlreadyCanceled(reservation_id=reservation.id)
        apply_transition(reservation, Action.CANCEL, policy=policy, now=now)
        await db.commit()
    except BookingError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await _storage_failure(db, Action.CANCEL.value, reservation_id, e, context)
        raise Internal()

    return await _after_transition(reservation, Action.CANCEL, principal, notifier)


async def validate_reservation(
    db: AsyncSession,
    reservation_id: int,
    action: ValidationAction,
    principal: Principal,
    reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Reservation:
    """Back-office confirmation or rejection of a pending reservation."""
    transition = Action.CONFIRM if action == ValidationAction.CONFIRM else Action.REJECT
    return await _staff_transition(db, reservation_id, transition, principal, notifier, reason=reason)


async def update_stay_status(
    db: AsyncSession,
    reservation_id: int,
    action: StaffStatusAction,
    principal: Principal,
    notifier: Optional[Notifier] = None,
) -> Reservation:
    """Reception actions: check-in, check-out and archiving a finished stay."""
    return await _staff_transition(db, reservation_id, Action(action.value), principal, notifier)


async def _staff_transition(
    db: AsyncSession,
    reservation_id: int,
    action: Action,
    principal: Principal,
    notifier: Optional[Notifier],
    reason: Optional[str] = None,
) -> Reservation:
    context = {}
    try:
        reservation = await get_reservation(db, reservation_id, for_update=True)
        context = _log_context(reservation)
        apply_transition(reservation, action, reason=reason)
        await db.commit()
    except BookingError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await _storage_failure(db, action.value, reservation_id, e, context)
        raise Internal()

    return await _after_transition(reservation, action, principal, notifier, reason)


async def _after_transition(
    reservation: Reservation,
    action: Action,
    principal: Principal,
    notifier: Optional[Notifier],
    reason: Optional[str] = None,
) -> Reservation:
    record_transition(action.value)
    logger.info(
        "reservation_transition",
        reservation_id=reservation.id,
        action=action.value,
        status=reservation.status.value,
        actor_id=principal.user_id,
        actor_role=principal.role.value,
    )
    await emit(notifier, reservation, _ACTION_NOTIFICATIONS[action], reason=reason)
    return reservation


def _log_context(reservation: Reservation) -> dict:
    # captured before any write; rollback expires the loaded reservation
    return {
        "room_ids": [room.id for room in reservation.rooms],
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
    }


async def _storage_failure(
    db: AsyncSession, operation: str, reservation_id: int, error: SQLAlchemyError, context: dict
) -> None:
    await db.rollback()
    logger.error(
        "reservation_storage_error",
        operation=operation,
        reservation_id=reservation_id,
        error=str(error),
        **context,
    )
