"""
Booking transaction manager: the only write path that creates reservations.

CONCURRENCY STRATEGY: Pessimistic room locks
============================================

Problem:
  Two guests search, both see room 101 free for 10-13 August, both book.
  Each transaction runs the overlap check, finds nothing, inserts.
  Result: Double-booking.

Solution:
  The overlap check and the insert run in one transaction that first locks
  every requested room row:

  1. SELECT ... FROM rooms WHERE id IN (...) ORDER BY id FOR UPDATE
  2. Re-run the overlap check against blocking reservations
  3. INSERT the reservation and its reservation_rooms links
  4. COMMIT (releases the locks)

  A second booker touching any of the same rooms blocks at step 1 until the
  first commits, then sees the new reservation at step 2 (READ COMMITTED
  gives each statement a fresh snapshot) and fails with RoomUnavailable.
  Locks are taken in id order so two multi-room bookings cannot deadlock.

  On SQLite every transaction starts with BEGIN IMMEDIATE, which serialises
  writers outright; see hotel_booking.db.session.

Why not optimistic locking:
  There is no single counter to version. A conflict is a property of a
  date range across several rooms, and a retried booking would have to
  redo the whole check anyway. Per-room contention is low, so waiting on
  the lock is cheap.

All-or-nothing: any failure before COMMIT rolls back the reservation, its
room links and a walk-in client created for it.
"""

import time
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.config import Settings, get_settings
from hotel_booking.core.exceptions import (
    BookingError,
    CapacityExceeded,
    Internal,
    NotEligible,
    NotFound,
    PriceMismatch,
    RoomUnavailable,
)
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import booking_latency, record_booking_attempt
from hotel_booking.core.security import Principal
from hotel_booking.models.reservation import BookingChannel, Reservation, ReservationStatus
from hotel_booking.models.room import Room
from hotel_booking.schemas.reservation import BookingRequest
from hotel_booking.services.client_registry import resolve_client
from hotel_booking.services.interfaces.notifier import NotificationKind, Notifier
from hotel_booking.services.notification_service import emit
from hotel_booking.services.overlap import find_conflicts
from hotel_booking.services.pricing import calculate_total, price_differs
from hotel_booking.services.validation import validate_stay

logger = get_logger(__name__)


def initial_status(channel: BookingChannel) -> ReservationStatus:
    """Online bookings are paid up front; staff bookings wait for back-office validation."""
    if channel == BookingChannel.WEB:
        return ReservationStatus.CONFIRMED
    return ReservationStatus.PENDING


async def lock_rooms(db: AsyncSession, room_ids: list[int]) -> list[Room]:
    """Lock the requested room rows in id order for the rest of the transaction."""
    result = await db.execute(
        select(Room)
        .where(Room.id.in_(room_ids))
        .order_by(Room.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    rooms = list(result.scalars().all())

    found = {room.id for room in rooms if room.is_active}
    missing = [room_id for room_id in room_ids if room_id not in found]
    if missing:
        raise NotFound(f"Room(s) not found: {', '.join(str(m) for m in missing)}", room_ids=missing)
    return rooms


async def book(
    db: AsyncSession,
    request: BookingRequest,
    actor: Principal,
    notifier: Optional[Notifier] = None,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Create a reservation for ``request`` or raise a BookingError.

    WEB bookings are made by the client for themselves and need an authorised
    payment. Staff bookings name an existing client or carry walk-in details.
    """
    settings = settings or get_settings()
    started = time.perf_counter()

    # validation errors surface before the transaction starts
    try:
        stay = validate_stay(request.check_in, request.check_out, request.adults, request.children, now)
        if request.channel == BookingChannel.WEB and not request.payment_authorized:
            raise NotEligible("Online bookings require an authorised payment")
    except BookingError:
        record_booking_attempt("rejected")
        raise

    room_ids = list(request.room_ids)
    try:
        if request.channel == BookingChannel.WEB:
            client_id = actor.user_id
        else:
            client = await resolve_client(db, request.client_id, request.new_client)
            client_id = client.id

        rooms = await lock_rooms(db, room_ids)

        capacity = sum(room.max_guests for room in rooms)
        if stay.guests > capacity:
            raise CapacityExceeded(
                f"Guests ({stay.guests}) exceed capacity of selected rooms ({capacity})",
                room_ids=room_ids,
            )

        conflicts = await find_conflicts(db, room_ids, stay.check_in, stay.check_out)
        if conflicts:
            logger.warning(
                "booking_conflict",
                room_ids=room_ids,
                conflicting_reservations=sorted({c.reservation_id for c in conflicts}),
                check_in=stay.check_in.isoformat(),
                check_out=stay.check_out.isoformat(),
            )
            raise RoomUnavailable(room_ids=sorted({c.room_id for c in conflicts}))

        total = calculate_total(rooms, stay.check_in, stay.check_out)
        if price_differs(request.quoted_total, total, settings.PRICE_MISMATCH_TOLERANCE):
            if settings.REJECT_PRICE_MISMATCH:
                raise PriceMismatch(quoted=str(request.quoted_total), computed=str(total))

        reservation = Reservation(
            client_id=client_id,
            created_by_id=actor.user_id if actor.is_staff else None,
            check_in=stay.check_in,
            check_out=stay.check_out,
            adults=stay.adults,
            children=stay.children,
            total_price=total,
            promo_code=request.promo_code,
            source=request.channel,
            status=initial_status(request.channel),
            rooms=rooms,
        )
        db.add(reservation)
        await db.commit()
    except BookingError as e:
        await db.rollback()
        record_booking_attempt("conflict" if isinstance(e, RoomUnavailable) else "rejected")
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        record_booking_attempt("error")
        logger.error(
            "booking_storage_error",
            room_ids=room_ids,
            check_in=stay.check_in.isoformat(),
            check_out=stay.check_out.isoformat(),
            error=str(e),
        )
        raise Internal()
    finally:
        booking_latency.observe(time.perf_counter() - started)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        reservation_id=reservation.id,
        client_id=client_id,
        room_ids=room_ids,
        channel=request.channel.value,
        status=reservation.status.value,
        total_price=str(total),
    )

    await emit(notifier, reservation, NotificationKind.BOOKING_CREATED)
    return reservation
