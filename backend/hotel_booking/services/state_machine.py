"""
Reservation lifecycle rules.

    PENDING ──confirm──▶ CONFIRMED ──check_in──▶ CHECKED_IN ──check_out──▶ CHECKED_OUT ──complete──▶ COMPLETED
       │                    │
       └──reject/cancel─────┴──cancel──▶ CANCELED

CANCELED, CHECKED_OUT and COMPLETED never block new bookings. CANCELED and
COMPLETED have no outgoing transitions; CHECKED_OUT only moves on to
COMPLETED when the stay is archived.

Client cancel and edit are additionally gated by time windows relative to the
check-in instant. The guards are pure functions of the reservation, the
policy and ``now`` so callers can expose them as ``can_cancel``/``can_edit``
flags without duplicating the rules.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from hotel_booking.core.config import Settings, get_settings
from hotel_booking.core.exceptions import CapacityExceeded, NotEligible
from hotel_booking.db.base import utcnow
from hotel_booking.models.reservation import Reservation, ReservationStatus

TERMINAL_STATUSES = frozenset(
    {
        ReservationStatus.CHECKED_OUT,
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELED,
    }
)
STAY_FINISHED_STATUSES = frozenset({ReservationStatus.CHECKED_OUT, ReservationStatus.COMPLETED})


class Action(str, enum.Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    COMPLETE = "complete"
    CANCEL = "cancel"


# action -> (allowed source statuses, target status)
TRANSITIONS: dict[Action, tuple[frozenset, ReservationStatus]] = {
    Action.CONFIRM: (frozenset({ReservationStatus.PENDING}), ReservationStatus.CONFIRMED),
    Action.REJECT: (frozenset({ReservationStatus.PENDING}), ReservationStatus.CANCELED),
    Action.CHECK_IN: (frozenset({ReservationStatus.CONFIRMED}), ReservationStatus.CHECKED_IN),
    Action.CHECK_OUT: (frozenset({ReservationStatus.CHECKED_IN}), ReservationStatus.CHECKED_OUT),
    Action.COMPLETE: (frozenset({ReservationStatus.CHECKED_OUT}), ReservationStatus.COMPLETED),
    Action.CANCEL: (
        frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED}),
        ReservationStatus.CANCELED,
    ),
}


@dataclass(frozen=True)
class ReservationPolicy:
    cancellation_notice: timedelta = timedelta(days=7)
    edit_notice: timedelta = timedelta(days=2)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ReservationPolicy":
        settings = settings or get_settings()
        return cls(
            cancellation_notice=timedelta(days=settings.CANCELLATION_MIN_NOTICE_DAYS),
            edit_notice=timedelta(days=settings.EDIT_MIN_NOTICE_DAYS),
        )


def next_status(current: ReservationStatus, action: Action) -> Optional[ReservationStatus]:
    """Target status of ``action`` from ``current``, or None if not allowed."""
    sources, target = TRANSITIONS[action]
    if current not in sources:
        return None
    return target


def _notice_exceeds(reservation: Reservation, notice: timedelta, now: datetime) -> bool:
    return reservation.check_in > now and reservation.check_in - now > notice


def can_cancel(reservation: Reservation, policy: ReservationPolicy, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return next_status(reservation.status, Action.CANCEL) is not None and _notice_exceeds(
        reservation, policy.cancellation_notice, now
    )


def can_edit(reservation: Reservation, policy: ReservationPolicy, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return reservation.status == ReservationStatus.CONFIRMED and _notice_exceeds(
        reservation, policy.edit_notice, now
    )


def is_stay_finished(reservation: Reservation) -> bool:
    """Eligibility for post-stay feedback."""
    return reservation.status in STAY_FINISHED_STATUSES


def apply_transition(
    reservation: Reservation,
    action: Action,
    policy: Optional[ReservationPolicy] = None,
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> ReservationStatus:
    """
    Move ``reservation`` along ``action`` or raise NotEligible.

    The reservation is only mutated when every guard passes.
    """
    target = next_status(reservation.status, action)
    if target is None:
        raise NotEligible(
            f"Cannot {action.value.replace('_', ' ')} a reservation that is {reservation.status.value}",
            reservation_id=reservation.id,
            status=reservation.status.value,
        )

    if action == Action.CANCEL:
        policy = policy or ReservationPolicy.from_settings()
        if not can_cancel(reservation, policy, now):
            raise NotEligible(
                "This reservation cannot be cancelled at this time according to policy "
                f"(cancellation requires more than {policy.cancellation_notice.days} days notice)",
                reservation_id=reservation.id,
            )

    reason = reason.strip() if reason else None
    if action == Action.REJECT and not reason:
        raise NotEligible("A rejection reason is required", reservation_id=reservation.id)

    reservation.status = target
    if reason:
        reservation.status_reason = reason
    return target


def ensure_editable(
    reservation: Reservation,
    guest_count: int,
    policy: ReservationPolicy,
    now: Optional[datetime] = None,
) -> None:
    if not can_edit(reservation, policy, now):
        raise NotEligible(
            "This reservation cannot be edited "
            f"(only confirmed stays more than {policy.edit_notice.days} days away can be changed)",
            reservation_id=reservation.id,
        )
    if guest_count > reservation.room_capacity:
        raise CapacityExceeded(
            f"Guests ({guest_count}) exceed capacity ({reservation.room_capacity})",
            reservation_id=reservation.id,
        )
