"""Date and identity helpers shared by the test modules."""

from datetime import datetime, timedelta, timezone

from hotel_booking.core.security import Principal
from hotel_booking.db.base import utcnow
from hotel_booking.models import User
from hotel_booking.services.interfaces.notifier import Notifier

NEXT_YEAR = utcnow().year + 1


def aug(day: int) -> datetime:
    """Midnight UTC on the given August day of next year."""
    return datetime(NEXT_YEAR, 8, day, tzinfo=timezone.utc)


def days_from_now(days: float) -> datetime:
    return utcnow() + timedelta(days=days)


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role)


def stay_json(room_ids: list[int], check_in: datetime, check_out: datetime, **extra) -> dict:
    body = {
        "room_ids": room_ids,
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
    }
    body.update(extra)
    return body


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    async def notify(self, user_id, kind, payload) -> None:
        self.sent.append((user_id, kind, payload))

    def kinds(self) -> list:
        return [kind for _, kind, _ in self.sent]
