"""
Notification delivery.

Notifications are fire-and-forget: they are emitted after the reservation
transaction has committed, and a delivery failure is logged and counted but
never undoes the state change it describes.
"""

import json
from typing import Optional

import redis.asyncio as redis

from hotel_booking.core.config import Settings
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import notification_failures
from hotel_booking.models.reservation import Reservation
from hotel_booking.services.interfaces.notifier import NotificationKind, Notifier

logger = get_logger(__name__)


class LoggingNotifier(Notifier):
    """Writes each notification as a structured log event."""

    async def notify(self, user_id: int, kind: NotificationKind, payload: dict) -> None:
        logger.info("notification_sent", user_id=user_id, kind=kind.value, **payload)


class RedisNotifier(Notifier):
    """
    Publishes notifications on a Redis pub/sub channel.
    Downstream mail/push workers subscribe to the channel.
    """

    def __init__(self, client: redis.Redis, channel: str):
        self.client = client
        self.channel = channel

    @classmethod
    def from_url(cls, url: str, channel: str) -> "RedisNotifier":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, channel)

    async def notify(self, user_id: int, kind: NotificationKind, payload: dict) -> None:
        message = json.dumps({"user_id": user_id, "kind": kind.value, "payload": payload}, default=str)
        await self.client.publish(self.channel, message)

    async def close(self) -> None:
        await self.client.aclose()


def build_notifier(settings: Settings) -> Notifier:
    """
    Notifier selected by NOTIFIER_BACKEND:
    - log (default): LoggingNotifier
    - redis: RedisNotifier on NOTIFICATION_CHANNEL
    """
    if settings.NOTIFIER_BACKEND == "redis" and settings.REDIS_ENABLED:
        return RedisNotifier.from_url(settings.REDIS_URL, settings.NOTIFICATION_CHANNEL)
    return LoggingNotifier()


def reservation_payload(reservation: Reservation, reason: Optional[str] = None) -> dict:
    payload = {
        "reservation_id": reservation.id,
        "status": reservation.status.value,
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "room_numbers": [room.room_number for room in reservation.rooms],
        "total_price": str(reservation.total_price),
    }
    if reason:
        payload["reason"] = reason
    return payload


async def emit(
    notifier: Optional[Notifier],
    reservation: Reservation,
    kind: NotificationKind,
    reason: Optional[str] = None,
) -> None:
    """Notify the reservation's client; failures are logged, never raised."""
    if notifier is None:
        return
    try:
        await notifier.notify(reservation.client_id, kind, reservation_payload(reservation, reason))
    except Exception as e:
        notification_failures.labels(kind=kind.value).inc()
        logger.error(
            "notification_failed",
            reservation_id=reservation.id,
            user_id=reservation.client_id,
            kind=kind.value,
            error=str(e),
        )
