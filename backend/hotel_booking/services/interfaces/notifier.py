"""
Notification emitter interface.
The booking engine calls ``notify`` after a state change has been committed.
"""

import enum
from abc import ABC, abstractmethod


class NotificationKind(str, enum.Enum):
    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_REJECTED = "BOOKING_REJECTED"
    BOOKING_UPDATED = "BOOKING_UPDATED"
    BOOKING_CANCELED = "BOOKING_CANCELED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    STAY_COMPLETED = "STAY_COMPLETED"


class Notifier(ABC):
    """
    Interface for notification delivery.

    Implementations:
    - LoggingNotifier: structured log line per notification
    - RedisNotifier: publishes JSON messages on a Redis channel
    """

    @abstractmethod
    async def notify(self, user_id: int, kind: NotificationKind, payload: dict) -> None:
        """
        Deliver a notification to ``user_id``.

        Args:
            user_id: Recipient (the reservation's client)
            kind: What happened
            payload: Reservation id, dates, reason, etc.
        """
        pass

    async def close(self) -> None:
        pass
