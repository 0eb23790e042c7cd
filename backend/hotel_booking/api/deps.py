"""
Request-scoped dependencies for collaborators owned by the application.

Everything here is created in the lifespan and stored on ``app.state``;
handlers receive it through ``Depends`` so tests can override it.
"""

from fastapi import Request

from hotel_booking.core.config import get_settings
from hotel_booking.services.cache_service import RoomCache
from hotel_booking.services.interfaces.notifier import Notifier
from hotel_booking.services.notification_service import LoggingNotifier
from hotel_booking.services.state_machine import ReservationPolicy

_fallback_notifier = LoggingNotifier()


def get_notifier(request: Request) -> Notifier:
    return getattr(request.app.state, "notifier", None) or _fallback_notifier


def get_room_cache(request: Request) -> RoomCache:
    cache = getattr(request.app.state, "room_cache", None)
    if cache is None:
        settings = get_settings()
        return RoomCache(None, settings.REDIS_CACHE_TTL)
    return cache


def get_policy() -> ReservationPolicy:
    return ReservationPolicy.from_settings(get_settings())
