"""
Stay pricing.

Nights are the ceiling of the stay duration in days, never less than one.
The total is the sum of the rooms' nightly rates times the nights, rounded to
cents. Client-quoted totals are advisory: they are compared with the server
total and a difference beyond the tolerance is reported, never trusted.
"""

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import price_mismatches
from hotel_booking.models.room import Room

logger = get_logger(__name__)

CENTS = Decimal("0.01")
ONE_DAY = timedelta(days=1)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    return max(1, math.ceil((check_out - check_in) / ONE_DAY))


def nightly_rate(rooms: Iterable[Room]) -> Decimal:
    return sum((Decimal(room.price_per_night) for room in rooms), Decimal("0"))


def calculate_total(rooms: Iterable[Room], check_in: datetime, check_out: datetime) -> Decimal:
    total = nightly_rate(rooms) * count_nights(check_in, check_out)
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def price_differs(quoted: Optional[Decimal], computed: Decimal, tolerance: Decimal) -> bool:
    """True when a quoted total is present and off by more than ``tolerance``."""
    if quoted is None:
        return False
    difference = abs(Decimal(quoted) - computed)
    if difference > tolerance:
        price_mismatches.inc()
        logger.warning(
            "price_mismatch",
            quoted=str(quoted),
            computed=str(computed),
            difference=str(difference),
        )
        return True
    return False
