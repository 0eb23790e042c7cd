from hotel_booking.db.base import Base, TimestampMixin, UTCDateTime, ensure_utc, utcnow
from hotel_booking.db.session import Database, get_db

__all__ = ["Base", "TimestampMixin", "UTCDateTime", "ensure_utc", "utcnow", "Database", "get_db"]
