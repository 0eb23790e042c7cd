"""
Reservation model and its room association table.

Key design decisions:
- Rooms are linked through ``reservation_rooms``; links are inserted in the
  same transaction as the reservation row and cascade with it.
- Status is a closed enum stored as a string and validated on read and write.
  Canceled reservations are never deleted.
- ``(status, check_in, check_out)`` is indexed for the overlap query.
"""

import enum

from sqlalchemy import CheckConstraint, Column, Enum, ForeignKey, Index, Integer, Numeric, String, Table
from sqlalchemy.orm import relationship

from hotel_booking.db.base import Base, TimestampMixin, UTCDateTime


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class BookingChannel(str, enum.Enum):
    WEB = "WEB"  # client pays online, confirmed immediately
    RECEPTION = "RECEPTION"
    PHONE = "PHONE"


reservation_rooms = Table(
    "reservation_rooms",
    Base.metadata,
    Column("reservation_id", Integer, ForeignKey("reservations.id", ondelete="CASCADE"), primary_key=True),
    Column("room_id", Integer, ForeignKey("rooms.id", ondelete="RESTRICT"), primary_key=True),
    Index("ix_reservation_rooms_room_id", "room_id"),
)


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    check_in = Column(UTCDateTime, nullable=False)
    check_out = Column(UTCDateTime, nullable=False)
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False)
    promo_code = Column(String(50), nullable=True)
    source = Column(
        Enum(BookingChannel, name="booking_channel", native_enum=False, validate_strings=True, create_constraint=True, length=20),
        nullable=False,
    )
    status = Column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            native_enum=False,
            validate_strings=True,
            create_constraint=True,
            length=20,
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    status_reason = Column(String(1000), nullable=True)

    client = relationship("User", foreign_keys=[client_id], lazy="selectin")
    rooms = relationship(
        "Room",
        secondary=reservation_rooms,
        lazy="selectin",
        order_by="Room.room_number",
    )

    __table_args__ = (
        CheckConstraint("check_in < check_out", name="check_reservation_window"),
        CheckConstraint("adults >= 1", name="check_reservation_adults_positive"),
        CheckConstraint("children >= 0", name="check_reservation_children_non_negative"),
        CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
        Index("ix_reservations_status_window", "status", "check_in", "check_out"),
    )

    @property
    def room_capacity(self) -> int:
        return sum(room.max_guests for room in self.rooms)

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, client={self.client_id}, status={self.status}, "
            f"window={self.check_in}..{self.check_out})>"
        )
