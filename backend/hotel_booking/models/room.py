"""
Room catalog entry.

Key design decisions:
- ``room_number`` is unique at the DB level; the service also checks it up
  front to return a readable conflict.
- ``price_per_night`` is a fixed-point Numeric, never a float.
- ``is_active`` archives rooms that only have historic reservations, so past
  reservations keep their room links.
"""

import enum

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Enum, Float, Index, Integer, Numeric, String, Text

from hotel_booking.db.base import Base, TimestampMixin


class RoomType(str, enum.Enum):
    SIMPLE = "SIMPLE"
    DOUBLE = "DOUBLE"
    DOUBLE_CONFORT = "DOUBLE_CONFORT"
    SUITE = "SUITE"


class RoomView(str, enum.Enum):
    CITY = "CITY"
    PARK = "PARK"
    COURTYARD = "COURTYARD"
    POOL = "POOL"
    GARDEN = "GARDEN"


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(20), unique=True, index=True, nullable=False)
    floor = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(
        Enum(RoomType, name="room_type", native_enum=False, validate_strings=True, create_constraint=True, length=20),
        nullable=False,
    )
    view = Column(
        Enum(RoomView, name="room_view", native_enum=False, validate_strings=True, create_constraint=True, length=20),
        nullable=True,
    )
    max_guests = Column(Integer, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    beds = Column(Integer, nullable=True)
    bed_configuration = Column(String(255), nullable=True)
    characteristics = Column(JSON, nullable=False, default=list)
    image_url = Column(String(1000), nullable=True)
    image_urls = Column(JSON, nullable=False, default=list)
    sq_meters = Column(Float, nullable=True)
    rating = Column(Float, nullable=True)
    featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("max_guests >= 1", name="check_room_max_guests_positive"),
        CheckConstraint("price_per_night >= 0", name="check_room_price_non_negative"),
        # Search filters on capacity and price
        Index("ix_rooms_active_capacity_price", "is_active", "max_guests", "price_per_night"),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, price={self.price_per_night})>"
