"""
User record backing the client registry and staff identities.

Credentials are managed by the external auth service; the booking engine only
needs the id, contact details and role.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, Integer, String

from hotel_booking.db.base import Base, TimestampMixin


class Role(str, enum.Enum):
    CLIENT = "CLIENT"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(
        Enum(Role, name="user_role", native_enum=False, validate_strings=True, create_constraint=True, length=20),
        nullable=False,
        default=Role.CLIENT,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
