"""Initial schema: users, rooms, reservations and reservation_rooms.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLES = ("CLIENT", "AGENT", "ADMIN")
ROOM_TYPES = ("SIMPLE", "DOUBLE", "DOUBLE_CONFORT", "SUITE")
ROOM_VIEWS = ("CITY", "PARK", "COURTYARD", "POOL", "GARDEN")
CHANNELS = ("WEB", "RECEPTION", "PHONE")
STATUSES = ("PENDING", "CONFIRMED", "CHECKED_IN", "CHECKED_OUT", "COMPLETED", "CANCELED")


def _in(column: str, values: tuple) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users: clients and staff. Credentials live in the auth service.
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'CLIENT'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint(_in("role", ROLES), name="user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Rooms
    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("view", sa.String(20), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("beds", sa.Integer(), nullable=True),
        sa.Column("bed_configuration", sa.String(255), nullable=True),
        sa.Column("characteristics", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("image_urls", sa.JSON(), nullable=False),
        sa.Column("sq_meters", sa.Float(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("max_guests >= 1", name="check_room_max_guests_positive"),
        sa.CheckConstraint("price_per_night >= 0", name="check_room_price_non_negative"),
        sa.CheckConstraint(_in("type", ROOM_TYPES), name="room_type"),
        sa.CheckConstraint(_in("view", ROOM_VIEWS), name="room_view"),
    )
    op.create_index("ix_rooms_id", "rooms", ["id"])
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"], unique=True)
    # Search filters: WHERE is_active AND max_guests >= :n [AND price_per_night <= :p]
    op.create_index("ix_rooms_active_capacity_price", "rooms", ["is_active", "max_guests", "price_per_night"])

    # Reservations
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("check_in", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out", sa.DateTime(timezone=True), nullable=False),
        sa.Column("adults", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("children", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("promo_code", sa.String(50), nullable=True),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("status_reason", sa.String(1000), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("check_in < check_out", name="check_reservation_window"),
        sa.CheckConstraint("adults >= 1", name="check_reservation_adults_positive"),
        sa.CheckConstraint("children >= 0", name="check_reservation_children_non_negative"),
        sa.CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
        sa.CheckConstraint(_in("source", CHANNELS), name="booking_channel"),
        sa.CheckConstraint(_in("status", STATUSES), name="reservation_status"),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_client_id", "reservations", ["client_id"])
    # OVERLAP QUERY INDEX: every availability search and booking recheck filters
    # on status IN (blocking) AND check_in < :end AND check_out > :start.
    op.create_index("ix_reservations_status_window", "reservations", ["status", "check_in", "check_out"])

    # Reservation <-> room links, removed together with their reservation
    op.create_table(
        "reservation_rooms",
        sa.Column(
            "reservation_id",
            sa.Integer(),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id", ondelete="RESTRICT"), primary_key=True),
    )
    op.create_index("ix_reservation_rooms_room_id", "reservation_rooms", ["room_id"])


def downgrade() -> None:
    op.drop_table("reservation_rooms")
    op.drop_table("reservations")
    op.drop_table("rooms")
    op.drop_table("users")
