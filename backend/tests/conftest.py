"""
Pytest fixtures for test database, client, identities and catalog data.

Each test gets a fresh database: a SQLite file under tmp_path by default, or
TEST_DATABASE_URL (e.g. a throwaway PostgreSQL database) when set. Fixtures
and assertions use short-lived sessions so no test holds the SQLite write
lock between requests.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hotel_booking.api.deps import get_notifier
from hotel_booking.core.security import create_access_token
from hotel_booking.db.session import Database, get_db
from hotel_booking.main import app
from hotel_booking.models import BookingChannel, Reservation, ReservationStatus, Role, Room, RoomType, RoomView, User
from hotel_booking.services.pricing import calculate_total

from helpers import RecordingNotifier

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables, yield the database, then drop tables for isolation."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'booking_test.db'}"
    database = Database(url)
    await database.create_all()

    yield database

    await database.drop_all()
    await database.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def client(database: Database, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with a session per request from the test database."""

    async def override_get_db():
        async for session in database.session():
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def query(database: Database):
    """Run a select in its own session and return the scalar results."""

    async def run(statement) -> list:
        async with database.sessionmaker() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    return run


async def _persist(database: Database, *objects):
    async with database.sessionmaker() as session:
        session.add_all(objects)
        await session.commit()
    return objects


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def guest(database: Database) -> User:
    (user,) = await _persist(database, User(email="guest@example.com", name="Guest One", role=Role.CLIENT))
    return user


@pytest_asyncio.fixture
async def other_guest(database: Database) -> User:
    (user,) = await _persist(database, User(email="other@example.com", name="Guest Two", role=Role.CLIENT))
    return user


@pytest_asyncio.fixture
async def agent(database: Database) -> User:
    (user,) = await _persist(database, User(email="agent@hotel.example", name="Front Desk", role=Role.AGENT))
    return user


@pytest_asyncio.fixture
async def admin(database: Database) -> User:
    (user,) = await _persist(database, User(email="admin@hotel.example", name="Manager", role=Role.ADMIN))
    return user


@pytest.fixture
def guest_headers(guest: User) -> dict:
    return _headers(guest)


@pytest.fixture
def other_guest_headers(other_guest: User) -> dict:
    return _headers(other_guest)


@pytest.fixture
def agent_headers(agent: User) -> dict:
    return _headers(agent)


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return _headers(admin)


@pytest_asyncio.fixture
async def rooms(database: Database) -> dict[str, Room]:
    """
    101: double, 250.00/night, 2 guests, pool view
    102: simple, 120.00/night, 2 guests, city view
    201: suite, 500.00/night, 4 guests, featured
    """
    room_a = Room(
        room_number="101",
        floor=1,
        name="Pool Double",
        type=RoomType.DOUBLE,
        view=RoomView.POOL,
        max_guests=2,
        price_per_night=Decimal("250.00"),
        bed_configuration="1 King",
        characteristics=["wifi", "minibar"],
        rating=4.5,
    )
    room_b = Room(
        room_number="102",
        floor=1,
        name="City Single",
        type=RoomType.SIMPLE,
        view=RoomView.CITY,
        max_guests=2,
        price_per_night=Decimal("120.00"),
        bed_configuration="2 Twin",
        characteristics=["wifi"],
        rating=4.0,
    )
    suite = Room(
        room_number="201",
        floor=2,
        name="Garden Suite",
        type=RoomType.SUITE,
        view=RoomView.GARDEN,
        max_guests=4,
        price_per_night=Decimal("500.00"),
        bed_configuration="1 King, 1 Sofa bed",
        characteristics=["wifi", "jacuzzi"],
        rating=4.9,
        featured=True,
    )
    await _persist(database, room_a, room_b, suite)
    return {"101": room_a, "102": room_b, "201": suite}


@pytest.fixture
def make_reservation(database: Database):
    """Insert a reservation directly, bypassing the booking checks."""

    async def create(
        client: User,
        rooms: list[Room],
        check_in: datetime,
        check_out: datetime,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        adults: int = 1,
        children: int = 0,
        source: BookingChannel = BookingChannel.WEB,
    ) -> Reservation:
        async with database.sessionmaker() as session:
            linked = [await session.get(Room, room.id) for room in rooms]
            reservation = Reservation(
                client_id=client.id,
                check_in=check_in,
                check_out=check_out,
                adults=adults,
                children=children,
                total_price=calculate_total(linked, check_in, check_out),
                source=source,
                status=status,
                rooms=linked,
            )
            session.add(reservation)
            await session.commit()
        return reservation

    return create
