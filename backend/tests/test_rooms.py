"""
Tests for room catalog endpoints.
"""

import asyncio
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import RoomInUse
from hotel_booking.models import BookingChannel, Reservation, ReservationStatus, Room
from hotel_booking.services.booking_service import lock_rooms
from hotel_booking.services.room_service import delete_room

from helpers import aug, days_from_now


def _room_payload(**overrides) -> dict:
    payload = {
        "name": "Courtyard Double",
        "room_number": "301",
        "type": "DOUBLE",
        "floor": 3,
        "price_per_night": "180.00",
        "max_guests": 2,
        "view": "COURTYARD",
        "characteristics": ["wifi"],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_room(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/rooms", json=_room_payload(), headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["room_number"] == "301"
    assert data["is_active"] is True
    assert "id" in data


@pytest.mark.asyncio
async def test_create_room_requires_admin(client: AsyncClient, agent_headers):
    response = await client.post("/api/v1/rooms", json=_room_payload(), headers=agent_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_room_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/rooms", json=_room_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_room_number(client: AsyncClient, admin_headers, rooms):
    response = await client.post("/api/v1/rooms", json=_room_payload(room_number="101"), headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["kind"] == "DuplicateRoomNumber"


@pytest.mark.asyncio
async def test_create_room_invalid_capacity(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/rooms", json=_room_payload(max_guests=0), headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_room(client: AsyncClient, admin_headers, rooms):
    response = await client.put(
        f"/api/v1/rooms/{rooms['102'].id}",
        json={"price_per_night": "135.50", "featured": True},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["price_per_night"] in ("135.50", "135.5")
    assert response.json()["featured"] is True
    assert response.json()["room_number"] == "102"


@pytest.mark.asyncio
async def test_update_room_number_clash(client: AsyncClient, admin_headers, rooms):
    response = await client.put(
        f"/api/v1/rooms/{rooms['102'].id}", json={"room_number": "101"}, headers=admin_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_list_and_get_rooms(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms", params={"page": 1, "page_size": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [r["room_number"] for r in data["rooms"]] == ["101", "102"]
    assert data["cached"] is False

    response = await client.get(f"/api/v1/rooms/{rooms['201'].id}")
    assert response.json()["name"] == "Garden Suite"


@pytest.mark.asyncio
async def test_get_missing_room(client: AsyncClient):
    response = await client.get("/api/v1/rooms/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_room_with_upcoming_reservation(
    client: AsyncClient, admin_headers, guest, rooms, make_reservation
):
    await make_reservation(guest, [rooms["101"]], aug(10), aug(13), status=ReservationStatus.PENDING)

    response = await client.delete(f"/api/v1/rooms/{rooms['101'].id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["kind"] == "RoomInUse"


@pytest.mark.asyncio
async def test_delete_room_with_history_archives_it(
    client: AsyncClient, admin_headers, guest, rooms, make_reservation
):
    await make_reservation(
        guest, [rooms["101"]], days_from_now(-10), days_from_now(-8), status=ReservationStatus.COMPLETED
    )

    response = await client.delete(f"/api/v1/rooms/{rooms['101'].id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["archived"] is True

    listing = await client.get("/api/v1/rooms")
    assert "101" not in {r["room_number"] for r in listing.json()["rooms"]}

    search = await client.get(
        "/api/v1/rooms/search", params={"check_in": aug(10).isoformat(), "check_out": aug(11).isoformat()}
    )
    assert "101" not in {r["room_number"] for r in search.json()}


@pytest.mark.asyncio
async def test_delete_unused_room(client: AsyncClient, admin_headers, rooms):
    response = await client.delete(f"/api/v1/rooms/{rooms['201'].id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["archived"] is False

    assert (await client.get(f"/api/v1/rooms/{rooms['201'].id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_waits_for_booking_holding_the_room(database, guest, rooms, query):
    """A delete racing a booking of the same room sees the booking once it commits."""
    room_id = rooms["201"].id

    async with database.sessionmaker() as booking:
        locked = await lock_rooms(booking, [room_id])
        booking.add(
            Reservation(
                client_id=guest.id,
                check_in=aug(10),
                check_out=aug(12),
                adults=2,
                total_price=Decimal("1000.00"),
                source=BookingChannel.WEB,
                status=ReservationStatus.CONFIRMED,
                rooms=locked,
            )
        )
        await booking.flush()

        async def remove():
            async with database.sessionmaker() as session:
                return await delete_room(session, room_id)

        deletion = asyncio.create_task(remove())
        await asyncio.sleep(0.2)
        await booking.commit()

    with pytest.raises(RoomInUse):
        await deletion

    (room,) = await query(select(Room).where(Room.id == room_id))
    assert room.is_active is True


@pytest.mark.asyncio
async def test_delete_rejected_by_foreign_key_is_room_in_use(database, rooms, query, monkeypatch):
    async def referenced(self):
        raise IntegrityError("DELETE FROM rooms", {}, Exception("FOREIGN KEY constraint failed"))

    async with database.sessionmaker() as session:
        monkeypatch.setattr(AsyncSession, "commit", referenced)
        with pytest.raises(RoomInUse):
            await delete_room(session, rooms["201"].id)
        monkeypatch.undo()

    assert len(await query(select(Room).where(Room.id == rooms["201"].id))) == 1


@pytest.mark.asyncio
async def test_archived_room_cannot_be_booked(
    client: AsyncClient, admin_headers, guest_headers, guest, rooms, make_reservation
):
    await make_reservation(guest, [rooms["101"]], days_from_now(-10), days_from_now(-8), status=ReservationStatus.CANCELED)
    await client.delete(f"/api/v1/rooms/{rooms['101'].id}", headers=admin_headers)

    response = await client.post(
        "/api/v1/reservations",
        json={
            "room_ids": [rooms["101"].id],
            "check_in": aug(10).isoformat(),
            "check_out": aug(11).isoformat(),
            "payment_authorized": True,
        },
        headers=guest_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "booking_attempts_total" in response.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "front-desk-42"})
    assert response.headers["X-Request-ID"] == "front-desk-42"

    generated = await client.get("/health", headers={"X-Request-ID": "x" * 200})
    assert generated.headers["X-Request-ID"] != "x" * 200
    assert len(generated.headers["X-Request-ID"]) == 12


@pytest.mark.asyncio
async def test_http_requests_counted_by_route(client: AsyncClient, agent_headers, rooms):
    room_id = rooms["101"].id
    await client.get(f"/api/v1/rooms/{room_id}")
    await client.get(
        f"/api/v1/rooms/{room_id}/availability",
        params={"start": aug(10).isoformat(), "end": aug(11).isoformat()},
        headers=agent_headers,
    )
    await client.get("/health")

    response = await client.get("/metrics")
    assert 'route="/api/v1/rooms/{room_id}",status="200"' in response.text
    assert 'route="/api/v1/rooms/{room_id}/availability",status="200"' in response.text
    assert 'route="/health",status="200"' in response.text
    assert f"/api/v1/rooms/{room_id}\"" not in response.text
