"""
Tests for availability search, the per-room check and the reception calendar.
"""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from hotel_booking.models import ReservationStatus

from helpers import NEXT_YEAR, aug, days_from_now


def _search(check_in, check_out, **params) -> dict:
    return {"check_in": check_in.isoformat(), "check_out": check_out.isoformat(), **params}


@pytest.mark.asyncio
async def test_search_excludes_booked_rooms(client: AsyncClient, guest, rooms, make_reservation):
    await make_reservation(guest, [rooms["101"]], aug(10), aug(13))

    response = await client.get("/api/v1/rooms/search", params=_search(aug(12), aug(14)))
    assert response.status_code == 200
    numbers = {r["room_number"] for r in response.json()}
    assert numbers == {"102", "201"}


@pytest.mark.asyncio
async def test_search_includes_back_to_back_room(client: AsyncClient, guest, rooms, make_reservation):
    await make_reservation(guest, [rooms["101"]], aug(10), aug(13))

    response = await client.get("/api/v1/rooms/search", params=_search(aug(13), aug(15)))
    assert "101" in {r["room_number"] for r in response.json()}


@pytest.mark.asyncio
async def test_search_ignores_cancelled_reservations(client: AsyncClient, guest, rooms, make_reservation):
    await make_reservation(guest, [rooms["101"]], aug(10), aug(13), status=ReservationStatus.CANCELED)

    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13)))
    assert "101" in {r["room_number"] for r in response.json()}


@pytest.mark.asyncio
async def test_search_filters_by_party_size(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), adults=2, children=1))
    assert [r["room_number"] for r in response.json()] == ["201"]


@pytest.mark.asyncio
async def test_search_returns_stay_price(client: AsyncClient, rooms):
    response = await client.get(
        "/api/v1/rooms/search", params=_search(aug(10), aug(13), room_type="DOUBLE")
    )
    (room,) = response.json()
    assert room["room_number"] == "101"
    assert room["nights"] == 3
    assert Decimal(room["stay_price"]) == Decimal("750.00")
    assert room["currency"] == "MAD"


@pytest.mark.asyncio
async def test_search_filters(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), max_price="300"))
    assert {r["room_number"] for r in response.json()} == {"101", "102"}

    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), views=["CITY", "GARDEN"]))
    assert {r["room_number"] for r in response.json()} == {"102", "201"}

    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), amenities=["JACUZZI"]))
    assert [r["room_number"] for r in response.json()] == ["201"]

    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), bed_types=["twin"]))
    assert [r["room_number"] for r in response.json()] == ["102"]


@pytest.mark.asyncio
async def test_search_sorting(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), sort="price_asc"))
    assert [r["room_number"] for r in response.json()] == ["102", "101", "201"]

    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), sort="price_desc"))
    assert [r["room_number"] for r in response.json()] == ["201", "101", "102"]

    # featured first, then rating
    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13)))
    assert [r["room_number"] for r in response.json()] == ["201", "101", "102"]


@pytest.mark.asyncio
async def test_search_rejects_past_dates(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(days_from_now(-2), days_from_now(1)))
    assert response.status_code == 400
    assert response.json()["kind"] == "DateInvalid"


@pytest.mark.asyncio
async def test_search_rejects_inverted_dates(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(aug(13), aug(10)))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_search_requires_an_adult(client: AsyncClient, rooms):
    response = await client.get("/api/v1/rooms/search", params=_search(aug(10), aug(13), adults=0, children=2))
    assert response.status_code == 400
    assert response.json()["kind"] == "GuestCountInvalid"


@pytest.mark.asyncio
async def test_room_availability_lists_conflicts(
    client: AsyncClient, agent_headers, guest, rooms, make_reservation
):
    held = await make_reservation(guest, [rooms["101"]], aug(10), aug(13))
    url = f"/api/v1/rooms/{rooms['101'].id}/availability"

    busy = await client.get(url, params={"start": aug(12).isoformat(), "end": aug(14).isoformat()}, headers=agent_headers)
    assert busy.status_code == 200
    assert busy.json()["is_available"] is False
    assert busy.json()["conflicting_reservation_ids"] == [held.id]

    free = await client.get(url, params={"start": aug(13).isoformat(), "end": aug(14).isoformat()}, headers=agent_headers)
    assert free.json()["is_available"] is True
    assert free.json()["conflicting_reservation_ids"] == []


@pytest.mark.asyncio
async def test_room_availability_is_staff_only(client: AsyncClient, guest_headers, rooms):
    response = await client.get(
        f"/api/v1/rooms/{rooms['101'].id}/availability",
        params={"start": aug(12).isoformat(), "end": aug(14).isoformat()},
        headers=guest_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_availability_calendar(client: AsyncClient, agent_headers, guest, rooms, make_reservation):
    """The end date is inclusive: a stay starting on it makes the room busy."""
    held = await make_reservation(guest, [rooms["102"]], aug(15), aug(17))

    response = await client.post(
        "/api/v1/agent/availability",
        json={"start_date": date(NEXT_YEAR, 8, 10).isoformat(), "end_date": date(NEXT_YEAR, 8, 15).isoformat()},
        headers=agent_headers,
    )
    assert response.status_code == 200
    grid = response.json()
    assert [r["room_number"] for r in grid] == ["101", "102", "201"]
    by_number = {r["room_number"]: r for r in grid}
    assert by_number["101"]["is_available"] is True
    assert by_number["102"]["is_available"] is False
    assert by_number["102"]["conflicting_reservation_ids"] == [held.id]


@pytest.mark.asyncio
async def test_availability_calendar_room_type_filter(client: AsyncClient, agent_headers, rooms):
    response = await client.post(
        "/api/v1/agent/availability",
        json={
            "start_date": date(NEXT_YEAR, 8, 10).isoformat(),
            "end_date": date(NEXT_YEAR, 8, 12).isoformat(),
            "room_type": "SUITE",
        },
        headers=agent_headers,
    )
    assert [r["room_number"] for r in response.json()] == ["201"]
