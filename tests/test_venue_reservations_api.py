import uuid

import pytest

from shared.database.models import VenueReservation
from tests.helpers import (
    auth_headers, create_organizer, create_user, create_venue, create_venue_reservation,
    get_reservation_status
)

pytestmark = pytest.mark.asyncio

URL = "/api/v1/venue-reservations"


async def _organizer(session_factory):
    user_id = await create_user(session_factory, role="organizer", name="Ana Pérez")
    organizer_id = await create_organizer(session_factory, user_id)
    return user_id, organizer_id


async def _venue(session_factory):
    owner_id = await create_user(session_factory, role="venue_owner")
    venue_id = await create_venue(session_factory, owner_id)
    return owner_id, venue_id


async def test_organizer_creates_reservation_with_alias_fields(client, session_factory):
    user_id, _ = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)

    r = await client.post(URL, json={
        "venue_ID": str(venue_id),
        "reservation_date": "2026-12-05",
        "start_time": "18:00",
        "endTime": "23:00",
        "attendees": 150,
        "pricing": "daily",
        "cost": 1200,
    }, headers=auth_headers(user_id, role="organizer"))

    assert r.status_code == 201
    assert r.json()["data"]["totalCost"] == 1200.0

    listed = await client.get(f"{URL}/organizer", headers=auth_headers(user_id, role="organizer"))
    data = listed.json()["data"]
    assert len(data) == 1
    assert data[0]["venueName"] == "Teatro Central"
    assert data[0]["attendeesCount"] == 150
    assert data[0]["pricingOption"] == "daily"
    assert data[0]["paymentStatus"] == "pending"


async def test_defaults_for_optional_fields(client, session_factory):
    user_id, _ = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)

    r = await client.post(URL, json={
        "venueId": str(venue_id),
        "startDate": "2026-12-05",
        "startTime": "18:00",
        "endTime": "20:00",
        "totalCost": 300,
    }, headers=auth_headers(user_id, role="organizer"))

    assert r.status_code == 201
    listed = await client.get(f"{URL}/organizer", headers=auth_headers(user_id, role="organizer"))
    assert listed.json()["data"][0]["attendeesCount"] == 1
    assert listed.json()["data"][0]["pricingOption"] == "hourly"


async def test_non_organizer_cannot_reserve(client, session_factory):
    user_id = await create_user(session_factory)
    _, venue_id = await _venue(session_factory)

    r = await client.post(URL, json={
        "venueId": str(venue_id),
        "startDate": "2026-12-05",
        "startTime": "18:00",
        "endTime": "20:00",
        "totalCost": 300,
    }, headers=auth_headers(user_id))

    assert r.status_code == 400
    assert r.json()["error"] == "El usuario no está registrado como organizador"


async def test_end_date_before_start_date_is_rejected(client, session_factory):
    user_id, _ = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)

    r = await client.post(URL, json={
        "venueId": str(venue_id),
        "startDate": "2026-12-05",
        "endDate": "2026-12-01",
        "startTime": "18:00",
        "endTime": "20:00",
        "totalCost": 300,
    }, headers=auth_headers(user_id, role="organizer"))

    assert r.status_code == 400


async def test_organizer_listing_for_non_organizer(client, session_factory):
    user_id = await create_user(session_factory)

    r = await client.get(f"{URL}/organizer", headers=auth_headers(user_id))

    assert r.status_code == 200
    assert r.json()["data"] == []
    assert "organizador" in r.json()["message"]


async def test_venue_owner_sees_reservations_on_own_venues(client, session_factory):
    _, organizer_id = await _organizer(session_factory)
    owner_id, venue_id = await _venue(session_factory)
    other_owner, other_venue = await _venue(session_factory)
    await create_venue_reservation(session_factory, organizer_id, venue_id)
    await create_venue_reservation(session_factory, organizer_id, other_venue)

    r = await client.get(f"{URL}/venue-owner", headers=auth_headers(owner_id, role="venue_owner"))

    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data) == 1
    assert data[0]["venueId"] == str(venue_id)
    assert data[0]["organizerName"] == "Ana Pérez"
    assert data[0]["organizerCompany"] == "Producciones Sur"


async def test_owner_organizer_updates_payment_status(client, session_factory):
    user_id, organizer_id = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)
    reservation_id = await create_venue_reservation(session_factory, organizer_id, venue_id)

    r = await client.patch(
        f"{URL}/{reservation_id}/payment",
        json={"paymentStatus": "succeeded"},
        headers=auth_headers(user_id, role="organizer")
    )

    assert r.status_code == 200
    assert r.json()["data"]["paymentStatus"] == "confirmed"
    assert await get_reservation_status(session_factory, reservation_id, model=VenueReservation) == "confirmed"


async def test_other_organizer_cannot_update(client, session_factory):
    _, organizer_id = await _organizer(session_factory)
    intruder_id, _ = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)
    reservation_id = await create_venue_reservation(session_factory, organizer_id, venue_id)

    r = await client.patch(
        f"{URL}/{reservation_id}/payment",
        json={"paymentStatus": "cancelled"},
        headers=auth_headers(intruder_id, role="organizer")
    )

    assert r.status_code == 404
    assert await get_reservation_status(session_factory, reservation_id, model=VenueReservation) == "pending"


async def test_admin_can_update_any_venue_reservation(client, session_factory):
    _, organizer_id = await _organizer(session_factory)
    _, venue_id = await _venue(session_factory)
    admin_id = await create_user(session_factory, role="admin")
    reservation_id = await create_venue_reservation(session_factory, organizer_id, venue_id)

    r = await client.patch(
        f"{URL}/{reservation_id}/payment",
        json={"status": "canceled"},
        headers=auth_headers(admin_id, role="admin")
    )

    assert r.status_code == 200
    assert r.json()["data"]["paymentStatus"] == "cancelled"


async def test_unknown_venue_reservation_returns_404(client, session_factory):
    admin_id = await create_user(session_factory, role="admin")

    r = await client.patch(
        f"{URL}/{uuid.uuid4()}/payment",
        json={"paymentStatus": "confirmed"},
        headers=auth_headers(admin_id, role="admin")
    )

    assert r.status_code == 404
