import json
import uuid

import pytest

from shared.exceptions import IssuanceConflict
from services.ticket_purchase.services.ticket_issuance_service import TicketIssuanceService
from tests.helpers import (
    auth_headers, count_tickets, create_event, create_user, get_reservation_status, list_tickets
)

pytestmark = pytest.mark.asyncio


async def _create(client, headers, **body):
    return await client.post("/api/v1/attendee/reservations", json=body, headers=headers)


async def test_create_reservation_with_alias_fields(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)

    r = await _create(client, auth_headers(user_id), event_ID=str(event_id), qty=2, price=100)

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["eventId"] == str(event_id)
    assert body["data"]["quantity"] == 2
    assert body["data"]["totalPrice"] == 100.0
    assert body["data"]["paymentStatus"] == "pending"


@pytest.mark.parametrize("quantity", [0, -1, "2", 1.5, True])
async def test_invalid_quantity_is_rejected(client, session_factory, quantity):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)

    r = await _create(client, auth_headers(user_id), eventId=str(event_id), quantity=quantity, totalPrice=100)

    assert r.status_code == 400
    assert r.json()["success"] is False


async def test_missing_fields_are_rejected(client, session_factory):
    user_id = await create_user(session_factory)

    r = await _create(client, auth_headers(user_id), quantity=2)

    assert r.status_code == 400
    assert "Campos inválidos" in r.json()["error"]


async def test_unknown_event_returns_404(client, session_factory):
    user_id = await create_user(session_factory)

    r = await _create(client, auth_headers(user_id), eventId=str(uuid.uuid4()), quantity=1, totalPrice=10)

    assert r.status_code == 404


async def test_requests_without_token_are_rejected(client, session_factory):
    r = await client.get("/api/v1/attendee/reservations")

    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Token de autenticación requerido"}


async def test_end_to_end_confirmation_and_replay(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)

    created = await _create(client, headers, eventId=str(event_id), quantity=2, totalPrice=100)
    reservation_id = created.json()["data"]["reservationId"]

    r = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"paymentStatus": "successful"},
        headers=headers
    )
    assert r.status_code == 200
    assert r.json()["data"] == {"reservationId": reservation_id, "paymentStatus": "confirmed"}
    assert await get_reservation_status(session_factory, uuid.UUID(reservation_id)) == "confirmed"

    tickets = await list_tickets(session_factory, uuid.UUID(reservation_id))
    assert [t.ticket_number for t in tickets] == [1, 2]
    assert {json.loads(t.payload)["reservationId"] for t in tickets} == {reservation_id}

    # Reintento del webhook/cliente
    replay = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"status": "successful"},
        headers=headers
    )
    assert replay.status_code == 200
    assert await count_tickets(session_factory, uuid.UUID(reservation_id)) == 2

    listed = await client.get("/api/v1/attendee/tickets", headers=headers)
    assert listed.status_code == 200
    assert listed.json()["count"] == 2
    assert listed.json()["data"][0]["eventTitle"] == "Festival de Jazz"


async def test_native_confirmed_behaves_like_gateway_synonym(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)
    created = await _create(client, headers, eventId=str(event_id), quantity=1, totalPrice=40)
    reservation_id = created.json()["data"]["reservationId"]

    r = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"payment_status": "confirmed"},
        headers=headers
    )

    assert r.status_code == 200
    assert await count_tickets(session_factory, uuid.UUID(reservation_id)) == 1


async def test_other_attendee_cannot_update_reservation(client, session_factory):
    owner = await create_user(session_factory)
    intruder = await create_user(session_factory)
    event_id = await create_event(session_factory)

    created = await _create(client, auth_headers(owner), eventId=str(event_id), quantity=2, totalPrice=100)
    reservation_id = created.json()["data"]["reservationId"]
    # El intruso también es attendee
    await _create(client, auth_headers(intruder), eventId=str(event_id), quantity=1, totalPrice=50)

    r = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"paymentStatus": "confirmed"},
        headers=auth_headers(intruder)
    )

    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Reserva no encontrada"}
    assert await get_reservation_status(session_factory, uuid.UUID(reservation_id)) == "pending"
    assert await count_tickets(session_factory, uuid.UUID(reservation_id)) == 0


async def test_invalid_transition_returns_409(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)
    created = await _create(client, headers, eventId=str(event_id), quantity=1, totalPrice=10)
    reservation_id = created.json()["data"]["reservationId"]
    url = f"/api/v1/attendee/reservations/{reservation_id}/payment"

    await client.patch(url, json={"paymentStatus": "paid"}, headers=headers)
    r = await client.patch(url, json={"paymentStatus": "cancelled"}, headers=headers)

    assert r.status_code == 409
    assert await get_reservation_status(session_factory, uuid.UUID(reservation_id)) == "confirmed"


async def test_unknown_status_value_is_rejected(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)
    created = await _create(client, headers, eventId=str(event_id), quantity=1, totalPrice=10)
    reservation_id = created.json()["data"]["reservationId"]

    r = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"paymentStatus": "refunded"},
        headers=headers
    )

    assert r.status_code == 400
    assert await get_reservation_status(session_factory, uuid.UUID(reservation_id)) == "pending"


async def test_issuance_failure_does_not_fail_status_update(client, session_factory, monkeypatch):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)
    created = await _create(client, headers, eventId=str(event_id), quantity=2, totalPrice=100)
    reservation_id = created.json()["data"]["reservationId"]

    async def conflict(self, reservation_id):
        raise IssuanceConflict(reservation_id, "lock wait timeout")

    monkeypatch.setattr(TicketIssuanceService, "issue_tickets_if_absent", conflict)

    r = await client.patch(
        f"/api/v1/attendee/reservations/{reservation_id}/payment",
        json={"paymentStatus": "approved"},
        headers=headers
    )

    assert r.status_code == 200
    assert r.json()["data"]["paymentStatus"] == "confirmed"
    assert await get_reservation_status(session_factory, uuid.UUID(reservation_id)) == "confirmed"
    assert await count_tickets(session_factory, uuid.UUID(reservation_id)) == 0


async def test_list_reservations_newest_first(client, session_factory):
    user_id = await create_user(session_factory)
    first_event = await create_event(session_factory, name="Primero")
    second_event = await create_event(session_factory, name="Segundo")
    headers = auth_headers(user_id)

    empty = await client.get("/api/v1/attendee/reservations", headers=headers)
    assert empty.json()["data"] == []

    await _create(client, headers, eventId=str(first_event), quantity=1, totalPrice=10)
    await _create(client, headers, eventId=str(second_event), quantity=2, totalPrice=20)

    r = await client.get("/api/v1/attendee/reservations", headers=headers)

    assert r.status_code == 200
    assert [item["eventTitle"] for item in r.json()["data"]] == ["Segundo", "Primero"]


async def test_tickets_without_attendee_record_returns_404(client, session_factory):
    user_id = await create_user(session_factory)

    r = await client.get("/api/v1/attendee/tickets", headers=auth_headers(user_id))

    assert r.status_code == 404


async def test_tickets_only_from_confirmed_reservations(client, session_factory):
    user_id = await create_user(session_factory)
    event_id = await create_event(session_factory)
    headers = auth_headers(user_id)
    await _create(client, headers, eventId=str(event_id), quantity=3, totalPrice=30)

    r = await client.get("/api/v1/attendee/tickets", headers=headers)

    assert r.status_code == 200
    assert r.json()["count"] == 0
