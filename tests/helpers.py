import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, func

from shared.auth.jwt_handler import create_access_token
from shared.database.models import (
    Attendee, AttendeeReservation, Event, Organizer, Ticket, User, Venue, VenueReservation
)


def auth_headers(user_id, role="attendee"):
    token = create_access_token({"userId": str(user_id), "role": role})
    return {"Authorization": f"Bearer {token}"}


async def _add(session_factory, obj):
    async with session_factory() as session:
        session.add(obj)
        await session.commit()
    return obj.id


async def create_user(session_factory, role="attendee", name=None):
    user_id = uuid.uuid4()
    return await _add(session_factory, User(
        id=user_id,
        name=name or f"user-{user_id.hex[:6]}",
        email=f"{user_id.hex}@example.com",
        role=role,
    ))


async def create_attendee(session_factory, user_id):
    return await _add(session_factory, Attendee(id=uuid.uuid4(), user_id=user_id))


async def create_organizer(session_factory, user_id, company_name="Producciones Sur"):
    return await _add(session_factory, Organizer(id=uuid.uuid4(), user_id=user_id, company_name=company_name))


async def create_venue(session_factory, owner_user_id, name="Teatro Central"):
    return await _add(session_factory, Venue(
        id=uuid.uuid4(), owner_user_id=owner_user_id, name=name, location="Santiago"
    ))


async def create_venue_reservation(session_factory, organizer_id, venue_id, status="pending", created_at=None):
    created_at = created_at or datetime.now(timezone.utc)
    return await _add(session_factory, VenueReservation(
        id=uuid.uuid4(),
        organizer_id=organizer_id,
        venue_id=venue_id,
        start_date=date(2026, 12, 5),
        end_date=date(2026, 12, 5),
        start_time=time(18, 0),
        end_time=time(23, 0),
        attendees_count=200,
        pricing_option="hourly",
        total_cost=Decimal("500.00"),
        payment_status=status,
        created_at=created_at,
        updated_at=created_at,
    ))


async def create_event(session_factory, organizer_id=None, name="Festival de Jazz", venue_reservation_id=None):
    if organizer_id is None:
        organizer_user = await create_user(session_factory, role="organizer")
        organizer_id = await create_organizer(session_factory, organizer_user)
    return await _add(session_factory, Event(
        id=uuid.uuid4(),
        organizer_id=organizer_id,
        venue_reservation_id=venue_reservation_id,
        name=name,
        start_date=date(2026, 12, 5),
        end_date=date(2026, 12, 6),
        start_time=time(20, 0),
        end_time=time(23, 30),
    ))


async def create_reservation(session_factory, attendee_id, event_id, quantity=3,
                             status="pending", created_at=None):
    created_at = created_at or datetime.now(timezone.utc)
    return await _add(session_factory, AttendeeReservation(
        id=uuid.uuid4(),
        attendee_id=attendee_id,
        event_id=event_id,
        quantity=quantity,
        total_price=Decimal("150.00"),
        payment_status=status,
        created_at=created_at,
        updated_at=created_at,
    ))


async def confirmed_reservation(session_factory, quantity=3):
    """Reserva confirmada sin tickets, con attendee y evento"""
    user_id = await create_user(session_factory)
    attendee_id = await create_attendee(session_factory, user_id)
    event_id = await create_event(session_factory)
    reservation_id = await create_reservation(
        session_factory, attendee_id, event_id, quantity=quantity, status="confirmed"
    )
    return reservation_id, attendee_id, event_id


async def count_tickets(session_factory, reservation_id):
    async with session_factory() as session:
        stmt = select(func.count(Ticket.id)).where(Ticket.reservation_id == reservation_id)
        return (await session.execute(stmt)).scalar()


async def list_tickets(session_factory, reservation_id):
    async with session_factory() as session:
        stmt = select(Ticket).where(Ticket.reservation_id == reservation_id).order_by(Ticket.ticket_number)
        return list((await session.execute(stmt)).scalars().all())


async def get_reservation_status(session_factory, reservation_id, model=AttendeeReservation):
    async with session_factory() as session:
        stmt = select(model.payment_status).where(model.id == reservation_id)
        return (await session.execute(stmt)).scalar_one_or_none()


def minutes_ago(minutes):
    return datetime.now(timezone.utc) - timedelta(minutes=minutes)
