"""Servicio de reservas de venues (organizadores y dueños de venues)"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List, Dict, Optional
from datetime import datetime, timezone
import uuid
import logging

from shared.database.models import Organizer, User, Venue, VenueReservation
from shared.exceptions import InvalidStatusTransition, NotFoundOrForbidden, ValidationError
from shared.payments.status import PaymentStatus, allowed_sources
from services.ticket_purchase.services.reservation_service import parse_uuid
from services.venue_booking.models.venue_reservation import CreateVenueReservationRequest

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value is not None else None


class VenueReservationService:
    """Servicio para reservas de venues"""

    async def get_organizer_id(self, db: AsyncSession, user_id) -> Optional[uuid.UUID]:
        stmt = select(Organizer.id).where(Organizer.user_id == parse_uuid(user_id, "userId"))
        return (await db.execute(stmt)).scalar_one_or_none()

    async def create_reservation(
        self,
        db: AsyncSession,
        user_id,
        request: CreateVenueReservationRequest
    ) -> Dict:
        organizer_id = await self.get_organizer_id(db, user_id)
        if organizer_id is None:
            raise ValidationError("El usuario no está registrado como organizador")

        venue_exists = (await db.execute(select(Venue.id).where(Venue.id == request.venue_id))).scalar_one_or_none()
        if venue_exists is None:
            raise NotFoundOrForbidden("Venue no encontrado")

        now = datetime.now(timezone.utc)
        reservation = VenueReservation(
            id=uuid.uuid4(),
            organizer_id=organizer_id,
            venue_id=request.venue_id,
            start_date=request.start_date,
            end_date=request.end_date,
            start_time=request.start_time,
            end_time=request.end_time,
            attendees_count=request.attendees_count,
            pricing_option=request.pricing_option,
            total_cost=request.total_cost,
            payment_status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now
        )
        db.add(reservation)
        await db.commit()

        logger.info(f"Reserva de venue {reservation.id} creada por organizador {organizer_id}")
        return {
            "reservationId": str(reservation.id),
            "totalCost": float(request.total_cost),
        }

    async def list_for_organizer(self, db: AsyncSession, user_id) -> Optional[List[Dict]]:
        """Reservas del organizador; None si el usuario no es organizador"""
        organizer_id = await self.get_organizer_id(db, user_id)
        if organizer_id is None:
            return None

        stmt = (
            select(VenueReservation, Venue.name)
            .join(Venue, VenueReservation.venue_id == Venue.id)
            .where(VenueReservation.organizer_id == organizer_id)
            .order_by(VenueReservation.start_date.desc(), VenueReservation.start_time.desc())
        )
        result = await db.execute(stmt)
        return [
            {**self._to_dict(reservation), "venueName": venue_name}
            for reservation, venue_name in result.all()
        ]

    async def list_for_venue_owner(self, db: AsyncSession, user_id) -> List[Dict]:
        """Reservas sobre venues del usuario, con datos del organizador"""
        stmt = (
            select(VenueReservation, Venue.name, Organizer.company_name, User.name, User.email)
            .join(Venue, VenueReservation.venue_id == Venue.id)
            .join(Organizer, VenueReservation.organizer_id == Organizer.id)
            .join(User, Organizer.user_id == User.id)
            .where(Venue.owner_user_id == parse_uuid(user_id, "userId"))
            .order_by(VenueReservation.start_date.desc(), VenueReservation.start_time.desc())
        )
        result = await db.execute(stmt)
        return [
            {
                **self._to_dict(reservation),
                "venueName": venue_name,
                "organizerCompany": company_name,
                "organizerName": organizer_name,
                "organizerEmail": organizer_email,
            }
            for reservation, venue_name, company_name, organizer_name, organizer_email in result.all()
        ]

    async def update_payment_status(
        self,
        db: AsyncSession,
        reservation_id,
        current_user: Dict,
        status: PaymentStatus
    ) -> Dict:
        """
        Actualizar estado de pago de una reserva de venue.

        Solo el organizador dueño o un admin. No emite tickets.
        """
        reservation_id = parse_uuid(reservation_id)
        status = PaymentStatus(status)

        conditions = [VenueReservation.id == reservation_id]
        if current_user.get("role") != "admin":
            organizer_id = await self.get_organizer_id(db, current_user["user_id"])
            if organizer_id is None:
                raise NotFoundOrForbidden("Reserva no encontrada")
            conditions.append(VenueReservation.organizer_id == organizer_id)

        stmt = (
            update(VenueReservation)
            .where(
                *conditions,
                VenueReservation.payment_status.in_([s.value for s in allowed_sources(status)])
            )
            .values(payment_status=status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            current = (await db.execute(
                select(VenueReservation.payment_status).where(*conditions)
            )).scalar_one_or_none()
            await db.rollback()
            if current is None:
                raise NotFoundOrForbidden("Reserva no encontrada")
            raise InvalidStatusTransition(
                f"No se puede cambiar el estado de pago de '{current}' a '{status.value}'"
            )

        await db.commit()
        logger.info(f"Reserva de venue {reservation_id}: payment_status -> {status.value}")
        return {
            "reservationId": str(reservation_id),
            "paymentStatus": status.value,
        }

    @staticmethod
    def _to_dict(reservation: VenueReservation) -> Dict:
        return {
            "reservationId": str(reservation.id),
            "venueId": str(reservation.venue_id),
            "organizerId": str(reservation.organizer_id),
            "startDate": _iso(reservation.start_date),
            "endDate": _iso(reservation.end_date),
            "startTime": _iso(reservation.start_time),
            "endTime": _iso(reservation.end_time),
            "attendeesCount": reservation.attendees_count,
            "pricingOption": reservation.pricing_option,
            "totalCost": float(reservation.total_cost),
            "paymentStatus": reservation.payment_status,
            "createdAt": _iso(reservation.created_at),
        }
