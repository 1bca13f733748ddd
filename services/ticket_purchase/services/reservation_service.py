"""Servicio de reservas de attendees y estado de pago"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from typing import List, Dict, Optional
from datetime import datetime, timezone
import uuid
import logging

from shared.database.models import (
    Attendee, AttendeeReservation, Event, Ticket, User, Venue, VenueReservation
)
from shared.exceptions import (
    InvalidStatusTransition, NotFoundOrForbidden, TicketIssuanceError, ValidationError
)
from shared.payments.status import PaymentStatus, allowed_sources
from services.ticket_purchase.models.reservation import (
    CreateReservationRequest, ReservationSummary, TicketSummary
)
from services.ticket_purchase.services.ticket_issuance_service import TicketIssuanceService

logger = logging.getLogger(__name__)


def parse_uuid(value, field: str = "reservationId") -> uuid.UUID:
    """Convertir un identificador recibido a UUID o lanzar ValidationError"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field} inválido: '{value}'")


class ReservationService:
    """Servicio para reservas de tickets de attendees"""

    def __init__(self, issuance_service: Optional[TicketIssuanceService] = None):
        self._issuance_service = issuance_service

    @property
    def issuance_service(self) -> TicketIssuanceService:
        """Lazy initialization: el motor toma la session factory ya inicializada"""
        if self._issuance_service is None:
            self._issuance_service = TicketIssuanceService()
        return self._issuance_service

    async def get_attendee_id(self, db: AsyncSession, user_id) -> Optional[uuid.UUID]:
        stmt = select(Attendee.id).where(Attendee.user_id == parse_uuid(user_id, "userId"))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_attendee_id(self, db: AsyncSession, user_id) -> uuid.UUID:
        """Obtener el attendee del usuario; se crea en la primera reserva"""
        user_uuid = parse_uuid(user_id, "userId")
        attendee_id = await self.get_attendee_id(db, user_uuid)
        if attendee_id:
            return attendee_id

        user_exists = (await db.execute(select(User.id).where(User.id == user_uuid))).scalar_one_or_none()
        if not user_exists:
            raise NotFoundOrForbidden("Usuario no encontrado")

        attendee = Attendee(id=uuid.uuid4(), user_id=user_uuid)
        db.add(attendee)
        try:
            await db.flush()
        except IntegrityError:
            # Otra request creó el attendee al mismo tiempo
            await db.rollback()
            attendee_id = await self.get_attendee_id(db, user_uuid)
            if attendee_id is None:
                raise
            return attendee_id

        logger.info(f"Attendee {attendee.id} creado para usuario {user_uuid}")
        return attendee.id

    async def create_reservation(
        self,
        db: AsyncSession,
        user_id,
        request: CreateReservationRequest
    ) -> Dict:
        """
        Crear reserva en estado pending

        Returns:
            dict con reservationId, eventId, quantity, totalPrice, paymentStatus
        """
        stmt_event = select(Event.id).where(Event.id == request.event_id)
        if (await db.execute(stmt_event)).scalar_one_or_none() is None:
            raise NotFoundOrForbidden("Evento no encontrado")

        attendee_id = await self.get_or_create_attendee_id(db, user_id)

        now = datetime.now(timezone.utc)
        reservation = AttendeeReservation(
            id=uuid.uuid4(),
            attendee_id=attendee_id,
            event_id=request.event_id,
            quantity=request.quantity,
            total_price=request.total_price,
            payment_status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now
        )
        db.add(reservation)
        await db.commit()

        logger.info(
            f"Reserva {reservation.id} creada: attendee={attendee_id}, "
            f"evento={request.event_id}, quantity={request.quantity}"
        )

        return {
            "reservationId": str(reservation.id),
            "eventId": str(request.event_id),
            "quantity": request.quantity,
            "totalPrice": float(request.total_price),
            "paymentStatus": PaymentStatus.PENDING.value,
        }

    async def update_payment_status(
        self,
        db: AsyncSession,
        reservation_id,
        attendee_id: uuid.UUID,
        status: PaymentStatus
    ) -> Dict:
        """
        Actualizar el estado de pago de una reserva del attendee.

        `status` ya viene normalizado desde el borde (endpoint o webhook).
        La tabla de transiciones se aplica en el WHERE del UPDATE, así que
        dos requests concurrentes no pueden saltarse la validación.

        Si el estado resultante es confirmed se ejecuta la emisión de tickets
        después del commit; un fallo de emisión no cambia la respuesta.
        """
        reservation_id = parse_uuid(reservation_id)
        status = PaymentStatus(status)

        stmt = (
            update(AttendeeReservation)
            .where(
                AttendeeReservation.id == reservation_id,
                AttendeeReservation.attendee_id == attendee_id,
                AttendeeReservation.payment_status.in_([s.value for s in allowed_sources(status)])
            )
            .values(payment_status=status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            stmt_current = select(AttendeeReservation.payment_status).where(
                AttendeeReservation.id == reservation_id,
                AttendeeReservation.attendee_id == attendee_id
            )
            current = (await db.execute(stmt_current)).scalar_one_or_none()
            await db.rollback()
            if current is None:
                raise NotFoundOrForbidden("Reserva no encontrada")
            raise InvalidStatusTransition(
                f"No se puede cambiar el estado de pago de '{current}' a '{status.value}'"
            )

        # El cambio de estado es definitivo antes de emitir tickets
        await db.commit()
        logger.info(f"Reserva {reservation_id}: payment_status -> {status.value}")

        if status == PaymentStatus.CONFIRMED:
            await self._issue_tickets_best_effort(reservation_id)

        return {
            "reservationId": str(reservation_id),
            "paymentStatus": status.value,
        }

    async def _issue_tickets_best_effort(self, reservation_id: uuid.UUID):
        """Emitir tickets; los fallos quedan en el log para reconciliación"""
        try:
            result = await self.issuance_service.issue_tickets_if_absent(reservation_id)
            if result.already_issued:
                logger.info(f"Reserva {reservation_id}: tickets ya emitidos")
            else:
                logger.info(f"Reserva {reservation_id}: {result.issued} tickets emitidos")
        except TicketIssuanceError as e:
            logger.error(f"[ALERTA] Emisión fallida, reserva confirmada sin tickets: {e}")
        except Exception as e:
            logger.error(
                f"[ALERTA] Error inesperado emitiendo tickets para reserva {reservation_id}: {e}",
                exc_info=True
            )

    async def apply_gateway_notification(
        self,
        db: AsyncSession,
        reservation_id,
        status: PaymentStatus
    ) -> Dict:
        """
        Aplicar una notificación de la pasarela de pago.

        El attendee dueño se resuelve desde la reserva y luego se ejecuta el
        mismo flujo que el endpoint del attendee.
        """
        try:
            reservation_uuid = parse_uuid(reservation_id)
        except ValidationError:
            raise NotFoundOrForbidden("Reserva no encontrada")

        stmt = select(AttendeeReservation.attendee_id).where(AttendeeReservation.id == reservation_uuid)
        attendee_id = (await db.execute(stmt)).scalar_one_or_none()
        if attendee_id is None:
            await db.rollback()
            raise NotFoundOrForbidden("Reserva no encontrada")

        return await self.update_payment_status(db, reservation_uuid, attendee_id, status)

    async def list_reservations(self, db: AsyncSession, user_id) -> List[Dict]:
        """Reservas del usuario con datos del evento, más recientes primero"""
        attendee_id = await self.get_attendee_id(db, user_id)
        if attendee_id is None:
            return []

        stmt = (
            select(AttendeeReservation, Event)
            .join(Event, AttendeeReservation.event_id == Event.id, isouter=True)
            .where(AttendeeReservation.attendee_id == attendee_id)
            .order_by(AttendeeReservation.created_at.desc())
        )
        result = await db.execute(stmt)

        reservations = []
        for reservation, event in result.all():
            summary = ReservationSummary(
                reservationId=str(reservation.id),
                eventId=str(reservation.event_id),
                eventTitle=event.name if event else None,
                eventDate=event.start_date if event else None,
                eventStartTime=event.start_time if event else None,
                eventEndTime=event.end_time if event else None,
                quantity=reservation.quantity,
                totalPrice=float(reservation.total_price),
                paymentStatus=reservation.payment_status,
                createdAt=reservation.created_at
            )
            reservations.append(summary.model_dump(mode="json"))
        return reservations

    async def list_confirmed_tickets(self, db: AsyncSession, user_id) -> List[Dict]:
        """Tickets del usuario cuyas reservas están confirmadas"""
        attendee_id = await self.get_attendee_id(db, user_id)
        if attendee_id is None:
            raise NotFoundOrForbidden("Attendee no encontrado")

        stmt = (
            select(Ticket, AttendeeReservation.event_id, Event, Venue.name)
            .join(AttendeeReservation, Ticket.reservation_id == AttendeeReservation.id)
            .join(Event, AttendeeReservation.event_id == Event.id, isouter=True)
            .join(VenueReservation, Event.venue_reservation_id == VenueReservation.id, isouter=True)
            .join(Venue, VenueReservation.venue_id == Venue.id, isouter=True)
            .where(
                AttendeeReservation.attendee_id == attendee_id,
                AttendeeReservation.payment_status == PaymentStatus.CONFIRMED.value
            )
            .order_by(AttendeeReservation.created_at.desc(), Ticket.ticket_number)
        )
        result = await db.execute(stmt)

        tickets = []
        for ticket, event_id, event, venue_name in result.all():
            summary = TicketSummary(
                ticketId=str(ticket.id),
                ticketNumber=ticket.ticket_number,
                reservationId=str(ticket.reservation_id),
                payload=ticket.payload,
                signature=ticket.signature,
                eventId=str(event_id),
                eventTitle=event.name if event else None,
                eventDate=event.start_date if event else None,
                eventStartTime=event.start_time if event else None,
                venueName=venue_name,
                createdAt=ticket.created_at
            )
            tickets.append(summary.model_dump(mode="json"))
        return tickets
