"""Motor de emisión de tickets para reservas confirmadas"""
from dataclasses import dataclass
from datetime import datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Optional
import logging
import uuid

from app.core.config import settings
from shared.database.connection import get_session_maker
from shared.database.locking import ExclusiveRowLock, LockNotAcquired
from shared.database.models import AttendeeReservation, Event, Ticket
from shared.exceptions import (
    DataIntegrityError, IssuanceConflict, ReservationNotConfirmed
)
from shared.payments.status import PaymentStatus
from shared.utils.ticket_payload import build_ticket_payload, sign_ticket_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuanceResult:
    reservation_id: uuid.UUID
    issued: int
    already_issued: bool = False

    def to_dict(self) -> dict:
        return {
            "reservationId": str(self.reservation_id),
            "issued": self.issued,
            "alreadyIssued": self.already_issued,
        }


class TicketIssuanceService:
    """
    Emite exactamente `quantity` tickets por reserva confirmada, una sola vez.

    Protocolo (una transacción):
      1. SELECT ... FOR UPDATE sobre la fila de la reserva. Cualquier llamada
         concurrente para la misma reserva espera en este lock.
      2. Contar tickets existentes. Si hay alguno -> rollback, issued=0.
      3. Leer cantidad + datos del evento (join) e insertar 1..quantity tickets.
      4. Commit. Cualquier fallo antes del commit deshace todos los inserts.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        lock_timeout_ms: Optional[int] = None,
        signing_secret: Optional[str] = None
    ):
        self._session_factory = session_factory
        self.lock_timeout_ms = lock_timeout_ms or settings.DB_LOCK_TIMEOUT_MS
        self.signing_secret = signing_secret

    @property
    def session_factory(self) -> async_sessionmaker:
        """Resuelto al usar para tomar el engine inicializado en el arranque"""
        if self._session_factory is None:
            self._session_factory = get_session_maker()
        return self._session_factory

    async def issue_tickets_if_absent(self, reservation_id: uuid.UUID) -> IssuanceResult:
        """
        Emitir tickets si la reserva todavía no tiene ninguno

        Raises:
            IssuanceConflict: lock-wait timeout o fallo de la transacción
            DataIntegrityError: reserva/evento inexistente o cantidad inválida
            ReservationNotConfirmed: la reserva no está en estado confirmed
        """
        try:
            async with ExclusiveRowLock(
                self.session_factory,
                AttendeeReservation,
                reservation_id,
                lock_timeout_ms=self.lock_timeout_ms
            ) as lock:
                return await self._issue_locked(lock, reservation_id)
        except LockNotAcquired as e:
            logger.error(f"[ISSUANCE] Timeout esperando lock de reserva {reservation_id}: {e.cause}")
            raise IssuanceConflict(reservation_id, "No se pudo adquirir el lock de la reserva") from e
        except SQLAlchemyError as e:
            logger.error(f"[ISSUANCE] Transacción fallida para reserva {reservation_id}: {e}", exc_info=True)
            raise IssuanceConflict(reservation_id, f"Error en la transacción de emisión: {type(e).__name__}") from e

    async def _issue_locked(self, lock: ExclusiveRowLock, reservation_id: uuid.UUID) -> IssuanceResult:
        session: AsyncSession = lock.session
        reservation: Optional[AttendeeReservation] = lock.row

        if reservation is None:
            raise DataIntegrityError(reservation_id, "Reserva no encontrada")

        if reservation.payment_status != PaymentStatus.CONFIRMED.value:
            raise ReservationNotConfirmed(
                reservation_id,
                f"Estado actual '{reservation.payment_status}', se requiere 'confirmed'"
            )

        stmt_count = select(func.count(Ticket.id)).where(Ticket.reservation_id == reservation_id)
        existing = (await session.execute(stmt_count)).scalar() or 0

        if existing > 0:
            if existing != reservation.quantity:
                logger.error(
                    f"[ISSUANCE] Reserva {reservation_id} tiene {existing} tickets "
                    f"pero quantity={reservation.quantity}"
                )
            logger.info(f"[ISSUANCE] Reserva {reservation_id} ya tiene {existing} tickets, no se emiten más")
            lock.release()
            return IssuanceResult(reservation_id=reservation_id, issued=0, already_issued=True)

        # Cantidad y datos del evento en una sola lectura
        stmt = (
            select(
                AttendeeReservation.quantity,
                AttendeeReservation.attendee_id,
                AttendeeReservation.event_id,
                Event.name,
                Event.start_date,
                Event.end_date,
                Event.start_time,
                Event.end_time,
            )
            .join(Event, AttendeeReservation.event_id == Event.id, isouter=True)
            .where(AttendeeReservation.id == reservation_id)
        )
        row = (await session.execute(stmt)).one()

        quantity = row.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            logger.error(f"[ISSUANCE] Reserva {reservation_id} con quantity inválida: {quantity!r}")
            raise DataIntegrityError(reservation_id, f"quantity inválida: {quantity!r}")

        if row.name is None:
            logger.error(
                f"[ISSUANCE] Evento {row.event_id} no existe para reserva confirmada {reservation_id}; "
                f"requiere remediación manual"
            )
            raise DataIntegrityError(reservation_id, f"Evento {row.event_id} no encontrado")

        for ticket_number in range(1, quantity + 1):
            payload = build_ticket_payload(
                reservation_id=reservation_id,
                event_id=row.event_id,
                event_name=row.name,
                event_start_date=row.start_date,
                event_end_date=row.end_date,
                event_start_time=row.start_time,
                event_end_time=row.end_time,
                ticket_number=ticket_number,
                attendee_id=row.attendee_id,
            )
            ticket = Ticket(
                id=uuid.uuid4(),
                reservation_id=reservation_id,
                ticket_number=ticket_number,
                payload=payload,
                signature=sign_ticket_payload(payload, self.signing_secret),
                created_at=datetime.now(timezone.utc)
            )
            session.add(ticket)
            await session.flush()

        logger.info(f"[ISSUANCE] Emitidos {quantity} tickets para reserva {reservation_id}")
        return IssuanceResult(reservation_id=reservation_id, issued=quantity)
