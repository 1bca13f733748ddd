"""Mantenimiento periódico de reservas"""
from sqlalchemy import select, delete, exists, and_, or_
from sqlalchemy.ext.asyncio import async_sessionmaker
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import logging

from app.core.config import settings
from shared.database.connection import get_session_maker
from shared.database.models import AttendeeReservation, Event, Ticket, VenueReservation
from shared.exceptions import IssuanceConflict, TicketIssuanceError
from shared.payments.status import PaymentStatus
from shared.utils.retry import retry_with_backoff
from services.ticket_purchase.services.ticket_issuance_service import TicketIssuanceService

logger = logging.getLogger(__name__)


async def purge_stale_pending_reservations(
    session_factory: Optional[async_sessionmaker] = None,
    max_age_minutes: Optional[int] = None,
    now: Optional[datetime] = None
) -> Dict:
    """
    Eliminar reservas que siguen en pending después del TTL.

    Borrado definitivo (no cancelación) de reservas de attendees y de venues.
    Cada tabla se purga en su propia transacción: un fallo en venues no
    deshace la purga de attendees. Las reservas de venue referenciadas por
    un evento se conservan.
    """
    session_factory = session_factory or get_session_maker()
    max_age_minutes = max_age_minutes or settings.PENDING_RESERVATION_TTL_MINUTES
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=max_age_minutes)

    async with session_factory() as session:
        attendee_result = await session.execute(
            delete(AttendeeReservation)
            .where(
                AttendeeReservation.payment_status == PaymentStatus.PENDING.value,
                AttendeeReservation.created_at < cutoff
            )
            .execution_options(synchronize_session=False)
        )
        await session.commit()

    referenced_by_event = exists().where(Event.venue_reservation_id == VenueReservation.id)
    async with session_factory() as session:
        venue_result = await session.execute(
            delete(VenueReservation)
            .where(
                VenueReservation.payment_status == PaymentStatus.PENDING.value,
                VenueReservation.created_at < cutoff,
                ~referenced_by_event
            )
            .execution_options(synchronize_session=False)
        )
        await session.commit()

    summary = {
        "attendeeReservations": attendee_result.rowcount,
        "venueReservations": venue_result.rowcount,
    }
    if summary["attendeeReservations"] or summary["venueReservations"]:
        logger.info(
            f"[CLEANUP] Eliminadas {summary['attendeeReservations']} reservas de attendees y "
            f"{summary['venueReservations']} de venues pendientes desde antes de {cutoff.isoformat()}"
        )
    return summary


async def reconcile_confirmed_reservations(
    session_factory: Optional[async_sessionmaker] = None,
    batch_size: Optional[int] = None,
    issuance_service: Optional[TicketIssuanceService] = None,
    max_retries: int = 3,
    initial_delay: float = 1.0
) -> Dict:
    """
    Emitir tickets para reservas confirmadas que quedaron sin tickets.

    Los candidatos se recorren en páginas de `batch_size` ordenadas por
    (updated_at, id), avanzando con keyset: las reservas que fallan no
    vuelven a aparecer en la misma corrida ni bloquean a las siguientes.

    IssuanceConflict se reintenta con backoff exponencial. Los errores de
    integridad se registran y la reserva queda para remediación manual.
    """
    session_factory = session_factory or get_session_maker()
    batch_size = batch_size or settings.RECONCILE_BATCH_SIZE
    issuance_service = issuance_service or TicketIssuanceService(session_factory=session_factory)

    has_tickets = exists().where(Ticket.reservation_id == AttendeeReservation.id)
    base_stmt = (
        select(AttendeeReservation.id, AttendeeReservation.updated_at)
        .where(
            AttendeeReservation.payment_status == PaymentStatus.CONFIRMED.value,
            ~has_tickets
        )
        .order_by(AttendeeReservation.updated_at, AttendeeReservation.id)
        .limit(batch_size)
    )

    summary = {"checked": 0, "reconciled": 0, "ticketsIssued": 0, "failed": []}
    last_seen = None

    while True:
        stmt = base_stmt
        if last_seen is not None:
            last_updated_at, last_id = last_seen
            stmt = stmt.where(
                or_(
                    AttendeeReservation.updated_at > last_updated_at,
                    and_(
                        AttendeeReservation.updated_at == last_updated_at,
                        AttendeeReservation.id > last_id
                    )
                )
            )
        async with session_factory() as session:
            page = (await session.execute(stmt)).all()
        if not page:
            break

        last_seen = (page[-1].updated_at, page[-1].id)
        summary["checked"] += len(page)

        for row in page:
            reservation_id = row.id
            try:
                result = await retry_with_backoff(
                    lambda: issuance_service.issue_tickets_if_absent(reservation_id),
                    max_retries=max_retries,
                    initial_delay=initial_delay,
                    exceptions=(IssuanceConflict,)
                )
            except TicketIssuanceError as e:
                logger.error(f"[RECONCILE] Reserva {reservation_id} requiere remediación manual: {e}")
                summary["failed"].append(str(reservation_id))
                continue

            if result.issued:
                summary["reconciled"] += 1
                summary["ticketsIssued"] += result.issued

        if len(page) < batch_size:
            break

    if summary["checked"]:
        logger.info(
            f"[RECONCILE] Revisadas {summary['checked']}, reconciliadas {summary['reconciled']}, "
            f"fallidas {len(summary['failed'])}"
        )
    return summary
