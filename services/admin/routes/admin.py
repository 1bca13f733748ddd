"""Rutas de administración: remediación manual de emisión de tickets"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict
import logging

from shared.auth.dependencies import require_roles
from shared.exceptions import (
    DataIntegrityError, IssuanceConflict, ReservationNotConfirmed
)
from services.ticket_purchase.services.reservation_service import parse_uuid
from services.ticket_purchase.services.ticket_issuance_service import TicketIssuanceService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reservations/{reservation_id}/issue-tickets")
async def issue_reservation_tickets(
    reservation_id: str,
    current_user: Dict = Depends(require_roles("admin"))
):
    """
    Ejecutar la emisión de tickets de una reserva confirmada

    Para reservas que quedaron confirmadas sin tickets. Es idempotente:
    si la reserva ya tiene tickets responde alreadyIssued=true.
    """
    reservation_uuid = parse_uuid(reservation_id)
    logger.info(f"Admin {current_user['user_id']} solicita emisión para reserva {reservation_uuid}")

    try:
        result = await TicketIssuanceService().issue_tickets_if_absent(reservation_uuid)
    except IssuanceConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except (DataIntegrityError, ReservationNotConfirmed) as e:
        raise HTTPException(status_code=422, detail=e.message)

    return {
        "success": True,
        "message": "Tickets emitidos" if result.issued else "La reserva ya tenía tickets",
        "data": result.to_dict()
    }
