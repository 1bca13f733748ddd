"""Rutas de tickets del attendee"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
from shared.database.connection import get_db
from shared.auth.dependencies import get_current_user
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.ticket_purchase.services.reservation_service import ReservationService


router = APIRouter()


@router.get("/tickets")
@limiter.limit(RATE_LIMITS["read"])
async def get_attendee_tickets(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    '''
    Tickets del usuario autenticado

    Solo incluye tickets de reservas confirmadas, con datos del evento y del venue.
    '''
    service = ReservationService()
    tickets = await service.list_confirmed_tickets(db, current_user["user_id"])
    return {
        "success": True,
        "count": len(tickets),
        "data": tickets
    }
