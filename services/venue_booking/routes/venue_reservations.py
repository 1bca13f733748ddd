"""Rutas de reservas de venues"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
from shared.database.connection import get_db
from shared.auth.dependencies import get_current_user
from shared.payments.status import normalize_payment_status
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.venue_booking.models.venue_reservation import (
    CreateVenueReservationRequest,
    VenuePaymentStatusRequest
)
from services.venue_booking.services.venue_reservation_service import VenueReservationService


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["reservation"])
async def create_venue_reservation(
    request: Request,
    reservation_request: CreateVenueReservationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Crear reserva de venue (el usuario debe ser organizador)"""
    service = VenueReservationService()
    data = await service.create_reservation(db, current_user["user_id"], reservation_request)
    return {
        "success": True,
        "message": "Reserva creada exitosamente",
        "data": data
    }


@router.get("/organizer")
@limiter.limit(RATE_LIMITS["read"])
async def get_organizer_reservations(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Reservas del organizador autenticado"""
    service = VenueReservationService()
    reservations = await service.list_for_organizer(db, current_user["user_id"])
    if reservations is None:
        return {
            "success": True,
            "message": "El usuario no está registrado como organizador",
            "data": []
        }
    return {
        "success": True,
        "count": len(reservations),
        "data": reservations
    }


@router.get("/venue-owner")
@limiter.limit(RATE_LIMITS["read"])
async def get_venue_owner_reservations(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Reservas sobre los venues del usuario autenticado"""
    service = VenueReservationService()
    reservations = await service.list_for_venue_owner(db, current_user["user_id"])
    return {
        "success": True,
        "count": len(reservations),
        "data": reservations
    }


@router.patch("/{reservation_id}/payment")
@limiter.limit(RATE_LIMITS["payment_status"])
async def update_venue_reservation_payment(
    request: Request,
    reservation_id: str,
    update_request: VenuePaymentStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Actualizar estado de pago (organizador dueño o admin)"""
    payment_status = normalize_payment_status(update_request.payment_status)

    service = VenueReservationService()
    data = await service.update_payment_status(db, reservation_id, current_user, payment_status)
    return {
        "success": True,
        "message": "Estado de pago actualizado",
        "data": data
    }
