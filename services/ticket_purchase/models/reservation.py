"""Modelos Pydantic para reservas de attendees y estado de pago"""
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, StrictInt
from typing import Optional
from uuid import UUID
from decimal import Decimal
from datetime import date, time, datetime


class CreateReservationRequest(BaseModel):
    """
    Request canónico de creación de reserva.

    Los clientes envían el mismo campo con distintos nombres; aquí se
    resuelven todos a un único nombre interno.
    """
    model_config = ConfigDict(extra="ignore")

    event_id: UUID = Field(
        validation_alias=AliasChoices("eventId", "event_id", "event_ID", "event")
    )
    quantity: StrictInt = Field(
        gt=0,
        validation_alias=AliasChoices("quantity", "qty", "ticketCount", "ticket_count")
    )
    total_price: Decimal = Field(
        gt=0,
        max_digits=12,
        decimal_places=2,
        validation_alias=AliasChoices("totalPrice", "total_price", "price")
    )


class PaymentStatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_status: str = Field(
        validation_alias=AliasChoices("paymentStatus", "payment_status", "status")
    )


class PaymentWebhookRequest(BaseModel):
    """Notificación de la pasarela de pago (entrega at-least-once)"""
    model_config = ConfigDict(extra="ignore")

    reservation_id: str = Field(
        validation_alias=AliasChoices("reservationId", "reservation_id")
    )
    status: str = Field(
        validation_alias=AliasChoices("status", "paymentStatus", "payment_status")
    )


class ReservationSummary(BaseModel):
    reservationId: str
    eventId: str
    eventTitle: Optional[str] = None
    eventDate: Optional[date] = None
    eventStartTime: Optional[time] = None
    eventEndTime: Optional[time] = None
    quantity: int
    totalPrice: float
    paymentStatus: str
    createdAt: Optional[datetime] = None


class TicketSummary(BaseModel):
    ticketId: str
    ticketNumber: int
    reservationId: str
    payload: str
    signature: str
    eventId: str
    eventTitle: Optional[str] = None
    eventDate: Optional[date] = None
    eventStartTime: Optional[time] = None
    venueName: Optional[str] = None
    createdAt: Optional[datetime] = None
