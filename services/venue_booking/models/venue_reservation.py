"""Modelos Pydantic para reservas de venues"""
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, StrictInt, model_validator
from typing import Optional
from uuid import UUID
from decimal import Decimal
from datetime import date, time


class CreateVenueReservationRequest(BaseModel):
    """Request canónico de reserva de venue (nombres alternativos aceptados por alias)"""
    model_config = ConfigDict(extra="ignore")

    venue_id: UUID = Field(
        validation_alias=AliasChoices("venueId", "venue_id", "venue_ID", "venue")
    )
    start_date: date = Field(
        validation_alias=AliasChoices("startDate", "start_date", "reservation_date")
    )
    end_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("endDate", "end_date")
    )
    start_time: time = Field(
        validation_alias=AliasChoices("startTime", "start_time")
    )
    end_time: time = Field(
        validation_alias=AliasChoices("endTime", "end_time")
    )
    attendees_count: StrictInt = Field(
        default=1,
        gt=0,
        validation_alias=AliasChoices("attendeesCount", "attendees_count", "attendees")
    )
    pricing_option: str = Field(
        default="hourly",
        min_length=1,
        validation_alias=AliasChoices("pricingOption", "pricing_option", "pricing")
    )
    total_cost: Decimal = Field(
        gt=0,
        max_digits=12,
        decimal_places=2,
        validation_alias=AliasChoices("totalCost", "total_cost", "cost")
    )

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate no puede ser anterior a startDate")
        return self


class VenuePaymentStatusRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_status: str = Field(
        validation_alias=AliasChoices("paymentStatus", "payment_status", "status")
    )
