"""Modelos SQLAlchemy del backend de reservas"""
from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Time, ForeignKey, Numeric, Text,
    Uuid, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from shared.database.connection import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, nullable=False, server_default="attendee")  # organizer, attendee, regular, venue_owner, admin, vendor
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relaciones
    attendee = relationship("Attendee", back_populates="user", uselist=False)
    organizer = relationship("Organizer", back_populates="user", uselist=False)
    venues = relationship("Venue", back_populates="owner")


class Attendee(Base):
    __tablename__ = "attendees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relaciones
    user = relationship("User", back_populates="attendee")
    reservations = relationship("AttendeeReservation", back_populates="attendee")


class Organizer(Base):
    __tablename__ = "organizers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, nullable=False)
    company_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relaciones
    user = relationship("User", back_populates="organizer")
    venue_reservations = relationship("VenueReservation", back_populates="organizer")
    events = relationship("Event", back_populates="organizer")


class Venue(Base):
    __tablename__ = "venues"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    location = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relaciones
    owner = relationship("User", back_populates="venues")
    reservations = relationship("VenueReservation", back_populates="venue")


class VenueReservation(Base):
    """Reserva de un venue por parte de un organizador"""
    __tablename__ = "venue_reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizer_id = Column(Uuid, ForeignKey("organizers.id"), nullable=False, index=True)
    venue_id = Column(Uuid, ForeignKey("venues.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    attendees_count = Column(Integer, nullable=False, server_default="1")
    pricing_option = Column(String, nullable=False, server_default="hourly")  # hourly, daily
    total_cost = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, server_default="pending", index=True)  # pending, confirmed, cancelled, failed
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relaciones
    organizer = relationship("Organizer", back_populates="venue_reservations")
    venue = relationship("Venue", back_populates="reservations")


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizer_id = Column(Uuid, ForeignKey("organizers.id"), nullable=False, index=True)
    venue_reservation_id = Column(Uuid, ForeignKey("venue_reservations.id"), nullable=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relaciones
    organizer = relationship("Organizer", back_populates="events")
    venue_reservation = relationship("VenueReservation")
    reservations = relationship("AttendeeReservation", back_populates="event")


class AttendeeReservation(Base):
    """
    Intención de compra de `quantity` tickets para un evento.

    `quantity` no cambia después de la creación; solo `payment_status` transiciona.
    """
    __tablename__ = "attendee_reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attendee_id = Column(Uuid, ForeignKey("attendees.id"), nullable=False, index=True)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, server_default="pending", index=True)  # pending, confirmed, cancelled, failed
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_attendee_reservations_quantity_positive"),
    )

    # Relaciones
    attendee = relationship("Attendee", back_populates="reservations")
    event = relationship("Event", back_populates="reservations")
    tickets = relationship("Ticket", back_populates="reservation")


class Ticket(Base):
    """Unidad de admisión; el payload es autocontenido para validar en el escaneo"""
    __tablename__ = "tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reservation_id = Column(Uuid, ForeignKey("attendee_reservations.id"), nullable=False, index=True)
    ticket_number = Column(Integer, nullable=False)  # 1..quantity dentro de la reserva
    payload = Column(Text, nullable=False)  # JSON
    signature = Column(String, unique=True, nullable=False)  # HMAC-SHA256 del payload
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("reservation_id", "ticket_number", name="uq_tickets_reservation_number"),
    )

    # Relaciones
    reservation = relationship("AttendeeReservation", back_populates="tickets")
