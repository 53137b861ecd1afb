import uuid

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class Reservation(Base):
    __tablename__ = "reservations"

    # reservation confirmation code handed to the Inventory Server
    code = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # capacity hold reference issued by the backend
    hold_reference = Column(String, nullable=False)
    product_id = Column(String, nullable=False)
    rate_id = Column(String, nullable=False)
    date = Column(String, nullable=True)    # ISO 8601
    time = Column(String, nullable=True)    # HH:MM
    passengers = Column(JSON, nullable=False)
    booking_source = Column(JSON, nullable=False)
    # HELD | CONFIRMED | CANCELLED | EXPIRED
    state = Column(String, default="HELD", nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    # set once confirmed
    booking_code = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    # booking confirmation code; stable across amendments
    code = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # null for single-step reserve-and-confirm bookings
    reservation_code = Column(String, nullable=True)
    backend_reference = Column(String, nullable=False)
    product_id = Column(String, nullable=False)
    rate_id = Column(String, nullable=False)
    date = Column(String, nullable=True)
    time = Column(String, nullable=True)
    passengers = Column(JSON, nullable=False)
    tickets = Column(JSON, nullable=False)
    # CONFIRMED | CANCELLED
    state = Column(String, default="CONFIRMED", nullable=False)
    revision = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


Index("ix_bookings_reservation", Booking.reservation_code)
