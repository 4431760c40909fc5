"""SQLAlchemy ORM models for the document store, trips and bookings."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Document(Base):
    """Document table - path-addressed JSON documents with a version stamp."""

    __tablename__ = "document"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Trip(Base):
    """Trip table - shared trips and their accepted members."""

    __tablename__ = "trip"

    trip_id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False)
    accepted: Mapped[list[str]] = mapped_column(JsonType, nullable=False, default=list)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TripChange(Base):
    """Trip change table - audit trail of shared itinerary edits."""

    __tablename__ = "trip_change"
    __table_args__ = (Index("idx_trip_change_trip_seq", "trip_id", "seq"),)

    # Monotonic ordering key; timestamps can tie
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    change_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    trip_id: Mapped[str] = mapped_column(Text, nullable=False)
    actor_id: Mapped[str] = mapped_column(Text, nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False, default=dict)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class FlightBooking(Base):
    """Flight booking table - confirmed orders as returned by the provider."""

    __tablename__ = "flight_booking"
    __table_args__ = (Index("idx_flight_booking_user", "user_id", "created_at"),)

    booking_id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class HotelBooking(Base):
    """Hotel booking table - confirmed orders as returned by the provider."""

    __tablename__ = "hotel_booking"
    __table_args__ = (Index("idx_hotel_booking_user", "user_id", "created_at"),)

    booking_id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
