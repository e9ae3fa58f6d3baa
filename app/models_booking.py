"""
Meeting Room Booking Models
Rooms and the reservations made against them
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class SourceKind(str, enum.Enum):
    MEMBER = "MEMBER"
    CUSTOMER = "CUSTOMER"


class MeetingRoom(Base):
    """Bookable meeting room and its daily operating window"""

    __tablename__ = "meeting_rooms"
    __table_args__ = (CheckConstraint("open_time < close_time", name="ck_room_open_before_close"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    cover_photo_url = Column(String(500), nullable=True)
    hourly_rate = Column(Float, nullable=False, default=0.0)
    capacity = Column(Integer, nullable=False, default=1)
    open_time = Column(Time, nullable=False)  # e.g. 09:00
    close_time = Column(Time, nullable=False)  # e.g. 18:00
    amenities = Column(JSON, nullable=True)  # ["projector", "whiteboard"]
    floor = Column(String(50), nullable=True)
    room_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Bumped inside every booking write; the UPDATE takes the row lock that serialises writers
    booking_version = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # No delete cascade: a room with booking history is deactivated, never deleted
    reservations = relationship("Reservation", back_populates="room")


class Reservation(Base):
    """
    A booked interval on a room for one date.

    MEMBER and CUSTOMER bookings share this table (source_kind is the tag) so
    every overlap query sees both kinds at once.
    """

    __tablename__ = "meeting_room_bookings"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_booking_start_before_end"),
        Index("ix_booking_room_date", "room_id", "booking_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reference_code = Column(String(64), unique=True, index=True, nullable=False)

    room_id = Column(Integer, ForeignKey("meeting_rooms.id"), nullable=False)
    source_kind = Column(String(20), nullable=False)  # MEMBER or CUSTOMER
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    created_by_admin = Column(Boolean, default=False, nullable=False)

    # Scheduling
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration = Column(Float, nullable=False)  # Hours (0.5 steps when half-hour durations are enabled)

    # Status workflow: PENDING → CONFIRMED → COMPLETED, with CANCELLED / NO_SHOW exits
    status = Column(String(20), default=ReservationStatus.PENDING.value, nullable=False, index=True)

    # Contact details
    company = Column(String(255), nullable=True)
    contact_name = Column(String(255), nullable=False)
    designation = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_mobile = Column(String(50), nullable=True)
    number_of_attendees = Column(Integer, default=1, nullable=False)
    purpose = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Pricing
    total_amount = Column(Float, nullable=False, default=0.0)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)

    cancellation_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime, nullable=True)
    checked_in_at = Column(DateTime, nullable=True)
    checked_out_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    room = relationship("MeetingRoom", back_populates="reservations")
    member = relationship("Member", back_populates="reservations")
    customer = relationship("Customer", back_populates="reservations")
    payment = relationship("Payment")

    @property
    def is_active(self) -> bool:
        return self.status != ReservationStatus.CANCELLED.value
