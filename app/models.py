from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Member(Base):
    """Logged-in coworking member (membership bookkeeping lives elsewhere)"""

    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    contact_number = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="member")


class Customer(Base):
    """Walk-in / guest customer, created on first guest booking"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)
    contact_number = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="customer")


class Payment(Base):
    """Payment record linked to a booking; verification happens outside this service"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    payment_method = Column(String(50), nullable=False, default="CASH")  # GCASH, BANK_TRANSFER, CASH, CREDIT_CARD
    status = Column(String(50), nullable=False, default="PENDING")  # PENDING, PAID, REJECTED
    payment_reference = Column(String(64), unique=True, index=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ActivityLog(Base):
    """Audit trail of administrative actions"""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor = Column(String(255), nullable=False)
    action = Column(String(100), nullable=False, index=True)  # e.g. MEETING_ROOM_BOOKING_CANCEL
    description = Column(Text, nullable=False)
    reference_id = Column(String(64), nullable=True, index=True)
    reference_type = Column(String(100), nullable=True)  # MEETING_ROOM_BOOKING, MEETING_ROOM
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
