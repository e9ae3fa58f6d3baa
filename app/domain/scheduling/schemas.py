"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models_booking import ReservationStatus, SourceKind
from ...shared.validators import validate_email, validate_mobile

PaymentMethod = Literal["GCASH", "BANK_TRANSFER", "CASH", "CREDIT_CARD"]


class BookingCreate(BaseModel):
    """Schema for a self-service booking (member or guest)"""

    roomId: int
    bookingDate: date
    startTime: time
    duration: float = Field(gt=0)
    sourceKind: SourceKind = SourceKind.CUSTOMER
    memberId: Optional[int] = None
    contactName: str = Field(min_length=1)
    contactEmail: Optional[str] = None
    contactMobile: Optional[str] = None
    company: Optional[str] = None
    designation: Optional[str] = None
    numberOfAttendees: int = Field(default=1, ge=1)
    purpose: Optional[str] = None
    paymentMethod: PaymentMethod = "CASH"
    totalAmount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @field_validator("contactEmail")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator("contactMobile")
    @classmethod
    def validate_contact_mobile(cls, v):
        return validate_mobile(v)

    @model_validator(mode="after")
    def check_owner(self):
        if self.sourceKind == SourceKind.MEMBER and self.memberId is None:
            raise ValueError("memberId is required for member bookings")
        return self


class AdminBookingCreate(BookingCreate):
    """Schema for an admin-created booking"""

    customerId: Optional[int] = None
    confirmImmediately: bool = False  # cash on site / perk already consumed


class BookingReschedule(BaseModel):
    """Schema for moving a booking to a new date/time"""

    bookingDate: date
    startTime: time
    duration: float = Field(gt=0)
    totalAmount: Optional[float] = Field(default=None, ge=0)


class BookingStatusUpdate(BaseModel):
    status: ReservationStatus
    reason: Optional[str] = None


class BookingCancel(BaseModel):
    reason: str = Field(min_length=1)


class SlotResponse(BaseModel):
    time: str
    isAvailable: bool
    isSelectable: bool
    isBoundary: bool = False


class AvailabilityResponse(BaseModel):
    roomId: int
    date: date
    granularity: int
    slots: list[SlotResponse]


class MaxDurationResponse(BaseModel):
    roomId: int
    date: date
    startTime: str
    maxHours: int


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    referenceCode: str
    roomId: int
    sourceKind: str
    memberId: Optional[int] = None
    customerId: Optional[int] = None
    bookingDate: date
    startTime: str
    endTime: str
    duration: float
    status: str
    contactName: str
    contactEmail: Optional[str] = None
    contactMobile: Optional[str] = None
    company: Optional[str] = None
    numberOfAttendees: int
    purpose: Optional[str] = None
    totalAmount: float
    paymentId: Optional[int] = None
    cancellationReason: Optional[str] = None
    createdByAdmin: bool = False
    createdAt: Optional[datetime] = None
    confirmedAt: Optional[datetime] = None
    checkedInAt: Optional[datetime] = None
    checkedOutAt: Optional[datetime] = None
    warnings: list[str] = []

    @classmethod
    def from_reservation(cls, r) -> "BookingResponse":
        warnings = []
        if r.room is not None and r.number_of_attendees > r.room.capacity:
            warnings.append(f"Room capacity is {r.room.capacity} people")
        return cls(
            id=r.id,
            referenceCode=r.reference_code,
            roomId=r.room_id,
            sourceKind=r.source_kind,
            memberId=r.member_id,
            customerId=r.customer_id,
            bookingDate=r.booking_date,
            startTime=r.start_time.strftime("%H:%M"),
            endTime=r.end_time.strftime("%H:%M"),
            duration=r.duration,
            status=r.status,
            contactName=r.contact_name,
            contactEmail=r.contact_email,
            contactMobile=r.contact_mobile,
            company=r.company,
            numberOfAttendees=r.number_of_attendees,
            purpose=r.purpose,
            totalAmount=r.total_amount,
            paymentId=r.payment_id,
            cancellationReason=r.cancellation_reason,
            createdByAdmin=bool(r.created_by_admin),
            createdAt=r.created_at,
            confirmedAt=r.confirmed_at,
            checkedInAt=r.checked_in_at,
            checkedOutAt=r.checked_out_at,
            warnings=warnings,
        )
