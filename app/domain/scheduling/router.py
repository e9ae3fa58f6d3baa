"""Meeting room booking router - public and admin endpoints"""

import logging
from datetime import date, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...models_booking import ReservationStatus
from ...rate_limiter import create_rate_limiter
from ...services.activity_logger import get_admin_actor, log_admin_activity
from .lifecycle import BookingLifecycle
from .schemas import (
    AdminBookingCreate,
    AvailabilityResponse,
    BookingCancel,
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    MaxDurationResponse,
    SlotResponse,
)
from .slots import format_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meeting-rooms", tags=["Meeting Rooms"])
admin_router = APIRouter(prefix="/admin/meeting-rooms", tags=["Meeting Rooms Admin"])

public_booking_limit = create_rate_limiter(
    limit=config.PUBLIC_BOOKING_RATE_LIMIT,
    window_seconds=config.PUBLIC_BOOKING_RATE_WINDOW_SECONDS,
    key_prefix="room_booking",
)


def get_booking_lifecycle(db: Session = Depends(get_db)) -> BookingLifecycle:
    """Dependency injection for BookingLifecycle"""
    return BookingLifecycle(db)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("/{room_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    room_id: int,
    booking_date: date = Query(..., alias="date"),
    granularity: Optional[int] = Query(None, ge=1, le=240),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
):
    """Slot grid for one room and date, open through close inclusive"""
    step = granularity or lifecycle.policy.granularity_minutes
    slots = lifecycle.availability(room_id, booking_date, granularity=step)
    return AvailabilityResponse(
        roomId=room_id,
        date=booking_date,
        granularity=step,
        slots=[SlotResponse(**slot.to_dict()) for slot in slots],
    )


@router.get("/{room_id}/max-duration", response_model=MaxDurationResponse)
async def get_max_duration(
    room_id: int,
    booking_date: date = Query(..., alias="date"),
    start: time = Query(...),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
):
    """Longest whole-hour booking that can begin at ``start``"""
    max_hours = lifecycle.max_duration(room_id, booking_date, start)
    return MaxDurationResponse(
        roomId=room_id,
        date=booking_date,
        startTime=format_time(start),
        maxHours=max_hours,
    )


@router.post("/book", response_model=BookingResponse, status_code=201)
async def book_meeting_room(
    data: BookingCreate,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    _: None = Depends(public_booking_limit),
):
    """Self-service booking by a member or a guest; enters as PENDING"""
    logger.info(
        f"📥 Public booking request: room {data.roomId} {data.bookingDate} "
        f"{format_time(data.startTime)} for {data.duration}h ({data.sourceKind.value})"
    )
    reservation = lifecycle.create_reservation(data)
    return BookingResponse.from_reservation(reservation)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.post("/book", response_model=BookingResponse, status_code=201)
async def admin_book_meeting_room(
    data: AdminBookingCreate,
    request: Request,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    actor: str = Depends(get_admin_actor),
):
    """Admin booking; past dates allowed and may be confirmed on the spot"""
    reservation = lifecycle.create_reservation(
        data,
        policy=lifecycle.policy.for_admin(),
        created_by_admin=True,
        confirm_immediately=data.confirmImmediately,
        customer_id=data.customerId,
    )
    log_admin_activity(
        lifecycle.db,
        actor,
        "MEETING_ROOM_BOOKING_CREATE",
        f"Booked {reservation.room.name} for {reservation.contact_name} on "
        f"{reservation.booking_date} {format_time(reservation.start_time)}-"
        f"{format_time(reservation.end_time)}",
        reference_id=reservation.id,
        reference_type="MEETING_ROOM_BOOKING",
        details={"referenceCode": reservation.reference_code, "status": reservation.status},
        request=request,
    )
    return BookingResponse.from_reservation(reservation)


@admin_router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    room_id: Optional[int] = Query(None, alias="roomId"),
    booking_date: Optional[date] = Query(None, alias="date"),
    status: Optional[ReservationStatus] = Query(None),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
):
    """All bookings, optionally filtered by room, date and status"""
    reservations = lifecycle.list_reservations(
        room_id=room_id,
        booking_date=booking_date,
        status=status.value if status else None,
    )
    return [BookingResponse.from_reservation(r) for r in reservations]


@admin_router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
):
    return BookingResponse.from_reservation(lifecycle.get_reservation(booking_id))


@admin_router.patch("/bookings/{booking_id}", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: int,
    data: BookingReschedule,
    request: Request,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    actor: str = Depends(get_admin_actor),
):
    """Move a booking to a new date/time; excluded from its own conflict check"""
    reservation = lifecycle.reschedule_reservation(
        booking_id, data, policy=lifecycle.policy.for_admin()
    )
    log_admin_activity(
        lifecycle.db,
        actor,
        "MEETING_ROOM_BOOKING_RESCHEDULE",
        f"Moved booking {reservation.reference_code} to {reservation.booking_date} "
        f"{format_time(reservation.start_time)}-{format_time(reservation.end_time)}",
        reference_id=reservation.id,
        reference_type="MEETING_ROOM_BOOKING",
        request=request,
    )
    return BookingResponse.from_reservation(reservation)


@admin_router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    request: Request,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    actor: str = Depends(get_admin_actor),
):
    previous = lifecycle.get_reservation(booking_id).status
    reservation = lifecycle.set_status(booking_id, data.status.value, reason=data.reason)
    log_admin_activity(
        lifecycle.db,
        actor,
        "MEETING_ROOM_BOOKING_STATUS",
        f"Booking {reservation.reference_code}: {previous} → {reservation.status}",
        reference_id=reservation.id,
        reference_type="MEETING_ROOM_BOOKING",
        details={"from": previous, "to": reservation.status, "reason": data.reason},
        request=request,
    )
    return BookingResponse.from_reservation(reservation)


@admin_router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    data: BookingCancel,
    request: Request,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    actor: str = Depends(get_admin_actor),
):
    """Cancel a PENDING or CONFIRMED booking; its payment record is voided"""
    reservation = lifecycle.cancel_reservation(booking_id, reason=data.reason)
    log_admin_activity(
        lifecycle.db,
        actor,
        "MEETING_ROOM_BOOKING_CANCEL",
        f"Cancelled booking {reservation.reference_code}: {data.reason}",
        reference_id=reservation.id,
        reference_type="MEETING_ROOM_BOOKING",
        request=request,
    )
    return BookingResponse.from_reservation(reservation)


@admin_router.post("/bookings/{booking_id}/check-in", response_model=BookingResponse)
async def check_in_booking(
    booking_id: int,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
):
    reservation = lifecycle.check_in(booking_id)
    return BookingResponse.from_reservation(reservation)


@admin_router.delete("/bookings/{booking_id}")
async def delete_booking(
    booking_id: int,
    request: Request,
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
    actor: str = Depends(get_admin_actor),
):
    """Hard delete; the booking must already be CANCELLED"""
    reference_code = lifecycle.get_reservation(booking_id).reference_code
    lifecycle.delete_reservation(booking_id)
    log_admin_activity(
        lifecycle.db,
        actor,
        "MEETING_ROOM_BOOKING_DELETE",
        f"Deleted booking {reference_code}",
        reference_id=booking_id,
        reference_type="MEETING_ROOM_BOOKING",
        request=request,
    )
    return {"success": True, "message": "Booking deleted"}
