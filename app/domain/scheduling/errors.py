"""Typed failures raised by the scheduling engine.

Every error carries an HTTP ``status_code`` and a stable ``code`` so the API
layer can map it without inspecting messages. Nothing in the engine catches
and retries these; retries are the caller's decision.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for scheduling failures"""

    status_code = 400
    code = "BOOKING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "detail": self.message}


class OutOfOperatingHours(BookingError):
    code = "OUT_OF_OPERATING_HOURS"


class OverlappingBooking(BookingError):
    status_code = 409
    code = "OVERLAPPING_BOOKING"

    def __init__(self, conflicting_id: Optional[int], message: Optional[str] = None):
        super().__init__(message or "This time slot is already booked. Please select a different time.")
        self.conflicting_id = conflicting_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conflictingReservationId"] = self.conflicting_id
        return data


class InvalidDuration(BookingError):
    code = "INVALID_DURATION"


class MisalignedStartTime(BookingError):
    code = "MISALIGNED_START_TIME"


class RoomInactive(BookingError):
    code = "ROOM_INACTIVE"


class RoomNotFound(BookingError):
    status_code = 404
    code = "ROOM_NOT_FOUND"


class ReservationNotFound(BookingError):
    status_code = 404
    code = "RESERVATION_NOT_FOUND"


class ContactNotFound(BookingError):
    status_code = 404
    code = "CONTACT_NOT_FOUND"


class InvalidStatusTransition(BookingError):
    status_code = 409
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid booking transition: {current} → {target}")
        self.current = current
        self.target = target


class InvalidDeleteState(BookingError):
    status_code = 409
    code = "INVALID_DELETE_STATE"


class CapacityExceeded(BookingError):
    code = "CAPACITY_EXCEEDED"


class PastDate(BookingError):
    code = "PAST_DATE"


class TransientStoreError(BookingError):
    """Store-level failure that is safe to retry as-is (lock timeout, serialization failure)"""

    status_code = 503
    code = "TRANSIENT_STORE_FAILURE"


class DuplicateRoomName(BookingError):
    status_code = 409
    code = "DUPLICATE_ROOM_NAME"


class InvalidOperatingWindow(BookingError):
    code = "INVALID_OPERATING_WINDOW"
