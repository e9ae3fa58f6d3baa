"""Booking lifecycle - creation, rescheduling, status transitions and deletion"""

import logging
from datetime import date, datetime, time, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ... import config
from ...models_booking import MeetingRoom, Reservation, ReservationStatus, SourceKind
from ..rooms.repository import RoomRepository
from .availability import Slot, compute_availability, compute_max_duration
from .conflicts import ConflictChecker
from .errors import (
    CapacityExceeded,
    ContactNotFound,
    InvalidDeleteState,
    InvalidDuration,
    InvalidStatusTransition,
    MisalignedStartTime,
    OutOfOperatingHours,
    PastDate,
    ReservationNotFound,
    RoomInactive,
    RoomNotFound,
)
from .payments import PaymentLedger
from .policy import CAPACITY_REJECT, BookingPolicy
from .references import generate_reference_code
from .repository import ContactRepository, SqlReservationStore
from .schemas import BookingCreate, BookingReschedule
from .slots import format_time, from_minutes, generate_slots, to_minutes

logger = logging.getLogger(__name__)

PENDING = ReservationStatus.PENDING.value
CONFIRMED = ReservationStatus.CONFIRMED.value
COMPLETED = ReservationStatus.COMPLETED.value
CANCELLED = ReservationStatus.CANCELLED.value
NO_SHOW = ReservationStatus.NO_SHOW.value

BOOKING_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED, NO_SHOW},
    COMPLETED: set(),
    CANCELLED: set(),
    NO_SHOW: set(),
}
TERMINAL_STATUSES = frozenset(s for s, targets in BOOKING_TRANSITIONS.items() if not targets)


def assert_booking_transition(current: str, target: str) -> None:
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidStatusTransition(current, target)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today() -> date:
    return datetime.now(ZoneInfo(config.LOCAL_TIMEZONE)).date()


class BookingLifecycle:
    """
    Owns every write to a reservation.

    Writes run as one atomic unit on the store: lock the room, re-read the
    active reservations, check for conflicts, then write. Reads (availability,
    max duration) take no lock and may be stale.
    """

    def __init__(
        self,
        db: Session,
        policy: Optional[BookingPolicy] = None,
        store: Optional[SqlReservationStore] = None,
        today: Callable[[], date] = local_today,
        reference_prefix: Optional[str] = None,
    ):
        self.db = db
        self.policy = policy or BookingPolicy.from_config()
        self.store = store or SqlReservationStore(db)
        self.checker = ConflictChecker(self.store)
        self.payments = PaymentLedger(db)
        self.today = today
        self.reference_prefix = reference_prefix or config.BOOKING_REFERENCE_PREFIX

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = self.store.get(reservation_id)
        if not reservation:
            raise ReservationNotFound(f"Booking {reservation_id} not found")
        return reservation

    def list_reservations(
        self,
        room_id: Optional[int] = None,
        booking_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Reservation]:
        return self.store.list_reservations(room_id, booking_date, status)

    def availability(
        self,
        room_id: int,
        booking_date: date,
        granularity: Optional[int] = None,
        include_inactive: bool = False,
    ) -> list[Slot]:
        room = self._get_room(room_id, require_active=not include_inactive)
        reservations = self.store.list_active(room_id, booking_date)
        return compute_availability(
            room,
            booking_date,
            reservations,
            granularity=granularity or self.policy.granularity_minutes,
            min_unit_minutes=self.policy.min_unit_minutes,
        )

    def max_duration(self, room_id: int, booking_date: date, start: time) -> int:
        room = self._get_room(room_id, require_active=False)
        if not room.open_time <= start < room.close_time:
            raise OutOfOperatingHours(
                f"Start time must fall within {format_time(room.open_time)}-{format_time(room.close_time)}"
            )
        reservations = self.store.list_active(room_id, booking_date)
        return compute_max_duration(start, room, reservations, cap_max=self.policy.max_hours)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        data: BookingCreate,
        policy: Optional[BookingPolicy] = None,
        *,
        created_by_admin: bool = False,
        confirm_immediately: bool = False,
        customer_id: Optional[int] = None,
    ) -> Reservation:
        """
        Validate and persist a new booking.

        Enters at PENDING; ``confirm_immediately`` (admin cash-on-site or perk
        redemption) enters at CONFIRMED instead. Raises a ``BookingError``
        subclass on any rejection, including ``OverlappingBooking`` when a
        concurrent writer took the interval first.
        """
        policy = policy or self.policy
        room = self._get_room(data.roomId, require_active=True)
        start, end, hours = self._resolve_interval(room, data.startTime, data.duration, policy)
        self._check_date(data.bookingDate, policy)
        notes = self._check_capacity(room, data.numberOfAttendees, policy, data.notes)

        member_id = None
        if data.sourceKind == SourceKind.MEMBER:
            member = ContactRepository.get_member(self.db, data.memberId)
            if not member:
                raise ContactNotFound(f"Member {data.memberId} not found")
            member_id = member.id

        amount = data.totalAmount if data.totalAmount is not None else round(room.hourly_rate * hours, 2)
        status = CONFIRMED if confirm_immediately else PENDING

        with self.store.atomic():
            self.store.lock_room(room.id)
            self.checker.validate(room.id, data.bookingDate, start, end)

            if data.sourceKind == SourceKind.CUSTOMER:
                customer_id = self._resolve_customer(data, customer_id)

            reservation = Reservation(
                reference_code=generate_reference_code(self.db, self.reference_prefix, self.today().year),
                room_id=room.id,
                source_kind=data.sourceKind.value,
                member_id=member_id,
                customer_id=customer_id if data.sourceKind == SourceKind.CUSTOMER else None,
                created_by_admin=created_by_admin,
                booking_date=data.bookingDate,
                start_time=start,
                end_time=end,
                duration=hours,
                status=status,
                company=data.company,
                contact_name=data.contactName,
                designation=data.designation,
                contact_email=data.contactEmail,
                contact_mobile=data.contactMobile,
                number_of_attendees=data.numberOfAttendees,
                purpose=data.purpose,
                notes=notes,
                total_amount=amount,
                confirmed_at=utcnow() if confirm_immediately else None,
            )
            self.payments.create_for_reservation(
                reservation,
                data.paymentMethod,
                notes=(
                    f"Meeting room booking: {room.name} | {data.bookingDate} "
                    f"{format_time(start)}-{format_time(end)} | {hours:g}hr"
                ),
            )
            self.store.insert(reservation)

        logger.info(
            f"✅ Booking {reservation.reference_code} created: room {room.id} {data.bookingDate} "
            f"{format_time(start)}-{format_time(end)} ({data.sourceKind.value}, {status})"
        )
        return reservation

    def reschedule_reservation(
        self,
        reservation_id: int,
        data: BookingReschedule,
        policy: Optional[BookingPolicy] = None,
    ) -> Reservation:
        """Move a booking in place; its status never changes"""
        policy = policy or self.policy
        reservation = self.get_reservation(reservation_id)
        room = self._get_room(reservation.room_id, require_active=False)
        start, end, hours = self._resolve_interval(room, data.startTime, data.duration, policy)
        self._check_date(data.bookingDate, policy)
        amount = data.totalAmount if data.totalAmount is not None else round(room.hourly_rate * hours, 2)

        with self.store.atomic():
            self.store.lock_room(room.id)
            self.db.refresh(reservation)
            if reservation.status in TERMINAL_STATUSES:
                raise InvalidStatusTransition(
                    reservation.status,
                    reservation.status,
                    f"Cannot reschedule a {reservation.status} booking",
                )
            self.checker.validate(room.id, data.bookingDate, start, end, exclude_id=reservation.id)
            reservation = self.store.update_interval(
                reservation.id, data.bookingDate, start, end, hours, amount
            )
            self.payments.update_amount(reservation, amount)

        logger.info(
            f"🔁 Booking {reservation.reference_code} moved to {data.bookingDate} "
            f"{format_time(start)}-{format_time(end)}"
        )
        return reservation

    def set_status(
        self,
        reservation_id: int,
        new_status: str,
        reason: Optional[str] = None,
    ) -> Reservation:
        """Apply one state-machine edge together with its side effects"""
        new_status = ReservationStatus(new_status).value
        reservation = self.get_reservation(reservation_id)

        with self.store.atomic():
            self.store.lock_room(reservation.room_id)
            self.db.refresh(reservation)
            current = reservation.status
            assert_booking_transition(current, new_status)

            fields = {}
            now = utcnow()
            if new_status == CANCELLED:
                self.payments.void(reservation)
                fields["cancellation_reason"] = reason
                fields["cancelled_at"] = now
            elif new_status == CONFIRMED:
                fields["confirmed_at"] = now
            elif new_status == COMPLETED and reservation.checked_out_at is None:
                fields["checked_out_at"] = now

            reservation = self.store.update_status(reservation.id, new_status, **fields)

        logger.info(f"📋 Booking {reservation.reference_code} transitioned: {current} → {new_status}")
        return reservation

    def cancel_reservation(self, reservation_id: int, reason: Optional[str] = None) -> Reservation:
        return self.set_status(reservation_id, CANCELLED, reason=reason)

    def check_in(self, reservation_id: int) -> Reservation:
        """Record arrival on a confirmed booking (no status change)"""
        reservation = self.get_reservation(reservation_id)
        with self.store.atomic():
            self.store.lock_room(reservation.room_id)
            self.db.refresh(reservation)
            if reservation.status != CONFIRMED:
                raise InvalidStatusTransition(
                    reservation.status,
                    reservation.status,
                    f"Only CONFIRMED bookings can be checked in (booking is {reservation.status})",
                )
            reservation = self.store.update_status(reservation.id, CONFIRMED, checked_in_at=utcnow())
        return reservation

    def delete_reservation(self, reservation_id: int) -> None:
        """Hard delete; only permitted once the booking is CANCELLED"""
        reservation = self.get_reservation(reservation_id)
        with self.store.atomic():
            self.store.lock_room(reservation.room_id)
            self.db.refresh(reservation)
            if reservation.status != CANCELLED:
                raise InvalidDeleteState(
                    f"Only cancelled bookings can be deleted (booking is {reservation.status})"
                )
            self.store.delete(reservation.id)

        logger.info(f"🗑️ Booking {reservation_id} deleted")

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _get_room(self, room_id: int, require_active: bool) -> MeetingRoom:
        room = RoomRepository.get_room(self.db, room_id)
        if not room:
            raise RoomNotFound(f"Meeting room {room_id} not found")
        if require_active and not room.is_active:
            raise RoomInactive(f"Meeting room {room.name} is not available for booking")
        return room

    @staticmethod
    def _resolve_interval(
        room: MeetingRoom, start: time, duration: float, policy: BookingPolicy
    ) -> tuple[time, time, float]:
        """Return (start, end, hours) or raise for a bad duration/start"""
        minutes = duration * 60
        whole = round(minutes)
        if duration <= 0 or abs(minutes - whole) > 1e-6:
            raise InvalidDuration("Duration must be a positive whole number of minutes")
        if whole % policy.duration_step_minutes:
            raise InvalidDuration(
                f"Duration must be in {policy.duration_step_minutes}-minute increments"
            )
        if whole < policy.min_unit_minutes:
            raise InvalidDuration(f"Minimum booking is {policy.min_unit_minutes} minutes")
        if whole > policy.max_hours * 60:
            raise InvalidDuration(f"Maximum booking is {policy.max_hours} hours")

        begin = to_minutes(start)
        finish = begin + whole
        if start < room.open_time or finish > to_minutes(room.close_time):
            raise OutOfOperatingHours(
                f"Bookings must fall within {format_time(room.open_time)}-{format_time(room.close_time)}"
            )

        grid = generate_slots(room.open_time, room.close_time, policy.granularity_minutes)
        if not grid.is_aligned(start):
            raise MisalignedStartTime(
                f"Start time must align to {policy.granularity_minutes}-minute slots "
                f"from {format_time(room.open_time)}"
            )

        return start, from_minutes(finish), whole / 60

    def _check_date(self, booking_date: date, policy: BookingPolicy) -> None:
        if not policy.allow_past_dates and booking_date < self.today():
            raise PastDate("Cannot book for past dates")

    @staticmethod
    def _check_capacity(
        room: MeetingRoom, attendees: int, policy: BookingPolicy, notes: Optional[str]
    ) -> Optional[str]:
        """Reject or annotate an over-capacity booking; returns the notes to store"""
        if attendees <= room.capacity:
            return notes
        message = f"Room capacity is {room.capacity} people ({attendees} requested)"
        if policy.capacity_policy == CAPACITY_REJECT:
            raise CapacityExceeded(f"{message}. Please select a larger room.")
        logger.warning(f"⚠️ {message} for room {room.id}, accepted under warn policy")
        return f"{notes}\n\n[CAPACITY] {message}" if notes else f"[CAPACITY] {message}"

    def _resolve_customer(self, data: BookingCreate, customer_id: Optional[int]) -> int:
        """Existing customer by id or e-mail, otherwise a new walk-in customer"""
        if customer_id is not None:
            customer = ContactRepository.get_customer(self.db, customer_id)
            if not customer:
                raise ContactNotFound(f"Customer {customer_id} not found")
            return customer.id

        customer = None
        if data.contactEmail:
            customer = ContactRepository.get_customer_by_email(self.db, data.contactEmail)
        if not customer:
            customer = ContactRepository.create_customer(
                self.db,
                name=data.contactName,
                email=data.contactEmail,
                contact_number=data.contactMobile,
                company=data.company,
                notes="Walk-in meeting room booking",
            )
        return customer.id
