"""Reservation store - persistence boundary for the scheduling engine"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, time
from typing import Iterator, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...models import Customer, Member
from ...models_booking import MeetingRoom, Reservation, ReservationStatus
from .errors import OverlappingBooking, ReservationNotFound, RoomNotFound, TransientStoreError

logger = logging.getLogger(__name__)

# Name of the optional PostgreSQL exclusion constraint (see migrations/)
OVERLAP_CONSTRAINT = "no_meeting_room_overlap"
UNIQUE_REFERENCE_COLUMNS = ("reference_code", "payment_reference")


class ReservationStore(ABC):
    """
    Contract the engine needs from storage.

    ``lock_room``, ``list_active`` and the write methods are composed by the
    engine inside one ``atomic()`` block; the store must make that block a
    single transaction in which concurrent writers for the same room are
    serialised.
    """

    @abstractmethod
    def atomic(self):
        """Context manager: commit on success, roll back on any exception"""

    @abstractmethod
    def lock_room(self, room_id: int) -> None:
        """Block other writers for this room until the atomic block ends"""

    @abstractmethod
    def list_active(self, room_id: int, booking_date: date) -> list[Reservation]:
        """Non-cancelled reservations of every source kind, ordered by start"""

    @abstractmethod
    def get(self, reservation_id: int) -> Optional[Reservation]:
        ...

    @abstractmethod
    def insert(self, reservation: Reservation) -> Reservation:
        ...

    @abstractmethod
    def update_status(self, reservation_id: int, status: str, **fields) -> Reservation:
        ...

    @abstractmethod
    def update_interval(
        self,
        reservation_id: int,
        booking_date: date,
        start: time,
        end: time,
        duration: float,
        amount: float,
    ) -> Reservation:
        ...

    @abstractmethod
    def delete(self, reservation_id: int) -> None:
        """Only valid for CANCELLED reservations; the engine checks first"""


class SqlReservationStore(ReservationStore):
    """SQLAlchemy implementation over a request-scoped session"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def atomic(self) -> Iterator["SqlReservationStore"]:
        try:
            yield self
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig)
            if OVERLAP_CONSTRAINT in message:
                logger.warning(f"⛔ Overlap rejected by database constraint: {message}")
                raise OverlappingBooking(None) from e
            if any(column in message for column in UNIQUE_REFERENCE_COLUMNS):
                logger.warning(f"⚠️ Reference code collision, safe to retry: {message}")
                raise TransientStoreError("Booking reference collided with a concurrent booking") from e
            raise
        except (OperationalError, DBAPIError) as e:
            self.db.rollback()
            logger.error(f"❌ Store failure during booking write: {e}")
            raise TransientStoreError("The booking store is temporarily unavailable") from e
        except Exception:
            self.db.rollback()
            raise

    def lock_room(self, room_id: int) -> None:
        # The UPDATE takes the room's row lock (PostgreSQL) or the database write lock (SQLite)
        updated = (
            self.db.query(MeetingRoom)
            .filter(MeetingRoom.id == room_id)
            .update(
                {MeetingRoom.booking_version: MeetingRoom.booking_version + 1},
                synchronize_session=False,
            )
        )
        if not updated:
            raise RoomNotFound(f"Meeting room {room_id} not found")

    def list_active(self, room_id: int, booking_date: date) -> list[Reservation]:
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.room_id == room_id,
                Reservation.booking_date == booking_date,
                Reservation.status != ReservationStatus.CANCELLED.value,
            )
            .order_by(Reservation.start_time)
            .all()
        )

    def list_reservations(
        self,
        room_id: Optional[int] = None,
        booking_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Reservation]:
        query = self.db.query(Reservation)
        if room_id is not None:
            query = query.filter(Reservation.room_id == room_id)
        if booking_date is not None:
            query = query.filter(Reservation.booking_date == booking_date)
        if status:
            query = query.filter(Reservation.status == status)
        return query.order_by(Reservation.booking_date.desc(), Reservation.start_time).all()

    def get(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(Reservation.id == reservation_id).first()

    def _require(self, reservation_id: int) -> Reservation:
        reservation = self.get(reservation_id)
        if not reservation:
            raise ReservationNotFound(f"Booking {reservation_id} not found")
        return reservation

    def insert(self, reservation: Reservation) -> Reservation:
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def update_status(self, reservation_id: int, status: str, **fields) -> Reservation:
        reservation = self._require(reservation_id)
        reservation.status = status
        for key, value in fields.items():
            setattr(reservation, key, value)
        self.db.flush()
        return reservation

    def update_interval(
        self,
        reservation_id: int,
        booking_date: date,
        start: time,
        end: time,
        duration: float,
        amount: float,
    ) -> Reservation:
        reservation = self._require(reservation_id)
        reservation.booking_date = booking_date
        reservation.start_time = start
        reservation.end_time = end
        reservation.duration = duration
        reservation.total_amount = amount
        self.db.flush()
        return reservation

    def delete(self, reservation_id: int) -> None:
        reservation = self._require(reservation_id)
        self.db.delete(reservation)
        self.db.flush()


class ContactRepository:
    """Repository for the people a booking belongs to"""

    @staticmethod
    def get_member(db: Session, member_id: int) -> Optional[Member]:
        return db.query(Member).filter(Member.id == member_id).first()

    @staticmethod
    def get_customer(db: Session, customer_id: int) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def get_customer_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == email).first()

    @staticmethod
    def create_customer(db: Session, **customer_data) -> Customer:
        """Create a guest customer inside the caller's transaction"""
        customer = Customer(**customer_data)
        db.add(customer)
        db.flush()
        return customer
