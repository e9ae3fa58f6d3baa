import threading
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from app.database import Base
from app.domain.scheduling.errors import (
    CapacityExceeded,
    ContactNotFound,
    InvalidDeleteState,
    InvalidDuration,
    InvalidStatusTransition,
    MisalignedStartTime,
    OutOfOperatingHours,
    OverlappingBooking,
    PastDate,
    ReservationNotFound,
    RoomInactive,
    RoomNotFound,
    TransientStoreError,
)
from app.domain.scheduling.lifecycle import BookingLifecycle
from app.domain.scheduling.policy import CAPACITY_WARN, BookingPolicy
from app.domain.scheduling.repository import SqlReservationStore
from app.domain.scheduling.schemas import BookingCreate, BookingReschedule
from app.models import Customer, Member, Payment
from app.models_booking import MeetingRoom

from .conftest import BOOKING_DATE, TODAY


def member_booking(room, member, start=time(10, 0), duration=1, **overrides):
    data = {
        "roomId": room.id,
        "bookingDate": BOOKING_DATE,
        "startTime": start,
        "duration": duration,
        "sourceKind": "MEMBER",
        "memberId": member.id,
        "contactName": "Ana Reyes",
    }
    data.update(overrides)
    return BookingCreate(**data)


def guest_booking(room, start=time(10, 0), duration=1, **overrides):
    data = {
        "roomId": room.id,
        "bookingDate": BOOKING_DATE,
        "startTime": start,
        "duration": duration,
        "sourceKind": "CUSTOMER",
        "contactName": "Ben Cruz",
        "contactEmail": "ben@example.com",
        "contactMobile": "+63 917 555 0101",
    }
    data.update(overrides)
    return BookingCreate(**data)


def slot_at(slots, t):
    return next(s for s in slots if s.time == t)


class TestCreate:
    def test_member_booking_enters_pending_with_reference_and_payment(self, db, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member, duration=2))

        assert reservation.status == "PENDING"
        assert reservation.reference_code == "mrb_kita_2030_001"
        assert reservation.end_time == time(12, 0)
        assert reservation.duration == 2
        assert reservation.total_amount == 1000.0
        assert reservation.member_id == member.id
        assert reservation.customer_id is None

        payment = db.query(Payment).filter(Payment.id == reservation.payment_id).first()
        assert payment.status == "PENDING"
        assert payment.amount == 1000.0
        assert payment.payment_reference == reservation.reference_code
        assert payment.member_id == member.id

    def test_created_interval_shows_as_booked(self, lifecycle, room, member):
        lifecycle.create_reservation(member_booking(room, member, start=time(10, 0), duration=1))

        slots = lifecycle.availability(room.id, BOOKING_DATE)

        assert not slot_at(slots, time(10, 0)).is_available
        assert not slot_at(slots, time(10, 30)).is_available
        assert slot_at(slots, time(9, 0)).is_available
        assert slot_at(slots, time(11, 0)).is_available

    def test_reference_sequence_is_shared_by_member_and_guest_bookings(self, lifecycle, room, member):
        first = lifecycle.create_reservation(member_booking(room, member, start=time(9, 0)))
        second = lifecycle.create_reservation(guest_booking(room, start=time(10, 0)))
        lifecycle.cancel_reservation(second.id, reason="Client rescheduled offline")
        third = lifecycle.create_reservation(guest_booking(room, start=time(11, 0)))

        assert first.reference_code == "mrb_kita_2030_001"
        assert second.reference_code == "mrb_kita_2030_002"
        assert third.reference_code == "mrb_kita_2030_003"

    def test_reference_year_is_the_year_of_booking_not_of_the_meeting(self, db, policy, room, member):
        lifecycle = BookingLifecycle(db, policy=policy, today=lambda: date(2030, 12, 28))
        data = member_booking(room, member, bookingDate=date(2031, 1, 6))

        reservation = lifecycle.create_reservation(data)

        assert reservation.reference_code == "mrb_kita_2030_001"
        assert reservation.booking_date == date(2031, 1, 6)

    def test_guest_customer_is_reused_by_email(self, db, lifecycle, room):
        first = lifecycle.create_reservation(guest_booking(room, start=time(9, 0)))
        second = lifecycle.create_reservation(guest_booking(room, start=time(11, 0)))

        assert first.customer_id is not None
        assert first.customer_id == second.customer_id
        assert db.query(Customer).count() == 1

    def test_member_and_guest_bookings_conflict_with_each_other(self, lifecycle, room, member):
        taken = lifecycle.create_reservation(member_booking(room, member, start=time(14, 0), duration=2))

        with pytest.raises(OverlappingBooking) as exc_info:
            lifecycle.create_reservation(guest_booking(room, start=time(15, 0)))

        assert exc_info.value.conflicting_id == taken.id

    def test_touching_bookings_are_allowed(self, lifecycle, room, member):
        lifecycle.create_reservation(member_booking(room, member, start=time(10, 0)))
        after = lifecycle.create_reservation(guest_booking(room, start=time(11, 0)))

        assert after.start_time == time(11, 0)

    def test_confirm_immediately(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(
            member_booking(room, member), created_by_admin=True, confirm_immediately=True
        )

        assert reservation.status == "CONFIRMED"
        assert reservation.confirmed_at is not None
        assert reservation.created_by_admin

    def test_explicit_total_overrides_hourly_rate(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member, totalAmount=0))

        assert reservation.total_amount == 0


class TestCreateValidation:
    @pytest.mark.parametrize("duration", [0.5, 1.5, 9])
    def test_invalid_duration(self, lifecycle, room, member, duration):
        with pytest.raises(InvalidDuration):
            lifecycle.create_reservation(member_booking(room, member, start=time(9, 0), duration=duration))

    def test_half_hour_steps_when_policy_allows(self, db, room, member):
        half_hours = BookingPolicy(min_unit_minutes=30, duration_step_minutes=30)
        lifecycle = BookingLifecycle(db, policy=half_hours, today=lambda: TODAY)

        reservation = lifecycle.create_reservation(member_booking(room, member, duration=1.5))

        assert reservation.end_time == time(11, 30)
        assert reservation.duration == 1.5

    @pytest.mark.parametrize("start, duration", [(time(8, 0), 2), (time(17, 0), 2)])
    def test_outside_operating_hours(self, lifecycle, room, member, start, duration):
        with pytest.raises(OutOfOperatingHours):
            lifecycle.create_reservation(member_booking(room, member, start=start, duration=duration))

    def test_booking_may_end_at_closing_time(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member, start=time(17, 0)))

        assert reservation.end_time == time(18, 0)

    def test_misaligned_start(self, lifecycle, room, member):
        with pytest.raises(MisalignedStartTime):
            lifecycle.create_reservation(member_booking(room, member, start=time(10, 15)))

    def test_inactive_room(self, db, lifecycle, room, member):
        room.is_active = False
        db.commit()

        with pytest.raises(RoomInactive):
            lifecycle.create_reservation(member_booking(room, member))

    def test_unknown_room(self, lifecycle, room, member):
        data = member_booking(room, member, roomId=999)

        with pytest.raises(RoomNotFound):
            lifecycle.create_reservation(data)

    def test_unknown_member(self, lifecycle, room, member):
        with pytest.raises(ContactNotFound):
            lifecycle.create_reservation(member_booking(room, member, memberId=999))

    def test_past_date_rejected_for_self_service(self, lifecycle, room, member):
        with pytest.raises(PastDate):
            lifecycle.create_reservation(member_booking(room, member, bookingDate=date(2030, 6, 1)))

    def test_past_date_allowed_for_admin(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(
            member_booking(room, member, bookingDate=date(2030, 6, 1)),
            policy=lifecycle.policy.for_admin(),
            created_by_admin=True,
        )

        assert reservation.booking_date == date(2030, 6, 1)

    def test_over_capacity_rejected_by_default(self, lifecycle, room, member):
        with pytest.raises(CapacityExceeded):
            lifecycle.create_reservation(member_booking(room, member, numberOfAttendees=12))

    def test_over_capacity_noted_under_warn_policy(self, db, room, member):
        lifecycle = BookingLifecycle(
            db, policy=BookingPolicy(capacity_policy=CAPACITY_WARN), today=lambda: TODAY
        )

        reservation = lifecycle.create_reservation(
            member_booking(room, member, numberOfAttendees=12, notes="Team offsite")
        )

        assert reservation.notes.startswith("Team offsite")
        assert "[CAPACITY]" in reservation.notes


class TestConcurrency:
    def test_stale_availability_does_not_let_second_writer_through(
        self, session_factory, policy, room, member
    ):
        first_session = session_factory()
        second_session = session_factory()
        try:
            first = BookingLifecycle(first_session, policy=policy, today=lambda: TODAY)
            second = BookingLifecycle(second_session, policy=policy, today=lambda: TODAY)

            # Both callers saw 11:00 free before either wrote
            assert slot_at(second.availability(room.id, BOOKING_DATE), time(11, 0)).is_available
            second_session.commit()

            winner = first.create_reservation(member_booking(room, member, start=time(10, 0), duration=2))

            with pytest.raises(OverlappingBooking) as exc_info:
                second.create_reservation(guest_booking(room, start=time(11, 0)))

            assert exc_info.value.conflicting_id == winner.id
            assert len(SqlReservationStore(first_session).list_active(room.id, BOOKING_DATE)) == 1
        finally:
            first_session.close()
            second_session.close()

    def test_parallel_overlapping_creates_admit_exactly_one(self, tmp_path, policy):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False, "timeout": 15},
        )
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        with Session() as setup:
            room = MeetingRoom(
                name="Huddle", hourly_rate=300.0, capacity=4, open_time=time(9, 0), close_time=time(18, 0)
            )
            member = Member(full_name="Ana Reyes", email="ana@example.com")
            setup.add_all([room, member])
            setup.commit()
            room_id, member_id = room.id, member.id

        barrier = threading.Barrier(2)
        outcomes = []

        def attempt(start):
            session = Session()
            try:
                lifecycle = BookingLifecycle(session, policy=policy, today=lambda: TODAY)
                data = BookingCreate(
                    roomId=room_id,
                    bookingDate=BOOKING_DATE,
                    startTime=start,
                    duration=2,
                    sourceKind="MEMBER",
                    memberId=member_id,
                    contactName="Ana Reyes",
                )
                barrier.wait()
                lifecycle.create_reservation(data)
                outcomes.append("created")
            except OverlappingBooking as e:
                outcomes.append(e)
            finally:
                session.close()

        threads = [
            threading.Thread(target=attempt, args=(time(10, 0),)),
            threading.Thread(target=attempt, args=(time(11, 0),)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        try:
            assert len(outcomes) == 2
            assert outcomes.count("created") == 1
            loser = next(o for o in outcomes if o != "created")
            assert isinstance(loser, OverlappingBooking)
            with Session() as check:
                assert len(SqlReservationStore(check).list_active(room_id, BOOKING_DATE)) == 1
        finally:
            engine.dispose()


class TestReschedule:
    def test_same_interval_succeeds(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member, start=time(10, 0), duration=2))

        moved = lifecycle.reschedule_reservation(
            reservation.id,
            BookingReschedule(bookingDate=BOOKING_DATE, startTime=time(10, 0), duration=2),
        )

        assert moved.start_time == time(10, 0)
        assert moved.end_time == time(12, 0)
        assert moved.status == "PENDING"

    def test_overlapping_another_booking_names_it(self, lifecycle, room, member):
        x = lifecycle.create_reservation(member_booking(room, member, start=time(9, 0)))
        y = lifecycle.create_reservation(guest_booking(room, start=time(13, 0), duration=2))

        with pytest.raises(OverlappingBooking) as exc_info:
            lifecycle.reschedule_reservation(
                x.id,
                BookingReschedule(bookingDate=BOOKING_DATE, startTime=time(12, 0), duration=2),
            )

        assert exc_info.value.conflicting_id == y.id
        assert lifecycle.get_reservation(x.id).start_time == time(9, 0)

    def test_moves_interval_and_payment_amount(self, db, lifecycle, room, member):
        reservation = lifecycle.create_reservation(
            member_booking(room, member, start=time(9, 0)), confirm_immediately=True
        )

        moved = lifecycle.reschedule_reservation(
            reservation.id,
            BookingReschedule(bookingDate=date(2030, 6, 12), startTime=time(14, 0), duration=3),
        )

        assert moved.booking_date == date(2030, 6, 12)
        assert moved.end_time == time(17, 0)
        assert moved.total_amount == 1500.0
        assert moved.status == "CONFIRMED"
        payment = db.query(Payment).filter(Payment.id == moved.payment_id).first()
        assert payment.amount == 1500.0

    def test_terminal_booking_cannot_be_moved(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))
        lifecycle.cancel_reservation(reservation.id, reason="No longer needed")

        with pytest.raises(InvalidStatusTransition):
            lifecycle.reschedule_reservation(
                reservation.id,
                BookingReschedule(bookingDate=BOOKING_DATE, startTime=time(15, 0), duration=1),
            )


class TestStatus:
    def test_cancel_confirmed_voids_payment_and_frees_interval(self, db, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member), confirm_immediately=True)
        payment_id = reservation.payment_id

        cancelled = lifecycle.cancel_reservation(reservation.id, reason="Meeting moved online")

        assert cancelled.status == "CANCELLED"
        assert cancelled.cancellation_reason == "Meeting moved online"
        assert cancelled.cancelled_at is not None
        assert cancelled.payment_id is None
        assert db.query(Payment).filter(Payment.id == payment_id).first() is None
        assert slot_at(lifecycle.availability(room.id, BOOKING_DATE), time(10, 0)).is_available

        replacement = lifecycle.create_reservation(guest_booking(room, start=time(10, 0)))
        assert replacement.status == "PENDING"

    def test_cancel_completed_is_rejected(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member), confirm_immediately=True)
        completed = lifecycle.set_status(reservation.id, "COMPLETED")
        assert completed.checked_out_at is not None

        with pytest.raises(InvalidStatusTransition):
            lifecycle.cancel_reservation(reservation.id, reason="Too late")

    def test_pending_cannot_skip_to_completed(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))

        with pytest.raises(InvalidStatusTransition) as exc_info:
            lifecycle.set_status(reservation.id, "COMPLETED")

        assert exc_info.value.current == "PENDING"
        assert exc_info.value.target == "COMPLETED"

    def test_no_show_is_terminal(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))
        lifecycle.set_status(reservation.id, "CONFIRMED")
        lifecycle.set_status(reservation.id, "NO_SHOW")

        with pytest.raises(InvalidStatusTransition):
            lifecycle.set_status(reservation.id, "COMPLETED")

    def test_confirm_stamps_time(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))

        confirmed = lifecycle.set_status(reservation.id, "CONFIRMED")

        assert confirmed.status == "CONFIRMED"
        assert confirmed.confirmed_at is not None

    def test_check_in_requires_confirmed(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))

        with pytest.raises(InvalidStatusTransition):
            lifecycle.check_in(reservation.id)

        lifecycle.set_status(reservation.id, "CONFIRMED")
        checked_in = lifecycle.check_in(reservation.id)
        assert checked_in.checked_in_at is not None
        assert checked_in.status == "CONFIRMED"

    def test_unknown_reservation(self, lifecycle):
        with pytest.raises(ReservationNotFound):
            lifecycle.set_status(404, "CONFIRMED")


class TestDelete:
    def test_pending_cannot_be_deleted_until_cancelled(self, lifecycle, room, member):
        reservation = lifecycle.create_reservation(member_booking(room, member))

        with pytest.raises(InvalidDeleteState):
            lifecycle.delete_reservation(reservation.id)

        lifecycle.cancel_reservation(reservation.id, reason="Duplicate")
        lifecycle.delete_reservation(reservation.id)

        with pytest.raises(ReservationNotFound):
            lifecycle.get_reservation(reservation.id)


class TestStoreErrors:
    def test_exclusion_constraint_violation_is_an_overlap(self, db):
        store = SqlReservationStore(db)
        violation = IntegrityError(
            "INSERT INTO meeting_room_bookings ...",
            {},
            Exception('conflicting key value violates exclusion constraint "no_meeting_room_overlap"'),
        )

        with pytest.raises(OverlappingBooking) as exc_info:
            with store.atomic():
                raise violation

        assert exc_info.value.conflicting_id is None

    def test_reference_collision_is_transient(self, db):
        store = SqlReservationStore(db)
        collision = IntegrityError(
            "INSERT INTO meeting_room_bookings ...",
            {},
            Exception("UNIQUE constraint failed: meeting_room_bookings.reference_code"),
        )

        with pytest.raises(TransientStoreError):
            with store.atomic():
                raise collision

    def test_lock_timeout_is_transient(self, db):
        store = SqlReservationStore(db)

        with pytest.raises(TransientStoreError):
            with store.atomic():
                raise OperationalError("UPDATE meeting_rooms ...", {}, Exception("database is locked"))

    def test_lock_room_unknown_room(self, db):
        store = SqlReservationStore(db)

        with pytest.raises(RoomNotFound):
            with store.atomic():
                store.lock_room(999)
