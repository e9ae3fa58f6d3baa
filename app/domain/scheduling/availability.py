"""
Availability computation for a room on one date.

Pure functions over a room (anything with ``open_time``/``close_time``) and
reservations (anything with ``start_time``/``end_time``/``status``). Nothing
here rejects a booking; it only reports what is free.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional

from ...models_booking import ReservationStatus
from .slots import format_time, generate_slots, to_minutes

DEFAULT_MAX_HOURS = 8


@dataclass(frozen=True)
class Slot:
    time: time
    is_available: bool  # not covered by any active reservation
    is_selectable: bool  # a minimum booking fits from here
    is_boundary: bool = False  # closing-time label, never a start

    def to_dict(self) -> dict:
        return {
            "time": format_time(self.time),
            "isAvailable": self.is_available,
            "isSelectable": self.is_selectable,
            "isBoundary": self.is_boundary,
        }


def active_only(reservations: Iterable, booking_date: Optional[date] = None) -> list:
    """Drop cancelled reservations (and, if given, those on another date)"""
    result = []
    for r in reservations:
        if r.status == ReservationStatus.CANCELLED.value:
            continue
        if booking_date is not None and getattr(r, "booking_date", booking_date) != booking_date:
            continue
        result.append(r)
    return result


def is_booked(t: time, reservations: Iterable) -> bool:
    return any(r.start_time <= t < r.end_time for r in reservations)


def compute_availability(
    room,
    booking_date: date,
    reservations: Iterable,
    granularity: int = 30,
    min_unit_minutes: int = 60,
) -> list[Slot]:
    """Mark every slot of the room's grid as available/booked and selectable or not"""
    active = active_only(reservations, booking_date)
    grid = generate_slots(room.open_time, room.close_time, granularity)
    close = to_minutes(room.close_time)
    starts = [to_minutes(r.start_time) for r in active]

    slots = []
    for t in grid:
        booked = is_booked(t, active)
        if grid.is_boundary(t):
            slots.append(Slot(time=t, is_available=not booked, is_selectable=False, is_boundary=True))
            continue

        minutes = to_minutes(t)
        fits = minutes + min_unit_minutes <= close and not any(
            minutes <= s < minutes + min_unit_minutes for s in starts
        )
        slots.append(Slot(time=t, is_available=not booked, is_selectable=not booked and fits))
    return slots


def compute_max_duration(
    start: time,
    room,
    reservations: Iterable,
    cap_max: int = DEFAULT_MAX_HOURS,
    booking_date: Optional[date] = None,
) -> int:
    """
    Longest whole-hour booking that can begin at ``start``.

    The limit is the room's closing time or the start of the nearest active
    reservation beginning strictly after ``start``, whichever is earlier. The
    result is clamped to ``[1, cap_max]``; callers holding a larger duration
    must clamp it themselves.
    """
    begin = to_minutes(start)
    boundary = to_minutes(room.close_time)
    for r in active_only(reservations, booking_date):
        r_start = to_minutes(r.start_time)
        if r_start > begin:
            boundary = min(boundary, r_start)

    max_hours = (boundary - begin) // 60
    return max(1, min(max_hours, cap_max))
