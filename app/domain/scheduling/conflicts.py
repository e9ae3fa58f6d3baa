"""Overlap detection between a proposed interval and existing reservations"""

import logging
from datetime import date, time
from typing import Iterable, Optional

from .availability import active_only
from .errors import OverlappingBooking

logger = logging.getLogger(__name__)


def overlaps(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open intervals: touching boundaries (a_end == b_start) do not overlap"""
    return a_start < b_end and b_start < a_end


def find_conflicts(
    start: time,
    end: time,
    reservations: Iterable,
    exclude_id: Optional[int] = None,
) -> list:
    """Return active reservations overlapping [start, end), ignoring ``exclude_id``"""
    return [
        r
        for r in active_only(reservations)
        if r.id != exclude_id and overlaps(start, end, r.start_time, r.end_time)
    ]


class ConflictChecker:
    """
    Validates a proposed interval against the store's current active set.

    Call ``validate`` inside the store's atomic unit, after ``lock_room`` and
    immediately before the write; an earlier read is never trusted.
    """

    def __init__(self, store):
        self.store = store

    def validate(
        self,
        room_id: int,
        booking_date: date,
        start: time,
        end: time,
        exclude_id: Optional[int] = None,
    ) -> None:
        existing = self.store.list_active(room_id, booking_date)
        conflicts = find_conflicts(start, end, existing, exclude_id)
        if conflicts:
            first = min(conflicts, key=lambda r: r.start_time)
            logger.info(
                f"⛔ Room {room_id} {booking_date} {start}-{end} overlaps reservation {first.id}"
            )
            raise OverlappingBooking(first.id)
