"""Slot grid generation and minute arithmetic on wall-clock times"""

from datetime import time
from typing import Iterator

from .errors import InvalidDuration

MINUTES_PER_DAY = 24 * 60


def to_minutes(t: time) -> int:
    """Minutes since midnight (seconds are truncated)"""
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def format_time(t: time) -> str:
    return t.strftime("%H:%M")


class SlotGrid:
    """
    Candidate start times for one operating window.

    Iterating yields ``open, open+G, open+2G, ...`` for every value strictly
    before ``close`` and then ``close`` itself once, as a display boundary.
    Each iteration starts over, so one grid can be walked any number of times.
    """

    def __init__(self, open_time: time, close_time: time, granularity: int = 30):
        if granularity <= 0:
            raise InvalidDuration("Slot granularity must be a positive number of minutes")
        if open_time >= close_time:
            raise ValueError("Opening time must be before closing time")
        self.open_time = open_time
        self.close_time = close_time
        self.granularity = granularity

    def __iter__(self) -> Iterator[time]:
        yield from self.selectable_starts()
        yield self.close_time

    def selectable_starts(self) -> Iterator[time]:
        """Interior slots only; the closing boundary is never a start"""
        close = to_minutes(self.close_time)
        for minutes in range(to_minutes(self.open_time), close, self.granularity):
            yield from_minutes(minutes)

    def is_boundary(self, t: time) -> bool:
        return t == self.close_time

    def is_aligned(self, t: time) -> bool:
        if t.second or t.microsecond:
            return False
        return (to_minutes(t) - to_minutes(self.open_time)) % self.granularity == 0

    def __repr__(self) -> str:
        return (
            f"SlotGrid({format_time(self.open_time)}-{format_time(self.close_time)}, "
            f"every {self.granularity}m)"
        )


def generate_slots(open_time: time, close_time: time, granularity: int = 30) -> SlotGrid:
    return SlotGrid(open_time, close_time, granularity)
