"""Booking rules that vary per deployment or per entry point"""

from dataclasses import dataclass, replace

from ... import config

CAPACITY_REJECT = "reject"
CAPACITY_WARN = "warn"


@dataclass(frozen=True)
class BookingPolicy:
    granularity_minutes: int = 30
    min_unit_minutes: int = 60
    duration_step_minutes: int = 60
    max_hours: int = 8
    capacity_policy: str = CAPACITY_REJECT
    allow_past_dates: bool = False

    @classmethod
    def from_config(cls) -> "BookingPolicy":
        capacity_policy = config.CAPACITY_POLICY
        if capacity_policy not in (CAPACITY_REJECT, CAPACITY_WARN):
            capacity_policy = CAPACITY_REJECT
        return cls(
            granularity_minutes=config.SLOT_GRANULARITY_MINUTES,
            min_unit_minutes=config.MIN_BOOKING_MINUTES,
            duration_step_minutes=config.DURATION_STEP_MINUTES,
            max_hours=config.MAX_BOOKING_HOURS,
            capacity_policy=capacity_policy,
        )

    def for_admin(self) -> "BookingPolicy":
        """Admin bookings may target any date, including past ones"""
        return replace(self, allow_past_dates=True)
