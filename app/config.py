import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./meeting_rooms.db")

# Local timezone used for "today" when rejecting past-date bookings
LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE", "Asia/Manila")

# Scheduling policy
# Slot grid granularity in minutes (30 -> 09:00, 09:30, ...)
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "30"))
# Smallest bookable unit; a slot is only selectable when this much time fits after it
MIN_BOOKING_MINUTES = int(os.getenv("MIN_BOOKING_MINUTES", "60"))
# Durations must be a multiple of this step (60 = whole hours, 30 = half-hour perk flow)
DURATION_STEP_MINUTES = int(os.getenv("DURATION_STEP_MINUTES", "60"))
# Ceiling reported by max-duration and enforced on create/reschedule
MAX_BOOKING_HOURS = int(os.getenv("MAX_BOOKING_HOURS", "8"))
# "reject" or "warn" when attendees exceed room capacity
CAPACITY_POLICY = os.getenv("CAPACITY_POLICY", "reject").lower()

# Human-readable booking reference codes: <prefix>_<year>_<NNN>
BOOKING_REFERENCE_PREFIX = os.getenv("BOOKING_REFERENCE_PREFIX", "mrb_kita")

# Public booking rate limit (per client IP)
PUBLIC_BOOKING_RATE_LIMIT = int(os.getenv("PUBLIC_BOOKING_RATE_LIMIT", "10"))
PUBLIC_BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("PUBLIC_BOOKING_RATE_WINDOW_SECONDS", "3600"))

# Frontend base URL for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
