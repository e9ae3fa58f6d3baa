"""
Scheduling Domain - meeting room availability and bookings

Layout:
```
app/domain/scheduling/
├── slots.py          # Slot grid for a room's operating window
├── availability.py   # Available/selectable slots, max duration from a start
├── conflicts.py      # Half-open overlap checks against active bookings
├── policy.py         # Granularity, minimum unit, max hours, capacity rule
├── lifecycle.py      # Create, reschedule, status transitions, delete
├── repository.py     # ReservationStore (atomic unit + per-room lock)
├── payments.py       # Pending payment record created/updated/voided with a booking
├── references.py     # mrb_kita_<year>_<NNN> reference codes
├── errors.py         # Typed failures mapped to HTTP responses in main.py
├── schemas.py        # Request/response models
└── router.py         # /meeting-rooms and /admin/meeting-rooms endpoints
```

Status workflow:
- PENDING → CONFIRMED | CANCELLED
- CONFIRMED → COMPLETED | CANCELLED | NO_SHOW
- COMPLETED, CANCELLED and NO_SHOW are final

Every booking write holds the room lock from the conflict re-check through
the write, so two requests for overlapping intervals can never both succeed.
Availability reads take no lock and are advisory only.
"""
