"""Human-readable booking reference codes: <prefix>_<year>_<NNN>"""

from sqlalchemy.orm import Session

from ...models import Payment
from ...models_booking import Reservation


def extract_sequence(reference: str) -> int:
    """Trailing number of a reference code, 0 when it has none"""
    if not reference:
        return 0
    last_part = reference.split("_")[-1]
    return int(last_part) if last_part.isdigit() else 0


def format_reference(prefix: str, year: int, number: int) -> str:
    return f"{prefix}_{year}_{number:03d}"


def generate_reference_code(db: Session, prefix: str, year: int) -> str:
    """
    Next reference for the year, shared by member and guest bookings.

    Payments are scanned too so voided bookings never get their number reused
    while the payment row still exists. Uniqueness is enforced by the database;
    a concurrent collision surfaces as a retryable store error.
    """
    stem = f"{prefix}_{year}_"
    booking_refs = (
        db.query(Reservation.reference_code)
        .filter(Reservation.reference_code.startswith(stem, autoescape=True))
        .all()
    )
    payment_refs = (
        db.query(Payment.payment_reference)
        .filter(Payment.payment_reference.startswith(stem, autoescape=True))
        .all()
    )

    highest = 0
    for (reference,) in booking_refs + payment_refs:
        highest = max(highest, extract_sequence(reference))

    return format_reference(prefix, year, highest + 1)
