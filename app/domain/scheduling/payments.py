"""
Payment side effects of the booking lifecycle.

Payment verification lives in the payments collaborator; this ledger only
creates the pending record alongside a booking, keeps its amount in step with
reschedules, and voids it when the booking is cancelled. All writes happen in
the caller's transaction so a failed void also undoes the cancellation.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment
from ...models_booking import Reservation, SourceKind

logger = logging.getLogger(__name__)


class PaymentLedger:
    def __init__(self, db: Session):
        self.db = db

    def create_for_reservation(
        self,
        reservation: Reservation,
        payment_method: str,
        notes: Optional[str] = None,
    ) -> Payment:
        payment = Payment(
            member_id=reservation.member_id if reservation.source_kind == SourceKind.MEMBER.value else None,
            customer_id=(
                reservation.customer_id if reservation.source_kind == SourceKind.CUSTOMER.value else None
            ),
            amount=reservation.total_amount,
            payment_method=payment_method,
            status="PENDING",
            payment_reference=reservation.reference_code,
            notes=notes,
        )
        self.db.add(payment)
        self.db.flush()
        reservation.payment_id = payment.id
        return payment

    def update_amount(self, reservation: Reservation, amount: float) -> None:
        payment = self._linked(reservation)
        if payment:
            payment.amount = amount
            self.db.flush()

    def void(self, reservation: Reservation) -> Optional[int]:
        """Delete the linked payment; returns the voided payment id, if any"""
        payment = self._linked(reservation)
        if not payment:
            return None

        payment_id = payment.id
        reservation.payment_id = None
        self.db.delete(payment)
        self.db.flush()
        logger.info(f"💸 Voided payment {payment_id} for booking {reservation.id}")
        return payment_id

    def _linked(self, reservation: Reservation) -> Optional[Payment]:
        if not reservation.payment_id:
            return None
        return self.db.query(Payment).filter(Payment.id == reservation.payment_id).first()
