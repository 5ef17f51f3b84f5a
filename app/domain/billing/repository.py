from typing import Optional, List
from app.domain.billing.models import Payment, PaymentStatus
import uuid


class PaymentRepository:
    """Repository for payment data access operations.

    Writes are staged with ``flush`` so they commit together with the
    appointment change that caused them.
    """

    def __init__(self, db):
        self.db = db

    def create(self, payment_data: dict) -> Payment:
        payment = Payment(**payment_data)
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_by_appointment(self, appointment_id: uuid.UUID) -> List[Payment]:
        return self.db.query(Payment).filter(
            Payment.appointment_id == appointment_id
        ).order_by(Payment.created_at).all()

    def get_latest_for_appointment(self, appointment_id: uuid.UUID) -> Optional[Payment]:
        payments = self.get_by_appointment(appointment_id)
        return payments[-1] if payments else None

    def set_status_for_appointment(
        self,
        appointment_id: uuid.UUID,
        status: PaymentStatus,
        only_from: Optional[PaymentStatus] = None,
    ) -> int:
        """Move the appointment's payments to ``status``; returns rows touched"""
        query = self.db.query(Payment).filter(Payment.appointment_id == appointment_id)
        if only_from is not None:
            query = query.filter(Payment.status == only_from)
        return query.update({"status": status}, synchronize_session="fetch")
