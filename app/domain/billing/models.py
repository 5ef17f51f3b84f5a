"""
Billing Domain Models

Payment rows created alongside a booking. Only the status transitions the
appointment lifecycle drives are modelled here; gateway fields are opaque.
"""

from sqlalchemy import Column, String, Float, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid
import enum


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class PaymentMethod(str, enum.Enum):
    UPI = "UPI"
    CARD = "Card"
    CASH = "Cash"
    NET_BANKING = "NetBanking"


class PaymentChannel(str, enum.Enum):
    ONLINE = "Online"
    WALK_IN = "WalkIn"


class PaymentType(str, enum.Enum):
    INITIAL = "Initial"
    BALANCE = "Balance"
    REFUND = "Refund"


class Payment(TenantMixin, TimestampMixin, Base):
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    method = Column(Enum(PaymentMethod), nullable=False)
    channel = Column(Enum(PaymentChannel), nullable=False, default=PaymentChannel.ONLINE)
    payment_type = Column(Enum(PaymentType), nullable=False, default=PaymentType.INITIAL)
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)

    # Gateway reference, set by the payment integration
    gateway_reference = Column(String(100))

    appointment = relationship("Appointment", back_populates="payments")
