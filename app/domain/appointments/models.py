"""
Appointments Domain Models

Implements the database model for patient-doctor appointments and the
enumerations that drive the appointment lifecycle.
"""

from sqlalchemy import (
    Column, String, Date, Boolean, DateTime, ForeignKey,
    Integer, Float, Text, Enum, CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid
import enum


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    WITH_DOCTOR = "With-Doctor"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    HOSPITAL_CANCELLED = "Hospital-Cancelled"
    MISSED = "Missed"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.HOSPITAL_CANCELLED,
    AppointmentStatus.MISSED,
})

CANCELLED_STATUSES = frozenset({
    AppointmentStatus.CANCELLED,
    AppointmentStatus.HOSPITAL_CANCELLED,
})


class ConsultationType(str, enum.Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class CancelledBy(str, enum.Enum):
    PATIENT = "Patient"
    DOCTOR = "Doctor"
    HOSPITAL = "Hospital"


class AppointmentPaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"
    PARTIAL_PAID = "PartialPaid"


class Appointment(TenantMixin, TimestampMixin, Base):
    """Appointment model for patient-doctor appointments"""
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_number = Column(String(50), unique=True, nullable=False, index=True)

    # Patient and doctor
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctor_profiles.id"), nullable=False)
    created_by = Column(UUID(as_uuid=True))

    # Scheduling
    appointment_date = Column(Date, nullable=False, index=True)
    slot_start = Column(String(20), nullable=False)
    slot_end = Column(String(20), nullable=False)
    slot_start_minute = Column(Integer, nullable=False)
    slot_end_minute = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False, default=30)

    consultation_type = Column(Enum(ConsultationType), nullable=False, default=ConsultationType.OFFLINE)
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.PENDING)

    # Fee and payment summary
    fee = Column(Float, nullable=False, default=0)
    payment_status = Column(Enum(AppointmentPaymentStatus), nullable=False, default=AppointmentPaymentStatus.PENDING)

    # Assigned on first confirmation
    token_number = Column(Integer)
    video_link = Column(String(500))

    reason = Column(Text)
    notes = Column(Text)

    # Follow-up chain
    is_follow_up = Column(Boolean, default=False)
    previous_appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="SET NULL"))
    next_appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="SET NULL"))

    # medical_records.appointment_id holds the FK; this is the back-reference
    medical_record_id = Column(UUID(as_uuid=True))

    # Lifecycle timestamps
    confirmed_at = Column(DateTime)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(Enum(CancelledBy))
    cancellation_reason = Column(Text)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("DoctorProfile")
    payments = relationship("Payment", back_populates="appointment", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('doctor_id', 'appointment_date', 'token_number', name='unique_token_per_doctor_date'),
        CheckConstraint('slot_start_minute < slot_end_minute', name='check_appointment_slot_order'),
        Index('ix_appointments_doctor_date', 'doctor_id', 'appointment_date'),
        Index('ix_appointments_patient_status', 'patient_id', 'status'),
        Index('ix_appointments_doctor_status', 'doctor_id', 'status'),
    )

    @property
    def time_slot(self) -> dict:
        return {"start": self.slot_start, "end": self.slot_end}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
