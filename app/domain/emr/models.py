"""
Medical record written when a consultation completes with clinical data.
"""

from sqlalchemy import Column, String, Date, ForeignKey, Text, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid
import enum


class MedicalRecordStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


# Fields a completion request may carry
CLINICAL_FIELDS = (
    "chief_complaint",
    "symptoms",
    "diagnosis",
    "prescription",
    "vitals",
    "lab_tests",
    "notes",
    "follow_up_date",
    "follow_up_note",
)


class MedicalRecord(TenantMixin, TimestampMixin, Base):
    __tablename__ = "medical_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctor_profiles.id"), nullable=False, index=True)

    chief_complaint = Column(Text)
    symptoms = Column(Text)
    diagnosis = Column(JSON)         # list of strings
    prescription = Column(JSON)      # list of {medicine, dosage, frequency, duration}
    vitals = Column(JSON)
    lab_tests = Column(JSON)
    notes = Column(Text)
    follow_up_date = Column(Date)
    follow_up_note = Column(String(500))

    status = Column(Enum(MedicalRecordStatus), default=MedicalRecordStatus.ACTIVE)
