from sqlalchemy import Column, String, Date, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid


class Patient(TenantMixin, TimestampMixin, Base):
    """Patient record as seen by the scheduler.

    Self-service booking may create a minimal profile holding only a name
    and one contact field.
    """
    __tablename__ = "patients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    patient_number = Column(String(50), unique=True, nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), index=True)

    full_name = Column(String(200), nullable=False)
    email = Column(String(255), index=True)
    phone = Column(String(20), index=True)
    date_of_birth = Column(Date)
    gender = Column(String(20))

    # Created from an unauthenticated booking
    is_minimal_profile = Column(Boolean, default=False)

    appointments = relationship("Appointment", back_populates="patient")
