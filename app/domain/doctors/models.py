"""
Doctor Profile Models

The clinic-owned profile that carries a doctor's default schedule template
(working hours, breaks, slot duration, available weekdays) and fee rates.
"""

from sqlalchemy import Column, String, Integer, Float, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid
import enum


class DoctorStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


class DoctorProfile(TenantMixin, TimestampMixin, Base):
    """Doctor profile with schedule template"""
    __tablename__ = "doctor_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255))
    department_id = Column(UUID(as_uuid=True), index=True)
    specialization = Column(String(100))

    # Schedule template
    available_days = Column(JSON, default=list)
    working_hours_start = Column(String(20), nullable=False, default="09:00 AM")
    working_hours_end = Column(String(20), nullable=False, default="05:00 PM")
    breaks = Column(JSON, default=list)
    slot_duration = Column(Integer, nullable=False, default=30)

    # Fees
    consultation_fee = Column(Float, default=0)
    online_fee = Column(Float)

    status = Column(Enum(DoctorStatus), nullable=False, default=DoctorStatus.AVAILABLE, index=True)

    schedules = relationship("DaySchedule", back_populates="doctor", cascade="all, delete-orphan")

    @property
    def working_hours(self) -> dict:
        return {"start": self.working_hours_start, "end": self.working_hours_end}

    def works_on(self, weekday_name: str) -> bool:
        return weekday_name.lower() in {day.lower() for day in (self.available_days or [])}
