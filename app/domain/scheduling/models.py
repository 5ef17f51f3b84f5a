"""
Scheduling Domain Models

Implements the database models for:
- Day schedules (one per doctor per calendar date)
- Schedule slots (addressable rows of a day's slot grid)
- Doctor leave requests
"""

from sqlalchemy import (
    Column, String, Date, Boolean, DateTime, ForeignKey,
    Integer, Float, Text, Enum, JSON, CheckConstraint, UniqueConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.infrastructure.database import Base
from app.models.mixins import TenantMixin, TimestampMixin
import uuid
import enum


class LeaveType(str, enum.Enum):
    """Type of doctor leave"""
    SICK = "sick"
    CASUAL = "casual"


class LeaveDuration(str, enum.Enum):
    FULL_DAY = "Full Day"
    HALF_DAY = "Half Day"


class LeaveStatus(str, enum.Enum):
    """Status of leave request"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DaySchedule(TenantMixin, TimestampMixin, Base):
    """A doctor's slot grid for one calendar date"""
    __tablename__ = "day_schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctor_profiles.id", ondelete="CASCADE"), nullable=False)
    schedule_date = Column(Date, nullable=False, index=True)
    day_name = Column(String(10))

    working_hours_start = Column(String(20), nullable=False)
    working_hours_end = Column(String(20), nullable=False)
    breaks = Column(JSON, default=list)
    slot_duration = Column(Integer, nullable=False, default=30)

    # Cleared by leave approval
    is_available = Column(Boolean, nullable=False, default=True)
    leave_id = Column(UUID(as_uuid=True), ForeignKey("doctor_leaves.id", ondelete="SET NULL"))

    # Relationships
    doctor = relationship("DoctorProfile", back_populates="schedules")
    slots = relationship(
        "ScheduleSlot",
        back_populates="schedule",
        order_by="ScheduleSlot.start_minute",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint('doctor_id', 'schedule_date', name='unique_schedule_per_doctor_date'),
    )

    @property
    def working_hours(self) -> dict:
        return {"start": self.working_hours_start, "end": self.working_hours_end}

    @property
    def has_booked_slots(self) -> bool:
        return any(slot.is_booked for slot in self.slots)


class ScheduleSlot(TenantMixin, Base):
    """One bookable interval of a day schedule"""
    __tablename__ = "schedule_slots"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    schedule_id = Column(UUID(as_uuid=True), ForeignKey("day_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # Wall-clock labels as generated; lookups go through the minute columns
    start = Column(String(20), nullable=False)
    end = Column(String(20), nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)

    is_booked = Column(Boolean, nullable=False, default=False)
    online_fee = Column(Float, nullable=False, default=100)
    offline_fee = Column(Float, nullable=False, default=80)

    schedule = relationship("DaySchedule", back_populates="slots")

    __table_args__ = (
        UniqueConstraint('schedule_id', 'start_minute', 'end_minute', name='unique_slot_interval_per_schedule'),
        CheckConstraint('start_minute < end_minute', name='check_slot_order'),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "is_booked": self.is_booked,
            "online_fee": self.online_fee,
            "offline_fee": self.offline_fee,
        }


class DoctorLeave(TenantMixin, TimestampMixin, Base):
    """Doctor leave/unavailability model"""
    __tablename__ = "doctor_leaves"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    leave_type = Column(Enum(LeaveType), nullable=False)
    duration_type = Column(Enum(LeaveDuration), nullable=False, default=LeaveDuration.FULL_DAY)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    description = Column(Text)

    status = Column(Enum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING, index=True)
    decided_by = Column(UUID(as_uuid=True))
    decided_at = Column(DateTime)
    rejection_reason = Column(Text)

    doctor = relationship("DoctorProfile")

    __table_args__ = (
        CheckConstraint('start_date <= end_date', name='check_leave_dates'),
    )

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1
