"""
Appointments API Schemas

Pydantic models for appointment-related API requests and responses.
Dates and slot times are taken as strings and validated by the booking
engine so bad input surfaces with its own error code.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, date
import uuid
from app.domain.appointments.models import (
    AppointmentStatus, AppointmentPaymentStatus, ConsultationType, CancelledBy
)


class TimeSlot(BaseModel):
    start: str = Field(..., description="e.g. 09:00 AM or 09:00")
    end: str


# ==================== Booking Schemas ====================

class AppointmentBookBase(BaseModel):
    appointment_date: str = Field(..., description="YYYY-MM-DD")
    time_slot: TimeSlot
    consultation_type: str = Field(..., description="Online or Offline")
    payment_method: str = Field(..., description="UPI, Card, NetBanking or Cash")
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentCreate(AppointmentBookBase):
    """Booking by an authenticated patient or by staff on a patient's behalf"""
    doctor_id: uuid.UUID
    patient_id: Optional[uuid.UUID] = None


class SelfServiceBooking(AppointmentBookBase):
    """Anonymous booking; the patient is matched by contact or created"""
    doctor_id: uuid.UUID
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


class FollowUpCreate(AppointmentBookBase):
    pass


# ==================== Lifecycle Schemas ====================

class ClinicalData(BaseModel):
    """Consultation notes recorded on completion"""
    chief_complaint: Optional[str] = None
    symptoms: Optional[str] = None
    diagnosis: List[str] = []
    prescription: List[Dict[str, Any]] = []
    vitals: Dict[str, Any] = {}
    lab_tests: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    follow_up_note: Optional[str] = Field(None, max_length=500)


class StatusUpdate(BaseModel):
    status: str = Field(..., description="Confirmed, With-Doctor, Completed or Cancelled")
    clinical_data: Optional[ClinicalData] = None
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentReschedule(BaseModel):
    appointment_date: str
    time_slot: TimeSlot


# ==================== Response Schemas ====================

class AppointmentResponse(BaseModel):
    id: uuid.UUID
    appointment_number: str
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: date
    time_slot: TimeSlot
    duration: int
    consultation_type: ConsultationType
    status: AppointmentStatus
    fee: float
    payment_status: AppointmentPaymentStatus
    token_number: Optional[int] = None
    video_link: Optional[str] = None
    reason: Optional[str] = None
    is_follow_up: bool = False
    previous_appointment_id: Optional[uuid.UUID] = None
    next_appointment_id: Optional[uuid.UUID] = None
    medical_record_id: Optional[uuid.UUID] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentListResponse(BaseModel):
    items: List[AppointmentResponse]
    total: int
    page: int
    limit: int
    pages: int
