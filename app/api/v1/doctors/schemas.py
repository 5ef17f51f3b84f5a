"""
Doctors API Schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
import uuid
from app.domain.doctors.models import DoctorStatus


class BreakInterval(BaseModel):
    start: str = Field(..., description="e.g. 01:00 PM or 13:00")
    end: str


class DoctorCreate(BaseModel):
    user_id: uuid.UUID
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    department_id: Optional[uuid.UUID] = None
    specialization: Optional[str] = Field(None, max_length=100)
    available_days: List[str] = []
    working_hours_start: str = "09:00 AM"
    working_hours_end: str = "05:00 PM"
    breaks: List[BreakInterval] = []
    slot_duration: Optional[int] = Field(None, ge=5, le=240)
    consultation_fee: float = Field(0, ge=0)
    online_fee: Optional[float] = Field(None, ge=0)


class DoctorUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    specialization: Optional[str] = Field(None, max_length=100)
    available_days: Optional[List[str]] = None
    working_hours_start: Optional[str] = None
    working_hours_end: Optional[str] = None
    breaks: Optional[List[BreakInterval]] = None
    slot_duration: Optional[int] = Field(None, ge=5, le=240)
    consultation_fee: Optional[float] = Field(None, ge=0)
    online_fee: Optional[float] = Field(None, ge=0)
    status: Optional[DoctorStatus] = None


class DoctorResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    email: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    specialization: Optional[str] = None
    available_days: List[str] = []
    working_hours_start: str
    working_hours_end: str
    breaks: List[BreakInterval] = []
    slot_duration: int
    consultation_fee: Optional[float] = None
    online_fee: Optional[float] = None
    status: DoctorStatus
    created_at: datetime

    class Config:
        from_attributes = True


class DoctorListResponse(BaseModel):
    items: List[DoctorResponse]
    total: int
