"""
Schedules API Schemas

Times are clock strings ("09:00 AM" or "09:00"); a schedule answers in the
same form its working hours were given in.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date
import uuid


class TimeRange(BaseModel):
    start: str
    end: str


# ==================== Schedule Schemas ====================

class ScheduleCreate(BaseModel):
    """Either week_days (repeated weeks_ahead times) or selected_dates"""
    doctor_id: Optional[uuid.UUID] = None
    working_hours: TimeRange
    breaks: List[TimeRange] = []
    week_days: Optional[List[str]] = None
    weeks_ahead: int = Field(4, ge=1, le=52)
    selected_dates: Optional[List[str]] = None
    slot_duration: Optional[int] = Field(None, ge=5, le=240)


class ScheduleUpdate(BaseModel):
    working_hours: Optional[TimeRange] = None
    breaks: Optional[List[TimeRange]] = None
    slot_duration: Optional[int] = Field(None, ge=5, le=240)


class EnsureSchedulesRequest(BaseModel):
    doctor_id: Optional[uuid.UUID] = None
    days: Optional[int] = Field(None, ge=1, le=90)


class SlotResponse(BaseModel):
    id: uuid.UUID
    start: str
    end: str
    duration: int
    is_booked: bool
    online_fee: float
    offline_fee: float

    class Config:
        from_attributes = True


class ScheduleResponse(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    schedule_date: date
    day_name: Optional[str] = None
    working_hours: TimeRange
    breaks: List[TimeRange] = []
    slot_duration: int
    is_available: bool
    leave_id: Optional[uuid.UUID] = None
    slots: List[SlotResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ScheduleListResponse(BaseModel):
    items: List[ScheduleResponse]
    total: int


# ==================== Availability Schemas ====================

class AvailableDatesResponse(BaseModel):
    doctor_id: uuid.UUID
    dates: List[date]


class AvailableSlotsResponse(BaseModel):
    doctor_id: uuid.UUID
    date: date
    slots: List[SlotResponse]


class SlotCheckResponse(BaseModel):
    exists: bool
    available: bool
    slot: Optional[SlotResponse] = None
