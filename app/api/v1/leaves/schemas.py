"""
Leaves API Schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date
import uuid
from app.domain.scheduling.models import LeaveType, LeaveDuration, LeaveStatus


class LeaveCreate(BaseModel):
    """A single day leave when end_date is omitted"""
    doctor_id: Optional[uuid.UUID] = None
    leave_type: str = Field(..., description="sick or casual")
    duration_type: str = Field(LeaveDuration.FULL_DAY.value, description="Full Day or Half Day")
    start_date: str
    end_date: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)


class LeaveReject(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class LeaveResponse(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    leave_type: LeaveType
    duration_type: LeaveDuration
    start_date: date
    end_date: date
    total_days: int
    description: Optional[str] = None
    status: LeaveStatus
    decided_by: Optional[uuid.UUID] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LeaveListResponse(BaseModel):
    items: List[LeaveResponse]
    total: int


class LeaveApprovalResponse(BaseModel):
    """Outcome of approving (or re-applying) a leave"""
    leave: LeaveResponse
    blocked_schedules: int
    cancelled_appointment_ids: List[uuid.UUID]
    failed_appointment_ids: List[uuid.UUID]
