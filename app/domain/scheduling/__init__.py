# Scheduling domain module
from app.domain.scheduling.models import (
    DaySchedule,
    ScheduleSlot,
    DoctorLeave,
    LeaveStatus,
    LeaveType,
    LeaveDuration,
)

__all__ = [
    "DaySchedule",
    "ScheduleSlot",
    "DoctorLeave",
    "LeaveStatus",
    "LeaveType",
    "LeaveDuration",
]
