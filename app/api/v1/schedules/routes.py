"""
Schedules API Routes

Day schedule management for doctors and administrators, plus the public
availability lookups used before booking.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from datetime import date
import uuid

from app.infrastructure.database import get_db
from app.core.permissions import require_permissions, Permissions
from app.domain.scheduling.service import ScheduleService, parse_date
from app.api.deps import resolve_doctor_id
from app.api.v1.schedules.schemas import (
    ScheduleCreate, ScheduleUpdate, EnsureSchedulesRequest,
    ScheduleResponse, ScheduleListResponse,
    AvailableDatesResponse, AvailableSlotsResponse, SlotCheckResponse
)

router = APIRouter()


# ==================== Schedule Management ====================

@router.post("", response_model=ScheduleListResponse, status_code=status.HTTP_201_CREATED)
def create_schedules(
    schedule_data: ScheduleCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_CREATE]))
):
    """Create day schedules; dates that already have one are skipped"""
    doctor_id = resolve_doctor_id(db, current_user, schedule_data.doctor_id)
    service = ScheduleService(db)
    schedules = service.create_schedules(
        doctor_id=doctor_id,
        working_hours=schedule_data.working_hours.model_dump(),
        breaks=[item.model_dump() for item in schedule_data.breaks],
        week_days=schedule_data.week_days,
        weeks_ahead=schedule_data.weeks_ahead,
        selected_dates=schedule_data.selected_dates,
        slot_duration=schedule_data.slot_duration,
    )
    return ScheduleListResponse(items=schedules, total=len(schedules))


@router.post("/ensure", response_model=ScheduleListResponse)
def ensure_upcoming_schedules(
    request_data: EnsureSchedulesRequest,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_CREATE]))
):
    """Materialise schedules from the profile template for the look-ahead window"""
    doctor_id = resolve_doctor_id(db, current_user, request_data.doctor_id)
    service = ScheduleService(db)
    schedules = service.ensure_upcoming_schedules(doctor_id, days=request_data.days)
    return ScheduleListResponse(items=schedules, total=len(schedules))


@router.get("", response_model=ScheduleListResponse)
def list_schedules(
    doctor_id: Optional[uuid.UUID] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_READ]))
):
    service = ScheduleService(db)
    schedules = service.list_schedules(
        resolve_doctor_id(db, current_user, doctor_id), from_date, to_date
    )
    return ScheduleListResponse(items=schedules, total=len(schedules))


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_READ]))
):
    service = ScheduleService(db)
    schedule = service.get_schedule(schedule_id)
    resolve_doctor_id(db, current_user, schedule.doctor_id)
    return schedule


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(
    schedule_id: uuid.UUID,
    update_data: ScheduleUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_UPDATE]))
):
    """Change hours, breaks or duration; refused once a slot is booked"""
    service = ScheduleService(db)
    schedule = service.get_schedule(schedule_id)
    resolve_doctor_id(db, current_user, schedule.doctor_id)
    return service.update_schedule(
        schedule.id,
        working_hours=update_data.working_hours.model_dump() if update_data.working_hours else None,
        breaks=[item.model_dump() for item in update_data.breaks] if update_data.breaks is not None else None,
        slot_duration=update_data.slot_duration,
    )


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_DELETE]))
):
    service = ScheduleService(db)
    schedule = service.get_schedule(schedule_id)
    resolve_doctor_id(db, current_user, schedule.doctor_id)
    service.delete_schedule(schedule.id)


# ==================== Availability (public) ====================

@router.get("/doctors/{doctor_id}/available-dates", response_model=AvailableDatesResponse)
def get_available_dates(
    doctor_id: uuid.UUID,
    from_date: Optional[date] = None,
    db = Depends(get_db)
):
    """Dates with at least one free slot"""
    service = ScheduleService(db)
    return AvailableDatesResponse(
        doctor_id=doctor_id,
        dates=service.list_available_dates(doctor_id, from_date)
    )


@router.get("/doctors/{doctor_id}/slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    doctor_id: uuid.UUID,
    target_date: str = Query(..., alias="date"),
    db = Depends(get_db)
):
    """Free slots of a doctor on a date"""
    service = ScheduleService(db)
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        date=parse_date(target_date),
        slots=service.list_available_slots(doctor_id, target_date)
    )


@router.get("/doctors/{doctor_id}/slots/check", response_model=SlotCheckResponse)
def check_slot(
    doctor_id: uuid.UUID,
    target_date: str = Query(..., alias="date"),
    start: str = Query(...),
    end: str = Query(...),
    db = Depends(get_db)
):
    service = ScheduleService(db)
    return service.check_slot(doctor_id, target_date, start, end)
