"""
Doctors API Routes

Doctor profiles hold the schedule template day schedules are generated from.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import uuid

from app.infrastructure.database import get_db
from app.core.permissions import require_permissions, Permissions
from app.domain.doctors.models import DoctorStatus
from app.domain.doctors.service import DoctorService
from app.api.deps import acting_doctor
from app.api.v1.doctors.schemas import (
    DoctorCreate, DoctorUpdate, DoctorResponse, DoctorListResponse
)

router = APIRouter()


@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(
    doctor_data: DoctorCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DOCTORS_MANAGE]))
):
    """Create a doctor profile with its schedule template"""
    service = DoctorService(db)
    return service.create_profile(doctor_data.model_dump())


@router.get("", response_model=DoctorListResponse)
def list_doctors(
    department_id: Optional[uuid.UUID] = None,
    status_filter: Optional[DoctorStatus] = Query(None, alias="status"),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DOCTORS_READ]))
):
    service = DoctorService(db)
    doctors = service.list_doctors(department_id=department_id, status=status_filter)
    return DoctorListResponse(items=doctors, total=len(doctors))


@router.get("/me", response_model=DoctorResponse)
def get_my_profile(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_READ]))
):
    """Profile of the authenticated doctor"""
    return acting_doctor(db, current_user)


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(
    doctor_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DOCTORS_READ]))
):
    service = DoctorService(db)
    return service.get_doctor(doctor_id)


@router.patch("/{doctor_id}", response_model=DoctorResponse)
def update_doctor(
    doctor_id: uuid.UUID,
    update_data: DoctorUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DOCTORS_MANAGE]))
):
    """Update profile or template; existing day schedules are not regenerated"""
    service = DoctorService(db)
    return service.update_profile(doctor_id, update_data.model_dump(exclude_unset=True))
