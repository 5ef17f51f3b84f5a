from typing import Any, Dict, Optional
import uuid

from fastapi import Query

from app.core.exceptions import AuthorizationError, ValidationError
from app.core.permissions import Roles
from app.domain.doctors.models import DoctorProfile
from app.domain.doctors.service import DoctorService
from app.domain.patients.models import Patient
from app.domain.patients.repository import PatientRepository


def pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)
) -> Dict[str, int]:
    return {"page": page, "limit": limit, "skip": (page - 1) * limit}


def user_uuid(current_user: Dict[str, Any]) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(current_user.get("sub")))
    except ValueError:
        return None


def acting_doctor(db, current_user: Dict[str, Any]) -> DoctorProfile:
    """Doctor profile of the authenticated user"""
    if current_user.get("role") != Roles.DOCTOR:
        raise AuthorizationError("Only doctors can perform this action", error_code="UNAUTHORIZED")
    return DoctorService(db).get_doctor_for_user(current_user.get("sub"))


def resolve_doctor_id(db, current_user: Dict[str, Any], doctor_id: Optional[uuid.UUID]) -> uuid.UUID:
    """Doctors act on their own profile; administrators must name the doctor"""
    if current_user.get("role") == Roles.DOCTOR:
        doctor = acting_doctor(db, current_user)
        if doctor_id is not None and doctor_id != doctor.id:
            raise AuthorizationError(
                "Doctors can only manage their own schedule",
                details={"doctor_id": str(doctor_id)},
                error_code="UNAUTHORIZED"
            )
        return doctor.id
    if doctor_id is None:
        raise ValidationError("doctor_id is required", error_code="VALIDATION_ERROR")
    return doctor_id


def acting_patient(db, current_user: Dict[str, Any]) -> Optional[Patient]:
    """Patient record of the authenticated user, None for staff"""
    if current_user.get("role") != Roles.PATIENT:
        return None
    user_id = user_uuid(current_user)
    patient = PatientRepository(db).get_by_user_id(user_id) if user_id else None
    if not patient:
        raise AuthorizationError("No patient profile for this user", error_code="UNAUTHORIZED")
    return patient
