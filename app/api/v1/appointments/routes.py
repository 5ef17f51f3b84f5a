"""
Appointments API Routes

Booking, the doctor-driven status workflow, patient cancellation and
rescheduling, follow-ups and administrative clean-up.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional, Dict, Any
from datetime import date
import math
import uuid

from app.infrastructure.database import get_db
from app.core.exceptions import AuthorizationError, ValidationError, ErrorResponse
from app.core.permissions import require_permissions, Permissions, Roles
from app.domain.appointments.models import Appointment, CancelledBy
from app.domain.appointments.service import AppointmentService
from app.api.deps import acting_doctor, acting_patient, pagination, user_uuid
from app.api.v1.appointments.schemas import (
    AppointmentCreate, SelfServiceBooking, FollowUpCreate,
    StatusUpdate, AppointmentCancel, AppointmentReschedule,
    AppointmentResponse, AppointmentListResponse
)

router = APIRouter()

BOOKING_ERRORS = {
    404: {"model": ErrorResponse, "description": "Doctor, patient, schedule or slot not found"},
    409: {"model": ErrorResponse, "description": "Slot taken, patient double-booked or doctor unavailable"},
    422: {"model": ErrorResponse, "description": "Malformed date, slot, consultation type or payment method"},
}


def _check_access(db, current_user: Dict[str, Any], appointment: Appointment) -> None:
    """Patients and doctors only reach their own appointments"""
    role = current_user.get("role")
    if role == Roles.PATIENT:
        owner = acting_patient(db, current_user)
        if appointment.patient_id != owner.id:
            raise AuthorizationError("Appointment belongs to another patient", error_code="UNAUTHORIZED")
    elif role == Roles.DOCTOR:
        if appointment.doctor_id != acting_doctor(db, current_user).id:
            raise AuthorizationError("Appointment belongs to another doctor", error_code="UNAUTHORIZED")


# ==================== Booking ====================

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED, responses=BOOKING_ERRORS)
def book_appointment(
    booking: AppointmentCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_CREATE]))
):
    """Book a slot; patients book for themselves, staff name the patient"""
    patient = acting_patient(db, current_user)
    patient_id = patient.id if patient else booking.patient_id
    if patient_id is None:
        raise ValidationError("patient_id is required", error_code="VALIDATION_ERROR")

    service = AppointmentService(db)
    return service.book_appointment(
        doctor_id=booking.doctor_id,
        appointment_date=booking.appointment_date,
        slot_start=booking.time_slot.start,
        slot_end=booking.time_slot.end,
        consultation_type=booking.consultation_type,
        payment_method=booking.payment_method,
        patient_id=patient_id,
        created_by=user_uuid(current_user),
        reason=booking.reason,
    )


@router.post("/self-service", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED, responses=BOOKING_ERRORS)
def book_self_service(
    booking: SelfServiceBooking,
    db = Depends(get_db)
):
    """Unauthenticated booking with contact details (public endpoint)"""
    service = AppointmentService(db)
    return service.book_appointment(
        doctor_id=booking.doctor_id,
        appointment_date=booking.appointment_date,
        slot_start=booking.time_slot.start,
        slot_end=booking.time_slot.end,
        consultation_type=booking.consultation_type,
        payment_method=booking.payment_method,
        patient_info={
            "full_name": booking.full_name,
            "email": booking.email,
            "phone": booking.phone,
        },
        reason=booking.reason,
    )


# ==================== Reads ====================

@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    doctor_id: Optional[uuid.UUID] = None,
    patient_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    paging: dict = Depends(pagination),
    db = Depends(get_db),
    current_user = Depends(require_permissions([
        Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_READ_OWN
    ]))
):
    """List appointments with pagination; patients and doctors see only their own"""
    role = current_user.get("role")
    if role == Roles.PATIENT:
        patient_id = acting_patient(db, current_user).id
    elif role == Roles.DOCTOR:
        doctor_id = acting_doctor(db, current_user).id

    service = AppointmentService(db)
    items, total = service.list_appointments(
        skip=paging["skip"],
        limit=paging["limit"],
        patient_id=patient_id,
        doctor_id=doctor_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
    )
    return AppointmentListResponse(
        items=items,
        total=total,
        page=paging["page"],
        limit=paging["limit"],
        pages=math.ceil(total / paging["limit"]) if total > 0 else 0
    )


@router.get("/doctor/today", response_model=AppointmentListResponse)
def get_doctor_day(
    target_date: Optional[date] = Query(None, alias="date"),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_UPDATE]))
):
    """The authenticated doctor's appointments for a day (today by default)"""
    doctor = acting_doctor(db, current_user)
    service = AppointmentService(db)
    items = service.get_doctor_day(doctor.id, target_date)
    return AppointmentListResponse(items=items, total=len(items), page=1, limit=len(items), pages=1 if items else 0)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([
        Permissions.APPOINTMENTS_READ, Permissions.APPOINTMENTS_READ_OWN
    ]))
):
    service = AppointmentService(db)
    appointment = service.get_appointment(appointment_id)
    _check_access(db, current_user, appointment)
    return appointment


# ==================== Lifecycle ====================

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_status(
    appointment_id: uuid.UUID,
    update: StatusUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_UPDATE]))
):
    """Doctor moves an appointment through the consultation workflow"""
    doctor = acting_doctor(db, current_user)
    service = AppointmentService(db)
    return service.update_status(
        appointment_id,
        update.status,
        acting_doctor_id=doctor.id,
        clinical_data=update.clinical_data.model_dump() if update.clinical_data else None,
        reason=update.reason,
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: uuid.UUID,
    cancel_data: AppointmentCancel,
    db = Depends(get_db),
    current_user = Depends(require_permissions([
        Permissions.APPOINTMENTS_CANCEL_OWN, Permissions.SYSTEM_ADMIN
    ]))
):
    """Cancel an appointment; the slot is freed and paid fees are refunded"""
    patient = acting_patient(db, current_user)
    service = AppointmentService(db)
    return service.cancel_appointment(
        appointment_id,
        cancelled_by=CancelledBy.PATIENT if patient else CancelledBy.HOSPITAL,
        acting_patient_id=patient.id if patient else None,
        reason=cancel_data.reason,
    )


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: uuid.UUID,
    reschedule_data: AppointmentReschedule,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_CREATE]))
):
    """Move a pending or confirmed appointment to another slot"""
    patient = acting_patient(db, current_user)
    service = AppointmentService(db)
    return service.reschedule_appointment(
        appointment_id,
        reschedule_data.appointment_date,
        reschedule_data.time_slot.start,
        reschedule_data.time_slot.end,
        acting_patient_id=patient.id if patient else None,
    )


@router.post("/{appointment_id}/follow-up", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_follow_up(
    appointment_id: uuid.UUID,
    follow_up: FollowUpCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_UPDATE]))
):
    """Book the next visit with the same doctor and link it to this one"""
    service = AppointmentService(db)
    previous = service.get_appointment(appointment_id)
    _check_access(db, current_user, previous)
    return service.book_follow_up(
        previous.id,
        appointment_date=follow_up.appointment_date,
        slot_start=follow_up.time_slot.start,
        slot_end=follow_up.time_slot.end,
        consultation_type=follow_up.consultation_type,
        payment_method=follow_up.payment_method,
        created_by=user_uuid(current_user),
        reason=follow_up.reason,
    )


@router.post("/{appointment_id}/missed", response_model=AppointmentResponse)
def mark_missed(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SYSTEM_ADMIN]))
):
    service = AppointmentService(db)
    return service.mark_missed(appointment_id)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_DELETE]))
):
    """Delete a cancelled appointment"""
    service = AppointmentService(db)
    service.delete_appointment(appointment_id)
