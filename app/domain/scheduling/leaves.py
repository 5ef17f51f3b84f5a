"""
Leave management

Doctors request leave; an administrator approves or rejects it once.
Approval blocks the doctor's day schedules in the range and cancels the
open appointments on those days. The decision is committed first and is
never undone by a failure in those effects; each appointment is cancelled
independently so an interrupted run can simply be applied again.
"""

from typing import Optional, List, Dict, Any
from datetime import date
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    BaseCustomException, ValidationError, NotFoundError, InvalidStateError
)
from app.domain.appointments.repository import AppointmentRepository
from app.domain.appointments.service import AppointmentService
from app.domain.doctors.service import DoctorService
from app.domain.scheduling.models import DoctorLeave, LeaveStatus, LeaveType, LeaveDuration
from app.domain.scheduling.repository import DoctorLeaveRepository
from app.domain.scheduling.service import ScheduleService, parse_date
from app.infrastructure.notifications import AppointmentNotifier

logger = logging.getLogger(__name__)

LEAVE_CANCELLATION_REASON = "Doctor on approved leave"


def parse_leave_type(value: Any) -> LeaveType:
    if isinstance(value, LeaveType):
        return value
    for member in LeaveType:
        if str(value).strip().lower() == member.value:
            return member
    raise ValidationError(
        f"Invalid leave type: {value}",
        details={"allowed": [member.value for member in LeaveType]},
        error_code="INVALID_LEAVE_REQUEST"
    )


def parse_leave_duration(value: Any) -> LeaveDuration:
    if isinstance(value, LeaveDuration):
        return value
    for member in LeaveDuration:
        if str(value).strip().lower() == member.value.lower():
            return member
    raise ValidationError(
        f"Invalid leave duration: {value}",
        details={"allowed": [member.value for member in LeaveDuration]},
        error_code="INVALID_LEAVE_REQUEST"
    )


class LeaveService:
    """Service layer for doctor leave management"""

    def __init__(self, db, notifier: Optional[AppointmentNotifier] = None):
        self.db = db
        self.leave_repo = DoctorLeaveRepository(db)
        self.appointment_repo = AppointmentRepository(db)
        self.schedule_service = ScheduleService(db)
        self.appointment_service = AppointmentService(db, notifier=notifier)
        self.doctor_service = DoctorService(db)

    def request_leave(
        self,
        doctor_id: uuid.UUID,
        start_date: Any,
        leave_type: Any,
        end_date: Optional[Any] = None,
        duration_type: Any = LeaveDuration.FULL_DAY,
        description: Optional[str] = None,
    ) -> DoctorLeave:
        """Request a new leave; a single day when no end date is given"""
        doctor = self.doctor_service.get_doctor(doctor_id)
        start = parse_date(start_date)
        end = parse_date(end_date) if end_date else start
        if start > end:
            raise ValidationError(
                "Start date must be before or equal to end date",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
                error_code="INVALID_LEAVE_REQUEST"
            )

        leave = self.leave_repo.create({
            "doctor_id": doctor.id,
            "leave_type": parse_leave_type(leave_type),
            "duration_type": parse_leave_duration(duration_type),
            "start_date": start,
            "end_date": end,
            "description": description,
            "status": LeaveStatus.PENDING,
        })
        logger.info(f"Doctor {doctor.id} requested {leave.leave_type.value} leave {start} to {end}")
        return leave

    def get_leave(self, leave_id: uuid.UUID) -> DoctorLeave:
        leave = self.leave_repo.get_by_id(leave_id)
        if not leave:
            raise NotFoundError(
                "Leave request not found",
                details={"leave_id": str(leave_id)},
                error_code="LEAVE_NOT_FOUND"
            )
        return leave

    def list_leaves(self, doctor_id: Optional[uuid.UUID] = None, status: Optional[Any] = None) -> List[DoctorLeave]:
        try:
            if isinstance(status, LeaveStatus):
                leave_status = status
            else:
                leave_status = LeaveStatus(str(status).lower()) if status else None
        except ValueError:
            raise ValidationError(f"Invalid leave status: {status}", error_code="INVALID_STATUS")
        if doctor_id is None:
            if leave_status not in (None, LeaveStatus.PENDING):
                raise ValidationError("Listing across doctors is limited to pending leaves", error_code="VALIDATION_ERROR")
            return self.leave_repo.get_pending()
        return self.leave_repo.get_by_doctor_id(doctor_id, leave_status)

    def approve_leave(self, leave_id: uuid.UUID, decided_by: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """Approve a pending leave, then block schedules and cancel appointments in range"""
        leave = self._decide(leave_id, LeaveStatus.APPROVED, decided_by)
        logger.info(f"Approved leave {leave.id} for doctor {leave.doctor_id} ({leave.start_date} to {leave.end_date})")
        return self._apply_effects(leave)

    def reject_leave(
        self,
        leave_id: uuid.UUID,
        decided_by: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
    ) -> DoctorLeave:
        leave = self._decide(leave_id, LeaveStatus.REJECTED, decided_by, reason)
        logger.info(f"Rejected leave {leave.id} for doctor {leave.doctor_id}")
        return leave

    def reapply_leave_effects(self, leave_id: uuid.UUID) -> Dict[str, Any]:
        """Run the approval effects again, e.g. after an interrupted approval"""
        leave = self.get_leave(leave_id)
        if leave.status != LeaveStatus.APPROVED:
            raise InvalidStateError(
                "Only approved leaves have effects to apply",
                details={"leave_id": str(leave.id), "status": leave.status.value}
            )
        return self._apply_effects(leave)

    def _decide(
        self,
        leave_id: uuid.UUID,
        status: LeaveStatus,
        decided_by: Optional[uuid.UUID],
        reason: Optional[str] = None,
    ) -> DoctorLeave:
        leave = self.get_leave(leave_id)
        if leave.status != LeaveStatus.PENDING or not self.leave_repo.decide(leave.id, status, decided_by, reason):
            self.db.refresh(leave)
            raise InvalidStateError(
                f"Leave request is already {leave.status.value}",
                details={"leave_id": str(leave.id), "status": leave.status.value}
            )
        self.db.refresh(leave)
        return leave

    def _apply_effects(self, leave: DoctorLeave) -> Dict[str, Any]:
        blocked = self.schedule_service.bulk_block(
            leave.doctor_id, leave.start_date, leave.end_date, leave_id=leave.id
        )

        cancelled, failed = [], []
        for appointment in self.appointment_repo.get_open_in_range(
            leave.doctor_id, leave.start_date, leave.end_date
        ):
            try:
                if self.appointment_service.hospital_cancel(appointment, reason=LEAVE_CANCELLATION_REASON):
                    cancelled.append(appointment.id)
            except (SQLAlchemyError, BaseCustomException) as e:
                self.db.rollback()
                failed.append(appointment.id)
                logger.error(f"Leave {leave.id}: could not cancel appointment {appointment.id}: {e}")

        if failed:
            logger.warning(f"Leave {leave.id}: {len(failed)} appointments still open, reapply to retry")
        logger.info(f"Leave {leave.id}: blocked {blocked} schedules, cancelled {len(cancelled)} appointments")
        return {
            "leave": leave,
            "blocked_schedules": blocked,
            "cancelled_appointment_ids": cancelled,
            "failed_appointment_ids": failed,
        }

    def is_doctor_on_leave(self, doctor_id: uuid.UUID, check_date: date) -> bool:
        return self.leave_repo.is_doctor_on_leave(doctor_id, check_date)
