"""
Appointments Service Layer

Booking engine and appointment state machine.

Booking is a small saga: the slot flag is claimed first (its own committed
compare-and-set), then the appointment and its payment are written in one
transaction. If that transaction fails the slot is released again before
the error reaches the caller.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import date, datetime
import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import (
    BaseCustomException, ValidationError, NotFoundError, ConflictError,
    AuthorizationError, DoctorUnavailableError, SlotAlreadyBookedError, SlotUnavailableError,
    InvalidTransitionError, InvalidStateError, handle_database_error
)
from app.domain.appointments.models import (
    Appointment, AppointmentStatus, AppointmentPaymentStatus,
    CancelledBy, ConsultationType, CANCELLED_STATUSES, TERMINAL_STATUSES
)
from app.domain.appointments.repository import AppointmentRepository
from app.domain.billing.models import PaymentChannel, PaymentMethod, PaymentStatus
from app.domain.billing.repository import PaymentRepository
from app.domain.doctors.service import DoctorService
from app.domain.emr.repository import MedicalRecordRepository, has_clinical_data
from app.domain.patients.repository import PatientRepository
from app.domain.scheduling.service import ScheduleService, parse_date, parse_time_slot
from app.infrastructure.notifications import AppointmentNotifier

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.HOSPITAL_CANCELLED,
        AppointmentStatus.MISSED,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.WITH_DOCTOR,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.HOSPITAL_CANCELLED,
        AppointmentStatus.MISSED,
    },
    AppointmentStatus.WITH_DOCTOR: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.HOSPITAL_CANCELLED,
        AppointmentStatus.MISSED,
    },
}

# Statuses a doctor may set from the consultation screen
DOCTOR_TARGET_STATUSES = (
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.WITH_DOCTOR,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
)

ALLOWED_PAYMENT_METHODS = {
    ConsultationType.ONLINE: (PaymentMethod.UPI, PaymentMethod.CARD, PaymentMethod.NET_BANKING),
    ConsultationType.OFFLINE: (PaymentMethod.CASH, PaymentMethod.CARD),
}

RESCHEDULABLE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


def parse_consultation_type(value: Any) -> ConsultationType:
    if isinstance(value, ConsultationType):
        return value
    for member in ConsultationType:
        if str(value).strip().lower() == member.value.lower():
            return member
    raise ValidationError(
        f"Invalid consultation type: {value}",
        details={"allowed": [member.value for member in ConsultationType]},
        error_code="INVALID_CONSULTATION_TYPE"
    )


def parse_payment_method(value: Any, consultation_type: ConsultationType) -> PaymentMethod:
    """Resolve a payment method and check it is accepted on the consultation's channel"""
    allowed = ALLOWED_PAYMENT_METHODS[consultation_type]
    method = None
    if isinstance(value, PaymentMethod):
        method = value
    else:
        for member in PaymentMethod:
            if str(value).strip().lower() == member.value.lower():
                method = member
                break
    if method not in allowed:
        raise ValidationError(
            f"Payment method {value} is not accepted for {consultation_type.value} consultations",
            details={"allowed": [member.value for member in allowed]},
            error_code="INVALID_PAYMENT_METHOD"
        )
    return method


def compute_fee(slot, consultation_type: ConsultationType) -> float:
    """Slot rate for the consultation type, scaled by duration against the fee base"""
    rate = slot.online_fee if consultation_type == ConsultationType.ONLINE else slot.offline_fee
    return float(rate) * (slot.duration / settings.FEE_BASE_DURATION_MINUTES)


def parse_status(value: Any, allowed=None) -> AppointmentStatus:
    status = None
    if isinstance(value, AppointmentStatus):
        status = value
    else:
        for member in AppointmentStatus:
            if str(value).strip().lower() == member.value.lower():
                status = member
                break
    if status is None or (allowed is not None and status not in allowed):
        raise ValidationError(
            f"Invalid status: {value}",
            details={"allowed": [member.value for member in (allowed or AppointmentStatus)]},
            error_code="INVALID_STATUS"
        )
    return status


class AppointmentService:
    """Service layer for booking and the appointment lifecycle"""

    def __init__(self, db, notifier: Optional[AppointmentNotifier] = None):
        self.db = db
        self.appointment_repo = AppointmentRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.patient_repo = PatientRepository(db)
        self.record_repo = MedicalRecordRepository(db)
        self.schedule_service = ScheduleService(db)
        self.doctor_service = DoctorService(db)
        self.notifier = notifier or AppointmentNotifier()

    # ==================== Booking ====================

    def book_appointment(
        self,
        doctor_id: uuid.UUID,
        appointment_date: Any,
        slot_start: str,
        slot_end: str,
        consultation_type: Any,
        payment_method: Any,
        patient_id: Optional[uuid.UUID] = None,
        patient_info: Optional[Dict[str, Any]] = None,
        created_by: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
        previous_appointment_id: Optional[uuid.UUID] = None,
    ) -> Appointment:
        """Book a slot for a patient.

        ``patient_info`` (full_name plus email and/or phone) is the
        self-service path: the patient is matched or a minimal profile is
        created. Otherwise ``patient_id`` must name an existing patient.
        """
        booking_date = parse_date(appointment_date)
        start_minute, end_minute = parse_time_slot(slot_start, slot_end)
        consultation = parse_consultation_type(consultation_type)
        method = parse_payment_method(payment_method, consultation)

        doctor = self.doctor_service.get_doctor(doctor_id)
        patient = self._resolve_patient(patient_id, patient_info)

        schedule = self.schedule_service.get_schedule_for_date(doctor.id, booking_date)
        if not schedule:
            raise NotFoundError(
                f"Doctor has no schedule on {booking_date.isoformat()}",
                details={"doctor_id": str(doctor.id), "date": booking_date.isoformat()},
                error_code="NO_SCHEDULE_FOR_DATE"
            )
        if not schedule.is_available:
            raise DoctorUnavailableError(doctor.id, booking_date.isoformat())

        if self.appointment_repo.find_patient_conflict(patient.id, booking_date, start_minute, end_minute):
            raise ConflictError(
                "Patient already has an appointment in this slot",
                details={"date": booking_date.isoformat(), "start": slot_start, "end": slot_end},
                error_code="PATIENT_DOUBLE_BOOKED"
            )

        slot = self._claim_slot(doctor.id, booking_date, slot_start, slot_end)
        fee = compute_fee(slot, consultation)
        walk_in_cash = consultation == ConsultationType.OFFLINE and method == PaymentMethod.CASH

        try:
            appointment = self.appointment_repo.create({
                "appointment_number": self._generate_appointment_number(booking_date),
                "patient_id": patient.id,
                "doctor_id": doctor.id,
                "created_by": created_by,
                "appointment_date": booking_date,
                "slot_start": slot.start,
                "slot_end": slot.end,
                "slot_start_minute": slot.start_minute,
                "slot_end_minute": slot.end_minute,
                "duration": slot.duration,
                "consultation_type": consultation,
                "status": AppointmentStatus.PENDING,
                "fee": fee,
                "payment_status": AppointmentPaymentStatus.PAID if walk_in_cash else AppointmentPaymentStatus.PENDING,
                "reason": reason,
                "is_follow_up": previous_appointment_id is not None,
                "previous_appointment_id": previous_appointment_id,
            })
            self.payment_repo.create({
                "appointment_id": appointment.id,
                "patient_id": patient.id,
                "amount": fee,
                "method": method,
                "channel": PaymentChannel.ONLINE if consultation == ConsultationType.ONLINE else PaymentChannel.WALK_IN,
                "status": PaymentStatus.PAID if walk_in_cash else PaymentStatus.PENDING,
            })
            if previous_appointment_id is not None:
                previous = self.appointment_repo.get_by_id(previous_appointment_id)
                previous.next_appointment_id = appointment.id
            if not self.schedule_service.hold_available_day(schedule.id):
                raise DoctorUnavailableError(doctor.id, booking_date.isoformat())
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self._compensate(doctor.id, booking_date, slot.start, slot.end)
            if isinstance(e, SQLAlchemyError):
                raise handle_database_error(e, "book appointment") from e
            raise

        self.db.refresh(appointment)
        logger.info(
            f"Booked appointment {appointment.id} for patient {patient.id} with doctor {doctor.id} "
            f"on {booking_date} {slot.start}-{slot.end} fee={fee}"
        )
        return appointment

    def book_follow_up(
        self,
        previous_appointment_id: uuid.UUID,
        appointment_date: Any,
        slot_start: str,
        slot_end: str,
        consultation_type: Any,
        payment_method: Any,
        created_by: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
    ) -> Appointment:
        """Book the next visit for the same patient and doctor and link the chain"""
        previous = self.get_appointment(previous_appointment_id)
        if previous.status in CANCELLED_STATUSES:
            raise InvalidStateError(
                "Cannot book a follow-up for a cancelled appointment",
                details={"appointment_id": str(previous.id), "status": previous.status.value}
            )
        if previous.next_appointment_id is not None:
            raise InvalidStateError(
                "Appointment already has a follow-up",
                details={"next_appointment_id": str(previous.next_appointment_id)}
            )

        return self.book_appointment(
            doctor_id=previous.doctor_id,
            appointment_date=appointment_date,
            slot_start=slot_start,
            slot_end=slot_end,
            consultation_type=consultation_type,
            payment_method=payment_method,
            patient_id=previous.patient_id,
            created_by=created_by,
            reason=reason or previous.reason,
            previous_appointment_id=previous.id,
        )

    # ==================== State machine ====================

    def update_status(
        self,
        appointment_id: uuid.UUID,
        target_status: Any,
        acting_doctor_id: uuid.UUID,
        clinical_data: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> Appointment:
        """Doctor-driven status change with its side effects"""
        target = parse_status(target_status, DOCTOR_TARGET_STATUSES)
        appointment = self.get_appointment(appointment_id)
        if appointment.doctor_id != acting_doctor_id:
            raise AuthorizationError(
                "Appointment belongs to another doctor",
                details={"appointment_id": str(appointment.id)},
                error_code="UNAUTHORIZED"
            )
        return self._transition(
            appointment,
            target,
            clinical_data=clinical_data,
            reason=reason,
            cancelled_by=CancelledBy.DOCTOR,
        )

    def cancel_appointment(
        self,
        appointment_id: uuid.UUID,
        cancelled_by: CancelledBy = CancelledBy.PATIENT,
        acting_patient_id: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
    ) -> Appointment:
        """Cancel on behalf of a patient (or staff); paid payments are refunded"""
        appointment = self.get_appointment(appointment_id)
        if acting_patient_id is not None and appointment.patient_id != acting_patient_id:
            raise AuthorizationError(
                "Appointment belongs to another patient",
                details={"appointment_id": str(appointment.id)},
                error_code="UNAUTHORIZED"
            )
        return self._transition(
            appointment,
            AppointmentStatus.CANCELLED,
            reason=reason,
            cancelled_by=cancelled_by,
        )

    def hospital_cancel(self, appointment: Appointment, reason: Optional[str] = None) -> bool:
        """Leave-driven cancellation; safe to repeat.

        Returns True when this call cancelled the appointment. Cancelled and
        other terminal appointments are left untouched, their slot was freed
        when they were cancelled and may belong to a newer booking by now.
        """
        if appointment.status in TERMINAL_STATUSES:
            return False

        self._transition(
            appointment,
            AppointmentStatus.HOSPITAL_CANCELLED,
            reason=reason,
            cancelled_by=CancelledBy.HOSPITAL,
        )
        return True

    def mark_missed(self, appointment_id: uuid.UUID) -> Appointment:
        """Administrative trigger; no automatic timeout sets Missed"""
        appointment = self.get_appointment(appointment_id)
        return self._transition(appointment, AppointmentStatus.MISSED)

    def _transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        clinical_data: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
        cancelled_by: Optional[CancelledBy] = None,
    ) -> Appointment:
        current = appointment.status
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(current.value, target.value)

        if target == AppointmentStatus.CONFIRMED:
            return self._confirm(appointment)
        if target == AppointmentStatus.COMPLETED:
            return self._complete(appointment, clinical_data)
        if target in CANCELLED_STATUSES:
            return self._cancel(appointment, target, cancelled_by, reason)

        appointment.status = target
        if target == AppointmentStatus.WITH_DOCTOR:
            appointment.started_at = datetime.utcnow()
        self._commit("update appointment status")
        logger.info(f"Appointment {appointment.id} moved {current.value} -> {target.value}")
        return appointment

    def _confirm(self, appointment: Appointment) -> Appointment:
        """Assign the day's next token, settle payment and issue a video link, first time only"""
        first_confirmation = appointment.token_number is None
        expected = appointment.status
        attempts = settings.TOKEN_ASSIGNMENT_MAX_RETRIES

        for attempt in range(1, attempts + 1):
            if not self.appointment_repo.claim_status(appointment.id, expected, AppointmentStatus.CONFIRMED):
                self.db.rollback()
                self.db.refresh(appointment)
                logger.warning(f"Appointment {appointment.id} changed to {appointment.status.value} while confirming")
                raise InvalidTransitionError(appointment.status.value, AppointmentStatus.CONFIRMED.value)
            appointment.status = AppointmentStatus.CONFIRMED
            appointment.confirmed_at = datetime.utcnow()
            if first_confirmation:
                appointment.token_number = self.appointment_repo.next_token_number(
                    appointment.doctor_id, appointment.appointment_date
                )
                self.payment_repo.set_status_for_appointment(appointment.id, PaymentStatus.PAID)
                appointment.payment_status = AppointmentPaymentStatus.PAID
                if appointment.consultation_type == ConsultationType.ONLINE and not appointment.video_link:
                    appointment.video_link = f"{settings.VIDEO_CALL_BASE_URL.rstrip('/')}/{uuid.uuid4().hex}"
            try:
                self.db.commit()
                break
            except IntegrityError as e:
                # Another confirmation took the same token number
                self.db.rollback()
                self.db.refresh(appointment)
                logger.warning(
                    f"Token collision confirming appointment {appointment.id} "
                    f"(attempt {attempt}/{attempts})"
                )
                if attempt == attempts:
                    raise ConflictError(
                        "Could not assign a token number, please retry",
                        details={"appointment_id": str(appointment.id)},
                        error_code="TOKEN_CONFLICT"
                    ) from e
                if appointment.status != AppointmentStatus.PENDING:
                    raise InvalidTransitionError(appointment.status.value, AppointmentStatus.CONFIRMED.value)
            except SQLAlchemyError as e:
                self.db.rollback()
                raise handle_database_error(e, "confirm appointment") from e

        logger.info(f"Confirmed appointment {appointment.id} with token {appointment.token_number}")
        self.notifier.notify(appointment, "confirmed")
        return appointment

    def _complete(self, appointment: Appointment, clinical_data: Optional[Dict[str, Any]]) -> Appointment:
        try:
            if has_clinical_data(clinical_data):
                record = self.record_repo.create(
                    appointment_id=appointment.id,
                    patient_id=appointment.patient_id,
                    doctor_id=appointment.doctor_id,
                    clinical_data=clinical_data,
                )
                appointment.medical_record_id = record.id
            appointment.status = AppointmentStatus.COMPLETED
            appointment.completed_at = datetime.utcnow()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_database_error(e, "complete appointment") from e

        logger.info(f"Completed appointment {appointment.id}, medical record {appointment.medical_record_id}")
        return appointment

    def _cancel(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        cancelled_by: Optional[CancelledBy],
        reason: Optional[str],
    ) -> Appointment:
        """Cancel, free the slot and refund in one transaction, then notify"""
        try:
            appointment.status = target
            appointment.cancelled_at = datetime.utcnow()
            appointment.cancelled_by = cancelled_by
            appointment.cancellation_reason = reason
            self.schedule_service.release_slot(
                appointment.doctor_id, appointment.appointment_date,
                appointment.slot_start, appointment.slot_end,
                commit=False
            )
            refunded = self.payment_repo.set_status_for_appointment(
                appointment.id, PaymentStatus.REFUNDED, only_from=PaymentStatus.PAID
            )
            if refunded:
                appointment.payment_status = AppointmentPaymentStatus.REFUNDED
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_database_error(e, "cancel appointment") from e

        logger.info(f"Appointment {appointment.id} {target.value} by {cancelled_by.value if cancelled_by else 'system'}")
        self.notifier.notify(appointment, "cancelled", reason=reason)
        return appointment

    # ==================== Reschedule / delete ====================

    def reschedule_appointment(
        self,
        appointment_id: uuid.UUID,
        new_date: Any,
        slot_start: str,
        slot_end: str,
        acting_patient_id: Optional[uuid.UUID] = None,
    ) -> Appointment:
        """Move a Pending/Confirmed appointment to another slot of the same doctor.

        The new slot is claimed before the old one is freed. The appointment
        returns to Pending and loses its token when the date changes.
        """
        appointment = self.get_appointment(appointment_id)
        if acting_patient_id is not None and appointment.patient_id != acting_patient_id:
            raise AuthorizationError(
                "Appointment belongs to another patient",
                details={"appointment_id": str(appointment.id)},
                error_code="UNAUTHORIZED"
            )
        if appointment.status not in RESCHEDULABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot reschedule a {appointment.status.value} appointment",
                details={"appointment_id": str(appointment.id), "status": appointment.status.value}
            )

        target_date = parse_date(new_date)
        start_minute, end_minute = parse_time_slot(slot_start, slot_end)
        if (
            target_date == appointment.appointment_date
            and start_minute == appointment.slot_start_minute
            and end_minute == appointment.slot_end_minute
        ):
            return appointment

        schedule = self.schedule_service.get_schedule_for_date(appointment.doctor_id, target_date)
        if not schedule:
            raise NotFoundError(
                f"Doctor has no schedule on {target_date.isoformat()}",
                details={"date": target_date.isoformat()},
                error_code="NO_SCHEDULE_FOR_DATE"
            )
        if not schedule.is_available:
            raise DoctorUnavailableError(appointment.doctor_id, target_date.isoformat())
        if self.appointment_repo.find_patient_conflict(
            appointment.patient_id, target_date, start_minute, end_minute, exclude_id=appointment.id
        ):
            raise ConflictError(
                "Patient already has an appointment in this slot",
                details={"date": target_date.isoformat(), "start": slot_start, "end": slot_end},
                error_code="PATIENT_DOUBLE_BOOKED"
            )

        new_slot = self._claim_slot(appointment.doctor_id, target_date, slot_start, slot_end)
        old_date, old_start, old_end = appointment.appointment_date, appointment.slot_start, appointment.slot_end

        try:
            self.schedule_service.release_slot(
                appointment.doctor_id, old_date, old_start, old_end, commit=False
            )
            if target_date != old_date:
                appointment.token_number = None
            appointment.appointment_date = target_date
            appointment.slot_start = new_slot.start
            appointment.slot_end = new_slot.end
            appointment.slot_start_minute = new_slot.start_minute
            appointment.slot_end_minute = new_slot.end_minute
            appointment.duration = new_slot.duration
            appointment.status = AppointmentStatus.PENDING
            appointment.confirmed_at = None
            if not self.schedule_service.hold_available_day(schedule.id):
                raise DoctorUnavailableError(appointment.doctor_id, target_date.isoformat())
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            self._compensate(appointment.doctor_id, target_date, new_slot.start, new_slot.end)
            if isinstance(e, SQLAlchemyError):
                raise handle_database_error(e, "reschedule appointment") from e
            raise

        logger.info(
            f"Rescheduled appointment {appointment.id} from {old_date} {old_start}-{old_end} "
            f"to {target_date} {new_slot.start}-{new_slot.end}"
        )
        self.notifier.notify(appointment, "rescheduled")
        return appointment

    def delete_appointment(self, appointment_id: uuid.UUID) -> None:
        """Remove a cancelled appointment.

        The slot is not touched: cancellation already freed it.
        """
        appointment = self.get_appointment(appointment_id)
        if appointment.status not in CANCELLED_STATUSES:
            raise InvalidStateError(
                "Only cancelled appointments can be deleted",
                details={"appointment_id": str(appointment.id), "status": appointment.status.value}
            )
        try:
            self.appointment_repo.delete(appointment)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_database_error(e, "delete appointment") from e
        logger.info(f"Deleted appointment {appointment_id}")

    # ==================== Reads ====================

    def get_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError(
                "Appointment not found",
                details={"appointment_id": str(appointment_id)},
                error_code="APPOINTMENT_NOT_FOUND"
            )
        return appointment

    def list_appointments(
        self,
        skip: int = 0,
        limit: int = 20,
        patient_id: Optional[uuid.UUID] = None,
        doctor_id: Optional[uuid.UUID] = None,
        status: Optional[Any] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[Appointment], int]:
        return self.appointment_repo.get_all(
            skip=skip,
            limit=limit,
            patient_id=patient_id,
            doctor_id=doctor_id,
            status=parse_status(status) if status else None,
            date_from=date_from,
            date_to=date_to,
        )

    def get_doctor_day(self, doctor_id: uuid.UUID, target_date: Optional[date] = None) -> List[Appointment]:
        return self.appointment_repo.get_doctor_day(doctor_id, target_date or date.today())

    # ==================== Helpers ====================

    def _resolve_patient(self, patient_id: Optional[uuid.UUID], patient_info: Optional[Dict[str, Any]]):
        if patient_id is not None:
            patient = self.patient_repo.get_by_id(patient_id)
            if not patient:
                raise NotFoundError(
                    "Patient not found",
                    details={"patient_id": str(patient_id)},
                    error_code="PATIENT_NOT_FOUND"
                )
            return patient

        info = patient_info or {}
        if not info.get("full_name") or not (info.get("email") or info.get("phone")):
            raise ValidationError(
                "New patients need a name and an e-mail or phone number",
                error_code="VALIDATION_ERROR"
            )
        return self.patient_repo.find_or_create(
            full_name=info["full_name"],
            email=info.get("email"),
            phone=info.get("phone"),
        )

    def _claim_slot(self, doctor_id: uuid.UUID, slot_date: date, start: str, end: str):
        try:
            return self.schedule_service.reserve_slot(doctor_id, slot_date, start, end)
        except SlotAlreadyBookedError as e:
            raise SlotUnavailableError(details={
                "doctor_id": str(doctor_id),
                "date": slot_date.isoformat(),
                "start": start,
                "end": end,
            }) from e

    def _compensate(self, doctor_id: uuid.UUID, slot_date: date, start: str, end: str) -> None:
        """Release a slot claimed by a unit of work that failed afterwards"""
        try:
            self.schedule_service.release_slot(doctor_id, slot_date, start, end)
            logger.warning(f"Released slot {slot_date} {start}-{end} for doctor {doctor_id} after failed write")
        except (SQLAlchemyError, BaseCustomException) as e:
            self.db.rollback()
            logger.error(f"Compensation failed for doctor {doctor_id} slot {slot_date} {start}-{end}: {e}")

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_database_error(e, operation) from e

    @staticmethod
    def _generate_appointment_number(appointment_date: date) -> str:
        """APT-<date>-<random suffix>"""
        return f"APT-{appointment_date.strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"
