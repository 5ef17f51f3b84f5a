import pytest
import uuid
from datetime import timedelta

from app.core.exceptions import (
    ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from app.domain.appointments.models import Appointment, AppointmentStatus, AppointmentPaymentStatus, CancelledBy
from app.domain.scheduling.leaves import LEAVE_CANCELLATION_REASON
from app.domain.scheduling.models import DaySchedule, LeaveDuration, LeaveStatus, LeaveType, ScheduleSlot


@pytest.fixture
def leave(leave_service, doctor, booking_date):
    return leave_service.request_leave(
        doctor.id,
        start_date=booking_date.isoformat(),
        end_date=(booking_date + timedelta(days=1)).isoformat(),
        leave_type="sick",
        description="Flu",
    )


@pytest.mark.integration
@pytest.mark.leaves
class TestRequestLeave:

    def test_request(self, leave, doctor, booking_date) -> None:
        assert leave.status == LeaveStatus.PENDING
        assert leave.doctor_id == doctor.id
        assert leave.leave_type == LeaveType.SICK
        assert leave.duration_type == LeaveDuration.FULL_DAY
        assert leave.start_date == booking_date
        assert leave.total_days == 2

    def test_single_day_by_default(self, leave_service, doctor, booking_date) -> None:
        leave = leave_service.request_leave(
            doctor.id, start_date=booking_date, leave_type="Casual", duration_type="half day"
        )
        assert leave.end_date == booking_date
        assert leave.total_days == 1
        assert leave.duration_type == LeaveDuration.HALF_DAY

    def test_defaults_to_full_day(self, leave_service, doctor, booking_date) -> None:
        leave = leave_service.request_leave(doctor.id, booking_date.isoformat(), "sick")

        assert leave.duration_type == LeaveDuration.FULL_DAY
        assert leave.end_date == booking_date

    def test_accepts_enum_members(self, leave_service, doctor, booking_date) -> None:
        leave = leave_service.request_leave(
            doctor.id, booking_date, LeaveType.CASUAL, duration_type=LeaveDuration.HALF_DAY
        )

        assert leave.leave_type == LeaveType.CASUAL
        assert leave.duration_type == LeaveDuration.HALF_DAY
        assert leave_service.list_leaves(doctor_id=doctor.id, status=LeaveStatus.PENDING)[0].id == leave.id

    @pytest.mark.parametrize("kwargs", [
        {"leave_type": "vacation"},
        {"leave_type": "sick", "duration_type": "Quarter Day"},
    ])
    def test_invalid_request(self, leave_service, doctor, booking_date, kwargs) -> None:
        with pytest.raises(ValidationError) as exc_info:
            leave_service.request_leave(doctor.id, start_date=booking_date, **kwargs)
        assert exc_info.value.error_code == "INVALID_LEAVE_REQUEST"

    def test_end_before_start(self, leave_service, doctor, booking_date) -> None:
        with pytest.raises(ValidationError) as exc_info:
            leave_service.request_leave(
                doctor.id,
                start_date=booking_date,
                end_date=booking_date - timedelta(days=1),
                leave_type="sick",
            )
        assert exc_info.value.error_code == "INVALID_LEAVE_REQUEST"

    def test_unknown_doctor(self, leave_service, booking_date) -> None:
        with pytest.raises(NotFoundError):
            leave_service.request_leave(uuid.uuid4(), start_date=booking_date, leave_type="sick")

    def test_unknown_leave(self, leave_service) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            leave_service.get_leave(uuid.uuid4())
        assert exc_info.value.error_code == "LEAVE_NOT_FOUND"


@pytest.mark.integration
@pytest.mark.leaves
class TestApproveLeave:
    """Approval blocks the days and cancels what was booked on them."""

    def test_blocks_schedules_and_cancels_appointments(
        self, leave_service, appointment_service, schedule_service, db_session,
        leave, book, doctor, other_patient, notifier, booking_date
    ) -> None:
        schedule_service.ensure_schedule(doctor.id, booking_date + timedelta(days=1))
        outside = schedule_service.ensure_schedule(doctor.id, booking_date + timedelta(days=2))
        pending = book()
        confirmed = book(start="09:30 AM", end="10:00 AM", patient_id=other_patient.id)
        appointment_service.update_status(confirmed.id, "Confirmed", doctor.id)
        untouched = book(target_date=booking_date + timedelta(days=2))
        approver = uuid.uuid4()

        result = leave_service.approve_leave(leave.id, decided_by=approver)

        assert result["leave"].status == LeaveStatus.APPROVED
        assert result["leave"].decided_by == approver
        assert result["leave"].decided_at is not None
        assert result["blocked_schedules"] == 2
        assert sorted(result["cancelled_appointment_ids"]) == sorted([pending.id, confirmed.id])
        assert result["failed_appointment_ids"] == []

        for appointment in (pending, confirmed):
            db_session.refresh(appointment)
            assert appointment.status == AppointmentStatus.HOSPITAL_CANCELLED
            assert appointment.cancelled_by == CancelledBy.HOSPITAL
            assert appointment.cancellation_reason == LEAVE_CANCELLATION_REASON
        db_session.refresh(confirmed)
        assert confirmed.payment_status == AppointmentPaymentStatus.REFUNDED

        db_session.refresh(untouched)
        assert untouched.status == AppointmentStatus.PENDING
        db_session.refresh(outside)
        assert outside.is_available is True
        blocked = db_session.query(DaySchedule).filter(DaySchedule.is_available.is_(False)).all()
        assert {s.leave_id for s in blocked} == {leave.id}

        assert schedule_service.list_available_slots(doctor.id, booking_date) == []
        assert leave_service.is_doctor_on_leave(doctor.id, booking_date) is True
        assert leave_service.is_doctor_on_leave(doctor.id, booking_date + timedelta(days=2)) is False
        assert notifier.kinds().count("cancelled") == 2

    def test_booking_on_leave_day_is_refused(self, leave_service, leave, book) -> None:
        leave_service.approve_leave(leave.id)
        with pytest.raises(ConflictError) as exc_info:
            book()
        assert exc_info.value.error_code == "DOCTOR_UNAVAILABLE"

    def test_booking_racing_an_approval_is_refused(
        self, leave_service, appointment_service, db_session, leave, book, monkeypatch
    ) -> None:
        slot_repo = appointment_service.schedule_service.slot_repo
        claim = slot_repo.mark_booked

        def approve_then_claim(slot_id):
            leave_service.approve_leave(leave.id)
            return claim(slot_id)

        monkeypatch.setattr(slot_repo, "mark_booked", approve_then_claim)
        with pytest.raises(ConflictError) as exc_info:
            book()

        assert exc_info.value.error_code == "DOCTOR_UNAVAILABLE"
        assert db_session.query(Appointment).count() == 0
        slot = db_session.query(ScheduleSlot).filter(ScheduleSlot.start == "09:00 AM").one()
        db_session.refresh(slot)
        assert slot.is_booked is False

    def test_completed_visits_are_left_alone(
        self, leave_service, appointment_service, db_session, leave, book, doctor
    ) -> None:
        appointment = book()
        for status in ("Confirmed", "With-Doctor", "Completed"):
            appointment_service.update_status(appointment.id, status, doctor.id)

        result = leave_service.approve_leave(leave.id)

        assert result["cancelled_appointment_ids"] == []
        db_session.refresh(appointment)
        assert appointment.status == AppointmentStatus.COMPLETED

    def test_decision_happens_once(self, leave_service, leave) -> None:
        leave_service.approve_leave(leave.id)

        with pytest.raises(InvalidStateError) as exc_info:
            leave_service.approve_leave(leave.id)
        assert exc_info.value.error_code == "INVALID_STATE"
        with pytest.raises(InvalidStateError):
            leave_service.reject_leave(leave.id)

    def test_partial_failure_can_be_reapplied(
        self, leave_service, db_session, leave, book, other_patient, monkeypatch
    ) -> None:
        stuck = book()
        book(start="09:30 AM", end="10:00 AM", patient_id=other_patient.id)
        original = leave_service.appointment_service.hospital_cancel

        def flaky(appointment, reason=None):
            if appointment.id == stuck.id:
                raise ConflictError("Row is locked", error_code="DATABASE_BUSY")
            return original(appointment, reason=reason)

        monkeypatch.setattr(leave_service.appointment_service, "hospital_cancel", flaky)
        result = leave_service.approve_leave(leave.id)

        assert result["failed_appointment_ids"] == [stuck.id]
        assert len(result["cancelled_appointment_ids"]) == 1
        db_session.refresh(stuck)
        assert stuck.status == AppointmentStatus.PENDING

        monkeypatch.setattr(leave_service.appointment_service, "hospital_cancel", original)
        retry = leave_service.reapply_leave_effects(leave.id)

        assert retry["cancelled_appointment_ids"] == [stuck.id]
        assert retry["failed_appointment_ids"] == []
        db_session.refresh(stuck)
        assert stuck.status == AppointmentStatus.HOSPITAL_CANCELLED

    def test_reapply_is_idempotent(self, leave_service, leave, book) -> None:
        book()
        leave_service.approve_leave(leave.id)

        again = leave_service.reapply_leave_effects(leave.id)

        assert again["cancelled_appointment_ids"] == []
        assert again["failed_appointment_ids"] == []

    def test_reapply_needs_an_approved_leave(self, leave_service, leave) -> None:
        with pytest.raises(InvalidStateError):
            leave_service.reapply_leave_effects(leave.id)


@pytest.mark.integration
@pytest.mark.leaves
class TestRejectAndList:

    def test_reject(self, leave_service, schedule_service, leave, schedule, doctor, booking_date) -> None:
        rejected = leave_service.reject_leave(leave.id, reason="Short staffed")

        assert rejected.status == LeaveStatus.REJECTED
        assert rejected.rejection_reason == "Short staffed"
        assert schedule_service.doctor_available_on(doctor.id, booking_date) is True
        with pytest.raises(InvalidStateError):
            leave_service.approve_leave(leave.id)

    def test_list_leaves(self, leave_service, leave, doctor, other_doctor, booking_date) -> None:
        other = leave_service.request_leave(other_doctor.id, start_date=booking_date, leave_type="casual")
        leave_service.reject_leave(other.id)

        assert [item.id for item in leave_service.list_leaves(doctor_id=doctor.id)] == [leave.id]
        assert leave_service.list_leaves(doctor_id=other_doctor.id, status="rejected")[0].id == other.id
        assert leave_service.list_leaves(doctor_id=other_doctor.id, status="approved") == []
        assert [item.id for item in leave_service.list_leaves()] == [leave.id]

    def test_list_leaves_validation(self, leave_service, doctor) -> None:
        with pytest.raises(ValidationError) as exc_info:
            leave_service.list_leaves(doctor_id=doctor.id, status="maybe")
        assert exc_info.value.error_code == "INVALID_STATUS"
        with pytest.raises(ValidationError):
            leave_service.list_leaves(status="approved")
