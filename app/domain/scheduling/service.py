"""
Scheduling Service Layer

The schedule store: one slot grid per doctor per calendar date, created on
demand from the doctor's template or explicitly by a doctor/admin, and the
only place slot booking flags are changed.
"""

from typing import Optional, List, Dict, Any
from datetime import date, datetime, timedelta
import logging
import uuid

from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.exceptions import (
    ValidationError, NotFoundError,
    SlotNotFoundError, SlotAlreadyBookedError, DoctorUnavailableError
)
from app.domain.doctors.models import WEEKDAY_NAMES
from app.domain.doctors.service import DoctorService
from app.domain.scheduling.models import DaySchedule, ScheduleSlot
from app.domain.scheduling.repository import (
    DayScheduleRepository, ScheduleSlotRepository
)
from app.domain.scheduling.slots import generate_slots, validate_interval

logger = logging.getLogger(__name__)


def parse_date(value: Any) -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(
            f"Invalid date: {value}. Expected YYYY-MM-DD",
            details={"date": str(value)},
            error_code="INVALID_DATE"
        )


def parse_time_slot(start: Any, end: Any) -> tuple:
    """Minutes for a requested (start, end) pair; start must precede end"""
    if not start or not end:
        raise ValidationError(
            "Time slot requires both start and end",
            details={"start": start, "end": end},
            error_code="INVALID_TIME_SLOT"
        )
    try:
        return validate_interval(start, end)
    except ValueError as e:
        raise ValidationError(
            str(e),
            details={"start": start, "end": end},
            error_code="INVALID_TIME_SLOT"
        )


class ScheduleService:
    """Service layer for day schedules and slot booking flags"""

    def __init__(self, db):
        self.db = db
        self.schedule_repo = DayScheduleRepository(db)
        self.slot_repo = ScheduleSlotRepository(db)
        self.doctor_service = DoctorService(db)

    # ==================== Schedule lifecycle ====================

    def ensure_schedule(self, doctor_id: uuid.UUID, schedule_date: Any) -> DaySchedule:
        """Return the doctor's schedule for the date, creating it from the profile template.

        Concurrent callers converge on one row: the loser of the insert race
        rolls back and reads the winner's schedule.
        """
        schedule_date = parse_date(schedule_date)
        existing = self.schedule_repo.get_by_doctor_and_date(doctor_id, schedule_date)
        if existing:
            return existing

        template = self.doctor_service.get_doctor_profile(doctor_id)
        return self._create_or_fetch(
            doctor_id,
            schedule_date,
            template["working_hours"],
            template["breaks"],
            template["duration"],
            template["online_fee"],
            template["offline_fee"],
        )

    def _create_or_fetch(
        self,
        doctor_id: uuid.UUID,
        schedule_date: date,
        working_hours: Dict[str, str],
        breaks: List[Dict[str, str]],
        duration: int,
        online_fee: float,
        offline_fee: float,
    ) -> DaySchedule:
        slots = generate_slots(working_hours, breaks, duration, online_fee, offline_fee)
        schedule_data = {
            "doctor_id": doctor_id,
            "schedule_date": schedule_date,
            "day_name": WEEKDAY_NAMES[schedule_date.weekday()],
            "working_hours_start": working_hours["start"],
            "working_hours_end": working_hours["end"],
            "breaks": list(breaks or []),
            "slot_duration": duration,
            "is_available": True,
        }
        try:
            schedule = self.schedule_repo.create(schedule_data, slots)
        except IntegrityError:
            self.db.rollback()
            schedule = self.schedule_repo.get_by_doctor_and_date(doctor_id, schedule_date)
            if schedule is None:
                raise
            logger.info(f"Schedule for doctor {doctor_id} on {schedule_date} created concurrently, reusing it")
            return schedule

        logger.info(f"Created schedule {schedule.id} for doctor {doctor_id} on {schedule_date} with {len(slots)} slots")
        return schedule

    def create_schedules(
        self,
        doctor_id: uuid.UUID,
        working_hours: Dict[str, str],
        breaks: Optional[List[Dict[str, str]]] = None,
        week_days: Optional[List[str]] = None,
        weeks_ahead: Optional[int] = None,
        selected_dates: Optional[List[str]] = None,
        slot_duration: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[DaySchedule]:
        """Create schedules for weekdays over the coming weeks, or for explicit dates.

        Dates that already have a schedule are left untouched.
        """
        if not week_days and not selected_dates:
            raise ValidationError(
                "Provide week_days or selected_dates",
                error_code="VALIDATION_ERROR"
            )

        doctor = self.doctor_service.get_doctor(doctor_id)
        breaks = list(breaks or [])
        duration = slot_duration or doctor.slot_duration or settings.DEFAULT_SLOT_DURATION_MINUTES
        self._validate_hours(working_hours, breaks, duration)

        today = today or date.today()
        if week_days:
            target_dates = self._weekly_dates(week_days, weeks_ahead or settings.DEFAULT_WEEKS_AHEAD, today)
        else:
            target_dates = self._explicit_dates(selected_dates)

        existing = self.schedule_repo.get_existing_dates(doctor.id, target_dates)
        template = self.doctor_service.get_doctor_profile(doctor.id)

        created = []
        for target in target_dates:
            if target in existing:
                continue
            created.append(self._create_or_fetch(
                doctor.id,
                target,
                working_hours,
                breaks,
                duration,
                template["online_fee"],
                template["offline_fee"],
            ))

        logger.info(f"Created {len(created)} schedules for doctor {doctor.id}, skipped {len(existing)} existing")
        return created

    def ensure_upcoming_schedules(
        self,
        doctor_id: uuid.UUID,
        days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[DaySchedule]:
        """Lazily materialise schedules for the doctor's working weekdays in the look-ahead window"""
        doctor = self.doctor_service.get_doctor(doctor_id)
        today = today or date.today()
        window = days or settings.SCHEDULE_LOOKAHEAD_DAYS

        schedules = []
        for offset in range(window):
            target = today + timedelta(days=offset)
            if doctor.works_on(WEEKDAY_NAMES[target.weekday()]):
                schedules.append(self.ensure_schedule(doctor.id, target))
        return schedules

    def update_schedule(
        self,
        schedule_id: uuid.UUID,
        working_hours: Optional[Dict[str, str]] = None,
        breaks: Optional[List[Dict[str, str]]] = None,
        slot_duration: Optional[int] = None,
    ) -> DaySchedule:
        """Change hours or breaks and regenerate the grid; refused once any slot is booked"""
        schedule = self.get_schedule(schedule_id)
        if self.schedule_repo.count_booked_slots(schedule.id):
            raise SlotAlreadyBookedError(schedule.id)

        hours = working_hours or schedule.working_hours
        new_breaks = schedule.breaks if breaks is None else list(breaks)
        duration = slot_duration or schedule.slot_duration
        self._validate_hours(hours, new_breaks, duration)

        template = self.doctor_service.get_doctor_profile(schedule.doctor_id)
        slots = generate_slots(hours, new_breaks, duration, template["online_fee"], template["offline_fee"])
        if not self.schedule_repo.clear_free_slots(schedule):
            raise SlotAlreadyBookedError(schedule.id)
        schedule = self.schedule_repo.replace_slots(schedule, {
            "working_hours_start": hours["start"],
            "working_hours_end": hours["end"],
            "breaks": new_breaks,
            "slot_duration": duration,
        }, slots)
        logger.info(f"Regenerated schedule {schedule.id} with {len(slots)} slots")
        return schedule

    def delete_schedule(self, schedule_id: uuid.UUID) -> None:
        schedule = self.get_schedule(schedule_id)
        if self.schedule_repo.count_booked_slots(schedule.id):
            raise SlotAlreadyBookedError(schedule.id)
        if not self.schedule_repo.clear_free_slots(schedule):
            raise SlotAlreadyBookedError(schedule.id)
        self.schedule_repo.delete(schedule)
        logger.info(f"Deleted schedule {schedule_id}")

    # ==================== Reads ====================

    def get_schedule(self, schedule_id: uuid.UUID) -> DaySchedule:
        schedule = self.schedule_repo.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError(
                "Schedule not found",
                details={"schedule_id": str(schedule_id)},
                error_code="SCHEDULE_NOT_FOUND"
            )
        return schedule

    def get_schedule_for_date(self, doctor_id: uuid.UUID, schedule_date: Any) -> Optional[DaySchedule]:
        return self.schedule_repo.get_by_doctor_and_date(doctor_id, parse_date(schedule_date))

    def list_schedules(
        self,
        doctor_id: uuid.UUID,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[DaySchedule]:
        return self.schedule_repo.get_by_doctor(doctor_id, from_date, to_date)

    def list_available_dates(self, doctor_id: uuid.UUID, from_date: Optional[date] = None) -> List[date]:
        return self.schedule_repo.get_available_dates(doctor_id, from_date or date.today())

    def list_available_slots(self, doctor_id: uuid.UUID, schedule_date: Any) -> List[ScheduleSlot]:
        """Free slots of an available schedule; empty when there is none"""
        schedule = self.get_schedule_for_date(doctor_id, schedule_date)
        if not schedule or not schedule.is_available:
            return []
        return self.slot_repo.get_free_slots(schedule.id)

    def find_slot(self, doctor_id: uuid.UUID, schedule_date: Any, start: str, end: str) -> ScheduleSlot:
        schedule = self.get_schedule_for_date(doctor_id, schedule_date)
        start_minute, end_minute = parse_time_slot(start, end)
        slot = None
        if schedule:
            slot = self.slot_repo.find_by_interval(schedule.id, start_minute, end_minute)
        if not slot:
            raise SlotNotFoundError(f"{schedule_date} {start}-{end}")
        return slot

    def check_slot(self, doctor_id: uuid.UUID, schedule_date: Any, start: str, end: str) -> Dict[str, Any]:
        """Whether a slot exists for the date and is still free"""
        schedule = self.get_schedule_for_date(doctor_id, schedule_date)
        start_minute, end_minute = parse_time_slot(start, end)
        slot = self.slot_repo.find_by_interval(schedule.id, start_minute, end_minute) if schedule else None
        return {
            "exists": slot is not None,
            "available": bool(slot and not slot.is_booked and schedule.is_available),
            "slot": slot.to_dict() if slot else None,
        }

    def doctor_available_on(self, doctor_id: uuid.UUID, schedule_date: Any) -> bool:
        schedule = self.get_schedule_for_date(doctor_id, schedule_date)
        return bool(schedule and schedule.is_available)

    def hold_available_day(self, schedule_id: uuid.UUID) -> bool:
        """Lock the schedule row for the current transaction and report whether it is still available"""
        return self.schedule_repo.is_available(schedule_id, lock=True)

    # ==================== Booking flags ====================

    def reserve_slot(self, doctor_id: uuid.UUID, schedule_date: Any, start: str, end: str) -> ScheduleSlot:
        """Atomically flip a free slot of an available day to booked.

        Raises SlotNotFoundError when no slot matches, DoctorUnavailableError
        when the day has been blocked and SlotAlreadyBookedError when another
        booking holds it.
        """
        slot = self.find_slot(doctor_id, schedule_date, start, end)
        if not self.slot_repo.mark_booked(slot.id):
            if not self.schedule_repo.is_available(slot.schedule_id):
                logger.warning(f"Slot {slot.id} for doctor {doctor_id} on {schedule_date} is on a blocked day")
                raise DoctorUnavailableError(doctor_id, schedule_date)
            logger.warning(f"Slot {slot.id} for doctor {doctor_id} on {schedule_date} already booked")
            raise SlotAlreadyBookedError(slot.id)
        return slot

    def release_slot(
        self,
        doctor_id: uuid.UUID,
        schedule_date: Any,
        start: str,
        end: str,
        commit: bool = True,
    ) -> bool:
        """Free a slot. A missing or already-free slot is a no-op; returns whether a flag changed"""
        schedule = self.get_schedule_for_date(doctor_id, schedule_date)
        if not schedule:
            return False
        start_minute, end_minute = parse_time_slot(start, end)
        slot = self.slot_repo.find_by_interval(schedule.id, start_minute, end_minute)
        if not slot:
            return False
        return self.slot_repo.mark_free(slot.id, commit=commit)

    def bulk_block(
        self,
        doctor_id: uuid.UUID,
        start_date: Any,
        end_date: Any,
        leave_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Mark every schedule of the doctor in [start_date, end_date] unavailable"""
        start_date = parse_date(start_date)
        end_date = parse_date(end_date)
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date", error_code="INVALID_DATE")
        blocked = self.schedule_repo.block_range(doctor_id, start_date, end_date, leave_id)
        logger.info(f"Blocked {blocked} schedules for doctor {doctor_id} between {start_date} and {end_date}")
        return blocked

    # ==================== Helpers ====================

    @staticmethod
    def _validate_hours(working_hours: Dict[str, str], breaks: List[Dict[str, str]], duration: int) -> None:
        if not working_hours or not working_hours.get("start") or not working_hours.get("end"):
            raise ValidationError("Working hours require start and end", error_code="INVALID_TIME_SLOT")
        parse_time_slot(working_hours["start"], working_hours["end"])
        for item in breaks:
            parse_time_slot(item.get("start"), item.get("end"))
        if duration is None or duration <= 0:
            raise ValidationError("Slot duration must be positive", error_code="INVALID_TIME_SLOT")

    @staticmethod
    def _weekly_dates(week_days: List[str], weeks_ahead: int, today: date) -> List[date]:
        lookup = {name.lower(): index for index, name in enumerate(WEEKDAY_NAMES)}
        dates = []
        for day in week_days:
            weekday = lookup.get(str(day).strip().lower())
            if weekday is None:
                raise ValidationError(f"Unknown weekday: {day}", error_code="INVALID_WEEKDAY")
            # A weekday already past this week rolls to the next one
            first = today + timedelta(days=(weekday - today.weekday()) % 7)
            for week in range(weeks_ahead):
                dates.append(first + timedelta(weeks=week))
        return sorted(set(dates))

    @staticmethod
    def _explicit_dates(selected_dates: List[str]) -> List[date]:
        dates = set()
        for value in selected_dates:
            try:
                dates.add(parse_date(value))
            except ValidationError:
                logger.warning(f"Skipping invalid schedule date {value!r}")
        return sorted(dates)
