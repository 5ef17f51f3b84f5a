"""
Doctor profile service: the user-store collaborator the scheduler reads
schedule templates and fee rates from.
"""

from typing import Optional, List, Dict, Any
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.doctors.models import DoctorProfile, DoctorStatus, WEEKDAY_NAMES
from app.domain.doctors.repository import DoctorRepository
from app.domain.scheduling.slots import parse_clock, slot_fee_rates

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db):
        self.db = db
        self.doctor_repo = DoctorRepository(db)

    def create_profile(self, profile_data: Dict[str, Any]) -> DoctorProfile:
        """Create a doctor profile after validating its schedule template"""
        data = dict(profile_data)
        data["available_days"] = self._normalize_days(data.get("available_days") or [])
        data.setdefault("slot_duration", settings.DEFAULT_SLOT_DURATION_MINUTES)
        self._validate_template(data)

        doctor = self.doctor_repo.create(data)
        logger.info(f"Created doctor profile {doctor.id} for user {doctor.user_id}")
        return doctor

    def update_profile(self, doctor_id: uuid.UUID, update_data: Dict[str, Any]) -> DoctorProfile:
        doctor = self.get_doctor(doctor_id)
        if update_data.get("available_days") is not None:
            update_data["available_days"] = self._normalize_days(update_data["available_days"])
        merged = {
            "working_hours_start": doctor.working_hours_start,
            "working_hours_end": doctor.working_hours_end,
            "breaks": doctor.breaks,
            "slot_duration": doctor.slot_duration,
        }
        merged.update({k: v for k, v in update_data.items() if v is not None})
        self._validate_template(merged)
        return self.doctor_repo.update(doctor.id, update_data)

    def get_doctor(self, doctor_id: uuid.UUID) -> DoctorProfile:
        doctor = self.doctor_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError(
                "Doctor not found",
                details={"doctor_id": str(doctor_id)},
                error_code="DOCTOR_NOT_FOUND"
            )
        return doctor

    def get_doctor_for_user(self, user_id: Any) -> DoctorProfile:
        """Resolve the acting doctor from an authenticated user id"""
        try:
            user_uuid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except ValueError:
            user_uuid = None
        doctor = self.doctor_repo.get_by_user_id(user_uuid) if user_uuid else None
        if not doctor:
            raise NotFoundError(
                "Doctor profile not found",
                details={"user_id": str(user_id)},
                error_code="DOCTOR_NOT_FOUND"
            )
        return doctor

    def list_doctors(self, **filters) -> List[DoctorProfile]:
        return self.doctor_repo.get_all(**filters)

    def get_doctor_profile(self, doctor_id: uuid.UUID) -> Dict[str, Any]:
        """Schedule template used to generate day schedules"""
        doctor = self.get_doctor(doctor_id)
        fees = slot_fee_rates(doctor.online_fee, doctor.consultation_fee)
        return {
            "doctor_id": doctor.id,
            "working_hours": doctor.working_hours,
            "breaks": list(doctor.breaks or []),
            "duration": doctor.slot_duration,
            "online_fee": fees["online_fee"],
            "offline_fee": fees["offline_fee"],
            "available_days": list(doctor.available_days or []),
            "is_available": doctor.status == DoctorStatus.AVAILABLE,
        }

    @staticmethod
    def _normalize_days(days: List[str]) -> List[str]:
        lookup = {name.lower(): name for name in WEEKDAY_NAMES}
        normalized = []
        for day in days:
            name = lookup.get(str(day).strip().lower())
            if not name:
                raise ValidationError(
                    f"Unknown weekday: {day}",
                    details={"available_days": days},
                    error_code="INVALID_WEEKDAY"
                )
            if name not in normalized:
                normalized.append(name)
        return normalized

    @staticmethod
    def _validate_template(data: Dict[str, Any]) -> None:
        try:
            start = parse_clock(data.get("working_hours_start") or "09:00 AM")
            end = parse_clock(data.get("working_hours_end") or "05:00 PM")
            for item in data.get("breaks") or []:
                parse_clock(item["start"])
                parse_clock(item["end"])
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationError(str(e), error_code="INVALID_TIME_SLOT")
        if start >= end:
            raise ValidationError(
                "Working hours must start before they end",
                error_code="INVALID_TIME_SLOT"
            )
        if (data.get("slot_duration") or 0) <= 0:
            raise ValidationError("Slot duration must be positive", error_code="INVALID_TIME_SLOT")
