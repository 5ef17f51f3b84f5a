# Doctor profiles domain module
from app.domain.doctors.models import DoctorProfile, DoctorStatus, WEEKDAY_NAMES

__all__ = [
    "DoctorProfile",
    "DoctorStatus",
    "WEEKDAY_NAMES",
]
