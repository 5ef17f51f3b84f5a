# Appointments domain module
from app.domain.appointments.models import (
    Appointment,
    AppointmentStatus,
    AppointmentPaymentStatus,
    CancelledBy,
    ConsultationType,
    TERMINAL_STATUSES,
    CANCELLED_STATUSES,
)

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AppointmentPaymentStatus",
    "CancelledBy",
    "ConsultationType",
    "TERMINAL_STATUSES",
    "CANCELLED_STATUSES",
]
