import logging
from typing import Dict, Any, Optional

from app.core.exceptions import handle_external_service_error

logger = logging.getLogger(__name__)


async def send_notification(recipient: str, subject: str, body: str, channel: str = "email") -> Dict[str, Any]:
    """Delivery adapter used by the worker tasks.

    Logs the message; a real provider (SMTP, SES) plugs in here.
    """
    if not recipient:
        raise ValueError("Notification recipient is required")
    logger.info(f"Sending {channel} notification to {recipient}: {subject}")
    return {"status": "sent", "recipient": recipient, "channel": channel, "length": len(body)}


def build_appointment_details(appointment, reason: Optional[str] = None) -> Dict[str, Any]:
    """JSON-safe payload describing an appointment for the e-mail task"""
    patient = appointment.patient
    doctor = appointment.doctor
    return {
        "appointment_id": str(appointment.id),
        "patient_email": patient.email if patient else None,
        "patient_name": patient.full_name if patient else None,
        "doctor_name": doctor.full_name if doctor else None,
        "appointment_date": appointment.appointment_date.isoformat(),
        "slot_start": appointment.slot_start,
        "slot_end": appointment.slot_end,
        "consultation_type": appointment.consultation_type.value,
        "status": appointment.status.value,
        "token_number": appointment.token_number,
        "video_link": appointment.video_link,
        "reason": reason,
    }


class AppointmentNotifier:
    """Best-effort notification collaborator.

    Hands the e-mail to the Celery worker after the status change has been
    committed. Failures are logged and never propagate to the caller.
    """

    def notify(self, appointment, kind: str, reason: Optional[str] = None) -> bool:
        try:
            details = build_appointment_details(appointment, reason)
            if not details["patient_email"]:
                logger.info(f"Appointment {appointment.id} has no patient e-mail, skipping {kind} notification")
                return False
            self.dispatch(kind, details)
            return True
        except Exception as e:
            error = handle_external_service_error(e, "appointment-email", operation=kind)
            logger.warning(f"{error.error_code}: {kind} notification for appointment {appointment.id} dropped")
            return False

    def dispatch(self, kind: str, details: Dict[str, Any]) -> None:
        from app.workers.tasks import send_appointment_email
        send_appointment_email.delay(kind, details)
