from typing import Dict, Any
import asyncio

from loguru import logger

from app.workers.celery_app import celery_app
from app.infrastructure.notifications import send_notification
from app.services.email import render_appointment_email


@celery_app.task(bind=True, max_retries=3)
def send_appointment_email(self, kind: str, details: Dict[str, Any]):
    """Deliver an appointment notification e-mail"""
    recipient = details.get("patient_email")
    try:
        subject, body = render_appointment_email(kind, details)
        logger.info(f"Sending {kind} email for appointment {details.get('appointment_id')} to {recipient}")
        result = asyncio.run(send_notification(recipient, subject, body, channel="email"))
        return {"status": "success", "kind": kind, "delivery": result}
    except ValueError as exc:
        # Bad payloads never succeed on retry
        logger.error(f"Dropping {kind} email for {recipient}: {exc}")
        return {"status": "error", "kind": kind, "error": str(exc)}
    except Exception as exc:
        logger.error(f"Failed to send {kind} email to {recipient}: {exc}")
        # Retry with exponential backoff
        countdown = 2 ** self.request.retries
        raise self.retry(exc=exc, countdown=countdown)


@celery_app.task
def ensure_upcoming_schedules():
    """Materialise the look-ahead window of day schedules for every available doctor"""
    from app.infrastructure.database import SessionLocal
    from app.domain.doctors.models import DoctorStatus
    from app.domain.doctors.repository import DoctorRepository
    from app.domain.scheduling.service import ScheduleService

    db = SessionLocal()
    try:
        doctors = DoctorRepository(db).get_all(status=DoctorStatus.AVAILABLE, limit=10000)
        service = ScheduleService(db)
        total = 0
        for doctor in doctors:
            total += len(service.ensure_upcoming_schedules(doctor.id))
        logger.info(f"Ensured {total} upcoming schedules across {len(doctors)} doctors")
        return {"status": "success", "doctors": len(doctors), "schedules": total}
    finally:
        db.close()
