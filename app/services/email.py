from typing import Dict, Any, Tuple
from loguru import logger

SUBJECTS = {
    "confirmed": "Your appointment is confirmed",
    "cancelled": "Your appointment has been cancelled",
    "rescheduled": "Your appointment has been rescheduled",
}


def render_appointment_email(kind: str, details: Dict[str, Any]) -> Tuple[str, str]:
    """Subject and plain-text body for an appointment notification"""
    if kind not in SUBJECTS:
        raise ValueError(f"Unknown appointment email kind: {kind}")

    lines = [
        f"Dear {details.get('patient_name') or 'Patient'},",
        "",
        f"Doctor: {details.get('doctor_name', '')}",
        f"Date: {details.get('appointment_date', '')}",
        f"Time: {details.get('slot_start', '')} - {details.get('slot_end', '')}",
        f"Consultation: {details.get('consultation_type', '')}",
    ]
    if kind == "confirmed":
        if details.get("token_number") is not None:
            lines.append(f"Token number: {details['token_number']}")
        if details.get("video_link"):
            lines.append(f"Video link: {details['video_link']}")
    elif kind == "cancelled" and details.get("reason"):
        lines.append(f"Reason: {details['reason']}")

    logger.debug(f"Rendered {kind} email for appointment {details.get('appointment_id')}")
    return SUBJECTS[kind], "\n".join(lines)
