# Medical record collaborator
from app.domain.emr.models import MedicalRecord, MedicalRecordStatus

__all__ = [
    "MedicalRecord",
    "MedicalRecordStatus",
]
