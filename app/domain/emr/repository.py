from typing import Optional, List, Dict, Any
from app.domain.emr.models import MedicalRecord, CLINICAL_FIELDS
import uuid


def has_clinical_data(clinical_data: Optional[Dict[str, Any]]) -> bool:
    """True when at least one clinical field carries a value"""
    if not clinical_data:
        return False
    return any(clinical_data.get(field) for field in CLINICAL_FIELDS)


class MedicalRecordRepository:
    """Repository for medical record data access operations"""

    def __init__(self, db):
        self.db = db

    def create(
        self,
        appointment_id: uuid.UUID,
        patient_id: uuid.UUID,
        doctor_id: uuid.UUID,
        clinical_data: Dict[str, Any],
    ) -> MedicalRecord:
        """Stage a record in the caller's transaction"""
        record = MedicalRecord(
            appointment_id=appointment_id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            **{key: value for key, value in clinical_data.items() if key in CLINICAL_FIELDS}
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_by_id(self, record_id: uuid.UUID) -> Optional[MedicalRecord]:
        return self.db.query(MedicalRecord).filter(MedicalRecord.id == record_id).first()

    def get_patient_records(self, patient_id: uuid.UUID, limit: int = 50) -> List[MedicalRecord]:
        return self.db.query(MedicalRecord).filter(
            MedicalRecord.patient_id == patient_id
        ).order_by(MedicalRecord.created_at.desc()).limit(limit).all()
