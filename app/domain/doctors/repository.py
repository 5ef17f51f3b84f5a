from typing import Optional, List
from app.domain.doctors.models import DoctorProfile, DoctorStatus
import uuid


class DoctorRepository:
    """Repository for doctor profile data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, doctor_data: dict) -> DoctorProfile:
        doctor = DoctorProfile(**doctor_data)
        self.db.add(doctor)
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def get_by_id(self, doctor_id: uuid.UUID) -> Optional[DoctorProfile]:
        return self.db.query(DoctorProfile).filter(DoctorProfile.id == doctor_id).first()

    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[DoctorProfile]:
        return self.db.query(DoctorProfile).filter(DoctorProfile.user_id == user_id).first()

    def get_all(
        self,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[DoctorStatus] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[DoctorProfile]:
        query = self.db.query(DoctorProfile)
        if department_id:
            query = query.filter(DoctorProfile.department_id == department_id)
        if status:
            query = query.filter(DoctorProfile.status == status)
        return query.order_by(DoctorProfile.full_name).offset(skip).limit(limit).all()

    def update(self, doctor_id: uuid.UUID, update_data: dict) -> Optional[DoctorProfile]:
        doctor = self.get_by_id(doctor_id)
        if doctor:
            for key, value in update_data.items():
                if hasattr(doctor, key) and value is not None:
                    setattr(doctor, key, value)
            self.db.commit()
            self.db.refresh(doctor)
        return doctor
