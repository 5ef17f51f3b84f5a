from typing import Optional
from datetime import datetime
from sqlalchemy import or_
from app.domain.patients.models import Patient
import random
import string
import uuid


class PatientRepository:
    """Repository for patient data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, patient_data: dict, commit: bool = True) -> Patient:
        """Create a new patient"""
        patient_data.setdefault("patient_number", self._generate_patient_number())
        patient = Patient(**patient_data)
        self.db.add(patient)
        if commit:
            self.db.commit()
            self.db.refresh(patient)
        else:
            self.db.flush()
        return patient

    def get_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.user_id == user_id).first()

    def find_by_contact(self, email: Optional[str] = None, phone: Optional[str] = None) -> Optional[Patient]:
        """Match a patient on e-mail or phone"""
        conditions = []
        if email:
            conditions.append(Patient.email == email.strip().lower())
        if phone:
            conditions.append(Patient.phone == phone.strip())
        if not conditions:
            return None
        return self.db.query(Patient).filter(or_(*conditions)).first()

    def find_or_create(
        self,
        full_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        commit: bool = True,
    ) -> Patient:
        """Return the patient matching the contact fields, creating a minimal profile if none does"""
        existing = self.find_by_contact(email=email, phone=phone)
        if existing:
            return existing

        return self.create({
            "full_name": full_name,
            "email": email.strip().lower() if email else None,
            "phone": phone.strip() if phone else None,
            "is_minimal_profile": True,
        }, commit=commit)

    def _generate_patient_number(self) -> str:
        """Generate a unique patient number"""
        # Format: PT + YYYY + 6-digit random number
        year = datetime.now().year
        random_digits = ''.join(random.choices(string.digits, k=6))
        patient_number = f"PT{year}{random_digits}"
        while self.db.query(Patient.id).filter(Patient.patient_number == patient_number).first():
            random_digits = ''.join(random.choices(string.digits, k=6))
            patient_number = f"PT{year}{random_digits}"
        return patient_number
