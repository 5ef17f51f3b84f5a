"""
Appointments Repository Layer

Provides data access operations for appointments. Writes that belong to a
larger unit of work (booking, status changes) are staged with ``flush``;
the service decides when to commit.
"""

from typing import Optional, List, Tuple
from datetime import date
import uuid

from sqlalchemy import and_, func
from sqlalchemy.orm import joinedload

from app.domain.appointments.models import (
    Appointment, AppointmentStatus, CANCELLED_STATUSES, TERMINAL_STATUSES
)


class AppointmentRepository:
    """Repository for appointment data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, appointment_data: dict) -> Appointment:
        """Stage a new appointment in the current transaction"""
        appointment = Appointment(**appointment_data)
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def get_by_id(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        """Get appointment by ID with relationships"""
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor)
        ).filter(Appointment.id == appointment_id).first()

    def get_by_appointment_number(self, appointment_number: str) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.appointment_number == appointment_number
        ).first()

    def _filtered(
        self,
        patient_id: Optional[uuid.UUID] = None,
        doctor_id: Optional[uuid.UUID] = None,
        status: Optional[AppointmentStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        query = self.db.query(Appointment)
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 20,
        **filters
    ) -> Tuple[List[Appointment], int]:
        """Get a page of appointments and the total matching count"""
        query = self._filtered(**filters)
        total = query.count()
        items = query.options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor)
        ).order_by(
            Appointment.appointment_date.desc(),
            Appointment.slot_start_minute.desc()
        ).offset(skip).limit(limit).all()
        return items, total

    def get_doctor_day(self, doctor_id: uuid.UUID, target_date: date) -> List[Appointment]:
        """A doctor's appointments for one day in slot order"""
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == target_date
        ).order_by(Appointment.slot_start_minute).all()

    def get_open_in_range(
        self,
        doctor_id: uuid.UUID,
        start_date: date,
        end_date: date
    ) -> List[Appointment]:
        """Non-terminal appointments of a doctor within an inclusive date range"""
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= start_date,
            Appointment.appointment_date <= end_date,
            Appointment.status.notin_(list(TERMINAL_STATUSES))
        ).order_by(Appointment.appointment_date, Appointment.slot_start_minute).all()

    def find_patient_conflict(
        self,
        patient_id: uuid.UUID,
        appointment_date: date,
        start_minute: int,
        end_minute: int,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[Appointment]:
        """A live appointment of the patient at exactly this date and slot"""
        query = self.db.query(Appointment).filter(
            and_(
                Appointment.patient_id == patient_id,
                Appointment.appointment_date == appointment_date,
                Appointment.slot_start_minute == start_minute,
                Appointment.slot_end_minute == end_minute,
                Appointment.status.notin_(list(CANCELLED_STATUSES))
            )
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    def claim_status(
        self,
        appointment_id: uuid.UUID,
        expected: AppointmentStatus,
        target: AppointmentStatus,
    ) -> bool:
        """Move the status from ``expected`` to ``target``; False when another writer changed it first"""
        updated = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.status == expected
        ).update({"status": target}, synchronize_session=False)
        return updated == 1

    def next_token_number(self, doctor_id: uuid.UUID, target_date: date) -> int:
        """1 + tokens already handed out for the doctor's day.

        Falls back to max + 1 when a vacated token would otherwise be reused.
        """
        issued, highest = self.db.query(
            func.count(Appointment.token_number),
            func.max(Appointment.token_number)
        ).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == target_date,
            Appointment.token_number.isnot(None)
        ).one()
        return max(issued or 0, highest or 0) + 1

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)
        self.db.flush()
