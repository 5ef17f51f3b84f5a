"""
Scheduling Repository Layer

Provides data access operations for day schedules, their slots and doctor
leaves. Slot booking flags are only ever flipped through conditional
UPDATE statements so concurrent writers cannot both win.
"""

from typing import Optional, List, Dict, Any
from datetime import date, datetime
import uuid

from sqlalchemy import and_, func, select

from app.domain.scheduling.models import (
    DaySchedule, ScheduleSlot, DoctorLeave, LeaveStatus
)


class DayScheduleRepository:
    """Repository for day schedule data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, schedule_data: dict, slots: List[Dict[str, Any]]) -> DaySchedule:
        """Insert a schedule with its slot grid in one transaction.

        Raises IntegrityError when (doctor, date) already exists; the caller
        owns the rollback.
        """
        schedule = DaySchedule(**schedule_data)
        schedule.slots = [ScheduleSlot(**slot) for slot in slots]
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def get_by_id(self, schedule_id: uuid.UUID) -> Optional[DaySchedule]:
        return self.db.query(DaySchedule).filter(DaySchedule.id == schedule_id).first()

    def get_by_doctor_and_date(self, doctor_id: uuid.UUID, schedule_date: date) -> Optional[DaySchedule]:
        return self.db.query(DaySchedule).filter(
            and_(
                DaySchedule.doctor_id == doctor_id,
                DaySchedule.schedule_date == schedule_date
            )
        ).first()

    def get_existing_dates(self, doctor_id: uuid.UUID, dates: List[date]) -> set:
        if not dates:
            return set()
        rows = self.db.query(DaySchedule.schedule_date).filter(
            DaySchedule.doctor_id == doctor_id,
            DaySchedule.schedule_date.in_(dates)
        ).all()
        return {row[0] for row in rows}

    def get_by_doctor(
        self,
        doctor_id: uuid.UUID,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[DaySchedule]:
        query = self.db.query(DaySchedule).filter(DaySchedule.doctor_id == doctor_id)
        if from_date:
            query = query.filter(DaySchedule.schedule_date >= from_date)
        if to_date:
            query = query.filter(DaySchedule.schedule_date <= to_date)
        return query.order_by(DaySchedule.schedule_date).all()

    def get_available_dates(self, doctor_id: uuid.UUID, from_date: date) -> List[date]:
        """Dates with an available schedule holding at least one free slot"""
        rows = self.db.query(DaySchedule.schedule_date).join(
            ScheduleSlot, ScheduleSlot.schedule_id == DaySchedule.id
        ).filter(
            DaySchedule.doctor_id == doctor_id,
            DaySchedule.schedule_date >= from_date,
            DaySchedule.is_available == True,
            ScheduleSlot.is_booked == False
        ).group_by(DaySchedule.schedule_date).order_by(DaySchedule.schedule_date).all()
        return [row[0] for row in rows]

    def clear_free_slots(self, schedule: DaySchedule) -> bool:
        """Delete the schedule's free slots in the current transaction.

        Booked rows are never matched. Returns False, with the transaction
        rolled back, when a booking is found holding a slot.
        """
        self.db.query(ScheduleSlot).filter(
            ScheduleSlot.schedule_id == schedule.id,
            ScheduleSlot.is_booked == False
        ).delete(synchronize_session="fetch")
        if self.count_booked_slots(schedule.id):
            self.db.rollback()
            return False
        self.db.expire(schedule, ["slots"])
        return True

    def replace_slots(self, schedule: DaySchedule, update_data: dict, slots: List[Dict[str, Any]]) -> DaySchedule:
        """Write a new slot grid after clear_free_slots emptied the old one"""
        for key, value in update_data.items():
            setattr(schedule, key, value)
        schedule.slots.extend(ScheduleSlot(**slot) for slot in slots)
        schedule.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def delete(self, schedule: DaySchedule) -> None:
        self.db.delete(schedule)
        self.db.commit()

    def block_range(
        self,
        doctor_id: uuid.UUID,
        start_date: date,
        end_date: date,
        leave_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Mark every schedule in the inclusive range unavailable"""
        values = {"is_available": False, "updated_at": datetime.utcnow()}
        if leave_id is not None:
            values["leave_id"] = leave_id
        result = self.db.query(DaySchedule).filter(
            DaySchedule.doctor_id == doctor_id,
            DaySchedule.schedule_date >= start_date,
            DaySchedule.schedule_date <= end_date
        ).update(values, synchronize_session=False)
        self.db.commit()
        self.db.expire_all()
        return result

    def is_available(self, schedule_id: uuid.UUID, lock: bool = False) -> bool:
        query = self.db.query(DaySchedule.is_available).filter(DaySchedule.id == schedule_id)
        if lock:
            query = query.with_for_update()
        return bool(query.scalar())

    def count_booked_slots(self, schedule_id: uuid.UUID) -> int:
        return self.db.query(func.count(ScheduleSlot.id)).filter(
            ScheduleSlot.schedule_id == schedule_id,
            ScheduleSlot.is_booked == True
        ).scalar() or 0


class ScheduleSlotRepository:
    """Repository for slot rows; booking flags change only through compare-and-set updates"""

    def __init__(self, db):
        self.db = db

    def get_by_id(self, slot_id: uuid.UUID) -> Optional[ScheduleSlot]:
        return self.db.query(ScheduleSlot).filter(ScheduleSlot.id == slot_id).first()

    def find_by_interval(self, schedule_id: uuid.UUID, start_minute: int, end_minute: int) -> Optional[ScheduleSlot]:
        return self.db.query(ScheduleSlot).filter(
            ScheduleSlot.schedule_id == schedule_id,
            ScheduleSlot.start_minute == start_minute,
            ScheduleSlot.end_minute == end_minute
        ).first()

    def get_free_slots(self, schedule_id: uuid.UUID) -> List[ScheduleSlot]:
        return self.db.query(ScheduleSlot).filter(
            ScheduleSlot.schedule_id == schedule_id,
            ScheduleSlot.is_booked == False
        ).order_by(ScheduleSlot.start_minute).all()

    def mark_booked(self, slot_id: uuid.UUID) -> bool:
        """Set is_booked only if it is currently false and its day is still available.

        True when this call won.
        """
        available_days = select(DaySchedule.id).where(DaySchedule.is_available == True)
        updated = self.db.query(ScheduleSlot).filter(
            ScheduleSlot.id == slot_id,
            ScheduleSlot.is_booked == False,
            ScheduleSlot.schedule_id.in_(available_days)
        ).update({"is_booked": True}, synchronize_session="fetch")
        self.db.commit()
        return updated == 1

    def mark_free(self, slot_id: uuid.UUID, commit: bool = True) -> bool:
        """Clear is_booked; False when the slot was already free"""
        updated = self.db.query(ScheduleSlot).filter(
            ScheduleSlot.id == slot_id,
            ScheduleSlot.is_booked == True
        ).update({"is_booked": False}, synchronize_session="fetch")
        if commit:
            self.db.commit()
        return updated == 1


class DoctorLeaveRepository:
    """Repository for doctor leave data access operations"""

    def __init__(self, db):
        self.db = db

    def create(self, leave_data: dict) -> DoctorLeave:
        """Create a new leave request"""
        leave = DoctorLeave(**leave_data)
        self.db.add(leave)
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def get_by_id(self, leave_id: uuid.UUID) -> Optional[DoctorLeave]:
        return self.db.query(DoctorLeave).filter(DoctorLeave.id == leave_id).first()

    def get_by_doctor_id(
        self,
        doctor_id: uuid.UUID,
        status: Optional[LeaveStatus] = None
    ) -> List[DoctorLeave]:
        query = self.db.query(DoctorLeave).filter(DoctorLeave.doctor_id == doctor_id)
        if status:
            query = query.filter(DoctorLeave.status == status)
        return query.order_by(DoctorLeave.start_date.desc()).all()

    def get_pending(self) -> List[DoctorLeave]:
        return self.db.query(DoctorLeave).filter(
            DoctorLeave.status == LeaveStatus.PENDING
        ).order_by(DoctorLeave.created_at).all()

    def decide(
        self,
        leave_id: uuid.UUID,
        status: LeaveStatus,
        decided_by: Optional[uuid.UUID] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending leave to its decision; False when it was no longer pending"""
        updated = self.db.query(DoctorLeave).filter(
            DoctorLeave.id == leave_id,
            DoctorLeave.status == LeaveStatus.PENDING
        ).update({
            "status": status,
            "decided_by": decided_by,
            "decided_at": datetime.utcnow(),
            "rejection_reason": rejection_reason,
            "updated_at": datetime.utcnow(),
        }, synchronize_session=False)
        self.db.commit()
        self.db.expire_all()
        return updated == 1

    def is_doctor_on_leave(self, doctor_id: uuid.UUID, check_date: date) -> bool:
        """Check if doctor has an approved leave covering a date"""
        leave = self.db.query(DoctorLeave).filter(
            and_(
                DoctorLeave.doctor_id == doctor_id,
                DoctorLeave.status == LeaveStatus.APPROVED,
                DoctorLeave.start_date <= check_date,
                DoctorLeave.end_date >= check_date
            )
        ).first()
        return leave is not None
