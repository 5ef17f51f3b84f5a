"""
Leaves API Routes
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import uuid

from app.infrastructure.database import get_db
from app.core.permissions import require_permissions, Permissions, Roles
from app.domain.scheduling.leaves import LeaveService
from app.api.deps import acting_doctor, resolve_doctor_id, user_uuid
from app.api.v1.leaves.schemas import (
    LeaveCreate, LeaveReject, LeaveResponse, LeaveListResponse, LeaveApprovalResponse
)

router = APIRouter()


@router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
def request_leave(
    leave_data: LeaveCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_CREATE]))
):
    """Request leave for the authenticated doctor"""
    service = LeaveService(db)
    return service.request_leave(
        doctor_id=resolve_doctor_id(db, current_user, leave_data.doctor_id),
        start_date=leave_data.start_date,
        end_date=leave_data.end_date,
        leave_type=leave_data.leave_type,
        duration_type=leave_data.duration_type,
        description=leave_data.description,
    )


@router.get("", response_model=LeaveListResponse)
def list_leaves(
    doctor_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_READ]))
):
    """Doctors see their own leaves; administrators see pending requests or one doctor's history"""
    if current_user.get("role") == Roles.DOCTOR:
        doctor_id = acting_doctor(db, current_user).id
    service = LeaveService(db)
    leaves = service.list_leaves(doctor_id=doctor_id, status=status_filter)
    return LeaveListResponse(items=leaves, total=len(leaves))


@router.get("/{leave_id}", response_model=LeaveResponse)
def get_leave(
    leave_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_READ]))
):
    service = LeaveService(db)
    leave = service.get_leave(leave_id)
    if current_user.get("role") == Roles.DOCTOR:
        resolve_doctor_id(db, current_user, leave.doctor_id)
    return leave


@router.post("/{leave_id}/approve", response_model=LeaveApprovalResponse)
def approve_leave(
    leave_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_APPROVE]))
):
    """Approve a pending leave: blocks the days and cancels their appointments"""
    service = LeaveService(db)
    return service.approve_leave(leave_id, decided_by=user_uuid(current_user))


@router.post("/{leave_id}/reject", response_model=LeaveResponse)
def reject_leave(
    leave_id: uuid.UUID,
    reject_data: LeaveReject,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_APPROVE]))
):
    service = LeaveService(db)
    return service.reject_leave(leave_id, decided_by=user_uuid(current_user), reason=reject_data.reason)


@router.post("/{leave_id}/reapply", response_model=LeaveApprovalResponse)
def reapply_leave(
    leave_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.LEAVES_APPROVE]))
):
    """Run the effects of an approved leave again, e.g. after partial failures"""
    service = LeaveService(db)
    return service.reapply_leave_effects(leave_id)
