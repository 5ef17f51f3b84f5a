from typing import List, Dict, Any
from fastapi import Request
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import verify_token


class Roles:
    PATIENT = "patient"
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"
    ADMIN = "admin"


class Permissions:
    """Permission constants for the scheduling backend"""

    # Doctors
    DOCTORS_READ = "doctors:read"
    DOCTORS_MANAGE = "doctors:manage"

    # Appointments
    APPOINTMENTS_CREATE = "appointments:create"
    APPOINTMENTS_READ = "appointments:read"
    APPOINTMENTS_READ_OWN = "appointments:read:own"
    APPOINTMENTS_UPDATE = "appointments:update"
    APPOINTMENTS_CANCEL_OWN = "appointments:cancel:own"
    APPOINTMENTS_DELETE = "appointments:delete"

    # Schedules
    SCHEDULES_CREATE = "schedules:create"
    SCHEDULES_READ = "schedules:read"
    SCHEDULES_UPDATE = "schedules:update"
    SCHEDULES_DELETE = "schedules:delete"

    # Leaves
    LEAVES_CREATE = "leaves:create"
    LEAVES_READ = "leaves:read"
    LEAVES_APPROVE = "leaves:approve"

    # System
    SYSTEM_ADMIN = "system:admin"


ROLE_PERMISSIONS: Dict[str, List[str]] = {
    Roles.PATIENT: [
        Permissions.DOCTORS_READ,
        Permissions.SCHEDULES_READ,
        Permissions.APPOINTMENTS_CREATE,
        Permissions.APPOINTMENTS_READ_OWN,
        Permissions.APPOINTMENTS_CANCEL_OWN,
    ],
    Roles.DOCTOR: [
        Permissions.DOCTORS_READ,
        Permissions.SCHEDULES_CREATE,
        Permissions.SCHEDULES_READ,
        Permissions.SCHEDULES_UPDATE,
        Permissions.SCHEDULES_DELETE,
        Permissions.LEAVES_CREATE,
        Permissions.LEAVES_READ,
        Permissions.APPOINTMENTS_READ_OWN,
        Permissions.APPOINTMENTS_UPDATE,
    ],
    Roles.RECEPTIONIST: [
        Permissions.DOCTORS_READ,
        Permissions.SCHEDULES_READ,
        Permissions.APPOINTMENTS_CREATE,
        Permissions.APPOINTMENTS_READ,
    ],
    Roles.ADMIN: [
        Permissions.DOCTORS_READ,
        Permissions.DOCTORS_MANAGE,
        Permissions.SCHEDULES_CREATE,
        Permissions.SCHEDULES_READ,
        Permissions.SCHEDULES_UPDATE,
        Permissions.SCHEDULES_DELETE,
        Permissions.LEAVES_READ,
        Permissions.LEAVES_APPROVE,
        Permissions.APPOINTMENTS_CREATE,
        Permissions.APPOINTMENTS_READ,
        Permissions.APPOINTMENTS_UPDATE,
        Permissions.APPOINTMENTS_DELETE,
        Permissions.SYSTEM_ADMIN,
    ],
}


def get_current_user(request: Request) -> Dict[str, Any]:
    """Extract and validate user from request"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Authentication required")

    token = auth_header.split(" ")[1]
    payload = verify_token(token, "access")

    if not payload:
        raise AuthenticationError("Invalid or expired token", error_code="INVALID_TOKEN")

    return payload


def require_permissions(required_permissions: List[str]):
    """Dependency function to check permissions"""
    def permission_checker(request: Request) -> Dict[str, Any]:
        user_payload = get_current_user(request)
        request.state.user = user_payload

        user_permissions = user_payload.get("permissions", [])

        # Any one of the listed permissions is enough
        has_access = any(
            perm in user_permissions
            for perm in required_permissions
        )

        if not has_access:
            raise AuthorizationError(
                "Insufficient permissions",
                details={"required_permissions": required_permissions},
                error_code="INSUFFICIENT_PERMISSIONS"
            )

        return user_payload

    return permission_checker
