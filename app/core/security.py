from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List
import jwt
from app.core.config import settings


def create_access_token(
    subject: str,
    role: str,
    permissions: List[str],
    tenant_id: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create JWT access token for a patient, doctor or hospital administrator.

    ``extra`` carries the actor's domain ids (``doctor_id`` / ``patient_id``).
    """
    to_encode: Dict[str, Any] = dict(extra or {})
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "sub": subject,
        "role": role,
        "permissions": permissions,
        "tenant_id": tenant_id,
        "token_type": "access"
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
    """Verify token and check token type"""
    payload = decode_token(token)
    if not payload:
        return None

    if payload.get("token_type") != token_type:
        return None

    return payload
