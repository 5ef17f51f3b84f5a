from contextvars import ContextVar
from typing import Optional

DEFAULT_TENANT_ID = "default"

tenant_context: ContextVar[Optional[str]] = ContextVar("tenant_context", default=None)

def get_tenant_id() -> Optional[str]:
    return tenant_context.get()

def get_current_tenant_id() -> str:
    """Tenant for the running request, falling back to the single-hospital default"""
    return tenant_context.get() or DEFAULT_TENANT_ID

def set_tenant_id(tenant_id: Optional[str]):
    return tenant_context.set(tenant_id)

def reset_tenant_id(token) -> None:
    tenant_context.reset(token)
