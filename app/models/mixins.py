from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.core.tenant import get_current_tenant_id


# Base Mixin for Tenant Isolation
class TenantMixin:
    tenant_id = Column(String(50), nullable=True, index=True, default=get_current_tenant_id)


class TimestampMixin:
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
