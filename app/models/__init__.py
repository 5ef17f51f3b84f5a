from app.models.mixins import TenantMixin, TimestampMixin

__all__ = ["TenantMixin", "TimestampMixin"]
