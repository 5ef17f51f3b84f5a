import logging
from .config import settings


def setup_logging():
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s [tenant=%(tenant_id)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(TenantLogFilter())


class TenantLogFilter(logging.Filter):
    """Attach the current tenant id to every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        from app.core.tenant import get_tenant_id
        record.tenant_id = get_tenant_id() or "-"
        return True
