# Billing domain module
from app.domain.billing.models import (
    Payment,
    PaymentStatus,
    PaymentMethod,
    PaymentChannel,
    PaymentType,
)

__all__ = [
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "PaymentChannel",
    "PaymentType",
]
