"""ORM model package."""

from pbb_monitor.models.entities import (
    MAX_HAMLETS_PER_VILLAGE,
    Hamlet,
    PaymentType,
    PbbPayment,
    User,
    UserRole,
    Village,
)

__all__ = [
    "MAX_HAMLETS_PER_VILLAGE",
    "Hamlet",
    "PaymentType",
    "PbbPayment",
    "User",
    "UserRole",
    "Village",
]
