"""Application models package."""

from pickup_orders.models.audit_log import AuditLog
from pickup_orders.models.order import (
    OrderCommunication,
    OrderCounter,
    OrderIndexEntry,
    PickupOrder,
    PickupOrderItem,
)

__all__ = [
    "AuditLog", "OrderCommunication", "OrderCounter", "OrderIndexEntry", "PickupOrder", "PickupOrderItem",
]
