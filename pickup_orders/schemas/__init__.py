"""Schema exports."""

from pickup_orders.schemas.order import (
    CommunicationCreate,
    CommunicationRead,
    OrderDraft,
    OrderFilters,
    OrderItemDraft,
    OrderItemRead,
    OrderListResponse,
    OrderStats,
    OrderStatusUpdateRequest,
    OrderSummary,
    OrderTimeline,
    OrderUpdate,
    PickupOrderRead,
    SweepFailure,
    SweepResponse,
    SweepResult,
)

__all__ = [
    "CommunicationCreate",
    "CommunicationRead",
    "OrderDraft",
    "OrderFilters",
    "OrderItemDraft",
    "OrderItemRead",
    "OrderListResponse",
    "OrderStats",
    "OrderStatusUpdateRequest",
    "OrderSummary",
    "OrderTimeline",
    "OrderUpdate",
    "PickupOrderRead",
    "SweepFailure",
    "SweepResponse",
    "SweepResult",
]
