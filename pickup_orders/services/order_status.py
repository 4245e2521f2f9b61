"""Order status transition helpers."""

from __future__ import annotations

from datetime import datetime

from pickup_orders.models.order import PickupOrder
from pickup_orders.utils.order_timer import pickup_deadline_for

ORDER_STATUSES: list[str] = ["pending", "confirmed", "ready", "picked-up", "no-show", "cancelled"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"picked-up", "no-show", "cancelled"})

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"ready", "cancelled"},
    "ready": {"picked-up", "no-show", "cancelled"},
    "picked-up": set(),
    "no-show": set(),
    "cancelled": set(),
}

TIMELINE_FIELDS: tuple[str, ...] = (
    "placed_at",
    "confirmed_at",
    "ready_at",
    "pickup_deadline",
    "completed_at",
    "cancelled_at",
)


class InvalidTransitionError(ValueError):
    """Raised when an order cannot move from its current status to the requested one."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class TimelineOrderError(ValueError):
    """Raised when a transition timestamp would precede an earlier timeline stamp."""


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def timeline_patch(new_status: str, now: datetime) -> dict[str, datetime]:
    """Return the timeline stamps written when an order enters ``new_status``."""
    if new_status == "confirmed":
        return {"confirmed_at": now}
    if new_status == "ready":
        return {"ready_at": now, "pickup_deadline": pickup_deadline_for(now)}
    if new_status in {"picked-up", "no-show"}:
        return {"completed_at": now}
    if new_status == "cancelled":
        return {"cancelled_at": now}
    return {}


def latest_timeline_stamp(order: PickupOrder) -> datetime | None:
    """Return the most recent transition stamp; the deadline is a projection, not a stamp."""
    stamps = [
        getattr(order, field)
        for field in TIMELINE_FIELDS
        if field != "pickup_deadline" and getattr(order, field) is not None
    ]
    return max(stamps) if stamps else None


def set_status(order: PickupOrder, new_status: str, now: datetime) -> None:
    """Validate the transition, then set status and the matching timeline stamps."""
    if not can_transition(order.status, new_status):
        raise InvalidTransitionError(order.status, new_status)

    latest = latest_timeline_stamp(order)
    if latest is not None and now < latest:
        raise TimelineOrderError(
            f"Transition to '{new_status}' at {now.isoformat()} precedes {latest.isoformat()}"
        )

    order.status = new_status
    for field, value in timeline_patch(new_status, now).items():
        setattr(order, field, value)
