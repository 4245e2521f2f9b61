"""Pickup deadline arithmetic and list-view projection.

Every remaining-time figure goes through :func:`remaining_ms`, keyed on the
pickup deadline.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pickup_orders.models.order import PickupOrder
from pickup_orders.schemas.order import OrderSummary
from pickup_orders.utils.time import ensure_utc, utcnow

PICKUP_WINDOW: timedelta = timedelta(hours=1)
EXPIRING_SOON_MS: int = 15 * 60 * 1000

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND


def pickup_deadline_for(ready_at: datetime) -> datetime:
    """Return the instant a ready order's pickup window closes."""
    return ensure_utc(ready_at) + PICKUP_WINDOW


def remaining_ms(pickup_deadline: datetime, now: datetime | None = None) -> int | None:
    """Milliseconds left before ``pickup_deadline``, or None once it has been reached."""
    current = ensure_utc(now) if now is not None else utcnow()
    delta = ensure_utc(pickup_deadline) - current
    if delta <= timedelta(0):
        return None
    # Rounded up: an open window never reports 0 ms.
    return -(-delta // timedelta(milliseconds=1))


def get_remaining_time(ready_at: datetime, now: datetime | None = None) -> int | None:
    """Return milliseconds until ``ready_at + 1 hour``, or None if already passed."""
    return remaining_ms(pickup_deadline_for(ready_at), now)


def format_remaining_time(ready_at: datetime, now: datetime | None = None) -> str:
    remaining = get_remaining_time(ready_at, now)
    if remaining is None:
        return "Expired"

    minutes = remaining // _MS_PER_MINUTE
    seconds = (remaining % _MS_PER_MINUTE) // _MS_PER_SECOND
    if minutes > 0:
        return f"{minutes} min {seconds} sec"
    return f"{seconds} sec"


def is_order_expiring_soon(ready_at: datetime, now: datetime | None = None) -> bool:
    """True when the pickup window is still open but closes within 15 minutes."""
    remaining = get_remaining_time(ready_at, now)
    return _closes_soon(remaining)


def _closes_soon(remaining: int | None) -> bool:
    return remaining is not None and remaining < EXPIRING_SOON_MS


def is_pickup_expired(pickup_deadline: datetime, now: datetime | None = None) -> bool:
    return remaining_ms(pickup_deadline, now) is None


def project_to_summary(order: PickupOrder, now: datetime | None = None) -> OrderSummary:
    """Build the listing view of an order, including its live pickup countdown."""
    time_remaining: int | None = None
    is_expiring_soon = False

    if order.status == "ready" and order.pickup_deadline is not None:
        remaining = remaining_ms(order.pickup_deadline, now)
        time_remaining = 0 if remaining is None else remaining // _MS_PER_MINUTE
        is_expiring_soon = _closes_soon(remaining)

    return OrderSummary(
        id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        status=order.status,
        item_count=sum(item.quantity for item in order.items),
        total=order.total,
        store_location=order.store_location,
        created_at=order.created_at,
        pickup_deadline=order.pickup_deadline,
        time_remaining=time_remaining,
        is_expiring_soon=is_expiring_soon,
    )
