"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pickup_orders.models import AuditLog, PickupOrder
from pickup_orders.services.order_status import TIMELINE_FIELDS


def order_snapshot(order: PickupOrder) -> dict[str, Any]:
    """Return the audited subset of an order as JSON-safe values."""
    snapshot: dict[str, Any] = {
        "order_number": order.order_number,
        "status": order.status,
        "store_location": order.store_location,
        "store_notes": order.store_notes,
    }
    for field in TIMELINE_FIELDS:
        value = getattr(order, field)
        snapshot[field] = value.isoformat() if value is not None else None
    return snapshot


def log_action(
    db: Session,
    *,
    actor: str | None,
    action_type: str,
    order_id: str | None = None,
    before_snapshot: dict[str, Any] | None = None,
    after_snapshot: dict[str, Any] | None = None,
) -> None:
    db.add(
        AuditLog(
            actor_identifier=actor or "anonymous",
            action_type=action_type,
            order_id=order_id,
            before_snapshot=before_snapshot,
            after_snapshot=after_snapshot,
        )
    )
