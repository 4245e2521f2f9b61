"""Expiration sweep for ready orders whose pickup window has closed.

Invoked periodically by an external scheduler; it never schedules itself.
Orders leave the ``ready`` bucket when swept, so repeated runs are safe.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pickup_orders.schemas.order import SweepFailure, SweepResult
from pickup_orders.services.order_status import InvalidTransitionError, TimelineOrderError
from pickup_orders.services.order_store import (
    ConcurrentUpdateError,
    get_orders_by_status,
    update_order_status,
)
from pickup_orders.utils.order_timer import is_pickup_expired, pickup_deadline_for
from pickup_orders.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)

SWEEPER_ACTOR: str = "system:expiration-sweeper"
AUTO_NO_SHOW_NOTE: str = "Automatically marked as no-show - pickup window expired (1 hour)"


def check_expired_orders(db: Session, *, now: datetime | None = None) -> SweepResult:
    """Mark every ready order past its pickup deadline as no-show.

    A failure on one order is logged and reported in ``failed`` without
    stopping the rest of the batch. An order that left ``ready`` between the
    index read and its transition is skipped.
    """
    current = ensure_utc(now) if now is not None else utcnow()
    orders = get_orders_by_status(db, "ready")
    result = SweepResult(checked=len(orders))

    candidates = [(order.id, order.pickup_deadline, order.ready_at) for order in orders]

    for order_id, deadline, ready_at in candidates:
        if deadline is None and ready_at is not None:
            deadline = pickup_deadline_for(ready_at)
        if deadline is None:
            logger.warning("[SWEEP] Ready order %s has no pickup deadline; skipping", order_id)
            continue
        if not is_pickup_expired(deadline, current):
            continue

        try:
            updated = update_order_status(
                db,
                order_id,
                "no-show",
                AUTO_NO_SHOW_NOTE,
                now=current,
                actor=SWEEPER_ACTOR,
            )
        except InvalidTransitionError as exc:
            logger.info("[SWEEP] Order %s left 'ready' before expiry (%s)", order_id, exc)
            continue
        except (ConcurrentUpdateError, TimelineOrderError, SQLAlchemyError) as exc:
            logger.exception("[SWEEP] Failed to expire order %s", order_id)
            result.failed.append(SweepFailure(order_id=order_id, error=str(exc)))
            continue

        if updated is None:
            logger.info("[SWEEP] Order %s was deleted before expiry", order_id)
            continue
        result.expired.append(order_id)

    logger.info(
        "[SWEEP] Checked %d ready orders: %d expired, %d failed",
        result.checked,
        len(result.expired),
        len(result.failed),
    )
    return result


if __name__ == "__main__":
    from pickup_orders.db.session import SessionLocal

    logging.basicConfig(level=logging.INFO)
    with SessionLocal() as session:
        check_expired_orders(session)
