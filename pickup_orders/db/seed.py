"""Database seeding helpers."""

import logging

from sqlalchemy.orm import Session

from pickup_orders.models import OrderCounter
from pickup_orders.services.order_store import ORDER_COUNTER_NAME

logger = logging.getLogger(__name__)


def ensure_order_counter(session: Session) -> None:
    """Create the shared order-number counter if it does not exist yet."""
    if session.get(OrderCounter, ORDER_COUNTER_NAME) is not None:
        return

    session.add(OrderCounter(name=ORDER_COUNTER_NAME, value=0))
    session.commit()
    logger.info("[BOOTSTRAP] Order counter initialised")


def ensure_seed_data(session: Session) -> None:
    ensure_order_counter(session)
