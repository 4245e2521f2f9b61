"""Order store: pickup order records and their secondary indices.

Every order id is a member of four index sets: the master ``all`` set, the
customer's ``phone`` bucket, its ``status`` bucket and its ``location`` bucket.
Record writes and index moves always commit in the same transaction, and
mutations are guarded by the order's ``version`` column.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from pickup_orders.core.config import settings
from pickup_orders.models import OrderCommunication, OrderCounter, OrderIndexEntry, PickupOrder, PickupOrderItem
from pickup_orders.schemas.order import (
    STORE_LOCATIONS,
    OrderDraft,
    OrderFilters,
    OrderStats,
    OrderUpdate,
    TodayStats,
    WeekStats,
)
from pickup_orders.services.audit_service import log_action, order_snapshot
from pickup_orders.services.order_status import set_status
from pickup_orders.utils.time import ensure_utc, today_window_utc, utcnow

logger = logging.getLogger(__name__)

ORDER_COUNTER_NAME: str = "orders"
INDEX_ALL: str = "all"
INDEX_PHONE: str = "phone"
INDEX_STATUS: str = "status"
INDEX_LOCATION: str = "location"
MAX_UPDATE_ATTEMPTS: int = 3

EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"store_notes", "customer_notes", "store_location", "customer_name", "customer_phone", "customer_email"}
)
REQUIRED_FIELDS: frozenset[str] = frozenset({"store_location", "customer_name", "customer_phone"})

_index_table = OrderIndexEntry.__table__
_counter_table = OrderCounter.__table__


class OrderStoreUnavailableError(RuntimeError):
    """Raised when the backing database is not configured or cannot be reached."""


class ConcurrentUpdateError(RuntimeError):
    """Raised when an order kept changing underneath an update."""


@contextmanager
def _store_transaction(db: Session) -> Iterator[None]:
    """Roll back on any failure and surface connectivity problems as store unavailability."""
    if not settings.database_url:
        raise OrderStoreUnavailableError("DATABASE_URL is required for order management")
    try:
        yield
    except OperationalError as exc:
        db.rollback()
        raise OrderStoreUnavailableError("Order store is unavailable") from exc
    except Exception:
        db.rollback()
        raise


def _now(now: datetime | None) -> datetime:
    return ensure_utc(now) if now is not None else utcnow()


def format_order_number(seq: int) -> str:
    return f"{settings.order_number_prefix}-{seq:06d}"


def _next_order_seq(db: Session) -> int:
    """Increment the shared order counter in a single statement and return the new value."""
    seq: int | None = db.execute(
        update(_counter_table)
        .where(_counter_table.c.name == ORDER_COUNTER_NAME)
        .values(value=_counter_table.c.value + 1)
        .returning(_counter_table.c.value)
    ).scalar_one_or_none()
    if seq is None:
        logger.error("[ORDERS] Order counter %r is missing; the database was not seeded.", ORDER_COUNTER_NAME)
        raise OrderStoreUnavailableError("Order counter is not initialised")
    return seq


def _index_memberships(order: PickupOrder) -> list[tuple[str, str]]:
    return [
        (INDEX_ALL, ""),
        (INDEX_PHONE, order.customer_phone),
        (INDEX_STATUS, order.status),
        (INDEX_LOCATION, order.store_location),
    ]


def _add_to_index(db: Session, index_name: str, index_key: str, order_id: str) -> None:
    db.execute(insert(_index_table).values(index_name=index_name, index_key=index_key, order_id=order_id))


def _remove_from_index(db: Session, index_name: str, index_key: str, order_id: str) -> None:
    db.execute(
        delete(_index_table).where(
            _index_table.c.index_name == index_name,
            _index_table.c.index_key == index_key,
            _index_table.c.order_id == order_id,
        )
    )


def _move_index(db: Session, index_name: str, old_key: str, new_key: str, order_id: str) -> None:
    if old_key == new_key:
        return
    _remove_from_index(db, index_name, old_key, order_id)
    _add_to_index(db, index_name, new_key, order_id)


def index_members(db: Session, index_name: str, index_key: str = "") -> set[str]:
    """Return the order ids in one index bucket."""
    return set(
        db.scalars(
            select(_index_table.c.order_id).where(
                _index_table.c.index_name == index_name,
                _index_table.c.index_key == index_key,
            )
        )
    )


def _load_orders(db: Session, order_ids: Iterable[str]) -> list[PickupOrder]:
    ids = list(order_ids)
    if not ids:
        return []
    orders = db.scalars(
        select(PickupOrder).where(PickupOrder.id.in_(ids)).options(selectinload(PickupOrder.items))
    ).all()
    return _newest_first(orders)


def _newest_first(orders: Iterable[PickupOrder]) -> list[PickupOrder]:
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def create_order(db: Session, draft: OrderDraft, *, now: datetime | None = None) -> PickupOrder:
    """Persist a checkout draft as a new pending order and index it."""
    current = _now(now)
    with _store_transaction(db):
        seq = _next_order_seq(db)
        order = PickupOrder(
            order_seq=seq,
            order_number=format_order_number(seq),
            customer_name=draft.customer_name.strip(),
            customer_phone=draft.customer_phone.strip(),
            customer_email=draft.customer_email.strip() if draft.customer_email else None,
            notification_method=draft.notification_method,
            subtotal=draft.subtotal,
            tax=draft.tax,
            total=draft.total,
            store_location=draft.store_location,
            status="pending",
            placed_at=current,
            customer_notes=draft.customer_notes.strip() if draft.customer_notes else None,
            created_at=current,
            updated_at=current,
            items=[
                PickupOrderItem(position=position, **item.model_dump())
                for position, item in enumerate(draft.items)
            ],
        )
        db.add(order)
        db.flush()
        for index_name, index_key in _index_memberships(order):
            _add_to_index(db, index_name, index_key, order.id)
        db.commit()
        db.refresh(order)

    logger.info("[ORDERS] Created order %s (%s) for %s", order.order_number, order.id, order.store_location)
    return order


def get_order_by_id(db: Session, order_id: str) -> PickupOrder | None:
    with _store_transaction(db):
        return db.get(PickupOrder, order_id)


def get_order_by_number(db: Session, order_number: str) -> PickupOrder | None:
    normalized = order_number.strip().upper()
    with _store_transaction(db):
        return db.scalars(select(PickupOrder).where(PickupOrder.order_number == normalized)).first()


def get_orders_by_phone(db: Session, phone: str) -> list[PickupOrder]:
    with _store_transaction(db):
        return _load_orders(db, index_members(db, INDEX_PHONE, phone))


def get_orders_by_status(db: Session, status: str) -> list[PickupOrder]:
    with _store_transaction(db):
        return _load_orders(db, index_members(db, INDEX_STATUS, status))


def get_orders_by_location(db: Session, location: str) -> list[PickupOrder]:
    with _store_transaction(db):
        return _load_orders(db, index_members(db, INDEX_LOCATION, location))


def get_orders(db: Session, filters: OrderFilters | None = None) -> list[PickupOrder]:
    """Return orders matching ``filters``, newest first.

    Status and location filters are answered from their index buckets; the
    date range, ``since`` and free-text search are applied to the loaded
    records. Search is a case-insensitive substring match on order number,
    customer name and phone.
    """
    filters = filters or OrderFilters()
    with _store_transaction(db):
        candidate_ids = index_members(db, INDEX_ALL)
        if filters.status:
            statuses = filters.status if isinstance(filters.status, list) else [filters.status]
            status_ids: set[str] = set()
            for status in statuses:
                status_ids |= index_members(db, INDEX_STATUS, status)
            candidate_ids &= status_ids
        if filters.store_location:
            candidate_ids &= index_members(db, INDEX_LOCATION, filters.store_location)
        orders = _load_orders(db, candidate_ids)

    if filters.since is not None:
        since = ensure_utc(filters.since)
        orders = [order for order in orders if order.placed_at > since]
    if filters.date_from is not None:
        date_from = ensure_utc(filters.date_from)
        orders = [order for order in orders if order.created_at >= date_from]
    if filters.date_to is not None:
        date_to = ensure_utc(filters.date_to)
        orders = [order for order in orders if order.created_at <= date_to]
    if filters.search_query:
        query = filters.search_query.lower()
        orders = [
            order
            for order in orders
            if query in order.order_number.lower()
            or query in order.customer_name.lower()
            or query in order.customer_phone.lower()
        ]
    return orders


def get_order_stats(db: Session, *, now: datetime | None = None) -> OrderStats:
    """Aggregate today's and the last seven days' orders by status, plus per-location totals."""
    current = _now(now)
    orders = get_orders(db)
    today_start, _ = today_window_utc(current)
    week_start = current - timedelta(days=7)

    today = Counter(order.status for order in orders if order.created_at >= today_start)
    week = Counter(order.status for order in orders if order.created_at >= week_start)
    by_location = Counter(order.store_location for order in orders)

    return OrderStats(
        today=TodayStats(
            total=sum(today.values()),
            pending=today["pending"],
            ready=today["ready"],
            picked_up=today["picked-up"],
            no_show=today["no-show"],
        ),
        this_week=WeekStats(
            total=sum(week.values()),
            picked_up=week["picked-up"],
            no_show=week["no-show"],
        ),
        by_location={location: by_location[location] for location in STORE_LOCATIONS},
    )


def _mutate_order(
    db: Session,
    order_id: str,
    mutate: Callable[[PickupOrder], None],
) -> PickupOrder | None:
    """Apply ``mutate`` to a fresh copy of the order and commit, retrying on version conflicts."""
    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        with _store_transaction(db):
            order = db.get(PickupOrder, order_id, populate_existing=True)
            if order is None:
                return None
            try:
                mutate(order)
                db.commit()
            except StaleDataError:
                db.rollback()
                logger.warning(
                    "[ORDERS] Concurrent update on order %s (attempt %d/%d)",
                    order_id,
                    attempt,
                    MAX_UPDATE_ATTEMPTS,
                )
                continue
            db.refresh(order)
            return order
    raise ConcurrentUpdateError(f"Order {order_id} changed concurrently; gave up after {MAX_UPDATE_ATTEMPTS} attempts")


def update_order(
    db: Session,
    order_id: str,
    updates: OrderUpdate | dict[str, Any],
    *,
    now: datetime | None = None,
) -> PickupOrder | None:
    """Merge editable fields into an order and keep its phone and location buckets in step."""
    changes = updates.model_dump(exclude_unset=True) if isinstance(updates, OrderUpdate) else dict(updates)
    if "status" in changes:
        raise ValueError("Order status can only change through update_order_status")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
    missing = sorted(field for field in REQUIRED_FIELDS if field in changes and changes[field] is None)
    if missing:
        raise ValueError(f"Fields cannot be cleared: {', '.join(missing)}")
    if "store_location" in changes and changes["store_location"] not in STORE_LOCATIONS:
        raise ValueError(f"Unknown store location: {changes['store_location']}")

    current = _now(now)

    def apply(order: PickupOrder) -> None:
        old_phone = order.customer_phone
        old_location = order.store_location
        for field, value in changes.items():
            setattr(order, field, value)
        order.updated_at = current
        db.flush()
        _move_index(db, INDEX_PHONE, old_phone, order.customer_phone, order.id)
        _move_index(db, INDEX_LOCATION, old_location, order.store_location, order.id)

    return _mutate_order(db, order_id, apply)


def update_order_status(
    db: Session,
    order_id: str,
    new_status: str,
    store_notes: str | None = None,
    *,
    now: datetime | None = None,
    actor: str | None = None,
) -> PickupOrder | None:
    """Move an order to ``new_status``, stamping its timeline and status bucket atomically.

    Raises InvalidTransitionError when the state machine rejects the move.
    Returns None when the order does not exist.
    """
    current = _now(now)

    def apply(order: PickupOrder) -> None:
        before = order_snapshot(order)
        old_status = order.status
        set_status(order, new_status, current)
        if store_notes is not None:
            order.store_notes = store_notes
        order.updated_at = current
        db.flush()
        _move_index(db, INDEX_STATUS, old_status, order.status, order.id)
        log_action(
            db,
            actor=actor,
            action_type="order_status_changed",
            order_id=order.id,
            before_snapshot=before,
            after_snapshot=order_snapshot(order),
        )

    order = _mutate_order(db, order_id, apply)
    if order is not None:
        logger.info("[ORDERS] Order %s moved to %s", order.order_number, order.status)
    return order


def add_communication(
    db: Session,
    order_id: str,
    *,
    direction: str,
    method: str,
    message: str,
    status: str | None = None,
    now: datetime | None = None,
) -> PickupOrder | None:
    """Append a customer-contact event to the order's communication log."""
    current = _now(now)

    def apply(order: PickupOrder) -> None:
        order.communications.append(
            OrderCommunication(
                timestamp=current,
                direction=direction,
                method=method,
                message=message,
                status=status,
            )
        )
        order.updated_at = current

    return _mutate_order(db, order_id, apply)


def delete_order(db: Session, order_id: str, *, actor: str | None = None) -> bool:
    """Purge an order and scrub every index membership it has."""
    with _store_transaction(db):
        order = db.get(PickupOrder, order_id)
        if order is None:
            return False
        before = order_snapshot(order)
        db.execute(delete(_index_table).where(_index_table.c.order_id == order_id))
        db.delete(order)
        log_action(db, actor=actor, action_type="order_deleted", order_id=order_id, before_snapshot=before)
        db.commit()

    logger.info("[ORDERS] Deleted order %s (%s)", before["order_number"], order_id)
    return True


def reconcile_indices(db: Session) -> int:
    """Rebuild index rows that disagree with the order records; return the number of repairs."""
    with _store_transaction(db):
        existing = {
            (row.index_name, row.index_key, row.order_id)
            for row in db.execute(select(_index_table)).all()
        }
        expected = {
            (index_name, index_key, order.id)
            for order in db.scalars(select(PickupOrder)).all()
            for index_name, index_key in _index_memberships(order)
        }
        stale = existing - expected
        missing = expected - existing
        for index_name, index_key, order_id in stale:
            _remove_from_index(db, index_name, index_key, order_id)
        for index_name, index_key, order_id in missing:
            _add_to_index(db, index_name, index_key, order_id)
        db.commit()

    repairs = len(stale) + len(missing)
    if repairs:
        logger.warning("[ORDERS] Reconciled %d index entries (%d stale, %d missing)", repairs, len(stale), len(missing))
    return repairs
