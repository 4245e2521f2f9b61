"""Pickup order endpoints."""

import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from pickup_orders.db.session import get_db
from pickup_orders.models import PickupOrder
from pickup_orders.schemas.order import (
    STORE_LOCATIONS,
    CommunicationCreate,
    CommunicationRead,
    OrderDraft,
    OrderFilters,
    OrderItemRead,
    OrderListResponse,
    OrderStats,
    OrderStatusUpdateRequest,
    OrderTimeline,
    OrderUpdate,
    PickupOrderRead,
)
from pickup_orders.services.order_status import ORDER_STATUSES, InvalidTransitionError, TimelineOrderError
from pickup_orders.services.order_store import (
    ConcurrentUpdateError,
    add_communication,
    create_order,
    delete_order,
    get_order_by_id,
    get_order_by_number,
    get_order_stats,
    get_orders,
    update_order,
    update_order_status,
)
from pickup_orders.utils.order_timer import project_to_summary

router: APIRouter = APIRouter()

STAFF_ACTOR: str = "staff"


def serialize_order(order: PickupOrder) -> PickupOrderRead:
    return PickupOrderRead(
        id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        notification_method=order.notification_method,
        items=[OrderItemRead.model_validate(item) for item in order.items],
        subtotal=order.subtotal,
        tax=order.tax,
        total=order.total,
        store_location=order.store_location,
        status=order.status,
        timeline=OrderTimeline(
            placed_at=order.placed_at,
            confirmed_at=order.confirmed_at,
            ready_at=order.ready_at,
            pickup_deadline=order.pickup_deadline,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
        ),
        communications=[CommunicationRead.model_validate(entry) for entry in order.communications],
        customer_notes=order.customer_notes,
        store_notes=order.store_notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _normalize_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def _order_or_404(order: PickupOrder | None) -> PickupOrder:
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("", response_model=PickupOrderRead, status_code=status.HTTP_201_CREATED)
def place_order(payload: OrderDraft, db: Session = Depends(get_db)) -> PickupOrderRead:
    """Accept a priced draft from checkout and return it as a pending order."""
    order = create_order(db, payload)
    return serialize_order(order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    status_value: str | None = Query(default=None, alias="status"),
    location: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    since: datetime | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
) -> OrderListResponse:
    """List orders for the admin board; unknown status or location values are ignored."""
    filters = OrderFilters(date_from=date_from, date_to=date_to, since=since, search_query=search or None)
    if status_value:
        statuses = [value for value in status_value.split(",") if value in ORDER_STATUSES]
        if statuses:
            filters.status = statuses
    if location in STORE_LOCATIONS:
        filters.store_location = location

    orders = get_orders(db, filters)
    summaries = [project_to_summary(order) for order in orders]
    return OrderListResponse(orders=summaries, count=len(summaries))


@router.get("/stats", response_model=OrderStats)
def order_stats(db: Session = Depends(get_db)) -> OrderStats:
    return get_order_stats(db)


@router.get("/track", response_model=PickupOrderRead)
def track_order(
    order_number: str | None = None,
    phone: str | None = None,
    db: Session = Depends(get_db),
) -> PickupOrderRead:
    """Customer-facing lookup by order number, confirmed by phone number."""
    if not order_number or not phone:
        raise HTTPException(status_code=400, detail="Order number and phone number are required")

    order = _order_or_404(get_order_by_number(db, order_number))
    if _normalize_phone(order.customer_phone) != _normalize_phone(phone):
        raise HTTPException(status_code=403, detail="Phone number does not match order")
    return serialize_order(order)


@router.get("/{order_id}", response_model=PickupOrderRead)
def read_order(order_id: str, db: Session = Depends(get_db)) -> PickupOrderRead:
    return serialize_order(_order_or_404(get_order_by_id(db, order_id)))


@router.patch("/{order_id}", response_model=PickupOrderRead)
def edit_order(order_id: str, payload: OrderUpdate, db: Session = Depends(get_db)) -> PickupOrderRead:
    try:
        order = update_order(db, order_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return serialize_order(_order_or_404(order))


@router.post("/{order_id}/status", response_model=PickupOrderRead)
def change_order_status(
    order_id: str,
    payload: OrderStatusUpdateRequest,
    db: Session = Depends(get_db),
) -> PickupOrderRead:
    try:
        order = update_order_status(db, order_id, payload.status, payload.store_notes, actor=STAFF_ACTOR)
    except (InvalidTransitionError, TimelineOrderError, ConcurrentUpdateError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return serialize_order(_order_or_404(order))


@router.post("/{order_id}/communications", response_model=PickupOrderRead)
def log_communication(
    order_id: str,
    payload: CommunicationCreate,
    db: Session = Depends(get_db),
) -> PickupOrderRead:
    try:
        order = add_communication(db, order_id, **payload.model_dump())
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return serialize_order(_order_or_404(order))


@router.delete("/{order_id}")
def purge_order(order_id: str, db: Session = Depends(get_db)) -> dict[str, str]:
    if not delete_order(db, order_id, actor=STAFF_ACTOR):
        raise HTTPException(status_code=404, detail="Order not found")
    return {"message": "Order deleted"}
