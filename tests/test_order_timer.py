"""Pickup countdown and listing projection tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pickup_orders.models import PickupOrder, PickupOrderItem
from pickup_orders.utils.order_timer import (
    format_remaining_time,
    get_remaining_time,
    is_order_expiring_soon,
    is_pickup_expired,
    pickup_deadline_for,
    project_to_summary,
    remaining_ms,
)

READY_AT = datetime(2026, 10, 17, 15, 0, tzinfo=timezone.utc)
DEADLINE = READY_AT + timedelta(hours=1)


def _ready_order(pickup_deadline: datetime | None = DEADLINE, status: str = "ready") -> PickupOrder:
    return PickupOrder(
        id="order-1",
        order_seq=7,
        order_number="ZS-000007",
        customer_name="Jamie Rivera",
        customer_phone="+15125550100",
        status=status,
        store_location="cameron-rd",
        total=Decimal("42.50"),
        placed_at=READY_AT - timedelta(minutes=20),
        created_at=READY_AT - timedelta(minutes=20),
        ready_at=READY_AT if pickup_deadline is not None else None,
        pickup_deadline=pickup_deadline,
        items=[
            PickupOrderItem(product_id="p-1", product_name="Glass Pipe", quantity=2,
                            price_per_unit=Decimal("15.00"), total_price=Decimal("30.00")),
            PickupOrderItem(product_id="p-2", product_name="Lighter", quantity=1,
                            price_per_unit=Decimal("9.26"), total_price=Decimal("9.26")),
        ],
    )


def test_deadline_is_one_hour_after_ready() -> None:
    assert pickup_deadline_for(READY_AT) - READY_AT == timedelta(milliseconds=3_600_000)


def test_remaining_time_boundary() -> None:
    """One millisecond before the deadline there is time left; at the deadline there is none."""
    assert get_remaining_time(READY_AT, DEADLINE - timedelta(milliseconds=1)) == 1
    assert get_remaining_time(READY_AT, DEADLINE) is None
    assert get_remaining_time(READY_AT, DEADLINE + timedelta(minutes=5)) is None
    assert get_remaining_time(READY_AT, READY_AT) == 3_600_000


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive_ready_at = READY_AT.replace(tzinfo=None)

    assert get_remaining_time(naive_ready_at, READY_AT + timedelta(minutes=30)) == 30 * 60 * 1000


def test_format_remaining_time() -> None:
    assert format_remaining_time(READY_AT, READY_AT + timedelta(minutes=10, seconds=30)) == "49 min 30 sec"
    assert format_remaining_time(READY_AT, DEADLINE - timedelta(seconds=45)) == "45 sec"
    assert format_remaining_time(READY_AT, DEADLINE) == "Expired"


def test_expiring_soon_window() -> None:
    assert not is_order_expiring_soon(READY_AT, DEADLINE - timedelta(minutes=15))
    assert is_order_expiring_soon(READY_AT, DEADLINE - timedelta(minutes=15) + timedelta(milliseconds=1))
    assert is_order_expiring_soon(READY_AT, DEADLINE - timedelta(seconds=1))
    assert not is_order_expiring_soon(READY_AT, DEADLINE)


def test_is_pickup_expired() -> None:
    assert not is_pickup_expired(DEADLINE, DEADLINE - timedelta(milliseconds=1))
    assert is_pickup_expired(DEADLINE, DEADLINE)


def test_sub_millisecond_remainder_is_still_open() -> None:
    almost = DEADLINE - timedelta(microseconds=500)

    assert not is_pickup_expired(DEADLINE, almost)
    assert get_remaining_time(READY_AT, almost) == 1
    assert remaining_ms(DEADLINE, DEADLINE - timedelta(milliseconds=2, microseconds=1)) == 3
    assert format_remaining_time(READY_AT, almost) == "0 sec"


def test_summary_for_ready_order_counts_down_from_stored_deadline() -> None:
    summary = project_to_summary(_ready_order(), READY_AT + timedelta(minutes=50))

    assert summary.order_number == "ZS-000007"
    assert summary.item_count == 3
    assert summary.total == Decimal("42.50")
    assert summary.pickup_deadline == DEADLINE
    assert summary.time_remaining == 10
    assert summary.is_expiring_soon is True


def test_summary_agrees_with_remaining_time() -> None:
    order = _ready_order()
    for minutes in (0, 1, 14, 44, 45, 59):
        now = READY_AT + timedelta(minutes=minutes, seconds=30)
        summary = project_to_summary(order, now)
        remaining = get_remaining_time(order.ready_at, now)

        assert remaining == remaining_ms(order.pickup_deadline, now)
        assert summary.time_remaining == remaining // 60_000
        assert summary.is_expiring_soon == is_order_expiring_soon(order.ready_at, now)


def test_summary_for_expired_ready_order() -> None:
    summary = project_to_summary(_ready_order(), DEADLINE + timedelta(minutes=1))

    assert summary.time_remaining == 0
    assert summary.is_expiring_soon is False


def test_summary_for_pending_order_has_no_countdown() -> None:
    summary = project_to_summary(_ready_order(pickup_deadline=None, status="pending"), READY_AT)

    assert summary.time_remaining is None
    assert summary.is_expiring_soon is False
    assert summary.pickup_deadline is None
