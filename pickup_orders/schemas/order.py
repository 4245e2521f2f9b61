"""Pickup order API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

OrderStatus = Literal["pending", "confirmed", "ready", "picked-up", "no-show", "cancelled"]
StoreLocation = Literal["william-cannon", "cameron-rd"]
ReplacementPreference = Literal["substitute", "refund", "call-me"]
NotificationMethod = Literal["sms", "email"]
CommunicationDirection = Literal["to-customer", "to-store", "from-customer", "from-store"]
CommunicationMethod = Literal["sms", "email", "web", "system"]
CommunicationStatus = Literal["sent", "delivered", "failed"]

STORE_LOCATIONS: tuple[str, ...] = ("william-cannon", "cameron-rd")


class OrderItemDraft(BaseModel):
    """Line item priced by the checkout flow."""

    product_id: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    category: str | None = None
    quantity: int = Field(default=1, ge=1)
    price_per_unit: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)
    replacement_preference: ReplacementPreference = "substitute"


class OrderDraft(BaseModel):
    """Order as handed over by checkout, before the store assigns identity."""

    customer_name: str = Field(min_length=1)
    customer_phone: str = ""
    customer_email: str | None = None
    notification_method: NotificationMethod = "sms"
    items: list[OrderItemDraft] = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)
    tax: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)
    store_location: StoreLocation
    customer_notes: str | None = None

    @model_validator(mode="after")
    def require_contact_for_notification(self) -> "OrderDraft":
        if self.notification_method == "sms" and not self.customer_phone.strip():
            raise ValueError("Phone number is required for SMS notifications")
        if self.notification_method == "email" and not (self.customer_email or "").strip():
            raise ValueError("Email address is required for email notifications")
        return self


class OrderUpdate(BaseModel):
    """Free-field edits; status changes go through the status endpoint."""

    store_notes: str | None = None
    customer_notes: str | None = None
    store_location: StoreLocation | None = None
    customer_name: str | None = Field(default=None, min_length=1)
    customer_phone: str | None = None
    customer_email: str | None = None


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatus
    store_notes: str | None = None


class CommunicationCreate(BaseModel):
    direction: CommunicationDirection
    method: CommunicationMethod
    message: str = Field(min_length=1)
    status: CommunicationStatus | None = None


class OrderFilters(BaseModel):
    """Query filters for order listings."""

    status: OrderStatus | list[OrderStatus] | None = None
    store_location: StoreLocation | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    since: datetime | None = None
    search_query: str | None = None


class OrderTimeline(BaseModel):
    placed_at: datetime
    confirmed_at: datetime | None = None
    ready_at: datetime | None = None
    pickup_deadline: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None


class OrderItemRead(BaseModel):
    product_id: str
    product_name: str
    category: str | None
    quantity: int
    price_per_unit: Decimal
    total_price: Decimal
    replacement_preference: str

    model_config = ConfigDict(from_attributes=True)


class CommunicationRead(BaseModel):
    id: str
    timestamp: datetime
    direction: str
    method: str
    message: str
    status: str | None

    model_config = ConfigDict(from_attributes=True)


class PickupOrderRead(BaseModel):
    """Full order document."""

    id: str
    order_number: str
    customer_name: str
    customer_phone: str
    customer_email: str | None
    notification_method: str
    items: list[OrderItemRead]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    store_location: str
    status: str
    timeline: OrderTimeline
    communications: list[CommunicationRead]
    customer_notes: str | None
    store_notes: str | None
    created_at: datetime
    updated_at: datetime


class OrderSummary(BaseModel):
    """Lightweight listing view of an order."""

    id: str
    order_number: str
    customer_name: str
    customer_phone: str
    status: str
    item_count: int
    total: Decimal
    store_location: str
    created_at: datetime
    pickup_deadline: datetime | None = None
    time_remaining: int | None = None
    is_expiring_soon: bool = False


class OrderListResponse(BaseModel):
    orders: list[OrderSummary]
    count: int


class TodayStats(BaseModel):
    total: int = 0
    pending: int = 0
    ready: int = 0
    picked_up: int = 0
    no_show: int = 0


class WeekStats(BaseModel):
    total: int = 0
    picked_up: int = 0
    no_show: int = 0


class OrderStats(BaseModel):
    today: TodayStats
    this_week: WeekStats
    by_location: dict[str, int]


class SweepFailure(BaseModel):
    order_id: str
    error: str


class SweepResult(BaseModel):
    """Outcome of one expiration sweep."""

    checked: int
    expired: list[str] = Field(default_factory=list)
    failed: list[SweepFailure] = Field(default_factory=list)


class SweepResponse(SweepResult):
    success: bool
    timestamp: datetime
