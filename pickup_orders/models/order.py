"""Pickup order models, their index entries and the shared order counter."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pickup_orders.db.base import Base
from pickup_orders.db.types import UTCDateTime
from pickup_orders.utils.time import utcnow


class PickupOrder(Base):
    """Customer order awaiting in-store pickup."""

    __tablename__ = "pickup_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: uuid4().hex)
    order_seq: Mapped[int] = mapped_column(Integer, nullable=False)
    order_number: Mapped[str] = mapped_column(String(32), nullable=False)

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notification_method: Mapped[str] = mapped_column(String(16), nullable=False, default="sms")

    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    store_location: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")

    placed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    ready_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    pickup_deadline: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    customer_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    store_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    items: Mapped[list["PickupOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="PickupOrderItem.position",
    )
    communications: Mapped[list["OrderCommunication"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderCommunication.timestamp",
    )

    __table_args__ = (
        Index("uq_pickup_orders_order_seq", "order_seq", unique=True),
        Index("uq_pickup_orders_order_number", "order_number", unique=True),
        Index("ix_pickup_orders_created_at", "created_at"),
    )
    __mapper_args__ = {"version_id_col": version}


class PickupOrderItem(Base):
    """Snapshot of a line item as priced by checkout."""

    __tablename__ = "pickup_order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("pickup_orders.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    replacement_preference: Mapped[str] = mapped_column(String(16), nullable=False, default="substitute")

    order: Mapped[PickupOrder] = relationship(back_populates="items")


class OrderCommunication(Base):
    """Append-only record of a customer-contact event."""

    __tablename__ = "order_communications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: uuid4().hex)
    order_id: Mapped[str] = mapped_column(ForeignKey("pickup_orders.id", ondelete="CASCADE"), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    direction: Mapped[str] = mapped_column(String(16), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str | None] = mapped_column(String(16), nullable=True)

    order: Mapped[PickupOrder] = relationship(back_populates="communications")


class OrderIndexEntry(Base):
    """Membership of an order id in one bucket of a secondary index."""

    __tablename__ = "order_index_entries"

    index_name: Mapped[str] = mapped_column(String(16), primary_key=True)
    index_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    __table_args__ = (Index("ix_order_index_entries_order_id", "order_id"),)


class OrderCounter(Base):
    """Named counter incremented atomically in the database."""

    __tablename__ = "order_counters"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
