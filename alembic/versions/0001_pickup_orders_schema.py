"""pickup orders schema

Revision ID: 0001_pickup_orders
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_pickup_orders"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pickup_orders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("order_seq", sa.Integer(), nullable=False),
        sa.Column("order_number", sa.String(length=32), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("notification_method", sa.String(length=16), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("store_location", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("placed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pickup_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("customer_notes", sa.Text(), nullable=True),
        sa.Column("store_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
    )
    op.create_index("uq_pickup_orders_order_seq", "pickup_orders", ["order_seq"], unique=True)
    op.create_index("uq_pickup_orders_order_number", "pickup_orders", ["order_number"], unique=True)
    op.create_index("ix_pickup_orders_created_at", "pickup_orders", ["created_at"])

    op.create_table(
        "pickup_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("pickup_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("product_id", sa.String(length=64), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("price_per_unit", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("replacement_preference", sa.String(length=16), nullable=False),
    )
    op.create_table(
        "order_communications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("pickup_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("direction", sa.String(length=16), nullable=False),
        sa.Column("method", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=True),
    )
    op.create_table(
        "order_index_entries",
        sa.Column("index_name", sa.String(length=16), primary_key=True),
        sa.Column("index_key", sa.String(length=64), primary_key=True),
        sa.Column("order_id", sa.String(length=36), primary_key=True),
    )
    op.create_index("ix_order_index_entries_order_id", "order_index_entries", ["order_id"])

    op.create_table(
        "order_counters",
        sa.Column("name", sa.String(length=32), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.execute("INSERT INTO order_counters (name, value) VALUES ('orders', 0)")

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_identifier", sa.String(length=255), nullable=False),
        sa.Column("action_type", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=True),
        sa.Column("before_snapshot", sa.JSON(), nullable=True),
        sa.Column("after_snapshot", sa.JSON(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("order_counters")
    op.drop_index("ix_order_index_entries_order_id", table_name="order_index_entries")
    op.drop_table("order_index_entries")
    op.drop_table("order_communications")
    op.drop_table("pickup_order_items")
    op.drop_index("ix_pickup_orders_created_at", table_name="pickup_orders")
    op.drop_index("uq_pickup_orders_order_number", table_name="pickup_orders")
    op.drop_index("uq_pickup_orders_order_seq", table_name="pickup_orders")
    op.drop_table("pickup_orders")
