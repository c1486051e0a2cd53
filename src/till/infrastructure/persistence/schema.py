"""Relational schema for the till, as SQLAlchemy Core tables.

Money is stored as integer cents and timestamps as naive UTC, so every
backend (SQLite included) compares and sums them exactly.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeDecorator

from till.domain.model.value_objects import Money


class Cents(TypeDecorator):
    """``Money`` <-> integer number of cents."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return value.cents

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Money.from_cents(int(value))


class UTCDateTime(TypeDecorator):
    """Aware UTC ``datetime`` stored without a zone, read back as UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        return value.replace(tzinfo=timezone.utc)


metadata = MetaData()

categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)

items = Table(
    "items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("price", Cents, nullable=False),
    Column("category_id", String(36), ForeignKey("categories.id"), nullable=False),
    Column("sku", Text),
    Column("in_stock", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Index("idx_items_category_id", "category_id"),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("customer_name", Text),
    Column("status", String(16), nullable=False),
    Column("total", Cents, nullable=False),
    Column("paid_amount", Cents),
    Column("change_amount", Cents),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Column("closed_at", UTCDateTime),
    CheckConstraint(
        "status IN ('open', 'closed', 'cancelled')", name="ck_transactions_status"
    ),
    Index("idx_transactions_status", "status"),
    Index("idx_transactions_customer_name", "customer_name"),
)

transaction_items = Table(
    "transaction_items",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "transaction_id",
        String(36),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("item_id", String(36), ForeignKey("items.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Cents, nullable=False),
    Column("total_price", Cents, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    UniqueConstraint("transaction_id", "item_id", name="uq_transaction_items_line"),
    Index("idx_transaction_items_transaction_id", "transaction_id"),
    Index("idx_transaction_items_item_id", "item_id"),
)
