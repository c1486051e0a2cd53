"""SQL rollup behind the sales reports.

Money columns are read through ``type_coerce(..., Integer)`` so the
aggregates arrive as raw cents rather than through the ``Cents`` type.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, distinct, func, select, type_coerce
from sqlalchemy.engine import Engine

from till.domain.model.report import ItemSales
from till.domain.model.transaction import TransactionStatus
from till.domain.model.value_objects import Money
from till.domain.repository.sales_report_query import SalesReportQuery
from till.infrastructure.persistence.database import store_errors
from till.infrastructure.persistence.schema import (
    categories,
    items,
    transaction_items,
    transactions,
)

_CLOSED = TransactionStatus.CLOSED.value


class SqlSalesReportQuery(SalesReportQuery):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @store_errors()
    def item_sales(self, start: datetime, end: datetime) -> list[ItemSales]:
        ti = transaction_items
        revenue = func.sum(type_coerce(ti.c.total_price, Integer)).label("revenue_cents")
        stmt = (
            select(
                items.c.id.label("item_id"),
                items.c.name.label("item_name"),
                categories.c.name.label("category_name"),
                func.sum(ti.c.quantity).label("quantity_sold"),
                revenue,
                func.avg(type_coerce(ti.c.unit_price, Integer)).label("average_cents"),
                func.count(distinct(ti.c.transaction_id)).label("transaction_count"),
            )
            .select_from(
                ti.join(items, ti.c.item_id == items.c.id)
                .join(categories, items.c.category_id == categories.c.id)
                .join(transactions, ti.c.transaction_id == transactions.c.id)
            )
            .where(*self._window(start, end))
            .group_by(items.c.id, items.c.name, categories.c.name)
            .order_by(revenue.desc(), items.c.name)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        return [
            ItemSales(
                item_id=r["item_id"],
                item_name=r["item_name"],
                category_name=r["category_name"],
                quantity_sold=int(r["quantity_sold"]),
                total_revenue=Money.from_cents(int(r["revenue_cents"])),
                average_price=Money.rounded(
                    Decimal(str(r["average_cents"])).scaleb(-2)
                ),
                transaction_count=int(r["transaction_count"]),
            )
            for r in rows
        ]

    @store_errors()
    def closed_transaction_count(self, start: datetime, end: datetime) -> int:
        with self._engine.connect() as conn:
            count = conn.execute(
                select(func.count(transactions.c.id)).where(*self._window(start, end))
            ).scalar_one()
        return int(count)

    @staticmethod
    def _window(start: datetime, end: datetime) -> tuple:
        return (
            transactions.c.status == _CLOSED,
            transactions.c.closed_at >= start,
            transactions.c.closed_at < end,
        )
