"""Sales report read models.

The rollup itself is done by the store (see ``SalesReportQuery``);
this module only derives the window-level summary from its rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from till.domain.exceptions import ValidationError
from till.domain.model.value_objects import Money


@dataclass(frozen=True)
class ItemSales:
    item_id: str
    item_name: str
    category_name: str
    quantity_sold: int
    total_revenue: Money
    average_price: Money
    transaction_count: int


@dataclass(frozen=True)
class ReportSummary:
    total_revenue: Money
    total_items_sold: int
    total_transactions: int
    average_transaction_value: Money
    top_selling_item: str | None
    top_revenue_item: str | None


@dataclass(frozen=True)
class SalesReport:
    start: datetime
    end: datetime
    items: list[ItemSales]
    summary: ReportSummary

    @staticmethod
    def build(
        start: datetime,
        end: datetime,
        items: list[ItemSales],
        transaction_count: int,
    ) -> SalesReport:
        """Summarise *items* for the window [start, end).

        Ties for the top items go to the row encountered first.
        """
        if end <= start:
            raise ValidationError("End date must be after start date")

        total_revenue = Money.sum(i.total_revenue for i in items)
        total_items = sum(i.quantity_sold for i in items)

        if transaction_count > 0:
            average = Money.rounded(total_revenue.amount / Decimal(transaction_count))
        else:
            average = Money.zero()

        top_selling: ItemSales | None = None
        top_revenue: ItemSales | None = None
        for row in items:
            if top_selling is None or row.quantity_sold > top_selling.quantity_sold:
                top_selling = row
            if top_revenue is None or row.total_revenue > top_revenue.total_revenue:
                top_revenue = row

        summary = ReportSummary(
            total_revenue=total_revenue,
            total_items_sold=total_items,
            total_transactions=transaction_count,
            average_transaction_value=average,
            top_selling_item=top_selling.item_name if top_selling else None,
            top_revenue_item=top_revenue.item_name if top_revenue else None,
        )
        return SalesReport(start=start, end=end, items=list(items), summary=summary)
