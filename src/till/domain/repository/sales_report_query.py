"""Read-only query contract for the sales reports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from till.domain.model.report import ItemSales


class SalesReportQuery(ABC):

    @abstractmethod
    def item_sales(self, start: datetime, end: datetime) -> list[ItemSales]:
        """Per-item rollup over lines of transactions closed in [start, end).

        Ordered by revenue, highest first.
        """

    @abstractmethod
    def closed_transaction_count(self, start: datetime, end: datetime) -> int:
        """Number of transactions closed in [start, end)."""
