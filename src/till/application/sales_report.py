"""Application service: Sales Report use case (query).

Reports cover closed transactions only, windowed on ``closed_at``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from till.domain.exceptions import ValidationError
from till.domain.model.report import SalesReport
from till.domain.repository.sales_report_query import SalesReportQuery


class SalesReportHandler:

    def __init__(self, report_query: SalesReportQuery) -> None:
        self._report_query = report_query

    def handle(self, start: datetime, end: datetime) -> SalesReport:
        """Report on transactions closed in the half-open window [start, end)."""
        start, end = _utc(start), _utc(end)
        if end <= start:
            raise ValidationError("End date must be after start date")
        return SalesReport.build(
            start=start,
            end=end,
            items=self._report_query.item_sales(start, end),
            transaction_count=self._report_query.closed_transaction_count(start, end),
        )

    def daily(self, now: datetime | None = None) -> SalesReport:
        end = now or datetime.now(timezone.utc)
        return self.handle(end - timedelta(days=1), end)

    def monthly(self, now: datetime | None = None) -> SalesReport:
        end = now or datetime.now(timezone.utc)
        return self.handle(end - timedelta(days=30), end)


def _utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
