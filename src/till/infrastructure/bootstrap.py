"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.

The container owns the process-wide resources: the database engine and
the receipt worker. Both are created on first use and released by
``close()``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import cached_property

from sqlalchemy.engine import Engine

from till.application.receipt_dispatcher import ReceiptDispatcher
from till.infrastructure.config import Settings
from till.infrastructure.persistence.database import create_schema, open_engine
from till.infrastructure.persistence.sql_catalog_repository import (
    SqlCategoryRepository,
    SqlItemRepository,
)
from till.infrastructure.persistence.sql_sales_report_query import SqlSalesReportQuery
from till.infrastructure.persistence.sql_transaction_repository import (
    SqlTransactionRepository,
)
from till.infrastructure.printer.escpos_printer import EscPosSerialPrinter

logger = logging.getLogger(__name__)


class Container:

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @cached_property
    def engine(self) -> Engine:
        engine = open_engine(self.settings.database_url)
        create_schema(engine)
        return engine

    @cached_property
    def transaction_repo(self) -> SqlTransactionRepository:
        return SqlTransactionRepository(self.engine)

    @cached_property
    def category_repo(self) -> SqlCategoryRepository:
        return SqlCategoryRepository(self.engine)

    @cached_property
    def item_repo(self) -> SqlItemRepository:
        return SqlItemRepository(self.engine)

    @cached_property
    def report_query(self) -> SqlSalesReportQuery:
        return SqlSalesReportQuery(self.engine)

    @cached_property
    def _receipt_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix="receipt")

    @cached_property
    def receipts(self) -> ReceiptDispatcher | None:
        if not self.settings.printer_enabled:
            return None
        printer = EscPosSerialPrinter(
            port_patterns=self.settings.printer_ports,
            baudrate=self.settings.printer_baudrate,
            timeout=self.settings.printer_timeout,
        )
        return ReceiptDispatcher(
            printer=printer,
            transaction_repo=self.transaction_repo,
            executor=self._receipt_executor,
            timeout=self.settings.printer_timeout,
            mode=self.settings.receipt_mode,
        )

    def close(self) -> None:
        """Release everything that was opened; safe to call repeatedly."""
        executor = self.__dict__.pop("_receipt_executor", None)
        if executor is not None:
            # Lets a detached receipt finish before the engine goes away.
            executor.shutdown(wait=True)
        engine = self.__dict__.pop("engine", None)
        if engine is not None:
            engine.dispose()
            logger.debug("Disposed database engine")
        for name in ("transaction_repo", "category_repo", "item_repo", "report_query", "receipts"):
            self.__dict__.pop(name, None)
