"""Best-effort receipt emission after a transaction is closed.

Emission runs on a worker from an executor so a slow or missing
printer cannot hold up settlement. Nothing here ever raises into the
caller: every failure is logged and dropped, and nothing is retried.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from enum import Enum

from till.domain.service.receipt import PrinterNotFoundError, Receipt, ReceiptPrinter
from till.domain.repository.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class ReceiptMode(Enum):
    WAIT = "wait"  # caller waits, at most ``timeout`` seconds
    DETACHED = "detached"  # fire-and-forget


class ReceiptDispatcher:

    def __init__(
        self,
        printer: ReceiptPrinter,
        transaction_repo: TransactionRepository,
        executor: Executor,
        timeout: float = 5.0,
        mode: ReceiptMode = ReceiptMode.WAIT,
    ) -> None:
        self._printer = printer
        self._transaction_repo = transaction_repo
        self._executor = executor
        self._timeout = timeout
        self._mode = mode

    def dispatch(self, transaction_id: str) -> None:
        """Queue the receipt of a closed transaction for printing.

        In WAIT mode this returns once the attempt finished or the
        timeout elapsed, whichever comes first. The outcome is never
        reported back.
        """
        try:
            future = self._executor.submit(self._emit, transaction_id)
        except RuntimeError:
            logger.warning(
                "Receipt worker unavailable; no receipt for transaction %s",
                transaction_id,
            )
            return

        if self._mode is ReceiptMode.DETACHED:
            return

        try:
            future.result(timeout=self._timeout)
        except FuturesTimeoutError:
            logger.warning(
                "Receipt for transaction %s still printing after %.1fs; not waiting",
                transaction_id,
                self._timeout,
            )

    def _emit(self, transaction_id: str) -> bool:
        try:
            receipt = self._build(transaction_id)
            if receipt is None:
                return False
            handle = self._printer.discover_printer()
            self._printer.print_receipt(
                handle, receipt.lines, receipt.paid_amount, receipt.change_amount
            )
        except PrinterNotFoundError as exc:
            logger.warning("No receipt for transaction %s: %s", transaction_id, exc)
            return False
        except Exception:  # printing must never affect the sale
            logger.warning(
                "Receipt for transaction %s failed", transaction_id, exc_info=True
            )
            return False

        logger.info("Printed receipt for transaction %s", transaction_id)
        return True

    def _build(self, transaction_id: str) -> Receipt | None:
        transaction = self._transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            logger.warning("Transaction %s not found; no receipt", transaction_id)
            return None
        if transaction.paid_amount is None:
            logger.warning("Transaction %s is not settled; no receipt", transaction_id)
            return None
        return Receipt.for_transaction(
            transaction, self._transaction_repo.list_line_details(transaction_id)
        )
