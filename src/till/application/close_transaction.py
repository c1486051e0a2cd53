"""Application service: Close Transaction use case (settlement).

Settlement is the durable step: status, payment and change are written
in one conditional update. Only after it has committed is the receipt
handed to the dispatcher, whose outcome never changes the result.
"""

from __future__ import annotations

import logging

from till.application.dto import CloseResultDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.application.receipt_dispatcher import ReceiptDispatcher
from till.domain.exceptions import InvalidStateError
from till.domain.model.transaction import SETTLEMENT_FIELDS
from till.domain.model.value_objects import Money
from till.domain.repository.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class CloseTransactionHandler:

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        receipts: ReceiptDispatcher | None = None,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._receipts = receipts

    def handle(self, transaction_id: str, paid_amount: str) -> CloseResultDTO:
        """Settle an open transaction.

        Steps:
        1. Parse the payment and load the transaction (must be open).
        2. Let the aggregate check the payment and compute the change.
        3. Commit only if the row is still open *and* its total is the
           one the change was computed from.
        4. Dispatch the receipt (best-effort).
        """
        paid = Money.of(paid_amount)

        transaction = load_transaction(self._transaction_repo, transaction_id)
        settled_total = transaction.total
        change = transaction.close(paid)

        if not self._transaction_repo.update_if_open(
            transaction, SETTLEMENT_FIELDS, expected_total=settled_total
        ):
            raise conflict(
                self._transaction_repo,
                transaction_id,
                InvalidStateError(
                    f"Transaction {transaction_id} changed while closing; retry"
                ),
            )

        logger.info(
            "Closed transaction %s: total %s, paid %s, change %s",
            transaction_id,
            settled_total,
            paid,
            change,
        )

        if self._receipts is not None:
            self._receipts.dispatch(transaction_id)

        return CloseResultDTO(
            transaction=transaction_to_dto(
                transaction, self._transaction_repo.list_line_details(transaction_id)
            ),
            change_amount=str(change),
        )
