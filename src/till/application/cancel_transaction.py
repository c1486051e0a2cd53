"""Application service: Cancel Transaction use case.

Open transactions can be cancelled; no payment fields are touched and
the lines stay attached as a record of what was rung up.
"""

from __future__ import annotations

import logging

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.domain.exceptions import InvalidStateError
from till.domain.model.transaction import SETTLEMENT_FIELDS
from till.domain.repository.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class CancelTransactionHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str) -> TransactionDTO:
        transaction = load_transaction(self._transaction_repo, transaction_id)
        transaction.cancel()

        if not self._transaction_repo.update_if_open(transaction, SETTLEMENT_FIELDS):
            raise conflict(
                self._transaction_repo,
                transaction_id,
                InvalidStateError(f"Transaction {transaction_id} could not be cancelled"),
            )

        logger.info("Cancelled transaction %s", transaction_id)
        return transaction_to_dto(
            transaction, self._transaction_repo.list_line_details(transaction_id)
        )
