"""Application service: Create Transaction use case."""

from __future__ import annotations

import logging

from till.application.dto import TransactionDTO, transaction_to_dto
from till.domain.model.transaction import Transaction
from till.domain.repository.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class CreateTransactionHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, customer_name: str | None = None) -> TransactionDTO:
        """Open a new, empty transaction with a zero total."""
        transaction = Transaction.create(
            transaction_id=self._transaction_repo.next_id(),
            customer_name=customer_name,
        )
        self._transaction_repo.add(transaction)
        logger.info("Opened transaction %s", transaction.id)
        return transaction_to_dto(transaction, [])
