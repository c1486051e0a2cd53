"""Application service: Rename Transaction use case.

Changes the customer name of an open transaction.
"""

from __future__ import annotations

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.domain.exceptions import InvalidStateError
from till.domain.model.transaction import CUSTOMER_FIELDS
from till.domain.repository.transaction_repository import TransactionRepository


class RenameTransactionHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str, customer_name: str | None) -> TransactionDTO:
        transaction = load_transaction(self._transaction_repo, transaction_id)
        transaction.rename(customer_name)

        if not self._transaction_repo.update_if_open(transaction, CUSTOMER_FIELDS):
            raise conflict(
                self._transaction_repo,
                transaction_id,
                InvalidStateError(f"Transaction {transaction_id} could not be renamed"),
            )

        return transaction_to_dto(
            transaction, self._transaction_repo.list_line_details(transaction_id)
        )
