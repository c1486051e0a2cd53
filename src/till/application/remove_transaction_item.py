"""Application service: Remove Transaction Item use case."""

from __future__ import annotations

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.domain.exceptions import EntityNotFoundError
from till.domain.repository.transaction_repository import TransactionRepository


class RemoveTransactionItemHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str, item_id: str) -> TransactionDTO:
        transaction = load_transaction(self._transaction_repo, transaction_id)
        transaction.ensure_open()

        if not self._transaction_repo.delete_line(transaction_id, item_id):
            raise conflict(
                self._transaction_repo,
                transaction_id,
                EntityNotFoundError(
                    f"Item {item_id} is not on transaction {transaction_id}"
                ),
            )

        return transaction_to_dto(
            load_transaction(self._transaction_repo, transaction_id),
            self._transaction_repo.list_line_details(transaction_id),
        )
