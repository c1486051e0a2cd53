"""Application service: Show / List Transactions use cases (queries)."""

from __future__ import annotations

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import load_transaction
from till.domain.exceptions import InvalidStateError
from till.domain.service.receipt import Receipt
from till.domain.repository.transaction_repository import TransactionRepository


class ShowTransactionHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str) -> TransactionDTO:
        transaction = load_transaction(self._transaction_repo, transaction_id)
        return transaction_to_dto(
            transaction, self._transaction_repo.list_line_details(transaction_id)
        )

    def receipt(self, transaction_id: str) -> Receipt:
        """The receipt of a closed transaction, as it would be printed."""
        transaction = load_transaction(self._transaction_repo, transaction_id)
        if transaction.paid_amount is None or transaction.change_amount is None:
            raise InvalidStateError(
                f"Transaction {transaction_id} is {transaction.status.value}; "
                f"only closed transactions have a receipt"
            )
        return Receipt.for_transaction(
            transaction, self._transaction_repo.list_line_details(transaction_id)
        )


class ListTransactionsHandler:

    def __init__(self, transaction_repo: TransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, open_only: bool = False) -> list[TransactionDTO]:
        """Newest first; lines are not loaded."""
        if open_only:
            transactions = self._transaction_repo.list_open()
        else:
            transactions = self._transaction_repo.list_all()
        return [transaction_to_dto(t) for t in transactions]
