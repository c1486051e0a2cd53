"""Application service: Update Transaction Item use case.

Replaces the quantity of an existing line and re-snapshots the
catalog item's current price.
"""

from __future__ import annotations

from dataclasses import replace

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.domain.exceptions import EntityNotFoundError
from till.domain.model.transaction import TransactionItem
from till.domain.model.value_objects import Quantity
from till.domain.repository.catalog_repository import ItemRepository
from till.domain.repository.transaction_repository import TransactionRepository


class UpdateTransactionItemHandler:

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        item_repo: ItemRepository,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._item_repo = item_repo

    def handle(self, transaction_id: str, item_id: str, quantity: int) -> TransactionDTO:
        qty = Quantity(quantity)

        transaction = load_transaction(self._transaction_repo, transaction_id)
        transaction.ensure_open()

        item = self._item_repo.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundError(f"Item {item_id} not found")

        line_missing = EntityNotFoundError(
            f"Item {item_id} is not on transaction {transaction_id}"
        )
        existing = self._transaction_repo.get_line(transaction_id, item_id)
        if existing is None:
            raise line_missing

        line = TransactionItem.snapshot(
            line_id=existing.id,
            transaction_id=transaction_id,
            item=item,
            quantity=qty,
        )
        if not self._transaction_repo.update_line(
            replace(line, created_at=existing.created_at)
        ):
            raise conflict(self._transaction_repo, transaction_id, line_missing)

        return transaction_to_dto(
            load_transaction(self._transaction_repo, transaction_id),
            self._transaction_repo.list_line_details(transaction_id),
        )
