"""Application service: Add Transaction Item use case.

Snapshots the catalog item's current price onto a new line and lets
the store recompute the transaction total from its lines.
"""

from __future__ import annotations

import logging

from till.application.dto import TransactionDTO, transaction_to_dto
from till.application.lookup import conflict, load_transaction
from till.domain.exceptions import EntityNotFoundError, ValidationError
from till.domain.model.transaction import TransactionItem
from till.domain.model.value_objects import Quantity
from till.domain.repository.catalog_repository import ItemRepository
from till.domain.repository.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class AddTransactionItemHandler:

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        item_repo: ItemRepository,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._item_repo = item_repo

    def handle(self, transaction_id: str, item_id: str, quantity: int) -> TransactionDTO:
        """Add *quantity* units of a catalog item to an open transaction.

        Steps:
        1. Validate the quantity and that the transaction is open.
        2. Resolve the catalog item (must exist and be in stock).
        3. Build the line with the item's *current* price (snapshot).
        4. Attach it through a conditional write. Losing a race against
           a close or cancel surfaces as InvalidStateError; losing one
           against another add of the same item as ValidationError.
        """
        qty = Quantity(quantity)

        transaction = load_transaction(self._transaction_repo, transaction_id)
        transaction.ensure_open()

        item = self._item_repo.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundError(f"Item {item_id} not found")

        duplicate = ValidationError(
            f"Item '{item.name}' is already on transaction {transaction_id}; "
            f"update its quantity instead"
        )
        if self._transaction_repo.get_line(transaction_id, item_id) is not None:
            raise duplicate

        line = TransactionItem.snapshot(
            line_id=self._transaction_repo.next_line_id(),
            transaction_id=transaction_id,
            item=item,
            quantity=qty,
        )

        if not self._transaction_repo.add_line(line):
            raise conflict(self._transaction_repo, transaction_id, duplicate)

        logger.info(
            "Added %s x %s to transaction %s", qty, item.name, transaction_id
        )
        return transaction_to_dto(
            load_transaction(self._transaction_repo, transaction_id),
            self._transaction_repo.list_line_details(transaction_id),
        )
