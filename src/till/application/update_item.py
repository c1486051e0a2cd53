"""Application service: Update / Delete Item use cases."""

from __future__ import annotations

from till.domain.exceptions import EntityNotFoundError, ValidationError
from till.domain.model.catalog import Item
from till.domain.model.value_objects import Money
from till.domain.repository.catalog_repository import CategoryRepository, ItemRepository
from till.domain.repository.transaction_repository import TransactionRepository


class UpdateItemHandler:

    def __init__(
        self,
        item_repo: ItemRepository,
        category_repo: CategoryRepository,
    ) -> None:
        self._item_repo = item_repo
        self._category_repo = category_repo

    def handle(
        self,
        item_id: str,
        name: str | None = None,
        price: str | None = None,
        category_id: str | None = None,
        description: str | None = None,
        sku: str | None = None,
        in_stock: bool | None = None,
    ) -> Item:
        """Partially update an item.

        This does NOT affect lines already on transactions; they
        captured a price snapshot when they were added or updated.
        """
        item = self._item_repo.get_by_id(item_id)
        if item is None:
            raise EntityNotFoundError(f"Item {item_id} not found")

        if category_id is not None and self._category_repo.get_by_id(category_id) is None:
            raise EntityNotFoundError(f"Category {category_id} not found")

        item.update(
            name=name,
            price=Money.of(price) if price is not None else None,
            category_id=category_id,
            description=description,
            sku=sku,
            in_stock=in_stock,
        )
        self._item_repo.save(item)
        return item


class DeleteItemHandler:

    def __init__(
        self,
        item_repo: ItemRepository,
        transaction_repo: TransactionRepository,
    ) -> None:
        self._item_repo = item_repo
        self._transaction_repo = transaction_repo

    def handle(self, item_id: str) -> None:
        # Receipts and reports join lines to their item.
        if self._transaction_repo.has_lines_for_item(item_id):
            raise ValidationError(
                f"Item {item_id} has been sold; mark it out of stock instead"
            )
        if not self._item_repo.delete(item_id):
            raise EntityNotFoundError(f"Item {item_id} not found")
