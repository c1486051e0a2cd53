"""Application service: Add Item use case."""

from __future__ import annotations

from till.domain.exceptions import EntityNotFoundError
from till.domain.model.catalog import Item
from till.domain.model.value_objects import Money
from till.domain.repository.catalog_repository import CategoryRepository, ItemRepository


class AddItemHandler:

    def __init__(
        self,
        item_repo: ItemRepository,
        category_repo: CategoryRepository,
    ) -> None:
        self._item_repo = item_repo
        self._category_repo = category_repo

    def handle(
        self,
        name: str,
        price: str,
        category_id: str,
        description: str | None = None,
        sku: str | None = None,
        in_stock: bool = True,
    ) -> Item:
        """Add a new item to the catalog under an existing category."""
        if self._category_repo.get_by_id(category_id) is None:
            raise EntityNotFoundError(f"Category {category_id} not found")

        item = Item.create(
            item_id=self._item_repo.next_id(),
            name=name,
            price=Money.of(price),
            category_id=category_id,
            description=description,
            sku=sku,
            in_stock=in_stock,
        )
        self._item_repo.save(item)
        return item
