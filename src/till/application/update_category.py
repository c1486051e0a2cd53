"""Application service: Update / Delete Category use cases."""

from __future__ import annotations

from till.domain.exceptions import EntityNotFoundError, ValidationError
from till.domain.model.catalog import Category
from till.domain.repository.catalog_repository import CategoryRepository, ItemRepository


class UpdateCategoryHandler:

    def __init__(self, category_repo: CategoryRepository) -> None:
        self._category_repo = category_repo

    def handle(
        self,
        category_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Category:
        category = self._category_repo.get_by_id(category_id)
        if category is None:
            raise EntityNotFoundError(f"Category {category_id} not found")

        category.update(name=name, description=description)
        self._category_repo.save(category)
        return category


class DeleteCategoryHandler:

    def __init__(
        self,
        category_repo: CategoryRepository,
        item_repo: ItemRepository,
    ) -> None:
        self._category_repo = category_repo
        self._item_repo = item_repo

    def handle(self, category_id: str) -> None:
        """Delete an empty category.

        Categories still holding items are kept; move or delete the
        items first.
        """
        items = self._item_repo.list_by_category(category_id)
        if items:
            raise ValidationError(
                f"Category {category_id} still has {len(items)} item(s)"
            )
        if not self._category_repo.delete(category_id):
            raise EntityNotFoundError(f"Category {category_id} not found")
