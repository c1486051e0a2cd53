"""Application service: Add Category use case."""

from __future__ import annotations

from till.domain.model.catalog import Category
from till.domain.repository.catalog_repository import CategoryRepository


class AddCategoryHandler:

    def __init__(self, category_repo: CategoryRepository) -> None:
        self._category_repo = category_repo

    def handle(self, name: str, description: str | None = None) -> Category:
        category = Category.create(
            category_id=self._category_repo.next_id(),
            name=name,
            description=description,
        )
        self._category_repo.save(category)
        return category
