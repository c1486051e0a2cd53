"""Abstract repositories for the catalog aggregates.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure
layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from till.domain.model.catalog import Category, Item


class CategoryRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a new unique category ID."""

    @abstractmethod
    def get_by_id(self, category_id: str) -> Category | None:
        """Return a category by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Category]:
        """Return every category, ordered by name."""

    @abstractmethod
    def save(self, category: Category) -> None:
        """Persist a new or updated category."""

    @abstractmethod
    def delete(self, category_id: str) -> bool:
        """Delete a category; return False if it did not exist."""


class ItemRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a new unique item ID."""

    @abstractmethod
    def get_by_id(self, item_id: str) -> Item | None:
        """Return an item by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Item]:
        """Return every item, ordered by name."""

    @abstractmethod
    def list_by_category(self, category_id: str) -> list[Item]:
        """Return the items of one category, ordered by name."""

    @abstractmethod
    def save(self, item: Item) -> None:
        """Persist a new or updated item."""

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        """Delete an item; return False if it did not exist."""
