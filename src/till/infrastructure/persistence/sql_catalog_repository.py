"""SQLAlchemy-backed implementations of the catalog repositories."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine, RowMapping

from till.domain.model.catalog import Category, Item
from till.domain.repository.catalog_repository import CategoryRepository, ItemRepository
from till.infrastructure.persistence.database import store_errors
from till.infrastructure.persistence.schema import categories, items


class SqlCategoryRepository(CategoryRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def next_id(self) -> str:
        return str(uuid.uuid4())

    @store_errors()
    def get_by_id(self, category_id: str) -> Category | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(categories).where(categories.c.id == category_id)
            ).mappings().first()
        return self._to_domain(row) if row is not None else None

    @store_errors()
    def list_all(self) -> list[Category]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(categories).order_by(categories.c.name)
            ).mappings().all()
        return [self._to_domain(r) for r in rows]

    @store_errors()
    def save(self, category: Category) -> None:
        row = self._to_raw(category)
        with self._engine.begin() as conn:
            # Upsert: update if it exists, otherwise insert
            result = conn.execute(
                update(categories).where(categories.c.id == category.id).values(**row)
            )
            if result.rowcount == 0:
                conn.execute(insert(categories).values(id=category.id, **row))

    @store_errors()
    def delete(self, category_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(categories).where(categories.c.id == category_id))
        return result.rowcount > 0

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(category: Category) -> dict:
        return {
            "name": category.name,
            "description": category.description,
            "created_at": category.created_at,
            "updated_at": category.updated_at,
        }

    @staticmethod
    def _to_domain(row: RowMapping) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class SqlItemRepository(ItemRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def next_id(self) -> str:
        return str(uuid.uuid4())

    @store_errors()
    def get_by_id(self, item_id: str) -> Item | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(items).where(items.c.id == item_id)
            ).mappings().first()
        return self._to_domain(row) if row is not None else None

    @store_errors()
    def list_all(self) -> list[Item]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(items).order_by(items.c.name)).mappings().all()
        return [self._to_domain(r) for r in rows]

    @store_errors()
    def list_by_category(self, category_id: str) -> list[Item]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(items)
                .where(items.c.category_id == category_id)
                .order_by(items.c.name)
            ).mappings().all()
        return [self._to_domain(r) for r in rows]

    @store_errors()
    def save(self, item: Item) -> None:
        row = self._to_raw(item)
        with self._engine.begin() as conn:
            result = conn.execute(update(items).where(items.c.id == item.id).values(**row))
            if result.rowcount == 0:
                conn.execute(insert(items).values(id=item.id, **row))

    @store_errors()
    def delete(self, item_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(items).where(items.c.id == item_id))
        return result.rowcount > 0

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(item: Item) -> dict:
        return {
            "name": item.name,
            "description": item.description,
            "price": item.price,
            "category_id": item.category_id,
            "sku": item.sku,
            "in_stock": item.in_stock,
            "created_at": item.created_at,
            "updated_at": item.updated_at,
        }

    @staticmethod
    def _to_domain(row: RowMapping) -> Item:
        return Item(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            category_id=row["category_id"],
            description=row["description"],
            sku=row["sku"],
            in_stock=bool(row["in_stock"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
