"""Catalog aggregates: categories and the items sold from them.

The catalog lives independently of transactions. Prices change and
items go in and out of stock; open transactions only ever see the
price captured when a line was added or updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from till.domain.exceptions import ValidationError
from till.domain.model.value_objects import Money


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _required_name(name: str, what: str) -> str:
    if not name or not name.strip():
        raise ValidationError(f"{what} name is required")
    return name.strip()


@dataclass
class Category:
    id: str
    name: str
    description: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @staticmethod
    def create(category_id: str, name: str, description: str | None = None) -> Category:
        return Category(
            id=category_id,
            name=_required_name(name, "Category"),
            description=description,
        )

    def update(self, name: str | None = None, description: str | None = None) -> None:
        if name is not None:
            self.name = _required_name(name, "Category")
        if description is not None:
            self.description = description
        self.updated_at = _now()


@dataclass
class Item:
    """A sellable catalog item.

    ``in_stock`` is a manual toggle; nothing in the system decrements
    stock when items are sold.
    """

    id: str
    name: str
    price: Money
    category_id: str
    description: str | None = None
    sku: str | None = None
    in_stock: bool = True
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @staticmethod
    def create(
        item_id: str,
        name: str,
        price: Money,
        category_id: str,
        description: str | None = None,
        sku: str | None = None,
        in_stock: bool = True,
    ) -> Item:
        return Item(
            id=item_id,
            name=_required_name(name, "Item"),
            price=price,
            category_id=category_id,
            description=description,
            sku=sku,
            in_stock=in_stock,
        )

    def update(
        self,
        name: str | None = None,
        price: Money | None = None,
        category_id: str | None = None,
        description: str | None = None,
        sku: str | None = None,
        in_stock: bool | None = None,
    ) -> None:
        """Apply a partial update; ``None`` leaves a field untouched.

        A price change does NOT affect existing transaction lines, which
        hold their own snapshot of the price.
        """
        if name is not None:
            self.name = _required_name(name, "Item")
        if price is not None:
            self.price = price
        if category_id is not None:
            self.category_id = category_id
        if description is not None:
            self.description = description
        if sku is not None:
            self.sku = sku
        if in_stock is not None:
            self.in_stock = in_stock
        self.updated_at = _now()
