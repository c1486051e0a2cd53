"""Shared fixtures for tests that run against a real SQL store."""

import pytest

from till.domain.model.catalog import Category, Item
from till.domain.model.value_objects import Money
from till.infrastructure.persistence.database import create_schema, open_engine
from till.infrastructure.persistence.sql_catalog_repository import (
    SqlCategoryRepository,
    SqlItemRepository,
)
from till.infrastructure.persistence.sql_transaction_repository import (
    SqlTransactionRepository,
)


@pytest.fixture
def engine():
    engine = open_engine("sqlite://")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    engine = open_engine(f"sqlite:///{tmp_path / 'till.db'}")
    create_schema(engine)
    yield engine
    engine.dispose()


def seed_catalog(engine) -> SqlItemRepository:
    """Two categories, three items."""
    category_repo = SqlCategoryRepository(engine)
    category_repo.save(Category(id="food", name="Food"))
    category_repo.save(Category(id="drinks", name="Drinks"))

    item_repo = SqlItemRepository(engine)
    item_repo.save(Item(id="bagel", name="Bagel", price=Money.of("5.00"), category_id="food"))
    item_repo.save(Item(id="latte", name="Latte", price=Money.of("7.50"), category_id="drinks"))
    item_repo.save(Item(id="tea", name="Tea", price=Money.of("2.50"), category_id="drinks"))
    return item_repo


@pytest.fixture
def item_repo(engine):
    return seed_catalog(engine)


@pytest.fixture
def transaction_repo(engine, item_repo):
    return SqlTransactionRepository(engine)


@pytest.fixture
def file_transaction_repo(file_engine):
    seed_catalog(file_engine)
    return SqlTransactionRepository(file_engine)
