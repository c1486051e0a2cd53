"""SQLAlchemy-backed implementation of TransactionRepository.

Every write that needs the transaction to be open starts by *claiming*
the row: a single ``UPDATE ... WHERE id = :id AND status = 'open'``
that touches ``updated_at``. If no row is affected the write stops
there. Otherwise the claimed row stays locked until commit, so line
changes and the total recomputation that follows cannot interleave
with a concurrent close or cancel of the same transaction.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import AbstractSet

from sqlalchemy import and_, delete, exists, insert, select, update
from sqlalchemy.engine import Connection, Engine, RowMapping

from till.domain.model.transaction import (
    LineDetail,
    Transaction,
    TransactionItem,
    TransactionStatus,
)
from till.domain.model.value_objects import Money, Quantity
from till.domain.repository.transaction_repository import TransactionRepository
from till.infrastructure.persistence.database import store_errors
from till.infrastructure.persistence.schema import items, transaction_items, transactions

_OPEN = TransactionStatus.OPEN.value


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SqlTransactionRepository(TransactionRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def next_id(self) -> str:
        return str(uuid.uuid4())

    def next_line_id(self) -> str:
        return str(uuid.uuid4())

    # --- Transactions ---------------------------------------------------------

    @store_errors()
    def add(self, transaction: Transaction) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                insert(transactions).values(
                    id=transaction.id,
                    total=transaction.total,
                    created_at=transaction.created_at,
                    **self._mutable_fields(transaction),
                )
            )

    @store_errors()
    def get_by_id(self, transaction_id: str) -> Transaction | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(transactions).where(transactions.c.id == transaction_id)
            ).mappings().first()
        return self._to_domain(row) if row is not None else None

    @store_errors()
    def list_all(self) -> list[Transaction]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(transactions).order_by(transactions.c.created_at.desc())
            ).mappings().all()
        return [self._to_domain(r) for r in rows]

    @store_errors()
    def list_open(self) -> list[Transaction]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(transactions)
                .where(transactions.c.status == _OPEN)
                .order_by(transactions.c.created_at.desc())
            ).mappings().all()
        return [self._to_domain(r) for r in rows]

    @store_errors()
    def update_if_open(
        self,
        transaction: Transaction,
        fields: AbstractSet[str],
        expected_total: Money | None = None,
    ) -> bool:
        row = self._mutable_fields(transaction)
        unknown = set(fields) - row.keys()
        if unknown:
            raise ValueError(f"Not writable by update_if_open: {sorted(unknown)}")
        conditions = []
        if expected_total is not None:
            conditions.append(transactions.c.total == expected_total)
        values = {name: row[name] for name in fields}
        with self._engine.begin() as conn:
            return self._claim(conn, transaction.id, values, *conditions)

    # --- Lines ----------------------------------------------------------------

    @store_errors()
    def get_line(self, transaction_id: str, item_id: str) -> TransactionItem | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(transaction_items).where(
                    transaction_items.c.transaction_id == transaction_id,
                    transaction_items.c.item_id == item_id,
                )
            ).mappings().first()
        return self._line_to_domain(row) if row is not None else None

    @store_errors()
    def list_lines(self, transaction_id: str) -> list[TransactionItem]:
        with self._engine.connect() as conn:
            rows = self._select_lines(conn, transaction_id)
        return [self._line_to_domain(r) for r in rows]

    @store_errors()
    def list_line_details(self, transaction_id: str) -> list[LineDetail]:
        ti = transaction_items
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(
                    ti.c.id,
                    ti.c.item_id,
                    items.c.name.label("item_name"),
                    ti.c.quantity,
                    ti.c.unit_price,
                    ti.c.total_price,
                )
                .select_from(ti.join(items, ti.c.item_id == items.c.id))
                .where(ti.c.transaction_id == transaction_id)
                .order_by(ti.c.created_at, ti.c.id)
            ).mappings().all()
        return [
            LineDetail(
                id=r["id"],
                item_id=r["item_id"],
                item_name=r["item_name"],
                quantity=r["quantity"],
                unit_price=r["unit_price"],
                total_price=r["total_price"],
            )
            for r in rows
        ]

    @store_errors()
    def has_lines_for_item(self, item_id: str) -> bool:
        with self._engine.connect() as conn:
            return bool(
                conn.execute(
                    select(exists().where(transaction_items.c.item_id == item_id))
                ).scalar()
            )

    @store_errors()
    def add_line(self, line: TransactionItem) -> bool:
        now = _now()
        match = self._line_match(line.transaction_id, line.item_id)
        with self._engine.begin() as conn:
            if not self._claim(
                conn, line.transaction_id, {"updated_at": now}, ~exists().where(match)
            ):
                return False
            conn.execute(insert(transaction_items).values(**self._line_to_row(line)))
            self._recompute(conn, line.transaction_id, now)
        return True

    @store_errors()
    def update_line(self, line: TransactionItem) -> bool:
        now = _now()
        match = self._line_match(line.transaction_id, line.item_id)
        with self._engine.begin() as conn:
            if not self._claim(
                conn, line.transaction_id, {"updated_at": now}, exists().where(match)
            ):
                return False
            conn.execute(
                update(transaction_items)
                .where(match)
                .values(
                    quantity=line.quantity.value,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                )
            )
            self._recompute(conn, line.transaction_id, now)
        return True

    @store_errors()
    def delete_line(self, transaction_id: str, item_id: str) -> bool:
        now = _now()
        match = self._line_match(transaction_id, item_id)
        with self._engine.begin() as conn:
            if not self._claim(
                conn, transaction_id, {"updated_at": now}, exists().where(match)
            ):
                return False
            conn.execute(delete(transaction_items).where(match))
            self._recompute(conn, transaction_id, now)
        return True

    @store_errors()
    def recompute_total(self, transaction_id: str) -> Money | None:
        with self._engine.begin() as conn:
            found = conn.execute(
                select(transactions.c.id).where(transactions.c.id == transaction_id)
            ).first()
            if found is None:
                return None
            return self._recompute(conn, transaction_id, _now())

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _claim(conn: Connection, transaction_id: str, values: dict, *conditions) -> bool:
        """The conditional update: write *values* only while still open."""
        result = conn.execute(
            update(transactions)
            .where(
                transactions.c.id == transaction_id,
                transactions.c.status == _OPEN,
                *conditions,
            )
            .values(**values)
        )
        return result.rowcount == 1

    def _recompute(self, conn: Connection, transaction_id: str, now: datetime) -> Money:
        total = Money.sum(
            r["total_price"] for r in self._select_lines(conn, transaction_id)
        )
        conn.execute(
            update(transactions)
            .where(transactions.c.id == transaction_id)
            .values(total=total, updated_at=now)
        )
        return total

    @staticmethod
    def _select_lines(conn: Connection, transaction_id: str):
        return conn.execute(
            select(transaction_items)
            .where(transaction_items.c.transaction_id == transaction_id)
            .order_by(transaction_items.c.created_at, transaction_items.c.id)
        ).mappings().all()

    @staticmethod
    def _line_match(transaction_id: str, item_id: str):
        return and_(
            transaction_items.c.transaction_id == transaction_id,
            transaction_items.c.item_id == item_id,
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _mutable_fields(transaction: Transaction) -> dict:
        return {
            "customer_name": transaction.customer_name,
            "status": transaction.status.value,
            "paid_amount": transaction.paid_amount,
            "change_amount": transaction.change_amount,
            "updated_at": transaction.updated_at,
            "closed_at": transaction.closed_at,
        }

    @staticmethod
    def _to_domain(row: RowMapping) -> Transaction:
        return Transaction(
            id=row["id"],
            customer_name=row["customer_name"],
            status=TransactionStatus(row["status"]),
            total=row["total"],
            paid_amount=row["paid_amount"],
            change_amount=row["change_amount"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            closed_at=row["closed_at"],
        )

    @staticmethod
    def _line_to_row(line: TransactionItem) -> dict:
        return {
            "id": line.id,
            "transaction_id": line.transaction_id,
            "item_id": line.item_id,
            "quantity": line.quantity.value,
            "unit_price": line.unit_price,
            "total_price": line.total_price,
            "created_at": line.created_at,
        }

    @staticmethod
    def _line_to_domain(row: RowMapping) -> TransactionItem:
        return TransactionItem(
            id=row["id"],
            transaction_id=row["transaction_id"],
            item_id=row["item_id"],
            quantity=Quantity(row["quantity"]),
            unit_price=row["unit_price"],
            created_at=row["created_at"],
        )
