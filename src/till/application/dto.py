"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from till.domain.model.transaction import LineDetail, Transaction
from till.domain.model.value_objects import Money

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


@dataclass(frozen=True)
class TransactionLineDTO:
    """Output: a single line as displayed to the user."""

    item_id: str
    item_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str


@dataclass(frozen=True)
class TransactionDTO:
    """Output: a transaction, with its lines when they were loaded."""

    id: str
    customer_name: str | None
    status: str
    total: str
    paid_amount: str | None
    change_amount: str | None
    created_at: str
    updated_at: str
    closed_at: str | None
    items: list[TransactionLineDTO] = field(default_factory=list)


@dataclass(frozen=True)
class CloseResultDTO:
    """Output: a settled transaction and the change due."""

    transaction: TransactionDTO
    change_amount: str


def _money(value: Money | None) -> str | None:
    return None if value is None else str(value)


def _stamp(value: datetime | None) -> str | None:
    return None if value is None else value.strftime(TIMESTAMP_FORMAT)


def transaction_to_dto(
    transaction: Transaction,
    lines: list[LineDetail] | None = None,
) -> TransactionDTO:
    return TransactionDTO(
        id=transaction.id,
        customer_name=transaction.customer_name,
        status=transaction.status.value,
        total=str(transaction.total),
        paid_amount=_money(transaction.paid_amount),
        change_amount=_money(transaction.change_amount),
        created_at=_stamp(transaction.created_at),  # type: ignore[arg-type]
        updated_at=_stamp(transaction.updated_at),  # type: ignore[arg-type]
        closed_at=_stamp(transaction.closed_at),
        items=[
            TransactionLineDTO(
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                unit_price=str(line.unit_price),
                line_total=str(line.total_price),
            )
            for line in lines or []
        ],
    )
