"""Transaction aggregate — the core of the domain.

A Transaction is one sale at the till. It starts ``open``, collects
line items, and ends either ``closed`` (settled with a payment) or
``cancelled``. Both end states are terminal.

Every guard lives here so the application layer can fail fast before
issuing any write. The store repeats the open-status check atomically
when the write happens (see ``TransactionRepository.update_if_open``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from till.domain.exceptions import (
    InsufficientPaymentError,
    InvalidStateError,
    UnavailableError,
)
from till.domain.model.catalog import Item
from till.domain.model.value_objects import Money, Quantity


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TransactionStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.OPEN


# Columns written by each kind of change to an open transaction. Close
# and cancel never touch the customer; a rename never touches payment.
SETTLEMENT_FIELDS = frozenset(
    {"status", "paid_amount", "change_amount", "closed_at", "updated_at"}
)
CUSTOMER_FIELDS = frozenset({"customer_name", "updated_at"})


@dataclass
class TransactionItem:
    """One catalog item on a transaction.

    ``unit_price`` is a snapshot taken when the line was added or last
    updated; later catalog price changes never reach it.
    """

    id: str
    transaction_id: str
    item_id: str
    quantity: Quantity
    unit_price: Money
    created_at: datetime = field(default_factory=_now)

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity.value

    @staticmethod
    def snapshot(
        line_id: str,
        transaction_id: str,
        item: Item,
        quantity: Quantity,
    ) -> TransactionItem:
        """Build a line from the item's *current* price."""
        if not item.in_stock:
            raise UnavailableError(f"Item '{item.name}' is out of stock")
        return TransactionItem(
            id=line_id,
            transaction_id=transaction_id,
            item_id=item.id,
            quantity=quantity,
            unit_price=item.price,
        )


@dataclass(frozen=True)
class LineDetail:
    """Read model: a line joined with its catalog item's name."""

    id: str
    item_id: str
    item_name: str
    quantity: int
    unit_price: Money
    total_price: Money


@dataclass
class Transaction:
    """Aggregate root for a sale.

    Invariants:
    - ``total`` equals the sum of the lines' ``total_price``; it is only
      ever assigned by ``apply_total``.
    - ``paid_amount``, ``change_amount`` and ``closed_at`` are set if and
      only if the status is ``closed``.
    - Once terminal, nothing on the transaction changes again.
    """

    id: str
    customer_name: str | None = None
    status: TransactionStatus = TransactionStatus.OPEN
    total: Money = field(default_factory=Money.zero)
    paid_amount: Money | None = None
    change_amount: Money | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    closed_at: datetime | None = None

    # --- Factory (used for NEW transactions only) ----------------------------

    @staticmethod
    def create(transaction_id: str, customer_name: str | None = None) -> Transaction:
        now = _now()
        return Transaction(
            id=transaction_id,
            customer_name=_clean_name(customer_name),
            created_at=now,
            updated_at=now,
        )

    # --- Guards ---------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.status is TransactionStatus.OPEN

    def ensure_open(self) -> None:
        if not self.is_open:
            raise InvalidStateError(
                f"Transaction {self.id} is {self.status.value}, expected open"
            )

    # --- State transitions ----------------------------------------------------

    def rename(self, customer_name: str | None, now: datetime | None = None) -> None:
        self.ensure_open()
        self.customer_name = _clean_name(customer_name)
        self.updated_at = now or _now()

    def apply_total(self, lines: list[TransactionItem], now: datetime | None = None) -> None:
        """Recompute ``total`` from scratch over the current lines."""
        self.total = Money.sum(line.total_price for line in lines)
        self.updated_at = now or _now()

    def close(self, paid_amount: Money, now: datetime | None = None) -> Money:
        """Transition open -> closed and return the change due."""
        self.ensure_open()
        if paid_amount < self.total:
            raise InsufficientPaymentError(
                f"Insufficient payment: paid {paid_amount}, total is {self.total}"
            )
        change = paid_amount - self.total
        now = now or _now()
        self.status = TransactionStatus.CLOSED
        self.paid_amount = paid_amount
        self.change_amount = change
        self.closed_at = now
        self.updated_at = now
        return change

    def cancel(self, now: datetime | None = None) -> None:
        """Transition open -> cancelled. Payment fields stay unset."""
        self.ensure_open()
        self.status = TransactionStatus.CANCELLED
        self.updated_at = now or _now()


def _clean_name(name: str | None) -> str | None:
    if name is None:
        return None
    return name.strip() or None
