"""Abstract repository for the Transaction aggregate and its lines.

Every write that depends on the transaction still being open is
expressed as a conditional update on the store: it only applies while
``status = 'open'`` and reports whether a row was affected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet

from till.domain.model.transaction import (
    LineDetail,
    Transaction,
    TransactionItem,
)
from till.domain.model.value_objects import Money


class TransactionRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a new unique transaction ID."""

    @abstractmethod
    def next_line_id(self) -> str:
        """Generate a new unique line ID."""

    # --- Transactions ---------------------------------------------------------

    @abstractmethod
    def add(self, transaction: Transaction) -> None:
        """Insert a newly created transaction."""

    @abstractmethod
    def get_by_id(self, transaction_id: str) -> Transaction | None:
        """Return a transaction by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Transaction]:
        """Return every transaction, newest first."""

    @abstractmethod
    def list_open(self) -> list[Transaction]:
        """Return the open transactions, newest first."""

    @abstractmethod
    def update_if_open(
        self,
        transaction: Transaction,
        fields: AbstractSet[str],
        expected_total: Money | None = None,
    ) -> bool:
        """Write the named *fields* of the transaction if it is still open.

        *fields* is a subset of ``customer_name``, ``status``,
        ``paid_amount``, ``change_amount``, ``closed_at`` and
        ``updated_at`` (see ``SETTLEMENT_FIELDS`` and ``CUSTOMER_FIELDS``);
        ``total`` is never written. Columns outside *fields* keep their
        stored value. When *expected_total* is given the stored total
        must also still match it. Returns True if a row was affected.
        """

    # --- Lines ----------------------------------------------------------------

    @abstractmethod
    def get_line(self, transaction_id: str, item_id: str) -> TransactionItem | None:
        """Return the line for (transaction, item), or None."""

    @abstractmethod
    def list_lines(self, transaction_id: str) -> list[TransactionItem]:
        """Return the current lines of a transaction."""

    @abstractmethod
    def list_line_details(self, transaction_id: str) -> list[LineDetail]:
        """Return the lines joined with their catalog item names."""

    @abstractmethod
    def has_lines_for_item(self, item_id: str) -> bool:
        """True if any transaction line references the catalog item."""

    @abstractmethod
    def add_line(self, line: TransactionItem) -> bool:
        """Attach a line to an open transaction and recompute its total.

        Returns False, writing nothing, if the transaction is missing, no
        longer open, or already has a line for the same item.
        """

    @abstractmethod
    def update_line(self, line: TransactionItem) -> bool:
        """Replace quantity and price of the (transaction, item) line.

        Recomputes the total afterwards. Returns False, writing nothing,
        if the transaction is not open or the line does not exist.
        """

    @abstractmethod
    def delete_line(self, transaction_id: str, item_id: str) -> bool:
        """Delete the (transaction, item) line and recompute the total.

        Returns False, writing nothing, if the transaction is not open or
        the line does not exist.
        """

    @abstractmethod
    def recompute_total(self, transaction_id: str) -> Money | None:
        """Set the total to the sum of the current lines.

        Idempotent apart from refreshing ``updated_at``. Returns the new
        total, or None if the transaction does not exist.
        """
