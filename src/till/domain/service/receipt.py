"""Receipts and the printer capability the close path relies on.

Printing is a best-effort side effect of closing a transaction. The
domain only describes what goes on the paper; talking to hardware is
the job of a ``ReceiptPrinter`` implementation in the infrastructure
layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from till.domain.model.transaction import LineDetail, Transaction
from till.domain.model.value_objects import Money

RECEIPT_WIDTH = 48
_RULE = "-" * RECEIPT_WIDTH


class PrinterError(Exception):
    """Raised by printer implementations on any driver or I/O failure."""


class PrinterNotFoundError(PrinterError):
    """No usable receipt printer is connected."""


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    quantity: int
    unit_price: Money

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Receipt:
    transaction_id: str
    lines: tuple[ReceiptLine, ...]
    paid_amount: Money
    change_amount: Money

    @property
    def total(self) -> Money:
        return Money.sum(line.line_total for line in self.lines)

    @staticmethod
    def for_transaction(transaction: Transaction, details: Sequence[LineDetail]) -> Receipt:
        """Build the receipt of a closed transaction."""
        if transaction.paid_amount is None or transaction.change_amount is None:
            raise ValueError(f"Transaction {transaction.id} has not been settled")
        return Receipt(
            transaction_id=transaction.id,
            lines=tuple(
                ReceiptLine(d.item_name, d.quantity, d.unit_price) for d in details
            ),
            paid_amount=transaction.paid_amount,
            change_amount=transaction.change_amount,
        )


class Align(Enum):
    LEFT = "left"
    CENTER = "center"


@dataclass(frozen=True)
class ReceiptRow:
    text: str
    align: Align = Align.LEFT
    bold: bool = False


def layout(
    lines: Sequence[ReceiptLine],
    paid_amount: Money,
    change: Money,
) -> list[ReceiptRow]:
    """Lay the receipt out as rows for a 48-column printer.

    Item names are padded to 20 columns but never cut, so a longer name
    pushes its row past the paper width and the printer wraps it.
    """
    rows = [
        ReceiptRow("RECEIPT", Align.CENTER),
        ReceiptRow(_RULE, Align.CENTER),
    ]
    for line in lines:
        rows.append(
            ReceiptRow(f"{line.name:<20} {line.quantity:>2} x {line.unit_price.amount:>18.2f}")
        )
    total = Money.sum(line.line_total for line in lines)
    rows += [
        ReceiptRow(_RULE, Align.CENTER),
        ReceiptRow(f"TOTAL: {total.amount:>35.2f}", bold=True),
        ReceiptRow(_RULE, bold=True),
        ReceiptRow("", bold=True),
        ReceiptRow(f"Paid: {paid_amount.amount:.2f}"),
        ReceiptRow(f"Change: {change.amount:.2f}"),
    ]
    return rows


def render_text(receipt: Receipt) -> str:
    """Plain-text rendering, used for previews."""
    out = []
    for row in layout(receipt.lines, receipt.paid_amount, receipt.change_amount):
        if row.align is Align.CENTER:
            out.append(row.text.center(RECEIPT_WIDTH).rstrip())
        else:
            out.append(row.text)
    return "\n".join(out)


class ReceiptPrinter(ABC):
    """Capability to find a connected printer and print on it."""

    @abstractmethod
    def discover_printer(self) -> Any:
        """Return a handle to a connected printer.

        Raises PrinterNotFoundError if none is available.
        """

    @abstractmethod
    def print_receipt(
        self,
        handle: Any,
        lines: Sequence[ReceiptLine],
        paid_amount: Money,
        change: Money,
    ) -> None:
        """Send one receipt to the printer behind *handle*.

        Raises PrinterError on failure.
        """
