"""Integration tests for settling and cancelling transactions."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from till.application.add_transaction_item import AddTransactionItemHandler
from till.application.cancel_transaction import CancelTransactionHandler
from till.application.close_transaction import CloseTransactionHandler
from till.application.create_transaction import CreateTransactionHandler
from till.application.receipt_dispatcher import ReceiptDispatcher
from till.application.show_transaction import ShowTransactionHandler
from till.application.update_transaction_item import UpdateTransactionItemHandler
from till.domain.exceptions import (
    EntityNotFoundError,
    InsufficientPaymentError,
    InvalidStateError,
    ValidationError,
)
from till.domain.model.catalog import Item
from till.domain.model.transaction import TransactionStatus
from till.domain.model.value_objects import Money
from till.domain.service.receipt import PrinterNotFoundError
from tests.fakes import (
    FailingPrinter,
    FakeItemRepository,
    FakeReceiptPrinter,
    FakeTransactionRepository,
)


def _setup():
    items = [Item(id="C", name="Sandwich", price=Money.of("10.00"), category_id="c1")]
    item_repo = FakeItemRepository(items)
    txn_repo = FakeTransactionRepository(item_repo)
    return txn_repo, item_repo


def _open_with(txn_repo, item_repo, qty: int = 3) -> str:
    tid = CreateTransactionHandler(txn_repo).handle().id
    AddTransactionItemHandler(txn_repo, item_repo).handle(tid, "C", qty)
    return tid


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


class TestCloseHappyPath:

    def test_scenario_full_sale(self):
        txn_repo, item_repo = _setup()
        tid = CreateTransactionHandler(txn_repo).handle().id
        AddTransactionItemHandler(txn_repo, item_repo).handle(tid, "C", 2)
        UpdateTransactionItemHandler(txn_repo, item_repo).handle(tid, "C", 3)

        result = CloseTransactionHandler(txn_repo).handle(tid, "50.00")

        assert result.change_amount == "$20.00"
        assert result.transaction.status == "closed"
        assert result.transaction.total == "$30.00"
        assert result.transaction.paid_amount == "$50.00"

        stored = txn_repo.get_by_id(tid)
        assert stored.status == TransactionStatus.CLOSED
        assert stored.change_amount == Money.of("20.00")
        assert stored.closed_at is not None

    def test_empty_transaction_closes_with_zero(self):
        txn_repo, _ = _setup()
        tid = CreateTransactionHandler(txn_repo).handle().id

        result = CloseTransactionHandler(txn_repo).handle(tid, "0.00")

        assert result.change_amount == "$0.00"
        assert result.transaction.status == "closed"

    def test_exact_payment(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo, qty=1)
        result = CloseTransactionHandler(txn_repo).handle(tid, "10")
        assert result.change_amount == "$0.00"


class TestCloseRejections:

    def test_insufficient_payment_leaves_transaction_open(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)

        with pytest.raises(InsufficientPaymentError, match="Insufficient payment"):
            CloseTransactionHandler(txn_repo).handle(tid, "29.99")

        stored = txn_repo.get_by_id(tid)
        assert stored.status == TransactionStatus.OPEN
        assert stored.paid_amount is None

    def test_close_twice_mutates_nothing(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        handler = CloseTransactionHandler(txn_repo)
        handler.handle(tid, "50.00")
        before = txn_repo.get_by_id(tid)

        with pytest.raises(InvalidStateError, match="is closed, expected open"):
            handler.handle(tid, "100.00")

        assert txn_repo.get_by_id(tid) == before

    def test_close_cancelled_rejected(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        CancelTransactionHandler(txn_repo).handle(tid)

        with pytest.raises(InvalidStateError, match="is cancelled"):
            CloseTransactionHandler(txn_repo).handle(tid, "50.00")
        assert txn_repo.get_by_id(tid).paid_amount is None

    def test_unknown_transaction(self):
        txn_repo, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            CloseTransactionHandler(txn_repo).handle("missing", "1.00")

    @pytest.mark.parametrize("paid", ["abc", "-5.00"])
    def test_bad_payment_rejected(self, paid):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        with pytest.raises(ValidationError):
            CloseTransactionHandler(txn_repo).handle(tid, paid)
        assert txn_repo.get_by_id(tid).is_open

    def test_total_changed_under_us_is_a_conflict(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)

        class StaleRepo(FakeTransactionRepository):
            # First read misses a line added concurrently.
            stale = True

            def get_by_id(self, transaction_id):
                txn = super().get_by_id(transaction_id)
                if self.stale and txn is not None:
                    self.stale = False
                    txn.total = Money.zero()
                return txn

        racing = StaleRepo(item_repo)
        racing.add(txn_repo.get_by_id(tid))
        racing.add_line(txn_repo.get_line(tid, "C"))

        with pytest.raises(InvalidStateError, match="changed while closing"):
            CloseTransactionHandler(racing).handle(tid, "0.00")
        assert racing.get_by_id(tid).is_open


class TestCloseReceipt:

    def test_receipt_printed_after_close(self, executor):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo, qty=2)
        printer = FakeReceiptPrinter()
        receipts = ReceiptDispatcher(printer, txn_repo, executor)

        CloseTransactionHandler(txn_repo, receipts).handle(tid, "25.00")

        assert len(printer.printed) == 1
        lines, paid, change = printer.printed[0]
        assert lines[0].name == "Sandwich"
        assert lines[0].quantity == 2
        assert paid == Money.of("25.00")
        assert change == Money.of("5.00")

    def test_printer_failure_does_not_change_result(self, executor):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        receipts = ReceiptDispatcher(FailingPrinter(), txn_repo, executor)

        result = CloseTransactionHandler(txn_repo, receipts).handle(tid, "50.00")

        assert result.change_amount == "$20.00"
        assert result.transaction.status == "closed"
        assert txn_repo.get_by_id(tid).status == TransactionStatus.CLOSED

    def test_missing_printer_does_not_change_result(self, executor):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        printer = FakeReceiptPrinter()
        printer.discover_error = PrinterNotFoundError("nothing plugged in")
        receipts = ReceiptDispatcher(printer, txn_repo, executor)

        result = CloseTransactionHandler(txn_repo, receipts).handle(tid, "30.00")

        assert result.change_amount == "$0.00"
        assert printer.printed == []

    def test_no_receipt_when_close_fails(self, executor):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        printer = FakeReceiptPrinter()
        receipts = ReceiptDispatcher(printer, txn_repo, executor)

        with pytest.raises(InsufficientPaymentError):
            CloseTransactionHandler(txn_repo, receipts).handle(tid, "1.00")
        assert printer.printed == []

    def test_receipt_preview(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo, qty=1)
        CloseTransactionHandler(txn_repo).handle(tid, "20.00")

        receipt = ShowTransactionHandler(txn_repo).receipt(tid)

        assert receipt.total == Money.of("10.00")
        assert receipt.change_amount == Money.of("10.00")

    def test_no_receipt_for_open_transaction(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        with pytest.raises(InvalidStateError, match="only closed transactions"):
            ShowTransactionHandler(txn_repo).receipt(tid)


class TestCancel:

    def test_cancel_open_transaction(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)

        dto = CancelTransactionHandler(txn_repo).handle(tid)

        assert dto.status == "cancelled"
        assert dto.paid_amount is None
        stored = txn_repo.get_by_id(tid)
        assert stored.status == TransactionStatus.CANCELLED
        assert stored.closed_at is None
        assert stored.total == Money.of("30.00")

    def test_cancel_twice_rejected(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        CancelTransactionHandler(txn_repo).handle(tid)
        with pytest.raises(InvalidStateError, match="is cancelled"):
            CancelTransactionHandler(txn_repo).handle(tid)

    def test_cancel_closed_rejected(self):
        txn_repo, item_repo = _setup()
        tid = _open_with(txn_repo, item_repo)
        CloseTransactionHandler(txn_repo).handle(tid, "30.00")
        with pytest.raises(InvalidStateError, match="is closed"):
            CancelTransactionHandler(txn_repo).handle(tid)
        assert txn_repo.get_by_id(tid).status == TransactionStatus.CLOSED
