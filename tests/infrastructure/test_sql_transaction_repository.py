"""Tests for the SQL transaction store against SQLite."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from till.application.add_transaction_item import AddTransactionItemHandler
from till.application.cancel_transaction import CancelTransactionHandler
from till.application.close_transaction import CloseTransactionHandler
from till.application.create_transaction import CreateTransactionHandler
from till.application.remove_transaction_item import RemoveTransactionItemHandler
from till.application.rename_transaction import RenameTransactionHandler
from till.application.update_transaction_item import UpdateTransactionItemHandler
from till.domain.exceptions import InvalidStateError, ValidationError
from till.domain.model.transaction import (
    CUSTOMER_FIELDS,
    SETTLEMENT_FIELDS,
    Transaction,
    TransactionItem,
    TransactionStatus,
)
from till.domain.model.value_objects import Money, Quantity
from till.infrastructure.persistence.sql_catalog_repository import SqlItemRepository
from till.infrastructure.persistence.sql_transaction_repository import (
    SqlTransactionRepository,
)


def _line(repo, tid: str, item_id: str, qty: int, price: str) -> TransactionItem:
    return TransactionItem(
        id=repo.next_line_id(),
        transaction_id=tid,
        item_id=item_id,
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _open(repo, customer=None) -> Transaction:
    txn = Transaction.create(repo.next_id(), customer)
    repo.add(txn)
    return txn


class TestTransactionRows:

    def test_round_trip(self, transaction_repo):
        txn = _open(transaction_repo, "Alice")

        stored = transaction_repo.get_by_id(txn.id)

        assert stored.customer_name == "Alice"
        assert stored.status == TransactionStatus.OPEN
        assert stored.total == Money.zero()
        assert stored.paid_amount is None
        assert stored.created_at.tzinfo == timezone.utc
        assert abs(stored.created_at - txn.created_at).total_seconds() < 0.001

    def test_missing_transaction(self, transaction_repo):
        assert transaction_repo.get_by_id("nope") is None
        assert transaction_repo.recompute_total("nope") is None

    def test_list_open(self, transaction_repo):
        keep = _open(transaction_repo)
        gone = _open(transaction_repo)
        gone.cancel()
        transaction_repo.update_if_open(gone, SETTLEMENT_FIELDS)

        assert [t.id for t in transaction_repo.list_open()] == [keep.id]
        assert {t.id for t in transaction_repo.list_all()} == {keep.id, gone.id}

    def test_close_persists_payment(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "latte", 2, "7.50"))
        txn = transaction_repo.get_by_id(txn.id)
        closed_at = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        txn.close(Money.of("20.00"), closed_at)

        assert transaction_repo.update_if_open(
            txn, SETTLEMENT_FIELDS, expected_total=Money.of("15.00")
        )

        stored = transaction_repo.get_by_id(txn.id)
        assert stored.status == TransactionStatus.CLOSED
        assert stored.paid_amount == Money.of("20.00")
        assert stored.change_amount == Money.of("5.00")
        assert stored.closed_at == closed_at

    def test_update_if_open_refuses_terminal_rows(self, transaction_repo):
        txn = _open(transaction_repo, "Alice")
        txn.cancel()
        assert transaction_repo.update_if_open(txn, SETTLEMENT_FIELDS)

        txn.customer_name = "Mallory"
        assert not transaction_repo.update_if_open(txn, CUSTOMER_FIELDS)
        assert transaction_repo.get_by_id(txn.id).customer_name == "Alice"

    def test_update_if_open_checks_expected_total(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 1, "5.00"))
        txn.close(Money.zero())  # computed against a stale zero total

        assert not transaction_repo.update_if_open(
            txn, SETTLEMENT_FIELDS, expected_total=Money.zero()
        )
        assert transaction_repo.get_by_id(txn.id).is_open

    def test_update_if_open_never_writes_total(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 2, "5.00"))
        txn.customer_name = "Bob"  # txn.total is still the stale zero

        assert transaction_repo.update_if_open(txn, CUSTOMER_FIELDS)
        assert transaction_repo.get_by_id(txn.id).total == Money.of("10.00")

    def test_settlement_leaves_customer_alone(self, transaction_repo):
        txn = _open(transaction_repo, "Alice")
        txn.customer_name = "Stale"
        txn.cancel()

        assert transaction_repo.update_if_open(txn, SETTLEMENT_FIELDS)

        stored = transaction_repo.get_by_id(txn.id)
        assert stored.status == TransactionStatus.CANCELLED
        assert stored.customer_name == "Alice"

    def test_update_if_open_rejects_unknown_fields(self, transaction_repo):
        txn = _open(transaction_repo)
        with pytest.raises(ValueError, match="total"):
            transaction_repo.update_if_open(txn, {"total"})


class TestLines:

    def test_add_line_recomputes_total(self, transaction_repo):
        txn = _open(transaction_repo)
        assert transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 1, "5.00"))
        assert transaction_repo.add_line(_line(transaction_repo, txn.id, "latte", 2, "7.50"))

        assert transaction_repo.get_by_id(txn.id).total == Money.of("20.00")
        details = transaction_repo.list_line_details(txn.id)
        assert [(d.item_name, d.quantity, d.total_price) for d in details] == [
            ("Bagel", 1, Money.of("5.00")),
            ("Latte", 2, Money.of("15.00")),
        ]

    def test_add_line_refuses_duplicate_item(self, transaction_repo):
        txn = _open(transaction_repo)
        assert transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 1, "5.00"))
        assert not transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 2, "5.00"))

        assert [line.quantity for line in transaction_repo.list_lines(txn.id)] == [Quantity(1)]
        assert transaction_repo.get_by_id(txn.id).total == Money.of("5.00")

    def test_update_line(self, transaction_repo):
        txn = _open(transaction_repo)
        line = _line(transaction_repo, txn.id, "latte", 2, "7.50")
        transaction_repo.add_line(line)

        line.quantity = Quantity(3)
        assert transaction_repo.update_line(line)

        assert transaction_repo.get_line(txn.id, "latte").quantity == Quantity(3)
        assert transaction_repo.get_by_id(txn.id).total == Money.of("22.50")

    def test_update_missing_line(self, transaction_repo):
        txn = _open(transaction_repo)
        assert not transaction_repo.update_line(_line(transaction_repo, txn.id, "tea", 1, "2.50"))
        assert transaction_repo.get_line(txn.id, "tea") is None

    def test_delete_line(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "bagel", 1, "5.00"))
        transaction_repo.add_line(_line(transaction_repo, txn.id, "tea", 4, "2.50"))

        assert transaction_repo.delete_line(txn.id, "bagel")
        assert not transaction_repo.delete_line(txn.id, "bagel")

        assert transaction_repo.get_by_id(txn.id).total == Money.of("10.00")
        assert [line.item_id for line in transaction_repo.list_lines(txn.id)] == ["tea"]

    def test_lines_frozen_once_terminal(self, transaction_repo):
        txn = _open(transaction_repo)
        line = _line(transaction_repo, txn.id, "bagel", 1, "5.00")
        transaction_repo.add_line(line)
        txn = transaction_repo.get_by_id(txn.id)
        txn.close(Money.of("5.00"))
        transaction_repo.update_if_open(txn, SETTLEMENT_FIELDS)

        assert not transaction_repo.add_line(_line(transaction_repo, txn.id, "tea", 1, "2.50"))
        line.quantity = Quantity(9)
        assert not transaction_repo.update_line(line)
        assert not transaction_repo.delete_line(txn.id, "bagel")

        assert len(transaction_repo.list_lines(txn.id)) == 1
        assert transaction_repo.get_line(txn.id, "bagel").quantity == Quantity(1)
        assert transaction_repo.get_by_id(txn.id).total == Money.of("5.00")

    def test_has_lines_for_item(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "tea", 1, "2.50"))
        assert transaction_repo.has_lines_for_item("tea")
        assert not transaction_repo.has_lines_for_item("bagel")

    def test_recompute_total_matches_lines(self, transaction_repo):
        txn = _open(transaction_repo)
        transaction_repo.add_line(_line(transaction_repo, txn.id, "tea", 3, "2.50"))
        assert transaction_repo.recompute_total(txn.id) == Money.of("7.50")


class TestUseCasesOnSql:

    def test_full_sale(self, transaction_repo, item_repo):
        tid = CreateTransactionHandler(transaction_repo).handle("Alice").id
        add = AddTransactionItemHandler(transaction_repo, item_repo)
        add.handle(tid, "bagel", 1)
        dto = add.handle(tid, "latte", 2)
        assert dto.total == "$20.00"

        dto = RemoveTransactionItemHandler(transaction_repo).handle(tid, "bagel")
        assert dto.total == "$15.00"

        dto = UpdateTransactionItemHandler(transaction_repo, item_repo).handle(tid, "latte", 4)
        assert dto.total == "$30.00"

        result = CloseTransactionHandler(transaction_repo).handle(tid, "50.00")
        assert result.change_amount == "$20.00"
        assert result.transaction.items[0].item_name == "Latte"

    def test_price_change_after_add(self, transaction_repo, item_repo):
        tid = CreateTransactionHandler(transaction_repo).handle().id
        AddTransactionItemHandler(transaction_repo, item_repo).handle(tid, "tea", 2)

        tea = item_repo.get_by_id("tea")
        tea.update(price=Money.of("4.00"))
        item_repo.save(tea)

        assert transaction_repo.get_by_id(tid).total == Money.of("5.00")


class TestConcurrency:

    def test_only_one_terminal_transition_wins(self, file_transaction_repo):
        repo = file_transaction_repo
        tid = CreateTransactionHandler(repo).handle().id
        barrier = threading.Barrier(8)

        def attempt(i: int) -> bool:
            barrier.wait()
            try:
                if i % 2:
                    CloseTransactionHandler(repo).handle(tid, "0.00")
                else:
                    CancelTransactionHandler(repo).handle(tid)
            except InvalidStateError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(8)))

        assert results.count(True) == 1
        stored = repo.get_by_id(tid)
        if stored.status == TransactionStatus.CLOSED:
            assert stored.paid_amount == Money.zero()
        else:
            assert stored.status == TransactionStatus.CANCELLED
            assert stored.paid_amount is None

    def test_close_racing_line_edits_stays_consistent(self, file_transaction_repo, file_engine):
        repo = file_transaction_repo
        item_repo = SqlItemRepository(file_engine)
        tid = CreateTransactionHandler(repo).handle().id
        barrier = threading.Barrier(4)

        def add(item_id: str) -> None:
            barrier.wait()
            try:
                AddTransactionItemHandler(repo, item_repo).handle(tid, item_id, 2)
            except InvalidStateError:
                pass

        def close() -> None:
            barrier.wait()
            try:
                CloseTransactionHandler(repo).handle(tid, "1000.00")
            except InvalidStateError:
                pass

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(add, i) for i in ("bagel", "latte", "tea")]
            futures.append(pool.submit(close))
            for f in futures:
                f.result()

        stored = repo.get_by_id(tid)
        lines = repo.list_lines(tid)
        assert stored.total == Money.sum(line.total_price for line in lines)
        if stored.status == TransactionStatus.CLOSED:
            assert stored.change_amount == stored.paid_amount - stored.total

    @pytest.mark.parametrize("settle", ["close", "cancel"])
    def test_settlement_keeps_concurrent_rename(self, engine, item_repo, settle):
        class RenameFirstRepo(SqlTransactionRepository):
            # A rename commits between the settlement's read and its write.
            pending = True

            def update_if_open(self, transaction, fields, expected_total=None):
                if self.pending and fields == SETTLEMENT_FIELDS:
                    self.pending = False
                    RenameTransactionHandler(self).handle(transaction.id, "Bob")
                return super().update_if_open(transaction, fields, expected_total)

        repo = RenameFirstRepo(engine)
        tid = CreateTransactionHandler(repo).handle("Alice").id
        AddTransactionItemHandler(repo, item_repo).handle(tid, "bagel", 1)

        if settle == "close":
            CloseTransactionHandler(repo).handle(tid, "5.00")
        else:
            CancelTransactionHandler(repo).handle(tid)

        stored = repo.get_by_id(tid)
        assert not stored.is_open
        assert stored.customer_name == "Bob"
        assert stored.total == Money.of("5.00")

    def test_rename_after_concurrent_close_is_refused(self, engine, item_repo):
        class CloseFirstRepo(SqlTransactionRepository):
            # A close commits between the rename's read and its write.
            pending = True

            def update_if_open(self, transaction, fields, expected_total=None):
                if self.pending and fields == CUSTOMER_FIELDS:
                    self.pending = False
                    CloseTransactionHandler(self).handle(transaction.id, "0.00")
                return super().update_if_open(transaction, fields, expected_total)

        repo = CloseFirstRepo(engine)
        tid = CreateTransactionHandler(repo).handle("Alice").id

        with pytest.raises(InvalidStateError, match="is closed"):
            RenameTransactionHandler(repo).handle(tid, "Bob")

        stored = repo.get_by_id(tid)
        assert stored.status == TransactionStatus.CLOSED
        assert stored.customer_name == "Alice"

    def test_concurrent_adds_of_same_item_keep_one_line(self, engine, item_repo):
        class DoubleAddRepo(SqlTransactionRepository):
            # Another add of the same item commits right before this one.
            pending = True

            def add_line(self, line):
                if self.pending:
                    self.pending = False
                    AddTransactionItemHandler(self, item_repo).handle(
                        line.transaction_id, line.item_id, 1
                    )
                return super().add_line(line)

        repo = DoubleAddRepo(engine)
        tid = CreateTransactionHandler(repo).handle().id

        with pytest.raises(ValidationError, match="already on transaction"):
            AddTransactionItemHandler(repo, item_repo).handle(tid, "bagel", 3)

        lines = repo.list_lines(tid)
        assert [(line.item_id, line.quantity) for line in lines] == [("bagel", Quantity(1))]
        assert repo.get_by_id(tid).total == Money.of("5.00")
