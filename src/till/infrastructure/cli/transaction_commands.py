"""CLI commands for the Transaction aggregate."""

from __future__ import annotations

import click

from till.application.add_transaction_item import AddTransactionItemHandler
from till.application.cancel_transaction import CancelTransactionHandler
from till.application.close_transaction import CloseTransactionHandler
from till.application.create_transaction import CreateTransactionHandler
from till.application.dto import TransactionDTO
from till.application.remove_transaction_item import RemoveTransactionItemHandler
from till.application.rename_transaction import RenameTransactionHandler
from till.application.show_transaction import (
    ListTransactionsHandler,
    ShowTransactionHandler,
)
from till.application.update_transaction_item import UpdateTransactionItemHandler
from till.domain.exceptions import DomainException
from till.domain.service.receipt import render_text
from till.infrastructure.bootstrap import Container


def _display_transaction(dto: TransactionDTO) -> None:
    """Shared formatting for displaying a transaction."""
    click.echo(f"Transaction {dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_name or '-'}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.closed_at:
        click.echo(f"Closed:   {dto.closed_at}")
    click.echo()

    click.echo(f"  {'Item':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.item_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Total':<27} {dto.total:>20}")
    if dto.paid_amount is not None:
        click.echo(f"  {'Paid':<27} {dto.paid_amount:>20}")
        click.echo(f"  {'Change':<27} {dto.change_amount:>20}")


@click.command("create")
@click.option("--customer", default=None, help="Customer name (optional).")
@click.pass_obj
def transaction_create(container: Container, customer: str | None) -> None:
    """Open a new transaction."""
    handler = CreateTransactionHandler(container.transaction_repo)

    try:
        dto = handler.handle(customer_name=customer)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {dto.id} opened  (status={dto.status})")


@click.command("show")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.pass_obj
def transaction_show(container: Container, transaction_id: str) -> None:
    """Show a transaction and its lines."""
    handler = ShowTransactionHandler(container.transaction_repo)

    try:
        dto = handler.handle(transaction_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(dto)


@click.command("list")
@click.option("--open", "open_only", is_flag=True, default=False, help="Only open transactions.")
@click.pass_obj
def transaction_list(container: Container, open_only: bool) -> None:
    """List transactions, newest first."""
    handler = ListTransactionsHandler(container.transaction_repo)

    try:
        dtos = handler.handle(open_only=open_only)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dtos:
        click.echo("No transactions found.")
        return

    click.echo(f"{'ID':<36}  {'Status':<9} {'Customer':<20} {'Total':>10}")
    click.echo("-" * 79)
    for dto in dtos:
        click.echo(
            f"{dto.id:<36}  {dto.status:<9} {(dto.customer_name or '-'):<20} {dto.total:>10}"
        )


@click.command("rename")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--customer", default=None, help="New customer name; omit to clear it.")
@click.pass_obj
def transaction_rename(container: Container, transaction_id: str, customer: str | None) -> None:
    """Change the customer name of an open transaction."""
    handler = RenameTransactionHandler(container.transaction_repo)

    try:
        dto = handler.handle(transaction_id, customer)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {dto.id} customer set to {dto.customer_name or '-'}")


@click.command("add-item")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--item", "item_id", required=True, help="Catalog item ID.")
@click.option("--qty", "quantity", type=int, default=1, show_default=True, help="Quantity.")
@click.pass_obj
def transaction_add_item(
    container: Container, transaction_id: str, item_id: str, quantity: int
) -> None:
    """Add an item to an open transaction at its current price."""
    handler = AddTransactionItemHandler(container.transaction_repo, container.item_repo)

    try:
        dto = handler.handle(transaction_id, item_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(dto)


@click.command("update-item")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--item", "item_id", required=True, help="Catalog item ID.")
@click.option("--qty", "quantity", type=int, required=True, help="New quantity (> 0).")
@click.pass_obj
def transaction_update_item(
    container: Container, transaction_id: str, item_id: str, quantity: int
) -> None:
    """Change the quantity of a line (re-reads the item's price)."""
    handler = UpdateTransactionItemHandler(container.transaction_repo, container.item_repo)

    try:
        dto = handler.handle(transaction_id, item_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(dto)


@click.command("remove-item")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--item", "item_id", required=True, help="Catalog item ID.")
@click.pass_obj
def transaction_remove_item(container: Container, transaction_id: str, item_id: str) -> None:
    """Remove a line from an open transaction."""
    handler = RemoveTransactionItemHandler(container.transaction_repo)

    try:
        dto = handler.handle(transaction_id, item_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(dto)


@click.command("close")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--paid", "paid_amount", required=True, help="Amount paid (e.g. 50.00).")
@click.pass_obj
def transaction_close(container: Container, transaction_id: str, paid_amount: str) -> None:
    """Settle an open transaction and print its receipt.

    The receipt is best-effort: printer problems are logged, never
    reported as a failure. In the default "wait" receipt mode this
    command waits for the printer up to TILL_PRINTER_TIMEOUT seconds;
    in "detached" mode it returns before the receipt is printed.
    """
    handler = CloseTransactionHandler(container.transaction_repo, container.receipts)

    try:
        result = handler.handle(transaction_id, paid_amount)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(result.transaction)
    click.echo()
    click.echo(f"Change due: {result.change_amount}")


@click.command("cancel")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.pass_obj
def transaction_cancel(container: Container, transaction_id: str) -> None:
    """Cancel an open transaction."""
    handler = CancelTransactionHandler(container.transaction_repo)

    try:
        dto = handler.handle(transaction_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {dto.id} cancelled.")


@click.command("receipt")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.pass_obj
def transaction_receipt(container: Container, transaction_id: str) -> None:
    """Preview the receipt of a closed transaction."""
    handler = ShowTransactionHandler(container.transaction_repo)

    try:
        receipt = handler.receipt(transaction_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(render_text(receipt))
