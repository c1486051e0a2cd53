"""CLI commands for the catalog: categories and items."""

from __future__ import annotations

import click

from till.application.add_category import AddCategoryHandler
from till.application.add_item import AddItemHandler
from till.application.update_category import DeleteCategoryHandler, UpdateCategoryHandler
from till.application.update_item import DeleteItemHandler, UpdateItemHandler
from till.domain.exceptions import DomainException
from till.infrastructure.bootstrap import Container


# --- Categories ---------------------------------------------------------------


@click.command("add")
@click.option("--name", required=True, help="Category name.")
@click.option("--description", default=None, help="Description.")
@click.pass_obj
def category_add(container: Container, name: str, description: str | None) -> None:
    """Add a category."""
    handler = AddCategoryHandler(container.category_repo)

    try:
        category = handler.handle(name=name, description=description)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Category {category.id} '{category.name}' added")


@click.command("list")
@click.pass_obj
def category_list(container: Container) -> None:
    """List all categories."""
    categories = container.category_repo.list_all()

    if not categories:
        click.echo("No categories found.")
        return

    click.echo(f"{'ID':<36}  {'Name':<20} Description")
    click.echo("-" * 79)
    for c in categories:
        click.echo(f"{c.id:<36}  {c.name:<20} {c.description or ''}")


@click.command("update")
@click.option("--id", "category_id", required=True, help="Category ID.")
@click.option("--name", default=None, help="New name.")
@click.option("--description", default=None, help="New description.")
@click.pass_obj
def category_update(
    container: Container, category_id: str, name: str | None, description: str | None
) -> None:
    """Rename or re-describe a category."""
    handler = UpdateCategoryHandler(container.category_repo)

    try:
        category = handler.handle(category_id, name=name, description=description)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Category {category.id} updated")


@click.command("delete")
@click.option("--id", "category_id", required=True, help="Category ID.")
@click.pass_obj
def category_delete(container: Container, category_id: str) -> None:
    """Delete an empty category."""
    handler = DeleteCategoryHandler(container.category_repo, container.item_repo)

    try:
        handler.handle(category_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Category {category_id} deleted")


# --- Items --------------------------------------------------------------------


@click.command("add")
@click.option("--name", required=True, help="Item name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--category", "category_id", required=True, help="Category ID.")
@click.option("--description", default=None, help="Description.")
@click.option("--sku", default=None, help="Stock keeping unit.")
@click.option("--in-stock/--out-of-stock", default=True, show_default=True)
@click.pass_obj
def item_add(
    container: Container,
    name: str,
    price: str,
    category_id: str,
    description: str | None,
    sku: str | None,
    in_stock: bool,
) -> None:
    """Add an item to the catalog."""
    handler = AddItemHandler(container.item_repo, container.category_repo)

    try:
        item = handler.handle(
            name=name,
            price=price,
            category_id=category_id,
            description=description,
            sku=sku,
            in_stock=in_stock,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item.id} '{item.name}' added at {item.price}")


@click.command("list")
@click.option("--category", "category_id", default=None, help="Only this category.")
@click.pass_obj
def item_list(container: Container, category_id: str | None) -> None:
    """List catalog items."""
    repo = container.item_repo
    items = repo.list_by_category(category_id) if category_id else repo.list_all()

    if not items:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<36}  {'Name':<20} {'Price':>10}  Stock")
    click.echo("-" * 79)
    for i in items:
        stock = "yes" if i.in_stock else "no"
        click.echo(f"{i.id:<36}  {i.name:<20} {str(i.price):>10}  {stock}")


@click.command("update")
@click.option("--id", "item_id", required=True, help="Item ID.")
@click.option("--name", default=None, help="New name.")
@click.option("--price", default=None, help="New price (e.g. 29.99).")
@click.option("--category", "category_id", default=None, help="New category ID.")
@click.option("--description", default=None, help="New description.")
@click.option("--sku", default=None, help="New SKU.")
@click.option("--in-stock/--out-of-stock", default=None)
@click.pass_obj
def item_update(
    container: Container,
    item_id: str,
    name: str | None,
    price: str | None,
    category_id: str | None,
    description: str | None,
    sku: str | None,
    in_stock: bool | None,
) -> None:
    """Update an item; open transactions keep their price snapshot."""
    handler = UpdateItemHandler(container.item_repo, container.category_repo)

    try:
        item = handler.handle(
            item_id,
            name=name,
            price=price,
            category_id=category_id,
            description=description,
            sku=sku,
            in_stock=in_stock,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item.id} updated ({item.price}, in stock: {item.in_stock})")


@click.command("delete")
@click.option("--id", "item_id", required=True, help="Item ID.")
@click.pass_obj
def item_delete(container: Container, item_id: str) -> None:
    """Delete an item that was never sold."""
    handler = DeleteItemHandler(container.item_repo, container.transaction_repo)

    try:
        handler.handle(item_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item_id} deleted")
