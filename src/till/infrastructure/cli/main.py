import click

from till.infrastructure.bootstrap import Container
from till.infrastructure.cli.catalog_commands import (
    category_add,
    category_delete,
    category_list,
    category_update,
    item_add,
    item_delete,
    item_list,
    item_update,
)
from till.infrastructure.cli.report_commands import (
    report_daily,
    report_monthly,
    report_sales,
)
from till.infrastructure.cli.transaction_commands import (
    transaction_add_item,
    transaction_cancel,
    transaction_close,
    transaction_create,
    transaction_list,
    transaction_receipt,
    transaction_remove_item,
    transaction_rename,
    transaction_show,
    transaction_update_item,
)
from till.infrastructure.config import Settings
from till.infrastructure.log import configure_logging


@click.group()
@click.option("--database-url", default=None, help="Overrides TILL_DATABASE_URL.")
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Till — point-of-sale backend"""
    if ctx.obj is None:
        settings = Settings.from_env()
        if database_url:
            settings.database_url = database_url
        configure_logging(settings.log_level)
        ctx.obj = Container(settings)
    ctx.call_on_close(ctx.obj.close)


@cli.command("init-db")
@click.pass_obj
def init_db(container: Container) -> None:
    """Create the database tables if they do not exist."""
    engine = container.engine
    click.echo(f"Database ready at {engine.url.render_as_string(hide_password=True)}")


@cli.group()
def transaction() -> None:
    """Ring up, settle and cancel sales."""


@cli.group()
def category() -> None:
    """Manage catalog categories."""


@cli.group()
def item() -> None:
    """Manage catalog items."""


@cli.group()
def report() -> None:
    """Sales reports over closed transactions."""


# Register subcommands
transaction.add_command(transaction_add_item)
transaction.add_command(transaction_cancel)
transaction.add_command(transaction_close)
transaction.add_command(transaction_create)
transaction.add_command(transaction_list)
transaction.add_command(transaction_receipt)
transaction.add_command(transaction_remove_item)
transaction.add_command(transaction_rename)
transaction.add_command(transaction_show)
transaction.add_command(transaction_update_item)
category.add_command(category_add)
category.add_command(category_delete)
category.add_command(category_list)
category.add_command(category_update)
item.add_command(item_add)
item.add_command(item_delete)
item.add_command(item_list)
item.add_command(item_update)
report.add_command(report_daily)
report.add_command(report_monthly)
report.add_command(report_sales)
