"""CLI commands for sales reports."""

from __future__ import annotations

from datetime import datetime

import click

from till.application.sales_report import SalesReportHandler
from till.domain.exceptions import DomainException
from till.domain.model.report import SalesReport
from till.infrastructure.bootstrap import Container

_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def _display_report(report: SalesReport) -> None:
    click.echo(f"Sales {report.start:%Y-%m-%d %H:%M} .. {report.end:%Y-%m-%d %H:%M} UTC")
    click.echo()
    click.echo(
        f"  {'Item':<20} {'Category':<14} {'Qty':>5} {'Revenue':>10} {'Avg':>9} {'Txns':>5}"
    )
    click.echo(f"  {'-'*68}")
    for row in report.items:
        click.echo(
            f"  {row.item_name:<20} {row.category_name:<14} {row.quantity_sold:>5} "
            f"{str(row.total_revenue):>10} {str(row.average_price):>9} {row.transaction_count:>5}"
        )
    click.echo(f"  {'-'*68}")

    s = report.summary
    click.echo(f"  Revenue:              {s.total_revenue}")
    click.echo(f"  Items sold:           {s.total_items_sold}")
    click.echo(f"  Transactions:         {s.total_transactions}")
    click.echo(f"  Average transaction:  {s.average_transaction_value}")
    click.echo(f"  Top seller:           {s.top_selling_item or '-'}")
    click.echo(f"  Top revenue:          {s.top_revenue_item or '-'}")


@click.command("sales")
@click.option("--start", required=True, type=click.DateTime(_FORMATS), help="Window start (UTC).")
@click.option("--end", required=True, type=click.DateTime(_FORMATS), help="Window end (UTC, exclusive).")
@click.pass_obj
def report_sales(container: Container, start: datetime, end: datetime) -> None:
    """Report on transactions closed in [START, END)."""
    handler = SalesReportHandler(container.report_query)

    try:
        report = handler.handle(start, end)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_report(report)


@click.command("daily")
@click.pass_obj
def report_daily(container: Container) -> None:
    """Report on the last 24 hours."""
    try:
        report = SalesReportHandler(container.report_query).daily()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_report(report)


@click.command("monthly")
@click.pass_obj
def report_monthly(container: Container) -> None:
    """Report on the last 30 days."""
    try:
        report = SalesReportHandler(container.report_query).monthly()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_report(report)
