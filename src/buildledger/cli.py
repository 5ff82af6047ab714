"""
BuildLedger CLI — command-line interface.

Usage:
    buildledger aging --invoices invoices.csv --payments payments.csv
    buildledger quote kitchen_remodel.yaml
    buildledger expenses expenses.csv --project p-100
    buildledger timesheet timesheet.csv --week 2026-03-02 --summary-output week.csv
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from buildledger import __version__
from buildledger.analyzers.aging import AgingBucketKey, RiskTier
from buildledger.analyzers.expenses import filter_expenses, summarize_expenses
from buildledger.analyzers.money import format_currency
from buildledger.analyzers.quotes import QuotePricingEngine, group_by_category
from buildledger.analyzers.timesheets import entries_for_week, summarize_week, week_start
from buildledger.config import BuildLedgerConfig
from buildledger.connectors.csv_connector import CSVConnector, snapshot_payments
from buildledger.connectors.memory import InMemoryPort
from buildledger.exceptions import LedgerError
from buildledger.exporters.csv import (
    render_aging_csv,
    render_payments_csv,
    render_timesheet_entries_csv,
    render_timesheet_summary_csv,
)
from buildledger.models.financial import PaymentStatus
from buildledger.models.quotes import Quote
from buildledger.service import LedgerService

app = typer.Typer(
    name="buildledger",
    help="BuildLedger — invoices, aging, expenses and quotes for contractors",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

logger = logging.getLogger("buildledger.cli")

_RISK_COLORS = {
    RiskTier.HIGH: "red",
    RiskTier.MEDIUM: "yellow",
    RiskTier.LOW: "green",
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]BuildLedger[/bold] v{__version__}")
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_date(value: str | None, option: str) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}", param_hint=option) from None


def _config(ctx: typer.Context) -> BuildLedgerConfig:
    return ctx.obj["config"] if ctx.obj else BuildLedgerConfig()


def _write(path: str, content: str) -> None:
    Path(path).write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Saved to [bold]{path}[/bold]")


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a buildledger.yaml config file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log at DEBUG level",
    ),
) -> None:
    """BuildLedger — financial ledger and quote pricing for construction businesses."""
    settings = BuildLedgerConfig.load(config)
    _setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = {"config": settings}


@app.command()
def aging(
    ctx: typer.Context,
    invoices: str = typer.Option(..., "--invoices", help="CSV file of invoices"),
    payments: Optional[str] = typer.Option(None, "--payments", help="CSV file of payments"),
    company: str = typer.Option("default", "--company", help="Company id to report on"),
    today: Optional[str] = typer.Option(None, "--today", help="As-of date (YYYY-MM-DD), defaults to today"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the client aging CSV here"),
) -> None:
    """Accounts receivable aging by bucket and client risk."""
    settings = _config(ctx)
    as_of = _parse_date(today, "--today")

    connector = CSVConnector()
    try:
        port = InMemoryPort(invoices=connector.load_invoices(invoices, company_id=company))
        if payments:
            received = connector.load_payments(payments)
        else:
            received = snapshot_payments(port.invoices.values())
            if received:
                logger.info("No payments file; using paid amounts from %d invoice rows", len(received))
        for payment in received:
            port.save_payment(payment)
    except (FileNotFoundError, LedgerError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    report = LedgerService(port, settings).aging_report(company, as_of)
    currency = settings.currency

    console.print(Panel.fit(
        f"[bold blue]Receivables Aging[/bold blue] as of {as_of.isoformat()}",
        subtitle=f"v{__version__}",
    ))

    buckets = Table(title="Aging Buckets", show_lines=True)
    buckets.add_column("Bucket", style="bold")
    buckets.add_column("Invoices", justify="right")
    buckets.add_column("Amount", justify="right")
    for key in AgingBucketKey:
        bucket = report.bucket(key)
        buckets.add_row(bucket.label, str(bucket.count), format_currency(bucket.amount, currency))
    buckets.add_row("Total", str(report.invoice_count), format_currency(report.total_outstanding, currency))
    console.print(buckets)

    if report.clients:
        clients = Table(title="Clients by Risk")
        clients.add_column("Client", style="bold")
        clients.add_column("Outstanding", justify="right")
        clients.add_column("Invoices", justify="right")
        clients.add_column("Oldest (days)", justify="right")
        clients.add_column("Risk")
        clients.add_column("Recommendation")
        for client in report.clients:
            color = _RISK_COLORS[client.risk_tier]
            clients.add_row(
                client.client_name,
                format_currency(client.total_outstanding, currency),
                str(client.invoice_count),
                str(client.oldest_invoice_days),
                f"[{color}]{client.risk_tier.value.upper()}[/{color}]",
                client.recommended_action.value,
            )
        console.print(clients)
    else:
        console.print("[dim]No outstanding invoices.[/dim]")

    if output:
        _write(output, render_aging_csv(report))


@app.command()
def payments(
    ctx: typer.Context,
    payments_file: str = typer.Argument(..., metavar="PAYMENTS", help="CSV file of payments"),
    invoices: Optional[str] = typer.Option(None, "--invoices", help="CSV file of invoices for number/client columns"),
    company: str = typer.Option("default", "--company", help="Company id the invoices belong to"),
    today: Optional[str] = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the payment history CSV here"),
) -> None:
    """Payment history totals, this month and last month."""
    from buildledger.analyzers.invoices import summarize_payments

    settings = _config(ctx)
    as_of = _parse_date(today, "--today")
    connector = CSVConnector()
    try:
        history = connector.load_payments(payments_file)
        invoice_list = connector.load_invoices(invoices, company_id=company) if invoices else []
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    summary = summarize_payments(history, as_of)
    table = Table(title="Payments", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total Received", format_currency(summary.total_received, settings.currency))
    table.add_row("Payments", str(summary.payment_count))
    table.add_row("Average Payment", format_currency(summary.average_payment, settings.currency))
    table.add_row("This Month", format_currency(summary.this_month, settings.currency))
    table.add_row("Last Month", format_currency(summary.last_month, settings.currency))
    console.print(table)

    if output:
        by_id = {inv.id: inv for inv in invoice_list if inv.id}
        _write(output, render_payments_csv(history, by_id))


@app.command()
def quote(
    ctx: typer.Context,
    quote_file: str = typer.Argument(..., metavar="QUOTE", help="YAML file describing the quote"),
) -> None:
    """Price a quote: category subtotals, tax, total and optional upsells."""
    settings = _config(ctx)
    path = Path(quote_file)
    if not path.exists():
        console.print(f"[red]Error: Quote file not found: {quote_file}[/red]")
        raise typer.Exit(1)

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    data.setdefault("title", path.stem)

    engine = QuotePricingEngine()
    try:
        priced = engine.price(Quote.model_validate(data))
        pricing = engine.calculate(priced.line_items, priced.tax_rate, priced.discount_amount)
    except (ValueError, LedgerError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    currency = settings.currency
    console.print(Panel.fit(f"[bold blue]{priced.title}[/bold blue]", subtitle=f"v{__version__}"))

    items = Table(title="Line Items")
    items.add_column("Category", style="bold")
    items.add_column("Description")
    items.add_column("Qty", justify="right")
    items.add_column("Unit Price", justify="right")
    items.add_column("Total", justify="right")
    for group in group_by_category(engine.sorted_items(priced.line_items)):
        for item in group.items:
            label = f"{item.description} [dim](optional)[/dim]" if item.is_optional else item.description
            items.add_row(
                group.name,
                label,
                f"{item.quantity:g} {item.unit}",
                format_currency(item.unit_price, currency),
                format_currency(item.total_price, currency),
            )
    console.print(items)

    totals = Table(show_header=False)
    totals.add_column("Metric", style="bold")
    totals.add_column("Value", justify="right")
    totals.add_row("Subtotal", format_currency(pricing.subtotal, currency))
    if pricing.discount_amount:
        totals.add_row(
            f"Discount ({pricing.discount_percentage:.1f}%)",
            f"-{format_currency(pricing.discount_amount, currency)}",
        )
    totals.add_row(f"Tax ({pricing.tax_rate:g}%)", format_currency(pricing.tax_amount, currency))
    totals.add_row("Total", f"[bold]{format_currency(pricing.total_amount, currency)}[/bold]")
    if pricing.optional_total:
        totals.add_row("Optional items", format_currency(pricing.optional_total, currency))
    if pricing.non_taxable_total:
        totals.add_row("Taxable items", format_currency(pricing.taxable_total, currency))
        totals.add_row("Non-taxable items", format_currency(pricing.non_taxable_total, currency))
    console.print(totals)

    if pricing.by_item_type:
        breakdown = Table(title="Breakdown by Type")
        breakdown.add_column("Type", style="bold")
        breakdown.add_column("Amount", justify="right")
        for kind, amount in sorted(pricing.by_item_type.items(), key=lambda kv: kv[1], reverse=True):
            breakdown.add_row(kind.capitalize(), format_currency(amount, currency))
        if pricing.profit_total:
            breakdown.add_row("Margin", f"{pricing.margin_percentage:.2f}%")
            breakdown.add_row("Markup", f"{pricing.markup_percentage:.2f}%")
        console.print(breakdown)


@app.command()
def expenses(
    ctx: typer.Context,
    expenses_file: str = typer.Argument(..., metavar="EXPENSES", help="CSV file of expenses"),
    project: Optional[str] = typer.Option(None, "--project", help="Only expenses allocated to this project"),
    status: Optional[PaymentStatus] = typer.Option(None, "--status", help="Only expenses with this payment status"),
    search: Optional[str] = typer.Option(None, "--search", help="Match vendor or description"),
) -> None:
    """Expense totals by status and category, with billable markup."""
    settings = _config(ctx)
    try:
        loaded = CSVConnector().load_expenses(expenses_file)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    selected = filter_expenses(loaded, status=status, project_id=project, search=search)
    summary = summarize_expenses(selected)
    currency = settings.currency

    table = Table(title="Expenses", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Expenses", str(summary.count))
    table.add_row("Total", format_currency(summary.total, currency))
    table.add_row("Pending", format_currency(summary.pending, currency))
    table.add_row("Paid", format_currency(summary.paid, currency))
    table.add_row("Billable", format_currency(summary.billable, currency))
    table.add_row("Billable with Markup", format_currency(summary.billable_with_markup, currency))
    table.add_row("Unbilled", format_currency(summary.unbilled, currency))
    console.print(table)

    if summary.by_category:
        categories = Table(title="By Category")
        categories.add_column("Category", style="bold")
        categories.add_column("Amount", justify="right")
        for name, amount in sorted(summary.by_category.items(), key=lambda kv: kv[1], reverse=True):
            categories.add_row(name, format_currency(amount, currency))
        console.print(categories)


@app.command()
def timesheet(
    ctx: typer.Context,
    timesheet_file: str = typer.Argument(..., metavar="TIMESHEET", help="CSV file of timesheet entries"),
    week: Optional[str] = typer.Option(None, "--week", help="Any date in the week to report (YYYY-MM-DD)"),
    summary_output: Optional[str] = typer.Option(None, "--summary-output", help="Write the weekly summary CSV here"),
    entries_output: Optional[str] = typer.Option(None, "--entries-output", help="Write the entry detail CSV here"),
) -> None:
    """Weekly hours and labor cost per employee."""
    settings = _config(ctx)
    monday = week_start(_parse_date(week, "--week"))
    try:
        loaded = CSVConnector().load_timesheet(timesheet_file)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    entries = entries_for_week(loaded, monday)
    summaries = summarize_week(entries)

    table = Table(title=f"Week of {monday.isoformat()}")
    table.add_column("Employee", style="bold")
    table.add_column("Regular", justify="right")
    table.add_column("Overtime", justify="right")
    table.add_column("Total Hours", justify="right")
    table.add_column("Cost", justify="right")
    for s in summaries:
        table.add_row(
            s.employee_name,
            f"{s.total_regular:g}",
            f"{s.total_overtime:g}",
            f"{s.total_hours:g}",
            format_currency(s.total_cost, settings.currency),
        )
    console.print(table)

    if summary_output:
        _write(summary_output, render_timesheet_summary_csv(summaries))
    if entries_output:
        _write(entries_output, render_timesheet_entries_csv(entries))


if __name__ == "__main__":
    app()
