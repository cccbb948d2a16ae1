"""CLI entry point for reckon."""

import logging

import typer

from reckon.commands.admin import backup_command, config_command, init_command
from reckon.commands.receipts import (
    add_command,
    delete_command,
    edit_command,
    item_add_command,
    item_remove_command,
    item_update_command,
    list_command,
    show_command,
)
from reckon.commands.report import export_command, stats_command
from reckon.commands.review import check_command, transition_command
from reckon.domain.models import Status
from reckon.logging_setup import configure_logging

app = typer.Typer(
    name="reckon",
    help="Reckon - upload, review and approve expense receipts",
    add_completion=False,
)

ACTOR_HELP = "Who is making the change (or set RECKON_ACTOR)"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Reckon - upload, review and approve expense receipts."""
    configure_logging(logging.DEBUG if verbose else None)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
    migrate: bool = typer.Option(False, "--migrate", help="Update the database schema only"),
) -> None:
    """Initialize reckon database and configuration."""
    init_command(force, migrate)


@app.command(name="backup")
def backup(
    output_dir: str = typer.Option(None, "--output", "-o", help="Backup directory (default: next to the database)"),
) -> None:
    """Backup your database and configuration files."""
    backup_command(output_dir)


@app.command(name="config")
def config(
    key: str = typer.Argument(..., help="Ledger setting (currency, locale, correction_window_hours, ...)"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change a ledger setting."""
    config_command(key, value)


@app.command()
def add(
    vendor: str,
    date: str,
    item: list[str] = typer.Option(None, "--item", "-i", help="Line item as 'description:quantity:price' (repeatable)"),
    tax: str = typer.Option("0", "--tax", help="Tax amount (e.g., 15.12)"),
    currency: str = typer.Option(None, "--currency", help="Currency code (default: from config)"),
    payment: str = typer.Option("other", "--payment", help="cash, credit, debit, transfer or other"),
    project: str = typer.Option("", "--project", help="Project the expense belongs to"),
    category: str = typer.Option("", "--category", "-c", help="Expense category"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    number: str = typer.Option(None, "--number", help="Receipt or invoice number"),
    attachment: str = typer.Option(None, "--attachment", help="Scanned receipt filename (image or PDF)"),
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
) -> None:
    """Add a receipt."""
    add_command(
        vendor,
        date,
        item or [],
        tax,
        actor,
        currency=currency,
        payment_method=payment,
        project=project,
        category=category,
        description=description,
        receipt_number=number,
        attachment=attachment,
    )


@app.command()
def show(receipt_id: str) -> None:
    """Show a receipt with its line items and history."""
    show_command(receipt_id)


@app.command(name="list")
def list_receipts(
    status: str = typer.Option(None, "--status", "-s", help="pending, needs_review, approved, rejected or all"),
    vendor: str = typer.Option(None, "--vendor", help="Vendor contains (case-insensitive)"),
    category: str = typer.Option(None, "--category", "-c", help="Category"),
    since: str = typer.Option(None, "--since", help="Earliest receipt date"),
    until: str = typer.Option(None, "--until", help="Latest receipt date"),
    sort: str = typer.Option("newest", "--sort", help="newest, oldest, amount_high or amount_low"),
    offset: int = typer.Option(0, "--offset", help="Receipts to skip"),
    limit: int = typer.Option(None, "--limit", help="Receipts per page (default: from config)"),
    include_deleted: bool = typer.Option(False, "--include-deleted", help="Show archived receipts too"),
) -> None:
    """List your receipts."""
    list_command(status, vendor, category, since, until, sort, offset, limit, include_deleted)


@app.command(name="edit")
def edit(
    receipt_id: str,
    vendor: str = typer.Option(None, "--vendor"),
    date: str = typer.Option(None, "--date"),
    project: str = typer.Option(None, "--project"),
    category: str = typer.Option(None, "--category", "-c"),
    description: str = typer.Option(None, "--description", "-d"),
    payment: str = typer.Option(None, "--payment"),
    tax: str = typer.Option(None, "--tax"),
) -> None:
    """Change receipt details."""
    edit_command(receipt_id, vendor, date, project, category, description, payment, tax)


@app.command(name="item-add")
def item_add(
    receipt_id: str,
    spec: str = typer.Argument(..., help="Line item as 'description:quantity:price'"),
) -> None:
    """Add a line item to a receipt."""
    item_add_command(receipt_id, spec)


@app.command(name="item-update")
def item_update(
    receipt_id: str,
    index: int = typer.Argument(..., help="Line item number (from 'reckon show')"),
    spec: str = typer.Argument(..., help="Line item as 'description:quantity:price'"),
) -> None:
    """Replace a line item on a receipt."""
    item_update_command(receipt_id, index, spec)


@app.command(name="item-remove")
def item_remove(
    receipt_id: str,
    index: int = typer.Argument(..., help="Line item number (from 'reckon show')"),
) -> None:
    """Remove a line item from a receipt."""
    item_remove_command(receipt_id, index)


@app.command()
def approve(
    receipt_id: str,
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
    expect: str = typer.Option(None, "--expect", help="Fail if the receipt is no longer in this status"),
) -> None:
    """Approve a receipt."""
    transition_command(receipt_id, Status.APPROVED, actor, expect)


@app.command()
def reject(
    receipt_id: str,
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
    expect: str = typer.Option(None, "--expect", help="Fail if the receipt is no longer in this status"),
) -> None:
    """Reject a receipt (or reverse a recent approval)."""
    transition_command(receipt_id, Status.REJECTED, actor, expect)


@app.command()
def flag(
    receipt_id: str,
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
    expect: str = typer.Option(None, "--expect", help="Fail if the receipt is no longer in this status"),
) -> None:
    """Mark a receipt as needing review."""
    transition_command(receipt_id, Status.NEEDS_REVIEW, actor, expect)


@app.command()
def check(
    receipt_id: str,
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
) -> None:
    """Check a receipt for missing data and flag it for review if needed."""
    check_command(receipt_id, actor)


@app.command()
def delete(
    receipt_id: str,
    actor: str = typer.Option(..., "--actor", envvar="RECKON_ACTOR", help=ACTOR_HELP),
) -> None:
    """Delete a receipt (approved receipts are archived instead)."""
    delete_command(receipt_id, actor)


@app.command()
def stats(
    month: str = typer.Option(None, "--month", help="Month to compare against the previous one (YYYY-MM)"),
    histogram: bool = typer.Option(True, help="Show histogram of spending by category"),
) -> None:
    """Show receipt statistics."""
    stats_command(month, histogram)


@app.command(name="export")
def export(
    output: str = typer.Option(None, "--output", "-o", help="CSV file to write"),
) -> None:
    """Export newly approved receipts for the accounting system."""
    export_command(output)


if __name__ == "__main__":
    app()
