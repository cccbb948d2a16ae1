"""Reporting commands: dashboard statistics and accounting export."""

import sys
from datetime import datetime
from pathlib import Path

from reckon import api
from reckon.commands.common import console, handle_errors, require_database, status_badge
from reckon.config import load_settings
from reckon.dates import month_range
from reckon.domain.models import Month
from reckon.domain.money import to_display_string
from reckon.domain.report import StatLine, calculate_histogram_bar_length, category_totals
from reckon.store.queries import fetch_all_receipts


def format_change(change: float | None) -> str:
    """Colored month-over-month change, e.g. "+12.0%"."""
    if change is None:
        return "[dim]n/a[/dim]"
    if change > 0:
        return f"[green]+{change:.1f}%[/green]"
    if change < 0:
        return f"[red]{change:.1f}%[/red]"
    return "[dim]0.0%[/dim]"


def render_stat_line(line: StatLine) -> None:
    console.print(f"  {line.name:20} {line.value:>6}   {format_change(line.change_percent)} from last month")


def stats_command(month: str | None = None, histogram: bool = True) -> None:
    """Show dashboard statistics."""
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        if month:
            # Validates YYYY-MM
            month_range(Month(month))
        stats = api.receipt_stats(Month(month) if month else None, db_path)
        categories = category_totals(fetch_all_receipts(db_path, include_deleted=False), settings.currency)

    _, _, label = month_range(stats.month)
    console.print(f"[bold cyan]{label}[/bold cyan]\n")

    for line in stats.lines:
        render_stat_line(line)

    if stats.totals_by_currency:
        console.print("\n[bold]Total value:[/bold]")
        for total in stats.totals_by_currency.values():
            console.print(f"  {to_display_string(total, settings.locale)}")

    if categories:
        console.print(f"\n[bold]By category ({settings.currency}):[/bold]\n")
        max_amount = max(amount.minor_units for _, amount in categories)
        for category, amount in categories:
            amount_display = to_display_string(amount, settings.locale)
            name = category or "(none)"
            if histogram:
                bar = "█" * calculate_histogram_bar_length(amount.minor_units, max_amount, 30)
                console.print(f"  {name:20} {amount_display:>14} {bar}")
            else:
                console.print(f"  {name}: {amount_display}")

    if stats.recent:
        console.print("\n[bold]Recent receipts:[/bold]")
        for receipt in stats.recent:
            console.print(
                f"  {receipt.date.isoformat()}  {receipt.vendor:30} "
                f"{to_display_string(receipt.total, settings.locale):>14}  {status_badge(receipt.status)}"
            )


def export_command(output: str | None = None) -> None:
    """Export newly approved receipts to a CSV file for the accounting system."""
    db_path = require_database()

    if output:
        output_path = Path(output).expanduser()
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = db_path.parent / "exports" / f"approved_{timestamp}.csv"

    with handle_errors():
        try:
            count = api.export_approved(output_path, db_path)
        except OSError as e:
            console.print(f"[red]Export failed: {e}[/red]", style="bold")
            sys.exit(1)

    if count == 0:
        console.print("[yellow]No newly approved receipts to export[/yellow]")
        return

    console.print(f"[green]✓[/green] Exported {count} receipt(s) to: {output_path}")
