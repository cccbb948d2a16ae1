"""Review commands for approving, rejecting and flagging receipts."""

from reckon import api
from reckon.commands.common import console, handle_errors, require_database, status_badge
from reckon.config import load_settings
from reckon.domain.models import Actor, Status


def transition_command(receipt_id: str, to_status: Status, actor: str, expect: str | None = None) -> None:
    """Move a receipt to a new status.

    Args:
        receipt_id: Receipt ID.
        to_status: Target status.
        actor: Who performs the review.
        expect: Status the reviewer last saw; the change fails if it has moved on.
    """
    db_path = require_database()
    settings = load_settings()

    with handle_errors():
        expected_status = Status(expect) if expect else None
        result = api.transition_status(receipt_id, to_status, Actor(actor), expected_status, db_path, settings)

    if result.event is None:
        console.print(f"[dim]Receipt {receipt_id} is already {status_badge(to_status)}[/dim]")
        return

    console.print(
        f"[green]✓[/green] Receipt {receipt_id}: "
        f"{status_badge(result.event.from_status)} → {status_badge(result.event.to_status)}"
    )


def check_command(receipt_id: str, actor: str) -> None:
    """Run automated checks and flag the receipt for review if needed."""
    db_path = require_database()

    with handle_errors():
        result, flags = api.check_receipt(receipt_id, Actor(actor), db_path)

    if not flags:
        console.print(f"[green]✓[/green] Receipt {receipt_id} passed all checks")
        return

    console.print(f"[yellow]Receipt {receipt_id} has {len(flags)} issue(s):[/yellow]")
    for flag in flags:
        console.print(f"  • {flag}")

    if result.event is not None:
        console.print(f"[dim]Moved to {status_badge(Status.NEEDS_REVIEW)}[/dim]")
    else:
        console.print(f"[dim]Status unchanged ({status_badge(result.receipt.status)})[/dim]")
