"""History command for viewing recorded outcomes.

This module provides the `fcdreaper history` command for viewing the
audit trail of past reconciliation runs.
"""

import json
from datetime import datetime
from typing import Annotated

import typer

from fcdreaper.cli.display import create_outcomes_table
from fcdreaper.cli.session import load_cli_config
from fcdreaper.core.audit import AuditTrail
from fcdreaper.models.outcome import ReconciliationOutcome
from fcdreaper.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View recorded reconciliation outcomes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of entries to show."),
    ] = 20,
    failed: Annotated[
        bool,
        typer.Option("--failed", help="Only show outcomes that need attention."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show recorded reconciliation outcomes, newest first.

    Examples:
        fcdreaper history              # Show last 20 outcomes
        fcdreaper history -n 100       # Show last 100 outcomes
        fcdreaper history --failed     # Only failures
        fcdreaper history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_cli_config()
    audit = AuditTrail(config.effective_state_dir)
    outcomes = audit.read()

    if failed:
        outcomes = [o for o in outcomes if o.status.is_failure]
    outcomes = outcomes[:limit]

    if not outcomes:
        print_info("No recorded outcomes found.")
        return

    if json_output:
        console.print_json(json.dumps([o.to_dict() for o in outcomes]))
        return

    _print_table(outcomes)


def _print_table(outcomes: list[ReconciliationOutcome]) -> None:
    """Print outcomes as a Rich table with a timestamp prefix per detail.

    Args:
        outcomes: Outcomes to display.
    """
    stamped = [
        ReconciliationOutcome(
            object_id=o.object_id,
            status=o.status,
            detail=f"{_format_timestamp(o.timestamp)}  {o.detail}",
            name=o.name,
            datastore=o.datastore,
            delete_attempted=o.delete_attempted,
            timestamp=o.timestamp,
        )
        for o in outcomes
    ]
    console.print(create_outcomes_table(stamped, title="Reconciliation History"))


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display.

    Args:
        iso_timestamp: ISO format timestamp string.

    Returns:
        Formatted timestamp string (YYYY-MM-DD HH:MM), or the input if unparsable.
    """
    try:
        dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except ValueError:
        return iso_timestamp
    return dt.strftime("%Y-%m-%d %H:%M")
