"""Reconcile command implementation.

Deletes orphaned storage objects, removing blocking snapshots where
needed, then reconciles the inventory of every touched datastore.
"""

from pathlib import Path
from typing import Annotated

import typer

from fcdreaper.cli.display import (
    create_datastore_table,
    create_orphans_table,
    create_outcomes_table,
    print_outcome_summary,
)
from fcdreaper.cli.session import (
    HostOption,
    InsecureOption,
    PasswordOption,
    PortOption,
    UserOption,
    load_cli_config,
    open_provider,
)
from fcdreaper.core.audit import AuditTrail
from fcdreaper.core.dependencies import DependencyStrategy
from fcdreaper.core.errors import ProviderConnectionError, ReaperError
from fcdreaper.core.pipeline import ReconciliationPipeline, scan_inventory
from fcdreaper.inventory.record import read_inventory
from fcdreaper.models.outcome import OutcomeStatus, ReconciliationOutcome
from fcdreaper.models.storage import StorageObject
from fcdreaper.utils.formatting import (
    console,
    format_status,
    print_error,
    print_info,
    print_success,
)

app = typer.Typer(
    help="Delete orphaned storage objects.",
    invoke_without_command=True,
)


def _confirm_deletion(orphan_count: int) -> bool:
    """Prompt user to confirm deletion.

    Args:
        orphan_count: Number of orphaned objects to delete.

    Returns:
        True if user confirms, False otherwise.
    """
    return typer.confirm(
        f"\nDelete {orphan_count} orphaned storage object(s) and their snapshots?",
        default=False,
    )


def _print_progress(outcome: ReconciliationOutcome) -> None:
    """Print one progress line per processed orphan."""
    if outcome.status == OutcomeStatus.ASSIGNED:
        return
    console.print(f"  {format_status(outcome.status)} {outcome.name or outcome.object_id}")


@app.callback(invoke_without_command=True)
def reconcile(
    ctx: typer.Context,
    host: HostOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    port: PortOption = None,
    insecure: InsecureOption = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt and proceed."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would be deleted without deleting."),
    ] = False,
    strategy: Annotated[
        DependencyStrategy | None,
        typer.Option(
            "--strategy",
            "-s",
            help="Snapshot discovery: auto, proactive or reactive (default: from config).",
            case_sensitive=False,
        ),
    ] = None,
    no_reconcile: Annotated[
        bool,
        typer.Option("--no-reconcile", help="Skip datastore inventory reconciliation."),
    ] = False,
    from_record: Annotated[
        Path | None,
        typer.Option(
            "--from-record",
            "-r",
            help="Take storage objects from a discovery record instead of listing them.",
        ),
    ] = None,
) -> None:
    """Delete orphaned storage objects.

    Storage objects whose backing file is not referenced by any virtual
    machine are deleted one at a time. Snapshots blocking a deletion are
    removed and the deletion is retried once. Afterwards the inventory
    of every touched datastore is reconciled.

    Every object gets one line in the audit trail (see 'fcdreaper history').

    Examples:
        fcdreaper reconcile --dry-run      # Preview orphans
        fcdreaper reconcile --yes          # Delete without confirmation
        fcdreaper reconcile -s reactive    # Rely on delete diagnostics
        fcdreaper reconcile -r fcds.txt    # Objects from a discovery record
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_cli_config()
    updates: dict[str, object] = {}
    if strategy is not None:
        updates["dependency_strategy"] = strategy
    if no_reconcile:
        updates["reconcile_datastores"] = False
    if updates:
        config = config.model_copy(update=updates)

    recorded: list[StorageObject] | None = None
    if from_record is not None:
        try:
            recorded = read_inventory(from_record)
        except OSError as e:
            print_error(f"Cannot read {from_record}: {e}")
            raise typer.Exit(code=1) from e
        print_info(f"{len(recorded)} storage object(s) read from {from_record}")

    provider = open_provider(config, host, user, password, port, insecure)
    try:
        try:
            inventory = scan_inventory(provider, recorded)
        except ReaperError as e:
            print_error(f"Scan failed: {e}")
            raise typer.Exit(code=1) from e

        _, association = inventory
        if not association.orphans:
            print_success("No orphaned storage objects found. Nothing to do.")
            return

        console.print(create_orphans_table(association, dry_run=dry_run))

        if dry_run:
            print_info("\nDry-run mode: No changes were made.")
            return

        if not yes and not _confirm_deletion(len(association.orphans)):
            print_info("Aborted.")
            raise typer.Exit(code=0)

        audit = AuditTrail(config.effective_state_dir)
        pipeline = ReconciliationPipeline(provider, config, audit=audit)

        console.print("\n[bold]Reconciling...[/bold]\n")
        try:
            report = pipeline.run(on_outcome=_print_progress, inventory=inventory)
        except ProviderConnectionError as e:
            print_error(f"Connection lost, run aborted: {e}")
            print_info("Re-run the command to continue; removed objects will not reappear.")
            raise typer.Exit(code=1) from e
    finally:
        provider.close()

    orphan_outcomes = [o for o in report.outcomes if o.status != OutcomeStatus.ASSIGNED]
    console.print(create_outcomes_table(orphan_outcomes))
    if report.datastore_records:
        console.print(create_datastore_table(list(report.datastore_records)))
    print_outcome_summary(report.counts)
    print_info(f"Audit trail: {audit.path}")

    if report.has_failures:
        raise typer.Exit(code=1)
