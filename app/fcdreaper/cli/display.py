"""Shared Rich display functions for classification and outcomes.

Provides reusable table builders and summary printers used by the
scan, reconcile and history commands.
"""

from rich.table import Table

from fcdreaper.models.outcome import (
    AssociationResult,
    DatastoreReconciliationRecord,
    OutcomeStatus,
    ReconciliationOutcome,
)
from fcdreaper.utils.formatting import (
    console,
    create_storage_table,
    format_status,
    format_storage_row,
    print_success,
)


def create_orphans_table(association: AssociationResult, dry_run: bool = False) -> Table:
    """Create a Rich table listing orphaned storage objects.

    Args:
        association: Classification result.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for orphan display.
    """
    title = "Orphaned Storage Objects (Dry Run)" if dry_run else "Orphaned Storage Objects"
    table = create_storage_table(title)
    for obj in association.orphans:
        table.add_row(*format_storage_row(obj))
    return table


def create_assigned_table(association: AssociationResult) -> Table:
    """Create a Rich table listing assigned storage objects and their owners.

    Args:
        association: Classification result.

    Returns:
        Rich Table configured for assignment display.
    """
    table = Table(
        title="Assigned Storage Objects",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Instance", style="status.assigned")
    table.add_column("Backing", overflow="fold")

    for assignment in association.assigned:
        instance = assignment.instance_id
        if assignment.ambiguous:
            instance += f" [warning](+{len(assignment.other_instances)} ambiguous)[/warning]"
        table.add_row(
            assignment.storage_object.display_name,
            instance,
            f"[muted]{assignment.storage_object.backing_path or '-'}[/muted]",
        )

    return table


def create_outcomes_table(outcomes: list[ReconciliationOutcome], title: str = "Results") -> Table:
    """Create a Rich table displaying reconciliation outcomes.

    Args:
        outcomes: Outcomes to display.
        title: Table title.

    Returns:
        Rich Table configured for outcome display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", no_wrap=True)
    table.add_column("Object", no_wrap=True)
    table.add_column("Datastore", style="muted")
    table.add_column("Detail", overflow="fold")

    for outcome in outcomes:
        table.add_row(
            format_status(outcome.status),
            outcome.name or outcome.object_id,
            outcome.datastore or "-",
            f"[muted]{outcome.detail}[/muted]",
        )

    return table


def create_datastore_table(records: list[DatastoreReconciliationRecord]) -> Table:
    """Create a Rich table displaying datastore reconciliation results.

    Args:
        records: Datastore reconciliation records.

    Returns:
        Rich Table configured for reconciliation display.
    """
    table = Table(
        title="Datastore Reconciliation",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Datastore", no_wrap=True)
    table.add_column("Message")

    for record in records:
        if record.success:
            status = "[success]OK[/success]"
            message = ""
        else:
            status = f"[error]{record.status.value.upper()}[/error]"
            message = record.error or "Unknown error"
        table.add_row(status, record.datastore, f"[muted]{message}[/muted]")

    return table


def print_outcome_summary(counts: dict[OutcomeStatus, int]) -> None:
    """Print a summary of outcome counts.

    Shows a success message when nothing failed, or per-status counts
    when there are failures.

    Args:
        counts: Number of outcomes per status.
    """
    removed = counts.get(OutcomeStatus.REMOVED, 0) + counts.get(
        OutcomeStatus.REMOVED_WITH_SNAPSHOT_CLEANUP, 0
    )
    failed = sum(n for status, n in counts.items() if status.is_failure)
    assigned = counts.get(OutcomeStatus.ASSIGNED, 0)

    if failed == 0:
        print_success(f"Removed {removed} orphaned object(s); {assigned} assigned left untouched.")
        return

    parts = [f"[success]{removed} removed[/success]", f"[error]{failed} failed[/error]"]
    manual = counts.get(OutcomeStatus.FAILED_MANUAL_REQUIRED, 0)
    if manual:
        parts.append(f"[status.failed_manual_required]{manual} need manual remediation[/]")
    console.print(f"\nSummary: {', '.join(parts)}")
