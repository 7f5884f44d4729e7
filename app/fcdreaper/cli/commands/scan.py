"""Scan command implementation.

Lists storage objects, classifies them as assigned or orphaned, and
optionally writes the discovery record. Nothing is changed remotely.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from fcdreaper.cli.display import create_assigned_table, create_orphans_table
from fcdreaper.cli.session import (
    HostOption,
    InsecureOption,
    PasswordOption,
    PortOption,
    UserOption,
    load_cli_config,
    open_provider,
)
from fcdreaper.core.errors import ReaperError
from fcdreaper.core.pipeline import scan_inventory
from fcdreaper.inventory.record import format_inventory
from fcdreaper.models.outcome import AssociationResult
from fcdreaper.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Classify storage objects without changing anything.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def scan(
    ctx: typer.Context,
    host: HostOption = None,
    user: UserOption = None,
    password: PasswordOption = None,
    port: PortOption = None,
    insecure: InsecureOption = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the discovery record of all storage objects to this file.",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output classification as JSON."),
    ] = False,
) -> None:
    """Scan storage objects and show which are orphaned.

    Examples:
        fcdreaper scan --host vc01 --user admin
        fcdreaper scan -o fcds.txt     # Also write the discovery record
        fcdreaper scan --json          # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_cli_config()
    provider = open_provider(config, host, user, password, port, insecure)

    try:
        objects, association = scan_inventory(provider)
    except ReaperError as e:
        print_error(f"Scan failed: {e}")
        raise typer.Exit(code=1) from e
    finally:
        provider.close()

    if output is not None:
        try:
            output.write_text(format_inventory(objects), encoding="utf-8")
        except OSError as e:
            print_error(f"Failed to write {output}: {e}")
            raise typer.Exit(code=1) from e
        print_info(f"Discovery record written to {output}")

    if json_output:
        _print_json(association)
        return

    if not objects:
        print_info("No storage objects found.")
        return

    if association.assigned:
        console.print(create_assigned_table(association))
    if association.orphans:
        console.print(create_orphans_table(association))
        console.print(
            f"\n[dim]{len(association.orphans)} of {association.total} storage objects "
            "are orphaned.[/dim]"
        )
    else:
        print_success("No orphaned storage objects found.")


def _print_json(association: AssociationResult) -> None:
    """Print the classification as JSON.

    Args:
        association: Classification result.
    """
    output = {
        "assigned": [
            {
                "id": a.storage_object.id,
                "name": a.storage_object.name,
                "instance": a.instance_id,
                "other_instances": list(a.other_instances),
                "backing_path": a.storage_object.backing_path,
            }
            for a in association.assigned
        ],
        "orphans": [
            {
                "id": obj.id,
                "name": obj.name,
                "datastore": obj.datastore,
                "capacity_gb": obj.capacity_gb,
                "backing_path": obj.backing_path,
            }
            for obj in association.orphans
        ],
    }
    console.print_json(json.dumps(output))
