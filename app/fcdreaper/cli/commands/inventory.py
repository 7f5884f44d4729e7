"""Inventory command for reading a discovery record.

This module provides the `fcdreaper inventory` command, which parses
a discovery record written by `fcdreaper scan --output` (or by an
external discovery pass) and displays it.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from fcdreaper.inventory.record import read_inventory
from fcdreaper.utils.formatting import (
    console,
    create_storage_table,
    format_storage_row,
    print_error,
    print_info,
)


def inventory(
    path: Annotated[
        Path,
        typer.Argument(help="Discovery record file."),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Parse a discovery record and list its storage objects.

    Examples:
        fcdreaper inventory fcds.txt
        fcdreaper inventory fcds.txt --json
    """
    try:
        objects = read_inventory(path)
    except OSError as e:
        print_error(f"Cannot read {path}: {e}")
        raise typer.Exit(code=1) from e

    if not objects:
        print_info("No storage objects in record.")
        return

    if json_output:
        output = [
            {
                "id": obj.id,
                "name": obj.name,
                "datastore": obj.datastore,
                "capacity_gb": obj.capacity_gb,
                "uid": obj.uid,
                "backing_path": obj.backing_path,
            }
            for obj in objects
        ]
        console.print_json(json.dumps(output))
        return

    table = create_storage_table(f"Storage Objects in {path.name}")
    for obj in objects:
        table.add_row(*format_storage_row(obj))
    console.print(table)
    console.print(f"\n[dim]{len(objects)} storage object(s)[/dim]")
