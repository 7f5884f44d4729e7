"""Shared Rich consoles and output helpers.

Results go to stdout through ``console``; warnings, errors and log
records go to stderr through ``err_console``. Both use the fcdreaper theme.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from fcdreaper.core.theme import get_theme, status_style

if TYPE_CHECKING:
    from fcdreaper.models.outcome import OutcomeStatus
    from fcdreaper.models.storage import StorageObject


def _make_console(stderr: bool = False) -> Console:
    # Hex theme colors need truecolor; plain text when piped
    stream = sys.stderr if stderr else sys.stdout
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console()
err_console = _make_console(stderr=True)


def create_storage_table(title: str = "Storage Objects") -> Table:
    """Create a pre-configured table for displaying storage objects.

    Args:
        title: Table title.

    Returns:
        Rich Table with Name, Datastore, Capacity, ID and Backing columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Name", no_wrap=True, style="text")
    table.add_column("Datastore", style="muted")
    table.add_column("Capacity", style="info", justify="right")
    table.add_column("ID", style="muted", overflow="fold")
    table.add_column("Backing", overflow="fold")
    return table


def format_storage_row(obj: StorageObject) -> tuple[str, str, str, str, str]:
    """Format a storage object as a table row.

    Args:
        obj: The storage object to format.

    Returns:
        Tuple of (name, datastore, capacity, id, backing path).
    """
    capacity = f"{obj.capacity_gb:g} GB" if obj.capacity_gb is not None else "-"
    return (
        obj.display_name,
        obj.datastore or "-",
        capacity,
        obj.id,
        obj.backing_path or "-",
    )


def format_status(status: OutcomeStatus) -> str:
    """Format an outcome status with color markup.

    Args:
        status: Outcome status to format.

    Returns:
        Rich markup string for status display.
    """
    style = status_style(status)
    return f"[{style}]{status.value}[/]"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
