"""fcdreaper command line entry point.

Global options configure logging; each subcommand lives in
fcdreaper.cli.commands.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from fcdreaper import __version__
from fcdreaper.cli.commands import config, history, inventory, reconcile, scan
from fcdreaper.utils.formatting import err_console

app = typer.Typer(
    name="fcdreaper",
    help="Find and remove orphaned First Class Disks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"fcdreaper version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records through Rich to stderr.

    DEBUG with verbose, ERROR with quiet, WARNING otherwise. Per-object
    progress is logged at INFO and so only shows with verbose.
    """
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=verbose)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_show_version,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log per-object progress and debug details."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors."),
    ] = False,
) -> None:
    """fcdreaper - Find and remove orphaned First Class Disks.

    Storage objects whose backing file no virtual machine references are
    deleted, together with the snapshots that block their deletion.
    """
    if verbose and quiet:
        raise typer.BadParameter("--verbose and --quiet are mutually exclusive")
    ctx.ensure_object(dict)
    ctx.obj.update(verbose=verbose, quiet=quiet)
    setup_logging(verbose, quiet)


for _name, _module in (
    ("scan", scan),
    ("reconcile", reconcile),
    ("history", history),
    ("config", config),
):
    app.add_typer(_module.app, name=_name)
app.command(name="inventory")(inventory.inventory)


if __name__ == "__main__":
    app()
