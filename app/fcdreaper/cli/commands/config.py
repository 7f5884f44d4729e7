"""Config command implementation.

Shows and initializes the fcdreaper configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from fcdreaper.core.config import (
    ConfigError,
    ReaperConfig,
    config_to_dict,
    load_config_or_default,
    save_config,
)
from fcdreaper.core.paths import get_config_path
from fcdreaper.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize configuration.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective configuration."""
    path = get_config_path()
    try:
        config = load_config_or_default(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    source = str(path) if path.exists() else "defaults (no config file)"
    print_info(f"Configuration from {source}")
    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="vCenter host to store."),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="vCenter user to store."),
    ] = None,
) -> None:
    """Write a config file with default settings."""
    path = get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config = ReaperConfig(host=host, user=user)
    try:
        saved = save_config(config, path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
