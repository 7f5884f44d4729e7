"""Shared connection options and provider setup for CLI commands.

The session to vCenter is opened explicitly by each command that needs
one and handed to the engine as an InventoryProvider.
"""

from typing import Annotated

import typer

from fcdreaper.core.config import ConfigError, ReaperConfig, load_config_or_default
from fcdreaper.core.errors import ProviderConnectionError
from fcdreaper.providers.base import InventoryProvider
from fcdreaper.providers.vsphere import connect_vsphere
from fcdreaper.utils.formatting import print_error

PASSWORD_ENV = "FCDREAPER_PASSWORD"

HostOption = Annotated[
    str | None,
    typer.Option("--host", "-H", help="vCenter host (default: from config)."),
]
UserOption = Annotated[
    str | None,
    typer.Option("--user", "-u", help="vCenter user (default: from config)."),
]
PasswordOption = Annotated[
    str | None,
    typer.Option(
        "--password",
        envvar=PASSWORD_ENV,
        help=f"vCenter password (or set {PASSWORD_ENV}; prompted if missing).",
        show_default=False,
    ),
]
PortOption = Annotated[
    int | None,
    typer.Option("--port", help="vCenter HTTPS port (default: from config)."),
]
InsecureOption = Annotated[
    bool,
    typer.Option("--insecure", "-k", help="Skip TLS certificate validation."),
]


def load_cli_config() -> ReaperConfig:
    """Load the config file for a command, exiting on invalid content.

    Raises:
        typer.Exit: If the config file exists but is invalid.
    """
    try:
        return load_config_or_default()
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e


def open_provider(
    config: ReaperConfig,
    host: str | None,
    user: str | None,
    password: str | None,
    port: int | None,
    insecure: bool,
) -> InventoryProvider:
    """Connect to vCenter using command-line values over config values.

    Args:
        config: Loaded configuration supplying defaults.
        host: Host from the command line.
        user: User from the command line.
        password: Password from the command line or environment.
        port: Port from the command line.
        insecure: Insecure flag from the command line.

    Returns:
        Connected InventoryProvider.

    Raises:
        typer.Exit: If connection details are missing or the connection fails.
    """
    host = host or config.host
    user = user or config.user
    if not host or not user:
        print_error("vCenter host and user are required (use --host/--user or config).")
        raise typer.Exit(code=1)

    if password is None:
        password = typer.prompt(f"Password for {user}@{host}", hide_input=True)

    try:
        return connect_vsphere(
            host,
            user,
            password,
            port=port or config.port,
            insecure=insecure or config.insecure,
        )
    except ProviderConnectionError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
