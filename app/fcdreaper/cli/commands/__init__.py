"""CLI commands for fcdreaper.

This package contains all subcommand implementations.
"""

from fcdreaper.cli.commands import config, history, inventory, reconcile, scan

__all__ = ["config", "history", "inventory", "reconcile", "scan"]
