"""Where fcdreaper keeps its files.

Locations follow the XDG base directory layout:

- config.toml, theme.toml: $XDG_CONFIG_HOME/fcdreaper (~/.config/fcdreaper)
- outcomes.jsonl: $XDG_STATE_HOME/fcdreaper (~/.local/state/fcdreaper)
"""

import os
from pathlib import Path

APP_NAME = "fcdreaper"
AUDIT_FILENAME = "outcomes.jsonl"


def _app_dir(env_var: str, home_fallback: str) -> Path:
    # An empty variable counts as unset
    base = os.environ.get(env_var) or Path.home() / home_fallback
    return Path(base) / APP_NAME


def get_config_dir() -> Path:
    """Directory holding config.toml and the theme override."""
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Directory holding the outcome audit trail between runs."""
    return _app_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    return get_config_dir() / "theme.toml"


def get_audit_path(state_dir: Path | None = None) -> Path:
    """Audit trail file inside state_dir, or inside the XDG state dir."""
    return (state_dir or get_state_dir()) / AUDIT_FILENAME


def ensure_dir(path: Path, purpose: str) -> Path:
    """Create path and its parents if needed.

    Args:
        path: Directory to create.
        purpose: What the directory is for, used in the error message.

    Returns:
        The directory path.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        reason = "Permission denied" if isinstance(e, PermissionError) else str(e)
        raise RuntimeError(f"Cannot create {purpose} directory {path}: {reason}") from e
    return path
