"""Reaper configuration and settings.

This module provides the configuration model and I/O functions for
connection defaults, polling and timeout behavior, and the dependency
discovery strategy.

Configuration is stored in ~/.config/fcdreaper/config.toml. Passwords
are never stored.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fcdreaper.core.dependencies import DependencyStrategy
from fcdreaper.core.paths import get_config_path, get_state_dir

logger = logging.getLogger(__name__)


class ReaperConfig(BaseModel):
    """Configuration for reconciliation runs.

    Attributes:
        host: vCenter host name.
        user: vCenter login user.
        port: vCenter HTTPS port.
        insecure: Skip TLS certificate validation.
        poll_interval_seconds: Seconds between task state polls.
        delete_timeout_seconds: Ceiling for object and snapshot deletions.
        reconcile_timeout_seconds: Ceiling for datastore reconciliation.
        dependency_strategy: How snapshot dependencies are discovered.
        reconcile_datastores: Run the batched datastore reconciliation step.
        state_dir: Directory of the outcome audit trail (None = XDG state dir).
    """

    model_config = ConfigDict(extra="forbid")

    host: Annotated[str | None, Field(description="vCenter host name")] = None
    user: Annotated[str | None, Field(description="vCenter login user")] = None
    port: Annotated[int, Field(ge=1, le=65535, description="vCenter HTTPS port")] = 443
    insecure: Annotated[bool, Field(description="Skip TLS certificate validation")] = False
    poll_interval_seconds: Annotated[
        int,
        Field(ge=1, le=60, description="Seconds between task polls (1-60)"),
    ] = 5
    delete_timeout_seconds: Annotated[
        int,
        Field(ge=30, le=3600, description="Deletion timeout in seconds (30-3600)"),
    ] = 300
    reconcile_timeout_seconds: Annotated[
        int,
        Field(ge=30, le=7200, description="Reconciliation timeout in seconds (30-7200)"),
    ] = 300
    dependency_strategy: Annotated[
        DependencyStrategy,
        Field(description="Snapshot dependency discovery strategy"),
    ] = DependencyStrategy.AUTO
    reconcile_datastores: Annotated[
        bool,
        Field(description="Reconcile touched datastores after the run"),
    ] = True
    state_dir: Annotated[
        Path | None,
        Field(description="Directory for the outcome audit trail"),
    ] = None

    @model_validator(mode="after")
    def _check_interval(self) -> "ReaperConfig":
        """Poll interval must fit inside the deletion timeout."""
        if self.poll_interval_seconds >= self.delete_timeout_seconds:
            msg = "poll_interval_seconds must be shorter than delete_timeout_seconds"
            raise ValueError(msg)
        return self

    @property
    def effective_state_dir(self) -> Path:
        """Audit trail directory, defaulting to the XDG state dir."""
        return self.state_dir if self.state_dir is not None else get_state_dir()


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> ReaperConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated ReaperConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    if "password" in data:
        logger.warning(
            "Ignoring 'password' in %s; passwords are never read from config", config_path
        )
        data.pop("password")

    try:
        return ReaperConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> ReaperConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return ReaperConfig()


def save_config(config: ReaperConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ReaperConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: ReaperConfig) -> dict[str, object]:
    """Convert ReaperConfig to a dictionary for TOML serialization.

    None values are omitted since TOML has no null.

    Args:
        config: The ReaperConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    data = config.model_dump(mode="json", exclude_none=True)
    return dict(data)
