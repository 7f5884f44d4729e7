"""Console colors for the fcdreaper CLI.

The bundled data/theme.toml holds two tables: ``[colors]`` for the base
palette and ``[outcomes]`` with one color per outcome status. A user file
at ~/.config/fcdreaper/theme.toml may override any subset of either table.
"""

import logging
import re
import sys
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from fcdreaper.core.paths import get_theme_path
from fcdreaper.models.outcome import OutcomeStatus

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")

ThemeTables = dict[str, dict[str, str]]


def _hex_color(name: str, value: object) -> str:
    if not isinstance(value, str) or not _HEX_COLOR.fullmatch(value.strip()):
        msg = f"{name}: expected a #RGB or #RRGGBB color, got {value!r}"
        raise ValueError(msg)
    return value.strip()


def status_style(status: OutcomeStatus) -> str:
    """Rich style name for an outcome status, e.g. ``status.failed_error``."""
    return f"status.{status.value.lower()}"


class ThemeColors(BaseModel):
    """Validated color palette.

    Outcome statuses missing from ``outcomes`` fall back to a base color:
    ``success`` for removals, ``error`` for failures and ``info`` otherwise.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"
    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"
    outcomes: dict[OutcomeStatus, str] = {}

    @field_validator(
        "text", "muted", "header", "border", "success", "warning", "error", "info",
        mode="before",
    )
    @classmethod
    def _check_base(cls, v: object, info: Any) -> str:
        return _hex_color(info.field_name, v)

    @field_validator("outcomes", mode="before")
    @classmethod
    def _check_outcomes(cls, v: object) -> dict[str, str]:
        if not isinstance(v, dict):
            raise ValueError("outcomes: expected a table of status = color")
        return {str(key).upper(): _hex_color(str(key), value) for key, value in v.items()}

    def outcome_color(self, status: OutcomeStatus) -> str:
        """Color for an outcome status, with the base-palette fallback."""
        if status in self.outcomes:
            return self.outcomes[status]
        if status.is_removed:
            return self.success
        if status.is_failure:
            return self.error
        return self.info


def get_bundled_theme_path() -> Path:
    """Path of the theme shipped in fcdreaper.data."""
    return Path(str(resources.files("fcdreaper.data").joinpath("theme.toml")))


def _read_tables(path: Path) -> ThemeTables | None:
    """Read the ``colors`` and ``outcomes`` tables of a theme file.

    Returns None when the file is missing or unreadable. Non-string
    values are dropped here and left to model validation otherwise.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    tables: ThemeTables = {}
    for section in ("colors", "outcomes"):
        raw = data.get(section, {})
        if not isinstance(raw, dict):
            logger.warning("Ignoring non-table '%s' in %s", section, path)
            continue
        tables[section] = {k: v for k, v in raw.items() if isinstance(v, str)}
    return tables


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the bundled theme with the user's overrides.

    Args:
        user_path: Override file. Defaults to the XDG config location.

    Returns:
        The merged palette, or the built-in defaults if the merge is invalid.
    """
    bundled = _read_tables(get_bundled_theme_path())
    if bundled is None:
        logger.error("Bundled theme missing from the fcdreaper installation")
        bundled = {}
    user = _read_tables(user_path or get_theme_path()) or {}

    colors = {**bundled.get("colors", {}), **user.get("colors", {})}
    outcomes = {**bundled.get("outcomes", {}), **user.get("outcomes", {})}
    try:
        return ThemeColors(**{**colors, "outcomes": outcomes})
    except ValidationError as e:
        logger.warning("Invalid theme, using defaults: %s", e)
        print(f"Warning: invalid theme configuration: {e}", file=sys.stderr)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme, including one ``status.*`` style per outcome."""
    colors = colors or load_theme()
    styles = {
        "text": colors.text,
        "muted": colors.muted,
        "header": colors.header,
        "bold_header": f"bold {colors.header}",
        "border": colors.border,
        "success": colors.success,
        "warning": colors.warning,
        "error": f"bold {colors.error}",
        "info": colors.info,
    }
    for status in OutcomeStatus:
        weight = "" if status == OutcomeStatus.ASSIGNED else "bold "
        styles[status_style(status)] = weight + colors.outcome_color(status)
    return Theme(styles)


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme shared by the CLI consoles, loaded once."""
    return get_rich_theme()
