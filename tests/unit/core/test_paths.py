"""Unit tests for XDG path helpers."""

from pathlib import Path

import pytest
from fcdreaper.core.paths import (
    ensure_dir,
    get_audit_path,
    get_config_dir,
    get_config_path,
    get_state_dir,
    get_theme_path,
)


class TestXdgPaths:
    """Tests for XDG directory resolution."""

    def test_env_override(self, xdg_dirs: Path) -> None:
        """XDG variables override the home-based defaults."""
        assert get_config_dir() == xdg_dirs / "config" / "fcdreaper"
        assert get_state_dir() == xdg_dirs / "state" / "fcdreaper"
        assert get_config_path().name == "config.toml"
        assert get_theme_path().name == "theme.toml"

    def test_home_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without XDG variables the home directory is used."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert get_config_dir() == tmp_path / ".config" / "fcdreaper"
        assert get_state_dir() == tmp_path / ".local" / "state" / "fcdreaper"


class TestEnsureDir:
    """Tests for ensure_dir function."""

    def test_creates_nested(self, tmp_path: Path) -> None:
        """ensure_dir creates missing parents."""
        target = tmp_path / "a" / "b"
        assert ensure_dir(target, "state") == target
        assert target.is_dir()

    def test_file_in_the_way(self, tmp_path: Path) -> None:
        """A file at the path raises RuntimeError naming the directory."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(RuntimeError, match="Cannot create state directory"):
            ensure_dir(blocker, "state")


class TestAuditPath:
    """Tests for get_audit_path function."""

    def test_default_state_dir(self, xdg_dirs: Path) -> None:
        """Without an override the audit file lives in the XDG state dir."""
        assert get_audit_path() == xdg_dirs / "state" / "fcdreaper" / "outcomes.jsonl"

    def test_override(self, tmp_path: Path) -> None:
        """An explicit state dir takes precedence."""
        assert get_audit_path(tmp_path) == tmp_path / "outcomes.jsonl"
