"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fakes import FakeClock, FakeProvider


@pytest.fixture
def clock() -> FakeClock:
    """Fake monotonic clock whose sleep advances time instantly."""
    return FakeClock()


@pytest.fixture
def provider() -> FakeProvider:
    """Empty fake provider without snapshot listing."""
    return FakeProvider()


@pytest.fixture
def listing_provider() -> FakeProvider:
    """Empty fake provider that supports snapshot listing."""
    return FakeProvider(listing=True)


@pytest.fixture
def xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point XDG config and state directories into tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    yield tmp_path
