"""Unit tests for scan command."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fakes import FakeProvider, make_object
from fcdreaper.cli.main import app
from fcdreaper.core.errors import ProviderConnectionError, ProviderOperationError
from fcdreaper.models.storage import ComputeDiskReference
from typer.testing import CliRunner

runner = CliRunner()

CONNECT = ["--host", "vc01", "--user", "admin", "--password", "pw"]


@pytest.fixture
def inventory_provider(provider: FakeProvider) -> FakeProvider:
    """Provider with web-data attached to web01 and db-scratch orphaned."""
    provider.objects = [make_object("u1", "web-data"), make_object("u2", "db-scratch")]
    provider.references = [
        ("web01", [ComputeDiskReference("web01", "[ds1] fcd/web-data.vmdk")]),
    ]
    return provider


@pytest.fixture
def connect(xdg_dirs: Path, inventory_provider: FakeProvider) -> Iterator[MagicMock]:
    """Patch the vCenter connection to return the fake provider."""
    with patch(
        "fcdreaper.cli.session.connect_vsphere", return_value=inventory_provider
    ) as mock_connect:
        yield mock_connect


class TestScanCommand:
    """Tests for fcdreaper scan command."""

    def test_scan_help(self) -> None:
        """Scan command shows help."""
        result = runner.invoke(app, ["scan", "--help"])
        assert result.exit_code == 0
        assert "--output" in result.output

    def test_requires_host_and_user(self, xdg_dirs: Path) -> None:
        """Without host and user in options or config the scan fails."""
        result = runner.invoke(app, ["scan", "--password", "pw"])
        assert result.exit_code == 1
        assert "host and user are required" in result.output

    def test_lists_orphans(
        self, connect: MagicMock, inventory_provider: FakeProvider
    ) -> None:
        """Orphans and assignments are shown and nothing is deleted."""
        result = runner.invoke(app, ["scan", *CONNECT])

        assert result.exit_code == 0
        assert "db-scratch" in result.output
        assert "web01" in result.output
        assert "1 of 2 storage objects are orphaned" in result.output
        assert inventory_provider.calls_of("delete_object") == []
        assert inventory_provider.closed

    def test_connection_options(self, connect: MagicMock) -> None:
        """Command-line values are passed to the connection."""
        runner.invoke(app, ["scan", *CONNECT, "--port", "8443", "-k"])
        connect.assert_called_once_with("vc01", "admin", "pw", port=8443, insecure=True)

    def test_password_from_environment(self, connect: MagicMock) -> None:
        """The password can come from FCDREAPER_PASSWORD."""
        result = runner.invoke(
            app,
            ["scan", "--host", "vc01", "--user", "admin"],
            env={"FCDREAPER_PASSWORD": "from-env"},
        )
        assert result.exit_code == 0
        assert connect.call_args.args[2] == "from-env"

    def test_host_from_config(self, connect: MagicMock, xdg_dirs: Path) -> None:
        """Host and user fall back to the config file."""
        config_path = xdg_dirs / "config" / "fcdreaper" / "config.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text('host = "vc02"\nuser = "ops"\n')

        result = runner.invoke(app, ["scan", "--password", "pw"])

        assert result.exit_code == 0
        assert connect.call_args.args[:2] == ("vc02", "ops")

    def test_json_output(self, connect: MagicMock) -> None:
        """--json prints the classification."""
        result = runner.invoke(app, ["scan", *CONNECT, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [a["instance"] for a in data["assigned"]] == ["web01"]
        assert [o["name"] for o in data["orphans"]] == ["db-scratch"]

    def test_writes_discovery_record(self, connect: MagicMock, tmp_path: Path) -> None:
        """--output writes every storage object as a discovery record."""
        record = tmp_path / "fcds.txt"

        result = runner.invoke(app, ["scan", *CONNECT, "--output", str(record)])

        assert result.exit_code == 0
        text = record.read_text()
        assert "Name: web-data" in text
        assert "ID: datastore-1:u2" in text

    def test_no_orphans(self, connect: MagicMock, inventory_provider: FakeProvider) -> None:
        """A fully assigned inventory reports no orphans."""
        inventory_provider.objects = inventory_provider.objects[:1]

        result = runner.invoke(app, ["scan", *CONNECT])

        assert result.exit_code == 0
        assert "No orphaned storage objects found" in result.output

    def test_connection_failure(self, xdg_dirs: Path) -> None:
        """A failed connection exits with code 1."""
        with patch(
            "fcdreaper.cli.session.connect_vsphere",
            side_effect=ProviderConnectionError("Cannot connect to vc01:443"),
        ):
            result = runner.invoke(app, ["scan", *CONNECT])

        assert result.exit_code == 1
        assert "Cannot connect to vc01:443" in result.output

    def test_inventory_fault_exits_cleanly(
        self, connect: MagicMock, inventory_provider: FakeProvider
    ) -> None:
        """A rejected inventory call is reported as an error line with code 1."""
        inventory_provider.list_error = ProviderOperationError("NoPermission on datastore-3")

        result = runner.invoke(app, ["scan", *CONNECT])

        assert result.exit_code == 1
        assert "Scan failed: NoPermission on datastore-3" in result.output
        assert not isinstance(result.exception, ProviderOperationError)
        assert inventory_provider.closed
