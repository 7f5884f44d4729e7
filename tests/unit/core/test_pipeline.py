"""Unit tests for the end-to-end reconciliation pipeline."""

import logging
from pathlib import Path

import pytest
from fakes import SUCCESS, FakeClock, FakeProvider, failed, make_object
from fcdreaper.core.audit import AuditTrail
from fcdreaper.core.config import ReaperConfig
from fcdreaper.core.errors import ProviderConnectionError
from fcdreaper.core.pipeline import (
    ReconciliationPipeline,
    RunReport,
    assigned_outcome,
    scan_inventory,
)
from fcdreaper.models.outcome import Assignment, OutcomeStatus, ReconciliationOutcome
from fcdreaper.models.storage import ComputeDiskReference, StorageObject


@pytest.fixture
def web_data() -> StorageObject:
    return make_object("u1", "web-data")


@pytest.fixture
def scratch() -> StorageObject:
    return make_object("u2", "db-scratch")


@pytest.fixture
def inventory_provider(
    provider: FakeProvider, web_data: StorageObject, scratch: StorageObject
) -> FakeProvider:
    """Provider with one attached disk (web01) and one orphan."""
    provider.objects = [web_data, scratch]
    provider.references = [
        ("web01", [ComputeDiskReference("web01", "[ds1] fcd/web-data.vmdk")]),
    ]
    return provider


def build(
    provider: FakeProvider, clock: FakeClock, state_dir: Path, **overrides: object
) -> ReconciliationPipeline:
    """Build a pipeline writing its audit trail into state_dir."""
    config = ReaperConfig(delete_timeout_seconds=30, **overrides)
    return ReconciliationPipeline(
        provider, config, audit=AuditTrail(state_dir), sleep=clock.sleep, clock=clock
    )


class TestScanInventory:
    """Tests for scan_inventory function."""

    def test_classifies_provider_inventory(
        self, inventory_provider: FakeProvider, web_data: StorageObject, scratch: StorageObject
    ) -> None:
        """Objects are fetched and partitioned without deleting anything."""
        objects, association = scan_inventory(inventory_provider)

        assert objects == [web_data, scratch]
        assert [(a.storage_object, a.instance_id) for a in association.assigned] == [
            (web_data, "web01")
        ]
        assert association.orphans == (scratch,)
        assert inventory_provider.calls_of("delete_object") == []

    def test_recorded_objects_replace_listing(
        self, inventory_provider: FakeProvider, web_data: StorageObject
    ) -> None:
        """Given objects are classified against live references without listing."""
        unknown = make_object("u7", "from-record", backing_path=None)

        objects, association = scan_inventory(inventory_provider, [web_data, unknown])

        assert objects == [web_data, unknown]
        assert association.orphans == (unknown,)
        assert inventory_provider.calls_of("list_storage_objects") == []
        assert inventory_provider.calls_of("list_compute_disk_references") != []


class TestAssignedOutcome:
    """Tests for assigned_outcome function."""

    def test_detail_names_instance(self, web_data: StorageObject) -> None:
        """The detail names the owning instance."""
        outcome = assigned_outcome(Assignment(web_data, "web01"))

        assert outcome.status == OutcomeStatus.ASSIGNED
        assert outcome.detail == "Attached to web01"
        assert not outcome.delete_attempted

    def test_ambiguous_detail(self, web_data: StorageObject) -> None:
        """Ambiguous assignments list the other instances."""
        outcome = assigned_outcome(Assignment(web_data, "web01", ("web02", "web03")))
        assert outcome.detail == "Attached to web01 (ambiguous: also referenced by web02, web03)"


class TestRunReport:
    """Tests for RunReport."""

    def test_counts_and_failures(self) -> None:
        """Counts group outcomes by status."""
        report = RunReport(
            outcomes=(
                ReconciliationOutcome("a", OutcomeStatus.REMOVED, ""),
                ReconciliationOutcome("b", OutcomeStatus.REMOVED, ""),
                ReconciliationOutcome("c", OutcomeStatus.FAILED_ERROR, ""),
            )
        )
        assert report.counts == {OutcomeStatus.REMOVED: 2, OutcomeStatus.FAILED_ERROR: 1}
        assert report.has_failures

    def test_no_failures(self) -> None:
        """A run with only assigned and removed objects has no failures."""
        report = RunReport(outcomes=(ReconciliationOutcome("a", OutcomeStatus.ASSIGNED, ""),))
        assert not report.has_failures


class TestReconciliationPipeline:
    """Tests for ReconciliationPipeline.run method."""

    def test_assigned_untouched_orphan_removed(
        self,
        inventory_provider: FakeProvider,
        clock: FakeClock,
        tmp_path: Path,
        web_data: StorageObject,
        scratch: StorageObject,
    ) -> None:
        """The attached disk is ASSIGNED, the orphan REMOVED, both audited in order."""
        report = build(inventory_provider, clock, tmp_path).run()

        assert [(o.object_id, o.status) for o in report.outcomes] == [
            (web_data.id, OutcomeStatus.ASSIGNED),
            (scratch.id, OutcomeStatus.REMOVED),
        ]
        assert report.outcomes[0].detail == "Attached to web01"
        assert inventory_provider.calls_of("delete_object") == [("delete_object", scratch.id)]

        lines = (tmp_path / "outcomes.jsonl").read_text().splitlines()
        assert len(lines) == 2
        assert [o.object_id for o in AuditTrail(tmp_path).read()] == [scratch.id, web_data.id]

    def test_reconciles_touched_datastore_once(
        self, provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """Several deletions on one datastore end with one reconciliation."""
        provider.objects = [make_object("u1"), make_object("u2"), make_object("u3")]

        report = build(provider, clock, tmp_path).run()

        assert provider.calls_of("reconcile_datastore") == [
            ("reconcile_datastore", "datastore-1")
        ]
        assert provider.calls[-1] == ("reconcile_datastore", "datastore-1")
        assert len(report.datastore_records) == 1

    def test_reconciliation_can_be_disabled(
        self, provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """reconcile_datastores=False skips the batch step."""
        provider.objects = [make_object("u1")]

        report = build(provider, clock, tmp_path, reconcile_datastores=False).run()

        assert report.datastore_records == ()
        assert provider.calls_of("reconcile_datastore") == []

    def test_failed_object_does_not_stop_run(
        self, provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """A failure on one orphan is recorded and the next orphan is processed."""
        first, second = make_object("u1"), make_object("u2", datastore_ref="datastore-2")
        provider.objects = [first, second]
        provider.delete_scripts[first.id] = [
            failed("Snapshot s1 relies on this object"),
            failed("still locked"),
        ]

        report = build(provider, clock, tmp_path).run()

        assert [o.status for o in report.outcomes] == [
            OutcomeStatus.FAILED_ERROR,
            OutcomeStatus.REMOVED,
        ]
        assert report.has_failures
        assert [r.datastore for r in report.datastore_records] == ["datastore-1", "datastore-2"]

    def test_on_outcome_called_in_order(
        self, inventory_provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """The callback receives every outcome as it is recorded."""
        seen: list[OutcomeStatus] = []

        build(inventory_provider, clock, tmp_path).run(on_outcome=lambda o: seen.append(o.status))

        assert seen == [OutcomeStatus.ASSIGNED, OutcomeStatus.REMOVED]

    def test_uses_given_inventory(
        self, inventory_provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """A prior scan is acted upon without listing again."""
        inventory = scan_inventory(inventory_provider)
        inventory_provider.calls.clear()
        inventory_provider.objects = []

        report = build(inventory_provider, clock, tmp_path).run(inventory=inventory)

        assert len(report.outcomes) == 2
        assert inventory_provider.calls_of("list_storage_objects") == []

    def test_audit_write_failure_logged(
        self,
        provider: FakeProvider,
        clock: FakeClock,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """An unwritable audit trail is logged and the run continues."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        provider.objects = [make_object("u1")]

        with caplog.at_level(logging.ERROR):
            report = build(provider, clock, blocker).run()

        assert report.outcomes[0].status == OutcomeStatus.REMOVED
        assert "Failed to record outcome" in caplog.text

    def test_connection_loss_aborts_after_recording_progress(
        self, provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """Outcomes recorded before a connection loss stay in the audit trail."""
        first, second = make_object("u1"), make_object("u2")
        provider.objects = [first, second]
        provider.delete_scripts[second.id] = [ProviderConnectionError("session lost")]

        with pytest.raises(ProviderConnectionError):
            build(provider, clock, tmp_path).run()

        recorded = AuditTrail(tmp_path).read()
        assert [(o.object_id, o.status) for o in recorded] == [
            (first.id, OutcomeStatus.REMOVED)
        ]
        assert provider.calls_of("reconcile_datastore") == []

    def test_strategy_from_config(
        self, listing_provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """The configured strategy selects the dependency analyzer."""
        listing_provider.objects = [make_object("u1")]

        build(listing_provider, clock, tmp_path, dependency_strategy="reactive").run()

        assert listing_provider.calls_of("list_snapshots") == []

    def test_retry_succeeds_end_to_end(
        self, provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """A snapshot conflict resolved mid-run is audited as cleanup removal."""
        obj = make_object("u1")
        provider.objects = [obj]
        provider.delete_scripts[obj.id] = [
            failed("Snapshot abcd-1234 relies on this object"),
            SUCCESS,
        ]

        report = build(provider, clock, tmp_path).run()

        assert report.outcomes[0].status == OutcomeStatus.REMOVED_WITH_SNAPSHOT_CLEANUP
        recorded = AuditTrail(tmp_path).read()
        assert recorded[0].status == OutcomeStatus.REMOVED_WITH_SNAPSHOT_CLEANUP

    def test_second_run_is_idempotent(
        self, inventory_provider: FakeProvider, clock: FakeClock, tmp_path: Path
    ) -> None:
        """Re-running after a complete run deletes nothing more."""
        pipeline = build(inventory_provider, clock, tmp_path)
        pipeline.run()
        inventory_provider.calls.clear()

        report = pipeline.run()

        assert [o.status for o in report.outcomes] == [OutcomeStatus.ASSIGNED]
        assert inventory_provider.calls_of("delete_object") == []
        assert report.datastore_records == ()
