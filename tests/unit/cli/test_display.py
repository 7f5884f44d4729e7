"""Unit tests for shared display helpers."""

from fakes import make_object
from fcdreaper.cli.display import (
    create_assigned_table,
    create_datastore_table,
    create_orphans_table,
    create_outcomes_table,
)
from fcdreaper.models.outcome import (
    Assignment,
    AssociationResult,
    DatastoreReconciliationRecord,
    OutcomeStatus,
    ReconciliationOutcome,
)
from fcdreaper.models.task import TaskState


class TestTables:
    """Tests for table builders."""

    def test_orphans_table(self) -> None:
        """One row per orphan, with a dry-run title when requested."""
        association = AssociationResult(
            assigned=(), orphans=(make_object("u1"), make_object("u2"))
        )

        table = create_orphans_table(association, dry_run=True)

        assert table.row_count == 2
        assert table.title == "Orphaned Storage Objects (Dry Run)"

    def test_assigned_table(self) -> None:
        """One row per assignment."""
        association = AssociationResult(
            assigned=(Assignment(make_object("u1"), "web01", ("web02",)),), orphans=()
        )
        assert create_assigned_table(association).row_count == 1

    def test_outcomes_table(self) -> None:
        """One row per outcome with the given title."""
        outcomes = [ReconciliationOutcome("datastore-1:u1", OutcomeStatus.REMOVED, "ok")]

        table = create_outcomes_table(outcomes, title="History")

        assert table.row_count == 1
        assert table.title == "History"

    def test_datastore_table(self) -> None:
        """One row per datastore record."""
        records = [
            DatastoreReconciliationRecord("datastore-1", TaskState.SUCCESS),
            DatastoreReconciliationRecord("datastore-2", TaskState.TIMEOUT, error="slow"),
        ]
        assert create_datastore_table(records).row_count == 2
