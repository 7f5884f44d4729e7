"""Reconciliation outcome models.

This module defines the per-object outcome records written to the
audit trail, the per-datastore reconciliation records, and the result
of association resolution.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fcdreaper.models.storage import StorageObject
from fcdreaper.models.task import TaskState


class OutcomeStatus(str, Enum):
    """Terminal classification of a storage object.

    Attributes:
        ASSIGNED: Referenced by a compute instance; left untouched.
        REMOVED: Deleted on the first attempt.
        REMOVED_WITH_SNAPSHOT_CLEANUP: Deleted after its snapshots were removed.
        FAILED_MANUAL_REQUIRED: Blocked by a dependency that could not be identified.
        FAILED_ERROR: Deletion failed or timed out.
        RESOLUTION_FAILED: A blocking snapshot could not be removed.
    """

    ASSIGNED = "ASSIGNED"
    REMOVED = "REMOVED"
    REMOVED_WITH_SNAPSHOT_CLEANUP = "REMOVED_WITH_SNAPSHOT_CLEANUP"
    FAILED_MANUAL_REQUIRED = "FAILED_MANUAL_REQUIRED"
    FAILED_ERROR = "FAILED_ERROR"
    RESOLUTION_FAILED = "RESOLUTION_FAILED"

    @property
    def is_removed(self) -> bool:
        """Check if the object no longer exists after this outcome."""
        return self in (OutcomeStatus.REMOVED, OutcomeStatus.REMOVED_WITH_SNAPSHOT_CLEANUP)

    @property
    def is_failure(self) -> bool:
        """Check if this outcome needs operator attention."""
        return self in (
            OutcomeStatus.FAILED_MANUAL_REQUIRED,
            OutcomeStatus.FAILED_ERROR,
            OutcomeStatus.RESOLUTION_FAILED,
        )


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """Outcome recorded for a single storage object.

    Attributes:
        object_id: Id of the storage object.
        status: Terminal classification.
        detail: Human-readable detail, including remediation steps on failure.
        name: Display name of the object.
        datastore: Datastore reference of the object.
        delete_attempted: Whether a delete call was issued for the object.
        timestamp: When the outcome was recorded (ISO 8601 with timezone).
        snapshots_removed: Ids of snapshots removed while processing the object.
    """

    object_id: str
    status: OutcomeStatus
    detail: str
    name: str | None = None
    datastore: str | None = None
    delete_attempted: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    snapshots_removed: tuple[str, ...] = ()

    @property
    def touched_datastore(self) -> bool:
        """Check if processing changed the datastore (a delete or a snapshot removal)."""
        return self.delete_attempted or bool(self.snapshots_removed)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the outcome.
        """
        return {
            "object_id": self.object_id,
            "status": self.status.value,
            "detail": self.detail,
            "name": self.name,
            "datastore": self.datastore,
            "delete_attempted": self.delete_attempted,
            "timestamp": self.timestamp,
            "snapshots_removed": list(self.snapshots_removed),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReconciliationOutcome":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the status is invalid.
        """
        return cls(
            object_id=data["object_id"],
            status=OutcomeStatus(data["status"]),
            detail=data["detail"],
            name=data.get("name"),
            datastore=data.get("datastore"),
            delete_attempted=data.get("delete_attempted", False),
            timestamp=data.get("timestamp") or datetime.now(UTC).isoformat(),
            snapshots_removed=tuple(data.get("snapshots_removed", ())),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "ReconciliationOutcome":
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


@dataclass(frozen=True, slots=True)
class DatastoreReconciliationRecord:
    """Result of an inventory reconciliation task for one datastore.

    Attributes:
        datastore: Datastore reference that was reconciled.
        status: SUCCESS, FAILED or TIMEOUT.
        task_handle: Provider task handle (None if submission failed).
        error: Error detail for unsuccessful reconciliation.
    """

    datastore: str
    status: TaskState
    task_handle: Any = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the reconciliation completed successfully."""
        return self.status == TaskState.SUCCESS


@dataclass(frozen=True, slots=True)
class Assignment:
    """A storage object referenced by a compute instance.

    Attributes:
        storage_object: The referenced object.
        instance_id: Instance that won the match (first in enumeration order).
        other_instances: Further instances referencing the same backing path.
    """

    storage_object: StorageObject
    instance_id: str
    other_instances: tuple[str, ...] = ()

    @property
    def ambiguous(self) -> bool:
        """Check if more than one instance references the backing path."""
        return bool(self.other_instances)


@dataclass(frozen=True, slots=True)
class AssociationResult:
    """Partition of storage objects into assigned and orphaned.

    Attributes:
        assigned: Objects referenced by an instance, in input order.
        orphans: Objects no instance references, in input order.
    """

    assigned: tuple[Assignment, ...]
    orphans: tuple[StorageObject, ...]

    @property
    def total(self) -> int:
        """Total number of classified objects."""
        return len(self.assigned) + len(self.orphans)
