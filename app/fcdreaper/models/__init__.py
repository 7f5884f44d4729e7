"""Data models for fcdreaper.

This module exports the core data structures used throughout the application.
"""

from fcdreaper.models.outcome import (
    Assignment,
    AssociationResult,
    DatastoreReconciliationRecord,
    OutcomeStatus,
    ReconciliationOutcome,
)
from fcdreaper.models.storage import (
    ComputeDiskReference,
    SnapshotDependency,
    StorageObject,
    datastore_ref_from_id,
    disk_uuid_from_id,
)
from fcdreaper.models.task import (
    TaskHandle,
    TaskOperation,
    TaskResult,
    TaskState,
    TaskStatus,
)

__all__ = [
    "Assignment",
    "AssociationResult",
    "ComputeDiskReference",
    "DatastoreReconciliationRecord",
    "OutcomeStatus",
    "ReconciliationOutcome",
    "SnapshotDependency",
    "StorageObject",
    "TaskHandle",
    "TaskOperation",
    "TaskResult",
    "TaskState",
    "TaskStatus",
    "datastore_ref_from_id",
    "disk_uuid_from_id",
]
