"""Exception hierarchy for reconciliation runs.

Only ProviderConnectionError is fatal to a run. Every other error is
scoped to a single storage object or datastore and is converted into
an outcome or record by the component that catches it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcdreaper.models.storage import SnapshotDependency
    from fcdreaper.models.task import TaskResult


class ReaperError(Exception):
    """Base exception for fcdreaper errors."""


class ProviderConnectionError(ReaperError):
    """Raised when the inventory provider cannot be reached. Aborts the run."""


class ProviderOperationError(ReaperError):
    """Raised when the provider rejects an operation synchronously.

    Attributes:
        diagnostic: Error text returned by the platform.
    """

    def __init__(self, diagnostic: str) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class DeletionConflict(ReaperError):
    """Raised when deletion is blocked by identifiable snapshot dependencies."""

    def __init__(self, dependencies: list[SnapshotDependency], diagnostic: str) -> None:
        ids = ", ".join(dep.snapshot_id for dep in dependencies)
        super().__init__(f"Deletion blocked by snapshot(s): {ids}")
        self.dependencies = dependencies
        self.diagnostic = diagnostic


class DependencyExtractionFailure(ReaperError):
    """Raised when deletion is blocked by a dependency that cannot be identified."""

    def __init__(self, diagnostic: str) -> None:
        super().__init__(f"Unrecognized dependency diagnostic: {diagnostic}")
        self.diagnostic = diagnostic


class DeletionFailure(ReaperError):
    """Raised when deletion fails for a reason other than a dependency."""

    def __init__(self, diagnostic: str) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class TaskTimeout(ReaperError):
    """Raised when a task is still running at the timeout ceiling.

    The task may still complete on the remote side.
    """

    def __init__(self, result: TaskResult) -> None:
        super().__init__(
            f"{result.operation.value} task for {result.target} did not finish "
            f"within {result.elapsed_seconds:.0f}s"
        )
        self.result = result


class SnapshotResolutionError(ReaperError):
    """Raised when a blocking snapshot could not be removed.

    Attributes:
        snapshot_id: Snapshot that could not be removed.
        removed: Snapshots removed before the failure.
    """

    def __init__(self, snapshot_id: str, reason: str, removed: list[str]) -> None:
        super().__init__(f"Snapshot {snapshot_id} could not be removed: {reason}")
        self.snapshot_id = snapshot_id
        self.reason = reason
        self.removed = removed


class ReconciliationFailure(ReaperError):
    """Raised when datastore inventory reconciliation does not succeed."""

    def __init__(self, datastore: str, reason: str) -> None:
        super().__init__(f"Reconciliation of datastore {datastore} failed: {reason}")
        self.datastore = datastore
        self.reason = reason
