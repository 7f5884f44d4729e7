"""Per-object reconciliation state machine.

Drives a single orphaned storage object to exactly one terminal
outcome::

    ATTEMPT_DELETE -success-> REMOVED
    ATTEMPT_DELETE -dependency conflict-> RESOLVE_SNAPSHOTS
    RESOLVE_SNAPSHOTS -all removed-> ATTEMPT_DELETE (final)
    RESOLVE_SNAPSHOTS -any left-> RESOLUTION_FAILED
    ATTEMPT_DELETE (final) -success-> REMOVED_WITH_SNAPSHOT_CLEANUP
    ATTEMPT_DELETE (final) -failure-> FAILED_ERROR
    ATTEMPT_DELETE -unidentified dependency-> FAILED_MANUAL_REQUIRED
    ATTEMPT_DELETE -other failure or timeout-> FAILED_ERROR

When snapshots are known before the first attempt (proactive listing)
they are resolved first and the following delete is the final attempt.
"""

import logging
from collections.abc import Sequence
from functools import partial

from fcdreaper.core.dependencies import DependencyAnalyzer, indicates_dependency
from fcdreaper.core.errors import (
    DeletionConflict,
    DeletionFailure,
    DependencyExtractionFailure,
    SnapshotResolutionError,
    TaskTimeout,
)
from fcdreaper.core.remediation import remediation_steps
from fcdreaper.core.tasks import TaskRunner
from fcdreaper.models.outcome import OutcomeStatus, ReconciliationOutcome
from fcdreaper.models.storage import SnapshotDependency, StorageObject
from fcdreaper.models.task import TaskOperation
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)


class ReconciliationCoordinator:
    """Removes orphaned storage objects, clearing snapshot dependencies.

    Exactly one retry is made, and only after every detected dependency
    was removed. Per-object errors never escape reconcile();
    ProviderConnectionError does.

    Attributes:
        _provider: Provider used to submit deletions.
        _runner: Task runner used to wait for deletions.
        _analyzer: Dependency analyzer for the provider.
    """

    def __init__(
        self,
        provider: InventoryProvider,
        runner: TaskRunner,
        analyzer: DependencyAnalyzer,
    ) -> None:
        """Initialize the coordinator.

        Args:
            provider: Provider used to submit deletions.
            runner: Task runner used to wait for deletions.
            analyzer: Dependency analyzer for the provider.
        """
        self._provider = provider
        self._runner = runner
        self._analyzer = analyzer

    def reconcile(self, obj: StorageObject) -> ReconciliationOutcome:
        """Drive an orphaned object to a terminal outcome.

        Must only be called for objects classified as orphans.

        Args:
            obj: Orphaned storage object.

        Returns:
            The single ReconciliationOutcome for the object.

        Raises:
            ProviderConnectionError: If the provider becomes unreachable.
        """
        logger.info("Reconciling orphan %s (%s)", obj.display_name, obj.id)

        known = self._analyzer.discover(obj)
        if known:
            return self._resolve_and_retry(obj, known, delete_attempted=False)

        try:
            self._attempt_delete(obj)
        except DeletionConflict as conflict:
            logger.info("Deletion of %s blocked: %s", obj.id, conflict)
            return self._resolve_and_retry(obj, conflict.dependencies, delete_attempted=True)
        except DependencyExtractionFailure as e:
            return self._outcome(
                obj,
                OutcomeStatus.FAILED_MANUAL_REQUIRED,
                f"Deletion blocked by a dependency that could not be identified "
                f"({e.diagnostic}). {remediation_steps(obj)}",
            )
        except TaskTimeout as e:
            return self._outcome(
                obj,
                OutcomeStatus.FAILED_ERROR,
                f"{e}; the deletion may still complete remotely. {remediation_steps(obj)}",
            )
        except DeletionFailure as e:
            return self._outcome(
                obj,
                OutcomeStatus.FAILED_ERROR,
                f"Deletion failed: {e.diagnostic}. {remediation_steps(obj)}",
            )

        return self._outcome(obj, OutcomeStatus.REMOVED, "Deleted on first attempt")

    def _resolve_and_retry(
        self,
        obj: StorageObject,
        dependencies: list[SnapshotDependency],
        delete_attempted: bool,
    ) -> ReconciliationOutcome:
        """Remove all dependencies, then make the final delete attempt."""
        try:
            removed = self._resolve_snapshots(obj, dependencies)
        except SnapshotResolutionError as e:
            remaining = [d.snapshot_id for d in dependencies if d.snapshot_id not in e.removed]
            progress = ", ".join(e.removed) if e.removed else "none"
            return self._outcome(
                obj,
                OutcomeStatus.RESOLUTION_FAILED,
                f"{e}. Snapshots removed before the failure: {progress}. "
                f"{remediation_steps(obj, remaining)}",
                delete_attempted=delete_attempted,
                snapshots_removed=e.removed,
            )

        removed_text = ", ".join(removed)
        try:
            self._attempt_delete(obj)
        except (DeletionConflict, DependencyExtractionFailure, DeletionFailure, TaskTimeout) as e:
            return self._outcome(
                obj,
                OutcomeStatus.FAILED_ERROR,
                f"Partial progress: removed snapshot(s) {removed_text} but deletion "
                f"still failed ({e}); not retried in this run. {remediation_steps(obj)}",
                snapshots_removed=removed,
            )

        return self._outcome(
            obj,
            OutcomeStatus.REMOVED_WITH_SNAPSHOT_CLEANUP,
            f"Deleted after removing snapshot(s): {removed_text}",
            snapshots_removed=removed,
        )

    def _attempt_delete(self, obj: StorageObject) -> None:
        """Delete the object and classify any failure.

        Raises:
            DeletionConflict: Failure caused by identifiable snapshots.
            DependencyExtractionFailure: Failure caused by an unidentifiable dependency.
            TaskTimeout: The delete task did not finish in time.
            DeletionFailure: Any other failure.
        """
        result = self._runner.run(
            TaskOperation.DELETE_OBJECT,
            obj.id,
            partial(self._provider.submit_delete_object, obj.id),
        )
        if result.success:
            return
        if result.timed_out:
            raise TaskTimeout(result)

        diagnostic = result.error or "Unknown error"
        dependencies = self._analyzer.from_diagnostic(obj, diagnostic)
        if dependencies:
            raise DeletionConflict(dependencies, diagnostic)
        if indicates_dependency(diagnostic):
            raise DependencyExtractionFailure(diagnostic)
        raise DeletionFailure(diagnostic)

    def _resolve_snapshots(
        self, obj: StorageObject, dependencies: list[SnapshotDependency]
    ) -> list[str]:
        """Delete every snapshot dependency in order.

        Returns:
            Ids of the removed snapshots.

        Raises:
            SnapshotResolutionError: On the first snapshot that cannot be removed.
        """
        removed: list[str] = []
        datastore_ref = obj.datastore_ref
        if datastore_ref is None:
            raise SnapshotResolutionError(
                dependencies[0].snapshot_id, "object has no datastore reference", removed
            )

        for dep in dependencies:
            result = self._runner.run(
                TaskOperation.DELETE_SNAPSHOT,
                dep.snapshot_id,
                partial(
                    self._provider.submit_delete_snapshot, obj.id, datastore_ref, dep.snapshot_id
                ),
            )
            if not result.success:
                raise SnapshotResolutionError(
                    dep.snapshot_id, result.error or result.state.value, removed
                )
            logger.info("Removed snapshot %s of %s", dep.snapshot_id, obj.id)
            removed.append(dep.snapshot_id)

        return removed

    @staticmethod
    def _outcome(
        obj: StorageObject,
        status: OutcomeStatus,
        detail: str,
        delete_attempted: bool = True,
        snapshots_removed: Sequence[str] = (),
    ) -> ReconciliationOutcome:
        """Build the outcome record for an object."""
        log = logger.warning if status.is_failure else logger.info
        log("%s -> %s", obj.id, status.value)
        return ReconciliationOutcome(
            object_id=obj.id,
            status=status,
            detail=detail,
            name=obj.name,
            datastore=obj.datastore_ref,
            delete_attempted=delete_attempted,
            snapshots_removed=tuple(snapshots_removed),
        )
