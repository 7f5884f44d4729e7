"""End-to-end reconciliation run.

Wires the provider, association resolver, coordinator and datastore
reconciler together. Objects are processed strictly sequentially in
provider order; every object yields exactly one audit line.
"""

import logging
import time
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from fcdreaper.core.association import resolve_associations
from fcdreaper.core.audit import AuditTrail
from fcdreaper.core.config import ReaperConfig
from fcdreaper.core.coordinator import ReconciliationCoordinator
from fcdreaper.core.dependencies import create_analyzer
from fcdreaper.core.reconciler import DatastoreReconciler
from fcdreaper.core.tasks import TaskRunner
from fcdreaper.models.outcome import (
    Assignment,
    AssociationResult,
    DatastoreReconciliationRecord,
    OutcomeStatus,
    ReconciliationOutcome,
)
from fcdreaper.models.storage import StorageObject
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunReport:
    """Summary of a completed reconciliation run.

    Attributes:
        outcomes: One outcome per storage object, in processing order.
        datastore_records: One record per reconciled datastore.
    """

    outcomes: tuple[ReconciliationOutcome, ...]
    datastore_records: tuple[DatastoreReconciliationRecord, ...] = ()

    @property
    def counts(self) -> dict[OutcomeStatus, int]:
        """Number of outcomes per status."""
        return dict(Counter(outcome.status for outcome in self.outcomes))

    @property
    def has_failures(self) -> bool:
        """Check if any object needs operator attention."""
        return any(outcome.status.is_failure for outcome in self.outcomes)


def scan_inventory(
    provider: InventoryProvider, objects: Sequence[StorageObject] | None = None
) -> tuple[list[StorageObject], AssociationResult]:
    """Fetch inventory from the provider and classify it.

    Args:
        provider: Inventory provider.
        objects: Storage objects from a discovery record. If None, they are
            listed from the provider. Compute disk references are always
            fetched live.

    Returns:
        Tuple of (storage objects in order, association result).

    Raises:
        ProviderConnectionError: If the provider cannot be reached.
        ProviderOperationError: If the provider rejects an inventory call.
    """
    objects = list(objects) if objects is not None else provider.list_storage_objects()
    references = provider.list_compute_disk_references()
    return objects, resolve_associations(objects, references)


def assigned_outcome(assignment: Assignment) -> ReconciliationOutcome:
    """Build the outcome for an object referenced by an instance."""
    obj = assignment.storage_object
    detail = f"Attached to {assignment.instance_id}"
    if assignment.ambiguous:
        others = ", ".join(assignment.other_instances)
        detail += f" (ambiguous: also referenced by {others})"
    return ReconciliationOutcome(
        object_id=obj.id,
        status=OutcomeStatus.ASSIGNED,
        detail=detail,
        name=obj.name,
        datastore=obj.datastore_ref,
    )


class ReconciliationPipeline:
    """Runs a full reconciliation against one provider session.

    Attributes:
        _provider: Inventory provider holding the session.
        _config: Run configuration.
        _audit: Audit trail receiving one line per object.
    """

    def __init__(
        self,
        provider: InventoryProvider,
        config: ReaperConfig,
        audit: AuditTrail | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the pipeline.

        Args:
            provider: Inventory provider holding the session.
            config: Run configuration.
            audit: Audit trail. Default: AuditTrail in the configured state dir.
            sleep: Sleep function for task polling.
            clock: Monotonic clock for task polling.
        """
        self._provider = provider
        self._config = config
        self._audit = audit if audit is not None else AuditTrail(config.effective_state_dir)
        self._runner = TaskRunner(
            provider,
            poll_interval=config.poll_interval_seconds,
            timeout=config.delete_timeout_seconds,
            sleep=sleep,
            clock=clock,
        )
        self._coordinator = ReconciliationCoordinator(
            provider,
            self._runner,
            create_analyzer(provider, config.dependency_strategy),
        )
        self._reconciler = DatastoreReconciler(
            provider,
            self._runner,
            timeout=config.reconcile_timeout_seconds,
        )

    def run(
        self,
        on_outcome: Callable[[ReconciliationOutcome], None] | None = None,
        inventory: tuple[list[StorageObject], AssociationResult] | None = None,
    ) -> RunReport:
        """Classify all storage objects and remove the orphans.

        Args:
            on_outcome: Called with each outcome as soon as it is recorded.
            inventory: Result of an earlier scan_inventory() on the same
                provider. If None, the inventory is fetched now.

        Returns:
            RunReport with outcomes and datastore records.

        Raises:
            ProviderConnectionError: If the provider becomes unreachable.
                Outcomes recorded before the failure remain in the audit trail.
        """
        if inventory is None:
            inventory = scan_inventory(self._provider)
        objects, association = inventory
        assignments = {a.storage_object.id: a for a in association.assigned}
        logger.info(
            "Processing %d storage objects (%d orphaned)",
            len(objects),
            len(association.orphans),
        )

        outcomes: list[ReconciliationOutcome] = []
        for obj in objects:
            assignment = assignments.get(obj.id)
            if assignment is not None:
                outcome = assigned_outcome(assignment)
            else:
                outcome = self._coordinator.reconcile(obj)

            self._record(outcome)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        records: list[DatastoreReconciliationRecord] = []
        if self._config.reconcile_datastores:
            records = self._reconciler.reconcile(outcomes)

        return RunReport(outcomes=tuple(outcomes), datastore_records=tuple(records))

    def _record(self, outcome: ReconciliationOutcome) -> None:
        """Append an outcome to the audit trail.

        Write errors are logged but do not interrupt the run.
        """
        try:
            self._audit.record(outcome)
        except (OSError, RuntimeError) as e:
            logger.error("Failed to record outcome for %s: %s", outcome.object_id, e)
