"""Batched datastore inventory reconciliation.

After every orphan has been processed, one reconciliation task is
issued per datastore touched by a delete attempt. Results are recorded
per datastore and never change already-recorded object outcomes.
"""

import logging
from collections.abc import Iterable
from functools import partial

from fcdreaper.core.errors import ReconciliationFailure
from fcdreaper.core.tasks import TaskRunner
from fcdreaper.models.outcome import DatastoreReconciliationRecord, ReconciliationOutcome
from fcdreaper.models.storage import datastore_ref_from_id
from fcdreaper.models.task import TaskOperation, TaskResult
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)


def touched_datastores(outcomes: Iterable[ReconciliationOutcome]) -> list[str]:
    """Collect datastore references touched by deletes or snapshot removals.

    The reference is taken structurally from each object id, falling
    back to the outcome's datastore field. Order of first appearance
    is preserved.

    Args:
        outcomes: Outcomes of the run.

    Returns:
        Unique datastore references.
    """
    seen: dict[str, None] = {}
    for outcome in outcomes:
        if not outcome.touched_datastore:
            continue
        datastore_ref = datastore_ref_from_id(outcome.object_id) or outcome.datastore
        if datastore_ref is None:
            logger.warning("Cannot determine datastore of %s", outcome.object_id)
            continue
        seen.setdefault(datastore_ref, None)
    return list(seen)


class DatastoreReconciler:
    """Issues inventory reconciliation tasks for touched datastores.

    Attributes:
        _provider: Provider used to submit reconciliation.
        _runner: Task runner used to wait for reconciliation.
        _timeout: Ceiling for a reconciliation task (None = runner default).
    """

    def __init__(
        self,
        provider: InventoryProvider,
        runner: TaskRunner,
        timeout: float | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            provider: Provider used to submit reconciliation.
            runner: Task runner used to wait for reconciliation.
            timeout: Ceiling for a reconciliation task; reconciliation is
                heavier than deletion and may need a longer one.
        """
        self._provider = provider
        self._runner = runner
        self._timeout = timeout

    def reconcile(
        self, outcomes: Iterable[ReconciliationOutcome]
    ) -> list[DatastoreReconciliationRecord]:
        """Reconcile every datastore touched by the run.

        Failures are logged per datastore and do not stop the batch.

        Args:
            outcomes: Outcomes of the completed run.

        Returns:
            One record per unique datastore, in order of first appearance.

        Raises:
            ProviderConnectionError: If the provider becomes unreachable.
        """
        records: list[DatastoreReconciliationRecord] = []

        for datastore_ref in touched_datastores(outcomes):
            result = self._runner.run(
                TaskOperation.RECONCILE_DATASTORE,
                datastore_ref,
                partial(self._provider.submit_reconcile_datastore, datastore_ref),
                timeout=self._timeout,
            )
            try:
                self._check(result)
            except ReconciliationFailure as e:
                logger.warning("%s", e)
            else:
                logger.info("Reconciled inventory of datastore %s", datastore_ref)

            records.append(
                DatastoreReconciliationRecord(
                    datastore=datastore_ref,
                    status=result.state,
                    task_handle=result.handle,
                    error=result.error,
                )
            )

        return records

    @staticmethod
    def _check(result: TaskResult) -> None:
        """Raise ReconciliationFailure for an unsuccessful task.

        Raises:
            ReconciliationFailure: If the task failed or timed out.
        """
        if not result.success:
            raise ReconciliationFailure(result.target, result.error or result.state.value)
