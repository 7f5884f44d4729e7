"""Test doubles for the inventory provider and the polling clock.

The fake provider scripts task outcomes per submitted operation so
engine tests never touch a real vCenter.
"""

from fcdreaper.models.storage import ComputeDiskReference, SnapshotDependency, StorageObject
from fcdreaper.models.task import TaskHandle, TaskState, TaskStatus
from fcdreaper.providers.base import InventoryProvider

# A scripted task outcome: one final status, a sequence of polled
# statuses, or an exception raised synchronously on submission.
Script = TaskStatus | list[TaskStatus] | Exception

SUCCESS = TaskStatus(TaskState.SUCCESS)


def failed(error: str) -> TaskStatus:
    """Build a FAILED task status carrying a diagnostic."""
    return TaskStatus(TaskState.FAILED, error=error)


class FakeProvider(InventoryProvider):
    """In-memory InventoryProvider with scripted task outcomes.

    Each submit call pops the next script for its target from the
    matching queue; an empty queue means immediate success. Every call
    is appended to ``calls`` as a tuple.
    """

    def __init__(
        self,
        objects: list[StorageObject] | None = None,
        references: list[tuple[str, list[ComputeDiskReference] | None]] | None = None,
        snapshots: dict[str, list[SnapshotDependency]] | None = None,
        listing: bool = False,
    ) -> None:
        self.objects = objects or []
        self.references = references or []
        self.snapshots = snapshots or {}
        self.listing = listing
        self.delete_scripts: dict[str, list[Script]] = {}
        self.snapshot_scripts: dict[str, list[Script]] = {}
        self.reconcile_scripts: dict[str, list[Script]] = {}
        self.list_snapshots_error: Exception | None = None
        self.list_error: Exception | None = None
        self.calls: list[tuple[str, ...]] = []
        self.closed = False
        self._tasks: dict[int, list[TaskStatus]] = {}

    @property
    def name(self) -> str:
        return "fake"

    @property
    def supports_snapshot_listing(self) -> bool:
        return self.listing

    def list_storage_objects(self) -> list[StorageObject]:
        self.calls.append(("list_storage_objects",))
        if self.list_error is not None:
            raise self.list_error
        return list(self.objects)

    def list_compute_disk_references(
        self,
    ) -> list[tuple[str, list[ComputeDiskReference] | None]]:
        self.calls.append(("list_compute_disk_references",))
        return list(self.references)

    def list_snapshots(self, object_id: str, datastore_ref: str) -> list[SnapshotDependency]:
        self.calls.append(("list_snapshots", object_id, datastore_ref))
        if not self.listing:
            return super().list_snapshots(object_id, datastore_ref)
        if self.list_snapshots_error is not None:
            raise self.list_snapshots_error
        return list(self.snapshots.get(object_id, []))

    def submit_delete_snapshot(
        self, object_id: str, datastore_ref: str, snapshot_id: str
    ) -> TaskHandle:
        self.calls.append(("delete_snapshot", object_id, datastore_ref, snapshot_id))
        handle = self._submit(self.snapshot_scripts, snapshot_id)
        if self._tasks[handle][-1].state == TaskState.SUCCESS:
            self.snapshots[object_id] = [
                s for s in self.snapshots.get(object_id, []) if s.snapshot_id != snapshot_id
            ]
        return handle

    def submit_delete_object(self, object_id: str) -> TaskHandle:
        self.calls.append(("delete_object", object_id))
        handle = self._submit(self.delete_scripts, object_id)
        if self._tasks[handle][-1].state == TaskState.SUCCESS:
            self.objects = [o for o in self.objects if o.id != object_id]
        return handle

    def submit_reconcile_datastore(self, datastore_ref: str) -> TaskHandle:
        self.calls.append(("reconcile_datastore", datastore_ref))
        return self._submit(self.reconcile_scripts, datastore_ref)

    def get_task_state(self, handle: TaskHandle) -> TaskStatus:
        statuses = self._tasks[handle]
        if len(statuses) > 1:
            return statuses.pop(0)
        return statuses[0]

    def close(self) -> None:
        self.closed = True

    def calls_of(self, kind: str) -> list[tuple[str, ...]]:
        """Return recorded calls of one kind."""
        return [call for call in self.calls if call[0] == kind]

    def _submit(self, scripts: dict[str, list[Script]], target: str) -> int:
        queue = scripts.get(target, [])
        script: Script = queue.pop(0) if queue else SUCCESS
        if isinstance(script, Exception):
            raise script
        statuses = list(script) if isinstance(script, list) else [script]
        handle = len(self._tasks) + 1
        self._tasks[handle] = statuses
        return handle


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_object(
    uuid: str,
    name: str | None = None,
    datastore_ref: str = "datastore-1",
    datastore: str = "ds1",
    backing_path: str | None = "",
) -> StorageObject:
    """Build a StorageObject with a compound id.

    An empty backing_path derives ``[ds] fcd/<name>.vmdk``; None leaves
    the object without a backing path.
    """
    name = name or uuid
    if backing_path == "":
        backing_path = f"[{datastore}] fcd/{name}.vmdk"
    return StorageObject(
        id=f"{datastore_ref}:{uuid}",
        name=name,
        datastore=datastore,
        capacity_gb=10.0,
        backing_path=backing_path,
        uid=uuid,
    )
