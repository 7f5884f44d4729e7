"""Abstract base class for inventory providers.

This module defines the InventoryProvider interface through which the
reconciliation engine reads remote inventory and submits asynchronous
operations. Providers hold the session to the remote platform; the
engine never opens one itself.
"""

from abc import ABC, abstractmethod

from fcdreaper.models.storage import ComputeDiskReference, SnapshotDependency, StorageObject
from fcdreaper.models.task import TaskHandle, TaskStatus


class InventoryProvider(ABC):
    """Abstract base class for all inventory providers.

    Every method may raise ProviderConnectionError when the platform
    cannot be reached. Submit methods raise ProviderOperationError when
    the platform rejects the operation synchronously.

    Example:
        >>> provider = VsphereProvider(service_instance)
        >>> for obj in provider.list_storage_objects():
        ...     print(obj.id, obj.backing_path)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a short human-readable name for the provider."""

    @property
    def supports_snapshot_listing(self) -> bool:
        """Check if list_snapshots() is implemented.

        Providers without proactive listing rely on diagnostic-text
        extraction after a failed delete.
        """
        return False

    @abstractmethod
    def list_storage_objects(self) -> list[StorageObject]:
        """List all storage objects visible to the session."""

    @abstractmethod
    def list_compute_disk_references(
        self,
    ) -> list[tuple[str, list[ComputeDiskReference] | None]]:
        """List disks attached to each compute instance.

        Returns:
            (instance_id, references) pairs in enumeration order. The
            reference list is None when the instance's disks could not
            be enumerated.
        """

    def list_snapshots(self, object_id: str, datastore_ref: str) -> list[SnapshotDependency]:
        """List snapshots of a storage object.

        Raises:
            NotImplementedError: If the provider cannot list snapshots.
        """
        msg = f"{self.name} provider does not support snapshot listing"
        raise NotImplementedError(msg)

    @abstractmethod
    def submit_delete_snapshot(
        self, object_id: str, datastore_ref: str, snapshot_id: str
    ) -> TaskHandle:
        """Submit deletion of a snapshot and return its task handle."""

    @abstractmethod
    def submit_delete_object(self, object_id: str) -> TaskHandle:
        """Submit deletion of a storage object and return its task handle."""

    @abstractmethod
    def submit_reconcile_datastore(self, datastore_ref: str) -> TaskHandle:
        """Submit inventory reconciliation of a datastore and return its task handle."""

    @abstractmethod
    def get_task_state(self, handle: TaskHandle) -> TaskStatus:
        """Return the current state of a submitted task."""

    def close(self) -> None:  # noqa: B027
        """Release the session held by the provider."""
