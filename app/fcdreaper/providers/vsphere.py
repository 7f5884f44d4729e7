"""vSphere inventory provider implementation.

Reads First Class Disks through the vCenter VStorageObjectManager and
virtual machine disk backings through container views. Object ids are
built as ``<datastore moref>:<disk uuid>``.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from fcdreaper.core.errors import ProviderConnectionError, ProviderOperationError
from fcdreaper.models.storage import (
    OBJECT_ID_SEPARATOR,
    ComputeDiskReference,
    SnapshotDependency,
    StorageObject,
    datastore_ref_from_id,
    disk_uuid_from_id,
)
from fcdreaper.models.task import TaskHandle, TaskState, TaskStatus
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)

# vim.TaskInfo.State values mapped to provider-neutral task states
_TASK_STATES: dict[str, TaskState] = {
    "queued": TaskState.PENDING,
    "running": TaskState.RUNNING,
    "success": TaskState.SUCCESS,
    "error": TaskState.FAILED,
}


def _fault_message(fault: Any) -> str:
    """Extract a readable message from a vmodl fault."""
    message = getattr(fault, "msg", None) or getattr(fault, "localizedMessage", None)
    return str(message) if message else type(fault).__name__


@contextmanager
def _translate_faults(operation: str) -> Iterator[None]:
    """Convert pyVmomi and socket errors into fcdreaper errors.

    Args:
        operation: Description of the call, used in error messages.

    Raises:
        ProviderConnectionError: On authentication or transport failure.
        ProviderOperationError: On any other platform fault.
    """
    try:
        yield
    except (vim.fault.NotAuthenticated, vmodl.fault.HostCommunication) as e:
        msg = f"{operation}: session lost ({_fault_message(e)})"
        raise ProviderConnectionError(msg) from e
    except OSError as e:
        msg = f"{operation}: {e}"
        raise ProviderConnectionError(msg) from e
    except vmodl.MethodFault as e:
        raise ProviderOperationError(_fault_message(e)) from e


def connect_vsphere(
    host: str,
    user: str,
    password: str,
    port: int = 443,
    insecure: bool = False,
) -> "VsphereProvider":
    """Open a vCenter session and wrap it in a provider.

    Args:
        host: vCenter host name or address.
        user: Login user.
        password: Login password.
        port: HTTPS port.
        insecure: If True, skip TLS certificate validation.

    Returns:
        Connected VsphereProvider.

    Raises:
        ProviderConnectionError: If the session cannot be established.
    """
    try:
        service_instance = SmartConnect(
            host=host,
            user=user,
            pwd=password,
            port=port,
            disableSslCertValidation=insecure,
        )
    except vim.fault.InvalidLogin as e:
        msg = f"Login to {host} failed: {_fault_message(e)}"
        raise ProviderConnectionError(msg) from e
    except (OSError, vmodl.MethodFault) as e:
        msg = f"Cannot connect to {host}:{port}: {e}"
        raise ProviderConnectionError(msg) from e

    logger.info("Connected to vCenter %s as %s", host, user)
    return VsphereProvider(service_instance)


class VsphereProvider(InventoryProvider):
    """Inventory provider backed by a vCenter session.

    Attributes:
        _si: pyVmomi ServiceInstance holding the session.
        _content: Retrieved service content.
    """

    def __init__(self, service_instance: Any) -> None:
        """Initialize the provider.

        Args:
            service_instance: Connected pyVmomi ServiceInstance.
        """
        self._si = service_instance
        with _translate_faults("Retrieve service content"):
            self._content = service_instance.RetrieveContent()
        self._datastores: dict[str, Any] = {}

    @property
    def name(self) -> str:
        """Return 'vsphere' as the provider name."""
        return "vsphere"

    @property
    def supports_snapshot_listing(self) -> bool:
        """vCenter exposes RetrieveSnapshotInfo for First Class Disks."""
        return True

    def list_storage_objects(self) -> list[StorageObject]:
        """List First Class Disks on every datastore.

        Datastores that cannot be listed and disks whose details cannot be
        retrieved are skipped with a warning.
        """
        vsom = self._content.vStorageObjectManager
        objects: list[StorageObject] = []

        for ds_ref, datastore in self._refresh_datastores().items():
            try:
                with _translate_faults(f"List storage objects on {datastore.name}"):
                    disk_ids = vsom.ListVStorageObject(datastore)
            except ProviderOperationError as e:
                logger.warning("Skipping datastore %s: %s", ds_ref, e)
                continue

            for disk_id in disk_ids:
                try:
                    with _translate_faults(f"Retrieve storage object {disk_id.id}"):
                        vobject = vsom.RetrieveVStorageObject(disk_id, datastore)
                except ProviderOperationError as e:
                    logger.warning("Skipping storage object %s: %s", disk_id.id, e)
                    continue
                objects.append(self._to_storage_object(ds_ref, datastore, vobject))

        logger.debug("Found %d storage objects", len(objects))
        return objects

    def list_compute_disk_references(
        self,
    ) -> list[tuple[str, list[ComputeDiskReference] | None]]:
        """List the virtual disk backings of every virtual machine.

        Virtual machines without a readable configuration (orphaned,
        inaccessible, or removed while enumerating) yield None instead of
        a reference list.
        """
        result: list[tuple[str, list[ComputeDiskReference] | None]] = []

        with _translate_faults("List virtual machines"):
            vms = self._collect(vim.VirtualMachine)

        for vm in vms:
            vm_name = vm._moId
            try:
                with _translate_faults(f"Read virtual machine {vm_name}"):
                    vm_name = vm.name
                    config = vm.config
            except ProviderOperationError as e:
                # Deleted or inaccessible during the scan
                logger.warning("Skipping disks of virtual machine %s: %s", vm_name, e)
                result.append((vm_name, None))
                continue
            if config is None:
                result.append((vm_name, None))
                continue

            refs = [
                ComputeDiskReference(instance_id=vm_name, backing_path=device.backing.fileName)
                for device in config.hardware.device
                if isinstance(device, vim.vm.device.VirtualDisk)
                and getattr(device.backing, "fileName", None)
            ]
            result.append((vm_name, refs))

        return result

    def list_snapshots(self, object_id: str, datastore_ref: str) -> list[SnapshotDependency]:
        """List snapshots of a First Class Disk via RetrieveSnapshotInfo."""
        datastore = self._datastore(datastore_ref)
        with _translate_faults(f"Retrieve snapshots of {object_id}"):
            info = self._content.vStorageObjectManager.RetrieveSnapshotInfo(
                self._vslm_id(object_id), datastore
            )

        dependencies: list[SnapshotDependency] = []
        for snapshot in info.snapshots or []:
            created = snapshot.createTime.isoformat() if snapshot.createTime else None
            dependencies.append(
                SnapshotDependency(
                    snapshot_id=snapshot.id.id,
                    parent_id=object_id,
                    description=snapshot.description or None,
                    created=created,
                )
            )
        return dependencies

    def submit_delete_snapshot(
        self, object_id: str, datastore_ref: str, snapshot_id: str
    ) -> TaskHandle:
        """Submit DeleteSnapshot_Task for a First Class Disk snapshot."""
        datastore = self._datastore(datastore_ref)
        with _translate_faults(f"Delete snapshot {snapshot_id}"):
            return self._content.vStorageObjectManager.DeleteSnapshot_Task(
                self._vslm_id(object_id), datastore, vim.vslm.ID(id=snapshot_id)
            )

    def submit_delete_object(self, object_id: str) -> TaskHandle:
        """Submit DeleteVStorageObject_Task for a First Class Disk."""
        datastore_ref = datastore_ref_from_id(object_id)
        if datastore_ref is None:
            msg = f"Object id {object_id!r} has no datastore reference"
            raise ProviderOperationError(msg)
        datastore = self._datastore(datastore_ref)
        with _translate_faults(f"Delete storage object {object_id}"):
            return self._content.vStorageObjectManager.DeleteVStorageObject_Task(
                self._vslm_id(object_id), datastore
            )

    def submit_reconcile_datastore(self, datastore_ref: str) -> TaskHandle:
        """Submit ReconcileDatastoreInventory_Task for a datastore."""
        datastore = self._datastore(datastore_ref)
        with _translate_faults(f"Reconcile datastore {datastore_ref}"):
            return self._content.vStorageObjectManager.ReconcileDatastoreInventory_Task(
                datastore
            )

    def get_task_state(self, handle: TaskHandle) -> TaskStatus:
        """Read the state of a vim.Task."""
        with _translate_faults("Read task state"):
            info = handle.info
        state = _TASK_STATES.get(str(info.state), TaskState.RUNNING)
        error = _fault_message(info.error) if info.error is not None else None
        return TaskStatus(state=state, error=error)

    def close(self) -> None:
        """Disconnect the vCenter session."""
        try:
            Disconnect(self._si)
        except (OSError, vmodl.MethodFault) as e:
            logger.debug("Ignoring error on disconnect: %s", e)

    def _collect(self, vim_type: Any) -> list[Any]:
        """Collect all managed objects of a type under the root folder."""
        view = self._content.viewManager.CreateContainerView(
            self._content.rootFolder, [vim_type], True
        )
        try:
            return list(view.view)
        finally:
            view.Destroy()

    def _refresh_datastores(self) -> dict[str, Any]:
        """Reload the datastore cache keyed by managed object id."""
        with _translate_faults("List datastores"):
            self._datastores = {ds._moId: ds for ds in self._collect(vim.Datastore)}
        return self._datastores

    def _datastore(self, datastore_ref: str) -> Any:
        """Resolve a datastore reference, refreshing the cache once on a miss.

        Raises:
            ProviderOperationError: If the datastore does not exist.
        """
        if datastore_ref not in self._datastores:
            self._refresh_datastores()
        try:
            return self._datastores[datastore_ref]
        except KeyError:
            msg = f"Unknown datastore {datastore_ref}"
            raise ProviderOperationError(msg) from None

    @staticmethod
    def _vslm_id(object_id: str) -> Any:
        """Build a vim.vslm.ID from a compound object id."""
        return vim.vslm.ID(id=disk_uuid_from_id(object_id))

    @staticmethod
    def _to_storage_object(ds_ref: str, datastore: Any, vobject: Any) -> StorageObject:
        """Convert a vim.vslm.VStorageObject into a StorageObject."""
        config = vobject.config
        backing_path = getattr(config.backing, "filePath", None)
        capacity_gb = round(config.capacityInMB / 1024, 2) if config.capacityInMB else None
        return StorageObject(
            id=f"{ds_ref}{OBJECT_ID_SEPARATOR}{config.id.id}",
            name=config.name,
            datastore=datastore.name,
            capacity_gb=capacity_gb,
            backing_path=backing_path,
            uid=config.id.id,
        )
