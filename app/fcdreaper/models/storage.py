"""Storage inventory models.

This module defines the data structures describing remote inventory
state captured at scan time: storage objects (First Class Disks), the
disks attached to compute instances, and snapshot dependencies.
"""

from dataclasses import dataclass, field

# Separator between the datastore reference and the disk UUID in an object id
OBJECT_ID_SEPARATOR = ":"


def datastore_ref_from_id(object_id: str) -> str | None:
    """Extract the datastore reference from a compound object id.

    Object ids have the structure ``<datastore-ref>:<uuid>``.

    Args:
        object_id: Compound storage object id.

    Returns:
        The datastore reference prefix, or None if the id has no separator.
    """
    prefix, sep, _ = object_id.partition(OBJECT_ID_SEPARATOR)
    if not sep or not prefix:
        return None
    return prefix


def disk_uuid_from_id(object_id: str) -> str:
    """Extract the disk UUID component from a compound object id.

    Args:
        object_id: Compound storage object id.

    Returns:
        The UUID suffix, or the id unchanged if it has no separator.
    """
    _, sep, suffix = object_id.partition(OBJECT_ID_SEPARATOR)
    return suffix if sep else object_id


@dataclass(frozen=True, slots=True)
class StorageObject:
    """A detachable virtual disk managed independently of any instance.

    Immutable snapshot of the remote state at scan time.

    Attributes:
        id: Compound id of the form ``<datastore-ref>:<uuid>``.
        name: Display name of the disk.
        datastore: Datastore reference (or name) hosting the disk.
        capacity_gb: Provisioned capacity in GB (if known).
        backing_path: Datastore path of the backing file,
            e.g. ``[ds1] fcd/x.vmdk``.
        uid: Bare disk UUID (if known).
    """

    id: str
    name: str
    datastore: str | None = field(default=None)
    capacity_gb: float | None = field(default=None)
    backing_path: str | None = field(default=None)
    uid: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate storage object data after initialization."""
        if not self.id:
            msg = "Storage object id cannot be empty"
            raise ValueError(msg)

    @property
    def datastore_ref(self) -> str | None:
        """Datastore reference derived structurally from the id.

        Falls back to the datastore attribute when the id carries no prefix.
        """
        return datastore_ref_from_id(self.id) or self.datastore

    @property
    def display_name(self) -> str:
        """Name for display, falling back to the id."""
        return self.name or self.id


@dataclass(frozen=True, slots=True)
class ComputeDiskReference:
    """A virtual disk attached to a compute instance.

    Attributes:
        instance_id: Identifier (name) of the owning compute instance.
        backing_path: Datastore path of the disk's backing file.
    """

    instance_id: str
    backing_path: str


@dataclass(frozen=True, slots=True)
class SnapshotDependency:
    """A point-in-time snapshot blocking deletion of its parent object.

    Attributes:
        snapshot_id: Identifier of the snapshot.
        parent_id: Id of the StorageObject the snapshot belongs to.
        description: Snapshot description (if known).
        created: Creation time in ISO 8601 format (if known).
    """

    snapshot_id: str
    parent_id: str
    description: str | None = None
    created: str | None = None

    def __post_init__(self) -> None:
        """Validate snapshot data after initialization."""
        if not self.snapshot_id:
            msg = "Snapshot id cannot be empty"
            raise ValueError(msg)
