"""Manual remediation guidance for objects automation could not remove."""

from collections.abc import Sequence

from fcdreaper.models.storage import StorageObject, disk_uuid_from_id


def remediation_steps(obj: StorageObject, snapshot_ids: Sequence[str] = ()) -> str:
    """Build numbered manual remediation steps for a storage object.

    Args:
        obj: Object that could not be removed automatically.
        snapshot_ids: Known snapshots still blocking deletion.

    Returns:
        Multi-step instructions as a single line.
    """
    datastore = obj.datastore or obj.datastore_ref or "<datastore>"
    disk_id = obj.uid or disk_uuid_from_id(obj.id)
    steps = [
        f"confirm no instance uses {obj.backing_path or obj.display_name}",
        f"list snapshots: govc disk.snapshot.ls -ds {datastore} {disk_id}",
    ]
    if snapshot_ids:
        steps.extend(
            f"remove snapshot: govc disk.snapshot.rm -ds {datastore} {disk_id} {snapshot_id}"
            for snapshot_id in snapshot_ids
        )
    else:
        steps.append(
            f"remove each listed snapshot: govc disk.snapshot.rm -ds {datastore} {disk_id} <id>"
        )
    steps.append(f"delete the disk: govc disk.rm -ds {datastore} {disk_id}")
    steps.append(f"reconcile the inventory of datastore {datastore}")

    numbered = " ".join(f"{i}) {step};" for i, step in enumerate(steps, start=1))
    return f"Manual remediation: {numbered.rstrip(';')}."
