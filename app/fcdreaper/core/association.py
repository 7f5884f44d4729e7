"""Association of storage objects with compute instances.

Partitions storage objects into assigned and orphaned by exact,
case-sensitive equality of backing paths. No path normalization is
applied.
"""

import logging
from collections.abc import Iterable, Sequence

from fcdreaper.models.outcome import Assignment, AssociationResult
from fcdreaper.models.storage import ComputeDiskReference, StorageObject

logger = logging.getLogger(__name__)


def index_backing_paths(
    references: Iterable[tuple[str, Sequence[ComputeDiskReference] | None]],
) -> dict[str, list[str]]:
    """Map each backing path to the instances referencing it.

    Instances are listed in provider enumeration order. Instances whose
    disks could not be enumerated (None) are skipped.

    Args:
        references: (instance_id, references) pairs from the provider.

    Returns:
        Dictionary of backing path to instance ids.
    """
    index: dict[str, list[str]] = {}

    for instance_id, disk_refs in references:
        if disk_refs is None:
            logger.warning("Disks of instance %s unavailable; skipping", instance_id)
            continue
        for ref in disk_refs:
            owners = index.setdefault(ref.backing_path, [])
            if instance_id not in owners:
                owners.append(instance_id)

    return index


def resolve_associations(
    objects: Sequence[StorageObject],
    references: Iterable[tuple[str, Sequence[ComputeDiskReference] | None]],
) -> AssociationResult:
    """Classify storage objects as assigned or orphaned.

    The first instance in enumeration order referencing an object's
    backing path wins. When several instances reference the same path
    the assignment is flagged as ambiguous and a warning is logged.
    Objects without a backing path are always orphans.

    Args:
        objects: Storage objects to classify.
        references: (instance_id, references) pairs from the provider.

    Returns:
        AssociationResult with both partitions in input order.
    """
    index = index_backing_paths(references)
    assigned: list[Assignment] = []
    orphans: list[StorageObject] = []

    for obj in objects:
        owners = index.get(obj.backing_path) if obj.backing_path else None
        if not owners:
            orphans.append(obj)
            continue

        assignment = Assignment(
            storage_object=obj,
            instance_id=owners[0],
            other_instances=tuple(owners[1:]),
        )
        if assignment.ambiguous:
            logger.warning(
                "Backing path %s of %s is referenced by several instances: %s",
                obj.backing_path,
                obj.id,
                ", ".join(owners),
            )
        assigned.append(assignment)

    logger.info("Classified %d assigned, %d orphaned", len(assigned), len(orphans))
    return AssociationResult(assigned=tuple(assigned), orphans=tuple(orphans))
