"""Discovery text record reader and writer.

A discovery pass writes one block per storage object::

    Name: web-data
    Datastore: ds1
    CapacityGB: 20
    UID: 6c1e0c52-4f1d-4d43-9d4e-0f4b0b5e4d11
    ID: datastore-12:6c1e0c52-4f1d-4d43-9d4e-0f4b0b5e4d11
    Filename: [ds1] fcd/web-data.vmdk
    ----------------------------------------

Blocks end at a separator line of dashes or equals signs (or at end of
input). Only ``ID`` is required; unknown lines such as a trailing
"No FCDs found" sentinel are ignored.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from fcdreaper.models.storage import StorageObject

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40

_SEPARATOR_PATTERN = re.compile(r"^\s*(?:-{3,}|={3,})\s*$")
_FIELD_PATTERN = re.compile(
    r"^\s*(?P<key>Name|Datastore|CapacityGB|UID|ID|Filename)\s*:\s?(?P<value>.*)$"
)


def _parse_capacity(value: str) -> float | None:
    """Parse a CapacityGB value, returning None when not numeric."""
    try:
        return float(value)
    except ValueError:
        logger.debug("Ignoring non-numeric capacity: %r", value)
        return None


def _build_object(fields: dict[str, str], line_num: int) -> StorageObject | None:
    """Build a StorageObject from the fields of one block.

    Args:
        fields: Field values keyed by label.
        line_num: Line number where the block ended, for diagnostics.

    Returns:
        StorageObject, or None if the block has no ID.
    """
    object_id = fields.get("ID", "").strip()
    if not object_id:
        logger.warning("Skipping record ending at line %d: missing ID", line_num)
        return None

    capacity = fields.get("CapacityGB", "").strip()
    return StorageObject(
        id=object_id,
        name=fields.get("Name", "").strip(),
        datastore=fields.get("Datastore", "").strip() or None,
        capacity_gb=_parse_capacity(capacity) if capacity else None,
        backing_path=fields.get("Filename", "").strip() or None,
        uid=fields.get("UID", "").strip() or None,
    )


def iter_inventory(lines: Iterable[str]) -> Iterator[StorageObject]:
    """Parse discovery record lines into storage objects.

    Args:
        lines: Lines of the discovery record.

    Yields:
        StorageObject for each block with an ID.
    """
    fields: dict[str, str] = {}
    line_num = 0

    for line_num, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")

        if _SEPARATOR_PATTERN.match(line):
            if fields:
                obj = _build_object(fields, line_num)
                if obj is not None:
                    yield obj
            fields = {}
            continue

        match = _FIELD_PATTERN.match(line)
        if match is None:
            if line.strip():
                logger.debug("Ignoring line %d: %r", line_num, line[:100])
            continue

        key = match.group("key")
        if key in fields:
            logger.warning(
                "Line %d repeats %s before a separator; starting new record", line_num, key
            )
            obj = _build_object(fields, line_num)
            if obj is not None:
                yield obj
            fields = {}
        fields[key] = match.group("value")

    if fields:
        obj = _build_object(fields, line_num)
        if obj is not None:
            yield obj


def parse_inventory(text: str) -> list[StorageObject]:
    """Parse a discovery record into storage objects.

    Args:
        text: Full text of the discovery record.

    Returns:
        List of StorageObject in record order.
    """
    return list(iter_inventory(text.splitlines()))


def read_inventory(path: Path) -> list[StorageObject]:
    """Read and parse a discovery record file.

    Raises:
        OSError: If the file cannot be read.
    """
    with path.open(encoding="utf-8") as f:
        return list(iter_inventory(f))


def _format_capacity(capacity_gb: float) -> str:
    """Format capacity without a trailing .0 for whole numbers."""
    if capacity_gb == int(capacity_gb):
        return str(int(capacity_gb))
    return str(capacity_gb)


def format_inventory(objects: Iterable[StorageObject]) -> str:
    """Render storage objects as a discovery record.

    Args:
        objects: Storage objects to render.

    Returns:
        Record text; "No FCDs found" when there are no objects.
    """
    blocks: list[str] = []
    for obj in objects:
        lines = [f"Name: {obj.name}"]
        if obj.datastore is not None:
            lines.append(f"Datastore: {obj.datastore}")
        if obj.capacity_gb is not None:
            lines.append(f"CapacityGB: {_format_capacity(obj.capacity_gb)}")
        if obj.uid is not None:
            lines.append(f"UID: {obj.uid}")
        lines.append(f"ID: {obj.id}")
        if obj.backing_path is not None:
            lines.append(f"Filename: {obj.backing_path}")
        lines.append(SEPARATOR)
        blocks.append("\n".join(lines))

    if not blocks:
        return "No FCDs found\n"
    return "\n".join(blocks) + "\n"
