"""Snapshot dependency discovery.

Finds the snapshots that block deletion of a storage object. Two
strategies sit behind the DependencyAnalyzer interface:

- proactive: ask the provider to list snapshots before deleting
- reactive: extract a snapshot id from the diagnostic of a failed delete

Both analyzers fall back to diagnostic extraction after a failed
delete, so the coordinator never needs to know which one it holds.
"""

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum

from fcdreaper.core.errors import ProviderOperationError
from fcdreaper.models.storage import SnapshotDependency, StorageObject
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)

# "Snapshot `abcd-1234` relies on this object" with optional quoting
_SNAPSHOT_ID_PATTERN = re.compile(
    r"snapshot\s+[`'\"]?(?P<id>[\w.:-]+?)[`'\"]?\s+(?:relies|depends)\s+on\s+this",
    re.IGNORECASE,
)

# Wording that indicates a dependency conflict even when no id can be extracted
_DEPENDENCY_HINTS = ("snapshot", "relies on", "depends on", "in use by")


class DependencyStrategy(str, Enum):
    """Dependency discovery strategy.

    Attributes:
        AUTO: Proactive when the provider supports listing, reactive otherwise.
        PROACTIVE: Always list snapshots before deleting.
        REACTIVE: Only extract dependencies from delete diagnostics.
    """

    AUTO = "auto"
    PROACTIVE = "proactive"
    REACTIVE = "reactive"


def extract_snapshot_id(diagnostic: str) -> str | None:
    """Extract the blocking snapshot id from a delete diagnostic.

    Args:
        diagnostic: Error text returned by a failed delete.

    Returns:
        The snapshot id, or None if the text does not match.
    """
    match = _SNAPSHOT_ID_PATTERN.search(diagnostic)
    if match is None:
        return None
    return match.group("id")


def indicates_dependency(diagnostic: str) -> bool:
    """Check whether a delete diagnostic describes a dependency conflict."""
    lowered = diagnostic.lower()
    return any(hint in lowered for hint in _DEPENDENCY_HINTS)


class DependencyAnalyzer(ABC):
    """Abstract base class for snapshot dependency analyzers.

    Example:
        >>> analyzer = create_analyzer(provider, DependencyStrategy.AUTO)
        >>> deps = analyzer.discover(obj)
    """

    @property
    @abstractmethod
    def strategy(self) -> DependencyStrategy:
        """Return the strategy this analyzer implements."""

    @abstractmethod
    def discover(self, obj: StorageObject) -> list[SnapshotDependency]:
        """Find dependencies before the first delete attempt.

        Args:
            obj: Storage object about to be deleted.

        Returns:
            Known dependencies; empty when none exist or none can be known.
        """

    def from_diagnostic(self, obj: StorageObject, diagnostic: str) -> list[SnapshotDependency]:
        """Recover dependencies from the diagnostic of a failed delete.

        Best effort: returns at most one dependency, and none when the
        diagnostic does not match the expected grammar.

        Args:
            obj: Storage object whose deletion failed.
            diagnostic: Error text of the failed delete.

        Returns:
            Zero or one SnapshotDependency.
        """
        snapshot_id = extract_snapshot_id(diagnostic)
        if snapshot_id is None:
            logger.debug("No snapshot id in diagnostic for %s: %r", obj.id, diagnostic[:200])
            return []
        return [SnapshotDependency(snapshot_id=snapshot_id, parent_id=obj.id)]


class ReactiveAnalyzer(DependencyAnalyzer):
    """Analyzer relying solely on delete diagnostics."""

    @property
    def strategy(self) -> DependencyStrategy:
        """Return REACTIVE as the strategy."""
        return DependencyStrategy.REACTIVE

    def discover(self, obj: StorageObject) -> list[SnapshotDependency]:
        """Nothing is known before the first delete."""
        return []


class ProactiveAnalyzer(DependencyAnalyzer):
    """Analyzer listing snapshots through the provider before deleting.

    Attributes:
        _provider: Provider supporting list_snapshots().
    """

    def __init__(self, provider: InventoryProvider) -> None:
        """Initialize the analyzer.

        Args:
            provider: Provider used to list snapshots.
        """
        self._provider = provider

    @property
    def strategy(self) -> DependencyStrategy:
        """Return PROACTIVE as the strategy."""
        return DependencyStrategy.PROACTIVE

    def discover(self, obj: StorageObject) -> list[SnapshotDependency]:
        """List snapshots of the object.

        Listing failures fall back to reactive extraction: a warning is
        logged and no dependencies are reported.
        """
        datastore_ref = obj.datastore_ref
        if datastore_ref is None:
            logger.warning("Cannot list snapshots of %s: no datastore reference", obj.id)
            return []

        try:
            dependencies = self._provider.list_snapshots(obj.id, datastore_ref)
        except (ProviderOperationError, NotImplementedError) as e:
            logger.warning(
                "Snapshot listing failed for %s, relying on delete diagnostics: %s", obj.id, e
            )
            return []

        if dependencies:
            logger.info("Object %s has %d snapshot(s)", obj.id, len(dependencies))
        return dependencies


def create_analyzer(
    provider: InventoryProvider,
    strategy: DependencyStrategy = DependencyStrategy.AUTO,
) -> DependencyAnalyzer:
    """Create the analyzer for a strategy.

    AUTO picks proactive listing when the provider supports it.

    Args:
        provider: Inventory provider in use.
        strategy: Requested strategy.

    Returns:
        DependencyAnalyzer instance.
    """
    if strategy == DependencyStrategy.AUTO:
        use_proactive = provider.supports_snapshot_listing
    else:
        use_proactive = strategy == DependencyStrategy.PROACTIVE

    if use_proactive:
        if not provider.supports_snapshot_listing:
            logger.warning(
                "%s provider cannot list snapshots; listing will fall back to diagnostics",
                provider.name,
            )
        return ProactiveAnalyzer(provider)
    return ReactiveAnalyzer()
