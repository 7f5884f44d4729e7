"""Append-only audit trail of reconciliation outcomes.

This module provides the AuditTrail class for persisting one line per
processed storage object in a JSONL file, in processing order.
"""

import json
import logging
from pathlib import Path

from fcdreaper.core.paths import ensure_dir, get_audit_path, get_state_dir
from fcdreaper.models.outcome import ReconciliationOutcome

logger = logging.getLogger(__name__)


class AuditTrail:
    """Manages the outcome audit trail in a JSONL file.

    Storage location: ~/.local/state/fcdreaper/outcomes.jsonl

    Each line is a complete JSON object representing one
    ReconciliationOutcome. The file is only ever appended to.

    Attributes:
        state_dir: Directory containing the audit file.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize AuditTrail.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/fcdreaper
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def path(self) -> Path:
        """Path to the outcomes.jsonl file."""
        return get_audit_path(self._state_dir)

    def record(self, outcome: ReconciliationOutcome) -> None:
        """Append one outcome line.

        Creates the file and parent directories if they don't exist.

        Args:
            outcome: The outcome to record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        ensure_dir(self._state_dir, "state")

        with self.path.open(mode="a", encoding="utf-8") as f:
            f.write(outcome.to_json_line() + "\n")
            f.flush()

    def read(self, limit: int | None = None) -> list[ReconciliationOutcome]:
        """Read outcomes, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of outcomes to return. If None, returns all.

        Returns:
            List of ReconciliationOutcome, newest first.
            Returns empty list if file doesn't exist.
        """
        if not self.path.exists():
            return []

        outcomes: list[ReconciliationOutcome] = []

        with self.path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    outcomes.append(ReconciliationOutcome.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt audit line %d: %s", line_num, str(e))
                    continue

        outcomes.reverse()

        if limit is not None:
            return outcomes[:limit]

        return outcomes
