"""Asynchronous task models.

This module defines data structures for tracking long-running
platform-side operations (deletions and inventory reconciliation)
from submission to a terminal state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Opaque handle returned by the provider when an operation is submitted
TaskHandle = Any


class TaskOperation(str, Enum):
    """Operation tracked by an asynchronous task.

    Attributes:
        DELETE_SNAPSHOT: Removal of a snapshot of a storage object.
        DELETE_OBJECT: Removal of a storage object.
        RECONCILE_DATASTORE: Inventory reconciliation of a datastore.
    """

    DELETE_SNAPSHOT = "delete-snapshot"
    DELETE_OBJECT = "delete-object"
    RECONCILE_DATASTORE = "reconcile-datastore"


class TaskState(str, Enum):
    """Lifecycle state of an asynchronous task.

    States only move forward: PENDING -> RUNNING -> terminal.
    TIMEOUT is assigned locally when polling gives up; the provider
    never reports it.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        """Check if this state ends polling."""
        return self in (TaskState.SUCCESS, TaskState.FAILED, TaskState.TIMEOUT)

    @property
    def rank(self) -> int:
        """Ordering used to reject state regressions while polling."""
        if self == TaskState.PENDING:
            return 0
        if self == TaskState.RUNNING:
            return 1
        return 2


@dataclass(frozen=True, slots=True)
class TaskStatus:
    """Task state as reported by the provider for a single poll.

    Attributes:
        state: Reported state (never TIMEOUT).
        error: Error detail when the state is FAILED.
    """

    state: TaskState
    error: str | None = None


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Terminal outcome of an asynchronous task.

    Attributes:
        operation: Operation the task performed.
        target: Object id, snapshot id or datastore reference operated on.
        state: SUCCESS, FAILED or TIMEOUT.
        handle: Provider task handle (None if submission failed immediately).
        error: Error detail for FAILED and TIMEOUT results.
        elapsed_seconds: Time spent waiting for the task.
    """

    operation: TaskOperation
    target: str
    state: TaskState
    handle: TaskHandle = None
    error: str | None = None
    elapsed_seconds: float = 0.0

    def __post_init__(self) -> None:
        """Validate that the result is terminal."""
        if not self.state.is_terminal:
            msg = f"Task result must be terminal, got {self.state.value}"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """Check if the task completed successfully."""
        return self.state == TaskState.SUCCESS

    @property
    def failed(self) -> bool:
        """Check if the task reported failure."""
        return self.state == TaskState.FAILED

    @property
    def timed_out(self) -> bool:
        """Check if polling gave up before a terminal state."""
        return self.state == TaskState.TIMEOUT
