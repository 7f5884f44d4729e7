"""Asynchronous task orchestration.

Submits an operation to the inventory provider and polls the returned
task handle at a fixed interval until it reaches a terminal state or
the timeout ceiling. A timed-out task is never cancelled; it may still
complete on the remote side.
"""

import logging
import time
from collections.abc import Callable

from fcdreaper.core.errors import ProviderOperationError
from fcdreaper.models.task import TaskHandle, TaskOperation, TaskResult, TaskState, TaskStatus
from fcdreaper.providers.base import InventoryProvider

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 300.0


class TaskRunner:
    """Submits operations and waits for their tasks to finish.

    Polling blocks the caller; every poll after the first is separated
    by the full poll interval.

    Attributes:
        poll_interval: Seconds between polls.
        timeout: Default ceiling in seconds for a single task.

    Example:
        >>> runner = TaskRunner(provider, poll_interval=5, timeout=300)
        >>> result = runner.run(
        ...     TaskOperation.DELETE_OBJECT, obj.id,
        ...     lambda: provider.submit_delete_object(obj.id),
        ... )
        >>> result.success
        True
    """

    def __init__(
        self,
        provider: InventoryProvider,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the runner.

        Args:
            provider: Provider used to read task state.
            poll_interval: Seconds between polls (must be positive).
            timeout: Default timeout ceiling in seconds.
            sleep: Sleep function, replaceable in tests.
            clock: Monotonic clock, replaceable in tests.

        Raises:
            ValueError: If poll_interval or timeout is not positive.
        """
        if poll_interval <= 0:
            msg = f"Poll interval must be positive, got {poll_interval}"
            raise ValueError(msg)
        if timeout <= 0:
            msg = f"Timeout must be positive, got {timeout}"
            raise ValueError(msg)

        self._provider = provider
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def run(
        self,
        operation: TaskOperation,
        target: str,
        submit: Callable[[], TaskHandle],
        timeout: float | None = None,
    ) -> TaskResult:
        """Submit an operation and wait for its terminal state.

        A synchronous rejection by the provider is reported as a FAILED
        result carrying the diagnostic. ProviderConnectionError is not
        caught.

        Args:
            operation: Operation being performed.
            target: Id of the object, snapshot or datastore operated on.
            submit: Callable submitting the operation and returning its handle.
            timeout: Override of the default timeout ceiling.

        Returns:
            TaskResult with state SUCCESS, FAILED or TIMEOUT.
        """
        ceiling = timeout if timeout is not None else self.timeout

        try:
            handle = submit()
        except ProviderOperationError as e:
            logger.info("%s of %s rejected: %s", operation.value, target, e.diagnostic)
            return TaskResult(
                operation=operation,
                target=target,
                state=TaskState.FAILED,
                error=e.diagnostic,
            )

        logger.debug("Submitted %s for %s", operation.value, target)
        return self.wait(operation, target, handle, ceiling)

    def wait(
        self,
        operation: TaskOperation,
        target: str,
        handle: TaskHandle,
        timeout: float,
    ) -> TaskResult:
        """Poll a submitted task until it is terminal or the ceiling is reached.

        State regressions reported by the provider (e.g. running back to
        pending) are ignored.

        Args:
            operation: Operation being performed.
            target: Id of the object, snapshot or datastore operated on.
            handle: Task handle returned by the provider.
            timeout: Ceiling in seconds.

        Returns:
            TaskResult with state SUCCESS, FAILED or TIMEOUT.
        """
        started = self._clock()
        observed = TaskState.PENDING

        while True:
            try:
                status = self._provider.get_task_state(handle)
            except ProviderOperationError as e:
                status = TaskStatus(state=TaskState.FAILED, error=f"Task state unavailable: {e}")
            elapsed = self._clock() - started

            if status.state.rank < observed.rank:
                logger.debug(
                    "Ignoring state regression %s -> %s for %s",
                    observed.value,
                    status.state.value,
                    target,
                )
            else:
                observed = status.state

            if observed == TaskState.SUCCESS:
                logger.debug("%s of %s succeeded after %.0fs", operation.value, target, elapsed)
                return TaskResult(
                    operation=operation,
                    target=target,
                    state=TaskState.SUCCESS,
                    handle=handle,
                    elapsed_seconds=elapsed,
                )

            if observed == TaskState.FAILED:
                error = status.error or "Task failed without error detail"
                logger.info("%s of %s failed: %s", operation.value, target, error)
                return TaskResult(
                    operation=operation,
                    target=target,
                    state=TaskState.FAILED,
                    handle=handle,
                    error=error,
                    elapsed_seconds=elapsed,
                )

            if elapsed >= timeout:
                logger.warning(
                    "%s of %s still %s after %.0fs; giving up",
                    operation.value,
                    target,
                    observed.value,
                    elapsed,
                )
                return TaskResult(
                    operation=operation,
                    target=target,
                    state=TaskState.TIMEOUT,
                    handle=handle,
                    error=f"Task still {observed.value} after {elapsed:.0f}s",
                    elapsed_seconds=elapsed,
                )

            self._sleep(self.poll_interval)
