from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ExportTaskFailedError, ExportTimeoutError, TransportError
from .logger import get_task_logger


class TaskState(str, Enum):
    """Export task states reported by `getTasks`."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> TaskState:
        """Map a reported state to a member; anything unknown counts as failure."""
        try:
            return cls(str(value))
        except ValueError:
            return cls.FAILED

    @property
    def is_pending(self) -> bool:
        """Return True for the states that keep the poll loop running."""
        return self in (TaskState.NOT_STARTED, TaskState.IN_PROGRESS)


@dataclass(frozen=True)
class ExportTask:
    """One observation of a remote export task."""

    id: str
    state: TaskState
    reported_state: str | None = None
    status: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def export_url(self) -> str | None:
        """Return the archive URL of a finished task, if any."""
        url = self.status.get("exportURL")
        return url if isinstance(url, str) and url else None

    @property
    def pages_exported(self) -> int | None:
        """Return the progress counter Notion reports while exporting, if any."""
        value = self.status.get("pagesExported")
        return value if isinstance(value, int) else None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ExportTask:
        """Build a task from one `getTasks` result record."""
        if not isinstance(record, dict) or not record.get("id"):
            raise TransportError(f"Malformed task record: {record!r}")
        status = record.get("status")
        reported = record.get("state")
        return cls(
            id=str(record["id"]),
            state=TaskState.parse(reported),
            reported_state=None if reported is None else str(reported),
            status=status if isinstance(status, dict) else {},
            raw=record,
        )


def select_task(payload: dict[str, Any], task_id: str) -> ExportTask:
    """Pick the record for `task_id` out of a `getTasks` response."""
    results = payload.get("results")
    if not isinstance(results, list):
        raise TransportError("getTasks response has no results list")
    for record in results:
        if isinstance(record, dict) and record.get("id") == task_id:
            return ExportTask.from_record(record)
    raise TransportError(f"Task {task_id} missing from getTasks response")


class TaskPoller:
    """Poll a task at a fixed interval until it reaches a terminal state.

    Only the two pending states are retried. Errors raised by `fetch_task`
    propagate on the first occurrence. With `max_wait` unset the loop has no
    upper bound.
    """

    def __init__(
        self,
        fetch_task: Callable[[str], ExportTask],
        interval_ms: int,
        max_wait: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Store the status query and the timing policy."""
        self.fetch_task = fetch_task
        self.interval_ms = interval_ms
        self.max_wait = max_wait
        self._sleep = sleep
        self._clock = clock

    def wait(self, task_id: str) -> ExportTask:
        """Block until the task leaves the pending states and return the last observation."""
        logger = get_task_logger(task_id)
        interval = self.interval_ms / 1000
        started = self._clock()
        previous: TaskState | None = None

        while True:
            self._sleep(interval)
            task = self.fetch_task(task_id)
            logger.debug("State %s, status %s", task.reported_state, task.status)
            if task.state != previous:
                logger.info("Export task %s: %s", task_id, task.reported_state)
                previous = task.state

            if not task.state.is_pending:
                return task

            if pages := task.pages_exported:
                logger.debug("Pages exported so far: %s", pages)

            waited = self._clock() - started
            if self.max_wait is not None and waited + interval > self.max_wait:
                logger.warning("Giving up after %.1fs, task still %s", waited, task.reported_state)
                raise ExportTimeoutError(task_id, task.raw, waited)

    def wait_for_export_url(self, task_id: str) -> str:
        """Poll until success and return the export URL; raise on any other outcome."""
        task = self.wait(task_id)
        if task.state is TaskState.SUCCESS and task.export_url:
            return task.export_url

        get_task_logger(task_id).error("Export task failed: %s %s", task_id, task.raw)
        raise ExportTaskFailedError(task_id, task.raw)
