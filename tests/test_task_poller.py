from __future__ import annotations

import pytest

from notion_export_core.exceptions import ExportTaskFailedError, ExportTimeoutError, TransportError
from notion_export_core.tasks import ExportTask, TaskPoller, TaskState, select_task

TASK_ID = "task-123"


def _task(state, export_url=None, **status):
    if export_url:
        status["exportURL"] = export_url
    return ExportTask.from_record({"id": TASK_ID, "state": state, "status": status})


class _Script:
    """Returns scripted task observations and counts status queries."""

    def __init__(self, *tasks):
        self.tasks = list(tasks)
        self.calls = 0

    def __call__(self, task_id):
        assert task_id == TASK_ID
        self.calls += 1
        item = self.tasks.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def test_two_in_progress_then_success_queries_three_times():
    """The loop waits one interval before every query and stops on success."""
    script = _Script(
        _task("in_progress", pagesExported=1),
        _task("in_progress", pagesExported=4),
        _task("success", "https://files.example/export.zip"),
    )
    sleeps: list[float] = []

    url = TaskPoller(script, interval_ms=500, sleep=sleeps.append).wait_for_export_url(TASK_ID)

    assert url == "https://files.example/export.zip"
    assert script.calls == 3
    assert sleeps == [0.5, 0.5, 0.5]


def test_not_started_is_also_pending():
    script = _Script(_task("not_started"), _task("success", "https://x/y.zip"))
    assert TaskPoller(script, interval_ms=10, sleep=lambda _s: None).wait_for_export_url(TASK_ID) == "https://x/y.zip"
    assert script.calls == 2


def test_success_without_url_fails():
    """A success record lacking exportURL is a terminal failure."""
    script = _Script(_task("success"))

    with pytest.raises(ExportTaskFailedError) as info:
        TaskPoller(script, interval_ms=10, sleep=lambda _s: None).wait_for_export_url(TASK_ID)

    assert info.value.task_id == TASK_ID
    assert info.value.status["state"] == "success"


@pytest.mark.parametrize("state", ["failure", "aborted", None])
def test_other_states_fail_with_last_status(state):
    script = _Script(_task("in_progress"), _task(state, error="boom"))

    with pytest.raises(ExportTaskFailedError) as info:
        TaskPoller(script, interval_ms=10, sleep=lambda _s: None).wait_for_export_url(TASK_ID)

    assert script.calls == 2
    assert info.value.status["status"] == {"error": "boom"}


def test_status_query_errors_propagate_without_retry():
    script = _Script(_task("in_progress"), TransportError("HTTP 502 from getTasks", status_code=502))

    with pytest.raises(TransportError):
        TaskPoller(script, interval_ms=10, sleep=lambda _s: None).wait_for_export_url(TASK_ID)
    assert script.calls == 2


def test_max_wait_raises_timeout():
    """With a wait budget, a task stuck in progress ends in ExportTimeoutError."""
    now = [0.0]

    def fake_sleep(seconds):
        now[0] += seconds

    script = _Script(*[_task("in_progress") for _ in range(10)])
    poller = TaskPoller(script, interval_ms=1000, max_wait=3, sleep=fake_sleep, clock=lambda: now[0])

    with pytest.raises(ExportTimeoutError) as info:
        poller.wait_for_export_url(TASK_ID)

    assert isinstance(info.value, ExportTaskFailedError)
    assert script.calls == 3
    assert info.value.waited == pytest.approx(3.0)


def test_unknown_state_parses_as_failed():
    assert TaskState.parse("exploded") is TaskState.FAILED
    assert TaskState.parse("in_progress").is_pending


def test_select_task_picks_matching_record():
    payload = {"results": [{"id": "other", "state": "success"}, {"id": TASK_ID, "state": "in_progress"}]}
    assert select_task(payload, TASK_ID).state is TaskState.IN_PROGRESS


@pytest.mark.parametrize("payload", [{}, {"results": None}, {"results": [{"id": "other"}]}])
def test_select_task_rejects_malformed_payloads(payload):
    with pytest.raises(TransportError):
        select_task(payload, TASK_ID)
