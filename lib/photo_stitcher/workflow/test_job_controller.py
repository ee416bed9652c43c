"""
Tests for the job controller, its cooperative fallback and the requester-side tracker.
"""
import threading

import pytest

from photo_stitcher.errors import InvalidOptionError
from photo_stitcher.workflow.domain.models import (
    CancelledMessage,
    ErrorMessage,
    JobRequest,
    JobState,
    NoticeMessage,
    ProgressMessage,
    ResultMessage
)
from photo_stitcher.workflow.services.executor import JobExecutor
from photo_stitcher.workflow.services.job_controller import FALLBACK_NOTICE, JobController, JobTracker

WAIT_SECONDS = 30


class Recorder:
    def __init__(self):
        self.messages = []
        self.lock = threading.Lock()

    def __call__(self, message):
        with self.lock:
            self.messages.append(message)

    def for_job(self, job_id):
        with self.lock:
            return [m for m in self.messages if m.job_id == job_id]


class GatedExecutor(JobExecutor):
    """Holds the first job until released so later jobs stay queued."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def execute(self, request, emit, cancel_token=None, yield_control=None):
        if not self.started.is_set():
            self.started.set()
            self.release.wait(WAIT_SECONDS)
        return super().execute(request, emit, cancel_token=cancel_token, yield_control=yield_control)


def test_background_job_completes(make_input):
    recorder = Recorder()
    with JobController(recorder) as controller:
        assert controller.is_background
        job_id = controller.submit([make_input(10, 10), make_input(20, 10)])
        assert controller.wait(job_id, WAIT_SECONDS) == JobState.COMPLETED

    messages = recorder.for_job(job_id)
    assert [m.value for m in messages if isinstance(m, ProgressMessage)] == [0.5, 1.0]
    assert isinstance(messages[-1], ResultMessage)
    assert sum(1 for m in messages if m.is_terminal) == 1
    assert not any(isinstance(m, NoticeMessage) for m in messages)


def test_cooperative_fallback_advises_once(make_input):
    recorder = Recorder()
    controller = JobController(recorder, background=False)
    assert not controller.is_background

    first = controller.submit([make_input(10, 10)])
    second = controller.submit([make_input(10, 10)])

    assert controller.state(first) == JobState.COMPLETED
    assert controller.state(second) == JobState.COMPLETED
    first_messages = recorder.for_job(first)
    assert isinstance(first_messages[0], NoticeMessage)
    assert first_messages[0].message == FALLBACK_NOTICE
    assert not any(isinstance(m, NoticeMessage) for m in recorder.for_job(second))
    assert controller.get_job(first).notices == [FALLBACK_NOTICE]
    controller.close()


def test_cancel_queued_job(make_input):
    recorder = Recorder()
    executor = GatedExecutor()
    controller = JobController(recorder, executor=executor)
    try:
        blocking = controller.submit([make_input(10, 10)])
        assert executor.started.wait(WAIT_SECONDS)
        queued = controller.submit([make_input(10, 10)])

        assert controller.cancel(queued)
        executor.release.set()

        assert controller.wait(blocking, WAIT_SECONDS) == JobState.COMPLETED
        assert controller.wait(queued, WAIT_SECONDS) == JobState.CANCELLED
        assert [type(m) for m in recorder.for_job(queued)] == [CancelledMessage]
        assert not controller.cancel(queued)
    finally:
        executor.release.set()
        controller.close()


def test_cancel_unknown_job():
    controller = JobController(Recorder(), background=False)
    assert not controller.cancel("missing")
    assert controller.state("missing") is None
    assert controller.wait("missing", 0) is None


def test_failing_listener_does_not_break_job(make_input):
    def listener(message):
        raise RuntimeError("listener bug")

    controller = JobController(listener, background=False)
    job_id = controller.submit([make_input(5, 5)])
    assert controller.state(job_id) == JobState.COMPLETED
    assert controller.wait(job_id, 0) == JobState.COMPLETED


def test_duplicate_job_id_rejected(make_input):
    controller = JobController(Recorder(), background=False)
    controller.submit(JobRequest("dup", [make_input(5, 5)]))
    with pytest.raises(ValueError):
        controller.submit(JobRequest("dup", [make_input(5, 5)]))


def test_submit_after_close_rejected(make_input):
    controller = JobController(Recorder())
    controller.close()
    with pytest.raises(RuntimeError):
        controller.submit([make_input(5, 5)])


def test_forget_only_finished_jobs(make_input):
    controller = JobController(Recorder(), background=False)
    job_id = controller.submit([make_input(5, 5)])
    assert controller.forget(job_id)
    assert controller.get_job(job_id) is None
    assert not controller.forget(job_id)


def test_handle_raw_messages(make_input):
    recorder = Recorder()
    controller = JobController(recorder, background=False)
    job_id = controller.handle_message({
        "id": "raw-1",
        "images": [make_input(8, 8).raw_bytes],
        "options": {"format": "jpeg", "quality": 0.8}
    })
    assert job_id == "raw-1"
    result = recorder.for_job("raw-1")[-1]
    assert isinstance(result, ResultMessage)
    assert result.mime == "image/jpeg"

    assert controller.handle_message({"id": "raw-1", "type": "cancel"}) == "raw-1"
    assert controller.state("raw-1") == JobState.COMPLETED


def test_tracker_drops_stale_messages():
    tracker = JobTracker()
    assert tracker.begin("a") is None
    assert tracker.accept(ProgressMessage("a", value=0.5))

    assert tracker.begin("b") == "a"
    assert not tracker.accept(ProgressMessage("a", value=1.0))
    assert not tracker.accept(ResultMessage("a"))
    assert tracker.accept(ProgressMessage("b", value=1.0))
    assert tracker.accept(CancelledMessage("b"))
    assert not tracker.accept(ProgressMessage("b", value=1.0))
    assert tracker.current_job_id == "b"


def test_invalid_submission_is_answered_with_error(make_input):
    recorder = Recorder()
    with JobController(recorder) as controller:
        job_id = controller.handle_message({
            "id": "bad-1",
            "images": [make_input(8, 8).raw_bytes],
            "options": {"axis": "diagonal"}
        })
        assert job_id == "bad-1"
        assert controller.wait("bad-1", WAIT_SECONDS) == JobState.FAILED

    messages = recorder.for_job("bad-1")
    assert len(messages) == 1
    assert isinstance(messages[0], ErrorMessage)
    assert messages[0].code == "INVALID_OPTION"
    assert "diagonal" in messages[0].message
    assert not controller.cancel("bad-1")


def test_invalid_message_without_id_still_raises():
    controller = JobController(Recorder(), background=False)
    with pytest.raises(InvalidOptionError):
        controller.handle_message({"images": [None]})
    with pytest.raises(InvalidOptionError):
        controller.handle_message({"type": "cancel"})
