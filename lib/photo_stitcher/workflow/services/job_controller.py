import logging
import queue
import threading
import time
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from photo_stitcher.errors import StitchError
from photo_stitcher.workflow.domain.models import (
    CancelRequest,
    ErrorMessage,
    ImageInput,
    Job,
    JobMessage,
    JobOptions,
    JobRequest,
    JobState,
    MessageListener,
    NoticeMessage,
    ProgressMessage,
    TERMINAL_STATES,
    new_job_id
)
from photo_stitcher.workflow.protocol import parse_request
from photo_stitcher.workflow.services.executor import JobExecutor

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Background execution is unavailable; jobs run on the caller's thread"


def yield_to_scheduler() -> None:
    """Give other threads a chance to run between image draws"""
    time.sleep(0)


class JobController:
    """
    Owns a single background worker that runs submitted jobs one at a time.

    Every message is delivered to the listener tagged with its job id. When
    no worker thread can be started, jobs run cooperatively on the caller's
    thread and the first such job receives one advisory notice.
    """

    def __init__(
        self,
        listener: MessageListener,
        background: bool = True,
        executor: Optional[JobExecutor] = None
    ):
        self._listener = listener
        self._executor = executor or JobExecutor()
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._queue: "queue.Queue[Optional[Job]]" = queue.Queue()
        self._closed = False
        self._fallback_advised = False
        self._worker = self._start_worker() if background else None

    @property
    def is_background(self) -> bool:
        return self._worker is not None

    def _start_worker(self) -> Optional[threading.Thread]:
        worker = threading.Thread(target=self._worker_loop, name="stitch-worker", daemon=True)
        try:
            worker.start()
        except RuntimeError as e:
            logger.warning("Could not start stitch worker (%s); falling back to cooperative execution", e)
            return None
        return worker

    def _worker_loop(self) -> None:
        while True:
            job = self._queue.get()
            if job is None:
                break
            self._run_job(job)

    def submit(
        self,
        images: Union[JobRequest, Sequence[ImageInput]],
        options: Optional[JobOptions] = None,
        job_id: Optional[str] = None
    ) -> str:
        """
        Submit a job; returns its id.

        Raises:
            RuntimeError: If the controller is closed
            ValueError: If the job id was already used
        """
        if isinstance(images, JobRequest):
            request = images
        else:
            request = JobRequest(job_id or new_job_id(), images, options or JobOptions())

        job = Job(request)
        with self._lock:
            if self._closed:
                raise RuntimeError("JobController is closed")
            if request.job_id in self._jobs:
                raise ValueError(f"Job id '{request.job_id}' was already submitted")
            self._jobs[request.job_id] = job

        logger.info("Job %s: submitted", request.job_id)
        if self._worker is not None:
            self._queue.put(job)
        else:
            self._run_cooperatively(job)
        return request.job_id

    def handle_message(self, data: Mapping[str, Any]) -> Optional[str]:
        """
        Accept a raw submission or cancel message; returns the job id it concerns.

        A submission with an id but unusable contents is answered with an
        error message instead of raising.
        """
        try:
            message = parse_request(data)
        except StitchError as e:
            job_id = data.get("id")
            if not job_id or data.get("type") == "cancel":
                raise
            self._reject(str(job_id), e)
            return str(job_id)

        if isinstance(message, CancelRequest):
            self.cancel(message.job_id)
            return message.job_id
        return self.submit(message)

    def cancel(self, job_id: str) -> bool:
        """Request cancellation; False when the job is unknown or already finished"""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state.is_terminal:
                return False
        job.cancel_token.cancel()
        logger.info("Job %s: cancellation requested", job_id)
        return True

    def state(self, job_id: str) -> Optional[JobState]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.state if job is not None else None

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Optional[JobState]:
        """Block until the job reaches a terminal state; None on timeout or unknown id"""
        job = self.get_job(job_id)
        if job is None or not job.done.wait(timeout):
            return None
        return job.state

    def forget(self, job_id: str) -> bool:
        """Drop the record of a finished job"""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or not job.state.is_terminal:
                return False
            del self._jobs[job_id]
            return True

    def close(self, cancel_pending: bool = True, timeout: Optional[float] = None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = [job for job in self._jobs.values() if not job.state.is_terminal]
        if cancel_pending:
            for job in pending:
                job.cancel_token.cancel()
        if self._worker is not None:
            self._queue.put(None)
            self._worker.join(timeout)

    def __enter__(self) -> 'JobController':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close(cancel_pending=exc_type is not None)

    def _reject(self, job_id: str, error: StitchError) -> None:
        """Answer an unusable submission with its single terminal error message"""
        job = Job(JobRequest(job_id, ()))
        with self._lock:
            if self._closed:
                raise RuntimeError("JobController is closed")
            if job_id in self._jobs:
                raise ValueError(f"Job id '{job_id}' was already submitted")
            self._jobs[job_id] = job

        logger.warning("Job %s: rejected: %s", job_id, error)
        self._dispatch(job, ErrorMessage(job_id, message=str(error), code=error.code))

    def _run_cooperatively(self, job: Job) -> None:
        if not self._fallback_advised:
            self._fallback_advised = True
            logger.warning(FALLBACK_NOTICE)
            self._dispatch(job, NoticeMessage(job.job_id, message=FALLBACK_NOTICE))
        self._run_job(job, yield_control=yield_to_scheduler)

    def _run_job(self, job: Job, yield_control=None) -> None:
        with self._lock:
            job.state = JobState.RUNNING
        self._executor.execute(
            job.request,
            lambda message: self._dispatch(job, message),
            cancel_token=job.cancel_token,
            yield_control=yield_control
        )

    def _dispatch(self, job: Job, message: JobMessage) -> None:
        with self._lock:
            if job.state.is_terminal:
                logger.debug("Job %s: dropping %s after terminal state", job.job_id, message.type)
                return
            if isinstance(message, ProgressMessage):
                job.progress = message.value
            elif isinstance(message, NoticeMessage):
                job.notices.append(message.message)
            elif message.is_terminal:
                job.state = TERMINAL_STATES[message.type]
                job.terminal_message = message

        try:
            self._listener(message)
        except Exception:
            logger.exception("Job %s: message listener failed on %s", job.job_id, message.type)
        finally:
            if message.is_terminal:
                job.done.set()


class JobTracker:
    """
    Requester-side demultiplexer.

    Only messages for the most recently started job are accepted; messages
    for superseded jobs and anything after a job's terminal message are dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current_job_id: Optional[str] = None
        self._retired = set()

    @property
    def current_job_id(self) -> Optional[str]:
        return self._current_job_id

    def begin(self, job_id: str) -> Optional[str]:
        """Track a new job; returns the superseded job id, if any, so it can be cancelled"""
        with self._lock:
            previous = self._current_job_id
            if previous is not None and previous != job_id:
                self._retired.add(previous)
            self._current_job_id = job_id
            return previous if previous != job_id else None

    def accept(self, message: JobMessage) -> bool:
        with self._lock:
            if message.job_id != self._current_job_id or message.job_id in self._retired:
                return False
            if message.is_terminal:
                self._retired.add(message.job_id)
            return True
