import threading
import uuid
from enum import Enum
from typing import Optional, Tuple, Dict, Any, List

from typing_extensions import Protocol
import attr
import numpy as np

from photo_stitcher.stitching.domain.models import (
    LayoutOptions,
    OutputOptions,
    StyleOptions,
    WatermarkKind,
    WatermarkSpec
)


def new_job_id() -> str:
    return uuid.uuid4().hex


class JobState(str, Enum):
    SUBMITTED = "submitted"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED)


@attr.s(frozen=True)
class ImageInput:
    """One image as handed over by the ingestion side: encoded bytes or decoded pixels."""
    display_name: str = attr.ib()
    raw_bytes: Optional[bytes] = attr.ib(default=None, repr=False)
    pixels: Optional[np.ndarray] = attr.ib(default=None, eq=False, repr=False)
    exif_orientation: Optional[int] = attr.ib(default=None)

    @raw_bytes.validator
    def _check_source(self, attribute, value):
        if value is None and self.pixels is None:
            raise ValueError(f"Image '{self.display_name}' has neither bytes nor pixels")


@attr.s(frozen=True)
class JobOptions:
    """Immutable snapshot of every option that drives one job."""
    layout: LayoutOptions = attr.ib(factory=LayoutOptions)
    style: StyleOptions = attr.ib(factory=StyleOptions)
    output: OutputOptions = attr.ib(factory=OutputOptions)
    text_watermark: WatermarkSpec = attr.ib(factory=WatermarkSpec.none)
    image_watermark: WatermarkSpec = attr.ib(
        factory=lambda: WatermarkSpec(kind=WatermarkKind.IMAGE))
    watermark_image: Optional[ImageInput] = attr.ib(default=None)


@attr.s(frozen=True)
class JobRequest:
    job_id: str = attr.ib()
    images: Tuple[ImageInput, ...] = attr.ib(converter=tuple)
    options: JobOptions = attr.ib(factory=JobOptions)


@attr.s(frozen=True)
class CancelRequest:
    job_id: str = attr.ib()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.job_id, "type": "cancel"}


@attr.s(frozen=True)
class JobMessage:
    """Base for every executor-to-requester message; all are tagged with the job id."""
    job_id: str = attr.ib()

    type = "message"
    is_terminal = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.job_id, "type": self.type}


@attr.s(frozen=True)
class ProgressMessage(JobMessage):
    value: float = attr.ib(default=0.0)

    type = "progress"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.job_id, "type": self.type, "value": self.value}


@attr.s(frozen=True)
class NoticeMessage(JobMessage):
    """Advisory, non-terminal condition such as unreadable EXIF data."""
    message: str = attr.ib(default="")

    type = "notice"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.job_id, "type": self.type, "message": self.message}


@attr.s(frozen=True)
class ResultMessage(JobMessage):
    blob: bytes = attr.ib(default=b"", repr=False)
    mime: str = attr.ib(default="")
    filename: str = attr.ib(default="")

    type = "result"
    is_terminal = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.job_id,
            "type": self.type,
            "blob": self.blob,
            "mime": self.mime,
            "filename": self.filename
        }


@attr.s(frozen=True)
class CancelledMessage(JobMessage):
    type = "cancelled"
    is_terminal = True


@attr.s(frozen=True)
class ErrorMessage(JobMessage):
    message: str = attr.ib(default="")
    code: str = attr.ib(default="STITCH_ERROR")

    type = "error"
    is_terminal = True

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.job_id, "type": self.type, "message": self.message, "code": self.code}


TERMINAL_STATES = {
    ResultMessage.type: JobState.COMPLETED,
    CancelledMessage.type: JobState.CANCELLED,
    ErrorMessage.type: JobState.FAILED,
}


class CancellationToken:
    """Thread-safe cancellation flag; calling it reports whether cancellation was requested."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


@attr.s
class Job:
    """Controller-side record of one submitted job."""
    request: JobRequest = attr.ib()
    state: JobState = attr.ib(default=JobState.SUBMITTED)
    progress: float = attr.ib(default=0.0)
    cancel_token: CancellationToken = attr.ib(factory=CancellationToken)
    terminal_message: Optional[JobMessage] = attr.ib(default=None)
    notices: List[str] = attr.ib(factory=list)
    done: threading.Event = attr.ib(factory=threading.Event, repr=False)

    @property
    def job_id(self) -> str:
        return self.request.job_id


class MessageListener(Protocol):
    def __call__(self, message: JobMessage) -> None:
        ...


class YieldCallback(Protocol):
    def __call__(self) -> None:
        ...
