"""
Domain models for the workflow package.
"""
from photo_stitcher.workflow.domain.models import (
    CancellationToken,
    CancelledMessage,
    CancelRequest,
    ErrorMessage,
    ImageInput,
    Job,
    JobMessage,
    JobOptions,
    JobRequest,
    JobState,
    NoticeMessage,
    ProgressMessage,
    ResultMessage,
    TERMINAL_STATES,
    new_job_id
)
