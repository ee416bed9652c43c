"""
This module provides the one-call entry point for running a stitch job
synchronously on the caller's thread.
"""
from typing import List, Optional, Sequence

from photo_stitcher.workflow.domain.models import (
    CancellationToken,
    ImageInput,
    JobMessage,
    JobOptions,
    JobRequest,
    new_job_id
)
from photo_stitcher.workflow.services.executor import JobExecutor


def run_stitch_job(
    images: Sequence[ImageInput],
    options: Optional[JobOptions] = None,
    job_id: Optional[str] = None,
    cancel_token: Optional[CancellationToken] = None
) -> List[JobMessage]:
    """
    Run one stitch job and collect every message it produced.

    Args:
        images: Images in stitching order
        options: Job options, defaults when None
        job_id: Job identity, generated when None
        cancel_token: Token the caller may cancel from another thread

    Returns:
        Progress and notice messages followed by exactly one terminal message
    """
    request = JobRequest(job_id or new_job_id(), images, options or JobOptions())
    messages: List[JobMessage] = []
    JobExecutor().execute(request, messages.append, cancel_token=cancel_token)
    return messages
