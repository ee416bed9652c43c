import logging
from typing import List, Optional

import attr

from photo_stitcher.errors import JobCancelled, StitchError
from photo_stitcher.stitching.domain.models import WatermarkSpec
from photo_stitcher.stitching.services.stitching_service import StitchingService
from photo_stitcher.workflow.domain.models import (
    CancellationToken,
    CancelledMessage,
    ErrorMessage,
    JobMessage,
    JobRequest,
    JobState,
    MessageListener,
    NoticeMessage,
    ProgressMessage,
    ResultMessage,
    TERMINAL_STATES,
    YieldCallback
)
from photo_stitcher.workflow.services.image_loader import ImageLoader

logger = logging.getLogger(__name__)


class JobExecutor:
    """Runs one stitch job and reports it as tagged messages, ending in exactly one terminal message"""

    def __init__(self, image_loader: Optional[ImageLoader] = None):
        self.image_loader = image_loader or ImageLoader()

    def execute(
        self,
        request: JobRequest,
        emit: MessageListener,
        cancel_token: Optional[CancellationToken] = None,
        yield_control: Optional[YieldCallback] = None
    ) -> JobState:
        """Execute the job; every outcome, including failure, is delivered through emit"""
        job_id = request.job_id
        token = cancel_token or CancellationToken()
        logger.info("Job %s: started with %d image(s)", job_id, len(request.images))

        try:
            terminal = self._run(request, emit, token, yield_control)
        except JobCancelled:
            logger.info("Job %s: cancelled", job_id)
            terminal = CancelledMessage(job_id)
        except StitchError as e:
            logger.warning("Job %s: failed: %s", job_id, e)
            terminal = ErrorMessage(job_id, message=str(e), code=e.code)
        except Exception as e:
            logger.exception("Job %s: unexpected error", job_id)
            terminal = ErrorMessage(job_id, message=str(e) or type(e).__name__, code="INTERNAL_ERROR")

        emit(terminal)
        return TERMINAL_STATES[terminal.type]

    def _check_cancelled(self, job_id: str, token: CancellationToken) -> None:
        if token.is_cancelled:
            raise JobCancelled(job_id)

    def _run(self, request: JobRequest, emit: MessageListener,
             token: CancellationToken, yield_control: Optional[YieldCallback]) -> JobMessage:
        job_id = request.job_id
        options = request.options
        self._check_cancelled(job_id, token)

        if not request.images:
            raise StitchError("No images to stitch", code="NO_IMAGES")

        images, warnings = self.image_loader.load_images(request.images, cancel_check=token)
        self._check_cancelled(job_id, token)

        watermarks = self._prepare_watermarks(request, warnings)
        for warning in warnings:
            emit(NoticeMessage(job_id, message=warning))

        service = StitchingService(job_id)
        encoded = service.stitch(
            images,
            options.layout,
            options.style,
            watermarks,
            options.output,
            progress_callback=lambda value: emit(ProgressMessage(job_id, value=value)),
            cancel_check=token,
            yield_control=yield_control
        )

        logger.info("Job %s: completed (%s, %d bytes)", job_id, encoded.mime_type, len(encoded.data))
        return ResultMessage(
            job_id,
            blob=encoded.data,
            mime=encoded.mime_type,
            filename=encoded.suggested_filename
        )

    def _prepare_watermarks(self, request: JobRequest, warnings: List[str]) -> List[WatermarkSpec]:
        """Text watermark first, then the image watermark once its pixels are decoded"""
        options = request.options
        watermarks = [options.text_watermark]
        if options.watermark_image is not None:
            mark, mark_warnings = self.image_loader.load_image(options.watermark_image)
            warnings.extend(mark_warnings)
            watermarks.append(attr.evolve(options.image_watermark, image_pixels=mark.pixels))
        return watermarks
