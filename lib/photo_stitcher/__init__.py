"""
Photo stitcher: combines several photographs into one image, either stacked
or side by side, with optional styling and watermarks.
"""
from photo_stitcher.errors import (
    ImageDecodeError,
    InvalidOptionError,
    JobCancelled,
    MetadataParseError,
    StitchError
)
from photo_stitcher.settings import from_settings, get_default_settings, to_settings
from photo_stitcher.stitching import (
    Align,
    Axis,
    LayoutOptions,
    OutputFormat,
    OutputOptions,
    StitchingService,
    StyleOptions,
    WatermarkKind,
    WatermarkPosition,
    WatermarkSpec
)
from photo_stitcher.workflow.domain.models import CancellationToken, ImageInput, JobOptions, JobState
from photo_stitcher.workflow.runner import run_stitch_job
from photo_stitcher.workflow.services.job_controller import JobController, JobTracker

__version__ = "1.0.0"
