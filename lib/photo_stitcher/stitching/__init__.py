"""
Stitching package for the photo stitcher.

This package contains modules for planning, drawing and encoding the
stitched image.
"""
from photo_stitcher.stitching.domain.models import (
    Axis,
    Align,
    WatermarkKind,
    WatermarkPosition,
    OutputFormat,
    Dimension,
    Rect,
    SourceImage,
    LayoutOptions,
    StyleOptions,
    WatermarkSpec,
    OutputOptions,
    SizedImage,
    Placement,
    LayoutPlan,
    EncodedImage
)
from photo_stitcher.stitching.services.stitching_service import StitchingService
