"""
Domain models for the stitching package.
"""
from photo_stitcher.stitching.domain.models import (
    RGBA,
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
