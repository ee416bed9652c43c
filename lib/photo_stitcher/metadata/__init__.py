from photo_stitcher.metadata.domain import NormalizedImage
from photo_stitcher.metadata.orientation import (
    apply_exif_orientation,
    normalize_orientation,
    normalize_pixels,
    read_exif_orientation
)

__all__ = [
    'NormalizedImage',
    'apply_exif_orientation',
    'normalize_orientation',
    'normalize_pixels',
    'read_exif_orientation'
]
