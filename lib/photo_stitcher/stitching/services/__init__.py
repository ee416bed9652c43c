"""
Services for the stitching package.
"""
from photo_stitcher.stitching.services.image_resizer import (
    compute_target_size,
    size_images
)
from photo_stitcher.stitching.services.layout_manager import (
    calculate_layout_plan,
    get_layout_bounding_box
)
from photo_stitcher.stitching.services.canvas_processor import (
    create_canvas,
    rounded_rect_mask,
    stroke_border
)
from photo_stitcher.stitching.services.watermark_renderer import apply_watermark
from photo_stitcher.stitching.services.output_encoder import encode_canvas
from photo_stitcher.stitching.services.stitching_service import StitchingService
