"""
Service for drawing text and image watermarks over a finished canvas.
"""
import logging
import math
from typing import List, Tuple

import cv2
import numpy as np

from photo_stitcher import config
from photo_stitcher.image_utils import paste_image_onto_canvas, resize_image, rgba_to_bgra
from photo_stitcher.stitching.domain.models import (
    WatermarkKind,
    WatermarkPosition,
    WatermarkSpec
)
from photo_stitcher.stitching.services.image_resizer import round_half_up

logger = logging.getLogger(__name__)

WATERMARK_FONT = cv2.FONT_HERSHEY_SIMPLEX
WATERMARK_FONT_THICKNESS = 1


def calculate_anchor_points(
    canvas_w: int,
    canvas_h: int,
    box_w: float,
    box_h: float,
    position: WatermarkPosition,
    tiled: bool,
    stride_factor: float,
    margin: float
) -> List[Tuple[float, float]]:
    """
    Calculate the center point of every watermark instance.

    Args:
        canvas_w: Canvas width in pixels
        canvas_h: Canvas height in pixels
        box_w: Width of one (unrotated) watermark instance
        box_h: Height of one (unrotated) watermark instance
        position: Corner or center anchor, ignored when tiled
        tiled: Repeat the watermark on a grid over the whole canvas
        stride_factor: Grid step as a multiple of the larger box side
        margin: Distance from the canvas edge for corner anchors

    Returns:
        List of (x, y) anchor points
    """
    if tiled:
        step = max(box_w, box_h) * stride_factor
        if step < 1:
            step = 1.0
        # One extra stride past each edge so the far edges are covered
        xs = np.arange(0, canvas_w + step, step)
        ys = np.arange(0, canvas_h + step, step)
        return [(float(x), float(y)) for y in ys for x in xs]

    left = margin + box_w / 2
    right = canvas_w - margin - box_w / 2
    top = margin + box_h / 2
    bottom = canvas_h - margin - box_h / 2

    if position == WatermarkPosition.TOP_LEFT:
        return [(left, top)]
    if position == WatermarkPosition.TOP_RIGHT:
        return [(right, top)]
    if position == WatermarkPosition.BOTTOM_LEFT:
        return [(left, bottom)]
    if position == WatermarkPosition.CENTER:
        return [(canvas_w / 2, canvas_h / 2)]
    return [(right, bottom)]


def measure_text(text: str, font_height: int) -> Tuple[int, int, float]:
    """
    Measure text in the watermark font.

    Returns:
        (text width, text height above the baseline, font scale)
    """
    font_scale = cv2.getFontScaleFromHeight(WATERMARK_FONT, max(1, font_height), WATERMARK_FONT_THICKNESS)
    (text_w, text_h), _ = cv2.getTextSize(text, WATERMARK_FONT, font_scale, WATERMARK_FONT_THICKNESS)
    return text_w, text_h, font_scale


def render_text_patch(spec: WatermarkSpec) -> np.ndarray:
    """Render the watermark text into a tight BGRA patch centered on the glyph box."""
    text_w, text_h, font_scale = measure_text(spec.text, spec.font_height)
    _, baseline = cv2.getTextSize(spec.text, WATERMARK_FONT, font_scale, WATERMARK_FONT_THICKNESS)
    pad = WATERMARK_FONT_THICKNESS + 1
    patch_h = text_h + 2 * baseline + 2 * pad
    patch_w = text_w + 2 * pad

    coverage = np.zeros((patch_h, patch_w), dtype=np.uint8)
    # Baseline placed so the visible glyphs sit in the vertical middle of the patch
    cv2.putText(coverage, spec.text, (pad, pad + baseline + text_h), WATERMARK_FONT,
                font_scale, 255, WATERMARK_FONT_THICKNESS, cv2.LINE_AA)

    patch = np.zeros((patch_h, patch_w, 4), dtype=np.uint8)
    b, g, r, a = rgba_to_bgra(spec.color)
    patch[:, :, 0] = b
    patch[:, :, 1] = g
    patch[:, :, 2] = r
    patch[:, :, 3] = (coverage.astype(np.float32) * (a / 255.0)).astype(np.uint8)
    return patch


def rotate_patch(patch: np.ndarray, degrees: float) -> np.ndarray:
    """
    Rotate a BGRA patch about its center, growing it to fit the rotated bounds.

    Positive angles turn clockwise on screen.
    """
    if not degrees or math.isclose(degrees % 360.0, 0.0):
        return patch

    h, w = patch.shape[:2]
    center = (w / 2.0, h / 2.0)
    # getRotationMatrix2D turns counter-clockwise for positive angles
    matrix = cv2.getRotationMatrix2D(center, -degrees, 1.0)
    cos_a = abs(matrix[0, 0])
    sin_a = abs(matrix[0, 1])
    new_w = int(math.ceil(h * sin_a + w * cos_a))
    new_h = int(math.ceil(h * cos_a + w * sin_a))
    matrix[0, 2] += new_w / 2.0 - center[0]
    matrix[1, 2] += new_h / 2.0 - center[1]

    return cv2.warpAffine(
        patch, matrix, (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0)
    )


def _draw_instances(canvas: np.ndarray, patch: np.ndarray, anchors, spec: WatermarkSpec) -> int:
    rotated = rotate_patch(patch, spec.rotation_degrees)
    patch_h, patch_w = rotated.shape[:2]
    drawn = 0
    for anchor_x, anchor_y in anchors:
        center_x = anchor_x + spec.offset_x
        center_y = anchor_y + spec.offset_y
        paste_image_onto_canvas(
            canvas,
            rotated,
            round_half_up(center_x - patch_w / 2),
            round_half_up(center_y - patch_h / 2),
            opacity=spec.opacity
        )
        drawn += 1
    return drawn


def apply_text_watermark(canvas: np.ndarray, spec: WatermarkSpec) -> int:
    """Draw a text watermark; returns the number of instances drawn."""
    canvas_h, canvas_w = canvas.shape[:2]
    text_w, _, _ = measure_text(spec.text, spec.font_height)
    anchors = calculate_anchor_points(
        canvas_w, canvas_h, text_w, spec.font_height,
        spec.position, spec.tiled, config.WATERMARK_TEXT_TILE_STRIDE, spec.margin
    )
    return _draw_instances(canvas, render_text_patch(spec), anchors, spec)


def apply_image_watermark(canvas: np.ndarray, spec: WatermarkSpec) -> int:
    """Draw an image watermark scaled to a fraction of the canvas width."""
    canvas_h, canvas_w = canvas.shape[:2]
    mark_h, mark_w = spec.image_pixels.shape[:2]
    target_w = canvas_w * spec.scale
    target_h = mark_h * (target_w / mark_w)
    if target_w < 1 or target_h < 1:
        logger.warning("Image watermark scale %.3f is too small for a %dpx canvas", spec.scale, canvas_w)
        return 0

    patch = resize_image(spec.image_pixels, max(1, round_half_up(target_w)), max(1, round_half_up(target_h)))
    anchors = calculate_anchor_points(
        canvas_w, canvas_h, target_w, target_h,
        spec.position, spec.tiled, config.WATERMARK_IMAGE_TILE_STRIDE, spec.margin
    )
    return _draw_instances(canvas, patch, anchors, spec)


def apply_watermark(canvas: np.ndarray, spec: WatermarkSpec) -> int:
    """
    Composite a watermark over the canvas in place.

    Does nothing for a NONE watermark, empty text or a missing image.

    Returns:
        Number of watermark instances drawn
    """
    if spec is None or not spec.is_active:
        return 0
    if spec.kind == WatermarkKind.TEXT:
        return apply_text_watermark(canvas, spec)
    return apply_image_watermark(canvas, spec)
