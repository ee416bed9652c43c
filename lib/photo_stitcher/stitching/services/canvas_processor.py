"""
Service for preparing the stitching canvas: background, clipping, gap bands and border.
"""
import numpy as np
from typing import Tuple, Optional

from photo_stitcher.image_utils import fill_region, paste_image_onto_canvas, resize_image, rgba_to_bgra
from photo_stitcher.stitching.domain.models import LayoutPlan, Rect, StyleOptions, RGBA


def get_canvas_size(plan: LayoutPlan, outer_padding: int) -> Tuple[int, int]:
    """
    Get the padded canvas size for a plan.

    Returns:
        (width, height), at least 1x1
    """
    return (
        max(1, plan.final_content_width + 2 * outer_padding),
        max(1, plan.final_content_height + 2 * outer_padding)
    )


def create_canvas(width: int, height: int, style: StyleOptions) -> np.ndarray:
    """
    Allocate a BGRA canvas filled with the background.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        style: Style options (background color or transparency)

    Returns:
        Canvas as a NumPy array of shape (height, width, 4)
    """
    if style.transparent_background:
        return np.zeros((height, width, 4), dtype=np.uint8)
    return np.full((height, width, 4), rgba_to_bgra(style.background_color), dtype=np.uint8)


def clamp_corner_radius(radius: float, width: float, height: float) -> float:
    """Limit a corner radius to half the shorter side."""
    return max(0.0, min(float(radius), min(width, height) / 2.0))


def rounded_rect_mask(canvas_shape: Tuple[int, ...], x: float, y: float,
                      width: float, height: float, radius: float) -> np.ndarray:
    """
    Rasterize a rounded rectangle into a boolean mask of the canvas shape.

    A pixel is covered when its center lies inside the shape. The radius is
    clamped to half the shorter side.
    """
    canvas_h, canvas_w = canvas_shape[:2]
    if width <= 0 or height <= 0:
        return np.zeros((canvas_h, canvas_w), dtype=bool)

    radius = clamp_corner_radius(radius, width, height)
    py, px = np.ogrid[0:canvas_h, 0:canvas_w]
    px = px + 0.5
    py = py + 0.5

    inside = (px >= x) & (px < x + width) & (py >= y) & (py < y + height)
    if radius <= 0:
        return inside

    # Distance to the inner rectangle shrunk by the radius
    nearest_x = np.clip(px, x + radius, x + width - radius)
    nearest_y = np.clip(py, y + radius, y + height - radius)
    return inside & ((px - nearest_x) ** 2 + (py - nearest_y) ** 2 <= radius ** 2)


def create_content_clip(canvas: np.ndarray, plan: LayoutPlan, outer_padding: int,
                        border_radius: int) -> Optional[np.ndarray]:
    """Clip mask for the content area, or None when no corner rounding is requested."""
    if border_radius <= 0:
        return None
    return rounded_rect_mask(
        canvas.shape,
        outer_padding,
        outer_padding,
        plan.final_content_width,
        plan.final_content_height,
        border_radius
    )


def draw_gap_band(canvas: np.ndarray, band: Rect, color: RGBA, origin: int,
                  clip_mask: Optional[np.ndarray] = None) -> None:
    """Fill a gap band (content coordinates) with the gap color."""
    canvas_h, canvas_w = canvas.shape[:2]
    coverage = np.zeros((canvas_h, canvas_w), dtype=bool)
    coverage[max(0, origin + band.y):max(0, origin + band.bottom),
             max(0, origin + band.x):max(0, origin + band.right)] = True
    if clip_mask is not None:
        coverage &= clip_mask
    fill_region(canvas, coverage, rgba_to_bgra(color))


def draw_image(canvas: np.ndarray, pixels: np.ndarray, rect: Rect, origin: int,
               clip_mask: Optional[np.ndarray] = None) -> None:
    """Scale a BGRA image to its destination rectangle and draw it."""
    scaled = resize_image(pixels, rect.width, rect.height)
    paste_image_onto_canvas(canvas, scaled, origin + rect.x, origin + rect.y, clip_mask=clip_mask)


def stroke_border(canvas: np.ndarray, x: float, y: float, width: float, height: float,
                  radius: float, line_width: int, color: RGBA) -> None:
    """
    Stroke a rounded rectangle outline centered on the given boundary.

    Half of the line lies outside the boundary and half inside; the stroke is
    not affected by any content clip.
    """
    if line_width <= 0 or width <= 0 or height <= 0:
        return

    radius = clamp_corner_radius(radius, width, height)
    half = line_width / 2.0
    outer = rounded_rect_mask(
        canvas.shape, x - half, y - half, width + line_width, height + line_width,
        radius + half if radius > 0 else 0
    )
    inner = rounded_rect_mask(
        canvas.shape, x + half, y + half, width - line_width, height - line_width,
        max(0.0, radius - half)
    )
    fill_region(canvas, outer & ~inner, rgba_to_bgra(color))
