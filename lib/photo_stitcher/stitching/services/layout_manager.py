"""
Service for planning the layout of images in the stitched output.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from photo_stitcher.stitching.domain.models import (
    Align,
    Axis,
    Dimension,
    LayoutOptions,
    LayoutPlan,
    Placement,
    Rect,
    SizedImage
)
from photo_stitcher.stitching.services.image_resizer import round_half_up, size_images

logger = logging.getLogger(__name__)


def calculate_raw_extent(sized: Sequence[SizedImage], axis: Axis, gap: int) -> Tuple[int, int]:
    """
    Calculate the composite size before the global scale is applied.

    Along the stacking axis the extent is the sum of target sizes plus the
    gaps between them; across it, the largest target size.
    """
    if not sized:
        return 0, 0

    gaps_total = gap * (len(sized) - 1)
    if axis == Axis.STACKED:
        raw_w = max(it.target_width for it in sized)
        raw_h = sum(it.target_height for it in sized) + gaps_total
    else:
        raw_w = sum(it.target_width for it in sized) + gaps_total
        raw_h = max(it.target_height for it in sized)
    return raw_w, raw_h


def calculate_global_scale(raw_w: int, raw_h: int,
                           max_w: Optional[int], max_h: Optional[int]) -> float:
    """Single downscale factor that fits the raw extent into the bounds; never above 1."""
    limit_w = max_w if max_w is not None else math.inf
    limit_h = max_h if max_h is not None else math.inf
    scale = 1.0
    if raw_w > 0:
        scale = min(scale, limit_w / raw_w)
    if raw_h > 0:
        scale = min(scale, limit_h / raw_h)
    return scale


def calculate_cross_offset(extent: int, size: int, align: Align) -> int:
    """Offset of an item of `size` inside `extent` on the cross axis."""
    if align == Align.START:
        return 0
    if align == Align.END:
        return extent - size
    return round_half_up((extent - size) / 2)


def fit_stack_size(size: int, offset: int, extent: int, items_after: int, gap: int) -> int:
    """
    Shrink a draw size along the stacking axis so it ends inside the extent.

    One pixel plus a gap is kept free for every later image; the size never
    drops below 1px.
    """
    available = extent - offset - items_after * (gap + 1)
    return max(1, min(size, available))


def calculate_layout_plan(dimensions: Sequence[Dimension], layout: LayoutOptions) -> LayoutPlan:
    """
    Turn a list of image sizes into exact pixel placements.

    Args:
        dimensions: Native (width, height) of each image, in draw order
        layout: Layout options

    Returns:
        The layout plan; an empty plan when there are no images
    """
    if not dimensions:
        return LayoutPlan.create_empty()

    sized = size_images(dimensions, layout)
    raw_w, raw_h = calculate_raw_extent(sized, layout.axis, layout.gap)
    scale = calculate_global_scale(raw_w, raw_h, layout.max_output_width, layout.max_output_height)

    final_w = max(1, math.floor(raw_w * scale))
    final_h = max(1, math.floor(raw_h * scale))
    scaled_gap = round_half_up(layout.gap * scale)

    if scale < 1.0:
        logger.info("Scaling composite %dx%d by %.4f to %dx%d", raw_w, raw_h, scale, final_w, final_h)

    stacked = layout.axis == Axis.STACKED
    cross_extent = final_w if stacked else final_h
    placements: List[Placement] = []
    offset = 0

    last = len(sized) - 1
    for position, it in enumerate(sized):
        draw_w = max(1, round_half_up(it.target_width * scale))
        draw_h = max(1, round_half_up(it.target_height * scale))

        gap_band = None
        if position > 0 and scaled_gap > 0:
            if stacked:
                gap_band = Rect(0, offset, final_w, scaled_gap)
            else:
                gap_band = Rect(offset, 0, scaled_gap, final_h)
            offset += scaled_gap

        # Independent rounding can overshoot the floored extents
        if stacked:
            draw_w = min(draw_w, cross_extent)
            draw_h = fit_stack_size(draw_h, offset, final_h, last - position, scaled_gap)
            x, y = calculate_cross_offset(cross_extent, draw_w, layout.align), offset
            offset += draw_h
        else:
            draw_h = min(draw_h, cross_extent)
            draw_w = fit_stack_size(draw_w, offset, final_w, last - position, scaled_gap)
            x, y = offset, calculate_cross_offset(cross_extent, draw_h, layout.align)
            offset += draw_w

        placements.append(Placement(
            index=it.index,
            x=x,
            y=y,
            draw_width=draw_w,
            draw_height=draw_h,
            gap_band=gap_band
        ))

    return LayoutPlan(
        raw_width=raw_w,
        raw_height=raw_h,
        final_content_width=final_w,
        final_content_height=final_h,
        global_scale=scale,
        scaled_gap=scaled_gap,
        sized_images=sized,
        placements=placements
    )


def get_layout_bounding_box(plan: LayoutPlan) -> Optional[Rect]:
    """
    Get the rectangle that contains every placed image and gap band.

    Returns:
        A Rect, or None when nothing is placed
    """
    rects = [p.rect for p in plan.placements] + \
        [p.gap_band for p in plan.placements if p.gap_band is not None]
    if not rects:
        return None

    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    max_x = max(r.right for r in rects)
    max_y = max(r.bottom for r in rects)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)
