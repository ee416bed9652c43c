"""
Facade service for stitching functionality.

This module serves as the main entry point for the stitching functionality,
combining layout planning, canvas drawing, watermarking and encoding into a
single sequential render that reports progress and honors cancellation.
"""
import logging
from typing import Callable, Optional, Sequence

import numpy as np

from photo_stitcher.errors import JobCancelled
from photo_stitcher.stitching.domain.models import (
    EncodedImage,
    LayoutOptions,
    LayoutPlan,
    OutputOptions,
    SourceImage,
    StyleOptions,
    WatermarkSpec
)
from photo_stitcher.stitching.services.canvas_processor import (
    create_canvas,
    create_content_clip,
    draw_gap_band,
    draw_image,
    get_canvas_size,
    stroke_border
)
from photo_stitcher.stitching.services.layout_manager import (
    calculate_layout_plan,
    get_layout_bounding_box
)
from photo_stitcher.stitching.services.output_encoder import encode_canvas
from photo_stitcher.stitching.services.watermark_renderer import apply_watermark

logger = logging.getLogger(__name__)

ProgressFn = Callable[[float], None]
CancelCheckFn = Callable[[], bool]
YieldFn = Callable[[], None]


class StitchingService:
    """
    Facade service for coordinating the stitching process.
    """

    def __init__(self, job_id: str = ""):
        """
        Initialize the stitching service.

        Args:
            job_id: Identity of the job this service renders for, used in logs and cancellation
        """
        self.job_id = job_id

    def plan_layout(self, images: Sequence[SourceImage], layout: LayoutOptions) -> LayoutPlan:
        """
        Calculate exact placements for the images.

        Args:
            images: Decoded source images in draw order
            layout: Layout options

        Returns:
            The layout plan
        """
        return calculate_layout_plan([img.dimension for img in images], layout)

    def _check_cancelled(self, cancel_check: Optional[CancelCheckFn]) -> None:
        if cancel_check is not None and cancel_check():
            logger.info("Job %s: cancellation observed", self.job_id)
            raise JobCancelled(self.job_id)

    def compose_canvas(
        self,
        plan: LayoutPlan,
        images: Sequence[SourceImage],
        layout: LayoutOptions,
        style: StyleOptions,
        watermarks: Sequence[WatermarkSpec] = (),
        progress_callback: Optional[ProgressFn] = None,
        cancel_check: Optional[CancelCheckFn] = None,
        yield_control: Optional[YieldFn] = None
    ) -> np.ndarray:
        """
        Draw every planned image, the border and the watermarks onto a new canvas.

        Cancellation is checked after each image and again after the watermarks.
        Progress is reported per image drawn, except that 1.0 is only reported
        once the final check has passed.

        Returns:
            The finished BGRA canvas

        Raises:
            JobCancelled: If cancel_check reports cancellation at a check boundary
        """
        pad = layout.outer_padding
        canvas_w, canvas_h = get_canvas_size(plan, pad)
        canvas = create_canvas(canvas_w, canvas_h, style)
        clip_mask = create_content_clip(canvas, plan, pad, style.border_radius)

        # Images and gap bands never paint outside the content area
        content_h, content_w = plan.final_content_height, plan.final_content_width
        content = canvas[pad:pad + content_h, pad:pad + content_w]
        content_clip = clip_mask[pad:pad + content_h, pad:pad + content_w] if clip_mask is not None else None

        bbox = get_layout_bounding_box(plan)
        if bbox is not None and (bbox.right > content_w or bbox.bottom > content_h):
            logger.warning("Job %s: placements extend %dx%d past content %dx%d and are clipped",
                           self.job_id, bbox.right, bbox.bottom, content_w, content_h)

        total = len(plan.placements)
        for drawn, placement in enumerate(plan.placements, start=1):
            if placement.gap_band is not None:
                draw_gap_band(content, placement.gap_band, layout.gap_color, 0, content_clip)
            draw_image(content, images[placement.index].pixels, placement.rect, 0, content_clip)

            self._check_cancelled(cancel_check)
            logger.debug("Job %s: drew image %d/%d", self.job_id, drawn, total)
            # The final 1.0 is held back until the last check has passed
            if progress_callback is not None and drawn < total:
                progress_callback(drawn / total)
            if yield_control is not None:
                yield_control()

        if style.border_width > 0:
            stroke_border(canvas, pad, pad, plan.final_content_width, plan.final_content_height,
                          style.border_radius, style.border_width, style.border_color)

        for spec in watermarks:
            apply_watermark(canvas, spec)
        self._check_cancelled(cancel_check)
        if progress_callback is not None and total > 0:
            progress_callback(1.0)

        return canvas

    def render(
        self,
        plan: LayoutPlan,
        images: Sequence[SourceImage],
        layout: LayoutOptions,
        style: StyleOptions,
        watermarks: Sequence[WatermarkSpec],
        output: OutputOptions,
        progress_callback: Optional[ProgressFn] = None,
        cancel_check: Optional[CancelCheckFn] = None,
        yield_control: Optional[YieldFn] = None
    ) -> EncodedImage:
        """
        Compose the canvas and encode it.

        Nothing is encoded once cancellation has been observed.

        Returns:
            The encoded output
        """
        canvas = self.compose_canvas(
            plan, images, layout, style, watermarks,
            progress_callback=progress_callback,
            cancel_check=cancel_check,
            yield_control=yield_control
        )
        return encode_canvas(canvas, output)

    def stitch(
        self,
        images: Sequence[SourceImage],
        layout: LayoutOptions,
        style: StyleOptions,
        watermarks: Sequence[WatermarkSpec],
        output: OutputOptions,
        progress_callback: Optional[ProgressFn] = None,
        cancel_check: Optional[CancelCheckFn] = None,
        yield_control: Optional[YieldFn] = None
    ) -> EncodedImage:
        """
        Plan, compose and encode in one call.

        Returns:
            The encoded output
        """
        plan = self.plan_layout(images, layout)
        logger.info("Job %s: stitching %d image(s) into %dx%d content (scale %.4f)",
                    self.job_id, len(images), plan.final_content_width,
                    plan.final_content_height, plan.global_scale)
        return self.render(
            plan, images, layout, style, watermarks, output,
            progress_callback=progress_callback,
            cancel_check=cancel_check,
            yield_control=yield_control
        )
