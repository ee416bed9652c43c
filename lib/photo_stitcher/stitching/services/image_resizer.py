"""
Service for sizing images before they are laid out.
"""
import math
from typing import List, Optional, Sequence

from photo_stitcher.stitching.domain.models import (
    Axis,
    Dimension,
    LayoutOptions,
    SizedImage
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def get_uniform_constraint(layout: LayoutOptions) -> Optional[tuple]:
    """
    Get the uniform-size constraint that applies to the active axis.

    Args:
        layout: Layout options

    Returns:
        ("width", px) or ("height", px), or None when no uniform size is set
    """
    if layout.axis == Axis.STACKED:
        preferred = [("width", layout.uniform_width), ("height", layout.uniform_height)]
    else:
        preferred = [("height", layout.uniform_height), ("width", layout.uniform_width)]

    for dimension_name, value in preferred:
        if value is not None:
            return dimension_name, value
    return None


def compute_target_size(width: int, height: int, layout: LayoutOptions) -> Dimension:
    """
    Scale an image's native size so it hits the uniform dimension exactly.

    Args:
        width: Native width in pixels
        height: Native height in pixels
        layout: Layout options

    Returns:
        Target dimension (each side at least 1px)
    """
    constraint = get_uniform_constraint(layout)
    if constraint is None or width <= 0 or height <= 0:
        return Dimension(max(1, width), max(1, height))

    dimension_name, target = constraint
    if dimension_name == "width":
        return Dimension(target, max(1, round_half_up(height * target / width)))
    return Dimension(max(1, round_half_up(width * target / height)), target)


def size_images(dimensions: Sequence[Dimension], layout: LayoutOptions) -> List[SizedImage]:
    """Apply the uniform-size constraint to every image, in order."""
    sized = []
    for index, dimension in enumerate(dimensions):
        target = compute_target_size(dimension.width, dimension.height, layout)
        sized.append(SizedImage(
            index=index,
            width=dimension.width,
            height=dimension.height,
            target_width=target.width,
            target_height=target.height
        ))
    return sized
