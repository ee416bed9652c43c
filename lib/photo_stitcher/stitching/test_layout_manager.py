"""
Tests for the layout planner.
"""
import math

import numpy as np
import pytest

from photo_stitcher.stitching.domain.models import Align, Axis, Dimension, LayoutOptions
from photo_stitcher.stitching.services.image_resizer import compute_target_size, round_half_up
from photo_stitcher.stitching.services.layout_manager import (
    calculate_cross_offset,
    calculate_global_scale,
    calculate_layout_plan,
    fit_stack_size,
    get_layout_bounding_box
)

THREE_IMAGES = [Dimension(100, 200), Dimension(150, 200), Dimension(100, 300)]


def test_stacked_with_gap():
    """Three stacked images with a 10px gap are centered and offset by the gaps."""
    plan = calculate_layout_plan(THREE_IMAGES, LayoutOptions(axis="stacked", gap=10))

    assert (plan.raw_width, plan.raw_height) == (150, 720)
    assert plan.global_scale == 1.0
    assert (plan.final_content_width, plan.final_content_height) == (150, 720)
    assert [p.x for p in plan.placements] == [25, 0, 25]
    assert [p.y for p in plan.placements] == [0, 210, 430]
    assert plan.placements[0].gap_band is None
    assert plan.placements[1].gap_band.y == 200
    assert plan.placements[1].gap_band.height == 10
    assert plan.placements[1].gap_band.width == 150
    assert plan.placements[2].gap_band.y == 420


def test_max_height_scales_everything_by_one_factor():
    plan = calculate_layout_plan(THREE_IMAGES, LayoutOptions(gap=10, max_output_height=360))

    assert plan.global_scale == pytest.approx(0.5)
    assert plan.final_content_height == 360
    assert plan.final_content_width == 75
    assert plan.scaled_gap == 5
    assert [p.draw_height for p in plan.placements] == [100, 100, 150]
    assert [p.draw_width for p in plan.placements] == [50, 75, 50]
    assert [p.y for p in plan.placements] == [0, 105, 210]
    assert [p.x for p in plan.placements] == [13, 0, 13]


def test_side_by_side_alignment():
    dims = [Dimension(100, 200), Dimension(50, 100)]
    for align, expected_y in [("start", 0), ("center", 50), ("end", 100)]:
        plan = calculate_layout_plan(dims, LayoutOptions(axis="side_by_side", align=align))
        assert (plan.final_content_width, plan.final_content_height) == (150, 200)
        assert [p.x for p in plan.placements] == [0, 100]
        assert plan.placements[1].y == expected_y


def test_axis_aliases():
    assert LayoutOptions(axis="horizontal").axis == Axis.SIDE_BY_SIDE
    assert LayoutOptions(axis="vertical").axis == Axis.STACKED


def test_uniform_width_when_stacked():
    layout = LayoutOptions(uniform_width=200)
    assert compute_target_size(100, 200, layout) == Dimension(200, 400)
    assert compute_target_size(400, 100, layout) == Dimension(200, 50)


def test_uniform_falls_back_to_orthogonal_value():
    layout = LayoutOptions(axis="stacked", uniform_height=100)
    assert compute_target_size(200, 100, layout) == Dimension(200, 100)
    assert compute_target_size(100, 200, layout) == Dimension(50, 100)


def test_uniform_height_wins_when_side_by_side():
    layout = LayoutOptions(axis="side_by_side", uniform_width=10, uniform_height=50)
    assert compute_target_size(100, 200, layout) == Dimension(25, 50)


def test_tiny_target_is_clamped_to_one_pixel():
    layout = LayoutOptions(uniform_width=10)
    assert compute_target_size(1000, 1, layout) == Dimension(10, 1)


def test_zero_images_give_empty_plan():
    plan = calculate_layout_plan([], LayoutOptions(gap=10))
    assert plan.is_empty
    assert plan.final_content_width == 0
    assert get_layout_bounding_box(plan) is None


def test_single_image_has_no_gap():
    plan = calculate_layout_plan([Dimension(40, 30)], LayoutOptions(gap=25))
    assert (plan.final_content_width, plan.final_content_height) == (40, 30)
    assert plan.placements[0].gap_band is None


def test_global_scale_bounds():
    assert calculate_global_scale(100, 100, None, None) == 1.0
    assert calculate_global_scale(100, 100, 200, 200) == 1.0
    assert calculate_global_scale(400, 100, 200, None) == pytest.approx(0.5)
    assert calculate_global_scale(400, 1000, 200, 100) == pytest.approx(0.1)


def test_cross_offset():
    assert calculate_cross_offset(10, 4, Align.START) == 0
    assert calculate_cross_offset(10, 4, Align.END) == 6
    assert calculate_cross_offset(10, 5, Align.CENTER) == 3
    assert calculate_cross_offset(10, 10, Align.CENTER) == 0


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_plan_properties_hold_for_random_inputs():
    """Extents, bounds and alignment hold across axis, alignment and uniform settings."""
    rng = np.random.RandomState(7)
    for _ in range(200):
        count = rng.randint(1, 6)
        dims = [Dimension(int(rng.randint(1, 800)), int(rng.randint(1, 800))) for _ in range(count)]
        axis = rng.choice(["stacked", "side_by_side"])
        align = rng.choice(["start", "center", "end"])
        max_w = int(rng.randint(1, 1500)) if rng.rand() < 0.5 else None
        max_h = int(rng.randint(1, 1500)) if rng.rand() < 0.5 else None
        uniform_w = int(rng.randint(1, 400)) if rng.rand() < 0.3 else None
        uniform_h = int(rng.randint(1, 400)) if rng.rand() < 0.3 else None
        layout = LayoutOptions(axis=axis, align=align, max_output_width=max_w, max_output_height=max_h,
                               uniform_width=uniform_w, uniform_height=uniform_h)

        plan = calculate_layout_plan(dims, layout)

        targets_w = [s.target_width for s in plan.sized_images]
        targets_h = [s.target_height for s in plan.sized_images]
        if axis == "stacked":
            assert (plan.raw_width, plan.raw_height) == (max(targets_w), sum(targets_h))
        else:
            assert (plan.raw_width, plan.raw_height) == (sum(targets_w), max(targets_h))

        assert 0 < plan.global_scale <= 1
        if max_w is None and max_h is None:
            assert plan.global_scale == 1.0
        if max_w is not None:
            assert plan.final_content_width <= max(1, max_w)
        if max_h is not None:
            assert plan.final_content_height <= max(1, max_h)
        assert plan.final_content_width == max(1, math.floor(plan.raw_width * plan.global_scale))

        for p in plan.placements:
            assert p.draw_width >= 1 and p.draw_height >= 1
            if axis == "stacked":
                extent, offset, size = plan.final_content_width, p.x, p.draw_width
            else:
                extent, offset, size = plan.final_content_height, p.y, p.draw_height
            if align == "start":
                assert offset == 0
            elif align == "end":
                assert offset == extent - size
            else:
                assert abs((extent - size - offset) - offset) <= 1

        along = [p.y if axis == "stacked" else p.x for p in plan.placements]
        assert along == sorted(along)

        stack_extent = plan.final_content_height if axis == "stacked" else plan.final_content_width
        if len(dims) <= stack_extent:
            bbox = get_layout_bounding_box(plan)
            assert bbox.right <= plan.final_content_width
            assert bbox.bottom <= plan.final_content_height


def test_rounded_sizes_end_inside_content():
    """Two 10x3 images capped at 3px would round to 2px each; the last one is shortened."""
    plan = calculate_layout_plan([Dimension(10, 3), Dimension(10, 3)], LayoutOptions(max_output_height=3))
    assert (plan.final_content_width, plan.final_content_height) == (5, 3)
    assert [(p.y, p.draw_height) for p in plan.placements] == [(0, 2), (2, 1)]
    for placement in plan.placements:
        assert placement.rect.bottom <= plan.final_content_height
        assert placement.rect.right <= plan.final_content_width


def test_rounded_sizes_side_by_side_with_gap():
    dims = [Dimension(3, 10), Dimension(3, 10), Dimension(3, 10)]
    plan = calculate_layout_plan(dims, LayoutOptions(axis="side_by_side", gap=2, max_output_width=7))
    bbox = get_layout_bounding_box(plan)
    assert bbox.right <= plan.final_content_width
    assert bbox.bottom <= plan.final_content_height


def test_fit_stack_size_reserves_room_for_later_images():
    assert fit_stack_size(5, 0, 10, 0, 0) == 5
    assert fit_stack_size(5, 8, 10, 0, 0) == 2
    assert fit_stack_size(5, 0, 6, 2, 1) == 2
    assert fit_stack_size(5, 10, 10, 0, 0) == 1
