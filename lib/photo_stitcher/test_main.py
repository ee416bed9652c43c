"""
Tests for the command-line option mapping.
"""
from photo_stitcher.__main__ import build_parser, settings_from_args
from photo_stitcher.settings import from_settings


def test_watermark_offsets_reach_image_watermark():
    args = build_parser().parse_args([
        "a.png", "--watermark-offset-x", "12.5", "--watermark-offset-y", "-4"
    ])
    options = from_settings(settings_from_args(args))

    assert options.image_watermark.offset_x == 12.5
    assert options.image_watermark.offset_y == -4.0


def test_watermark_offsets_default_to_zero():
    options = from_settings(settings_from_args(build_parser().parse_args(["a.png"])))

    assert options.image_watermark.offset_x == 0.0
    assert options.image_watermark.offset_y == 0.0
