"""
Command-line entry point: stitch image files into one output file.

    python -m photo_stitcher a.jpg b.jpg c.png -o out.png --axis side_by_side --gap 10
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from photo_stitcher import config
from photo_stitcher.errors import StitchError
from photo_stitcher.settings import from_settings, get_default_settings
from photo_stitcher.workflow.domain.models import (
    ErrorMessage,
    ImageInput,
    JobMessage,
    JobState,
    NoticeMessage,
    ProgressMessage,
    ResultMessage
)
from photo_stitcher.workflow.services.job_controller import JobController

log = logging.getLogger("photo_stitcher")


def setup_logging(verbosity: int = 0) -> None:
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )


def read_image_file(path: str) -> ImageInput:
    with open(path, "rb") as f:
        return ImageInput(display_name=os.path.basename(path), raw_bytes=f.read())


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="photo_stitcher", description="Stitch photographs into one image.")
    p.add_argument("images", nargs="+", help="Input image files, in stitching order")
    p.add_argument("-o", "--output", help="Output file (default: stitched.<ext> in the current directory)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")

    layout = p.add_argument_group("layout")
    layout.add_argument("--axis", default=config.DEFAULT_AXIS, help="stacked | side_by_side")
    layout.add_argument("--align", default=config.DEFAULT_ALIGN, help="start | center | end")
    layout.add_argument("--gap", type=int, default=config.DEFAULT_GAP_PX)
    layout.add_argument("--gap-color", default=config.DEFAULT_GAP_COLOR)
    layout.add_argument("--padding", type=int, default=config.DEFAULT_OUTER_PADDING_PX)
    layout.add_argument("--uniform-width", type=int)
    layout.add_argument("--uniform-height", type=int)
    layout.add_argument("--max-width", type=int, default=config.DEFAULT_MAX_OUTPUT_WIDTH)
    layout.add_argument("--max-height", type=int, default=config.DEFAULT_MAX_OUTPUT_HEIGHT)

    style = p.add_argument_group("style")
    style.add_argument("--background", default=config.DEFAULT_BACKGROUND_COLOR)
    style.add_argument("--transparent", action="store_true")
    style.add_argument("--radius", type=int, default=0)
    style.add_argument("--border-width", type=int, default=0)
    style.add_argument("--border-color", default=config.DEFAULT_BORDER_COLOR)

    output = p.add_argument_group("output")
    output.add_argument("--format", default=config.DEFAULT_OUTPUT_FORMAT, help="png | jpeg | webp")
    output.add_argument("--quality", type=float, default=config.DEFAULT_OUTPUT_QUALITY)

    mark = p.add_argument_group("watermark")
    mark.add_argument("--watermark-text")
    mark.add_argument("--watermark-image")
    mark.add_argument("--watermark-opacity", type=float, default=config.DEFAULT_WATERMARK_OPACITY)
    mark.add_argument("--watermark-rotation", type=float, default=config.DEFAULT_WATERMARK_ROTATION_DEG)
    mark.add_argument("--watermark-position", default=config.DEFAULT_WATERMARK_POSITION,
                      help="tl | tr | bl | br | center")
    mark.add_argument("--watermark-tiled", action="store_true")
    mark.add_argument("--watermark-scale", type=float, default=config.DEFAULT_WATERMARK_IMAGE_SCALE)
    mark.add_argument("--watermark-image-opacity", type=float)
    mark.add_argument("--watermark-offset-x", type=float, default=0.0, help="image watermark shift in pixels")
    mark.add_argument("--watermark-offset-y", type=float, default=0.0)
    return p


def settings_from_args(args: argparse.Namespace) -> dict:
    record = get_default_settings()
    record.update({
        "axis": args.axis,
        "align": args.align,
        "gap": args.gap,
        "gapColor": args.gap_color,
        "outerPadding": args.padding,
        "uniformWidth": args.uniform_width,
        "uniformHeight": args.uniform_height,
        "maxOutputWidth": args.max_width,
        "maxOutputHeight": args.max_height,
        "backgroundColor": args.background,
        "transparentBackground": args.transparent,
        "borderRadius": args.radius,
        "borderWidth": args.border_width,
        "borderColor": args.border_color,
        "format": args.format,
        "quality": args.quality,
        "watermarkText": args.watermark_text,
        "watermarkOpacity": args.watermark_opacity,
        "watermarkRotation": args.watermark_rotation,
        "watermarkPosition": args.watermark_position,
        "watermarkTiled": args.watermark_tiled,
        "watermarkImageScale": args.watermark_scale,
        "watermarkImageOpacity": args.watermark_image_opacity,
        "watermarkImageOffsetX": args.watermark_offset_x,
        "watermarkImageOffsetY": args.watermark_offset_y,
    })
    if args.watermark_image:
        record["watermarkImage"] = read_image_file(args.watermark_image)
    return record


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        images = [read_image_file(path) for path in args.images]
        options = from_settings(settings_from_args(args))
    except (OSError, StitchError) as e:
        log.error("%s", e)
        return 2

    outcome = {}

    def on_message(message: JobMessage) -> None:
        if isinstance(message, ProgressMessage):
            log.info("Progress: %3.0f%%", message.value * 100)
        elif isinstance(message, NoticeMessage):
            log.warning("%s", message.message)
        elif message.is_terminal:
            outcome["message"] = message

    with JobController(on_message) as controller:
        job_id = controller.submit(images, options)
        state = controller.wait(job_id)

    message = outcome.get("message")
    if state == JobState.COMPLETED and isinstance(message, ResultMessage):
        out_path = args.output or message.filename
        with open(out_path, "wb") as f:
            f.write(message.blob)
        print(f"Saved {message.mime} to {out_path}")
        return 0
    if isinstance(message, ErrorMessage):
        log.error("Stitching failed [%s]: %s", message.code, message.message)
    else:
        log.error("Stitching did not complete (%s)", state.value if state else "unknown")
    return 1


if __name__ == "__main__":
    sys.exit(main())
