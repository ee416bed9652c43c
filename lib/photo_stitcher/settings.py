"""
Conversion between the flat settings record and the job option snapshot.

The flat record uses the camelCase keys of the job submission message.
Optional numeric fields may arrive missing, as None or as an empty string;
all three mean "not set".
"""
import logging
from typing import Any, Dict, Mapping, Optional

import numpy as np

from photo_stitcher import config
from photo_stitcher.errors import InvalidOptionError
from photo_stitcher.image_utils import format_color
from photo_stitcher.stitching.domain.models import (
    LayoutOptions,
    OutputOptions,
    StyleOptions,
    WatermarkKind,
    WatermarkSpec
)
from photo_stitcher.workflow.domain.models import ImageInput, JobOptions

logger = logging.getLogger(__name__)

WATERMARK_IMAGE_NAME = "watermark"


def get_default_settings() -> Dict[str, Any]:
    """Returns a dictionary of default settings values."""
    return {
        "axis": config.DEFAULT_AXIS,
        "align": config.DEFAULT_ALIGN,
        "gap": config.DEFAULT_GAP_PX,
        "gapColor": config.DEFAULT_GAP_COLOR,
        "outerPadding": config.DEFAULT_OUTER_PADDING_PX,
        "transparentBackground": False,
        "backgroundColor": config.DEFAULT_BACKGROUND_COLOR,
        "format": config.DEFAULT_OUTPUT_FORMAT,
        "quality": config.DEFAULT_OUTPUT_QUALITY,
        "uniformWidth": None,
        "uniformHeight": None,
        "maxOutputWidth": config.DEFAULT_MAX_OUTPUT_WIDTH,
        "maxOutputHeight": config.DEFAULT_MAX_OUTPUT_HEIGHT,
        "borderRadius": 0,
        "borderWidth": 0,
        "borderColor": config.DEFAULT_BORDER_COLOR,
        "watermarkText": None,
        "watermarkOpacity": config.DEFAULT_WATERMARK_OPACITY,
        "watermarkRotation": config.DEFAULT_WATERMARK_ROTATION_DEG,
        "watermarkPosition": config.DEFAULT_WATERMARK_POSITION,
        "watermarkTiled": False,
        "watermarkImage": None,
        "watermarkImageScale": config.DEFAULT_WATERMARK_IMAGE_SCALE,
        "watermarkImageOpacity": None,
        "watermarkImageOffsetX": None,
        "watermarkImageOffsetY": None,
    }


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def optional_number(record: Mapping[str, Any], key: str) -> Optional[float]:
    value = record.get(key)
    if _is_absent(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidOptionError(key, value)


def number(record: Mapping[str, Any], key: str, default: float) -> float:
    value = optional_number(record, key)
    return default if value is None else value


def optional_int(record: Mapping[str, Any], key: str) -> Optional[int]:
    value = optional_number(record, key)
    return None if value is None else int(round(value))


def flag(record: Mapping[str, Any], key: str) -> bool:
    value = record.get(key, False)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def to_image_input(value: Any, name: str) -> Optional[ImageInput]:
    """Accept encoded bytes, a decoded array, an ImageInput or an ingestion record."""
    if _is_absent(value):
        return None
    if isinstance(value, ImageInput):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ImageInput(display_name=name, raw_bytes=bytes(value))
    if isinstance(value, np.ndarray):
        return ImageInput(display_name=name, pixels=value)
    if isinstance(value, Mapping):
        raw = value.get("rawBytes")
        if raw is None and value.get("pixels") is None:
            raise InvalidOptionError(name, value.get("displayName"))
        return ImageInput(
            display_name=value.get("displayName") or name,
            raw_bytes=bytes(raw) if raw is not None else None,
            pixels=value.get("pixels"),
            exif_orientation=value.get("exifOrientationCode")
        )
    raise InvalidOptionError(name, type(value).__name__)


def from_settings(record: Mapping[str, Any]) -> JobOptions:
    """
    Build a job option snapshot from a flat settings record.

    Args:
        record: Flat settings record; missing keys take defaults, except the
            optional size bounds which are then unset

    Returns:
        The job options
    """
    defaults = get_default_settings()

    def get(key):
        value = record.get(key)
        return defaults[key] if _is_absent(value) else value

    layout = LayoutOptions(
        axis=get("axis"),
        align=get("align"),
        gap=number(record, "gap", defaults["gap"]),
        gap_color=get("gapColor"),
        outer_padding=number(record, "outerPadding", defaults["outerPadding"]),
        uniform_width=optional_int(record, "uniformWidth"),
        uniform_height=optional_int(record, "uniformHeight"),
        max_output_width=optional_int(record, "maxOutputWidth"),
        max_output_height=optional_int(record, "maxOutputHeight")
    )
    style = StyleOptions(
        background_color=get("backgroundColor"),
        transparent_background=flag(record, "transparentBackground"),
        border_radius=number(record, "borderRadius", defaults["borderRadius"]),
        border_width=number(record, "borderWidth", defaults["borderWidth"]),
        border_color=get("borderColor")
    )
    output = OutputOptions(
        format=get("format"),
        quality=number(record, "quality", defaults["quality"])
    )

    text_opacity = number(record, "watermarkOpacity", defaults["watermarkOpacity"])
    rotation = number(record, "watermarkRotation", defaults["watermarkRotation"])
    position = get("watermarkPosition")
    tiled = flag(record, "watermarkTiled")
    text = record.get("watermarkText")

    text_watermark = WatermarkSpec(
        kind=WatermarkKind.TEXT if text else WatermarkKind.NONE,
        text=text or None,
        opacity=text_opacity,
        rotation_degrees=rotation,
        position=position,
        tiled=tiled
    )
    # The image watermark falls back to the shared watermark opacity
    image_watermark = WatermarkSpec(
        kind=WatermarkKind.IMAGE,
        opacity=number(record, "watermarkImageOpacity", text_opacity),
        rotation_degrees=rotation,
        position=position,
        tiled=tiled,
        scale=number(record, "watermarkImageScale", defaults["watermarkImageScale"]),
        offset_x=number(record, "watermarkImageOffsetX", 0.0),
        offset_y=number(record, "watermarkImageOffsetY", 0.0)
    )

    return JobOptions(
        layout=layout,
        style=style,
        output=output,
        text_watermark=text_watermark,
        image_watermark=image_watermark,
        watermark_image=to_image_input(record.get("watermarkImage"), WATERMARK_IMAGE_NAME)
    )


def to_settings(options: JobOptions) -> Dict[str, Any]:
    """
    Flatten a job option snapshot back into a settings record.

    `from_settings(to_settings(options))` gives back equal options.
    """
    layout, style, output = options.layout, options.style, options.output
    text_wm, image_wm = options.text_watermark, options.image_watermark
    return {
        "axis": layout.axis.value,
        "align": layout.align.value,
        "gap": layout.gap,
        "gapColor": format_color(layout.gap_color),
        "outerPadding": layout.outer_padding,
        "transparentBackground": style.transparent_background,
        "backgroundColor": format_color(style.background_color),
        "format": output.format.value,
        "quality": output.quality,
        "uniformWidth": layout.uniform_width,
        "uniformHeight": layout.uniform_height,
        "maxOutputWidth": layout.max_output_width,
        "maxOutputHeight": layout.max_output_height,
        "borderRadius": style.border_radius,
        "borderWidth": style.border_width,
        "borderColor": format_color(style.border_color),
        "watermarkText": text_wm.text,
        "watermarkOpacity": text_wm.opacity,
        "watermarkRotation": text_wm.rotation_degrees,
        "watermarkPosition": text_wm.position.value,
        "watermarkTiled": text_wm.tiled,
        "watermarkImage": options.watermark_image,
        "watermarkImageScale": image_wm.scale,
        "watermarkImageOpacity": image_wm.opacity,
        "watermarkImageOffsetX": image_wm.offset_x,
        "watermarkImageOffsetY": image_wm.offset_y,
    }

