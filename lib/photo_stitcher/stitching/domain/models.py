"""
Domain models for stitching layout, styling and output.
"""
import logging
import uuid
from enum import Enum
from typing import Optional, Tuple, List, Any

import attr
import numpy as np

from photo_stitcher import config
from photo_stitcher.errors import InvalidOptionError
from photo_stitcher.image_utils import parse_color

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]


def _normalize_name(value: Any) -> str:
    return str(value).strip().lower().replace("-", "").replace("_", "").replace(" ", "")


class _ParsableEnum(str, Enum):
    """String enum that accepts its value, its name or a registered alias."""

    @classmethod
    def parse(cls, value: Any, option: str = ""):
        if isinstance(value, cls):
            return value
        key = _normalize_name(value)
        for member in cls:
            if key in (_normalize_name(member.value), _normalize_name(member.name)):
                return member
        aliases = getattr(cls, "_aliases", lambda: {})()
        if key in aliases:
            return cls(aliases[key])
        raise InvalidOptionError(option or cls.__name__, value)


class Axis(_ParsableEnum):
    STACKED = "stacked"
    SIDE_BY_SIDE = "side_by_side"

    @staticmethod
    def _aliases():
        return {"vertical": "stacked", "horizontal": "side_by_side"}


class Align(_ParsableEnum):
    START = "start"
    CENTER = "center"
    END = "end"


class WatermarkKind(_ParsableEnum):
    NONE = "none"
    TEXT = "text"
    IMAGE = "image"


class WatermarkPosition(_ParsableEnum):
    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"
    CENTER = "center"


class OutputFormat(_ParsableEnum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @staticmethod
    def _aliases():
        return {"jpg": "jpeg"}

    @property
    def mime_type(self) -> str:
        return config.OUTPUT_MIME_TYPES[self.value]

    @property
    def extension(self) -> str:
        return config.OUTPUT_FILE_EXTENSIONS[self.value]


def _clamp_non_negative(value) -> int:
    value = int(round(value or 0))
    if value < 0:
        logger.warning("Clamping negative pixel value %s to 0", value)
        return 0
    return value


def _clamp_optional_positive(value) -> Optional[int]:
    if value is None:
        return None
    value = int(round(value))
    if value < 1:
        logger.warning("Clamping pixel bound %s to 1", value)
        return 1
    return value


def _clamp_unit(value) -> float:
    value = float(value)
    if value < 0.0 or value > 1.0:
        clamped = min(1.0, max(0.0, value))
        logger.warning("Clamping %s into [0, 1] as %s", value, clamped)
        return clamped
    return value


@attr.s(frozen=True)
class Dimension:
    """Represents image dimensions."""
    width: int = attr.ib()
    height: int = attr.ib()


@attr.s(frozen=True)
class Rect:
    """Axis-aligned rectangle in content-area coordinates."""
    x: int = attr.ib()
    y: int = attr.ib()
    width: int = attr.ib()
    height: int = attr.ib()

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@attr.s(frozen=True)
class SourceImage:
    """A decoded, orientation-normalized source image (BGRA pixels)."""
    display_name: str = attr.ib()
    pixels: np.ndarray = attr.ib(eq=False, repr=False)
    id: str = attr.ib(factory=lambda: uuid.uuid4().hex)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def dimension(self) -> Dimension:
        return Dimension(self.width, self.height)


@attr.s(frozen=True)
class LayoutOptions:
    """Options that drive the layout planner."""
    axis: Axis = attr.ib(default=Axis.STACKED, converter=Axis.parse)
    align: Align = attr.ib(default=Align.CENTER, converter=Align.parse)
    gap: int = attr.ib(default=0, converter=_clamp_non_negative)
    gap_color: RGBA = attr.ib(default=config.DEFAULT_GAP_COLOR, converter=parse_color)
    outer_padding: int = attr.ib(default=0, converter=_clamp_non_negative)
    uniform_width: Optional[int] = attr.ib(default=None, converter=_clamp_optional_positive)
    uniform_height: Optional[int] = attr.ib(default=None, converter=_clamp_optional_positive)
    max_output_width: Optional[int] = attr.ib(default=None, converter=_clamp_optional_positive)
    max_output_height: Optional[int] = attr.ib(default=None, converter=_clamp_optional_positive)


@attr.s(frozen=True)
class StyleOptions:
    """Background, corner and border styling of the output canvas."""
    background_color: RGBA = attr.ib(default=config.DEFAULT_BACKGROUND_COLOR, converter=parse_color)
    transparent_background: bool = attr.ib(default=False, converter=bool)
    border_radius: int = attr.ib(default=0, converter=_clamp_non_negative)
    border_width: int = attr.ib(default=0, converter=_clamp_non_negative)
    border_color: RGBA = attr.ib(default=config.DEFAULT_BORDER_COLOR, converter=parse_color)


@attr.s(frozen=True)
class WatermarkSpec:
    """A text or image watermark overlay."""
    kind: WatermarkKind = attr.ib(default=WatermarkKind.NONE, converter=WatermarkKind.parse)
    text: Optional[str] = attr.ib(default=None)
    image_pixels: Optional[np.ndarray] = attr.ib(default=None, eq=False, repr=False)
    opacity: float = attr.ib(default=config.DEFAULT_WATERMARK_OPACITY, converter=_clamp_unit)
    rotation_degrees: float = attr.ib(default=config.DEFAULT_WATERMARK_ROTATION_DEG, converter=float)
    position: WatermarkPosition = attr.ib(
        default=WatermarkPosition.BOTTOM_RIGHT, converter=WatermarkPosition.parse)
    tiled: bool = attr.ib(default=False, converter=bool)
    scale: float = attr.ib(default=config.DEFAULT_WATERMARK_IMAGE_SCALE, converter=float)
    offset_x: float = attr.ib(default=0.0, converter=float)
    offset_y: float = attr.ib(default=0.0, converter=float)
    margin: int = attr.ib(default=config.WATERMARK_MARGIN_PX, converter=_clamp_non_negative)
    font_height: int = attr.ib(default=config.WATERMARK_FONT_HEIGHT_PX, converter=int)
    color: RGBA = attr.ib(default=config.WATERMARK_TEXT_COLOR, converter=parse_color)

    @property
    def is_active(self) -> bool:
        if self.kind == WatermarkKind.TEXT:
            return bool(self.text)
        if self.kind == WatermarkKind.IMAGE:
            return self.image_pixels is not None and self.image_pixels.size > 0
        return False

    @classmethod
    def none(cls) -> 'WatermarkSpec':
        return cls(kind=WatermarkKind.NONE)


@attr.s(frozen=True)
class OutputOptions:
    """Encoding format and quality of the final image."""
    format: OutputFormat = attr.ib(default=OutputFormat.PNG, converter=OutputFormat.parse)
    quality: float = attr.ib(default=config.DEFAULT_OUTPUT_QUALITY, converter=_clamp_unit)

    @property
    def mime_type(self) -> str:
        return self.format.mime_type


@attr.s(frozen=True)
class SizedImage:
    """Target size of one source image after the uniform-size constraint."""
    index: int = attr.ib()
    width: int = attr.ib()
    height: int = attr.ib()
    target_width: int = attr.ib()
    target_height: int = attr.ib()


@attr.s(frozen=True)
class Placement:
    """Final draw rectangle of one image, with the gap band drawn before it."""
    index: int = attr.ib()
    x: int = attr.ib()
    y: int = attr.ib()
    draw_width: int = attr.ib()
    draw_height: int = attr.ib()
    gap_band: Optional[Rect] = attr.ib(default=None)

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.draw_width, self.draw_height)


@attr.s(frozen=True)
class LayoutPlan:
    """Exact pixel placement of every image in the content area."""
    raw_width: int = attr.ib()
    raw_height: int = attr.ib()
    final_content_width: int = attr.ib()
    final_content_height: int = attr.ib()
    global_scale: float = attr.ib()
    scaled_gap: int = attr.ib()
    sized_images: Tuple[SizedImage, ...] = attr.ib(converter=tuple)
    placements: Tuple[Placement, ...] = attr.ib(converter=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.placements

    @classmethod
    def create_empty(cls) -> 'LayoutPlan':
        """Create an empty layout plan."""
        return cls(
            raw_width=0,
            raw_height=0,
            final_content_width=0,
            final_content_height=0,
            global_scale=1.0,
            scaled_gap=0,
            sized_images=(),
            placements=()
        )


@attr.s(frozen=True)
class EncodedImage:
    """Encoded output bytes with their MIME type."""
    data: bytes = attr.ib(repr=False)
    mime_type: str = attr.ib()
    extension: str = attr.ib()
    width: int = attr.ib()
    height: int = attr.ib()

    @property
    def suggested_filename(self) -> str:
        return f"{config.OUTPUT_BASE_FILENAME}{self.extension}"
