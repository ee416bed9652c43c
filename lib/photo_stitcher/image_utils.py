import logging
from typing import Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from photo_stitcher.errors import ImageDecodeError, InvalidOptionError

logger = logging.getLogger(__name__)

ColorValue = Union[str, Sequence[int]]


def parse_color(value: ColorValue) -> Tuple[int, int, int, int]:
    """Parse '#rgb', '#rrggbb', '#rrggbbaa' or an RGB/RGBA sequence into an RGBA tuple."""
    if isinstance(value, str):
        hex_digits = value.strip().lstrip("#")
        if len(hex_digits) in (3, 4):
            hex_digits = "".join(ch * 2 for ch in hex_digits)
        if len(hex_digits) == 6:
            hex_digits += "ff"
        if len(hex_digits) != 8:
            raise InvalidOptionError("color", value)
        try:
            return tuple(int(hex_digits[i:i + 2], 16) for i in range(0, 8, 2))
        except ValueError:
            raise InvalidOptionError("color", value)

    components = [int(c) for c in value]
    if len(components) == 3:
        components.append(255)
    if len(components) != 4:
        raise InvalidOptionError("color", value)
    return tuple(min(255, max(0, c)) for c in components)


def format_color(rgba: Sequence[int]) -> str:
    """Format an RGBA tuple as '#rrggbb', or '#rrggbbaa' when not opaque."""
    r, g, b, a = rgba
    if a == 255:
        return f"#{r:02x}{g:02x}{b:02x}"
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"


def rgba_to_bgra(rgba: Sequence[int]) -> Tuple[int, int, int, int]:
    r, g, b, a = rgba
    return (b, g, r, a)


def convert_to_bgra(image_array: np.ndarray) -> Optional[np.ndarray]:
    if image_array is None or image_array.size == 0:
        return None

    if image_array.dtype == np.uint16:  # 16-bit PNG / TIFF
        image_array = (image_array // 257).astype(np.uint8)
    elif image_array.dtype != np.uint8:
        image_array = np.clip(image_array, 0, 255).astype(np.uint8)

    if image_array.ndim == 2:  # Grayscale
        return cv2.cvtColor(image_array, cv2.COLOR_GRAY2BGRA)
    if image_array.ndim == 3 and image_array.shape[2] == 1:
        return cv2.cvtColor(image_array[:, :, 0], cv2.COLOR_GRAY2BGRA)
    if image_array.ndim == 3 and image_array.shape[2] == 3:  # BGR
        return cv2.cvtColor(image_array, cv2.COLOR_BGR2BGRA)
    if image_array.ndim == 3 and image_array.shape[2] == 4:  # BGRA
        return image_array

    logger.warning("Image has unsupported shape %s. Cannot convert to BGRA.", image_array.shape)
    return None


def decode_image_bytes(raw_bytes: bytes, name: str = "image") -> np.ndarray:
    """Decode encoded image bytes into a BGRA array, without applying EXIF orientation."""
    if not raw_bytes:
        raise ImageDecodeError(name, "no image data")

    buffer = np.frombuffer(raw_bytes, dtype=np.uint8)
    try:
        # IMREAD_UNCHANGED keeps alpha and ignores the EXIF orientation tag
        decoded = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageDecodeError(name, str(e))
    if decoded is None:
        raise ImageDecodeError(name)

    bgra = convert_to_bgra(decoded)
    if bgra is None:
        raise ImageDecodeError(name, f"unsupported pixel layout {decoded.shape}")
    return bgra


def resize_image(image_to_resize: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize to an exact size, using area interpolation when shrinking."""
    src_h, src_w = image_to_resize.shape[:2]
    if (src_w, src_h) == (width, height):
        return image_to_resize
    if width <= 0 or height <= 0:
        raise ValueError(f"Resize to invalid dimensions ({width}x{height}).")

    shrinking = width * height < src_w * src_h
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(image_to_resize, (width, height), interpolation=interpolation)


def _source_over(target_roi: np.ndarray, src_bgr: np.ndarray, src_alpha: np.ndarray) -> None:
    """Composite src over target_roi in place. src_alpha is a float array in [0, 1]."""
    src_alpha = src_alpha[:, :, np.newaxis]
    dst_alpha = target_roi[:, :, 3:4].astype(np.float32) / 255.0
    out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)

    weighted = src_bgr.astype(np.float32) * src_alpha + \
        target_roi[:, :, :3].astype(np.float32) * dst_alpha * (1.0 - src_alpha)
    out_bgr = np.divide(weighted, out_alpha, out=np.zeros_like(weighted), where=out_alpha > 0)

    target_roi[:, :, :3] = np.clip(np.rint(out_bgr), 0, 255).astype(np.uint8)
    target_roi[:, :, 3:4] = np.clip(np.rint(out_alpha * 255.0), 0, 255).astype(np.uint8)


def paste_image_onto_canvas(canvas_array, image_to_paste, top_left_x, top_left_y,
                            opacity=1.0, clip_mask=None):
    """
    Draw a BGRA image onto a BGRA canvas (source-over), clipped to the canvas.

    Args:
        canvas_array: Target canvas, modified in place
        image_to_paste: BGRA image
        top_left_x: Destination x of the image's top-left pixel
        top_left_y: Destination y of the image's top-left pixel
        opacity: Global alpha multiplied into the image alpha
        clip_mask: Optional boolean mask of canvas shape; pixels outside it are left untouched
    """
    if image_to_paste is None or image_to_paste.size == 0 or canvas_array is None:
        return

    img_h, img_w = image_to_paste.shape[:2]
    canvas_h, canvas_w = canvas_array.shape[:2]

    y1_canvas, y2_canvas = top_left_y, top_left_y + img_h
    x1_canvas, x2_canvas = top_left_x, top_left_x + img_w

    if x1_canvas >= canvas_w or y1_canvas >= canvas_h or x2_canvas <= 0 or y2_canvas <= 0:
        return

    roi_y1_c = max(0, y1_canvas); roi_y2_c = min(canvas_h, y2_canvas)
    roi_x1_c = max(0, x1_canvas); roi_x2_c = min(canvas_w, x2_canvas)
    src_y1 = roi_y1_c - y1_canvas; src_y2 = src_y1 + (roi_y2_c - roi_y1_c)
    src_x1 = roi_x1_c - x1_canvas; src_x2 = src_x1 + (roi_x2_c - roi_x1_c)

    img_cropped = image_to_paste[src_y1:src_y2, src_x1:src_x2]
    target_roi = canvas_array[roi_y1_c:roi_y2_c, roi_x1_c:roi_x2_c]

    alpha = img_cropped[:, :, 3].astype(np.float32) / 255.0 * float(opacity)
    if clip_mask is not None:
        alpha = alpha * clip_mask[roi_y1_c:roi_y2_c, roi_x1_c:roi_x2_c]

    if clip_mask is None and opacity >= 1.0 and np.all(img_cropped[:, :, 3] == 255):
        target_roi[:] = img_cropped  # Opaque fast path
        return
    _source_over(target_roi, img_cropped[:, :, :3], alpha)


def fill_region(canvas_array, coverage_mask, bgra_color):
    """Composite a solid BGRA color over every canvas pixel where coverage_mask is set."""
    if canvas_array is None or coverage_mask is None or not np.any(coverage_mask):
        return

    rows = np.any(coverage_mask, axis=1)
    cols = np.any(coverage_mask, axis=0)
    y1, y2 = np.where(rows)[0][[0, -1]]
    x1, x2 = np.where(cols)[0][[0, -1]]
    target_roi = canvas_array[y1:y2 + 1, x1:x2 + 1]
    coverage = coverage_mask[y1:y2 + 1, x1:x2 + 1].astype(np.float32)

    color_patch = np.empty(target_roi.shape[:2] + (3,), dtype=np.uint8)
    color_patch[:] = bgra_color[:3]
    _source_over(target_roi, color_patch, coverage * (bgra_color[3] / 255.0))
