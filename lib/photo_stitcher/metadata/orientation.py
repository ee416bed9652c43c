"""
EXIF orientation normalization.

Decoded pixels are always stored top-left origin, exactly as the camera
wrote them; the Orientation tag tells a viewer how to turn them upright.
These helpers apply that turn once so every later stage can ignore EXIF.
"""
import logging
import struct
from typing import Optional

import cv2
import numpy as np
import piexif

from photo_stitcher.errors import MetadataParseError
from photo_stitcher.image_utils import decode_image_bytes
from photo_stitcher.metadata.domain import (
    NormalizedImage,
    ORIENTATION_NORMAL,
    ORIENTATION_MIRROR_HORIZONTAL,
    ORIENTATION_ROTATE_180,
    ORIENTATION_MIRROR_VERTICAL,
    ORIENTATION_TRANSPOSE,
    ORIENTATION_ROTATE_90_CW,
    ORIENTATION_TRANSVERSE,
    ORIENTATION_ROTATE_90_CCW,
    VALID_ORIENTATIONS
)

logger = logging.getLogger(__name__)

JPEG_MAGIC = b"\xff\xd8"
TIFF_MAGICS = (b"II", b"MM")

ORIENTATION_TRANSFORMS = {
    ORIENTATION_NORMAL: lambda img: img,
    ORIENTATION_MIRROR_HORIZONTAL: lambda img: cv2.flip(img, 1),
    ORIENTATION_ROTATE_180: lambda img: cv2.rotate(img, cv2.ROTATE_180),
    ORIENTATION_MIRROR_VERTICAL: lambda img: cv2.flip(img, 0),
    ORIENTATION_TRANSPOSE: lambda img: cv2.transpose(img),
    ORIENTATION_ROTATE_90_CW: lambda img: cv2.rotate(img, cv2.ROTATE_90_CLOCKWISE),
    ORIENTATION_TRANSVERSE: lambda img: cv2.flip(cv2.transpose(img), -1),
    ORIENTATION_ROTATE_90_CCW: lambda img: cv2.rotate(img, cv2.ROTATE_90_COUNTERCLOCKWISE),
}


def has_exif_container(raw_bytes: bytes) -> bool:
    """JPEG and TIFF streams are the only ones read for EXIF."""
    return raw_bytes[:2] == JPEG_MAGIC or raw_bytes[:2] in TIFF_MAGICS


def read_exif_orientation(raw_bytes: bytes, name: str = "image") -> Optional[int]:
    """
    Read the EXIF Orientation tag.

    Returns:
        The tag value, or None when the stream carries no orientation

    Raises:
        MetadataParseError: If the EXIF block is present but unreadable
    """
    if not raw_bytes or not has_exif_container(raw_bytes):
        return None
    try:
        exif_dictionary = piexif.load(raw_bytes)
    except (piexif.InvalidImageDataError, ValueError, struct.error, KeyError, IndexError) as e:
        raise MetadataParseError(name, str(e) or type(e).__name__)

    orientation = exif_dictionary.get("0th", {}).get(piexif.ImageIFD.Orientation)
    if orientation is None:
        return None
    try:
        return int(orientation)
    except (TypeError, ValueError):
        raise MetadataParseError(name, f"malformed Orientation value {orientation!r}")


def apply_exif_orientation(image_array: np.ndarray, orientation: int) -> np.ndarray:
    """
    Turn stored pixels upright for an EXIF orientation code (1-8).

    Codes 5-8 include a quarter turn, so width and height swap.
    """
    return ORIENTATION_TRANSFORMS[orientation](image_array)


def normalize_pixels(image_array: np.ndarray, orientation: Optional[int], name: str = "image") -> NormalizedImage:
    """Apply an orientation code to already-decoded pixels."""
    if orientation is None or orientation == ORIENTATION_NORMAL:
        return NormalizedImage.unchanged(image_array)
    if orientation not in VALID_ORIENTATIONS:
        warning = f"Ignoring unknown EXIF orientation {orientation} for '{name}'"
        logger.warning("%s", warning)
        return NormalizedImage.unchanged(image_array, warning)

    logger.debug("Applying EXIF orientation %d to '%s'", orientation, name)
    return NormalizedImage(
        pixels=apply_exif_orientation(image_array, orientation),
        orientation=orientation
    )


def normalize_orientation(raw_bytes: bytes, orientation: Optional[int] = None,
                          name: str = "image") -> NormalizedImage:
    """
    Decode image bytes into upright, top-left-origin BGRA pixels.

    Args:
        raw_bytes: Encoded image bytes
        orientation: EXIF orientation supplied by the caller; read from the bytes when None
        name: Display name used in messages

    Returns:
        The normalized image; unreadable metadata leaves the pixels untouched
        and is reported in its warnings

    Raises:
        ImageDecodeError: If the bytes cannot be decoded
    """
    image_array = decode_image_bytes(raw_bytes, name)

    if orientation is None:
        try:
            orientation = read_exif_orientation(raw_bytes, name)
        except MetadataParseError as e:
            logger.warning("%s; using the image unrotated", e)
            return NormalizedImage.unchanged(image_array, str(e))

    return normalize_pixels(image_array, orientation, name)
