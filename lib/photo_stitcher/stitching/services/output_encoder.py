"""
Service for encoding the finished canvas into PNG, JPEG or WEBP bytes.
"""
import logging

import cv2
import numpy as np

from photo_stitcher.errors import StitchError
from photo_stitcher.stitching.domain.models import EncodedImage, OutputFormat, OutputOptions

logger = logging.getLogger(__name__)


def flatten_onto_black(canvas: np.ndarray) -> np.ndarray:
    """Drop the alpha channel by compositing over black, as a browser canvas does for JPEG."""
    alpha = canvas[:, :, 3:4].astype(np.float32) / 255.0
    return np.clip(np.rint(canvas[:, :, :3].astype(np.float32) * alpha), 0, 255).astype(np.uint8)


def get_encode_params(output: OutputOptions) -> list:
    """OpenCV encoder parameters; quality only applies to lossy formats."""
    quality = int(round(output.quality * 100))
    if output.format == OutputFormat.JPEG:
        return [int(cv2.IMWRITE_JPEG_QUALITY), min(100, max(0, quality))]
    if output.format == OutputFormat.WEBP:
        return [int(cv2.IMWRITE_WEBP_QUALITY), min(100, max(1, quality))]
    return []


def encode_canvas(canvas: np.ndarray, output: OutputOptions) -> EncodedImage:
    """
    Encode a BGRA canvas.

    Args:
        canvas: The finished canvas
        output: Output format and quality

    Returns:
        The encoded bytes with their MIME type

    Raises:
        StitchError: If the encoder fails
    """
    image = canvas
    if output.format == OutputFormat.JPEG:
        image = flatten_onto_black(canvas)

    try:
        ok, buffer = cv2.imencode(output.format.extension, image, get_encode_params(output))
    except cv2.error as e:
        raise StitchError(f"Failed to encode {output.format.value}: {e}", code="ENCODE_ERROR")
    if not ok:
        raise StitchError(f"cv2.imencode for {output.format.value} returned False.", code="ENCODE_ERROR")

    data = buffer.tobytes()
    logger.debug("Encoded %dx%d canvas as %s (%d bytes)",
                 canvas.shape[1], canvas.shape[0], output.mime_type, len(data))
    return EncodedImage(
        data=data,
        mime_type=output.mime_type,
        extension=output.format.extension,
        width=int(canvas.shape[1]),
        height=int(canvas.shape[0])
    )
