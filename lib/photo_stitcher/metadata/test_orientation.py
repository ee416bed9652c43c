"""
Tests for EXIF orientation normalization.
"""
import io
import struct

import cv2
import numpy as np
import piexif
import pytest

from photo_stitcher.errors import ImageDecodeError, MetadataParseError
from photo_stitcher.metadata.domain import SWAPS_DIMENSIONS
from photo_stitcher.metadata.orientation import (
    normalize_orientation,
    normalize_pixels,
    read_exif_orientation
)

TL, TR, BL, BR = "TL", "TR", "BL", "BR"

# Which stored corner ends up at (top-left, top-right, bottom-left, bottom-right)
EXPECTED_CORNERS = {
    1: (TL, TR, BL, BR),
    2: (TR, TL, BR, BL),
    3: (BR, BL, TR, TL),
    4: (BL, BR, TL, TR),
    5: (TL, BL, TR, BR),
    6: (BL, TL, BR, TR),
    7: (BR, TR, BL, TL),
    8: (TR, BR, TL, BL),
}


def corner_marked(width=6, height=4):
    img = np.full((height, width, 4), (128, 128, 128, 255), dtype=np.uint8)
    img[0, 0] = (0, 0, 255, 255)
    img[0, -1] = (0, 255, 0, 255)
    img[-1, 0] = (255, 0, 0, 255)
    img[-1, -1] = (255, 255, 255, 255)
    return img


def encode_png(pixels):
    ok, buffer = cv2.imencode(".png", pixels)
    assert ok
    return buffer.tobytes()


def corners(img):
    return [tuple(img[0, 0]), tuple(img[0, -1]), tuple(img[-1, 0]), tuple(img[-1, -1])]


def encode_jpeg(pixels):
    ok, buffer = cv2.imencode(".jpg", pixels[:, :, :3], [int(cv2.IMWRITE_JPEG_QUALITY), 95])
    assert ok
    return buffer.tobytes()


def with_exif_orientation(jpeg_bytes, orientation):
    exif_bytes = piexif.dump({"0th": {piexif.ImageIFD.Orientation: orientation}})
    output = io.BytesIO()
    piexif.insert(exif_bytes, jpeg_bytes, output)
    return output.getvalue()


def with_app1(jpeg_bytes, payload):
    segment = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    return jpeg_bytes[:2] + segment + jpeg_bytes[2:]


def half_red_half_blue(width=64, height=32):
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    img[:, :width // 2] = (0, 0, 255, 255)
    img[:, width // 2:] = (255, 0, 0, 255)
    return img


@pytest.mark.parametrize("orientation", sorted(EXPECTED_CORNERS))
def test_orientation_codes_on_corner_markers(orientation):
    source = corner_marked(6, 4)
    stored = dict(zip((TL, TR, BL, BR), corners(source)))

    result = normalize_pixels(source, orientation).pixels

    if orientation in SWAPS_DIMENSIONS:
        assert result.shape[:2] == (6, 4)
    else:
        assert result.shape[:2] == (4, 6)
    assert corners(result) == [stored[c] for c in EXPECTED_CORNERS[orientation]]


def test_unknown_code_is_ignored_with_warning():
    corner_image = corner_marked()
    normalized = normalize_pixels(corner_image, 9, "odd.jpg")
    assert normalized.pixels is corner_image
    assert normalized.warnings
    assert "odd.jpg" in normalized.warnings[0]


def test_png_has_no_exif():
    raw = encode_png(corner_marked())
    assert read_exif_orientation(raw) is None
    normalized = normalize_orientation(raw)
    assert normalized.orientation == 1
    assert corners(normalized.pixels) == corners(corner_marked())


def test_jpeg_orientation_tag_is_applied():
    raw = with_exif_orientation(encode_jpeg(half_red_half_blue()), 6)
    assert read_exif_orientation(raw) == 6

    normalized = normalize_orientation(raw, name="portrait.jpg")
    assert (normalized.width, normalized.height) == (32, 64)
    b, g, r, a = (int(v) for v in normalized.pixels[8, 16])
    assert r > 200 and b < 60
    b, g, r, a = (int(v) for v in normalized.pixels[56, 16])
    assert b > 200 and r < 60


def test_caller_supplied_code_overrides_stream():
    raw = with_exif_orientation(encode_jpeg(half_red_half_blue()), 6)
    normalized = normalize_orientation(raw, orientation=1)
    assert (normalized.width, normalized.height) == (64, 32)


def test_corrupt_exif_is_a_soft_warning():
    corrupt = with_app1(encode_jpeg(half_red_half_blue()), b"Exif\x00\x00MM\x00\x2a\xff\xff\xff\xf0")
    with pytest.raises(MetadataParseError):
        read_exif_orientation(corrupt, "broken.jpg")

    normalized = normalize_orientation(corrupt, name="broken.jpg")
    assert (normalized.width, normalized.height) == (64, 32)
    assert len(normalized.warnings) == 1
    assert "broken.jpg" in normalized.warnings[0]


def test_undecodable_bytes_raise():
    with pytest.raises(ImageDecodeError):
        normalize_orientation(b"definitely not an image", name="junk.bin")
    with pytest.raises(ImageDecodeError):
        normalize_orientation(b"", name="empty.png")
