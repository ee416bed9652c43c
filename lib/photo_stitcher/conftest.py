import cv2
import numpy as np
import pytest

from photo_stitcher.stitching.domain.models import SourceImage
from photo_stitcher.workflow.domain.models import ImageInput


def solid_bgra(width, height, bgra=(0, 0, 255, 255)):
    return np.full((height, width, 4), bgra, dtype=np.uint8)


def encode_png(pixels):
    ok, buffer = cv2.imencode(".png", pixels)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def make_image():
    return solid_bgra


@pytest.fixture
def make_source():
    def factory(width, height, bgra=(0, 0, 255, 255), name="image"):
        return SourceImage(display_name=name, pixels=solid_bgra(width, height, bgra))
    return factory


@pytest.fixture
def make_input():
    def factory(width, height, bgra=(0, 0, 255, 255), name="image.png"):
        return ImageInput(display_name=name, raw_bytes=encode_png(solid_bgra(width, height, bgra)))
    return factory
