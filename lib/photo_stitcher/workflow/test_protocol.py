"""
Tests for parsing raw requester messages.
"""
import numpy as np
import pytest

from photo_stitcher.errors import InvalidOptionError
from photo_stitcher.stitching.domain.models import Axis, OutputFormat
from photo_stitcher.workflow.domain.models import CancelRequest, JobRequest
from photo_stitcher.workflow.protocol import parse_request


def test_parse_cancel():
    message = parse_request({"id": "job-1", "type": "cancel"})
    assert message == CancelRequest("job-1")
    assert message.to_dict() == {"id": "job-1", "type": "cancel"}


def test_cancel_without_id_is_invalid():
    with pytest.raises(InvalidOptionError):
        parse_request({"type": "cancel"})


def test_parse_submission():
    pixels = np.zeros((4, 4, 3), dtype=np.uint8)
    message = parse_request({
        "id": "job-2",
        "images": [
            b"\x89PNG...",
            pixels,
            {"displayName": "a.jpg", "rawBytes": b"\xff\xd8", "exifOrientationCode": 6},
        ],
        "options": {"axis": "horizontal", "format": "webp", "maxOutputWidth": ""},
    })

    assert isinstance(message, JobRequest)
    assert message.job_id == "job-2"
    assert [i.display_name for i in message.images] == ["image-1", "image-2", "a.jpg"]
    assert message.images[1].pixels is pixels
    assert message.images[2].exif_orientation == 6
    assert message.options.layout.axis == Axis.SIDE_BY_SIDE
    assert message.options.layout.max_output_width is None
    assert message.options.output.format == OutputFormat.WEBP


def test_submission_without_id_gets_one():
    message = parse_request({"images": []})
    assert message.job_id
    assert message.images == ()


def test_missing_image_is_invalid():
    with pytest.raises(InvalidOptionError):
        parse_request({"id": "job-3", "images": [None]})
