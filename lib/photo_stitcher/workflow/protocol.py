"""
Parsing of raw requester-to-executor messages.

A submission looks like `{id, images, options}` and a cancellation like
`{id, type: "cancel"}`; see `settings` for the `options` record.
"""
from typing import Any, Mapping, Union

from photo_stitcher.errors import InvalidOptionError
from photo_stitcher.settings import from_settings, to_image_input
from photo_stitcher.workflow.domain.models import CancelRequest, JobRequest, new_job_id


def parse_request(data: Mapping[str, Any]) -> Union[JobRequest, CancelRequest]:
    if data.get("type") == "cancel":
        if not data.get("id"):
            raise InvalidOptionError("id", data.get("id"))
        return CancelRequest(str(data["id"]))

    images = []
    for index, value in enumerate(data.get("images") or []):
        image_input = to_image_input(value, f"image-{index + 1}")
        if image_input is None:
            raise InvalidOptionError(f"images[{index}]", value)
        images.append(image_input)

    return JobRequest(
        job_id=str(data.get("id") or new_job_id()),
        images=images,
        options=from_settings(data.get("options") or {})
    )
