import logging
from typing import List, Sequence, Tuple

from photo_stitcher.errors import ImageDecodeError
from photo_stitcher.image_utils import convert_to_bgra
from photo_stitcher.metadata.orientation import normalize_orientation, normalize_pixels
from photo_stitcher.stitching.domain.models import SourceImage
from photo_stitcher.workflow.domain.models import ImageInput

logger = logging.getLogger(__name__)


class ImageLoader:
    """Service for turning ingested images into upright BGRA source images"""

    def load_image(self, image_input: ImageInput) -> Tuple[SourceImage, List[str]]:
        """Decode and orientation-normalize one image; returns it with any advisory warnings"""
        name = image_input.display_name
        if image_input.raw_bytes is not None:
            normalized = normalize_orientation(image_input.raw_bytes, image_input.exif_orientation, name)
        else:
            pixels = convert_to_bgra(image_input.pixels)
            if pixels is None:
                raise ImageDecodeError(name, "empty or unsupported pixel array")
            normalized = normalize_pixels(pixels, image_input.exif_orientation, name)

        logger.debug("Loaded '%s' as %dx%d", name, normalized.width, normalized.height)
        return SourceImage(display_name=name, pixels=normalized.pixels), list(normalized.warnings)

    def load_images(self, image_inputs: Sequence[ImageInput], cancel_check=None) -> Tuple[List[SourceImage], List[str]]:
        """Load every image in order; the first decode failure aborts the whole batch"""
        images = []
        warnings = []
        for image_input in image_inputs:
            if cancel_check is not None and cancel_check():
                break
            image, image_warnings = self.load_image(image_input)
            images.append(image)
            warnings.extend(image_warnings)
        return images, warnings
