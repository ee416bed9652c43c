from __future__ import annotations
import attr
import numpy as np
from typing import Optional, Tuple

# EXIF Orientation tag values
ORIENTATION_NORMAL = 1
ORIENTATION_MIRROR_HORIZONTAL = 2
ORIENTATION_ROTATE_180 = 3
ORIENTATION_MIRROR_VERTICAL = 4
ORIENTATION_TRANSPOSE = 5
ORIENTATION_ROTATE_90_CW = 6
ORIENTATION_TRANSVERSE = 7
ORIENTATION_ROTATE_90_CCW = 8

VALID_ORIENTATIONS = range(1, 9)
SWAPS_DIMENSIONS = frozenset({
    ORIENTATION_TRANSPOSE,
    ORIENTATION_ROTATE_90_CW,
    ORIENTATION_TRANSVERSE,
    ORIENTATION_ROTATE_90_CCW
})


@attr.s(frozen=True)
class NormalizedImage:
    pixels: np.ndarray = attr.ib(eq=False, repr=False)
    orientation: int = attr.ib(default=ORIENTATION_NORMAL)
    warnings: Tuple[str, ...] = attr.ib(factory=tuple, converter=tuple)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def unchanged(cls, pixels: np.ndarray, warning: Optional[str] = None) -> NormalizedImage:
        return cls(
            pixels=pixels,
            orientation=ORIENTATION_NORMAL,
            warnings=(warning,) if warning else ()
        )
