"""Class for holding an image and its associated data.

Authors: Ayush Baid
"""

from typing import NamedTuple, Optional, Tuple

import numpy as np


class Image(NamedTuple):
    """Holds the image raster, an optional validity mask, and the original image file name.

    The raster is either (H, W) for single-channel images or (H, W, C) for multi-channel images.
    """

    value_array: np.ndarray
    file_name: Optional[str] = None
    mask: Optional[np.ndarray] = None

    @property
    def height(self) -> int:
        """The height of the image (i.e. number of pixels in the vertical direction)."""
        return self.value_array.shape[0]

    @property
    def width(self) -> int:
        """The width of the image (i.e. number of pixels in the horizontal direction)."""
        return self.value_array.shape[1]

    @property
    def channels(self) -> int:
        """Number of values stored per pixel."""
        if self.value_array.ndim == 2:
            return 1
        return self.value_array.shape[2]

    @property
    def shape(self) -> Tuple[int, ...]:
        """The shape of the image, (H, W) or (H, W, C)."""
        return self.value_array.shape
