"""Base class for the corner detectors.

Authors: Ayush Baid
"""
import abc
from typing import List, Optional, Tuple

import numpy as np

from cornerdet.common.image import Image
from cornerdet.common.keypoints import Keypoints

Corner = Tuple[float, float, float]


class DetectorBase(metaclass=abc.ABCMeta):
    """Base class for all the corner detectors."""

    def __init__(self, max_keypoints: Optional[int] = None) -> None:
        """Initialize the detector.

        Args:
            max_keypoints: Maximum number of keypoints to return, best responses first. Defaults to None, for no limit.
        """
        self.max_keypoints = max_keypoints

    @abc.abstractmethod
    def update(self, **kwargs) -> None:
        """Re-configure the detector parameters."""

    @abc.abstractmethod
    def detect(self, image: Optional[Image]) -> Keypoints:
        """Detect the corners in an image.

        Args:
            image: input image. A missing image yields no keypoints.

        Returns:
            detected keypoints sorted by descending response, with maximum length of max_keypoints.
        """

    def execute(self, image: Optional[Image], corners: Optional[List[Corner]]) -> None:
        """Detect the corners in an image, and write them into a caller-owned list.

        The list is cleared, then filled with (x, y, quality) tuples sorted by descending quality. Nothing happens
        if either the image or the list is missing.

        Args:
            image: input image.
            corners: output list.
        """
        if image is None or corners is None:
            return

        keypoints = self.detect(image)

        corners.clear()
        corners.extend(keypoints.as_tuples())

    def sort_corners_and_transfer(self, coordinates: np.ndarray, responses: np.ndarray) -> Keypoints:
        """Ranks the quality-scored candidates into the final keypoints.

        Candidates are sorted by descending response; ties keep their input order. The result is truncated to
        max_keypoints if it is set.

        Args:
            coordinates: (N, 2) candidate coordinates.
            responses: N candidate responses.

        Returns:
            Sorted keypoints.
        """
        keypoints, _ = Keypoints(coordinates=coordinates, responses=responses).sort_by_response()

        if self.max_keypoints is not None and len(keypoints) > self.max_keypoints:
            keypoints = keypoints.extract_indices(np.arange(self.max_keypoints))

        return keypoints
