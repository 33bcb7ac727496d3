"""Harris corner detector with non-maximal suppression and sub-pixel refinement.

The cornerness of a pixel is computed from the Gaussian-smoothed structure tensor as det / (trace + eps). Corners
are the pixels equal to the maximum of their (2 * radius + 1) window and above a threshold, which is either absolute
or derived from a desired number of points. Their position is refined by fitting a parabola along each axis.

References:
- C. Harris and M. Stephens, "A Combined Corner and Edge Detector", Alvey Vision Conference, 1988.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

import cornerdet.utils.features as feature_utils
import cornerdet.utils.images as image_utils
import cornerdet.utils.logger as logger_utils
from cornerdet.common.image import Image
from cornerdet.common.keypoints import Keypoints
from cornerdet.frontend.detector.detector_base import DetectorBase

logger = logger_utils.get_logger()

DEFAULT_SIGMA = 1.0
DEFAULT_RADIUS = 3
DEFAULT_THRESHOLD = 0.001


@dataclass
class HarrisBuffers:
    """Scratch rasters for one image geometry, reused across images of the same size."""

    luminance: np.ndarray
    gradients: np.ndarray
    gradients_smoothed: np.ndarray
    response: np.ndarray
    response_max: np.ndarray

    @classmethod
    def allocate(cls, height: int, width: int) -> "HarrisBuffers":
        return cls(
            luminance=np.zeros((height, width), dtype=np.float32),
            gradients=np.zeros((height, width, 3), dtype=np.float32),
            gradients_smoothed=np.zeros((height, width, 3), dtype=np.float32),
            response=np.zeros((height, width), dtype=np.float32),
            response_max=np.zeros((height, width), dtype=np.float32),
        )


class HarrisCornerDetector(DetectorBase):
    """Harris corner detector.

    The threshold has two modes:
        1. threshold >= 0: a corner must have a response strictly above it.
        2. threshold < 0: -threshold is the number k of best points wanted, and the absolute threshold is derived
           from the sorted responses of each image. The configured value is left untouched.

    Corners are never reported on the 1-pixel outer frame of the image, as the sub-pixel fit needs all 4 axis-neighbors.

    A detector owns scratch buffers which are mutated in place, so one instance must not be shared between threads.
    """

    def __init__(
        self,
        sigma: float = DEFAULT_SIGMA,
        radius: int = DEFAULT_RADIUS,
        threshold: float = DEFAULT_THRESHOLD,
        normalization: str = image_utils.NORMALIZATION_RANGE,
        max_keypoints: Optional[int] = None,
    ) -> None:
        """Initialize the detector.

        Args:
            sigma: standard deviation of the Gaussian smoothing the structure tensor. Must be > 0.
            radius: half-size of the non-maximal suppression window. Must be >= 1.
            threshold: absolute response threshold if >= 0, or minus the number of best points if < 0.
            normalization: rescaling of the luminance, "range" (to [0, 1]) or "legacy" (multiplied by its range).
            max_keypoints: maximum number of keypoints to return. Defaults to None, for no limit.
        """
        super().__init__(max_keypoints=max_keypoints)

        if normalization not in image_utils.NORMALIZATION_MODES:
            raise ValueError(
                f"Unknown normalization mode {normalization}, expected one of {image_utils.NORMALIZATION_MODES}"
            )
        self.normalization = normalization

        # geometry of the previous image, -1 until the first detection
        self.width = -1
        self.height = -1
        self._buffers: Optional[HarrisBuffers] = None
        self.num_allocations = 0

        self.update(sigma, radius, threshold)

    def __repr__(self) -> str:
        return (
            f"HarrisCornerDetector(sigma={self.sigma}, radius={self.radius}, threshold={self.threshold}, "
            f"normalization={self.normalization}, max_keypoints={self.max_keypoints})"
        )

    def update(
        self, sigma: float = DEFAULT_SIGMA, radius: int = DEFAULT_RADIUS, threshold: float = DEFAULT_THRESHOLD
    ) -> None:
        """Re-configure the detector. Invalid sigma and radius values are replaced by 1.0 and 1.

        Args:
            sigma: standard deviation of the Gaussian smoothing the structure tensor.
            radius: half-size of the non-maximal suppression window.
            threshold: absolute response threshold if >= 0, or minus the number of best points if < 0.
        """
        if sigma > 0.0:
            self.sigma = float(sigma)
        else:
            logger.warning("Invalid sigma %s, using 1.0 instead.", sigma)
            self.sigma = 1.0

        if radius >= 1:
            self.radius = int(radius)
        else:
            logger.warning("Invalid radius %s, using 1 instead.", radius)
            self.radius = 1

        self.threshold = float(threshold)

    @property
    def window_size(self) -> int:
        """Edge length of the non-maximal suppression window."""
        return 2 * self.radius + 1

    @property
    def buffers(self) -> Optional[HarrisBuffers]:
        """Scratch buffers for the geometry of the last image, None before the first detection."""
        return self._buffers

    def _prepare_buffers(self, height: int, width: int) -> HarrisBuffers:
        """Reuses the scratch buffers if the image geometry is unchanged, and reallocates them otherwise."""
        if self._buffers is not None and width == self.width and height == self.height:
            return self._buffers

        if self._buffers is not None:
            logger.info(
                "Image size changed from %dx%d to %dx%d, reallocating buffers.", self.width, self.height, width, height
            )

        self.width = width
        self.height = height
        self._buffers = HarrisBuffers.allocate(height, width)
        self.num_allocations += 1

        return self._buffers

    def compute_response(self, image: Image) -> np.ndarray:
        """Computes the Harris cornerness of every pixel of the image.

        Args:
            image: input image, with 1, 3 (RGB) or 4 (RGBA) channels.

        Returns:
            (H, W) response map. It lives in the detector's buffers and is overwritten by the next call.
        """
        buffers = self._prepare_buffers(image.height, image.width)

        image_utils.luminance(image, out=buffers.luminance)
        image_utils.normalize_min_max(buffers.luminance, mode=self.normalization)

        image_utils.gradient_tensor(buffers.luminance, out=buffers.gradients)
        image_utils.gaussian_blur(buffers.gradients, self.sigma, out=buffers.gradients_smoothed)

        return feature_utils.harris_response(buffers.gradients_smoothed, out=buffers.response)

    def effective_threshold(self, response: np.ndarray) -> float:
        """Absolute threshold to apply on the response map, following the configured threshold mode."""
        if self.threshold >= 0.0:
            return self.threshold

        return feature_utils.derive_top_k_threshold(response, int(-self.threshold))

    def suppress_non_maxima(self, response: np.ndarray, threshold: float) -> Tuple[np.ndarray, np.ndarray]:
        """Finds the pixels which are the maximum of their window and have a response above the threshold.

        Args:
            response: (H, W) response map.
            threshold: absolute threshold.

        Returns:
            Row indices and column indices of the selected pixels, in row-major order.
        """
        height, width = response.shape
        response_max = image_utils.local_max_filter(
            response, self.window_size, out=self._prepare_buffers(height, width).response_max
        )

        is_corner = (response == response_max) & (response > threshold) & feature_utils.border_mask(height, width)
        return np.nonzero(is_corner)

    @staticmethod
    def refine_corners(response: np.ndarray, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
        """Refines the integer corner positions with a parabola fit along each axis.

        Args:
            response: (H, W) response map.
            rows: row indices of the corners, none of them on the image frame.
            cols: column indices of the corners, none of them on the image frame.

        Returns:
            (N, 2) refined (x, y) coordinates.
        """
        center = response[rows, cols]
        x_offsets = feature_utils.refine_subpixel_parabola(center, response[rows, cols - 1], response[rows, cols + 1])
        y_offsets = feature_utils.refine_subpixel_parabola(center, response[rows - 1, cols], response[rows + 1, cols])

        return np.column_stack([cols + x_offsets, rows + y_offsets])

    def detect_with_threshold(self, image: Optional[Image]) -> Tuple[Keypoints, float]:
        """Detect the corners in an image, also reporting the absolute threshold which was applied.

        Args:
            image: input image. A missing image yields no keypoints. If the image has a mask, corners whose rounded
                position falls outside of it are dropped.

        Returns:
            Detected keypoints sorted by descending response, with maximum length of max_keypoints.
            The absolute threshold used for the image (the configured threshold if no image was given).
        """
        if image is None:
            return Keypoints.empty(), self.threshold

        response = self.compute_response(image)
        threshold = self.effective_threshold(response)

        rows, cols = self.suppress_non_maxima(response, threshold)
        candidates = Keypoints(
            coordinates=self.refine_corners(response, rows, cols), responses=response[rows, cols].astype(np.float64)
        )
        if image.mask is not None:
            candidates, _ = candidates.filter_by_mask(image.mask)

        keypoints = self.sort_corners_and_transfer(candidates.coordinates, candidates.responses)
        logger.debug("Detected %d corners with threshold %g.", len(keypoints), threshold)

        return keypoints, threshold

    def detect(self, image: Optional[Image]) -> Keypoints:
        """Detect the corners in an image.

        Args:
            image: input image. A missing image yields no keypoints.

        Returns:
            detected keypoints sorted by descending response, with maximum length of max_keypoints.
        """
        keypoints, _ = self.detect_with_threshold(image)
        return keypoints
