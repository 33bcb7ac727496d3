"""Common utilities for image manipulation.

All functions operate on float32 rasters and accept an optional pre-allocated `out` array of the matching shape, so
that callers processing many same-size images can reuse their buffers.

Authors: Ayush Baid
"""

from typing import Optional

import cv2 as cv
import numpy as np
from scipy import ndimage

from cornerdet.common.image import Image

# CIE luminance weights, for (R, G, B) channels.
CIE_LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)

NORMALIZATION_RANGE = "range"
NORMALIZATION_LEGACY = "legacy"
NORMALIZATION_MODES = (NORMALIZATION_RANGE, NORMALIZATION_LEGACY)


def _allocate_like(height: int, width: int, channels: int = 1, out: Optional[np.ndarray] = None) -> np.ndarray:
    shape = (height, width) if channels == 1 else (height, width, channels)
    if out is None:
        return np.zeros(shape, dtype=np.float32)
    if out.shape != shape or out.dtype != np.float32:
        raise ValueError(f"Output buffer of shape {out.shape} ({out.dtype}) does not match {shape} (float32)")
    return out


def luminance(image: Image, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Extracts the CIE luminance of an image.

    Single-channel images are copied as-is, RGB images are weighted with the CIE coefficients, and the alpha channel
    of RGBA images is ignored.

    Args:
        image: Input grayscale/RGB/RGBA image.
        out: Optional (H, W) float32 buffer to write into.

    Raises:
        ValueError: wrong input dimensions

    Returns:
        (H, W) float32 luminance; `out` if it was provided.
    """
    input_array = image.value_array
    out = _allocate_like(image.height, image.width, out=out)

    if input_array.ndim == 2:
        np.copyto(out, input_array, casting="unsafe")
    elif input_array.ndim == 3 and input_array.shape[2] == 1:
        np.copyto(out, input_array[:, :, 0], casting="unsafe")
    elif input_array.ndim == 3 and input_array.shape[2] in (3, 4):
        np.copyto(out, input_array[:, :, :3].astype(np.float32) @ CIE_LUMINANCE_WEIGHTS)
    else:
        raise ValueError("Input image dimensions are wrong")

    return out


def global_min(array: np.ndarray) -> float:
    """Smallest value of the raster."""
    return float(np.min(array))


def global_max(array: np.ndarray) -> float:
    """Largest value of the raster."""
    return float(np.max(array))


def normalize_min_max(array: np.ndarray, mode: str = NORMALIZATION_RANGE) -> np.ndarray:
    """Rescales a raster in place with respect to its global minimum and maximum.

    With `delta = max - min`, the "range" mode computes `(array - min) / delta`, mapping the values to [0, 1] (all
    zeros when the raster is constant). The "legacy" mode computes `(array - min) * delta`, the historical rescaling
    of this Harris detector, kept for reproducing its responses.

    Args:
        array: float32 raster, modified in place.
        mode: one of NORMALIZATION_MODES.

    Returns:
        The input array, rescaled.
    """
    if mode not in NORMALIZATION_MODES:
        raise ValueError(f"Unknown normalization mode {mode}, expected one of {NORMALIZATION_MODES}")

    min_value = global_min(array)
    delta = global_max(array) - min_value

    array -= min_value
    if mode == NORMALIZATION_LEGACY:
        array *= delta
    elif delta > 0:
        array /= delta

    return array


def gradient_tensor(array: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Computes the per-pixel entries of the structure tensor.

    Gradients are central differences with a [-1, 0, 1] kernel and a replicated border.

    Args:
        array: (H, W) float32 raster.
        out: Optional (H, W, 3) float32 buffer to write into.

    Returns:
        (H, W, 3) float32 array holding Ix^2, Iy^2 and Ix*Iy in channels 0, 1 and 2.
    """
    height, width = array.shape
    out = _allocate_like(height, width, channels=3, out=out)

    grad_x = cv.Sobel(array, cv.CV_32F, 1, 0, ksize=1, borderType=cv.BORDER_REPLICATE)
    grad_y = cv.Sobel(array, cv.CV_32F, 0, 1, ksize=1, borderType=cv.BORDER_REPLICATE)

    np.multiply(grad_x, grad_x, out=out[:, :, 0])
    np.multiply(grad_y, grad_y, out=out[:, :, 1])
    np.multiply(grad_x, grad_y, out=out[:, :, 2])

    return out


def gaussian_blur(array: np.ndarray, sigma: float, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Isotropic Gaussian smoothing, applied independently to every channel.

    Args:
        array: (H, W) or (H, W, C) float32 raster.
        sigma: standard deviation of the Gaussian, in pixels. The kernel size is derived from it.
        out: Optional float32 buffer of the same shape to write into.

    Returns:
        Smoothed raster; `out` if it was provided.
    """
    channels = 1 if array.ndim == 2 else array.shape[2]
    out = _allocate_like(array.shape[0], array.shape[1], channels=channels, out=out)

    blurred = cv.GaussianBlur(array, (0, 0), sigmaX=sigma, sigmaY=sigma, dst=out, borderType=cv.BORDER_REPLICATE)
    # OpenCV writes into a fresh array when the input is not float32
    if blurred is not out:
        np.copyto(out, blurred, casting="unsafe")
    return out


def local_max_filter(array: np.ndarray, window_size: int, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Replaces every pixel by the maximum over the square window centered on it.

    Args:
        array: (H, W) float32 raster.
        window_size: edge length of the window (odd).
        out: Optional (H, W) float32 buffer to write into.

    Returns:
        Filtered raster; `out` if it was provided.
    """
    out = _allocate_like(array.shape[0], array.shape[1], out=out)
    ndimage.maximum_filter(array, size=window_size, mode="nearest", output=out)
    return out


def value_at_rank(array: np.ndarray, rank: int) -> float:
    """Value found at index `rank` once all the values of the raster are sorted in ascending order."""
    return float(np.sort(array, axis=None)[rank])
