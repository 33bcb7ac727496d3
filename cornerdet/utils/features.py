"""Numerical building blocks of corner detection: response measure, thresholds and sub-pixel refinement."""

from typing import Optional

import numpy as np

import cornerdet.utils.images as image_utils

# Guards the division of the Harris measure on flat regions.
HARRIS_EPS = 2.2204e-16

# Distance between two samples of the sub-pixel parabola fit, in pixels.
SUBPIXEL_SAMPLE_SPACING = 1.0


def harris_response(tensor: np.ndarray, eps: float = HARRIS_EPS, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Computes the Harris cornerness of every pixel from its (smoothed) structure tensor.

    R = (Ix^2 * Iy^2 - Ixy^2) / (Ix^2 + Iy^2 + eps), i.e. det / (trace + eps).

    Args:
        tensor: (H, W, 3) array holding Ix^2, Iy^2 and Ixy.
        eps: added to the denominator, keeps uniform regions at R = 0.
        out: Optional (H, W) float32 buffer to write into.

    Returns:
        (H, W) response map.
    """
    x2 = tensor[:, :, 0]
    y2 = tensor[:, :, 1]
    xy = tensor[:, :, 2]

    if out is None:
        out = np.zeros(x2.shape, dtype=np.float32)

    np.divide(x2 * y2 - xy * xy, x2 + y2 + np.float32(eps), out=out)
    return out


def derive_top_k_threshold(response: np.ndarray, k: int) -> float:
    """Derives the absolute threshold above which (at most) the k best responses lie.

    The returned value is the one found at ascending rank n - 1 - k among the n responses. When k >= n, every
    response qualifies and the threshold is -inf.

    Args:
        response: response map.
        k: number of best points wanted.

    Returns:
        Absolute threshold, to be compared with a strict ">".
    """
    num_values = response.size
    if k >= num_values:
        return -np.inf
    return image_utils.value_at_rank(response, num_values - 1 - k)


def border_mask(height: int, width: int) -> np.ndarray:
    """Boolean (H, W) mask, False on the 1-pixel outer frame of the image.

    Pixels on the frame lack one of their 4 axis-neighbors, so they cannot be refined.
    """
    mask = np.zeros((height, width), dtype=bool)
    mask[1:-1, 1:-1] = True
    return mask


def refine_subpixel_parabola(
    center: np.ndarray, minus: np.ndarray, plus: np.ndarray, spacing: float = SUBPIXEL_SAMPLE_SPACING
) -> np.ndarray:
    """Fits a 1D parabola through three equally spaced samples and returns the offset of its extremum.

    With c = R(0), a = (R(-1) + R(+1)) / 2 - c and b = a + c - R(-1), the extremum lies at -spacing * b / (2a). The
    fit is degenerate when a == 0 (the three samples are collinear), in which case the offset is 0.

    Args:
        center: response at the sample, shape N.
        minus: response at the previous neighbor along the axis, shape N.
        plus: response at the next neighbor along the axis, shape N.
        spacing: distance between two samples.

    Returns:
        Offsets along the axis, of shape N. Bounded by spacing / 2 in magnitude when center is a local maximum.
    """
    center = np.asarray(center, dtype=np.float64)
    minus = np.asarray(minus, dtype=np.float64)
    plus = np.asarray(plus, dtype=np.float64)

    a = (minus + plus) / 2.0 - center
    b = a + center - minus

    with np.errstate(divide="ignore", invalid="ignore"):
        offsets = -spacing * b / (2.0 * a)

    return np.where((a != 0) & np.isfinite(offsets), offsets, 0.0)
