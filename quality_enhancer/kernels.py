"""
Quality Enhancer - Shared Kernels
=================================
Small numerical building blocks reused across stages: luminance, channel
quantization, the box blur and the 3×3 sharpen convolution.
"""

from typing import Tuple

import numpy as np
from scipy.ndimage import convolve, uniform_filter


LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """
    Rec.601 luminance of an RGB array.

    Args:
        rgb: Array (..., 3) in any scale

    Returns:
        Luminance (...) in the same scale as the input
    """
    return np.dot(rgb.astype(np.float64), LUMA_WEIGHTS)


def to_channels(values: np.ndarray) -> np.ndarray:
    """Round to nearest, clamp to [0, 255] and quantize to uint8."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def radial_distance(width: int, height: int) -> Tuple[np.ndarray, float]:
    """
    Distance of every pixel from the image center.

    The center is (width/2, height/2) in pixel coordinates, so on even-sized
    images one pixel sits exactly on it.

    Returns:
        Tuple of (distance map (H, W), maximum distance to a corner)
    """
    center_x = width * 0.5
    center_y = height * 0.5
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    distance = np.sqrt((xs - center_x) ** 2 + (ys - center_y) ** 2)
    max_distance = float(np.sqrt(center_x ** 2 + center_y ** 2))
    return distance, max_distance


# ==============================================================================
# Box Blur (Gaussian approximation)
# ==============================================================================

def box_blur(channels: np.ndarray, radius: int) -> np.ndarray:
    """
    Uniform box blur used in place of a true Gaussian.

    Every pixel at least `radius` away from the border becomes the unweighted
    mean of its (2·radius+1)² neighborhood. Border pixels keep their values.

    Args:
        channels: Array (H, W, C) of any numeric dtype
        radius: Neighborhood radius in pixels

    Returns:
        Blurred float64 array (H, W, C)
    """
    src = channels.astype(np.float64)
    result = src.copy()
    radius = int(radius)
    height, width = src.shape[:2]

    if radius <= 0 or height <= 2 * radius or width <= 2 * radius:
        return result

    size = 2 * radius + 1
    blurred = uniform_filter(src, size=(size, size, 1), mode='nearest')
    interior = (slice(radius, height - radius), slice(radius, width - radius))
    result[interior] = blurred[interior]
    return result


# ==============================================================================
# Sharpen
# ==============================================================================

def sharpen_kernel(strength: float) -> np.ndarray:
    """3×3 cross-shaped sharpening kernel."""
    s = float(strength)
    return np.array([
        [0.0, -s, 0.0],
        [-s, 1.0 + 4.0 * s, -s],
        [0.0, -s, 0.0],
    ], dtype=np.float64)


def sharpen(pixels: np.ndarray, strength: float) -> None:
    """
    Sharpen RGB channels of an RGBA array in place.

    Only interior pixels are rewritten; the one-pixel border and the alpha
    channel pass through unchanged.

    Args:
        pixels: RGBA array (H, W, 4) uint8, modified in place
        strength: Weight of the orthogonal neighbors
    """
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return

    kernel = sharpen_kernel(strength)[..., np.newaxis]
    rgb = pixels[..., :3].astype(np.float64)
    sharpened = convolve(rgb, kernel, mode='nearest')
    pixels[1:-1, 1:-1, :3] = to_channels(sharpened[1:-1, 1:-1])
