"""
Quality Enhancer - Resampler
============================
Bicubic upscaling of a raster buffer to a fixed target resolution.

Uses Keys' cubic convolution kernel (A = -0.5) evaluated separably over a 4×4
edge-clamped neighborhood, followed by a light sharpen to recover detail lost
to interpolation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

import numpy as np

from .kernels import sharpen, to_channels
from .raster import RasterBuffer

logger = logging.getLogger(__name__)

# Strength of the sharpen pass applied after every upscale
RESAMPLE_SHARPEN_STRENGTH = 0.3


class Resolution(str, Enum):
    """Named output resolution levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"
    EXTREME = "extreme"


@dataclass(frozen=True)
class ResolutionTarget:
    width: int
    height: int
    scale: int


RESOLUTIONS: Dict[Resolution, ResolutionTarget] = {
    Resolution.LOW: ResolutionTarget(32, 32, 1),
    Resolution.MEDIUM: ResolutionTarget(64, 64, 2),
    Resolution.HIGH: ResolutionTarget(128, 128, 4),
    Resolution.ULTRA: ResolutionTarget(256, 256, 8),
    Resolution.EXTREME: ResolutionTarget(512, 512, 16),
}


def get_resolution(level: Union[str, Resolution]) -> Optional[ResolutionTarget]:
    """Look up a resolution level by name; unknown names return None."""
    try:
        return RESOLUTIONS[Resolution(level)]
    except ValueError:
        return None


# ==============================================================================
# Bicubic Kernel
# ==============================================================================

def cubic_weight(t):
    """
    Keys cubic convolution weight (A = -0.5).

    Args:
        t: Distance from the sample, scalar or array

    Returns:
        Weight with the same shape as t
    """
    a = np.abs(np.asarray(t, dtype=np.float64))
    a2 = a * a
    a3 = a2 * a
    near = 1.5 * a3 - 2.5 * a2 + 1.0
    far = -0.5 * a3 + 2.5 * a2 - 4.0 * a + 2.0
    weight = np.where(a <= 1.0, near, np.where(a < 2.0, far, 0.0))
    if np.ndim(weight) == 0:
        return float(weight)
    return weight


def bicubic_weights(x_frac: float, y_frac: float) -> np.ndarray:
    """
    The 16 weights of a 4×4 bicubic neighborhood.

    Entry [i, j] weights the sample at (xi - 1 + j, yi - 1 + i).

    Returns:
        Weights (4, 4) float64; they sum to 1 for any fractional offset
    """
    taps = np.arange(4, dtype=np.float64) - 1.0
    wx = cubic_weight(taps - x_frac)
    wy = cubic_weight(taps - y_frac)
    return np.outer(wy, wx)


def _axis_taps(target: int, source: int, scale: float):
    """Clamped source indices (target, 4) and weights (target, 4) along one axis."""
    coords = np.arange(target, dtype=np.float64) / scale
    base = np.floor(coords)
    frac = coords - base
    offsets = np.arange(-1, 3)
    indices = np.clip(base.astype(np.int64)[:, None] + offsets[None, :], 0, source - 1)
    weights = cubic_weight(offsets[None, :] - frac[:, None])
    return indices, weights


# ==============================================================================
# Upscale
# ==============================================================================

def resample(
    buffer: RasterBuffer,
    target_width: int,
    target_height: int,
    scale: float
) -> RasterBuffer:
    """
    Bicubic upscale to a target resolution.

    Destination pixel (x, y) samples the source at (x/scale, y/scale). All
    four channels, alpha included, are interpolated.

    Args:
        buffer: Source raster
        target_width: Output width in pixels
        target_height: Output height in pixels
        scale: Destination-to-source coordinate ratio

    Returns:
        New raster of target_width × target_height, or the input itself
        when scale <= 1
    """
    if scale <= 1:
        return buffer
    if buffer.width == 0 or buffer.height == 0:
        raise ValueError("Cannot resample an empty raster")

    x_idx, x_w = _axis_taps(target_width, buffer.width, scale)
    y_idx, y_w = _axis_taps(target_height, buffer.height, scale)

    src = buffer.pixels.astype(np.float64)
    result = np.zeros((target_height, target_width, 4), dtype=np.float64)

    # Separable: interpolate along x for each of the 4 source rows, then along y
    for i in range(4):
        rows = src[y_idx[:, i]]
        horizontal = np.zeros_like(result)
        for j in range(4):
            horizontal += rows[:, x_idx[:, j], :] * x_w[None, :, j, None]
        result += horizontal * y_w[:, i, None, None]

    upscaled = RasterBuffer(target_width, target_height, to_channels(result))
    sharpen(upscaled.pixels, RESAMPLE_SHARPEN_STRENGTH)

    logger.debug("Resampled %d×%d → %d×%d (scale %s)",
                 buffer.width, buffer.height, target_width, target_height, scale)
    return upscaled
