"""
Quality Enhancer - Post-Filter Stage
====================================
Final per-pixel and 3×3-kernel adjustments: sharpen, denoise, contrast,
saturation, brightness, gamma and vibrance.

All filters operate on RGB in place; alpha passes through untouched.
"""

import logging
from typing import Mapping

import numpy as np

from .kernels import luminance, sharpen, to_channels
from .raster import RasterBuffer
from .schemas import (
    BrightnessParams,
    ContrastParams,
    DenoiseParams,
    FilterParams,
    GammaParams,
    SaturationParams,
    SharpenParams,
    VibranceParams,
)

logger = logging.getLogger(__name__)


def _rgb(buffer: RasterBuffer) -> np.ndarray:
    return buffer.pixels[..., :3].astype(np.float64)


def apply_sharpen(buffer: RasterBuffer, strength: float) -> None:
    sharpen(buffer.pixels, strength)


def apply_denoise(buffer: RasterBuffer, strength: float) -> None:
    """
    Blend interior pixels toward their 3×3 mean.

    result = original*(1-strength) + mean9*strength; border pixels unchanged.
    """
    height, width = buffer.height, buffer.width
    if height < 3 or width < 3:
        return

    rgb = _rgb(buffer)
    total = np.zeros((height - 2, width - 2, 3), dtype=np.float64)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            total += rgb[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]

    original = rgb[1:-1, 1:-1]
    blended = original * (1.0 - strength) + (total / 9.0) * strength
    buffer.pixels[1:-1, 1:-1, :3] = to_channels(blended)


def adjust_contrast(buffer: RasterBuffer, adjustment: float) -> None:
    values = ((_rgb(buffer) / 255.0 - 0.5) * adjustment + 0.5) * 255.0
    buffer.pixels[..., :3] = to_channels(values)


def adjust_saturation(buffer: RasterBuffer, adjustment: float) -> None:
    """Interpolate each channel away from (or toward) the pixel luminance."""
    rgb = _rgb(buffer) / 255.0
    luma = luminance(rgb)[..., np.newaxis]
    buffer.pixels[..., :3] = to_channels((luma + (rgb - luma) * adjustment) * 255.0)


def adjust_brightness(buffer: RasterBuffer, adjustment: float) -> None:
    buffer.pixels[..., :3] = to_channels(_rgb(buffer) * adjustment)


def adjust_gamma(buffer: RasterBuffer, adjustment: float) -> None:
    """Gamma curve (v/255)^(1/adjustment); adjustment 1 is the identity."""
    values = np.power(_rgb(buffer) / 255.0, 1.0 / adjustment) * 255.0
    buffer.pixels[..., :3] = to_channels(values)


def adjust_vibrance(buffer: RasterBuffer, adjustment: float) -> None:
    """
    Push the weaker channels toward the strongest one.

    The push grows with how far the strongest channel sits above the pixel
    average, so already-saturated pixels move more than greys.
    """
    rgb = _rgb(buffer)
    peak = rgb.max(axis=-1, keepdims=True)
    average = rgb.mean(axis=-1, keepdims=True)
    amount = (np.abs(peak - average) * 2.0 / 255.0) * adjustment
    # Channels already at the peak move by (peak - v) * amount == 0
    buffer.pixels[..., :3] = to_channels(rgb + (peak - rgb) * amount)


# ==============================================================================
# Stage Entry
# ==============================================================================

def apply_filter(buffer: RasterBuffer, params: FilterParams) -> None:
    """Run a single post-processing filter described by its parameter record."""
    if isinstance(params, SharpenParams):
        apply_sharpen(buffer, params.strength)
    elif isinstance(params, DenoiseParams):
        apply_denoise(buffer, params.strength)
    elif isinstance(params, ContrastParams):
        adjust_contrast(buffer, params.adjustment)
    elif isinstance(params, SaturationParams):
        adjust_saturation(buffer, params.adjustment)
    elif isinstance(params, BrightnessParams):
        adjust_brightness(buffer, params.adjustment)
    elif isinstance(params, GammaParams):
        adjust_gamma(buffer, params.adjustment)
    elif isinstance(params, VibranceParams):
        adjust_vibrance(buffer, params.adjustment)
    else:
        raise TypeError(f"Not a post-processing parameter record: {params!r}")


def apply_post_processing(buffer: RasterBuffer, filters: Mapping[str, FilterParams]) -> None:
    """
    Apply post-processing filters in the mapping's order.

    Args:
        buffer: Raster to modify in place
        filters: Filter name -> validated parameter record
    """
    for name, params in filters.items():
        logger.debug("Post filter: %s", name)
        apply_filter(buffer, params)
