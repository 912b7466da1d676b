"""
Quality Enhancer - Effects Stage
================================
Cinematic whole-image passes: bloom, depth of field, motion blur, chromatic
aberration, vignette, film grain and color grading.

Each effect is self-contained and modifies the buffer in place. Effects that
sample neighboring pixels read from a snapshot taken at the start of the pass,
so results do not depend on scan order.
"""

import logging
from typing import Mapping, Optional

import numpy as np
from scipy.ndimage import uniform_filter

from .kernels import box_blur, luminance, radial_distance, to_channels
from .raster import RasterBuffer
from .schemas import (
    BloomParams,
    ChromaticAberrationParams,
    ColorGradingParams,
    DepthOfFieldParams,
    EffectParams,
    FilmGrainParams,
    MotionBlurParams,
    VignetteParams,
)

logger = logging.getLogger(__name__)

MOTION_BLUR_SAMPLES = 5
NEUTRAL_TEMPERATURE = 6500.0


def _rgb(buffer: RasterBuffer) -> np.ndarray:
    return buffer.pixels[..., :3].astype(np.float64)


def _pixel_grid(width: int, height: int):
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    return xs, ys


def _normalized_distance(width: int, height: int) -> np.ndarray:
    distance, max_distance = radial_distance(width, height)
    if max_distance == 0:
        return np.zeros_like(distance)
    return distance / max_distance


# ==============================================================================
# Bloom
# ==============================================================================

def apply_bloom(buffer: RasterBuffer, params: BloomParams) -> None:
    """
    Glow around highlights.

    Pixels brighter than the threshold seed a bloom layer, which is box
    blurred and added back onto the image.
    """
    rgb = _rgb(buffer)
    if params.threshold >= 1.0:
        return

    luma = luminance(rgb) / 255.0
    bright = luma > params.threshold
    if not bright.any():
        return

    layer = np.zeros_like(rgb)
    strength = (luma[bright] - params.threshold) / (1.0 - params.threshold) * params.intensity
    layer[bright] = rgb[bright] * strength[:, np.newaxis]

    glow = box_blur(layer, params.radius)
    buffer.pixels[..., :3] = to_channels(rgb + glow)


# ==============================================================================
# Depth of Field
# ==============================================================================

def depth_of_field_radii(height: int, params: DepthOfFieldParams) -> np.ndarray:
    """
    Per-row blur radius; -1 marks rows that stay sharp.

    Focus lies on the row at height*focal_distance and blur grows with the
    vertical distance from it, capped at blur_strength.
    """
    rows = np.arange(height, dtype=np.float64)
    distance = np.abs(rows - height * params.focal_distance)
    blur = np.minimum(params.blur_strength, distance * params.aperture)
    return np.where(blur > 0, np.floor(blur), -1).astype(np.int64)


def apply_depth_of_field(buffer: RasterBuffer, params: DepthOfFieldParams) -> None:
    radii = depth_of_field_radii(buffer.height, params)
    snapshot = _rgb(buffer)
    result = snapshot.copy()

    # Radius 0 averages a pixel with itself, so only radius >= 1 changes anything
    for radius in np.unique(radii[radii >= 1]):
        size = 2 * int(radius) + 1
        blurred = uniform_filter(snapshot, size=(size, size, 1), mode='nearest')
        rows = radii == radius
        result[rows] = blurred[rows]

    buffer.pixels[..., :3] = to_channels(result)


# ==============================================================================
# Motion Blur
# ==============================================================================

def apply_motion_blur(buffer: RasterBuffer, params: MotionBlurParams) -> None:
    """Average of samples stepped along the motion direction."""
    height, width = buffer.height, buffer.width
    if width == 0 or height == 0:
        return

    snapshot = _rgb(buffer)
    xs, ys = _pixel_grid(width, height)
    dx, dy = params.direction
    total = np.zeros_like(snapshot)

    for i in range(MOTION_BLUR_SAMPLES):
        sample_x = np.clip(np.floor(xs + dx * i * params.strength), 0, width - 1).astype(np.int64)
        sample_y = np.clip(np.floor(ys + dy * i * params.strength), 0, height - 1).astype(np.int64)
        total += snapshot[sample_y, sample_x]

    buffer.pixels[..., :3] = to_channels(total / MOTION_BLUR_SAMPLES)


# ==============================================================================
# Chromatic Aberration
# ==============================================================================

def apply_chromatic_aberration(buffer: RasterBuffer, params: ChromaticAberrationParams) -> None:
    """
    Radial color fringing: red is pulled from along the direction, blue from
    against it, green stays put. The shift grows toward the corners.
    """
    height, width = buffer.height, buffer.width
    if width == 0 or height == 0:
        return

    snapshot = buffer.pixels.copy()
    xs, ys = _pixel_grid(width, height)
    aberration = _normalized_distance(width, height) * params.strength
    shift_x = params.direction[0] * aberration * 5.0
    shift_y = params.direction[1] * aberration * 5.0

    def _sample(offset_x, offset_y):
        sx = np.floor(np.clip(xs + offset_x, 0, width - 1)).astype(np.int64)
        sy = np.floor(np.clip(ys + offset_y, 0, height - 1)).astype(np.int64)
        return sy, sx

    red_y, red_x = _sample(shift_x, shift_y)
    blue_y, blue_x = _sample(-shift_x, -shift_y)

    buffer.pixels[..., 0] = snapshot[red_y, red_x, 0]
    buffer.pixels[..., 2] = snapshot[blue_y, blue_x, 2]


# ==============================================================================
# Vignette
# ==============================================================================

def vignette_factor(width: int, height: int, intensity: float, radius: float) -> np.ndarray:
    """
    Darkening multiplier per pixel, floored at 0.3.

    Exactly 1.0 at the image center regardless of radius or intensity.
    """
    distance = _normalized_distance(width, height)
    with np.errstate(divide='ignore', invalid='ignore'):
        falloff = np.power(distance, radius)
        factor = np.maximum(0.3, 1.0 - falloff * intensity)
    factor[distance == 0] = 1.0
    return factor


def apply_vignette(buffer: RasterBuffer, params: VignetteParams) -> None:
    factor = vignette_factor(buffer.width, buffer.height, params.intensity, params.radius)
    buffer.pixels[..., :3] = to_channels(_rgb(buffer) * factor[..., np.newaxis])


# ==============================================================================
# Film Grain
# ==============================================================================

def apply_film_grain(buffer: RasterBuffer, params: FilmGrainParams, rng: np.random.Generator) -> None:
    """
    Random luminance grain modulated by a soft sinusoidal size pattern.

    Output depends on the generator state; seed it for reproducible results.
    """
    xs, ys = _pixel_grid(buffer.width, buffer.height)
    grain = (rng.random((buffer.height, buffer.width)) - 0.5) * 2.0 * params.intensity
    size_mod = np.sin(xs * 0.1) * np.cos(ys * 0.1) * params.size
    amount = grain * (1.0 + size_mod) * 50.0
    buffer.pixels[..., :3] = to_channels(_rgb(buffer) + amount[..., np.newaxis])


# ==============================================================================
# Color Grading
# ==============================================================================

def grade_colors(
    rgb: np.ndarray,
    contrast: float = 1.0,
    saturation: float = 1.0,
    brightness: float = 1.0
) -> np.ndarray:
    """
    Contrast, then saturation, then brightness on 0..255 floats.

    Each step clamps to [0, 255] before the next one runs.
    """
    graded = np.clip(((rgb / 255.0 - 0.5) * contrast + 0.5) * 255.0, 0.0, 255.0)
    luma = luminance(graded)[..., np.newaxis]
    graded = np.clip(luma + (graded - luma) * saturation, 0.0, 255.0)
    return np.clip(graded * brightness, 0.0, 255.0)


def apply_color_grading(buffer: RasterBuffer, params: ColorGradingParams) -> None:
    if params.temperature != NEUTRAL_TEMPERATURE:
        logger.debug("Color temperature %sK has no white-balance transform; ignored",
                     params.temperature)
    graded = grade_colors(_rgb(buffer), params.contrast, params.saturation, params.brightness)
    buffer.pixels[..., :3] = to_channels(graded)


# ==============================================================================
# Stage Entry
# ==============================================================================

def apply_effect(
    buffer: RasterBuffer,
    params: EffectParams,
    rng: Optional[np.random.Generator] = None
) -> None:
    """Run a single effect described by its parameter record."""
    if isinstance(params, BloomParams):
        apply_bloom(buffer, params)
    elif isinstance(params, DepthOfFieldParams):
        apply_depth_of_field(buffer, params)
    elif isinstance(params, MotionBlurParams):
        apply_motion_blur(buffer, params)
    elif isinstance(params, ChromaticAberrationParams):
        apply_chromatic_aberration(buffer, params)
    elif isinstance(params, VignetteParams):
        apply_vignette(buffer, params)
    elif isinstance(params, FilmGrainParams):
        apply_film_grain(buffer, params, rng if rng is not None else np.random.default_rng())
    elif isinstance(params, ColorGradingParams):
        apply_color_grading(buffer, params)
    else:
        raise TypeError(f"Not an effect parameter record: {params!r}")


def apply_effects(
    buffer: RasterBuffer,
    effects: Mapping[str, EffectParams],
    rng: Optional[np.random.Generator] = None
) -> None:
    """
    Apply effects in the mapping's order.

    Args:
        buffer: Raster to modify in place
        effects: Effect name -> validated parameter record
        rng: Random source for film grain (fresh if None)
    """
    for name, params in effects.items():
        logger.debug("Effect: %s", name)
        apply_effect(buffer, params, rng)
