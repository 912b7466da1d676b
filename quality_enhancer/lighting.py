"""
Quality Enhancer - Lighting Engine
==================================
Applies named bundles of light sources, then optional ambient occlusion and
a global shadow term.

Sprites are treated as flat, camera-facing surfaces (normal = +Z), so each
light reduces to a single multiplicative factor on RGB. Lights in a preset are
applied one after another and compound.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np

from .kernels import luminance, to_channels
from .raster import RasterBuffer
from .schemas import AmbientOcclusionParams, ShadowParams

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

SURFACE_NORMAL = np.array([0.0, 0.0, 1.0])

# Role name -> multiplier applied on top of the directional term
PRIMARY_ROLES = frozenset({'directional', 'key', 'main', 'mystical'})
SECONDARY_ROLES = frozenset({'fill', 'shadow', 'rim', 'accent', 'ethereal'})
TERTIARY_ROLES = frozenset({'dim', 'silhouette'})

FLOOR_TOLERANCE = 1e-6


@dataclass(frozen=True)
class LightSource:
    """
    One light in a preset.

    Attributes:
        role: Role name; decides how the light is weighted
        intensity: Light strength
        color: 0xRRGGBB tint (informational; lights only scale brightness)
        direction: Direction vector, None for ambient lights
    """
    role: str
    intensity: float
    color: int
    direction: Optional[Vec3] = None


LIGHTING_PRESETS: Mapping[str, Tuple[LightSource, ...]] = MappingProxyType({
    'natural': (
        LightSource('ambient', 0.4, 0xFFF8DC),
        LightSource('directional', 0.8, 0xFFFFFF, (0.5, -0.8, 0.3)),
        LightSource('rim', 0.3, 0xFFF8DC, (-0.3, 0.2, 0.9)),
    ),
    'studio': (
        LightSource('key', 1.0, 0xFFFFFF, (0.3, -0.4, 0.9)),
        LightSource('fill', 0.4, 0xE6E6FA, (-0.5, 0.2, 0.8)),
        LightSource('rim', 0.6, 0xFFFFFF, (0.0, 0.8, 0.6)),
    ),
    'dramatic': (
        LightSource('main', 1.2, 0xFFD700, (0.8, -0.6, 0.1)),
        LightSource('shadow', 0.2, 0x4169E1, (-0.4, 0.3, 0.9)),
        LightSource('accent', 0.5, 0xDC143C, (0.0, 0.9, 0.4)),
    ),
    'magical': (
        LightSource('ambient', 0.3, 0x9370DB),
        LightSource('mystical', 0.7, 0xFFD700, (0.0, -1.0, 0.5)),
        LightSource('ethereal', 0.4, 0xE6E6FA, (0.5, 0.5, 0.7)),
    ),
    'horror': (
        LightSource('dim', 0.2, 0x8B0000, (0.2, -0.3, 0.9)),
        LightSource('silhouette', 0.8, 0x2F2F2F, (-0.8, 0.6, 0.1)),
        LightSource('flicker', 0.3, 0xFFFF00, (0.0, 0.0, 1.0)),
    ),
})


def directional_factor(light: LightSource) -> float:
    """N·L scaled by intensity with a 0.3 lift, floored at 0.2."""
    direction = np.asarray(light.direction if light.direction is not None else (0.0, 0.0, 0.0),
                           dtype=np.float64)
    return max(0.2, float(np.dot(SURFACE_NORMAL, direction)) * light.intensity + 0.3)


def light_factor(light: LightSource) -> float:
    """
    Brightness multiplier contributed by one light.

    Roles outside the known sets leave the image unchanged.
    """
    if light.role == 'ambient':
        return light.intensity
    if light.role in PRIMARY_ROLES:
        return directional_factor(light)
    if light.role in SECONDARY_ROLES:
        return directional_factor(light) * 0.5
    if light.role in TERTIARY_ROLES:
        return directional_factor(light) * 0.3
    return 1.0


def apply_light_source(buffer: RasterBuffer, light: LightSource) -> None:
    factor = light_factor(light)
    rgb = buffer.pixels[..., :3].astype(np.float64)
    buffer.pixels[..., :3] = to_channels(rgb * factor)


# ==============================================================================
# Ambient Occlusion / Shadows
# ==============================================================================

def apply_ambient_occlusion(buffer: RasterBuffer, intensity: float) -> None:
    """
    Darken interior pixels that differ in brightness from their 8 neighbors.

    Neighbor luminance is read from the buffer as it was before the pass. The
    one-pixel border is left alone.
    """
    height, width = buffer.height, buffer.width
    if height < 3 or width < 3:
        return

    luma = luminance(buffer.pixels[..., :3]) / 255.0
    neighbor_sum = np.zeros((height - 2, width - 2), dtype=np.float64)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dy == 0 and dx == 0:
                continue
            neighbor_sum += luma[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]

    occlusion = (luma[1:-1, 1:-1] - neighbor_sum / 8.0) * intensity
    factor = np.maximum(0.3, 1.0 - np.abs(occlusion))

    # Floor with a small tolerance so a factor of 1 - ulp keeps the value
    interior = buffer.pixels[1:-1, 1:-1, :3].astype(np.float64)
    shaded = np.floor(interior * factor[..., np.newaxis] + FLOOR_TOLERANCE)
    buffer.pixels[1:-1, 1:-1, :3] = np.clip(shaded, 0, 255).astype(np.uint8)


def shadow_factor(intensity: float, direction: Vec3) -> float:
    return max(0.2, float(np.dot(SURFACE_NORMAL, np.asarray(direction, dtype=np.float64))) * intensity + 0.5)


def apply_shadows(buffer: RasterBuffer, intensity: float, direction: Vec3) -> None:
    """Scale every pixel by a single shadow factor derived from the light direction."""
    factor = shadow_factor(intensity, direction)
    rgb = buffer.pixels[..., :3].astype(np.float64)
    buffer.pixels[..., :3] = to_channels(rgb * factor)


# ==============================================================================
# Stage Entry
# ==============================================================================

def apply_lighting(
    buffer: RasterBuffer,
    preset_name: str,
    ambient_occlusion: Optional[AmbientOcclusionParams] = None,
    shadows: Optional[ShadowParams] = None
) -> None:
    """
    Light a buffer in place.

    Args:
        buffer: Raster to modify
        preset_name: Key into LIGHTING_PRESETS; unknown names do nothing
        ambient_occlusion: Optional occlusion settings
        shadows: Optional shadow settings
    """
    preset = LIGHTING_PRESETS.get(preset_name)
    if preset is None:
        logger.debug("Unknown lighting preset %r, skipping", preset_name)
        return

    for light in preset:
        apply_light_source(buffer, light)

    if ambient_occlusion is not None:
        apply_ambient_occlusion(buffer, ambient_occlusion.intensity)

    if shadows is not None:
        apply_shadows(buffer, shadows.intensity, shadows.direction)
