"""
Quality Enhancer - Material Shader
==================================
Procedural surface shading for metal, wood, stone, fabric and magical
materials.

The material database is a static table of frozen records. Each category
shader receives the record it should use as a plain argument and modifies the
buffer's RGB channels in place; alpha is never touched.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import numpy as np

from .kernels import luminance, radial_distance, to_channels
from .noise import noise_field
from .raster import RasterBuffer

logger = logging.getLogger(__name__)


def unpack_rgb(color: int) -> np.ndarray:
    """Split a 0xRRGGBB integer into an (R, G, B) float array."""
    return np.array([(color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF], dtype=np.float64)


@dataclass(frozen=True)
class MaterialProperties:
    """
    Surface description of one material.

    Only the intensity fields relevant to a category are set; the shaders use
    the presence of a field to decide which detail passes run.
    """
    base_color: int
    shininess: float = 0.0
    reflectivity: float = 0.0
    roughness: Optional[float] = None
    # woods / leather
    grain_intensity: Optional[float] = None
    # stones
    vein_intensity: Optional[float] = None
    speckle_intensity: Optional[float] = None
    fossil_intensity: Optional[float] = None
    layer_intensity: Optional[float] = None
    glass_intensity: Optional[float] = None
    # fabrics
    weave_intensity: Optional[float] = None
    sheen_intensity: Optional[float] = None
    fiber_intensity: Optional[float] = None
    pile_intensity: Optional[float] = None
    # magical
    glow_intensity: Optional[float] = None
    particle_density: Optional[float] = None
    aura_intensity: Optional[float] = None
    light_rays: Optional[float] = None
    darkness_intensity: Optional[float] = None
    shadow_density: Optional[float] = None
    energy_intensity: Optional[float] = None
    flow_density: Optional[float] = None
    void_intensity: Optional[float] = None
    distortion_density: Optional[float] = None


def _table(entries: Dict[str, MaterialProperties]) -> Mapping[str, MaterialProperties]:
    return MappingProxyType(entries)


MATERIAL_DATABASE: Mapping[str, Mapping[str, MaterialProperties]] = MappingProxyType({
    'metals': _table({
        'gold': MaterialProperties(0xFFD700, shininess=0.9, reflectivity=0.8, roughness=0.1),
        'silver': MaterialProperties(0xC0C0C0, shininess=0.95, reflectivity=0.9, roughness=0.05),
        'copper': MaterialProperties(0xB87333, shininess=0.7, reflectivity=0.6, roughness=0.3),
        'bronze': MaterialProperties(0xCD7F32, shininess=0.6, reflectivity=0.5, roughness=0.4),
        'iron': MaterialProperties(0x43464B, shininess=0.4, reflectivity=0.3, roughness=0.6),
        'steel': MaterialProperties(0x71797E, shininess=0.8, reflectivity=0.7, roughness=0.2),
    }),
    'woods': _table({
        'oak': MaterialProperties(0x8B4513, grain_intensity=0.3, shininess=0.3, reflectivity=0.2),
        'pine': MaterialProperties(0xDEB887, grain_intensity=0.4, shininess=0.25, reflectivity=0.15),
        'mahogany': MaterialProperties(0x8B4513, grain_intensity=0.5, shininess=0.35, reflectivity=0.25),
        'birch': MaterialProperties(0xF5DEB3, grain_intensity=0.2, shininess=0.4, reflectivity=0.3),
        'ebony': MaterialProperties(0x2F1B14, grain_intensity=0.6, shininess=0.5, reflectivity=0.4),
    }),
    'stones': _table({
        'marble': MaterialProperties(0xF5F5F0, vein_intensity=0.4, shininess=0.8, reflectivity=0.6),
        'granite': MaterialProperties(0x696969, speckle_intensity=0.5, shininess=0.3, reflectivity=0.2),
        'limestone': MaterialProperties(0xF5F5DC, fossil_intensity=0.3, shininess=0.4, reflectivity=0.3),
        'slate': MaterialProperties(0x708090, layer_intensity=0.6, shininess=0.2, reflectivity=0.1),
        'obsidian': MaterialProperties(0x2F2F2F, glass_intensity=0.8, shininess=0.95, reflectivity=0.9),
    }),
    'fabrics': _table({
        'cotton': MaterialProperties(0xFFFFFF, weave_intensity=0.2, shininess=0.1, reflectivity=0.05),
        'silk': MaterialProperties(0xF5F5F5, sheen_intensity=0.4, shininess=0.6, reflectivity=0.5),
        'wool': MaterialProperties(0xF5F5DC, fiber_intensity=0.3, shininess=0.15, reflectivity=0.1),
        'leather': MaterialProperties(0x8B4513, grain_intensity=0.4, shininess=0.25, reflectivity=0.15),
        'velvet': MaterialProperties(0x800080, pile_intensity=0.5, shininess=0.3, reflectivity=0.2),
    }),
    'magical': _table({
        'enchanted': MaterialProperties(0x9370DB, glow_intensity=0.6, particle_density=0.4),
        'divine': MaterialProperties(0xFFD700, aura_intensity=0.8, light_rays=0.5),
        'cursed': MaterialProperties(0x8B0000, darkness_intensity=0.7, shadow_density=0.6),
        'elemental': MaterialProperties(0x00CED1, energy_intensity=0.9, flow_density=0.5),
        'void': MaterialProperties(0x2F2F2F, void_intensity=0.8, distortion_density=0.4),
    }),
})

CATEGORY_ALIASES = MappingProxyType({
    'metal': 'metals',
    'wood': 'woods',
    'stone': 'stones',
    'fabric': 'fabrics',
})

# Fixed overlay colors
VEIN_COLOR = 0xD3D3D3
PARTICLE_COLOR = 0xFFD700
AURA_COLOR = 0x9370DB
ENERGY_COLOR = 0x00CED1

SPECULAR_LIGHT_DIR = np.array([1.0, -1.0, 1.0])


def lookup_material(category: str, material_type: str) -> Optional[MaterialProperties]:
    """Resolve a (category, type) pair, accepting singular category names."""
    category = CATEGORY_ALIASES.get(category, category)
    return MATERIAL_DATABASE.get(category, {}).get(material_type)


def _grid(buffer: RasterBuffer):
    ys, xs = np.mgrid[0:buffer.height, 0:buffer.width].astype(np.float64)
    return xs, ys


def _add_tinted(buffer: RasterBuffer, amount: np.ndarray, ratios, mask: Optional[np.ndarray] = None) -> None:
    """Add a per-pixel scalar amount to RGB, scaled per channel by `ratios`."""
    delta = amount[..., np.newaxis] * np.asarray(ratios, dtype=np.float64)
    if mask is not None:
        delta = np.where(mask[..., np.newaxis], delta, 0.0)
    buffer.pixels[..., :3] = to_channels(buffer.pixels[..., :3].astype(np.float64) + delta)


def _scatter(buffer: RasterBuffer, count: int, rng: np.random.Generator, colors: np.ndarray) -> None:
    """Paint `count` random single pixels, each with a randomly chosen color."""
    if count <= 0 or buffer.width == 0 or buffer.height == 0:
        return
    xs = rng.integers(0, buffer.width, size=count)
    ys = rng.integers(0, buffer.height, size=count)
    choice = rng.integers(0, len(colors), size=count)
    buffer.pixels[ys, xs, :3] = colors[choice].astype(np.uint8)


# ==============================================================================
# Metals
# ==============================================================================

def shade_metal(buffer: RasterBuffer, material: MaterialProperties) -> None:
    """Metallic sheen proportional to brightness, then specular highlights."""
    rgb = buffer.pixels[..., :3].astype(np.float64)
    reflection = np.power(luminance(rgb) / 255.0, material.shininess) * material.reflectivity
    buffer.pixels[..., :3] = to_channels(rgb + (reflection * 50.0)[..., np.newaxis])

    add_specular_highlights(buffer, material.shininess)


def add_specular_highlights(buffer: RasterBuffer, shininess: float) -> None:
    """
    Highlights from a synthetic dome normal lit from (1, -1, 1).

    The normal at each pixel is derived from its normalized position; pixels
    outside the unit disk have no valid normal and receive nothing.
    """
    if buffer.width == 0 or buffer.height == 0:
        return
    xs, ys = _grid(buffer)
    nx = (xs / buffer.width - 0.5) * 2.0
    ny = (ys / buffer.height - 0.5) * 2.0
    inside = nx * nx + ny * ny <= 1.0
    nz_sq = np.where(inside, 1.0 - nx * nx - ny * ny, 0.0)

    light_z = SPECULAR_LIGHT_DIR[2]
    reflect_z = 2.0 * nz_sq * light_z - light_z
    specular = np.power(np.maximum(0.0, reflect_z), shininess * 100.0)

    mask = inside & (specular > 0.5)
    _add_tinted(buffer, specular * 100.0, (1.0, 1.0, 1.0), mask)


# ==============================================================================
# Woods
# ==============================================================================

def shade_wood(buffer: RasterBuffer, material: MaterialProperties) -> None:
    """Noise-driven grain tint followed by dark grain lines."""
    grain = noise_field(buffer.width, buffer.height, 0.1, 0.1) * (material.grain_intensity or 0.0)
    _add_tinted(buffer, grain * 30.0, (1.0, 0.8, 0.6))

    add_wood_grain_lines(buffer, material.base_color)


def add_wood_grain_lines(buffer: RasterBuffer, base_color: int) -> None:
    """Every third row, paint the darkened base color where low-frequency noise peaks."""
    line_noise = noise_field(buffer.width, buffer.height, 0.01, 0.1)
    mask = line_noise > 0.7
    mask[np.arange(buffer.height) % 3 != 0, :] = False

    dark = np.maximum(0.0, unpack_rgb(base_color) - 30.0).astype(np.uint8)
    buffer.pixels[mask, :3] = dark


# ==============================================================================
# Stones
# ==============================================================================

def shade_stone(buffer: RasterBuffer, material: MaterialProperties, rng: np.random.Generator) -> None:
    """Two-octave surface variation plus marble veins or granite speckles."""
    surface = noise_field(buffer.width, buffer.height, 0.05, 0.05) * 0.3
    pores = noise_field(buffer.width, buffer.height, 0.2, 0.2) * 0.2
    _add_tinted(buffer, (surface + pores) * 40.0, (1.0, 0.9, 0.8))

    if material.vein_intensity:
        add_marble_veins(buffer, material.vein_intensity)
    elif material.speckle_intensity:
        add_granite_speckles(buffer, material.speckle_intensity, rng)


def add_marble_veins(buffer: RasterBuffer, intensity: float) -> None:
    xs, ys = _grid(buffer)
    pattern = np.sin(xs * 0.05) * np.cos(ys * 0.03) * intensity
    buffer.pixels[np.abs(pattern) > 0.3, :3] = unpack_rgb(VEIN_COLOR).astype(np.uint8)


def add_granite_speckles(buffer: RasterBuffer, intensity: float, rng: np.random.Generator) -> None:
    count = int(np.floor(buffer.width * buffer.height * intensity * 0.1))
    palette = np.array([[0, 0, 0], [255, 255, 255]])
    _scatter(buffer, count, rng, palette)


# ==============================================================================
# Fabrics
# ==============================================================================

def shade_fabric(buffer: RasterBuffer, material: MaterialProperties) -> None:
    """Crossed sinusoidal weave plus an optional silk sheen."""
    if material.weave_intensity:
        xs, ys = _grid(buffer)
        weave_x = np.sin(xs * 0.3) * np.cos(ys * 0.3)
        weave_y = np.sin(ys * 0.3) * np.cos(xs * 0.3)
        weave = (weave_x + weave_y) * 0.5 * material.weave_intensity
        _add_tinted(buffer, weave * 20.0, (1.0, 0.8, 0.6))

    if material.sheen_intensity:
        add_silk_sheen(buffer, material.sheen_intensity)


def add_silk_sheen(buffer: RasterBuffer, intensity: float) -> None:
    xs, ys = _grid(buffer)
    sheen = np.sin(xs * 0.1 + ys * 0.1) * intensity
    _add_tinted(buffer, sheen * 30.0, (1.0, 1.0, 1.0), sheen > 0.2)


# ==============================================================================
# Magical
# ==============================================================================

def shade_magical(buffer: RasterBuffer, material: MaterialProperties, rng: np.random.Generator) -> None:
    """Run whichever of glow, particles, aura and energy the material defines."""
    if material.glow_intensity:
        add_magical_glow(buffer, material.glow_intensity, material.base_color)
    if material.particle_density:
        add_magical_particles(buffer, material.particle_density, rng)
    if material.aura_intensity:
        add_magical_aura(buffer, material.aura_intensity)
    if material.energy_intensity:
        add_energy_field(buffer, material.energy_intensity)


def _radial_falloff(buffer: RasterBuffer) -> np.ndarray:
    distance, max_distance = radial_distance(buffer.width, buffer.height)
    if max_distance == 0:
        return np.ones_like(distance)
    return 1.0 - distance / max_distance


def add_magical_glow(buffer: RasterBuffer, intensity: float, color: int) -> None:
    glow = _radial_falloff(buffer) * intensity
    tint = unpack_rgb(color) * 0.5
    _add_tinted(buffer, glow, tint, glow > 0)


def add_magical_particles(buffer: RasterBuffer, density: float, rng: np.random.Generator) -> None:
    count = int(np.floor(buffer.width * buffer.height * density * 0.01))
    _scatter(buffer, count, rng, unpack_rgb(PARTICLE_COLOR)[np.newaxis, :])


def add_magical_aura(buffer: RasterBuffer, intensity: float) -> None:
    aura = _radial_falloff(buffer) ** 2 * intensity
    tint = unpack_rgb(AURA_COLOR) * 0.3
    _add_tinted(buffer, aura, tint, aura > 0.1)


def add_energy_field(buffer: RasterBuffer, intensity: float) -> None:
    xs, ys = _grid(buffer)
    energy = np.abs(np.sin(xs * 0.1) * np.cos(ys * 0.1) * intensity)
    tint = unpack_rgb(ENERGY_COLOR) * 0.4
    _add_tinted(buffer, energy, tint, energy > 0.3)


# ==============================================================================
# Dispatch
# ==============================================================================

def apply_material(
    buffer: RasterBuffer,
    category: str,
    material_type: str,
    rng: Optional[np.random.Generator] = None
) -> None:
    """
    Shade a buffer in place with a material from the database.

    Args:
        buffer: Raster to modify
        category: Material category ('metals', 'woods', 'stones', 'fabrics',
            'magical'; singular forms accepted)
        material_type: Material name within the category
        rng: Random source for speckles and particles (fresh if None)
    """
    material = lookup_material(category, material_type)
    if material is None:
        logger.debug("Unknown material %s/%s, skipping", category, material_type)
        return

    if rng is None:
        rng = np.random.default_rng()

    category = CATEGORY_ALIASES.get(category, category)
    if category == 'metals':
        shade_metal(buffer, material)
    elif category == 'woods':
        shade_wood(buffer, material)
    elif category == 'stones':
        shade_stone(buffer, material, rng)
    elif category == 'fabrics':
        shade_fabric(buffer, material)
    elif category == 'magical':
        shade_magical(buffer, material, rng)
