# tests/test_materials.py
# Material database lookups and per-category shading.

import numpy as np
import pytest

from quality_enhancer.kernels import luminance, radial_distance
from quality_enhancer.materials import (
    MATERIAL_DATABASE,
    add_magical_glow,
    apply_material,
    lookup_material,
    unpack_rgb,
)
from quality_enhancer.noise import noise_field
from quality_enhancer.raster import RasterBuffer


def test_database_is_read_only():
    with pytest.raises(TypeError):
        MATERIAL_DATABASE['metals']['tin'] = MATERIAL_DATABASE['metals']['iron']


def test_singular_category_alias():
    assert lookup_material('metal', 'gold') is MATERIAL_DATABASE['metals']['gold']
    assert lookup_material('metals', 'unobtainium') is None
    assert lookup_material('plastics', 'gold') is None


@pytest.mark.parametrize("category, material_type", [
    ('metals', 'unobtainium'),
    ('plastics', 'pvc'),
])
def test_unknown_material_is_noop(gray_buffer, category, material_type):
    before = gray_buffer.copy()
    apply_material(gray_buffer, category, material_type)
    assert gray_buffer == before


def test_metal_only_brightens(gray_buffer):
    before = gray_buffer.pixels.copy()
    apply_material(gray_buffer, 'metals', 'gold')
    assert (gray_buffer.pixels[..., :3] >= before[..., :3]).all()
    assert (gray_buffer.pixels[..., :3] > before[..., :3]).any()
    assert np.array_equal(gray_buffer.alpha, before[..., 3])


def test_wood_grain_tint_and_lines():
    buf = RasterBuffer.blank(24, 24, (100, 100, 100, 255))
    apply_material(buf, 'woods', 'oak')

    grain = noise_field(24, 24, 0.1, 0.1) * 0.3 * 30.0
    expected_red = np.clip(np.rint(100 + grain), 0, 255)
    off_rows = np.arange(24) % 3 != 0
    assert np.array_equal(buf.pixels[off_rows, :, 0], expected_red[off_rows])

    # Grain-line rows hold either the tinted value or the darkened base color
    dark = np.maximum(0, unpack_rgb(0x8B4513) - 30)
    row0 = buf.pixels[0, :, :3]
    for x in range(24):
        assert tuple(row0[x]) == tuple(dark) or row0[x, 0] == expected_red[0, x]


def test_marble_veins_painted():
    buf = RasterBuffer.blank(64, 64, (0, 0, 0, 255))
    apply_material(buf, 'stones', 'marble')
    # |sin(31*0.05) * cos(0) * 0.4| > 0.3
    assert tuple(buf.pixels[0, 31, :3]) == (211, 211, 211)


def test_granite_speckles_follow_seed(gray_buffer):
    first = gray_buffer.copy()
    second = gray_buffer.copy()
    apply_material(first, 'stones', 'granite', rng=np.random.default_rng(7))
    apply_material(second, 'stones', 'granite', rng=np.random.default_rng(7))
    assert first == second


def test_fabric_without_weave_is_untouched(gray_buffer):
    before = gray_buffer.copy()
    apply_material(gray_buffer, 'fabrics', 'wool')
    assert gray_buffer == before


def test_silk_sheen_brightens_bands():
    buf = RasterBuffer.blank(32, 32, (50, 50, 50, 255))
    apply_material(buf, 'fabric', 'silk')
    ys, xs = np.mgrid[0:32, 0:32]
    sheen = np.sin(xs * 0.1 + ys * 0.1) * 0.4
    assert (buf.pixels[sheen > 0.2, 0] > 50).all()
    assert (buf.pixels[sheen <= 0.2, 0] == 50).all()


def test_divine_aura_centered():
    buf = RasterBuffer.blank(16, 16, (0, 0, 0, 255))
    apply_material(buf, 'magical', 'divine')
    # Full aura at the center: 0x9370DB * 0.8 * 0.3
    assert tuple(buf.pixels[8, 8, :3]) == (35, 27, 53)
    # Nothing reaches the corner
    assert tuple(buf.pixels[0, 0, :3]) == (0, 0, 0)


def test_enchanted_particles_are_seeded():
    base = RasterBuffer.blank(40, 40, (0, 0, 0, 255))
    first = base.copy()
    second = base.copy()
    apply_material(first, 'magical', 'enchanted', rng=np.random.default_rng(3))
    apply_material(second, 'magical', 'enchanted', rng=np.random.default_rng(3))
    assert first == second
    gold = (first.pixels[..., :3] == [255, 215, 0]).all(axis=-1)
    assert 1 <= gold.sum() <= 6


def test_energy_field_keeps_alpha():
    buf = RasterBuffer.blank(48, 48, (10, 10, 10, 77))
    apply_material(buf, 'magical', 'elemental')
    assert (buf.alpha == 77).all()
    assert (buf.pixels[..., 2] >= 10).all()


def test_gold_sheen_and_specular(gray_buffer):
    apply_material(gray_buffer, 'metals', 'gold')

    reflection = np.power(luminance(np.array([128.0, 128.0, 128.0])) / 255.0, 0.9) * 0.8
    sheen = np.rint(128.0 + reflection * 50.0)

    # Dome normal points straight at the viewer in the center: full highlight
    assert gray_buffer.pixels[8, 8, 0] == sheen + 100
    # Outside the unit disk and on its rim only the sheen applies
    assert gray_buffer.pixels[0, 0, 0] == sheen
    assert gray_buffer.pixels[15, 15, 0] == sheen
    assert gray_buffer.pixels[8, 0, 0] == sheen


def test_cotton_weave_values():
    buf = RasterBuffer.blank(32, 32, (100, 100, 100, 255))
    apply_material(buf, 'fabrics', 'cotton')

    ys, xs = np.mgrid[0:32, 0:32].astype(np.float64)
    weave = (np.sin(xs * 0.3) * np.cos(ys * 0.3) + np.sin(ys * 0.3) * np.cos(xs * 0.3)) * 0.5 * 0.2
    amount = weave * 20.0
    assert np.array_equal(buf.pixels[..., 0], np.rint(100.0 + amount))
    assert np.array_equal(buf.pixels[..., 2], np.rint(100.0 + amount * 0.6))
    assert buf.pixels[..., 0].min() < 100 < buf.pixels[..., 0].max()


def test_limestone_surface_variation():
    buf = RasterBuffer.blank(24, 24, (100, 100, 100, 255))
    apply_material(buf, 'stones', 'limestone')

    amount = (noise_field(24, 24, 0.05, 0.05) * 0.3 + noise_field(24, 24, 0.2, 0.2) * 0.2) * 40.0
    assert np.array_equal(buf.pixels[..., 0], np.rint(100.0 + amount))
    assert np.array_equal(buf.pixels[..., 1], np.rint(100.0 + amount * 0.9))
    assert (buf.pixels[..., 0] > 100).any()


def test_magical_glow_at_center():
    buf = RasterBuffer.blank(16, 16, (0, 0, 0, 255))
    add_magical_glow(buf, 0.6, 0x9370DB)
    # 0x9370DB * 0.6 * 0.5
    assert tuple(buf.pixels[8, 8, :3]) == (44, 34, 66)
    assert tuple(buf.pixels[0, 0, :3]) == (0, 0, 0)


def test_enchanted_glow_under_particles():
    buf = RasterBuffer.blank(16, 16, (0, 0, 0, 255))
    apply_material(buf, 'magical', 'enchanted', rng=np.random.default_rng(11))

    distance, max_distance = radial_distance(16, 16)
    glow = (1.0 - distance / max_distance) * 0.6
    delta = glow[..., np.newaxis] * (unpack_rgb(0x9370DB) * 0.5)
    expected = np.rint(np.where(glow[..., np.newaxis] > 0, delta, 0.0))

    gold = (buf.pixels[..., :3] == [255, 215, 0]).all(axis=-1)
    assert gold.sum() <= 1
    assert np.array_equal(buf.pixels[~gold, :3], expected[~gold])
