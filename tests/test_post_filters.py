# tests/test_post_filters.py
# Post-processing filters: kernels, tone curves and stage ordering.

import numpy as np
import pytest

from quality_enhancer.post_filters import (
    adjust_brightness,
    adjust_contrast,
    adjust_gamma,
    adjust_saturation,
    adjust_vibrance,
    apply_denoise,
    apply_filter,
    apply_post_processing,
    apply_sharpen,
)
from quality_enhancer.raster import RasterBuffer
from quality_enhancer.schemas import EnhancementConfig


@pytest.mark.parametrize("adjust", [adjust_contrast, adjust_saturation, adjust_brightness, adjust_gamma])
def test_unit_adjustment_is_identity(adjust, random_buffer):
    before = random_buffer.copy()
    adjust(random_buffer, 1.0)
    assert random_buffer == before


def test_brightness_keeps_black():
    buf = RasterBuffer.blank(4, 4, (0, 0, 0, 255))
    adjust_brightness(buf, 2.0)
    assert (buf.pixels[..., :3] == 0).all()


def test_brightness_clamps():
    buf = RasterBuffer.blank(2, 2, (200, 100, 10, 255))
    adjust_brightness(buf, 2.0)
    assert tuple(buf.pixels[0, 0]) == (255, 200, 20, 255)


def test_contrast_stretches_around_mid_gray():
    buf = RasterBuffer.blank(3, 1)
    buf.pixels[0, :, :3] = np.array([[100] * 3, [0] * 3, [255] * 3])
    adjust_contrast(buf, 1.5)
    assert buf.pixels[0, :, 0].tolist() == [86, 0, 255]


def test_zero_saturation_is_luminance():
    buf = RasterBuffer.blank(2, 2, (200, 100, 50, 255))
    adjust_saturation(buf, 0.0)
    assert tuple(buf.pixels[1, 1]) == (124, 124, 124, 255)


def test_gamma_curve(random_buffer):
    rgb = random_buffer.rgb.astype(float)
    expected = np.rint(np.power(rgb / 255.0, 0.5) * 255.0)
    adjust_gamma(random_buffer, 2.0)
    assert np.array_equal(random_buffer.rgb, expected.astype(np.uint8))


def test_vibrance_leaves_grays():
    buf = RasterBuffer.blank(3, 3, (90, 90, 90, 255))
    adjust_vibrance(buf, 1.15)
    assert (buf.pixels[..., :3] == 90).all()


def test_vibrance_lifts_weaker_channels():
    buf = RasterBuffer.blank(1, 1, (200, 100, 100, 255))
    adjust_vibrance(buf, 1.0)
    assert tuple(buf.pixels[0, 0]) == (200, 152, 152, 255)


# ------------------------------------------------------------------
# Kernels
# ------------------------------------------------------------------

def test_sharpen_flat_field_unchanged(gray_buffer):
    before = gray_buffer.copy()
    apply_sharpen(gray_buffer, 0.8)
    assert gray_buffer == before


def test_sharpen_preserves_border_and_alpha(random_buffer):
    before = random_buffer.copy()
    apply_sharpen(random_buffer, 0.5)
    assert np.array_equal(random_buffer.pixels[0], before.pixels[0])
    assert np.array_equal(random_buffer.pixels[:, -1], before.pixels[:, -1])
    assert np.array_equal(random_buffer.alpha, before.alpha)


def test_denoise_zero_strength_is_noop(random_buffer):
    before = random_buffer.copy()
    apply_denoise(random_buffer, 0.0)
    assert random_buffer == before


def test_full_denoise_spreads_spike():
    buf = RasterBuffer.blank(5, 5, (0, 0, 0, 255))
    buf.pixels[2, 2, :3] = 255
    apply_denoise(buf, 1.0)

    assert (buf.pixels[1:4, 1:4, :3] == 28).all()
    assert buf.pixels[0].sum() == 255 * 5      # top row: alpha only
    assert (buf.alpha == 255).all()


# ------------------------------------------------------------------
# Stage
# ------------------------------------------------------------------

def test_filters_run_in_insertion_order(gray_buffer):
    first = gray_buffer.copy()
    second = gray_buffer.copy()

    dark_then_flat = EnhancementConfig.model_validate({'postProcessing': {'brightness': 0.0, 'contrast': 0.0}})
    flat_then_dark = EnhancementConfig.model_validate({'postProcessing': {'contrast': 0.0, 'brightness': 0.0}})

    apply_post_processing(first, dark_then_flat.post_processing)
    apply_post_processing(second, flat_then_dark.post_processing)

    assert (first.pixels[..., :3] == 128).all()
    assert (second.pixels[..., :3] == 0).all()


def test_apply_filter_rejects_foreign_records(gray_buffer):
    with pytest.raises(TypeError):
        apply_filter(gray_buffer, object())
