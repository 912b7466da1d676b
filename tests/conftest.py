# tests/conftest.py
# Shared raster fixtures.

import numpy as np
import pytest

from quality_enhancer.raster import RasterBuffer


@pytest.fixture
def gray_buffer():
    return RasterBuffer.blank(16, 16, (128, 128, 128, 255))


@pytest.fixture
def random_buffer():
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(12, 10, 4), dtype=np.uint8)
    return RasterBuffer(10, 12, pixels)
