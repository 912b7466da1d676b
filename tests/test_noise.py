# tests/test_noise.py
# Hash value noise: determinism and range.

import math

import numpy as np
import pytest

from quality_enhancer.noise import noise_field, value_noise


def test_matches_hash_formula():
    n = math.sin(1.5 * 12.9898 + 2.25 * 78.233) * 43758.5453
    assert value_noise(1.5, 2.25) == pytest.approx(n - math.floor(n), abs=1e-6)


def test_is_deterministic_and_bounded():
    xs = np.linspace(-50, 50, 1001)
    first = value_noise(xs, xs * 0.5)
    second = value_noise(xs, xs * 0.5)
    assert np.array_equal(first, second)
    assert first.min() >= 0.0
    assert first.max() < 1.0


def test_field_samples_scaled_grid():
    field = noise_field(6, 4, 0.1, 0.2)
    assert field.shape == (4, 6)
    assert field[3, 5] == pytest.approx(value_noise(5 * 0.1, 3 * 0.2))
