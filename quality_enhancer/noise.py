"""
Quality Enhancer - Procedural Noise
===================================
Deterministic hash-based value noise used by the material shaders.
"""

from typing import Union

import numpy as np


ArrayLike = Union[float, np.ndarray]


def value_noise(x: ArrayLike, y: ArrayLike) -> ArrayLike:
    """
    Hash noise in [0, 1): frac(sin(x*12.9898 + y*78.233) * 43758.5453).

    Pure function of its inputs; broadcasts over numpy arrays.
    """
    n = np.sin(np.asarray(x, dtype=np.float64) * 12.9898
               + np.asarray(y, dtype=np.float64) * 78.233) * 43758.5453
    result = n - np.floor(n)
    if np.ndim(result) == 0:
        return float(result)
    return result


def noise_field(width: int, height: int, frequency_x: float, frequency_y: float) -> np.ndarray:
    """
    Sample value noise over a pixel grid.

    Args:
        width: Grid width
        height: Grid height
        frequency_x: Scale applied to x before hashing
        frequency_y: Scale applied to y before hashing

    Returns:
        Noise map (H, W) float64 in [0, 1)
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    return value_noise(xs * frequency_x, ys * frequency_y)
