"""
Quality Enhancer - Raster Buffer
================================
The mutable RGBA pixel container every stage operates on.

Pixels are stored row-major as a (height, width, 4) uint8 array, which is the
same memory layout as a flat R,G,B,A byte sequence of length width*height*4.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image

from .kernels import to_channels


PixelSource = Union[bytes, bytearray, memoryview, Sequence[int], np.ndarray]


@dataclass(eq=False)
class RasterBuffer:
    """
    Width×height grid of 8-bit RGBA pixels.

    Attributes:
        width: Buffer width in pixels
        height: Buffer height in pixels
        pixels: Pixel data (H, W, 4) uint8, R,G,B,A interleaved
    """
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Raster dimensions must be non-negative, got {self.width}×{self.height}"
            )

        data = self.pixels
        if not isinstance(data, np.ndarray):
            data = np.frombuffer(bytes(data), dtype=np.uint8) \
                if isinstance(data, (bytes, bytearray, memoryview)) \
                else np.asarray(data)

        expected = self.width * self.height * 4
        if data.size != expected:
            raise ValueError(
                f"Pixel data has {data.size} values, expected {expected} "
                f"for a {self.width}×{self.height} RGBA buffer"
            )
        if data.ndim not in (1, 3) or (data.ndim == 3 and data.shape != (self.height, self.width, 4)):
            raise ValueError(
                f"Pixel array shape {data.shape} does not match "
                f"({self.height}, {self.width}, 4)"
            )
        if data.dtype != np.uint8:
            if data.size and (data.min() < 0 or data.max() > 255):
                raise ValueError("Channel values must lie in [0, 255]")
            data = to_channels(data)

        # Own a writable, contiguous copy so stages can mutate freely
        self.pixels = np.array(data, dtype=np.uint8, order='C').reshape(self.height, self.width, 4)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: Tuple[int, int, int, int] = (0, 0, 0, 0)
    ) -> "RasterBuffer":
        """Create a buffer filled with a single RGBA color."""
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = np.asarray(color, dtype=np.uint8)
        return cls(width, height, pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: PixelSource) -> "RasterBuffer":
        """Create a buffer from a flat R,G,B,A byte sequence."""
        return cls(width, height, data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterBuffer":
        """
        Create a buffer from a PIL image.

        Args:
            image: Any PIL image; converted to RGBA first

        Returns:
            RasterBuffer holding a copy of the image pixels
        """
        rgba = image.convert('RGBA')
        return cls(rgba.width, rgba.height, np.array(rgba, dtype=np.uint8))

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.width, self.height, self.pixels.copy())

    @property
    def rgb(self) -> np.ndarray:
        """View of the color channels (H, W, 3)."""
        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel (H, W)."""
        return self.pixels[..., 3]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return (self.width == other.width and self.height == other.height
                and np.array_equal(self.pixels, other.pixels))

    def __repr__(self) -> str:
        return f"RasterBuffer(size={self.width}×{self.height})"
