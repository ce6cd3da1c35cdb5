# imagediff/buffers.py
"""
Pixel buffers and pipeline results.
"""

from dataclasses import dataclass
import numbers

import numpy as np

from imagediff.errors import ConfigurationError, DimensionMismatchError

CHANNELS = 4


@dataclass
class PixelBuffer:
    """
    RGBA pixels, row-major. `pixels` has shape (height, width, 4), dtype uint8.
    """
    pixels: np.ndarray

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @classmethod
    def from_bytes(cls, data, width: int, height: int) -> "PixelBuffer":
        """
        Wrap a raw RGBA byte buffer (bytes, bytearray, memoryview or a flat
        uint8 array). The length must be exactly width*height*4.
        """
        _require_dimension("width", width)
        _require_dimension("height", height)
        flat = np.frombuffer(data, dtype=np.uint8) if not isinstance(data, np.ndarray) else data.ravel()
        expected_len = width * height * CHANNELS
        if flat.size != expected_len:
            raise DimensionMismatchError(
                f"Buffer holds {flat.size} bytes, expected {expected_len} for {width}x{height} RGBA"
            )
        return cls(flat.astype(np.uint8, copy=False).reshape((height, width, CHANNELS)))

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelBuffer":
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise DimensionMismatchError(f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ConfigurationError(f"Image dimensions must be positive, got shape {pixels.shape}")
        return cls(np.ascontiguousarray(pixels, dtype=np.uint8))

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass
class DiffResult:
    cleaned_mask: np.ndarray  # (H, W) uint8, 0/255
    raw_mask: np.ndarray      # (H, W) uint8, graded
    differing_count: int


def check_same_dimensions(before: PixelBuffer, after: PixelBuffer) -> None:
    if (before.width, before.height) != (after.width, after.height):
        raise DimensionMismatchError(
            f"Image sizes differ: before is {before.width}x{before.height}, "
            f"after is {after.width}x{after.height}"
        )


def _require_dimension(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
