# imagediff/smoothing.py
"""
Box blur pre-filter used to suppress sensor and compression noise.
"""

import numpy as np

from imagediff.progress import ProgressCallback, report, row_bands


def _window_bounds(size: int, radius: int):
    index = np.arange(size)
    lower = np.maximum(index - radius, 0)
    upper = np.minimum(index + radius + 1, size)
    return lower, upper


def box_blur(
    pixels: np.ndarray,
    radius: int,
    progress: ProgressCallback = None,
    stage: str = "blur",
) -> np.ndarray:
    """
    Uniform blur of every channel over a (2r+1) x (2r+1) window clipped to
    the image. The divisor is the number of in-bounds samples and the mean is
    floored. Returns a new array; `pixels` is not modified.
    """
    if radius <= 0:
        return pixels.copy()
    height, width, channels = pixels.shape
    # Summed-area table with a zero row and column in front.
    table = np.zeros((height + 1, width + 1, channels), dtype=np.int64)
    table[1:, 1:] = pixels.astype(np.int64).cumsum(axis=0).cumsum(axis=1)

    top, bottom = _window_bounds(height, radius)
    left, right = _window_bounds(width, radius)
    col_count = right - left

    result = np.empty_like(pixels, dtype=np.uint8)
    for start, stop in row_bands(height):
        y0 = top[start:stop, None]
        y1 = bottom[start:stop, None]
        sums = (
            table[y1, right[None, :]]
            - table[y0, right[None, :]]
            - table[y1, left[None, :]]
            + table[y0, left[None, :]]
        )
        counts = (y1 - y0) * col_count[None, :]
        result[start:stop] = (sums // counts[..., None]).astype(np.uint8)
        report(progress, stage, stop / height * 100)
    return result
